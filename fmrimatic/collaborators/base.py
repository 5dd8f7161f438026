"""Interface implemented by every external processing collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Mapping, Optional, Sequence


class Collaborator(ABC):
    """Opaque provider of named processing operations.

    The core never looks inside a collaborator.  It asks for the names of the
    operations it exposes and invokes them by name with positional string
    arguments inside a working directory.  The calls are blocking and carry
    no timeout.

    Attributes:
        name: Source name used in operation tables and configuration.
    """

    name: str

    @abstractmethod
    def list_operations(self) -> List[str]:
        """Return the operation names exposed by this collaborator."""
        raise NotImplementedError

    @abstractmethod
    def invoke(
        self,
        operation: str,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Run *operation* with *args* in *cwd*.

        Args:
            operation: One of :meth:`list_operations`.
            args: Positional arguments passed verbatim.
            cwd: Working directory of the call.
            env: Extra environment variables layered over ``os.environ``.

        Returns:
            Process return code.
        """
        raise NotImplementedError
