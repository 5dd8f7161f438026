"""Collaborator backed by a bash script of shell functions.

A script is a plain ``.sh`` file that defines functions such as::

    BRUKER_to_NIFTI () {
        ...
    }

:meth:`ShellScriptCollaborator.list_operations` scans the text for those
definitions without executing anything.  :meth:`ShellScriptCollaborator.invoke`
starts a fresh ``bash``, sources every script of the *toolbox* (so functions
from one script may call helpers defined in another) and then calls the
requested function with the given arguments.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from fmrimatic.collaborators.base import Collaborator
from fmrimatic.errors import CollaboratorError

log = logging.getLogger(__name__)

__all__ = ["ShellScriptCollaborator", "which_bash", "syntax_ok", "list_shell_functions"]

_FUNC_RE = re.compile(r"^[ \t]*([A-Za-z0-9_]+)[ \t]*\(\)[ \t]*\{", re.MULTILINE)


def which_bash() -> str:
    """Return the absolute path to *bash* or raise if it is not on *PATH*."""
    exe = shutil.which("bash")
    if not exe:
        raise CollaboratorError("bash not found on $PATH – shell collaborators need it.")
    return exe


def syntax_ok(script: Path) -> bool:
    """Return ``True`` when ``bash -n`` accepts *script*."""
    res = subprocess.run([which_bash(), "-n", str(script)], capture_output=True, text=True)
    if res.returncode != 0:
        log.debug("bash -n %s failed: %s", script, res.stderr.strip())
    return res.returncode == 0


def list_shell_functions(text: str) -> List[str]:
    """Return sorted, unique ``name() {`` definitions found in *text*."""
    return sorted(set(_FUNC_RE.findall(text)))


class ShellScriptCollaborator(Collaborator):
    """One shell script exposed as a collaborator.

    Args:
        name: Source name (usually the script's file name).
        script: Local path of the script.
        toolbox: Scripts sourced before each call, in order.  Defaults to
            ``[script]``.  The registry passes one shared list so that every
            collaborator sees every loaded script.
    """

    def __init__(
        self,
        name: str,
        script: Path,
        *,
        toolbox: Optional[List[Path]] = None,
    ) -> None:
        self.name = name
        self.script = Path(script)
        self.toolbox = toolbox if toolbox is not None else [self.script]

    def __repr__(self) -> str:
        return f"ShellScriptCollaborator(name={self.name!r}, script={str(self.script)!r})"

    def list_operations(self) -> List[str]:
        try:
            text = self.script.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            log.warning("Cannot read %s: %s", self.script, exc)
            return []
        return list_shell_functions(text)

    def _command(self, operation: str, args: Sequence[str]) -> List[str]:
        sources = "; ".join(f"source {shlex.quote(str(p))}" for p in self.toolbox)
        body = f'{sources}; {operation} "$@"' if sources else f'{operation} "$@"'
        # "$0" is the operation name, "$@" the arguments
        return [which_bash(), "-c", body, operation, *map(str, args)]

    def invoke(
        self,
        operation: str,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Call shell function *operation* and return its exit status.

        Raises:
            CollaboratorError: *operation* is not defined by this script.
        """
        if operation not in self.list_operations():
            raise CollaboratorError(f"{self.name} does not define {operation!r}")

        cmd = self._command(operation, args)
        full_env = dict(os.environ)
        if env:
            full_env.update({k: str(v) for k, v in env.items()})

        log.debug("%s: %s (cwd=%s)", self.name, " ".join(cmd[3:]), cwd)
        res = subprocess.run(cmd, cwd=str(cwd), env=full_env)
        if res.returncode != 0:
            log.warning("%s %s exited with status %d", self.name, operation, res.returncode)
        return res.returncode
