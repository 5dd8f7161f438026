"""
Root-location helpers.

Functions here turn whatever the operator typed (``~/data``, ``$SCRATCH/fMRI``,
relative paths) into an absolute path, and verify that the result can serve
as the root of a scan.  Keeping this logic in one place avoids subtle
inconsistencies between the CLI flag, the environment variable and the
interactive prompt.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from fmrimatic.errors import InvalidRoot

__all__ = ["expand_path", "resolve_root"]


def expand_path(raw: Optional[str]) -> Path:
    """Return *raw* with ``~`` and ``$VARS`` expanded, made absolute.

    An empty or ``None`` value resolves to the current working directory.
    Symlinks are not resolved here; the scanner de-duplicates on resolved
    paths itself.
    """
    text = raw or "."
    return Path(os.path.abspath(os.path.expanduser(os.path.expandvars(text))))


def resolve_root(raw: Optional[str]) -> Path:
    """Expand *raw* and ensure it names an existing directory.

    Raises:
        InvalidRoot: The expanded path is missing or not a directory.
    """
    root = expand_path(raw)
    if not root.is_dir():
        raise InvalidRoot(f"root location '{root}' does not exist.")
    return root
