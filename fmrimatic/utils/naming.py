"""
Utility functions for filesystem-safe naming.

Functions here transform free-text values read from scanner metadata or typed
by the operator into strings that are safe to use as path components, and
canonicalise run-number lists.
"""

from __future__ import annotations

import re

__all__ = ["sanitize_label", "normalize_run_tokens", "truncate_text"]

_LABEL_DROP_RE = re.compile(r"[^A-Za-z0-9_-]")
_RUN_SPLIT_RE = re.compile(r"[\s,]+")


def sanitize_label(text: str, max_length: int = 50) -> str:
    """Return *text* reduced to ``[A-Za-z0-9_-]`` and capped at *max_length*.

    Disallowed characters are deleted rather than replaced, so
    ``"T2 RARE (cor)"`` becomes ``"T2RAREcor"``.
    """
    return _LABEL_DROP_RE.sub("", text or "")[:max_length]


def normalize_run_tokens(raw: str) -> str:
    """Return *raw* run numbers as a single-space separated token string.

    Commas and any whitespace act as separators; empty tokens vanish.

    Example:
        >>> normalize_run_tokens(" 5, 6 ,7")
        '5 6 7'
    """
    return " ".join(tok for tok in _RUN_SPLIT_RE.split(raw or "") if tok)


def truncate_text(text: str, max_len: int) -> str:
    """Return *text* shortened to *max_len* characters ending in ``...``."""
    text = "" if text is None else str(text)
    if len(text) <= max_len:
        return text
    return text[: max(max_len - 3, 0)] + "..."
