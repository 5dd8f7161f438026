"""
Parser for comma/range selection strings such as ``1,3,5-7``.

Two modes share the grammar:

``set``
    Dataset selection.  Ranges are normalised (``7-5`` means ``5..7``),
    the result is de-duplicated and sorted ascending.
``ordered``
    Operation selection.  The operator's sequence is kept verbatim,
    including repeats, and a descending range (``7-5``) expands descending.

Grammar: comma-separated tokens, each a non-negative integer ``N`` or a range
``A-B``.  Whitespace anywhere inside a token is ignored; tokens that match
neither form are dropped.  The literal ``q``/``Q`` aborts the session.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

from fmrimatic.errors import NoValidSelection, SelectionAborted

__all__ = ["SelectionMode", "parse_selection", "is_quit"]

_RANGE_RE = re.compile(r"^(\d+)-(\d+)$")
_SINGLE_RE = re.compile(r"^\d+$")
_WS_RE = re.compile(r"\s+")


class SelectionMode(str, Enum):
    """Parsing mode; see module doc-string."""

    SET = "set"
    ORDERED = "ordered"


def is_quit(text: Optional[str]) -> bool:
    """Return ``True`` for the ``q``/``Q`` abort token."""
    return (text or "").strip() in {"q", "Q"}


def _expand(token: str, mode: SelectionMode, upper: Optional[int] = None) -> List[int]:
    """Expand one whitespace-free token into integers.

    Range ends are clamped to ``1..upper`` before expansion.
    """
    m = _RANGE_RE.match(token)
    if m:
        a, b = int(m.group(1)), int(m.group(2))
        if upper is not None:
            if max(a, b) < 1 or min(a, b) > upper:
                return []
            a, b = min(max(a, 1), upper), min(max(b, 1), upper)
        if mode is SelectionMode.ORDERED and a > b:
            return list(range(a, b - 1, -1))
        lo, hi = min(a, b), max(a, b)
        return list(range(lo, hi + 1))
    if _SINGLE_RE.match(token):
        return [int(token)]
    return []


def parse_selection(
    text: Optional[str],
    mode: SelectionMode = SelectionMode.SET,
    *,
    upper: Optional[int] = None,
) -> List[int]:
    """Parse *text* into selected indices.

    Args:
        text: Raw operator input.
        mode: :attr:`SelectionMode.SET` or :attr:`SelectionMode.ORDERED`.
        upper: When given, values outside ``1..upper`` are discarded.

    Returns:
        Ascending unique integers (``set``) or the literal sequence
        (``ordered``).

    Raises:
        SelectionAborted: *text* is the quit token.
        NoValidSelection: Nothing valid remains after parsing.

    Examples:
        >>> parse_selection("1,3,5-7")
        [1, 3, 5, 6, 7]
        >>> parse_selection("7-5", SelectionMode.ORDERED)
        [7, 6, 5]
    """
    mode = SelectionMode(mode)
    if is_quit(text):
        raise SelectionAborted("Aborted.")
    if not (text or "").strip():
        raise NoValidSelection("No selection.")

    values: List[int] = []
    for part in text.split(","):
        values.extend(_expand(_WS_RE.sub("", part), mode, upper))

    if upper is not None:
        values = [v for v in values if 1 <= v <= upper]

    if mode is SelectionMode.SET:
        values = sorted(set(values))

    if not values:
        raise NoValidSelection(f"No valid indices in {text.strip()!r}.")
    return values
