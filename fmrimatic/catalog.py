"""
Date-grouped, indexed view over scanned datasets.

Ordering rules
--------------
1. Datasets whose name lacks an 8-digit ``YYYYMMDD`` prefix are left out of
   the view (they still exist in the raw scan list).
2. The remaining datasets sort by date key, newest first.  Equal dates keep
   the scanner's discovery order.
3. Consecutive datasets sharing a (year, month) form a group labelled with
   the month name, e.g. ``January 2024``.
4. Display indices are 1-based and follow exactly the printed order.

Once a dataset has an index it keeps it for the lifetime of the catalog;
:meth:`DatasetCatalog.extend` only appends newly discovered datasets.
"""

from __future__ import annotations

import calendar
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from fmrimatic.errors import NoDatasetsFound
from fmrimatic.models import Dataset, DatasetGroup

log = logging.getLogger(__name__)

__all__ = ["DatasetCatalog", "month_label"]


def month_label(year: int, month: int) -> str:
    """Return ``"<Month name> <year>"``; unknown months read ``Unknown``."""
    name = calendar.month_name[month] if 1 <= month <= 12 else ""
    return f"{name or 'Unknown'} {year}"


def _ordered(datasets: Iterable[Dataset]) -> List[Dataset]:
    """Return dated datasets newest first; ``sorted`` keeps ties stable."""
    dated = [d for d in datasets if d.date_key is not None]
    return sorted(dated, key=lambda d: d.date_key, reverse=True)


class DatasetCatalog:
    """Indexed catalog of datasets in display order.

    Use :meth:`build` to create one from a scan result.
    """

    def __init__(self, entries: Sequence[Dataset]) -> None:
        self._entries: List[Dataset] = list(entries)
        self._by_path: Dict[Path, int] = {
            d.path: i for i, d in enumerate(self._entries, start=1)
        }

    # ------------------------------------------------------------------ #
    # Construction                                                       #
    # ------------------------------------------------------------------ #
    @classmethod
    def build(cls, datasets: Iterable[Dataset]) -> "DatasetCatalog":
        """Order *datasets* and assign display indices.

        Raises:
            NoDatasetsFound: No dataset survives the date filter.
        """
        datasets = list(datasets)
        ordered = _ordered(datasets)
        dropped = len(datasets) - len(ordered)
        if dropped:
            log.info("Ignoring %d dataset(s) without a YYYYMMDD name prefix", dropped)
        if not ordered:
            raise NoDatasetsFound("No valid datasets found.")
        return cls(ordered)

    def extend(self, datasets: Iterable[Dataset]) -> List[int]:
        """Append datasets not yet indexed, keeping existing indices intact.

        Returns:
            Indices assigned to the newly added datasets.
        """
        fresh = [d for d in _ordered(datasets) if d.path not in self._by_path]
        added: List[int] = []
        for ds in fresh:
            self._entries.append(ds)
            idx = len(self._entries)
            self._by_path[ds.path] = idx
            added.append(idx)
        return added

    # ------------------------------------------------------------------ #
    # Lookup                                                             #
    # ------------------------------------------------------------------ #
    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[int, Dataset]]:
        return iter(enumerate(self._entries, start=1))

    def dataset(self, index: int) -> Dataset:
        """Return the dataset shown under display *index*.

        Raises:
            IndexError: *index* is outside ``1..len(self)``.
        """
        if not 1 <= index <= len(self._entries):
            raise IndexError(f"display index {index} out of range 1..{len(self._entries)}")
        return self._entries[index - 1]

    def index_of(self, path: Path) -> Optional[int]:
        """Return the display index of *path* or ``None``."""
        return self._by_path.get(path)

    def resolve(self, indices: Iterable[int]) -> List[Dataset]:
        """Map display indices to datasets, preserving the given order."""
        return [self.dataset(i) for i in indices]

    # ------------------------------------------------------------------ #
    # Grouping                                                           #
    # ------------------------------------------------------------------ #
    def groups(self) -> List[DatasetGroup]:
        """Return consecutive (year, month) runs of the display order."""
        out: List[DatasetGroup] = []
        for ds in self._entries:
            key = ds.date_key
            year, month = int(key[:4]), int(key[4:6])
            if not out or (out[-1].year, out[-1].month) != (year, month):
                out.append(DatasetGroup(year, month, month_label(year, month)))
            out[-1].datasets.append(ds)
        return out
