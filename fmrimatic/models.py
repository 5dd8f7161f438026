"""
Core data-model declarations for *fmrimatic*.

The module centralizes the small containers that flow between the scanner,
the catalog, the interactive steps and the materializer.  Keeping them here
avoids scattering ad-hoc tuples and ``|``-joined strings across the code-base.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

_DATE_KEY_RE = re.compile(r"^(\d{8})(?:_|$)")


def date_key_from_name(name: str) -> Optional[str]:
    """Return the leading ``YYYYMMDD`` token of *name* or ``None``.

    The token is everything before the first underscore and must consist of
    exactly eight digits, e.g. ``20240115_103000_study`` → ``"20240115"``.
    """
    m = _DATE_KEY_RE.match(name)
    return m.group(1) if m else None


@dataclass(slots=True, frozen=True)
class Dataset:
    """One acquisition session directory.

    Attributes:
        path: Absolute, resolved path; the identity of the dataset.
        subject_id: Subject identifier from the ``subject`` file.
        study_name: Study name from the ``subject`` file.
        run_count: Number of immediate numeric-named subdirectories.
    """

    path: Path
    subject_id: str
    study_name: str
    run_count: int

    @property
    def name(self) -> str:
        """Directory basename."""
        return self.path.name

    @property
    def date_key(self) -> Optional[str]:
        """``YYYYMMDD`` prefix of :attr:`name`, ``None`` for undated names."""
        return date_key_from_name(self.name)


@dataclass(slots=True)
class DatasetGroup:
    """Display bucket of datasets acquired in the same (year, month)."""

    year: int
    month: int
    label: str
    datasets: List[Dataset] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class RunInfo:
    """Acquisition parameters of one run shown before pairing."""

    run: str
    sequence: Optional[str]
    averages: Optional[str]
    repetitions: Optional[str]

    @property
    def highlighted(self) -> bool:
        """Flag runs whose averaging/repetition pattern deserves attention.

        A run is flagged when it averages or repeats more than once, unless it
        only averages and its sequence is a FLASH or EPI protocol.
        """
        na = int(self.averages) if (self.averages or "").isdigit() else 0
        nr = int(self.repetitions) if (self.repetitions or "").isdigit() else 0
        seq = (self.sequence or "").upper()
        if not (na > 1 or nr > 1):
            return False
        return nr > 1 or ("FLASH" not in seq and "EPI" not in seq)


@dataclass(slots=True, frozen=True)
class Assignment:
    """Project/subproject taxonomy entry persisted per dataset path."""

    project: str
    subproject: str

    def to_json(self) -> dict:
        """Return the on-disk representation."""
        return {"project": self.project, "subproject": self.subproject}


class PairingMode(Enum):
    """How functional and structural runs of a dataset are paired."""

    MANY_FUNC_ONE_STRUCT = "Multiple functional → Single structural"
    ONE_FUNC_MANY_STRUCT = "Single functional → Multiple structural"
    MANY_FUNC_MANY_STRUCT = "Multiple functional → Multiple structural"
    ONE_FUNC_ONE_STRUCT = "Single functional → Single structural"

    @property
    def label(self) -> str:
        """Menu text."""
        return self.value

    @property
    def supported(self) -> bool:
        """``False`` for the many→many variant, which is not implemented."""
        return self is not PairingMode.MANY_FUNC_MANY_STRUCT


@dataclass(slots=True, frozen=True)
class RunSelection:
    """Canonical run strings (single-space separated) per role."""

    mode: PairingMode
    functional_runs: str
    structural_runs: str


@dataclass(slots=True, frozen=True)
class SummaryEntry:
    """Join of dataset, assignment and run selection for one processed dataset."""

    dataset: Dataset
    assignment: Assignment
    runs: RunSelection

    @property
    def functional(self) -> List[str]:
        """Functional run tokens."""
        return self.runs.functional_runs.split()

    @property
    def structural(self) -> List[str]:
        """Structural run tokens."""
        return self.runs.structural_runs.split()


@dataclass(slots=True, frozen=True)
class OperationEntry:
    """Row of the operation table offered for ordered selection."""

    index: int
    source: str
    operation: str


@dataclass(slots=True, frozen=True)
class PlannedOperation:
    """One step of the execution plan (duplicates allowed across steps)."""

    operation: str
    source: str
