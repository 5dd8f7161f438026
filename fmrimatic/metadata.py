"""
Readers for Bruker ParaVision text metadata.

Three files matter to the workflow:

* ``<dataset>/subject`` – fixed line offsets carry the subject identifier and
  the study name, wrapped in angle brackets.
* ``<dataset>/<run>/acqp`` – the protocol (sequence) name sits on the line
  *after* the ``##$ACQ_protocol_name=`` marker, between ``<`` and ``>``.
* ``<dataset>/<run>/method`` – ``##$PVM_NAverages=`` and
  ``##$PVM_NRepetitions=`` carry their value on the marker line itself.

Every reader is best-effort: unreadable files yield ``None`` (or the sentinel
supplied by the caller) and never raise into the interactive flow.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from fmrimatic.config.schema import MetadataSettings
from fmrimatic.errors import MetadataReadFailure
from fmrimatic.models import RunInfo

log = logging.getLogger(__name__)

_ANGLE_RE = re.compile(r"[<>]")
_BRACKETED_RE = re.compile(r"<([^<>]*)>")


# -----------------------------------------------------------------------------#
# Low-level helpers                                                            #
# -----------------------------------------------------------------------------#
def _read_lines(path: Path) -> List[str]:
    """Return the lines of *path*.

    Raises:
        MetadataReadFailure: The file is missing or unreadable.
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        raise MetadataReadFailure(f"cannot read {path}: {exc}") from exc


def numeric_run_dirs(dataset: Path) -> List[Path]:
    """Return the numeric-named immediate subdirectories, sorted numerically."""
    try:
        children = [p for p in dataset.iterdir() if p.is_dir() and p.name.isdigit()]
    except OSError as exc:
        log.debug("Cannot list %s: %s", dataset, exc)
        return []
    return sorted(children, key=lambda p: int(p.name))


# -----------------------------------------------------------------------------#
# subject file                                                                  #
# -----------------------------------------------------------------------------#
def read_subject_info(dataset: Path, settings: MetadataSettings) -> Tuple[str, str]:
    """Return ``(subject_id, study_name)`` for *dataset*.

    Missing files, short files and blank lines each yield
    ``settings.not_found`` for the affected value.
    """
    subject_id = study_name = settings.not_found
    try:
        lines = _read_lines(dataset / settings.subject_file)
    except MetadataReadFailure as exc:
        log.debug("%s", exc)
        return subject_id, study_name

    def _pick(lineno: int) -> Optional[str]:
        if len(lines) < lineno:
            return None
        return _ANGLE_RE.sub("", lines[lineno - 1]).strip() or None

    subject_id = _pick(settings.subject_id_line) or settings.not_found
    study_name = _pick(settings.study_name_line) or settings.not_found
    return subject_id, study_name


# -----------------------------------------------------------------------------#
# acqp / method                                                                 #
# -----------------------------------------------------------------------------#
def read_sequence_name(run_dir: Path, settings: MetadataSettings) -> Optional[str]:
    """Return the protocol name stored in ``<run_dir>/acqp`` or ``None``."""
    try:
        lines = _read_lines(run_dir / settings.acqp_file)
    except MetadataReadFailure as exc:
        log.debug("%s", exc)
        return None

    for i, line in enumerate(lines):
        if line.startswith(settings.sequence_marker):
            if i + 1 >= len(lines):
                return None
            m = _BRACKETED_RE.search(lines[i + 1])
            return m.group(1) if m else None
    return None


def read_method_value(run_dir: Path, marker: str, settings: MetadataSettings) -> Optional[str]:
    """Return the value following *marker* on its line in ``method``."""
    try:
        lines = _read_lines(run_dir / settings.method_file)
    except MetadataReadFailure as exc:
        log.debug("%s", exc)
        return None

    for line in lines:
        if line.startswith(marker):
            return line[len(marker):].strip() or None
    return None


def read_run_info(run_dir: Path, settings: MetadataSettings) -> RunInfo:
    """Collect the acquisition summary of one run directory."""
    return RunInfo(
        run=run_dir.name,
        sequence=read_sequence_name(run_dir, settings),
        averages=read_method_value(run_dir, settings.averages_marker, settings),
        repetitions=read_method_value(run_dir, settings.repetitions_marker, settings),
    )


def list_run_info(dataset: Path, settings: MetadataSettings) -> List[RunInfo]:
    """Return :class:`RunInfo` for every numeric run of *dataset*."""
    return [read_run_info(d, settings) for d in numeric_run_dirs(dataset)]
