"""
Filesystem discovery of raw acquisition datasets.

A *run* directory carries a fixed metadata signature (``acqp``, ``method``,
``visu_pars``, ``pulseprogram`` and a ``pdata/`` folder by default); the
*dataset* is the directory that holds such runs.  The walk is bounded by a
minimum and maximum depth relative to the root so that a mis-typed root such
as ``/`` does not trigger a full-disk traversal.

Traversal is best-effort: unreadable subtrees are skipped silently.  Only a
missing root is an error.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, List

from fmrimatic.config.schema import MetadataSettings, ScanSettings
from fmrimatic.errors import InvalidRoot
from fmrimatic.metadata import numeric_run_dirs, read_subject_info
from fmrimatic.models import Dataset

log = logging.getLogger(__name__)

__all__ = ["scan_datasets", "find_dataset_dirs", "has_signature"]


# -----------------------------------------------------------------------------#
# Internal helpers                                                             #
# -----------------------------------------------------------------------------#
def has_signature(path: Path, settings: ScanSettings) -> bool:
    """Return ``True`` when *path* holds every marker file and directory."""
    return all((path / f).is_file() for f in settings.marker_files) and all(
        (path / d).is_dir() for d in settings.marker_dirs
    )


def _walk_bounded(root: Path, max_depth: int) -> Iterator[tuple[Path, int]]:
    """Yield ``(directory, depth)`` pairs below *root* up to *max_depth*.

    Symlinked directories are followed, but every resolved directory is
    entered at most once so that link cycles terminate.
    """
    seen: set[Path] = set()

    def _on_error(exc: OSError) -> None:
        log.debug("Skipping unreadable entry: %s", exc)

    for dirpath, dirnames, _ in os.walk(root, onerror=_on_error, followlinks=True):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)

        try:
            real = current.resolve()
        except OSError:
            dirnames[:] = []
            continue
        if real in seen:
            dirnames[:] = []
            continue
        seen.add(real)

        yield current, depth
        if depth >= max_depth:
            dirnames[:] = []  # prune – do not descend further
        else:
            dirnames.sort()


# -----------------------------------------------------------------------------#
# Public API                                                                    #
# -----------------------------------------------------------------------------#
def find_dataset_dirs(root: Path, settings: ScanSettings) -> List[Path]:
    """Return resolved dataset directories under *root*.

    Args:
        root: Directory to scan.
        settings: Signature and depth bounds.

    Returns:
        De-duplicated, resolved dataset paths in ascending path order.  This
        order is the "discovery order" the catalog uses to break date ties.

    Raises:
        InvalidRoot: *root* is not an existing directory.
    """
    if not root.is_dir():
        raise InvalidRoot(f"root location '{root}' does not exist.")

    found: set[Path] = set()
    for directory, depth in _walk_bounded(root, settings.max_depth):
        if depth < settings.min_depth:
            continue
        try:
            if has_signature(directory, settings):
                found.add(directory.resolve().parent)
        except OSError as exc:
            log.debug("Skipping %s: %s", directory, exc)

    ordered = sorted(found, key=str)
    log.info("Found %d dataset(s) under %s", len(ordered), root)
    return ordered


def load_dataset(path: Path, settings: MetadataSettings) -> Dataset:
    """Build the read-only :class:`Dataset` record for *path*."""
    subject_id, study_name = read_subject_info(path, settings)
    return Dataset(
        path=path,
        subject_id=subject_id,
        study_name=study_name,
        run_count=len(numeric_run_dirs(path)),
    )


def scan_datasets(
    root: Path,
    scan: ScanSettings,
    metadata: MetadataSettings,
) -> List[Dataset]:
    """Discover every dataset below *root* and read its subject metadata.

    Raises:
        InvalidRoot: *root* is not an existing directory.
    """
    return [load_dataset(p, metadata) for p in find_dataset_dirs(root, scan)]
