"""
Idempotent creation of the analysis hierarchy.

For every processed dataset the materializer builds::

    <root>/AnalysedData/<project>/<subproject>/<subject_id>/
        <run><SequenceLabel>/        one folder per functional/structural run

and asks the conversion collaborator to populate each run folder unless the
expected artifact is already there.  Running the whole step twice leaves the
tree unchanged and does not repeat any conversion.

Per-run problems (missing run folder, failed conversion, missing artifact,
filesystem errors) are reported and the remaining runs continue.  Names that
would place a base directory outside ``AnalysedData`` skip that dataset.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

import click
import structlog
from pydantic import BaseModel, Field

from fmrimatic.collaborators.loader import CollaboratorRegistry
from fmrimatic.config.schema import ConversionSettings, LayoutSettings, MetadataSettings
from fmrimatic.errors import (
    ArtifactConversionFailure,
    CollaboratorError,
    MissingRunDirectory,
    UnsafeOutputPath,
)
from fmrimatic.metadata import read_sequence_name
from fmrimatic.models import SummaryEntry
from fmrimatic.utils.naming import sanitize_label

log = structlog.get_logger()

FUNCTIONAL = "functional"
STRUCTURAL = "structural"


# -----------------------------------------------------------------------------#
# Result objects                                                                #
# -----------------------------------------------------------------------------#
class BaseDirResult(BaseModel, frozen=True):
    """Outcome for one ``<project>/<subproject>/<subject>`` directory."""

    path: Path
    created: bool


class RunResult(BaseModel, frozen=True):
    """Outcome for one run token of one dataset.

    Attributes
    ----------
    dataset
        Dataset directory the run belongs to.
    run
        Run token as typed by the operator.
    role
        ``"functional"`` or ``"structural"``.
    folder
        Materialized run folder, ``None`` when the run was skipped.
    created
        ``True`` when *folder* did not exist before this pass.
    converted
        ``True`` when the conversion collaborator was invoked.
    artifact_present
        ``True`` when the expected artifact exists after the pass.
    missing
        ``True`` when the run directory does not exist in the dataset.
    error
        Why the run was skipped, when a filesystem error stopped it.
    """

    dataset: Path
    run: str
    role: str
    folder: Optional[Path] = None
    created: bool = False
    converted: bool = False
    artifact_present: bool = False
    missing: bool = False
    error: Optional[str] = None


class MaterializeReport(BaseModel):
    """Everything one materialization pass did."""

    bases: List[BaseDirResult] = Field(default_factory=list)
    runs: List[RunResult] = Field(default_factory=list)

    @property
    def run_folders(self) -> List[Path]:
        """Every run folder that was created or already existed."""
        return [r.folder for r in self.runs if r.folder is not None]

    def folders_for(self, role: str) -> List[RunResult]:
        """Results of *role* that have a run folder."""
        return [r for r in self.runs if r.role == role and r.folder is not None]


# -----------------------------------------------------------------------------#
# Materializer                                                                  #
# -----------------------------------------------------------------------------#
def _mkdir(path: Path) -> bool:
    """Create *path* (and parents); return ``True`` when it was missing."""
    existed = path.is_dir()
    path.mkdir(parents=True, exist_ok=True)
    return not existed


def _verify_artifact(folder: Path, artifact: str) -> None:
    """Raise :class:`ArtifactConversionFailure` when *artifact* is absent."""
    if not (folder / artifact).exists():
        raise ArtifactConversionFailure(f"{artifact} not found in {folder} after conversion.")


def _require_run_dir(dataset: Path, run: str) -> Path:
    """Return ``dataset/run``; the token must be a single path component.

    Raises:
        MissingRunDirectory: No such directory.
    """
    plain = bool(run) and run not in {".", ".."} and Path(run).name == run
    run_dir = dataset / run
    if not (plain and run_dir.is_dir()):
        raise MissingRunDirectory(str(dataset), run)
    return run_dir


class HierarchyMaterializer:
    """Build output folders and trigger conversion for summary entries.

    Args:
        root: Root location of the session.
        layout: Output layout settings.
        metadata: Needed to read the sequence label of each run.
        conversion: Operation and artifact names of the conversion step.
        registry: Loaded collaborators.  ``None`` disables conversion.
    """

    def __init__(
        self,
        root: Path,
        layout: LayoutSettings,
        metadata: MetadataSettings,
        conversion: ConversionSettings,
        registry: Optional[CollaboratorRegistry] = None,
    ) -> None:
        self.root = Path(root)
        self.layout = layout
        self.metadata = metadata
        self.conversion = conversion
        self.registry = registry
        self._warned_no_converter = False

    # ------------------------------------------------------------------ #
    # Paths                                                              #
    # ------------------------------------------------------------------ #
    def base_dir(self, entry: SummaryEntry) -> Path:
        """``<root>/AnalysedData/<project>/<subproject>/<subject_id>``.

        The three names are joined as plain strings below the analysis
        directory, so a leading separator never makes them absolute.

        Raises:
            UnsafeOutputPath: The names climb out of the analysis directory.
        """
        analysed = self.root / self.layout.analysed_dir
        parts = (
            entry.assignment.project,
            entry.assignment.subproject,
            entry.dataset.subject_id,
        )
        rel = "/".join(p.strip("/\\") for p in parts)
        target = Path(os.path.normpath(analysed / rel))
        if not target.is_relative_to(os.path.normpath(analysed)):
            raise UnsafeOutputPath(f"{rel!r} resolves outside {analysed}.")
        return target

    def run_label(self, run_dir: Path) -> str:
        """Sanitized sequence label of *run_dir* (sentinel on read failure)."""
        seq = read_sequence_name(run_dir, self.metadata) or self.metadata.unknown_sequence
        return sanitize_label(seq, self.layout.label_max_length)

    # ------------------------------------------------------------------ #
    # Steps                                                              #
    # ------------------------------------------------------------------ #
    def ensure_bases(self, entries: Iterable[SummaryEntry]) -> List[BaseDirResult]:
        """Create every base directory, reporting ``Created`` or ``Exists``."""
        click.secho(
            "\nChecking/creating AnalysedData directory structure...\n", fg="cyan", bold=True
        )
        results: List[BaseDirResult] = []
        seen: set[Path] = set()
        for entry in entries:
            try:
                target = self.base_dir(entry)
                if target in seen:
                    continue
                seen.add(target)
                created = _mkdir(target)
            except (UnsafeOutputPath, OSError) as exc:
                click.secho(f"WARNING: {exc} Skipping {entry.dataset.name}.", fg="yellow")
                log.warning(
                    "materialize",
                    msg="base failed",
                    dataset=str(entry.dataset.path),
                    error=str(exc),
                )
                continue
            if created:
                click.echo(f"{click.style('Created:', fg='green')} {target}")
            else:
                click.echo(f"{click.style('Exists:', fg='bright_black')} {target}")
            log.info("materialize", msg="base", path=str(target), created=created)
            results.append(BaseDirResult(path=target, created=created))
        click.secho("\nAll required directories verified/created successfully.\n", fg="green")
        return results

    def _converter(self):
        if self.registry is None:
            return None
        collab = self.registry.get(self.conversion.source)
        if collab is None and not self._warned_no_converter:
            self._warned_no_converter = True
            click.secho(
                f"WARNING: conversion source {self.conversion.source} is not loaded; "
                "run folders are created without conversion.",
                fg="yellow",
            )
            log.warning("materialize", msg="no converter", source=self.conversion.source)
        return collab

    def _convert_if_missing(self, dataset: Path, run: str, folder: Path, artifact: str) -> bool:
        """Invoke the conversion unless *artifact* exists in *folder*.

        Returns:
            ``True`` when the collaborator was invoked.

        Raises:
            ArtifactConversionFailure: The collaborator could not be invoked.
        """
        if (folder / artifact).exists():
            log.info("materialize", msg="artifact exists", path=str(folder / artifact))
            return False

        collab = self._converter()
        if collab is None:
            return False

        args = [str(dataset), run, str(dataset / run / self.metadata.method_file)]
        try:
            collab.invoke(self.conversion.operation, args, cwd=folder)
        except CollaboratorError as exc:
            raise ArtifactConversionFailure(str(exc)) from exc
        return True

    def _process_run(self, entry: SummaryEntry, base: Path, run: str, role: str) -> RunResult:
        dataset = entry.dataset.path
        try:
            run_dir = _require_run_dir(dataset, run)
        except MissingRunDirectory as exc:
            click.secho(f"  Warning: {exc}", fg="red")
            log.warning("materialize", msg="missing run", dataset=str(dataset), run=run)
            return RunResult(dataset=dataset, run=run, role=role, missing=True)

        folder = base / f"{run}{self.run_label(run_dir)}"
        try:
            created = _mkdir(folder)
        except OSError as exc:
            click.secho(f"  Warning: cannot create {folder}: {exc}", fg="red")
            log.warning("materialize", msg="mkdir failed", folder=str(folder), error=str(exc))
            return RunResult(dataset=dataset, run=run, role=role, error=str(exc))
        verb = "Created" if created else "Exists"
        click.echo(f"  {click.style(f'{verb} {role.capitalize()}:', fg='cyan')} {folder}")

        artifact = (
            self.conversion.functional_artifact
            if role == FUNCTIONAL
            else self.conversion.structural_artifact
        )
        converted = False
        try:
            converted = self._convert_if_missing(dataset, run, folder, artifact)
            if role == STRUCTURAL:
                self._copy_reference(folder)
            if converted:
                _verify_artifact(folder, artifact)
        except (ArtifactConversionFailure, OSError) as exc:
            click.secho(f"WARNING: {exc} Continuing.", fg="yellow")
            log.warning("materialize", msg="conversion failed", folder=str(folder), error=str(exc))

        return RunResult(
            dataset=dataset,
            run=run,
            role=role,
            folder=folder,
            created=created,
            converted=converted,
            artifact_present=(folder / artifact).exists(),
        )

    def _copy_reference(self, folder: Path) -> None:
        """Copy the converted image to the canonical structural file name."""
        src = folder / self.conversion.functional_artifact
        dst = folder / self.conversion.structural_artifact
        if not src.is_file():
            click.secho(
                f"WARNING: {self.conversion.functional_artifact} not found for structural; "
                "continuing.",
                fg="yellow",
            )
            return
        shutil.copyfile(src, dst)
        log.info("materialize", msg="copied", src=str(src), dst=str(dst))

    def materialize_entry(self, entry: SummaryEntry) -> List[RunResult]:
        """Create run folders of *entry* (its base directory included)."""
        try:
            base = self.base_dir(entry)
            _mkdir(base)
        except (UnsafeOutputPath, OSError) as exc:
            return [
                RunResult(dataset=entry.dataset.path, run=r, role=role, error=str(exc))
                for role, runs in ((FUNCTIONAL, entry.functional), (STRUCTURAL, entry.structural))
                for r in runs
            ]
        results = [self._process_run(entry, base, r, FUNCTIONAL) for r in entry.functional]
        results += [self._process_run(entry, base, r, STRUCTURAL) for r in entry.structural]
        return results

    def run(self, entries: Iterable[SummaryEntry]) -> MaterializeReport:
        """Materialize every entry and return the combined report."""
        entries = list(entries)
        report = MaterializeReport(bases=self.ensure_bases(entries))
        click.secho("\nStarting Basic Data Processing setup...\n", fg="cyan", bold=True)
        for entry in entries:
            report.runs.extend(self.materialize_entry(entry))
            click.echo()
        click.secho(
            "Basic Data Processing folder structure created successfully.\n", fg="green"
        )
        return report
