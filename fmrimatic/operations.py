"""
Operation catalog, ordered selection and plan execution.

The table lists every operation of every loaded collaborator::

    No. | Source File          | Function Name
    1   | data_conversion.sh   | BRUKER_to_NIFTI
    2   | motion_correction.sh | motion_correction_afni
    ...

Sources keep their configured order, operations keep the order their
collaborator reports.  A source that reports nothing (or fails to report)
contributes no rows.  The operator then types an ordered selection such as
``5,2,4-6``; the resulting plan may name an operation more than once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import click

from fmrimatic.collaborators.loader import CollaboratorRegistry
from fmrimatic.errors import CollaboratorError
from fmrimatic.materialize import FUNCTIONAL, MaterializeReport
from fmrimatic.models import OperationEntry, PlannedOperation, SummaryEntry
from fmrimatic.selection import SelectionMode, parse_selection

log = logging.getLogger(__name__)

__all__ = [
    "build_function_table",
    "select_operations",
    "ExecutionTarget",
    "StepResult",
    "plan_targets",
    "execute_plan",
]


def build_function_table(registry: CollaboratorRegistry) -> List[OperationEntry]:
    """Return one row per (source, operation) with 1-based indices."""
    table: List[OperationEntry] = []
    for collab in registry:
        click.echo(f"{click.style('→ Parsing:', fg='bright_black')} {collab.name}")
        try:
            ops = collab.list_operations()
        except CollaboratorError as exc:
            log.warning("Cannot list operations of %s: %s", collab.name, exc)
            continue
        if not ops:
            log.info("Source %s exposes no operations", collab.name)
            continue
        for op in ops:
            table.append(OperationEntry(index=len(table) + 1, source=collab.name, operation=op))
    return table


def select_operations(table: Sequence[OperationEntry], text: str) -> List[PlannedOperation]:
    """Turn an ordered selection string into an execution plan.

    Indices without a table row are ignored.

    Raises:
        SelectionAborted: *text* is the quit token.
        NoValidSelection: No index resolves to a row.
    """
    by_index: Dict[int, OperationEntry] = {e.index: e for e in table}
    picks = parse_selection(text, SelectionMode.ORDERED, upper=len(table))
    return [
        PlannedOperation(operation=by_index[i].operation, source=by_index[i].source)
        for i in picks
        if i in by_index
    ]


# -----------------------------------------------------------------------------#
# Execution                                                                     #
# -----------------------------------------------------------------------------#
@dataclass(frozen=True)
class ExecutionTarget:
    """A functional run folder plus the shell variables exported into it."""

    folder: Path
    env: Mapping[str, str]


@dataclass(frozen=True)
class StepResult:
    """Exit status of one planned step in one target folder."""

    operation: str
    source: str
    folder: Path
    returncode: int


def plan_targets(
    root: Path,
    report: MaterializeReport,
    entries: Sequence[SummaryEntry],
) -> List[ExecutionTarget]:
    """Return one target per materialized functional run folder.

    The exported variables are ``root_location``, ``datapath``,
    ``run_number`` and ``str_for_coreg``.
    """
    by_path = {e.dataset.path: e for e in entries}
    targets: List[ExecutionTarget] = []
    for res in report.folders_for(FUNCTIONAL):
        entry = by_path.get(res.dataset)
        if entry is None:
            continue
        env = {
            "root_location": str(root),
            "datapath": str(entry.dataset.path),
            "run_number": res.run,
            "str_for_coreg": entry.runs.structural_runs,
        }
        targets.append(ExecutionTarget(folder=res.folder, env=env))
    return targets


def execute_plan(
    plan: Sequence[PlannedOperation],
    registry: CollaboratorRegistry,
    targets: Sequence[ExecutionTarget],
) -> List[StepResult]:
    """Run every planned step, in order, inside every target folder.

    A non-zero exit status or a collaborator error is reported and the next
    step runs anyway.
    """
    results: List[StepResult] = []
    for order, step in enumerate(plan, start=1):
        collab = registry.get(step.source)
        if collab is None:
            click.secho(f"[{order}] {step.source} is not loaded; skipping.", fg="red")
            continue
        for target in targets:
            click.secho(
                f"[{order}] {step.operation} ({step.source}) in {target.folder}", fg="cyan"
            )
            try:
                rc = collab.invoke(step.operation, [], cwd=target.folder, env=target.env)
            except CollaboratorError as exc:
                click.secho(f"  {exc}", fg="red")
                log.warning("Step %s failed: %s", step.operation, exc)
                rc = -1
            if rc != 0:
                click.secho(f"  {step.operation} exited with status {rc}; continuing.", fg="yellow")
            results.append(StepResult(step.operation, step.source, target.folder, rc))
    return results
