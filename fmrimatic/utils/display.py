"""
Presentation helpers for the interactive session.

Everything that prints catalog listings, run tables, summaries and operation
tables lives here so that the workflow modules stay focused on orchestration
rather than console I/O.  Tables are rendered with :pymod:`tableprint`; the
output stream is looked up at call time so that ``click.testing.CliRunner``
can capture it.
"""

from __future__ import annotations

import sys
from typing import Dict, List, Sequence

import click
import tableprint as tp

from fmrimatic.catalog import DatasetCatalog
from fmrimatic.models import Assignment, OperationEntry, PlannedOperation, RunInfo, SummaryEntry
from fmrimatic.utils.naming import truncate_text

# Column widths of the summary table
SUMMARY_WIDTHS = {
    "No.": 4,
    "Dataset Name": 30,
    "Subject ID": 15,
    "Project": 15,
    "Subproject": 15,
    "Func Run": 10,
    "Struct Run": 10,
}
RULE_WIDTH = 100


# -----------------------------------------------------------------------------#
# Internal helpers                                                             #
# -----------------------------------------------------------------------------#
def _table(rows: List[List[str]], headers: List[str], widths: Sequence[int]) -> None:
    tp.table(rows, headers=headers, width=list(widths), align="left", out=sys.stdout)


def banner(title: str) -> None:
    """Print *title* centred between two rules."""
    rule = "=" * RULE_WIDTH
    click.secho(f"\n{rule}", fg="cyan", bold=True)
    click.secho(title.center(RULE_WIDTH).rstrip(), fg="cyan", bold=True)
    click.secho(f"{rule}\n", fg="cyan", bold=True)


# -----------------------------------------------------------------------------#
# Catalog                                                                      #
# -----------------------------------------------------------------------------#
def display_catalog(catalog: DatasetCatalog) -> None:
    """Print the month groups with each dataset under its display index."""
    click.secho(f"Found {len(catalog)} datasets in total", fg="cyan", bold=True)
    index = 1
    for group in catalog.groups():
        n = len(group.datasets)
        click.secho(
            f"\n{group.label} ({n} dataset{'s' if n > 1 else ''})", fg="cyan", bold=True
        )
        click.secho("━" * 60, fg="bright_black")
        for ds in group.datasets:
            click.echo(
                f"{click.style(f'{index:<6d}', fg='yellow')} "
                f"{click.style(ds.name, fg='green')} ({ds.run_count} runs)"
            )
            click.echo(f"       Subject ID: {ds.subject_id} | Study: {ds.study_name}")
            index += 1
    click.echo()


# -----------------------------------------------------------------------------#
# Runs                                                                         #
# -----------------------------------------------------------------------------#
def display_run_info(subject_id: str, runs: Sequence[RunInfo]) -> None:
    """Print the run table shown before pairing; ``*`` flags highlighted runs."""
    click.secho(f"\nRun Information for Subject: {subject_id}", fg="cyan", bold=True)
    if not runs:
        click.echo("(no numeric run folders)")
        return
    rows = [
        [
            "*" if info.highlighted else "",
            info.run,
            truncate_text(info.sequence or "-", 20),
            info.averages or "-",
            info.repetitions or "-",
        ]
        for info in runs
    ]
    _table(rows, ["", "Run", "Sequence Name", "No. of Averages", "No. of Repetitions"],
           [1, 6, 20, 15, 18])
    if any(info.highlighted for info in runs):
        click.secho("* averaged or repeated acquisition", fg="yellow")


# -----------------------------------------------------------------------------#
# Summary                                                                      #
# -----------------------------------------------------------------------------#
def summary_row(no: int, entry: SummaryEntry) -> List[str]:
    """Return the truncated cells of one summary table row."""
    values = [
        str(no),
        entry.dataset.name,
        entry.dataset.subject_id,
        entry.assignment.project,
        entry.assignment.subproject,
        entry.runs.functional_runs,
        entry.runs.structural_runs,
    ]
    return [truncate_text(v, w) for v, w in zip(values, SUMMARY_WIDTHS.values())]


def display_summary(entries: Sequence[SummaryEntry]) -> None:
    """Print the "Dataset Summary" block, one table per processed dataset."""
    banner("Dataset Summary")
    for no, entry in enumerate(entries, start=1):
        click.echo(f"Dataset Path: {entry.dataset.path}\n")
        _table([summary_row(no, entry)], list(SUMMARY_WIDTHS), list(SUMMARY_WIDTHS.values()))
        click.echo()
    click.secho("Summary table complete.\n", fg="green")


def display_assignments(mapping: Dict[str, Assignment]) -> None:
    """Print the persisted project map."""
    if not mapping:
        click.echo("[INFO] No datasets assigned yet.")
        return
    rows = [
        [truncate_text(path, 60), truncate_text(a.project, 15), truncate_text(a.subproject, 15)]
        for path, a in sorted(mapping.items())
    ]
    _table(rows, ["Dataset Path", "Project", "Subproject"], [60, 15, 15])


# -----------------------------------------------------------------------------#
# Operations                                                                   #
# -----------------------------------------------------------------------------#
def display_operation_table(table: Sequence[OperationEntry]) -> None:
    click.secho("\nAvailable Functions:\n", fg="cyan", bold=True)
    if not table:
        click.echo("[INFO] No operations available.")
        return
    rows = [
        [str(e.index), truncate_text(e.source, 40), truncate_text(e.operation, 40)]
        for e in table
    ]
    _table(rows, ["No.", "Source File", "Function Name"], [5, 40, 40])


def display_plan(plan: Sequence[PlannedOperation]) -> None:
    click.secho(
        f"\nYou selected {len(plan)} function(s) in this order:\n", fg="green"
    )
    for order, step in enumerate(plan, start=1):
        click.echo(f"  {order:2d}. {step.operation:<40} ({step.source})")
    click.echo()
