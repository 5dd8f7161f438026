"""
Interactive session controller.

:class:`Session` owns every piece of state the workflow accumulates (the
catalog, the summary list, loaded collaborators, the materialization report
and the operation plan) and walks through the steps in order::

    scan → select datasets → per dataset: run table, pairing, assignment
         → summary → materialize → operation table → plan → execute

Each step is a method so that tests and alternative front-ends can drive the
flow piecemeal.  Fatal errors propagate to the caller; ``q`` at any
selection prompt raises :class:`~fmrimatic.errors.SelectionAborted`.
Assignments and directories created before an abort are kept.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

import click

from fmrimatic.assignments import AssignmentStore, resolve_assignment
from fmrimatic.catalog import DatasetCatalog
from fmrimatic.collaborators.loader import CollaboratorRegistry, load_sources
from fmrimatic.config.schema import ConfigSchema
from fmrimatic.discovery import scan_datasets
from fmrimatic.errors import UnsupportedPairingMode
from fmrimatic.materialize import HierarchyMaterializer, MaterializeReport
from fmrimatic.metadata import list_run_info
from fmrimatic.models import Dataset, OperationEntry, PlannedOperation, SummaryEntry
from fmrimatic.operations import (
    StepResult,
    build_function_table,
    execute_plan,
    plan_targets,
    select_operations,
)
from fmrimatic.pairing import pair_runs
from fmrimatic.selection import SelectionMode, parse_selection
from fmrimatic.utils import display
from fmrimatic.utils.input_helpers import prompt_input, prompt_yes_no
from fmrimatic.utils.paths import expand_path

log = logging.getLogger(__name__)

__all__ = ["Session"]


class Session:
    """State and steps of one interactive run against *root*.

    Args:
        root: Existing root location.
        cfg: Validated configuration.
        loader: Builds the collaborator registry; tests inject fakes.
    """

    def __init__(
        self,
        root: Path,
        cfg: ConfigSchema,
        *,
        loader: Callable[..., CollaboratorRegistry] = load_sources,
    ) -> None:
        self.root = Path(root)
        self.cfg = cfg
        self._loader = loader
        self.store = AssignmentStore.for_root(self.root, cfg.layout.map_filename)
        self.catalog: Optional[DatasetCatalog] = None
        self.summary: List[SummaryEntry] = []
        self.registry: Optional[CollaboratorRegistry] = None
        self.report: Optional[MaterializeReport] = None
        self.table: List[OperationEntry] = []
        self.plan: List[PlannedOperation] = []

    # ------------------------------------------------------------------ #
    # Discovery                                                          #
    # ------------------------------------------------------------------ #
    def scan(self) -> DatasetCatalog:
        """Scan the root; a re-scan appends new datasets without renumbering.

        Raises:
            InvalidRoot: The root vanished.
            NoDatasetsFound: Nothing to display.
        """
        click.secho(
            f"=== Searching for valid datasets under {self.root} ===", fg="cyan", bold=True
        )
        datasets = scan_datasets(self.root, self.cfg.scan, self.cfg.metadata)
        if self.catalog is None:
            self.catalog = DatasetCatalog.build(datasets)
        else:
            self.catalog.extend(datasets)
        return self.catalog

    def select_datasets(self, text: Optional[str] = None) -> List[Dataset]:
        """Prompt for (or parse) dataset indices and return the datasets.

        Raises:
            SelectionAborted: ``q`` was entered.
            NoValidSelection: No index in ``1..N`` was given.
        """
        if self.catalog is None:
            self.scan()
        if text is None:
            text = prompt_input(
                "Enter dataset numbers to process (e.g. 1,3,5-7 or q to quit)", default=""
            )
        indices = parse_selection(text, SelectionMode.SET, upper=len(self.catalog))
        return self.catalog.resolve(indices)

    # ------------------------------------------------------------------ #
    # Per-dataset flow                                                   #
    # ------------------------------------------------------------------ #
    def process_dataset(self, dataset: Dataset) -> SummaryEntry:
        """Show runs, pair them and resolve the assignment of *dataset*.

        Choosing the unsupported many→many pairing restarts this dataset's
        flow from the run table.
        """
        idx = self.catalog.index_of(dataset.path) if self.catalog else None
        while True:
            click.secho(
                f"\n=== Processing dataset [{idx}]: {dataset.name} ===", fg="cyan", bold=True
            )
            display.display_run_info(
                dataset.subject_id, list_run_info(dataset.path, self.cfg.metadata)
            )
            try:
                runs = pair_runs()
            except UnsupportedPairingMode as exc:
                click.secho(f"{exc}\n", fg="red")
                continue
            break

        assignment = resolve_assignment(self.store, dataset.path)
        entry = SummaryEntry(dataset=dataset, assignment=assignment, runs=runs)
        self.summary.append(entry)
        return entry

    # ------------------------------------------------------------------ #
    # Collaborators / materialization                                    #
    # ------------------------------------------------------------------ #
    def load_collaborators(self) -> CollaboratorRegistry:
        if self.registry is None:
            cache_dir = expand_path(self.cfg.cache_dir)
            self.registry = self._loader(self.cfg.sources, cache_dir, base=self.root)
        return self.registry

    def materialize(self) -> MaterializeReport:
        materializer = HierarchyMaterializer(
            self.root,
            self.cfg.layout,
            self.cfg.metadata,
            self.cfg.conversion,
            self.load_collaborators(),
        )
        self.report = materializer.run(self.summary)
        return self.report

    # ------------------------------------------------------------------ #
    # Operations                                                         #
    # ------------------------------------------------------------------ #
    def choose_operations(self, text: Optional[str] = None) -> List[PlannedOperation]:
        """Build the operation table and turn the operator's pick into a plan.

        Returns an empty plan when no collaborator exposes any operation.
        """
        display.banner("Starting Data Pre Processing")
        click.secho("Fetching available functions...\n", fg="cyan", bold=True)
        self.table = build_function_table(self.load_collaborators())
        display.display_operation_table(self.table)
        if not self.table:
            self.plan = []
            return self.plan

        if text is None:
            click.secho("\nSelect which functions to execute (order preserved)", fg="cyan")
            text = prompt_input("Enter function numbers (e.g. 5,2,4-6 or q to quit)", default="")
        self.plan = select_operations(self.table, text)
        display.display_plan(self.plan)
        return self.plan

    def execute(self, *, confirm: bool = True) -> List[StepResult]:
        """Run the plan in every functional run folder after confirmation."""
        if not self.plan or self.report is None:
            return []
        targets = plan_targets(self.root, self.report, self.summary)
        if not targets:
            click.echo("[INFO] No functional run folders to process.")
            return []
        if confirm and not prompt_yes_no(
            f"Execute {len(self.plan)} step(s) in {len(targets)} functional run folder(s) now?"
        ):
            click.echo("Plan not executed.")
            return []
        return execute_plan(self.plan, self.registry, targets)

    # ------------------------------------------------------------------ #
    # Whole flow                                                         #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        """Execute the complete interactive workflow."""
        click.secho(f"Using root location: {self.root}", fg="cyan", bold=True)
        self.store.ensure_exists()
        self.load_collaborators()

        display.display_catalog(self.scan())
        for dataset in self.select_datasets():
            self.process_dataset(dataset)

        display.display_summary(self.summary)
        self.materialize()
        self.choose_operations()
        self.execute()
        log.info("Session finished for %s (%d dataset(s))", self.root, len(self.summary))
