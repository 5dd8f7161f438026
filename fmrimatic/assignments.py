"""
Persistent dataset → project/subproject map.

The map is one JSON object stored at ``<root>/.fmri_project_map.json``::

    {
      "/abs/path/20240115_103000_study": {"project": "ProjA", "subproject": "Sub1"}
    }

Every :meth:`AssignmentStore.set` re-reads the whole file, updates a single
key and rewrites the file.  There is no locking; one operator process per
root is assumed, and the last writer wins.

:func:`resolve_assignment` drives the interactive flow for one dataset:
an existing entry is authoritative and skips every prompt, otherwise the
operator picks (or types) a project, then a subproject, and the result is
persisted before the function returns.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import click

from fmrimatic.errors import AssignmentStoreError
from fmrimatic.models import Assignment
from fmrimatic.utils.input_helpers import prompt_choice, prompt_input

log = logging.getLogger(__name__)

__all__ = ["AssignmentStore", "resolve_assignment", "NEW_PROJECT", "NEW_SUBPROJECT"]

NEW_PROJECT = "Other (new project)"
NEW_SUBPROJECT = "Other (new subproject)"


class AssignmentStore:
    """JSON-file backed mapping keyed by absolute dataset path."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @classmethod
    def for_root(cls, root: Path, filename: str = ".fmri_project_map.json") -> "AssignmentStore":
        """Return the store that lives directly under *root*."""
        return cls(Path(root) / filename)

    # ------------------------------------------------------------------ #
    # Raw I/O                                                            #
    # ------------------------------------------------------------------ #
    def ensure_exists(self) -> None:
        """Create the file as ``{}`` when it is absent."""
        if not self.path.exists():
            self._write_raw({})
            log.info("Created empty project map %s", self.path)

    def _read_raw(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise AssignmentStoreError(f"Cannot read project map {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise AssignmentStoreError(
                f"Project map {self.path} must contain a JSON object, got {type(data).__name__}"
            )
        return data

    def _write_raw(self, data: Dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def load(self) -> Dict[str, Assignment]:
        """Return every stored assignment; an absent file yields ``{}``.

        Entries that are not ``{"project": …, "subproject": …}`` objects are
        skipped with a warning.

        Raises:
            AssignmentStoreError: The file exists but is not a JSON object.
        """
        out: Dict[str, Assignment] = {}
        for key, value in self._read_raw().items():
            if not isinstance(value, dict):
                log.warning("Ignoring malformed project map entry for %s", key)
                continue
            out[key] = Assignment(
                project=str(value.get("project", "")),
                subproject=str(value.get("subproject", "")),
            )
        return out

    def get(self, dataset_path: Path) -> Optional[Assignment]:
        """Return the assignment of *dataset_path* or ``None``."""
        return self.load().get(str(dataset_path))

    def list_projects(self) -> List[str]:
        """Return distinct project names, sorted."""
        return sorted({a.project for a in self.load().values()})

    def list_subprojects(self, project: str) -> List[str]:
        """Return distinct subproject names used under *project*, sorted."""
        return sorted({a.subproject for a in self.load().values() if a.project == project})

    def set(self, dataset_path: Path, project: str, subproject: str) -> Assignment:
        """Write through one assignment (read-modify-write of the whole file).

        Project and subproject are free-form; empty strings are accepted.
        """
        data = self._read_raw()
        assignment = Assignment(project=project, subproject=subproject)
        data[str(dataset_path)] = assignment.to_json()
        self._write_raw(data)
        log.info("Saved mapping for %s to %s", dataset_path, self.path)
        return assignment


# -----------------------------------------------------------------------------#
# Interactive flow                                                              #
# -----------------------------------------------------------------------------#
def _choose_or_type(existing: List[str], menu_title: str, new_label: str, noun: str) -> str:
    """Offer *existing* names plus *new_label*; fall back to free text."""
    if existing:
        options = existing + [new_label]
        picked = options[prompt_choice(menu_title, options)]
        if picked != new_label:
            return picked
        return prompt_input(f"Enter New {noun} Name", default="")
    return prompt_input(f"Enter {noun} Name", default="")


def resolve_assignment(store: AssignmentStore, dataset_path: Path) -> Assignment:
    """Return the assignment of *dataset_path*, prompting when none exists.

    An existing entry is displayed and returned unchanged.  A new entry is
    persisted through :meth:`AssignmentStore.set` before returning.
    """
    existing = store.get(dataset_path)
    if existing is not None:
        click.secho("\nDataset already assigned:", fg="green")
        click.echo(f"  Project    : {existing.project}")
        click.echo(f"  Subproject : {existing.subproject}")
        return existing

    click.secho("\nAssign dataset to project and subproject:", fg="yellow")
    project = _choose_or_type(
        store.list_projects(), "Choose a project:", NEW_PROJECT, "Project"
    )
    subproject = _choose_or_type(
        store.list_subprojects(project), "Choose a subproject:", NEW_SUBPROJECT, "Subproject"
    )
    assignment = store.set(dataset_path, project, subproject)
    click.echo(f"Saved mapping to {store.path}")
    return assignment
