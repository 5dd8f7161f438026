"""Shared fixtures: synthetic ParaVision-style dataset trees and config."""

from pathlib import Path
from typing import Iterable, Tuple

import pytest

from fmrimatic.config import load_config

DEFAULT_RUNS = (
    ("1", "EPI_func", 1, 200),
    ("2", "T2_RARE", 4, 1),
)


def write_run(dataset: Path, run: str, sequence: str, averages: int, repetitions: int) -> Path:
    """Create one run folder carrying the full marker signature."""
    run_dir = dataset / run
    (run_dir / "pdata").mkdir(parents=True, exist_ok=True)
    (run_dir / "acqp").write_text(
        "##TITLE=Parameter List\n"
        "##$ACQ_protocol_name=( 64 )\n"
        f"<{sequence}>\n"
        "##$ACQ_dim=2\n"
    )
    (run_dir / "method").write_text(
        "##$Method=<User:fmri>\n"
        f"##$PVM_NAverages={averages}\n"
        f"##$PVM_NRepetitions={repetitions}\n"
    )
    (run_dir / "visu_pars").write_text("##$VisuVersion=3\n")
    (run_dir / "pulseprogram").write_text("; pulse program\n")
    return run_dir


def write_subject(dataset: Path, subject_id: str, study: str) -> None:
    """Write a subject file with the id on line 14 and the study on line 25."""
    lines = [f"##$LINE{i}=x" for i in range(1, 31)]
    lines[13] = f"<{subject_id}>"
    lines[24] = f"<{study}>"
    (dataset / "subject").write_text("\n".join(lines) + "\n")


def make_dataset(
    parent: Path,
    name: str,
    runs: Iterable[Tuple[str, str, int, int]] = DEFAULT_RUNS,
    subject_id: str = "S01",
    study: str = "StudyA",
) -> Path:
    """Create a dataset directory under *parent* and return its path."""
    ds = parent / name
    ds.mkdir(parents=True, exist_ok=True)
    for run, seq, na, nr in runs:
        write_run(ds, run, seq, na, nr)
    if subject_id is not None:
        write_subject(ds, subject_id, study)
    return ds


@pytest.fixture
def dataset_factory():
    return make_dataset


@pytest.fixture
def cfg(tmp_path):
    """Default configuration without remote collaborator sources."""
    override = tmp_path / "offline.yaml"
    override.write_text("sources: []\n")
    return load_config(override)
