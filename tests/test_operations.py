from pathlib import Path

import pytest

from fmrimatic.collaborators.base import Collaborator
from fmrimatic.collaborators.loader import CollaboratorRegistry
from fmrimatic.errors import CollaboratorError, NoValidSelection, SelectionAborted
from fmrimatic.materialize import MaterializeReport, RunResult
from fmrimatic.models import (
    Assignment,
    Dataset,
    PairingMode,
    PlannedOperation,
    RunSelection,
    SummaryEntry,
)
from fmrimatic.operations import (
    build_function_table,
    execute_plan,
    plan_targets,
    select_operations,
)


class Fake(Collaborator):
    def __init__(self, name, ops, rc=0, fail=False):
        self.name = name
        self.ops = ops
        self.rc = rc
        self.fail = fail
        self.calls = []

    def list_operations(self):
        if self.fail:
            raise CollaboratorError("unreadable")
        return list(self.ops)

    def invoke(self, operation, args, *, cwd, env=None):
        self.calls.append((operation, Path(cwd), dict(env or {})))
        return self.rc


def _registry(*collabs):
    reg = CollaboratorRegistry()
    for c in collabs:
        reg.add(c)
    return reg


def test_table_keeps_source_order_and_skips_empty():
    reg = _registry(
        Fake("toolbox_name.sh", []),
        Fake("data_conversion.sh", ["BRUKER_to_NIFTI"]),
        Fake("broken.sh", ["x"], fail=True),
        Fake("motion_correction.sh", ["mc_afni", "mc_fsl"]),
    )
    table = build_function_table(reg)
    assert [(e.index, e.source, e.operation) for e in table] == [
        (1, "data_conversion.sh", "BRUKER_to_NIFTI"),
        (2, "motion_correction.sh", "mc_afni"),
        (3, "motion_correction.sh", "mc_fsl"),
    ]


def test_select_operations_ordered_with_duplicates():
    table = build_function_table(_registry(Fake("a.sh", ["a1", "a2"]), Fake("b.sh", ["b1"])))
    plan = select_operations(table, "3,1-2,3,9")
    assert plan == [
        PlannedOperation("b1", "b.sh"),
        PlannedOperation("a1", "a.sh"),
        PlannedOperation("a2", "a.sh"),
        PlannedOperation("b1", "b.sh"),
    ]
    assert [p.operation for p in select_operations(table, "3-1")] == ["b1", "a2", "a1"]


def test_select_operations_failures():
    table = build_function_table(_registry(Fake("a.sh", ["a1"])))
    with pytest.raises(NoValidSelection):
        select_operations(table, "7")
    with pytest.raises(SelectionAborted):
        select_operations(table, "Q")


def _entry(path):
    ds = Dataset(path=path, subject_id="S01", study_name="T", run_count=2)
    runs = RunSelection(PairingMode.MANY_FUNC_ONE_STRUCT, "1 3", "2")
    return SummaryEntry(dataset=ds, assignment=Assignment("P", "S"), runs=runs)


def test_plan_targets_and_execution(tmp_path):
    ds_path = tmp_path / "raw" / "20240115_a"
    entry = _entry(ds_path)
    f1, f3, s2 = tmp_path / "1EPI", tmp_path / "3EPI", tmp_path / "2RARE"
    report = MaterializeReport(
        runs=[
            RunResult(dataset=ds_path, run="1", role="functional", folder=f1),
            RunResult(dataset=ds_path, run="3", role="functional", folder=f3),
            RunResult(dataset=ds_path, run="4", role="functional", missing=True),
            RunResult(dataset=ds_path, run="2", role="structural", folder=s2),
        ]
    )
    targets = plan_targets(tmp_path, report, [entry])
    assert [t.folder for t in targets] == [f1, f3]
    assert targets[1].env == {
        "root_location": str(tmp_path),
        "datapath": str(ds_path),
        "run_number": "3",
        "str_for_coreg": "2",
    }

    ok = Fake("a.sh", ["step"])
    bad = Fake("b.sh", ["boom"], rc=2)
    plan = [PlannedOperation("boom", "b.sh"), PlannedOperation("step", "a.sh"),
            PlannedOperation("gone", "gone.sh")]
    results = execute_plan(plan, _registry(ok, bad), targets)

    assert [(r.operation, r.folder, r.returncode) for r in results] == [
        ("boom", f1, 2),
        ("boom", f3, 2),
        ("step", f1, 0),
        ("step", f3, 0),
    ]
    assert ok.calls[0][2]["run_number"] == "1"
