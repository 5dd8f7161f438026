from pathlib import Path

from fmrimatic.models import Assignment, Dataset, PairingMode, RunSelection, SummaryEntry
from fmrimatic.utils.display import SUMMARY_WIDTHS, display_summary, summary_row


def _entry():
    ds = Dataset(
        path=Path("/raw/20240115_103000_a_really_long_study_name_here"),
        subject_id="S01",
        study_name="T",
        run_count=3,
    )
    runs = RunSelection(PairingMode.MANY_FUNC_ONE_STRUCT, "5 6 7 8 9 10", "3")
    return SummaryEntry(dataset=ds, assignment=Assignment("ProjA", "Sub1"), runs=runs)


def test_summary_row_truncates_to_column_widths():
    row = summary_row(1, _entry())
    assert row[0] == "1"
    assert row[1].endswith("...") and len(row[1]) == SUMMARY_WIDTHS["Dataset Name"]
    assert row[3:5] == ["ProjA", "Sub1"]
    assert row[5] == "5 6 7 8..."
    assert row[6] == "3"


def test_display_summary_prints_path(capsys):
    display_summary([_entry()])
    out = capsys.readouterr().out
    assert "Dataset Summary" in out
    assert "Dataset Path: /raw/20240115_103000_a_really_long_study_name_here" in out
    assert "Sub1" in out
