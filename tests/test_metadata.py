from fmrimatic.config.schema import MetadataSettings
from fmrimatic.metadata import (
    list_run_info,
    numeric_run_dirs,
    read_sequence_name,
    read_subject_info,
)
from fmrimatic.models import RunInfo

from conftest import make_dataset

SETTINGS = MetadataSettings()


def test_subject_info_from_fixed_lines(tmp_path):
    ds = make_dataset(tmp_path, "20240115_103000_study", subject_id="Rat_07", study="Pilot")
    assert read_subject_info(ds, SETTINGS) == ("Rat_07", "Pilot")


def test_subject_info_missing_file(tmp_path):
    ds = make_dataset(tmp_path, "20240115_x", subject_id=None)
    assert read_subject_info(ds, SETTINGS) == ("[Not found]", "[Not found]")


def test_subject_info_short_file(tmp_path):
    ds = make_dataset(tmp_path, "20240115_x", subject_id=None)
    (ds / "subject").write_text("\n".join(["x"] * 20))
    subject_id, study = read_subject_info(ds, SETTINGS)
    assert subject_id == "x"
    assert study == "[Not found]"


def test_sequence_name_and_run_info(tmp_path):
    ds = make_dataset(tmp_path, "20240115_x")
    assert read_sequence_name(ds / "1", SETTINGS) == "EPI_func"
    infos = list_run_info(ds, SETTINGS)
    assert [i.run for i in infos] == ["1", "2"]
    assert infos[1] == RunInfo(run="2", sequence="T2_RARE", averages="4", repetitions="1")


def test_sequence_name_unreadable(tmp_path):
    (tmp_path / "1").mkdir()
    assert read_sequence_name(tmp_path / "1", SETTINGS) is None


def test_numeric_run_dirs_sorted_numerically(tmp_path):
    for name in ("10", "2", "1", "pdata", "x1"):
        (tmp_path / name).mkdir()
    assert [p.name for p in numeric_run_dirs(tmp_path)] == ["1", "2", "10"]


def test_highlight_rule():
    assert RunInfo("1", "T2_RARE", "4", "1").highlighted
    assert not RunInfo("1", "FLASH_loc", "4", "1").highlighted
    assert not RunInfo("1", "epi_bold", "2", "1").highlighted
    assert RunInfo("1", "EPI_bold", "1", "200").highlighted
    assert not RunInfo("1", "T2_RARE", "1", "1").highlighted
    assert not RunInfo("1", None, None, None).highlighted
