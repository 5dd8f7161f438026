from pathlib import Path

import pytest

from fmrimatic.catalog import DatasetCatalog, month_label
from fmrimatic.errors import NoDatasetsFound
from fmrimatic.models import Dataset


def _ds(name: str, parent: str = "/data") -> Dataset:
    return Dataset(path=Path(parent) / name, subject_id="S", study_name="T", run_count=1)


def test_order_groups_and_indices():
    scanned = [
        _ds("20231105_a"),
        _ds("20240115_b"),
        _ds("notes"),
        _ds("20240102_c"),
        _ds("20240115_d"),
        _ds("20240301_e"),
    ]
    cat = DatasetCatalog.build(scanned)

    names = [d.name for _, d in cat]
    # date descending, ties in discovery order, undated dropped
    assert names == ["20240301_e", "20240115_b", "20240115_d", "20240102_c", "20231105_a"]
    assert [i for i, _ in cat] == [1, 2, 3, 4, 5]

    groups = cat.groups()
    assert [g.label for g in groups] == ["March 2024", "January 2024", "November 2023"]
    assert [len(g.datasets) for g in groups] == [1, 3, 1]
    flat = [d for g in groups for d in g.datasets]
    assert flat == [d for _, d in cat]


def test_reverse_lookup():
    cat = DatasetCatalog.build([_ds("20240101_a"), _ds("20240202_b")])
    assert cat.dataset(1).name == "20240202_b"
    assert cat.index_of(Path("/data/20240101_a")) == 2
    assert [d.name for d in cat.resolve([2, 1])] == ["20240101_a", "20240202_b"]
    with pytest.raises(IndexError):
        cat.dataset(3)


def test_empty_or_undated_only_is_fatal():
    with pytest.raises(NoDatasetsFound):
        DatasetCatalog.build([])
    with pytest.raises(NoDatasetsFound):
        DatasetCatalog.build([_ds("scratch"), _ds("2024_01_15")])


def test_extend_keeps_existing_indices():
    cat = DatasetCatalog.build([_ds("20240101_a"), _ds("20230101_b")])
    before = {d.path: i for i, d in cat}
    added = cat.extend([_ds("20250101_new"), _ds("20240101_a"), _ds("20230101_b")])
    assert added == [3]
    assert {d.path: i for i, d in cat if d.path in before} == before
    assert cat.dataset(3).name == "20250101_new"


def test_month_label_fallback():
    assert month_label(2024, 2) == "February 2024"
    assert month_label(2024, 13) == "Unknown 2024"
    assert month_label(2024, 0) == "Unknown 2024"
