import json
from pathlib import Path

import pytest

import fmrimatic.assignments as assignments
from fmrimatic.assignments import NEW_PROJECT, NEW_SUBPROJECT, AssignmentStore, resolve_assignment
from fmrimatic.errors import AssignmentStoreError
from fmrimatic.models import Assignment


@pytest.fixture
def store(tmp_path):
    return AssignmentStore.for_root(tmp_path)


def test_absent_file_loads_empty(store):
    assert store.load() == {}
    assert store.get(Path("/x")) is None


def test_ensure_exists_writes_empty_object(store):
    store.ensure_exists()
    assert json.loads(store.path.read_text()) == {}


def test_set_then_get(store):
    store.set(Path("/data/a"), "A", "B")
    assert store.get(Path("/data/a")) == Assignment("A", "B")


def test_last_write_wins_single_entry(store):
    store.set(Path("/data/a"), "A", "B")
    store.set(Path("/data/a"), "C", "D")
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data == {"/data/a": {"project": "C", "subproject": "D"}}


def test_set_preserves_external_entries(store):
    store.path.write_text(json.dumps({"/data/x": {"project": "P", "subproject": "S"}}))
    store.set(Path("/data/y"), "Q", "")
    assert set(store.load()) == {"/data/x", "/data/y"}
    assert store.get(Path("/data/y")).subproject == ""


def test_file_is_indented_utf8(store):
    store.set(Path("/data/ä"), "Projekt", "Müller")
    text = store.path.read_text(encoding="utf-8")
    assert '\n  "/data/ä": {' in text
    assert "Müller" in text


def test_lists(store):
    store.set(Path("/a"), "P1", "S1")
    store.set(Path("/b"), "P1", "S2")
    store.set(Path("/c"), "P2", "S1")
    assert store.list_projects() == ["P1", "P2"]
    assert store.list_subprojects("P1") == ["S1", "S2"]
    assert store.list_subprojects("missing") == []


def test_corrupt_file_is_an_error(store):
    store.path.write_text("{not json")
    with pytest.raises(AssignmentStoreError):
        store.load()
    store.path.write_text("[1, 2]")
    with pytest.raises(AssignmentStoreError):
        store.get(Path("/a"))


def _script(monkeypatch, choices=(), inputs=()):
    """Replace the prompt helpers with scripted answers."""
    choice_iter = iter(choices)
    input_iter = iter(inputs)
    menus = []

    def fake_choice(message, options, default=0):
        menus.append(list(options))
        return next(choice_iter)

    monkeypatch.setattr(assignments, "prompt_choice", fake_choice)
    monkeypatch.setattr(assignments, "prompt_input", lambda *a, **k: next(input_iter))
    return menus


def test_existing_assignment_skips_prompts(monkeypatch, store):
    store.set(Path("/a"), "P", "S")
    menus = _script(monkeypatch)
    assert resolve_assignment(store, Path("/a")) == Assignment("P", "S")
    assert menus == []


def test_free_text_when_store_empty(monkeypatch, store):
    _script(monkeypatch, inputs=["ProjA", "Sub1"])
    result = resolve_assignment(store, Path("/a"))
    assert result == Assignment("ProjA", "Sub1")
    assert store.get(Path("/a")) == result


def test_pick_existing_project_and_new_subproject(monkeypatch, store):
    store.set(Path("/a"), "P1", "S1")
    store.set(Path("/b"), "P2", "S9")
    menus = _script(monkeypatch, choices=[1, 1], inputs=["S-new"])
    result = resolve_assignment(store, Path("/c"))
    assert menus == [["P1", "P2", NEW_PROJECT], ["S9", NEW_SUBPROJECT]]
    assert result == Assignment("P2", "S-new")


def test_new_project_has_no_subproject_menu(monkeypatch, store):
    store.set(Path("/a"), "P1", "S1")
    menus = _script(monkeypatch, choices=[1], inputs=["Fresh", "First"])
    assert resolve_assignment(store, Path("/c")) == Assignment("Fresh", "First")
    assert menus == [["P1", NEW_PROJECT]]
