import os
from pathlib import Path

import pytest

from fmrimatic.errors import InvalidRoot
from fmrimatic.utils.paths import expand_path, resolve_root


def test_expand_path_home_and_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("FMRI_DATA", str(tmp_path / "data"))
    assert expand_path("~/x") == tmp_path / "x"
    assert expand_path("$FMRI_DATA/raw") == tmp_path / "data" / "raw"


def test_expand_path_relative_is_absolute(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert expand_path("sub") == Path(os.getcwd()) / "sub"
    assert expand_path("").is_absolute()


def test_resolve_root_missing(tmp_path):
    with pytest.raises(InvalidRoot, match="does not exist"):
        resolve_root(str(tmp_path / "nope"))


def test_resolve_root_rejects_file(tmp_path):
    f = tmp_path / "file.txt"
    f.write_text("x")
    with pytest.raises(InvalidRoot):
        resolve_root(str(f))
