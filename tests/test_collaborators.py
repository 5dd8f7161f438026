import shutil
from pathlib import Path

import pytest
import requests

import fmrimatic.collaborators.loader as loader
from fmrimatic.collaborators.loader import CollaboratorRegistry, fetch_remote, load_sources
from fmrimatic.collaborators.shell import ShellScriptCollaborator, list_shell_functions
from fmrimatic.config.schema import SourceSpec
from fmrimatic.errors import CollaboratorError

needs_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")

HELPERS = """\
helper_prefix() {
  echo "pre-$1"
}
"""

CONVERT = """\
#!/bin/bash
BRUKER_to_NIFTI () {
  echo "$1|$2|$3" > args.txt
  helper_prefix "$run_number" > env.txt
  touch G1_cp.nii.gz
}

motion_correction() {
  return 3
}
  indented_fn(){
  :
}
"""


def test_list_shell_functions_sorted_unique():
    text = CONVERT + "\nmotion_correction() {\n:\n}\n# not_a_function() {\n"
    assert list_shell_functions(text) == ["BRUKER_to_NIFTI", "indented_fn", "motion_correction"]


def test_list_operations_reads_file(tmp_path):
    script = tmp_path / "data_conversion.sh"
    script.write_text(CONVERT)
    collab = ShellScriptCollaborator("data_conversion.sh", script)
    assert collab.list_operations() == ["BRUKER_to_NIFTI", "indented_fn", "motion_correction"]
    assert ShellScriptCollaborator("gone", tmp_path / "gone.sh").list_operations() == []


def test_invoke_unknown_operation(tmp_path):
    script = tmp_path / "s.sh"
    script.write_text(CONVERT)
    with pytest.raises(CollaboratorError):
        ShellScriptCollaborator("s.sh", script).invoke("nope", [], cwd=tmp_path)


@needs_bash
def test_invoke_sources_whole_toolbox(tmp_path):
    helpers = tmp_path / "toolbox_name.sh"
    helpers.write_text(HELPERS)
    conv = tmp_path / "data_conversion.sh"
    conv.write_text(CONVERT)

    registry = CollaboratorRegistry()
    registry.add_script("toolbox_name.sh", helpers)
    collab = registry.add_script("data_conversion.sh", conv)

    work = tmp_path / "work dir"
    work.mkdir()
    rc = collab.invoke(
        "BRUKER_to_NIFTI", ["/raw/ds", "5", "/raw/ds/5/method"], cwd=work, env={"run_number": "5"}
    )
    assert rc == 0
    assert (work / "G1_cp.nii.gz").exists()
    assert (work / "args.txt").read_text().strip() == "/raw/ds|5|/raw/ds/5/method"
    assert (work / "env.txt").read_text().strip() == "pre-5"
    assert collab.invoke("motion_correction", [], cwd=work) == 3


def test_registry_order_and_lookup(tmp_path):
    registry = CollaboratorRegistry()
    registry.add_script("b.sh", tmp_path / "b.sh")
    registry.add_script("a.sh", tmp_path / "a.sh")
    assert registry.names == ["b.sh", "a.sh"]
    assert registry.get("a.sh").toolbox == [tmp_path / "b.sh", tmp_path / "a.sh"]
    assert registry.get("missing") is None
    assert len(registry) == 2


class _Resp:
    def __init__(self, text, status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")


def test_fetch_remote_writes_cache(monkeypatch, tmp_path):
    urls = []

    def fake_get(url, timeout=None):
        urls.append(url)
        return _Resp(CONVERT)

    monkeypatch.setattr(loader.requests, "get", fake_get)
    spec = SourceSpec(name="data_conversion.sh", repo="njainmpi/fMRI_analysis_pipeline")
    path = fetch_remote(spec, tmp_path)
    assert urls == [
        "https://raw.githubusercontent.com/njainmpi/fMRI_analysis_pipeline/main/data_conversion.sh"
    ]
    assert path.read_text() == CONVERT
    assert path.is_relative_to(tmp_path)


def test_fetch_remote_http_error(monkeypatch, tmp_path):
    monkeypatch.setattr(loader.requests, "get", lambda url, timeout=None: _Resp("", 404))
    spec = SourceSpec(name="x.sh", repo="o/r")
    with pytest.raises(CollaboratorError, match="Failed to fetch"):
        fetch_remote(spec, tmp_path)


def test_fetch_remote_refuses_cache_path_outside_cache_dir(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(loader.requests, "get", lambda url, timeout=None: calls.append(url))
    cache = tmp_path / "cache"
    spec = SourceSpec(name="x.sh", repo="o/r", file="../../../x.sh")
    with pytest.raises(CollaboratorError, match="outside"):
        fetch_remote(spec, cache)
    assert calls == []
    assert not (tmp_path / "x.sh").exists()


def test_load_sources_skips_failures(monkeypatch, tmp_path):
    good = tmp_path / "good.sh"
    good.write_text(CONVERT)
    bad = tmp_path / "bad.sh"
    bad.write_text("broken() {\n")

    monkeypatch.setattr(loader, "syntax_ok", lambda p: Path(p).name != "bad.sh")
    specs = [
        SourceSpec(name="bad.sh", path="bad.sh"),
        SourceSpec(name="missing.sh", path="missing.sh"),
        SourceSpec(name="good.sh", path="good.sh"),
    ]
    registry = load_sources(specs, tmp_path / "cache", base=tmp_path)
    assert registry.names == ["good.sh"]


def test_source_spec_needs_exactly_one_location():
    with pytest.raises(ValueError):
        SourceSpec(name="x.sh")
    with pytest.raises(ValueError):
        SourceSpec(name="x.sh", path="a", repo="o/r")
    assert SourceSpec(name="x.sh", repo="o/r", file="lib/x.sh").remote_file == "lib/x.sh"
