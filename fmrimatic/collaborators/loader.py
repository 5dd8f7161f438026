"""
Fetching, checking and registering collaborator scripts.

Each configured source is either a local ``path`` or a file inside a GitHub
repository (``repo`` + ``branch``).  Remote files are downloaded from
``raw.githubusercontent.com`` with :pymod:`requests` into a cache directory
so the session can run them later.  Every script must pass ``bash -n``
before it is registered.  A source that cannot be fetched or fails the
syntax check is reported and skipped; loading never aborts the session.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

import click
import requests

from fmrimatic.collaborators.base import Collaborator
from fmrimatic.collaborators.shell import ShellScriptCollaborator, syntax_ok
from fmrimatic.config.schema import SourceSpec
from fmrimatic.errors import CollaboratorError
from fmrimatic.utils.paths import expand_path

log = logging.getLogger(__name__)

__all__ = ["CollaboratorRegistry", "fetch_remote", "resolve_source", "load_sources", "RAW_URL"]

RAW_URL = "https://raw.githubusercontent.com/{repo}/{branch}/{file}"
DEFAULT_TIMEOUT = 60.0


class CollaboratorRegistry:
    """Loaded collaborators in configured order, addressable by name."""

    def __init__(self) -> None:
        self._items: Dict[str, Collaborator] = {}
        self._toolbox: List[Path] = []

    def add(self, collaborator: Collaborator) -> Collaborator:
        """Register *collaborator*; a second entry with the same name replaces it."""
        self._items[collaborator.name] = collaborator
        return collaborator

    def add_script(self, name: str, script: Path) -> ShellScriptCollaborator:
        """Register a shell script that shares the registry-wide toolbox."""
        self._toolbox.append(Path(script))
        return self.add(ShellScriptCollaborator(name, script, toolbox=self._toolbox))

    def get(self, name: str) -> Optional[Collaborator]:
        return self._items.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._items)

    def __iter__(self) -> Iterator[Collaborator]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)


def fetch_remote(
    spec: SourceSpec,
    cache_dir: Path,
    *,
    timeout: Optional[float] = DEFAULT_TIMEOUT,
) -> Path:
    """Download the raw file of *spec* into *cache_dir* and return its path.

    Raises:
        CollaboratorError: The HTTP request failed or the cache path would
            fall outside *cache_dir*.
    """
    url = RAW_URL.format(repo=spec.repo, branch=spec.branch, file=spec.remote_file)
    dst = Path(
        os.path.normpath(
            cache_dir / spec.repo.replace("/", "__") / spec.branch / spec.remote_file.lstrip("/")
        )
    )
    if not dst.is_relative_to(os.path.normpath(cache_dir)):
        raise CollaboratorError(f"Refusing to cache {spec.remote_file!r} outside {cache_dir}")
    log.debug("GET %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.RequestException as exc:
        raise CollaboratorError(f"Failed to fetch: {url} ({exc})") from exc

    dst.parent.mkdir(parents=True, exist_ok=True)
    dst.write_text(resp.text, encoding="utf-8")
    return dst


def resolve_source(spec: SourceSpec, cache_dir: Path, *, base: Optional[Path] = None) -> Path:
    """Return a local file for *spec*, downloading remote sources.

    Relative local paths are taken relative to *base* when given.

    Raises:
        CollaboratorError: Missing local file or failed download.
    """
    if spec.path:
        local = Path(spec.path)
        if not local.is_absolute() and base is not None:
            local = base / local
        local = expand_path(str(local))
        if not local.is_file():
            raise CollaboratorError(f"Script not found: {local}")
        return local
    return fetch_remote(spec, cache_dir)


def load_sources(
    specs: Sequence[SourceSpec],
    cache_dir: Path,
    *,
    base: Optional[Path] = None,
    resolver: Callable[..., Path] = resolve_source,
) -> CollaboratorRegistry:
    """Resolve, syntax-check and register every source in *specs*.

    Args:
        specs: Sources in configured order.
        cache_dir: Download target for remote sources.
        base: Directory that anchors relative local paths.
        resolver: Injection point for tests; defaults to :func:`resolve_source`.

    Returns:
        Registry holding every source that loaded.
    """
    registry = CollaboratorRegistry()
    for spec in specs:
        click.secho(f"Fetching: {spec.name}", fg="cyan", bold=True)
        try:
            script = resolver(spec, cache_dir, base=base)
            if not syntax_ok(script):
                raise CollaboratorError(f"Syntax check failed for: {spec.name}")
        except CollaboratorError as exc:
            click.secho(str(exc), fg="red")
            log.warning("Skipping source %s: %s", spec.name, exc)
            continue
        registry.add_script(spec.name, script)
        click.secho(f"Loaded functions from: {spec.name}", fg="green")
    log.info("Loaded %d of %d collaborator source(s)", len(registry), len(specs))
    return registry
