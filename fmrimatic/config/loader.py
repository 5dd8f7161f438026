"""
YAML configuration loader.

This helper locates, reads, merges, and validates the workflow configuration
before returning a :class:`fmrimatic.config.schema.ConfigSchema` instance.

Search precedence (first match wins)
1. An explicit path argument (``--config`` on the CLI).
2. ``<root>/.fmrimatic.yaml`` – dataset-root override.
3. The packaged default shipped inside the wheel.

Overrides do not need to be complete: each top-level section is merged over
the packaged default, so a file containing only ``sources:`` is valid.
"""

from __future__ import annotations

import logging
from importlib.resources import files
from pathlib import Path
from typing import Optional

import yaml

from .schema import ConfigSchema

log = logging.getLogger(__name__)

LOCAL_CONFIG_NAME = ".fmrimatic.yaml"

_DEFAULT_CONFIG = files("fmrimatic.resources") / "default_config.yaml"


# --------------------------------------------------------------------------- #
# Helper functions                                                            #
# --------------------------------------------------------------------------- #
def _load_yaml_text(text: str) -> dict:
    """Parse *text* and return a mapping (empty documents become ``{}``)."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise RuntimeError("Invalid configuration – top level must be a mapping")
    return data


def _merge(base: dict, override: dict) -> dict:
    """Return *base* updated with *override*, merging nested mappings.

    Lists are replaced wholesale so that ``sources:`` in an override file
    fully defines the collaborator set.
    """
    out = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def _resolve_override(explicit: Optional[Path], root: Optional[Path]) -> Optional[Path]:
    """Return the override YAML according to the documented precedence.

    Raises:
        FileNotFoundError: When *explicit* is given but does not exist.
    """
    if explicit is not None:
        if not explicit.is_file():
            raise FileNotFoundError(f"Configuration file not found at {explicit}")
        return explicit
    if root is not None:
        local = root / LOCAL_CONFIG_NAME
        if local.is_file():
            return local
    return None


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def load_config(
    config_path: Optional[str | Path] = None,
    *,
    root: Optional[str | Path] = None,
) -> ConfigSchema:
    """Return a fully validated :class:`ConfigSchema`.

    Args:
        config_path: Explicit YAML path. ``None`` triggers the search sequence
            described in the module doc-string.
        root: Data root that may carry a ``.fmrimatic.yaml`` override.

    Returns:
        A :class:`ConfigSchema` object ready for downstream use.

    Raises:
        FileNotFoundError: When *config_path* does not exist.
        RuntimeError: When the merged YAML fails Pydantic validation.
    """
    explicit = Path(config_path).expanduser().resolve() if config_path else None
    root_path = Path(root).expanduser().resolve() if root else None

    merged = _load_yaml_text(_DEFAULT_CONFIG.read_text(encoding="utf-8"))

    override = _resolve_override(explicit, root_path)
    if override is not None:
        log.debug("Merging configuration override %s", override)
        merged = _merge(merged, _load_yaml_text(override.read_text(encoding="utf-8")))

    try:
        return ConfigSchema(**merged)
    except Exception as exc:  # pydantic.ValidationError or bad YAML types
        raise RuntimeError(f"Invalid configuration – {exc}") from exc
