"""
Configuration package façade.

Exports the small, stable surface that external callers rely on:

* :func:`load_config` – Parse, merge, and validate the workflow YAML into a
  single :class:`ConfigSchema` instance.
* :class:`ConfigSchema` – Pydantic model representing the validated
  configuration.
"""

from .loader import load_config  # noqa: F401  (import re-exposed on purpose)
from .schema import ConfigSchema  # noqa: F401

__all__: list[str] = ["load_config", "ConfigSchema"]
