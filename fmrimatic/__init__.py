"""
Public interface for *fmrimatic*.

The package exposes a few convenience re-exports so that scripts can drive
the catalog and layout helpers without going through the CLI::

    from fmrimatic import load_config, scan_datasets, DatasetCatalog

Additional high-level objects should be re-exported here to provide a
stable import path for external code.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("fmrimatic")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .config import load_config  # noqa: E402 – deliberate late import
from .catalog import DatasetCatalog  # noqa: E402
from .discovery import scan_datasets  # noqa: E402

__all__: list[str] = ["DatasetCatalog", "load_config", "scan_datasets", "__version__"]
