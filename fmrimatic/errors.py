"""Custom exceptions used across the cataloging and layout workflow.

Fatal errors (:class:`InvalidRoot`, :class:`NoDatasetsFound`,
:class:`NoValidSelection`, :class:`AssignmentStoreError`) abort the whole
session; the CLI turns them into a non-zero exit status.  The remaining
classes describe per-dataset or per-run problems that callers catch at that
granularity and report inline.
"""

from __future__ import annotations


class FmrimaticError(RuntimeError):
    """Base class for every error raised by *fmrimatic*."""

    pass


class InvalidRoot(FmrimaticError):
    """Raised when the root location does not resolve to a directory."""

    pass


class NoDatasetsFound(FmrimaticError):
    """Raised when a scan yields no dataset that can be displayed."""

    pass


class NoValidSelection(FmrimaticError):
    """Raised when operator input parses to an empty selection."""

    pass


class SelectionAborted(FmrimaticError):
    """Raised when the operator enters the ``q`` quit token."""

    pass


class MissingRunDirectory(FmrimaticError):
    """Raised when a selected run number has no directory in the dataset."""

    def __init__(self, dataset: str, run: str) -> None:
        super().__init__(f"Run folder {dataset}/{run} not found.")
        self.dataset = dataset
        self.run = run


class MetadataReadFailure(FmrimaticError):
    """Raised when a scanner metadata file cannot be read."""

    pass


class UnsupportedPairingMode(FmrimaticError):
    """Raised when the operator picks a pairing mode that is not implemented."""

    pass


class ArtifactConversionFailure(FmrimaticError):
    """Raised when the expected artifact is absent after conversion ran."""

    pass


class AssignmentStoreError(FmrimaticError):
    """Raised when the persisted project map cannot be parsed."""

    pass


class CollaboratorError(FmrimaticError):
    """Raised when an external script source cannot be fetched or loaded."""

    pass


class UnsafeOutputPath(FmrimaticError):
    """Raised when an output directory would fall outside ``<root>/AnalysedData``."""

    pass
