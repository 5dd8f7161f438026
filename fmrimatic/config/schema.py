"""
Pydantic models that mirror the YAML configuration consumed by *fmrimatic*.

Every constant of the workflow (marker files, metadata line numbers, output
layout, collaborator scripts) lives in the configuration so that the rest of
the codebase can work with validated objects instead of literals scattered
through the modules.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

# --------------------------------------------------------------------------- #
# 1.  Leaf sections                                                           #
# --------------------------------------------------------------------------- #


class ScanSettings(BaseModel):
    """Dataset signature and traversal bounds.

    A directory whose children include every *marker_files* entry and every
    *marker_dirs* entry is an acquisition (run) directory; its parent is the
    dataset.  Depths are measured from the root, like ``find -mindepth``.
    """

    min_depth: int = Field(2, ge=0)
    max_depth: int = Field(6, ge=0)
    marker_files: List[str] = Field(
        default_factory=lambda: ["acqp", "method", "visu_pars", "pulseprogram"]
    )
    marker_dirs: List[str] = Field(default_factory=lambda: ["pdata"])

    @model_validator(mode="after")
    def _depths_ordered(self):
        """Reject an empty depth window."""
        if self.min_depth > self.max_depth:
            raise ValueError("scan.min_depth must not exceed scan.max_depth")
        return self


class MetadataSettings(BaseModel):
    """Where scanner metadata lives and how to read it."""

    subject_file: str = "subject"
    subject_id_line: int = Field(14, ge=1)
    study_name_line: int = Field(25, ge=1)
    acqp_file: str = "acqp"
    method_file: str = "method"
    sequence_marker: str = "##$ACQ_protocol_name="
    averages_marker: str = "##$PVM_NAverages="
    repetitions_marker: str = "##$PVM_NRepetitions="
    not_found: str = "[Not found]"
    unknown_sequence: str = "UnknownSequence"


class LayoutSettings(BaseModel):
    """Output hierarchy and persisted map locations (relative to the root)."""

    map_filename: str = ".fmri_project_map.json"
    analysed_dir: str = "AnalysedData"
    label_max_length: int = Field(50, ge=1)


class ConversionSettings(BaseModel):
    """Raw-to-NIfTI conversion contract.

    Attributes:
        source: Name of the collaborator source exposing *operation*.
        operation: Operation invoked as ``operation <dataset> <run> <method>``.
        functional_artifact: File whose presence marks a converted run.
        structural_artifact: Canonical anatomical file for structural runs.
    """

    source: str = "data_conversion.sh"
    operation: str = "BRUKER_to_NIFTI"
    functional_artifact: str = "G1_cp.nii.gz"
    structural_artifact: str = "anatomy.nii.gz"


class SourceSpec(BaseModel):
    """One collaborator script.

    Exactly one of *path* (local file) or *repo* (GitHub ``user/repo``) must
    be given.  For remote sources the file inside the repository defaults to
    *name*.
    """

    name: str
    path: Optional[str] = None
    repo: Optional[str] = None
    file: Optional[str] = None
    branch: str = "main"

    @model_validator(mode="after")
    def _one_location(self):
        """Ensure the source points at exactly one location."""
        if bool(self.path) == bool(self.repo):
            raise ValueError(
                f"source '{self.name}' needs exactly one of 'path' or 'repo'"
            )
        return self

    @property
    def remote_file(self) -> str:
        """Path of the script inside the remote repository."""
        return self.file or self.name


# --------------------------------------------------------------------------- #
# 2.  Top-level model                                                         #
# --------------------------------------------------------------------------- #


class ConfigSchema(BaseModel):
    """Root configuration object consumed by the rest of *fmrimatic*."""

    version: str
    default_root: str = "."
    cache_dir: str = "~/.cache/fmrimatic"
    scan: ScanSettings = Field(default_factory=ScanSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    conversion: ConversionSettings = Field(default_factory=ConversionSettings)
    sources: List[SourceSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_sources(self):
        """Source names double as lookup keys and must not repeat."""
        names = [s.name for s in self.sources]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError("Duplicate source name(s): " + ", ".join(dupes))
        return self
