"""
Gem manifest and install result models.

This package provides Pydantic data models for the gems declared in a
manifest and for the per-package and aggregated outcomes of an install.
"""

from .manifest import GemSpec, Manifest
from .install_report import (
    DiscoveredManifest,
    ExtractionResult,
    InstallReport,
    OutcomeStatus,
    PackageOutcome,
    PipelineStage,
)

__all__ = [
    # Manifest
    "GemSpec",
    "Manifest",
    # Install results
    "DiscoveredManifest",
    "ExtractionResult",
    "InstallReport",
    "OutcomeStatus",
    "PackageOutcome",
    "PipelineStage",
]
