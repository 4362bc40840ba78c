"""
Pydantic data models for install outcomes.

A pipeline run for one gem ends in a PackageOutcome; the orchestrator folds
all outcomes into a single InstallReport.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field

from .manifest import GemSpec


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineStage(str, Enum):
    """The pipeline step a failure happened in."""

    FETCH = "fetch"
    UNPACK_OUTER = "unpack_outer"
    UNPACK_INNER = "unpack_inner"
    CANCELLED = "cancelled"


class ExtractionResult(BaseModel):
    installed_path: str
    discovered_manifest_path: Optional[str] = None


class PackageOutcome(BaseModel):
    """
    Terminal result of one gem's pipeline.

    Use the ``success`` / ``failure`` constructors rather than filling the
    fields by hand.
    """

    gem: GemSpec
    status: OutcomeStatus
    extraction: Optional[ExtractionResult] = None
    stage: Optional[PipelineStage] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, gem: GemSpec, extraction: ExtractionResult) -> "PackageOutcome":
        return cls(gem=gem, status=OutcomeStatus.SUCCEEDED, extraction=extraction)

    @classmethod
    def failure(cls, gem: GemSpec, stage: PipelineStage, reason: str) -> "PackageOutcome":
        return cls(gem=gem, status=OutcomeStatus.FAILED, stage=stage, reason=reason)

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.SUCCEEDED


class DiscoveredManifest(BaseModel):
    package_name: str
    manifest_path: str


class InstallReport(BaseModel):
    """
    Aggregated result of an install.

    ``discovered_manifests`` follows pipeline completion order, not manifest
    order.
    """

    installed: Set[str] = Field(default_factory=set)
    discovered_manifests: List[DiscoveredManifest] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)

    def record(self, outcome: PackageOutcome) -> None:
        """
        Fold one pipeline outcome into the report.
        """
        name = outcome.gem.name
        if outcome.succeeded:
            self.installed.add(name)
            manifest_path = outcome.extraction.discovered_manifest_path
            if manifest_path is not None:
                self.discovered_manifests.append(
                    DiscoveredManifest(package_name=name, manifest_path=manifest_path)
                )
        else:
            self.failed[name] = f"{outcome.stage.value}: {outcome.reason}"

    def summary(self) -> Dict[str, int]:
        return {
            "installed": len(self.installed),
            "failed": len(self.failed),
            "discovered": len(self.discovered_manifests),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert the report to a JSON-friendly dictionary."""
        return {
            "installed": sorted(self.installed),
            "discovered_manifests": [m.model_dump() for m in self.discovered_manifests],
            "failed": dict(self.failed),
            "summary": self.summary(),
        }
