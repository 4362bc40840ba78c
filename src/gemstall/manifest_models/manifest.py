"""
Pydantic data models for a parsed gem manifest.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gemstall.gemstall_config import DEFAULT_SOURCE


class GemSpec(BaseModel):
    """
    A single gem to install, with its version already resolved.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Gem name as declared in the manifest")
    version: str = Field(..., description="Pinned or registry-resolved version")

    @field_validator("name", "version")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def full_name(self) -> str:
        """Directory key for this gem, e.g. ``rake-13.0.1``."""
        return f"{self.name}-{self.version}"

    @property
    def gem_filename(self) -> str:
        return f"{self.full_name}.gem"


class Manifest(BaseModel):
    """
    Source registry plus the gems in declaration order.

    Duplicated declarations are kept, one entry per line.
    """

    source: str = Field(DEFAULT_SOURCE, description="Registry base URL")
    gems: List[GemSpec] = Field(default_factory=list)
