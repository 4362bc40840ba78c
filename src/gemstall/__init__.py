"""
gemstall installs the gems declared in a Gemfile-style manifest: every gem
is downloaded from its registry and unpacked into an install tree
concurrently, and the per-gem outcomes are collected into one report.
"""

from .gemstall_config import GemstallConfig
from .gemstall_exceptions import ExtractError, FetchError, GemstallException, ParseError
from .gemstall_logger import GemstallLogger
from .install_orchestrator import InstallOrchestrator
from .manifest_models import GemSpec, InstallReport, Manifest
from .manifest_parser import ManifestParser

__all__ = [
    "ExtractError",
    "FetchError",
    "GemSpec",
    "GemstallConfig",
    "GemstallException",
    "GemstallLogger",
    "InstallOrchestrator",
    "InstallReport",
    "Manifest",
    "ManifestParser",
    "ParseError",
]
