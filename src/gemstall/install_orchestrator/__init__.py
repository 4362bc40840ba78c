"""
Install orchestration.

Runs the fetch -> unpack_outer -> unpack_inner pipeline for every gem of a
manifest concurrently and aggregates the outcomes into an InstallReport.
"""

from .orchestrator import InstallOrchestrator

__all__ = ["InstallOrchestrator"]
