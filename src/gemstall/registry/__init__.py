"""
Gem registry access.

Resolves an unpinned gem name to the latest version the registry publishes.
"""

from .registry_client import GemVersion, RegistryClient

__all__ = ["GemVersion", "RegistryClient"]
