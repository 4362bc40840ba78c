"""
Gem downloader.

This package handles:
1. Downloading .gem archives from the registry
2. Unpacking the outer .gem container
3. Unpacking the inner data.tar.gz into the install tree
"""

from .fetcher import GemFetcher
from .unpacker import GemUnpacker

__all__ = ["GemFetcher", "GemUnpacker"]
