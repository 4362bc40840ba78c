"""
Manifest parsing.

Turns Gemfile-style text into a Manifest of resolved GemSpecs.
"""

from .parser import ManifestParser

__all__ = ["ManifestParser"]
