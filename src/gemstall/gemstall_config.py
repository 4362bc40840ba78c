"""
Configuration parameters for gemstall.
"""

import inspect
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from gemstall.gemstall_exceptions import GemstallException
from gemstall.gemstall_settings import GemstallSettings

DEFAULT_SOURCE = "https://rubygems.org"


@dataclass
class GemstallConfig:
    """
    Configuration parameters
    """

    install_dir: str = field(default_factory=GemstallSettings.get_install_directory)
    cache_dir: str = field(default_factory=GemstallSettings.get_cache_directory)
    default_source: str = DEFAULT_SOURCE
    # Seconds allowed for a single HTTP request
    fetch_timeout: float = 60.0
    # Seconds allowed for the whole install; None waits for every package
    install_timeout: Optional[float] = None
    manifest_filename: str = "Gemfile"
    inner_archive_name: str = "data.tar.gz"

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "GemstallConfig":
        """
        Create a GemstallConfig instance from a dictionary, ignoring unknown keys
        """
        return cls(
            **{k: v for k, v in env.items() if k in inspect.signature(cls).parameters}
        )

    @classmethod
    def from_toml(cls, toml_path: str) -> "GemstallConfig":
        """
        Load the ``[gemstall]`` table of a TOML file.

        Raises:
            GemstallException: If the file is missing or not valid TOML
        """
        if not os.path.exists(toml_path):
            raise GemstallException(f"Config file not found: {toml_path}")

        try:
            with open(toml_path, "rb") as f:
                toml_dict = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise GemstallException(f"Invalid config file {toml_path}: {e}") from e

        section = toml_dict.get("gemstall", {})
        if not isinstance(section, dict):
            raise GemstallException("'gemstall' in config must be a table")

        return cls.from_dict(section)
