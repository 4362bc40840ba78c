"""
Defines the default filesystem locations used by gemstall.
"""

import os
import pathlib


class GemstallSettings:
    """
    Provides the various settings for gemstall.
    """

    @staticmethod
    def get_gemstall_dir() -> str:
        """
        Get the directory gemstall keeps its state in (``~/.gemstall``, or ``$GEMSTALL_HOME``)
        """
        home = os.environ.get("GEMSTALL_HOME")
        if home:
            return str(pathlib.Path(home).expanduser())
        return str(pathlib.Path.home() / ".gemstall")

    @staticmethod
    def get_cache_directory() -> str:
        """
        Get the directory where downloaded .gem files and scratch data are kept
        """
        return str(pathlib.Path(GemstallSettings.get_gemstall_dir()) / "cache")

    @staticmethod
    def get_install_directory() -> str:
        """
        Get the directory where unpacked gems are installed
        """
        return str(pathlib.Path(GemstallSettings.get_gemstall_dir()) / "gems")
