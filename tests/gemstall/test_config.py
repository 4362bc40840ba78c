"""
Tests for GemstallConfig and GemstallSettings.
"""

import pytest

from gemstall.gemstall_config import DEFAULT_SOURCE, GemstallConfig
from gemstall.gemstall_exceptions import GemstallException
from gemstall.gemstall_settings import GemstallSettings


class TestGemstallConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GEMSTALL_HOME", str(tmp_path))

        config = GemstallConfig()

        assert config.default_source == DEFAULT_SOURCE == "https://rubygems.org"
        assert config.install_dir == str(tmp_path / "gems")
        assert config.cache_dir == str(tmp_path / "cache")
        assert config.install_timeout is None
        assert config.manifest_filename == "Gemfile"
        assert config.inner_archive_name == "data.tar.gz"

    def test_from_dict_ignores_unknown_keys(self):
        config = GemstallConfig.from_dict(
            {"install_dir": "/opt/gems", "fetch_timeout": 5, "colour": "blue"}
        )

        assert config.install_dir == "/opt/gems"
        assert config.fetch_timeout == 5

    def test_from_toml(self, tmp_path):
        path = tmp_path / "gemstall.toml"
        path.write_text(
            "[gemstall]\n"
            'default_source = "https://gems.internal"\n'
            "install_timeout = 120\n"
            'cache_dir = "/var/cache/gemstall"\n'
        )

        config = GemstallConfig.from_toml(str(path))

        assert config.default_source == "https://gems.internal"
        assert config.install_timeout == 120
        assert config.cache_dir == "/var/cache/gemstall"

    def test_from_toml_missing_file(self, tmp_path):
        with pytest.raises(GemstallException, match="not found"):
            GemstallConfig.from_toml(str(tmp_path / "nope.toml"))

    def test_from_toml_invalid(self, tmp_path):
        path = tmp_path / "gemstall.toml"
        path.write_text("[gemstall\n")

        with pytest.raises(GemstallException, match="Invalid config"):
            GemstallConfig.from_toml(str(path))

    def test_from_toml_section_must_be_table(self, tmp_path):
        path = tmp_path / "gemstall.toml"
        path.write_text('gemstall = "oops"\n')

        with pytest.raises(GemstallException):
            GemstallConfig.from_toml(str(path))


def test_settings_default_to_home(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMSTALL_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert GemstallSettings.get_gemstall_dir() == str(tmp_path / ".gemstall")
