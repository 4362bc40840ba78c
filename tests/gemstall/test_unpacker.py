"""
Tests for the two-stage .gem extraction.
"""

import gzip
import os
import pathlib

import pytest

from gemstall.gem_downloader import GemUnpacker
from gemstall.gemstall_exceptions import ExtractError
from gemstall.gemstall_logger import GemstallLogger
from tests.test_utils import build_gem, build_tar

PAYLOAD = {
    "lib/rake.rb": b"module Rake; end\n",
    "lib/rake/version.rb": b"VERSION = '13.0.1'\n",
    "exe/rake": b"#!/usr/bin/env ruby\n",
    "README.md": b"# rake\n" * 100,
}


def read_tree(root: pathlib.Path):
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in root.rglob("*")
        if p.is_file()
    }


@pytest.fixture
def unpacker():
    return GemUnpacker(GemstallLogger())


@pytest.fixture
def write_gem(tmp_path):
    def _write(files, include_data=True, name="rake-13.0.1.gem"):
        path = tmp_path / name
        path.write_bytes(build_gem(files, include_data=include_data))
        return str(path)

    return _write


def install(unpacker, gem_path, tmp_path):
    scratch = str(tmp_path / "cache" / "rake-13.0.1")
    target = str(tmp_path / "gems" / "rake-13.0.1")
    inner = unpacker.unpack_outer(gem_path, scratch)
    return unpacker.unpack_inner(inner, scratch, target)


class TestUnpackOuter:
    def test_returns_inner_archive(self, unpacker, write_gem, tmp_path):
        scratch = tmp_path / "scratch"

        inner = unpacker.unpack_outer(write_gem(PAYLOAD), str(scratch))

        assert inner == str(scratch / "data.tar.gz")
        assert (scratch / "metadata.gz").is_file()

    def test_missing_inner_archive(self, unpacker, write_gem, tmp_path):
        with pytest.raises(ExtractError, match="inner archive not found"):
            unpacker.unpack_outer(write_gem(PAYLOAD, include_data=False), str(tmp_path / "scratch"))

    def test_stale_scratch_files_are_removed(self, unpacker, write_gem, tmp_path):
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        (scratch / "leftover").write_text("old")

        unpacker.unpack_outer(write_gem(PAYLOAD), str(scratch))

        assert not (scratch / "leftover").exists()

    def test_stale_inner_archive_does_not_mask_missing_one(self, unpacker, write_gem, tmp_path):
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        (scratch / "data.tar.gz").write_bytes(b"from a previous run")

        with pytest.raises(ExtractError):
            unpacker.unpack_outer(write_gem(PAYLOAD, include_data=False), str(scratch))

    def test_not_a_tar(self, unpacker, tmp_path):
        bogus = tmp_path / "bogus.gem"
        bogus.write_bytes(b"definitely not a tar archive")

        with pytest.raises(ExtractError):
            unpacker.unpack_outer(str(bogus), str(tmp_path / "scratch"))


class TestUnpackInner:
    def test_round_trip(self, unpacker, write_gem, tmp_path):
        result = install(unpacker, write_gem(PAYLOAD), tmp_path)

        assert result.installed_path == str(tmp_path / "gems" / "rake-13.0.1")
        assert read_tree(pathlib.Path(result.installed_path)) == PAYLOAD
        assert result.discovered_manifest_path is None

    def test_decompressed_tar_is_kept_in_cache(self, unpacker, write_gem, tmp_path):
        install(unpacker, write_gem(PAYLOAD), tmp_path)

        assert (tmp_path / "cache" / "rake-13.0.1" / "data.tar").read_bytes() == build_tar(PAYLOAD)

    def test_embedded_manifest_is_discovered(self, unpacker, write_gem, tmp_path):
        files = dict(PAYLOAD, **{"lib/Gemfile": b'gem "rack"\n'})

        result = install(unpacker, write_gem(files), tmp_path)

        expected = tmp_path / "gems" / "rake-13.0.1" / "lib" / "Gemfile"
        assert result.discovered_manifest_path == str(expected)
        assert expected.read_bytes() == b'gem "rack"\n'

    def test_last_embedded_manifest_wins(self, unpacker, write_gem, tmp_path):
        files = {"Gemfile": b"first", "spec/fixtures/Gemfile": b"second"}

        result = install(unpacker, write_gem(files), tmp_path)

        assert result.discovered_manifest_path == str(
            tmp_path / "gems" / "rake-13.0.1" / "spec" / "fixtures" / "Gemfile"
        )

    def test_similar_names_are_not_manifests(self, unpacker, write_gem, tmp_path):
        files = {"Gemfile.lock": b"", "lib/MyGemfile": b"", "gemfile": b""}

        result = install(unpacker, write_gem(files), tmp_path)

        assert result.discovered_manifest_path is None

    def test_reinstall_is_idempotent(self, unpacker, write_gem, tmp_path):
        gem_path = write_gem(PAYLOAD)
        first = install(unpacker, gem_path, tmp_path)
        first_tree = read_tree(pathlib.Path(first.installed_path))

        second = install(unpacker, gem_path, tmp_path)

        assert read_tree(pathlib.Path(second.installed_path)) == first_tree

    def test_reinstall_removes_stale_files(self, unpacker, write_gem, tmp_path):
        target = tmp_path / "gems" / "rake-13.0.1"
        target.mkdir(parents=True)
        (target / "stale.rb").write_text("old")

        install(unpacker, write_gem(PAYLOAD), tmp_path)

        assert not (target / "stale.rb").exists()

    def test_corrupt_inner_archive(self, unpacker, tmp_path):
        cache = tmp_path / "cache"
        cache.mkdir()
        inner = cache / "data.tar.gz"
        inner.write_bytes(b"not gzip at all")

        with pytest.raises(ExtractError):
            unpacker.unpack_inner(str(inner), str(cache), str(tmp_path / "gems" / "x-1.0.0"))

    def test_failed_extraction_keeps_previous_install(self, unpacker, tmp_path):
        target = tmp_path / "gems" / "x-1.0.0"
        target.mkdir(parents=True)
        (target / "kept.rb").write_text("previous")

        cache = tmp_path / "cache"
        cache.mkdir()
        inner = cache / "data.tar.gz"
        inner.write_bytes(gzip.compress(build_tar(PAYLOAD)[:520]))

        with pytest.raises(ExtractError):
            unpacker.unpack_inner(str(inner), str(cache), str(target))

        assert (target / "kept.rb").read_text() == "previous"
        assert os.listdir(tmp_path / "gems") == ["x-1.0.0"]

    def test_path_traversal_is_rejected(self, unpacker, tmp_path):
        cache = tmp_path / "cache"
        cache.mkdir()
        inner = cache / "data.tar.gz"
        inner.write_bytes(gzip.compress(build_tar({"../../escape.rb": b"boom"})))

        with pytest.raises(ExtractError):
            unpacker.unpack_inner(str(inner), str(cache), str(tmp_path / "gems" / "x-1.0.0"))

        assert not (tmp_path / "escape.rb").exists()

    def test_absolute_member_names_are_installed_relative(self, unpacker, tmp_path):
        cache = tmp_path / "cache"
        cache.mkdir()
        inner = cache / "data.tar.gz"
        inner.write_bytes(gzip.compress(build_tar({"/lib/Gemfile": b'gem "rack"\n'})))
        target = tmp_path / "gems" / "x-1.0.0"

        result = unpacker.unpack_inner(str(inner), str(cache), str(target))

        assert result.discovered_manifest_path == str(target / "lib" / "Gemfile")
        assert (target / "lib" / "Gemfile").read_bytes() == b'gem "rack"\n'

    def test_corrupt_compressed_body(self, unpacker, tmp_path):
        cache = tmp_path / "cache"
        cache.mkdir()
        body = bytearray(gzip.compress(build_tar(PAYLOAD)))
        for i in range(20, 60):
            body[i] ^= 0xFF
        inner = cache / "data.tar.gz"
        inner.write_bytes(bytes(body))

        with pytest.raises(ExtractError, match="decompressing"):
            unpacker.unpack_inner(str(inner), str(cache), str(tmp_path / "gems" / "x-1.0.0"))
