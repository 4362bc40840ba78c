"""
Two-stage .gem extraction.

A .gem file is an uncompressed tar holding ``metadata.gz``, ``checksums.yaml.gz``
and ``data.tar.gz``. Only ``data.tar.gz`` is kept: it is decompressed into the
gem's cache directory and its entries are written into the install directory.
"""

import logging
import os
import pathlib
import shutil
from typing import Optional

from gemstall.gemstall_exceptions import ExtractError
from gemstall.gemstall_logger import GemstallLogger
from gemstall.gemstall_utils import FileUtils
from gemstall.manifest_models import ExtractionResult

GEM_DATA_FILE = "data.tar.gz"
EMBEDDED_MANIFEST = "Gemfile"


class GemUnpacker:
    """
    Unpacks downloaded .gem archives.
    """

    def __init__(
        self,
        logger: GemstallLogger,
        inner_archive_name: str = GEM_DATA_FILE,
        manifest_filename: str = EMBEDDED_MANIFEST,
    ):
        self.logger = logger
        self.inner_archive_name = inner_archive_name
        self.manifest_filename = manifest_filename

    def unpack_outer(self, archive_path: str, scratch_dir: str) -> str:
        """
        Extract the .gem container into {scratch_dir} and return the path of
        its inner archive.

        {scratch_dir} is emptied first so nothing from a previous run survives.

        Raises:
            ExtractError: If the container cannot be read or has no inner archive
        """
        self.logger.log(f"Unpacking {archive_path} into {scratch_dir}", logging.INFO)

        try:
            FileUtils.reset_directory(scratch_dir)
        except OSError as exc:
            raise ExtractError(f"Cannot reset {scratch_dir}: {exc}") from exc

        for _ in FileUtils.iter_extract_tar(self.logger, archive_path, scratch_dir):
            pass

        data_path = pathlib.Path(scratch_dir) / self.inner_archive_name
        if not data_path.is_file():
            self.logger.log(
                f"{self.inner_archive_name} not found in {archive_path}", logging.ERROR
            )
            raise ExtractError("inner archive not found")

        return str(data_path)

    def unpack_inner(
        self, inner_archive_path: str, cache_subdir: str, install_dir: str
    ) -> ExtractionResult:
        """
        Decompress {inner_archive_path} into {cache_subdir} and extract the
        resulting tar into {install_dir}.

        The tree is built in a staging sibling of {install_dir} and swapped in
        only once every entry has been written, so a failure leaves the
        previous install (if any) untouched.

        Returns:
            ExtractionResult whose ``discovered_manifest_path`` is the install
            path of the last entry named like the embedded manifest, if any

        Raises:
            ExtractError: On decode failures or I/O errors while writing entries
        """
        tar_name = pathlib.Path(inner_archive_path).name
        if tar_name.endswith(".gz"):
            tar_name = tar_name[: -len(".gz")]
        tar_path = str(pathlib.Path(cache_subdir) / tar_name)

        self.logger.log(f"Decompressing {inner_archive_path} to {tar_path}", logging.INFO)
        FileUtils.gunzip_file(self.logger, inner_archive_path, tar_path)

        try:
            staging_dir = FileUtils.make_staging_directory(install_dir)
        except OSError as exc:
            raise ExtractError(f"Cannot prepare {install_dir}: {exc}") from exc

        discovered: Optional[str] = None
        try:
            for member_name in FileUtils.iter_extract_tar(self.logger, tar_path, staging_dir):
                relative = pathlib.PurePosixPath(member_name)
                if relative.name == self.manifest_filename:
                    discovered = str(pathlib.Path(install_dir).joinpath(*relative.parts))
            FileUtils.swap_directory(staging_dir, install_dir)
        except OSError as exc:
            raise ExtractError(f"Cannot install into {install_dir}: {exc}") from exc
        finally:
            if os.path.exists(staging_dir):
                shutil.rmtree(staging_dir, ignore_errors=True)

        self.logger.log(f"Installed {tar_path} into {install_dir}", logging.INFO)
        if discovered is not None:
            self.logger.log(f"Found embedded manifest at {discovered}", logging.INFO)

        return ExtractionResult(
            installed_path=install_dir, discovered_manifest_path=discovered
        )
