"""
This file contains various utility functions like downloading files, gunzip and tar handling
"""

import gzip
import logging
import os
import pathlib
import shutil
import tarfile
import tempfile
import time
import uuid
import zlib
from typing import Iterator, Optional

import requests

from gemstall.gemstall_exceptions import ExtractError, FetchError
from gemstall.gemstall_logger import GemstallLogger

CHUNK_SIZE = 1024 * 1024


class FileUtils:
    """
    Utility functions for files
    """

    @staticmethod
    def download_file(
        logger: GemstallLogger,
        url: str,
        target_path: str,
        timeout: Optional[float] = 60,
        session: Optional[requests.Session] = None,
        max_duration: Optional[float] = None,
    ) -> str:
        """
        Downloads the file from the given URL to the given {target_path}.

        The body is streamed into a temporary file next to the target and only
        renamed over {target_path} once it arrived completely.
        {timeout} bounds each socket read and {max_duration} the whole transfer.
        """
        target_dir = os.path.dirname(target_path)
        os.makedirs(target_dir, exist_ok=True)
        http = session if session is not None else requests
        started = time.monotonic()

        try:
            response = http.get(url, stream=True, timeout=timeout)
        except requests.RequestException as exc:
            logger.log(f"Error downloading file '{url}': {exc}", logging.ERROR)
            raise FetchError(f"Error downloading {url}: {exc}", url) from exc

        try:
            if response.status_code != 200:
                logger.log(
                    f"Error downloading file '{url}': {response.status_code}",
                    logging.ERROR,
                )
                raise FetchError(
                    f"Error downloading {url}: HTTP {response.status_code}",
                    url,
                    response.status_code,
                )

            fd, tmp_path = tempfile.mkstemp(dir=target_dir, prefix=".download-")
            try:
                with os.fdopen(fd, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                        if max_duration is not None and time.monotonic() - started > max_duration:
                            logger.log(
                                f"Download of '{url}' exceeded {max_duration}s", logging.ERROR
                            )
                            raise FetchError(
                                f"Error downloading {url}: exceeded {max_duration}s", url
                            )
                os.replace(tmp_path, target_path)
            except (requests.RequestException, OSError) as exc:
                logger.log(f"Error writing '{url}' to '{target_path}': {exc}", logging.ERROR)
                raise FetchError(f"Error downloading {url}: {exc}", url) from exc
            finally:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
        finally:
            response.close()

        return target_path

    @staticmethod
    def gunzip_file(logger: GemstallLogger, gz_path: str, target_path: str) -> str:
        """
        Decompresses the gzip file at {gz_path} into {target_path}
        """
        try:
            os.makedirs(os.path.dirname(target_path), exist_ok=True)
            with gzip.open(gz_path, "rb") as f_in, open(target_path, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out, CHUNK_SIZE)
        except (OSError, EOFError, zlib.error) as exc:
            # gzip.BadGzipFile is an OSError; a corrupt deflate body raises zlib.error
            logger.log(f"Error decompressing '{gz_path}': {exc}", logging.ERROR)
            raise ExtractError(f"Error decompressing {gz_path}: {exc}") from exc
        return target_path

    @staticmethod
    def iter_extract_tar(logger: GemstallLogger, tar_path: str, target_dir: str) -> Iterator[str]:
        """
        Extracts the uncompressed tar at {tar_path} into {target_dir} one member at a time.

        Yields the name every member was written under, relative to {target_dir}.
        Members that would land outside {target_dir} are rejected.
        """
        try:
            with tarfile.open(tar_path, mode="r|") as archive:
                for member in archive:
                    archive.extract(member, target_dir, filter="data")
                    # The data filter strips leading slashes from member names
                    yield tarfile.data_filter(member, target_dir).name
        except (tarfile.TarError, OSError, EOFError) as exc:
            logger.log(f"Error extracting '{tar_path}': {exc}", logging.ERROR)
            raise ExtractError(f"Error extracting {tar_path}: {exc}") from exc

    @staticmethod
    def reset_directory(path: str) -> None:
        """
        Removes {path} if it exists and creates it again empty
        """
        if os.path.exists(path):
            shutil.rmtree(path)
        os.makedirs(path)

    @staticmethod
    def make_staging_directory(target_dir: str) -> str:
        """
        Creates an empty sibling of {target_dir} to extract into before swapping it in place
        """
        parent = pathlib.Path(target_dir).parent
        parent.mkdir(parents=True, exist_ok=True)
        staging = parent / f".{pathlib.Path(target_dir).name}.staging-{uuid.uuid4().hex}"
        staging.mkdir()
        return str(staging)

    @staticmethod
    def swap_directory(staging_dir: str, target_dir: str) -> None:
        """
        Replaces {target_dir} with {staging_dir}
        """
        if os.path.exists(target_dir):
            retired = f"{staging_dir}.old"
            os.replace(target_dir, retired)
            os.replace(staging_dir, target_dir)
            shutil.rmtree(retired, ignore_errors=True)
        else:
            os.replace(staging_dir, target_dir)
