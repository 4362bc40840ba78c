"""
Downloads .gem archives into the cache directory.
"""

import logging
import pathlib
from typing import Optional

import requests

from gemstall.gemstall_logger import GemstallLogger
from gemstall.gemstall_utils import FileUtils
from gemstall.manifest_models import GemSpec


class GemFetcher:
    """
    Downloads ``{source}/downloads/{name}-{version}.gem`` to
    ``{cache_dir}/{name}-{version}.gem``.
    """

    def __init__(
        self,
        logger: GemstallLogger,
        timeout: Optional[float] = 60,
        session: Optional[requests.Session] = None,
        max_duration: Optional[float] = None,
    ):
        """
        Args:
            logger: Logger for progress and error messages
            timeout: Seconds allowed per socket read
            session: HTTP session to use; a new requests.Session when omitted
            max_duration: Seconds allowed for a whole download; None for no limit
        """
        self.logger = logger
        self.timeout = timeout
        self.max_duration = max_duration
        self.session = session if session is not None else requests.Session()

    @staticmethod
    def download_url(source: str, gem: GemSpec) -> str:
        return f"{source.rstrip('/')}/downloads/{gem.gem_filename}"

    def fetch(self, cache_dir: str, source: str, gem: GemSpec) -> str:
        """
        Download {gem} and return the local archive path.

        An existing archive at the same path is overwritten.

        Raises:
            FetchError: On network failure or a non-200 status
        """
        url = self.download_url(source, gem)
        target_path = str(pathlib.Path(cache_dir) / gem.gem_filename)

        self.logger.log(f"Downloading {gem.full_name} from {url}", logging.INFO)
        FileUtils.download_file(
            self.logger,
            url,
            target_path,
            timeout=self.timeout,
            session=self.session,
            max_duration=self.max_duration,
        )
        self.logger.log(f"Downloaded {gem.full_name} to {target_path}", logging.INFO)

        return target_path
