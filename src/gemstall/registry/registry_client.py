"""
Registry version lookup.

Queries ``{source}/api/v1/gems/{name}.json`` and reads its ``version`` field.
"""

import logging
from typing import Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from gemstall.gemstall_exceptions import FetchError
from gemstall.gemstall_logger import GemstallLogger


class GemVersion(BaseModel):
    """
    The part of the registry's gem document gemstall cares about.
    """

    model_config = ConfigDict(extra="ignore")

    version: str


class RegistryClient:
    """
    Looks up gem versions on a rubygems-compatible registry.
    """

    def __init__(
        self,
        logger: GemstallLogger,
        timeout: Optional[float] = 60,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            logger: Logger for lookup and error messages
            timeout: Seconds allowed per request
            session: HTTP session to use; a new requests.Session when omitted
        """
        self.logger = logger
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    @staticmethod
    def version_url(source: str, name: str) -> str:
        return f"{source.rstrip('/')}/api/v1/gems/{name}.json"

    def get_version(self, source: str, name: str) -> str:
        """
        Resolve the current version of {name} on {source}.

        Raises:
            FetchError: On network failure, a non-200 status or a malformed body
        """
        url = self.version_url(source, name)
        self.logger.log(f"Resolving version of {name} from {url}", logging.INFO)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            self.logger.log(f"Version lookup for {name} failed: {exc}", logging.ERROR)
            raise FetchError(f"Failed to get gem version {name}: {exc}", url) from exc

        if response.status_code != 200:
            self.logger.log(
                f"Version lookup for {name} returned HTTP {response.status_code}",
                logging.ERROR,
            )
            raise FetchError(
                f"Failed to get gem version {name}: HTTP {response.status_code}",
                url,
                response.status_code,
            )

        try:
            gem_version = GemVersion.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            self.logger.log(f"Malformed registry response for {name}: {exc}", logging.ERROR)
            raise FetchError(f"Malformed registry response for {name}", url) from exc

        self.logger.log(f"Resolved {name} to {gem_version.version}", logging.INFO)
        return gem_version.version
