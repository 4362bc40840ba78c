"""
This module contains the exceptions raised by the gemstall framework.
"""

from typing import Optional


class GemstallException(Exception):
    """
    Exceptions raised by the gemstall framework.
    """

    def __init__(self, message: str):
        """
        Initializes the exception with the given message.
        """
        super().__init__(message)


class ParseError(GemstallException):
    """
    Raised when a manifest cannot be turned into gem specifications.

    Fatal to the whole install: no packages are known yet.
    """


class FetchError(GemstallException):
    """
    Raised when an archive or a registry document cannot be downloaded.
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExtractError(GemstallException):
    """
    Raised when an archive is missing an expected entry or fails to unpack.
    """
