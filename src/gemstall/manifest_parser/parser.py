"""
Gemfile-style manifest parser.

This is a tolerant line scanner, not a Ruby parser. After stripping leading
whitespace, only two kinds of lines are recognised:

    source "https://rubygems.org"
    gem "name", "~> 1.2.3", ...

Every other line (blank lines, comments, ``gemspec``, ``group ... do`` /
``end`` blocks, conditionals) is skipped. Because indentation is stripped,
``gem`` lines nested inside blocks are picked up as if they were top level.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from gemstall.gemstall_config import DEFAULT_SOURCE
from gemstall.gemstall_exceptions import GemstallException, ParseError
from gemstall.gemstall_logger import GemstallLogger
from gemstall.manifest_models import GemSpec, Manifest

SOURCE_DIRECTIVE = "source"
GEM_DIRECTIVE = "gem"
PINNED_VERSION = re.compile(r"\d+\.\d+\.\d+")

# (source, name) -> version
VersionResolver = Callable[[str, str], str]


def _directive_argument(line: str, directive: str) -> Optional[str]:
    """
    Return the text after {directive} if {line} starts with it as a whole word.
    """
    if not line.startswith(directive):
        return None
    rest = line[len(directive):]
    if not rest or not rest[0].isspace():
        return None
    return rest


def _source_value(argument: str) -> str:
    """
    The quoted or bare URL at the start of a ``source`` argument, without any
    trailing ``do`` block opener or comment.
    """
    argument = argument.strip()
    if argument[:1] in ("\"", "'"):
        quote = argument[0]
        end = argument.find(quote, 1)
        return argument[1:end] if end != -1 else argument[1:]
    return re.split(r"[\s#]", argument, maxsplit=1)[0]


def _tokenize_gem_line(argument: str) -> List[str]:
    cleaned = argument.replace('"', "").replace("'", "").replace("~>", "")
    cleaned = "".join(cleaned.split())
    return cleaned.split(",")


class ManifestParser:
    """
    Parses manifest text into a Manifest.

    Unpinned gems are resolved through {resolve_version}; the first lookup
    failure aborts the whole parse.
    """

    def __init__(
        self,
        resolve_version: VersionResolver,
        logger: GemstallLogger,
        default_source: str = DEFAULT_SOURCE,
    ):
        self.resolve_version = resolve_version
        self.logger = logger
        self.default_source = default_source

    def scan(self, text: str) -> Tuple[str, List[Tuple[str, Optional[str]]]]:
        """
        Collect the source and the ``(name, pinned_version or None)`` pairs
        without resolving anything.
        """
        source = self.default_source
        entries: List[Tuple[str, Optional[str]]] = []

        for lineno, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.lstrip()

            argument = _directive_argument(line, SOURCE_DIRECTIVE)
            if argument is not None:
                source = _source_value(argument)
                continue

            argument = _directive_argument(line, GEM_DIRECTIVE)
            if argument is None:
                continue

            tokens = _tokenize_gem_line(argument)
            name = tokens[0]
            if not name:
                raise ParseError(f"Line {lineno}: gem directive without a name: {raw_line.strip()}")

            version = None
            if len(tokens) > 1 and PINNED_VERSION.fullmatch(tokens[1]):
                version = tokens[1]
            entries.append((name, version))

        return source, entries

    def parse(self, text: str) -> Manifest:
        """
        Parse {text} into a Manifest, resolving unpinned versions.

        Versions are looked up against the last ``source`` line of the
        manifest, wherever it appears.

        Raises:
            ParseError: If a gem line is malformed or a version cannot be resolved
        """
        source, entries = self.scan(text)

        gems = []
        for name, version in entries:
            if version is None:
                try:
                    version = self.resolve_version(source, name)
                except GemstallException as exc:
                    self.logger.log(f"Cannot resolve a version for {name}: {exc}", logging.ERROR)
                    raise ParseError(f"Cannot resolve a version for {name}: {exc}") from exc

            try:
                gems.append(GemSpec(name=name, version=version))
            except ValidationError as exc:
                raise ParseError(f"Invalid gem {name!r} version {version!r}") from exc

        self.logger.log(
            f"Parsed manifest with {len(gems)} gems from {source}", logging.INFO
        )
        return Manifest(source=source, gems=gems)
