"""
Command line entry point: ``gemstall install [Gemfile]``.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from gemstall.gemstall_config import GemstallConfig
from gemstall.gemstall_exceptions import GemstallException
from gemstall.gemstall_logger import GemstallLogger
from gemstall.install_orchestrator import InstallOrchestrator


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Attach a console handler once, plus one file handler per distinct {log_file}.
    """
    logger = logging.getLogger("gemstall")
    logger.setLevel(level)
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    handlers: List[logging.Handler] = []
    if not getattr(logger, "_gemstall_configured", False):
        handlers.append(logging.StreamHandler(sys.stderr))
        setattr(logger, "_gemstall_configured", True)

    log_files = getattr(logger, "_gemstall_log_files", set())
    if log_file and str(Path(log_file).resolve()) not in log_files:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
        log_files.add(str(Path(log_file).resolve()))
    setattr(logger, "_gemstall_log_files", log_files)

    for handler in handlers:
        handler.setFormatter(fmt)
        logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gemstall", description="Install the gems of a Gemfile")
    sub = parser.add_subparsers(dest="command", required=True)

    install = sub.add_parser("install", help="Download and unpack every gem of a manifest")
    install.add_argument("manifest", nargs="?", default="Gemfile")
    install.add_argument("--config", help="TOML file with a [gemstall] table")
    install.add_argument("--install-dir")
    install.add_argument("--cache-dir")
    install.add_argument("--timeout", type=float, help="Seconds allowed for the whole install")
    install.add_argument("--log-file")
    install.add_argument("--verbose", action="store_true")
    return parser


def load_config(args: argparse.Namespace) -> GemstallConfig:
    config = GemstallConfig.from_toml(args.config) if args.config else GemstallConfig()
    if args.install_dir:
        config.install_dir = args.install_dir
    if args.cache_dir:
        config.cache_dir = args.cache_dir
    if args.timeout is not None:
        config.install_timeout = args.timeout
    return config


def run_install(args: argparse.Namespace) -> int:
    logger = GemstallLogger()
    try:
        config = load_config(args)
        text = Path(args.manifest).read_text(encoding="utf-8")
    except (GemstallException, OSError) as e:
        logger.log(f"Cannot start install: {e}", logging.ERROR)
        print(f"error: {e}", file=sys.stderr)
        return 2

    orchestrator = InstallOrchestrator(config, logger)
    try:
        report = asyncio.run(orchestrator.install_manifest_text(text))
    except GemstallException as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(report.to_dict(), indent=2))
    return 1 if report.failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    if args.command == "install":
        return run_install(args)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
