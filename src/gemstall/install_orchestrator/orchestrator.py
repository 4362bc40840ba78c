"""
Concurrent install orchestrator.

Each gem gets its own asyncio task. Blocking work (HTTP, tar, gzip) runs on
a thread pool owned by ``install_all``, which shuts it down without waiting
for stages that are still blocked. Pipelines never write into each other's directories; their
only shared state is the outcome queue drained by ``install_all``.
"""

import asyncio
import functools
import logging
import os
import pathlib
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, TypeVar

from gemstall.gem_downloader import GemFetcher, GemUnpacker
from gemstall.gemstall_config import GemstallConfig
from gemstall.gemstall_exceptions import ExtractError, FetchError
from gemstall.gemstall_logger import GemstallLogger
from gemstall.manifest_models import (
    GemSpec,
    InstallReport,
    Manifest,
    PackageOutcome,
    PipelineStage,
)
from gemstall.manifest_parser import ManifestParser
from gemstall.registry import RegistryClient

T = TypeVar("T")


class InstallOrchestrator:
    """
    Installs every gem of a manifest.

    Example usage:
    ```python
    orchestrator = InstallOrchestrator(GemstallConfig(), GemstallLogger())
    report = asyncio.run(orchestrator.install_manifest_text(open("Gemfile").read()))
    ```
    """

    def __init__(
        self,
        config: GemstallConfig,
        logger: GemstallLogger,
        fetcher: Optional[GemFetcher] = None,
        unpacker: Optional[GemUnpacker] = None,
        registry: Optional[RegistryClient] = None,
    ):
        self.config = config
        self.logger = logger
        self.fetcher = fetcher or GemFetcher(
            logger, timeout=config.fetch_timeout, max_duration=config.install_timeout
        )
        self.unpacker = unpacker or GemUnpacker(
            logger,
            inner_archive_name=config.inner_archive_name,
            manifest_filename=config.manifest_filename,
        )
        self.registry = registry or RegistryClient(logger, timeout=config.fetch_timeout)

    def create_parser(self) -> ManifestParser:
        return ManifestParser(
            self.registry.get_version, self.logger, default_source=self.config.default_source
        )

    async def install_manifest_text(self, text: str) -> InstallReport:
        """
        Parse {text} and install every gem it declares.

        Raises:
            ParseError: If the manifest cannot be parsed
        """
        manifest = await asyncio.to_thread(self.create_parser().parse, text)
        return await self.install_all(manifest)

    async def install_all(
        self,
        manifest: Manifest,
        install_dir: Optional[str] = None,
        cache_dir: Optional[str] = None,
    ) -> InstallReport:
        """
        Run one pipeline per distinct gem of {manifest}, all at once.

        Never raises for a failing gem: failures end up in ``report.failed``.
        Gems still running when ``config.install_timeout`` expires are
        cancelled and reported as failed. Cancelling this coroutine cancels
        every pipeline.
        """
        install_dir = install_dir or self.config.install_dir
        cache_dir = cache_dir or self.config.cache_dir

        gems = self._distinct_gems(manifest.gems)
        report = InstallReport()
        if not gems:
            return report

        self.logger.log(f"Installing {len(gems)} gems from {manifest.source}", logging.INFO)

        executor = ThreadPoolExecutor(
            max_workers=len(gems), thread_name_prefix="gemstall-install"
        )
        outcomes: "asyncio.Queue[PackageOutcome]" = asyncio.Queue()
        tasks: Dict[GemSpec, asyncio.Task] = {
            gem: asyncio.create_task(
                self._run_pipeline(
                    gem, manifest.source, install_dir, cache_dir, outcomes, executor
                ),
                name=f"install-{gem.full_name}",
            )
            for gem in gems
        }

        loop = asyncio.get_running_loop()
        deadline = None
        if self.config.install_timeout is not None:
            deadline = loop.time() + self.config.install_timeout

        reported = set()
        try:
            while len(reported) < len(gems):
                remaining = None if deadline is None else max(0.0, deadline - loop.time())
                try:
                    outcome = await asyncio.wait_for(outcomes.get(), remaining)
                except asyncio.TimeoutError:
                    break
                reported.add(outcome.gem)
                report.record(outcome)
        finally:
            for task in tasks.values():
                task.cancel()
            try:
                await asyncio.gather(*tasks.values(), return_exceptions=True)
            finally:
                executor.shutdown(wait=False, cancel_futures=True)

        # Pipelines that finished right at the deadline
        while not outcomes.empty():
            outcome = outcomes.get_nowait()
            if outcome.gem not in reported:
                reported.add(outcome.gem)
                report.record(outcome)

        for gem in gems:
            if gem not in reported:
                self.logger.log(f"Timed out installing {gem.full_name}", logging.ERROR)
                report.record(
                    PackageOutcome.failure(
                        gem,
                        PipelineStage.CANCELLED,
                        f"install timed out after {self.config.install_timeout}s",
                    )
                )

        summary = report.summary()
        self.logger.log(
            f"Install summary: {summary['installed']} installed, "
            f"{summary['failed']} failed, {summary['discovered']} embedded manifests",
            logging.INFO,
        )
        return report

    @staticmethod
    def _distinct_gems(gems: List[GemSpec]) -> List[GemSpec]:
        # Identical declarations would share cache and install directories
        return list(dict.fromkeys(gems))

    async def _run_pipeline(
        self,
        gem: GemSpec,
        source: str,
        install_dir: str,
        cache_dir: str,
        outcomes: "asyncio.Queue[PackageOutcome]",
        executor: Executor,
    ) -> None:
        outcome = await self.install_gem(gem, source, install_dir, cache_dir, executor)
        outcomes.put_nowait(outcome)

    @staticmethod
    async def _in_thread(executor: Optional[Executor], func: Callable[..., T], *args) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, functools.partial(func, *args))

    async def install_gem(
        self,
        gem: GemSpec,
        source: str,
        install_dir: str,
        cache_dir: str,
        executor: Optional[Executor] = None,
    ) -> PackageOutcome:
        """
        Fetch and unpack a single gem, stopping at the first failing stage.

        Blocking stages run on {executor}, or the loop's default executor.
        """
        gem_cache_dir = str(pathlib.Path(cache_dir) / gem.full_name)
        gem_install_dir = str(pathlib.Path(install_dir) / gem.full_name)

        try:
            stage = PipelineStage.FETCH
            archive_path = await self._in_thread(
                executor, self.fetcher.fetch, cache_dir, source, gem
            )

            stage = PipelineStage.UNPACK_OUTER
            inner_path = await self._in_thread(
                executor, self.unpacker.unpack_outer, archive_path, gem_cache_dir
            )

            stage = PipelineStage.UNPACK_INNER
            extraction = await self._in_thread(
                executor, self.unpacker.unpack_inner, inner_path, gem_cache_dir, gem_install_dir
            )
        except (FetchError, ExtractError) as exc:
            self.logger.log(
                f"Failed to install {gem.full_name} during {stage.value}: {exc}",
                logging.ERROR,
            )
            return PackageOutcome.failure(gem, stage, str(exc))
        except Exception as exc:
            self.logger.log(
                f"Unexpected error installing {gem.full_name} during {stage.value}: {exc}",
                logging.ERROR,
            )
            return PackageOutcome.failure(gem, stage, f"{type(exc).__name__}: {exc}")

        self.logger.log(
            f"Successfully installed {gem.full_name} to {os.path.abspath(gem_install_dir)}",
            logging.INFO,
        )
        return PackageOutcome.success(gem, extraction)
