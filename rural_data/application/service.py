"""
The core application service and pipeline, containing pure business logic.

This module defines the refresh orchestrator (RefreshOrchestrator), the
pipeline (SourceRefreshPipeline) that refreshes a single data source, and
the read facade (RuralDataService) consumed by the boundary layer.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional

from tqdm.asyncio import tqdm_asyncio
from tqdm.contrib.logging import logging_redirect_tqdm

from .domain import *
from .exceptions import (
    CacheMissError,
    ConfigurationError,
    ParseError,
    RuralDataError,
)
from .fallback import FallbackGenerator
from .filters import filter_records

logger = logging.getLogger(__name__)


class SourceRefreshPipeline:
    """Encapsulates the full refresh pipeline for a single data source."""

    def __init__(
        self,
        downloader: Downloader,
        parser: RowParser,
        cache_store: CacheStore,
        download_dir: Path,
    ):
        """Initializes the pipeline with necessary dependencies (ports)."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.downloader = downloader
        self.parser = parser
        self.cache_store = cache_store
        self.download_dir = download_dir

    def _read_rows(self, downloaded: DownloadedFile) -> List[RawRow]:
        """Reads a downloaded file and parses it into rows."""
        text = downloaded.path.read_text(encoding="utf-8-sig", errors="replace")

        if text.lstrip().startswith("<"):
            raise ParseError(
                f"Received HTML instead of CSV from {downloaded.url} "
                f"(likely an error page)"
            )

        rows = self.parser.parse(text)
        self.logger.info(
            f"Parsed {len(rows)} rows from {downloaded.path.name}"
        )
        return rows

    async def run(self, source: DataSourceDescriptor) -> CacheEntry:
        """Executes the sequential steps for refreshing one source.

        Args:
            source: The registry entry of the source to refresh.

        Returns:
            The cache entry written for the source.

        Raises:
            NetworkError, FetchError: If the download fails.
            ParseError: If the content is unusable or yields no records.
        """

        self.logger.info(f"Starting refresh of {source.display_name}...")

        # Step 1: Download (URL -> DownloadedFile)
        destination = self.download_dir / source.local_file_name
        downloaded = await self.downloader.download(
            source.source_url, destination
        )

        # Step 2: Parse (DownloadedFile -> RawRow[])
        rows = await asyncio.to_thread(self._read_rows, downloaded)

        # Step 3: Filter (RawRow[] -> DomainRecord[])
        records = filter_records(rows, source.key)
        if not records:
            raise ParseError("No valid data found after parsing")

        # Step 4: Cache (DomainRecord[] -> CacheEntry)
        entry = await asyncio.to_thread(
            self.cache_store.write, source.key, records, source.source_url
        )

        self.logger.info(
            f"{source.display_name}: {entry.count} records updated"
        )
        return entry


class RefreshOrchestrator:
    """
    Refreshes every registered source and records a run summary.

    A failure at any stage for one source is recorded in that source's
    result and never stops the remaining sources. The summary is written
    once, after every source has resolved.
    """

    def __init__(
        self,
        sources: List[DataSourceDescriptor],
        pipeline: SourceRefreshPipeline,
        cache_store: CacheStore,
        refresh_interval: timedelta,
        concurrent_downloads: int = 1,
        clock: Callable[[], datetime] = utcnow,
        show_progress: bool = True,
    ):
        self.sources = sources
        self.pipeline = pipeline
        self.cache_store = cache_store
        self.refresh_interval = refresh_interval
        self.concurrent_downloads = max(1, concurrent_downloads)
        self.clock = clock
        self.show_progress = show_progress

    async def _refresh_with_semaphore(
        self, source: DataSourceDescriptor, semaphore: asyncio.Semaphore
    ) -> SourceResult:
        """Runs one pipeline, converting any stage failure into a result."""
        async with semaphore:
            try:
                entry = await self.pipeline.run(source)
            except (RuralDataError, OSError, ValueError) as e:
                logger.error(f"Failed to update {source.display_name}: {e}")
                return SourceResult(
                    success=False, error=str(e), last_attempt=self.clock()
                )

        return SourceResult(
            success=True, count=entry.count, last_updated=entry.last_updated
        )

    async def run(self) -> RefreshSummary:
        """Executes one refresh of all registered sources."""

        started_at = self.clock()
        logger.info(
            f"Starting data update of {len(self.sources)} sources with a "
            f"concurrency limit of {self.concurrent_downloads}..."
        )

        semaphore = asyncio.Semaphore(self.concurrent_downloads)
        tasks = [
            asyncio.create_task(
                self._refresh_with_semaphore(source, semaphore)
            )
            for source in self.sources
        ]

        with logging_redirect_tqdm():
            outcomes = await tqdm_asyncio.gather(
                *tasks,
                desc="Overall Progress",
                unit="source",
                disable=not self.show_progress,
            )

        summary = RefreshSummary(
            last_update_attempt=started_at,
            results={
                source.key: outcome
                for source, outcome in zip(self.sources, outcomes)
            },
            next_update=self.clock() + self.refresh_interval,
        )
        await asyncio.to_thread(self.cache_store.write_summary, summary)

        succeeded = sum(1 for r in summary.results.values() if r.success)
        logger.info(
            f"Data update completed: {succeeded}/{len(self.sources)} "
            f"sources refreshed. Summary saved."
        )
        return summary


class RuralDataService:
    """
    The two operations exposed to the boundary layer: reading the current
    records of a source and running a refresh now.
    """

    def __init__(
        self,
        cache_store: CacheStore,
        orchestrator: RefreshOrchestrator,
        fallback: FallbackGenerator,
        stale_after: timedelta,
        max_acceptable_age: timedelta,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        if max_acceptable_age < stale_after:
            raise ConfigurationError(
                f"Acceptable cache age {max_acceptable_age} is shorter than "
                f"the staleness threshold {stale_after}."
            )

        self.cache_store = cache_store
        self.orchestrator = orchestrator
        self.fallback = fallback
        self.stale_after = stale_after
        self.max_acceptable_age = max_acceptable_age
        self.clock = clock

    def _fallback_result(self, source_key: str) -> DatasetReadResult:
        return DatasetReadResult(
            source_key=source_key,
            records=self.fallback.generate(source_key),
            provenance=Provenance.FALLBACK,
        )

    async def get_records(self, source_key: str) -> DatasetReadResult:
        """
        Return the best available records for a source.

        Never fails: a missing, corrupt, or expired cache entry is replaced
        by synthesized fallback records.

        Args:
            source_key: The registry key of the source.

        Returns:
            The records with their provenance tag.
        """

        try:
            entry = await asyncio.to_thread(self.cache_store.read, source_key)
        except CacheMissError as e:
            self.logger.error(f"Error loading cached data for {source_key}: {e}")
            return self._fallback_result(source_key)

        if self.cache_store.is_stale(entry, self.max_acceptable_age):
            self.logger.warning(
                f"Cache for {source_key} is older than "
                f"{self.max_acceptable_age}, no longer usable."
            )
            return self._fallback_result(source_key)

        provenance = Provenance.AUTOMATED
        if self.cache_store.is_stale(entry, self.stale_after):
            age = entry.age(self.clock())
            self.logger.warning(
                f"Cache for {source_key} is "
                f"{round(age.total_seconds() / 3600)} hours old"
            )
            provenance = Provenance.STALE_CACHE

        return DatasetReadResult(
            source_key=source_key,
            records=entry.data,
            provenance=provenance,
            last_updated=entry.last_updated,
        )

    async def get_status(self) -> Optional[RefreshSummary]:
        """The summary of the last refresh run, if any run happened."""
        try:
            return await asyncio.to_thread(self.cache_store.read_summary)
        except CacheMissError as e:
            self.logger.error(f"Error loading update summary: {e}")
            return None

    async def refresh(self) -> RefreshSummary:
        """Run a refresh of all sources now."""
        self.logger.info("Manual data update triggered...")
        return await self.orchestrator.run()
