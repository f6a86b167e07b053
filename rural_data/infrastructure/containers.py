"""
Dependency Injection container for the rural_data component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

from datetime import timedelta
from pathlib import Path

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.fallback import FallbackGenerator
from ..application.service import (
    RefreshOrchestrator,
    RuralDataService,
    SourceRefreshPipeline,
)
from ..registry import build_registry, fallback_counts
from ..settings import settings

from .cache_store import JsonCacheStore
from .csv_parser import CsvRowParser
from .downloader import HttpDownloader
from .scheduler import RefreshScheduler


def _resolve_dir(base_dir: str, name: str) -> Path:
    """Resolves a directory beneath the configured base path, once."""
    return Path(base_dir).expanduser().resolve() / name


def _hours(value) -> timedelta:
    return timedelta(hours=float(value))


def _seconds(value) -> timedelta:
    return timedelta(seconds=float(value))


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    config = providers.Object(settings)
    clock = providers.Object(utcnow)

    cache_dir = providers.Singleton(
        _resolve_dir,
        config.provided.paths.base_dir,
        config.provided.paths.cache_dir_name,
    )

    download_dir = providers.Singleton(
        _resolve_dir,
        config.provided.paths.base_dir,
        config.provided.paths.download_dir_name,
    )

    sources = providers.Singleton(
        build_registry, config.provided.refresher.sources
    )

    http_client = providers.Singleton(httpx.AsyncClient)

    downloader: providers.Factory[Downloader] = providers.Factory(
        HttpDownloader,
        client=http_client,
        timeout=config.provided.refresher.timeout,
        chunk_size=config.provided.refresher.chunk_size,
        max_redirects=config.provided.refresher.max_redirects,
        show_progress=config.provided.refresher.show_progress,
    )

    parser: providers.Factory[RowParser] = providers.Factory(CsvRowParser)

    cache_store: providers.Singleton[CacheStore] = providers.Singleton(
        JsonCacheStore,
        cache_dir=cache_dir,
        clock=clock,
    )

    fallback = providers.Singleton(
        FallbackGenerator,
        counts=providers.Callable(
            fallback_counts, config.provided.refresher.sources
        ),
    )

    pipeline = providers.Factory(
        SourceRefreshPipeline,
        downloader=downloader,
        parser=parser,
        cache_store=cache_store,
        download_dir=download_dir,
    )

    refresh_interval = providers.Callable(
        _hours, config.provided.refresher.refresh_interval_hours
    )

    orchestrator = providers.Singleton(
        RefreshOrchestrator,
        sources=sources,
        pipeline=pipeline,
        cache_store=cache_store,
        refresh_interval=refresh_interval,
        concurrent_downloads=config.provided.refresher.concurrent_downloads,
        clock=clock,
        show_progress=config.provided.refresher.show_progress,
    )

    rural_data_service = providers.Singleton(
        RuralDataService,
        cache_store=cache_store,
        orchestrator=orchestrator,
        fallback=fallback,
        stale_after=providers.Callable(
            _hours, config.provided.refresher.stale_after_hours
        ),
        max_acceptable_age=providers.Callable(
            _hours, config.provided.refresher.max_acceptable_age_hours
        ),
        clock=clock,
    )

    scheduler = providers.Singleton(
        RefreshScheduler,
        orchestrator=orchestrator,
        interval=refresh_interval,
        initial_delay=providers.Callable(
            _seconds, config.provided.refresher.initial_delay_seconds
        ),
        serverless=config.provided.refresher.serverless,
        clock=clock,
    )
