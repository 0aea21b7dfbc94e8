"""
Dependency Injection container for the geoip_updater component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

from typing import Iterator

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.service import EditionPipeline, UpdaterService
from ..settings import load_settings

from .api_client import HttpChecksumSource
from .downloader import HttpArchiveDownloader
from .extractor import ArchiveExtractor
from .filesystem import ensure_writable_dir
from .hashing import Md5Hasher


def _init_http_client(timeout: float) -> Iterator[httpx.Client]:
    """Yield the shared HTTP client and close it on shutdown."""
    client = httpx.Client(timeout=timeout, follow_redirects=True)
    yield client
    client.close()


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    settings = providers.Singleton(load_settings)

    http_client = providers.Resource(
        _init_http_client,
        timeout=settings.provided.updater.timeout,
    )

    hasher: providers.Factory[Hasher] = providers.Factory(
        Md5Hasher,
        chunk_size=settings.provided.updater.chunk_size,
        spool_max_size=settings.provided.updater.spool_max_size,
    )

    checksum_source: providers.Factory[ChecksumSource] = providers.Factory(
        HttpChecksumSource,
        client=http_client,
        license_key=settings.provided.updater.license_key,
        base_url=settings.provided.updater.base_url,
        user_agent=settings.provided.updater.user_agent,
    )

    downloader: providers.Factory[Downloader] = providers.Factory(
        HttpArchiveDownloader,
        client=http_client,
        license_key=settings.provided.updater.license_key,
        base_url=settings.provided.updater.base_url,
        user_agent=settings.provided.updater.user_agent,
        hasher=hasher,
        chunk_size=settings.provided.updater.chunk_size,
        trust_marker=cli_args.trust_marker.as_(bool),
        show_progress=cli_args.show_progress.as_(bool),
    )

    extractor: providers.Factory[Extractor] = providers.Factory(
        ArchiveExtractor,
        hasher=hasher,
    )

    work_dir = providers.Singleton(
        ensure_writable_dir,
        settings.provided.paths.work_dir,
        "working",
    )

    download_dir = providers.Singleton(
        ensure_writable_dir,
        settings.provided.paths.download_dir,
        "download",
    )

    pipeline = providers.Factory(
        EditionPipeline,
        checksum_source=checksum_source,
        downloader=downloader,
        extractor=extractor,
        work_dir=work_dir,
        download_dir=download_dir,
    )

    updater_service = providers.Factory(
        UpdaterService,
        pipeline=pipeline,
    )
