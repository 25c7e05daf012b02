"""Wires config, store, API clients and services into one object."""

from __future__ import annotations

from loguru import logger

from .api.coverart import create_coverart_resolver
from .api.lidarr import LidarrClient
from .api.musicbrainz import create_musicbrainz_client
from .catalog import CatalogService
from .config import RecordStoreConfig
from .integration import IntegrationSettings
from .ratelimit import RateLimiter
from .reconciler import AcquisitionReconciler
from .requests_service import RequestService
from .store import RecordStoreDB

log = logger.bind(component="app")


class RecordStoreApp:
    """One instance per process; owns the shared MusicBrainz rate limiter."""

    def __init__(self, config: RecordStoreConfig) -> None:
        self.config = config
        self.store = RecordStoreDB(config.db_path)
        self.limiter = RateLimiter(min_interval=config.musicbrainz_min_interval)
        self.musicbrainz = create_musicbrainz_client(
            self.limiter,
            base_url=config.musicbrainz_url,
            user_agent=config.user_agent,
            timeout=config.http_timeout,
        )
        self.covers = create_coverart_resolver(
            base_url=config.coverart_url,
            user_agent=config.user_agent,
            timeout=config.http_timeout,
            max_workers=config.max_parallel_lookups,
        )
        self.lidarr = LidarrClient(self.store, timeout=config.http_timeout)
        self.reconciler = AcquisitionReconciler(self.lidarr)

        self.catalog = CatalogService(self.musicbrainz, self.covers, config)
        self.requests = RequestService(self.store, self.reconciler)
        self.integration = IntegrationSettings(self.store, self.lidarr)
        log.debug(f"App ready: db={config.db_path}")

    def close(self) -> None:
        self.musicbrainz.fetcher.client.close()
        self.covers.client.close()
        self.lidarr.client.close()
        self.store.close()
