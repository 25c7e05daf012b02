"""Minimum-interval rate limiting for the MusicBrainz web service.

MusicBrainz enforces roughly one request per second per client IP and bans
clients that exceed it. One RateLimiter instance is built per process and
injected into every MusicBrainz client, so all callers share one clock.
"""

import threading
import time
from collections.abc import Callable

import httpx
from loguru import logger

from .errors import UpstreamError

log = logger.bind(component="ratelimit")


class RateLimiter:
    """Spaces dispatches at least min_interval seconds apart.

    The check-and-update of the last dispatch time is done under a lock
    because enrichment workers call through here from several threads.
    """

    def __init__(
        self,
        min_interval: float = 1.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_dispatch: float | None = None

    @property
    def last_dispatch(self) -> float | None:
        return self._last_dispatch

    def wait(self) -> float:
        """Block until a dispatch is allowed, record it, return the dispatch time."""
        with self._lock:
            now = self._clock()
            if self._last_dispatch is not None:
                elapsed = now - self._last_dispatch
                if elapsed < self.min_interval:
                    delay = self.min_interval - elapsed
                    log.debug(f"Rate limit: sleeping {delay:.3f}s")
                    self._sleep(delay)
                    now = self._clock()
            self._last_dispatch = now
            return now


class RateLimitedFetcher:
    """GET requests against one host, spaced by a shared RateLimiter.

    Raises UpstreamError on any non-2xx response or any httpx failure
    (transport, protocol or body decoding). Never retries.
    """

    def __init__(self, limiter: RateLimiter, client: httpx.Client) -> None:
        self.limiter = limiter
        self.client = client

    def fetch(self, url: str, params: dict | None = None) -> httpx.Response:
        self.limiter.wait()
        log.debug(f"GET {url} params={params}")
        try:
            resp = self.client.get(url, params=params)
        except httpx.HTTPError as e:
            log.warning(f"Request failed for {url}: {e}")
            raise UpstreamError(f"MusicBrainz request failed: {e}") from e
        if not resp.is_success:
            log.warning(f"Upstream error {resp.status_code} for {url}")
            raise UpstreamError(
                f"MusicBrainz API error: {resp.status_code}",
                status=resp.status_code,
            )
        return resp
