"""Cover Art Archive resolver.

Cover art is decorative: every failure resolves to None and is never raised.
The archive has no strict per-second limit like MusicBrainz, so requests are
not rate limited, only bounded by a worker pool when batched.

Thumbnail preference is fixed: "500" -> "large" -> raw image URL.
"""

from concurrent.futures import ThreadPoolExecutor

import httpx
from loguru import logger

from ..config import DEFAULT_USER_AGENT

log = logger.bind(component="coverart")

COVER_ART_BASE_URL = "https://coverartarchive.org"
THUMBNAIL_PREFERENCE = ("500", "large")


def _image_url(image: dict) -> str | None:
    thumbnails = image.get("thumbnails")
    if isinstance(thumbnails, dict):
        for size in THUMBNAIL_PREFERENCE:
            if isinstance(thumbnails.get(size), str) and thumbnails[size]:
                return thumbnails[size]
    raw = image.get("image")
    return raw if isinstance(raw, str) and raw else None


def select_cover_url(images: list[dict]) -> str | None:
    """Pick the best cover URL from a Cover Art Archive image list.

    The image flagged front wins over thumbnail size; without a front image
    the first image is used. Returns None for an empty list.
    """
    if not images:
        return None
    front = next((img for img in images if img.get("front")), None)
    return _image_url(front if front is not None else images[0])


class CoverArtResolver:
    """Resolves release-group ids to cover image URLs."""

    def __init__(
        self,
        client: httpx.Client,
        base_url: str = COVER_ART_BASE_URL,
        max_workers: int = 8,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.max_workers = max(1, max_workers)

    def get_cover_art(self, release_group_id: str) -> str | None:
        url = f"{self.base_url}/release-group/{release_group_id}"
        try:
            resp = self.client.get(url)
            if not resp.is_success:
                log.debug(f"No cover art for {release_group_id}: HTTP {resp.status_code}")
                return None
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.debug(f"Cover art lookup failed for {release_group_id}: {e}")
            return None
        if not isinstance(data, dict) or not isinstance(data.get("images"), list):
            return None
        images = [img for img in data["images"] if isinstance(img, dict)]
        try:
            return select_cover_url(images)
        except (AttributeError, KeyError, TypeError) as e:
            log.debug(f"Malformed cover art payload for {release_group_id}: {e}")
            return None

    def batch_get_cover_art(self, release_group_ids: list[str]) -> dict[str, str | None]:
        """Resolve many ids in parallel, bounded by max_workers.

        Each id is resolved independently; one failure leaves the others intact.
        """
        unique_ids = list(dict.fromkeys(release_group_ids))
        if not unique_ids:
            return {}
        log.debug(
            f"batch_get_cover_art: {len(unique_ids)} ids, workers={self.max_workers}"
        )
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            urls = executor.map(self.get_cover_art, unique_ids)
            return dict(zip(unique_ids, urls))


def create_coverart_resolver(
    base_url: str = COVER_ART_BASE_URL,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = 30.0,
    max_workers: int = 8,
) -> CoverArtResolver:
    http = httpx.Client(
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        timeout=timeout,
        follow_redirects=True,
    )
    return CoverArtResolver(http, base_url=base_url, max_workers=max_workers)
