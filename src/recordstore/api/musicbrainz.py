"""MusicBrainz web service client.

Every call goes through a RateLimitedFetcher, one live round-trip per call,
no caching and no retries. Payloads are converted into catalog records here
so the hyphenated MusicBrainz field names stay inside this module.
"""

from typing import Any

import httpx
from loguru import logger

from ..config import DEFAULT_USER_AGENT
from ..models import (
    ArtistSearchPage,
    CatalogArtist,
    LifeSpan,
    ReleaseGroup,
    ReleaseGroupBrowsePage,
    ReleaseGroupSearchPage,
    Tag,
)
from ..ratelimit import RateLimitedFetcher, RateLimiter

log = logger.bind(component="musicbrainz")

MUSICBRAINZ_BASE_URL = "https://musicbrainz.org/ws/2"


class MusicBrainzClient:
    """Search and lookup against the MusicBrainz catalog."""

    def __init__(
        self,
        fetcher: RateLimitedFetcher,
        base_url: str = MUSICBRAINZ_BASE_URL,
    ) -> None:
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")

    def _get(self, path: str, params: dict[str, Any]) -> dict:
        params = {**params, "fmt": "json"}
        resp = self.fetcher.fetch(f"{self.base_url}{path}", params=params)
        return resp.json()

    def search_artists(
        self, query: str, limit: int = 25, offset: int = 0
    ) -> ArtistSearchPage:
        log.debug(f"search_artists: query={query!r} limit={limit} offset={offset}")
        data = self._get(
            "/artist",
            {"query": query, "limit": str(limit), "offset": str(offset)},
        )
        artists = [parse_artist(a) for a in data.get("artists") or []]
        return ArtistSearchPage(
            count=data.get("count", len(artists)),
            offset=data.get("offset", offset),
            artists=artists,
        )

    def search_release_groups(
        self, query: str, limit: int = 25, offset: int = 0
    ) -> ReleaseGroupSearchPage:
        log.debug(
            f"search_release_groups: query={query!r} limit={limit} offset={offset}"
        )
        data = self._get(
            "/release-group",
            {"query": query, "limit": str(limit), "offset": str(offset)},
        )
        groups = [parse_release_group(rg) for rg in data.get("release-groups") or []]
        return ReleaseGroupSearchPage(
            count=data.get("count", len(groups)),
            offset=data.get("offset", offset),
            release_groups=groups,
        )

    def get_artist(self, artist_id: str) -> CatalogArtist:
        """Fetch one artist with its release groups and tags."""
        log.debug(f"get_artist: {artist_id}")
        data = self._get(f"/artist/{artist_id}", {"inc": "release-groups+tags"})
        return parse_artist(data)

    def get_artist_release_groups(
        self,
        artist_id: str,
        type: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> ReleaseGroupBrowsePage:
        """Browse an artist's release groups, optionally filtered by primary type."""
        params = {"artist": artist_id, "limit": str(limit), "offset": str(offset)}
        if type:
            params["type"] = type
        log.debug(f"get_artist_release_groups: {params}")
        data = self._get("/release-group", params)
        groups = [parse_release_group(rg) for rg in data.get("release-groups") or []]
        return ReleaseGroupBrowsePage(
            release_groups=groups,
            count=data.get("release-group-count", len(groups)),
        )

    def get_release_group(self, release_group_id: str) -> ReleaseGroup:
        log.debug(f"get_release_group: {release_group_id}")
        data = self._get(
            f"/release-group/{release_group_id}",
            {"inc": "releases+artist-credits"},
        )
        return parse_release_group(data)


def create_musicbrainz_client(
    limiter: RateLimiter,
    base_url: str = MUSICBRAINZ_BASE_URL,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = 30.0,
) -> MusicBrainzClient:
    """Build a client with the identifying headers MusicBrainz requires."""
    http = httpx.Client(
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        timeout=timeout,
    )
    return MusicBrainzClient(RateLimitedFetcher(limiter, http), base_url=base_url)


def parse_artist(data: dict) -> CatalogArtist:
    """Convert a MusicBrainz artist payload into a CatalogArtist."""
    span = data.get("life-span") or {}
    return CatalogArtist(
        id=data.get("id", ""),
        name=data.get("name", ""),
        sort_name=data.get("sort-name", "") or "",
        type=data.get("type"),
        country=data.get("country"),
        disambiguation=data.get("disambiguation") or None,
        life_span=LifeSpan(
            begin=span.get("begin"),
            end=span.get("end"),
            ended=bool(span.get("ended", False)),
        ),
        tags=[
            Tag(name=t.get("name", ""), count=t.get("count", 0) or 0)
            for t in data.get("tags") or []
        ],
        release_groups=[
            parse_release_group(rg) for rg in data.get("release-groups") or []
        ],
    )


def parse_release_group(data: dict) -> ReleaseGroup:
    """Convert a MusicBrainz release-group payload into a ReleaseGroup.

    The artist comes from the first artist credit, when present. An empty
    first-release-date (MusicBrainz sends "" for unknown) becomes None.
    """
    credits = data.get("artist-credit") or []
    artist = (credits[0].get("artist") or {}) if credits else {}
    return ReleaseGroup(
        id=data.get("id", ""),
        title=data.get("title", ""),
        primary_type=data.get("primary-type"),
        secondary_types=list(data.get("secondary-types") or []),
        first_release_date=data.get("first-release-date") or None,
        artist_id=artist.get("id"),
        artist_name=artist.get("name"),
    )
