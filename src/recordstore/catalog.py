"""Catalog browsing: search and artist detail, enriched with cover art.

Cover art is expensive relative to listing, so only a bounded prefix of each
result list is enriched (artist_cover_limit for artist search,
discography_cover_limit for an artist's discography); the rest carry
coverUrl=None. A failed enrichment affects only its own item.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from loguru import logger

from .auth import Session, require_session
from .errors import RecordStoreError, ValidationError
from .models import CatalogArtist, ReleaseGroup

if TYPE_CHECKING:
    from .api.coverart import CoverArtResolver
    from .api.musicbrainz import MusicBrainzClient
    from .config import RecordStoreConfig

log = logger.bind(component="catalog")


def sort_by_release_date(groups: list[ReleaseGroup]) -> list[ReleaseGroup]:
    """Newest first; undated groups last in their original order."""
    dated = [g for g in groups if g.first_release_date]
    undated = [g for g in groups if not g.first_release_date]
    dated.sort(key=lambda g: g.first_release_date, reverse=True)
    return dated + undated


class CatalogService:
    def __init__(
        self,
        musicbrainz: MusicBrainzClient,
        covers: CoverArtResolver,
        config: RecordStoreConfig,
    ) -> None:
        self.musicbrainz = musicbrainz
        self.covers = covers
        self.config = config

    def _artist_cover(self, artist: CatalogArtist) -> str | None:
        """Cover of the artist's first album, or None."""
        try:
            page = self.musicbrainz.get_artist_release_groups(
                artist.id, type="album", limit=1
            )
        except (RecordStoreError, ValueError) as e:
            log.debug(f"No album lookup for artist {artist.id}: {e}")
            return None
        if not page.release_groups:
            return None
        return self.covers.get_cover_art(page.release_groups[0].id)

    def search_artists(
        self,
        session: Session | None,
        query: str,
        limit: int = 25,
        offset: int = 0,
    ) -> dict[str, Any]:
        require_session(session)
        if not query or not query.strip():
            raise ValidationError("Query parameter 'q' is required")

        page = self.musicbrainz.search_artists(query, limit=limit, offset=offset)
        head = page.artists[: self.config.artist_cover_limit]
        log.debug(
            f"Artist search {query!r}: {len(page.artists)} results, "
            f"enriching {len(head)}"
        )
        if head:
            workers = min(self.config.max_parallel_lookups, len(head))
            with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
                for artist, url in zip(head, executor.map(self._artist_cover, head)):
                    artist.cover_url = url

        return {
            "count": page.count,
            "offset": page.offset,
            "artists": [a.to_dict() for a in page.artists],
        }

    def search_albums(
        self,
        session: Session | None,
        query: str,
        limit: int = 25,
        offset: int = 0,
    ) -> dict[str, Any]:
        require_session(session)
        if not query or not query.strip():
            raise ValidationError("Query parameter 'q' is required")

        page = self.musicbrainz.search_release_groups(query, limit=limit, offset=offset)
        covers = self.covers.batch_get_cover_art([rg.id for rg in page.release_groups])
        for rg in page.release_groups:
            rg.cover_url = covers.get(rg.id)
            if rg.artist_name is None:
                rg.artist_name = "Unknown Artist"

        return {
            "count": page.count,
            "offset": page.offset,
            "albums": [rg.to_dict() for rg in page.release_groups],
        }

    def get_artist_detail(self, session: Session | None, artist_id: str) -> dict[str, Any]:
        """Artist metadata plus its discography sorted newest first."""
        require_session(session)
        if not artist_id:
            raise ValidationError("Artist id is required")

        artist = self.musicbrainz.get_artist(artist_id)
        page = self.musicbrainz.get_artist_release_groups(
            artist_id, limit=self.config.discography_page_size
        )

        head = page.release_groups[: self.config.discography_cover_limit]
        covers = self.covers.batch_get_cover_art([rg.id for rg in head])
        for rg in head:
            rg.cover_url = covers.get(rg.id)

        return {
            "id": artist.id,
            "name": artist.name,
            "type": artist.type,
            "country": artist.country,
            "disambiguation": artist.disambiguation,
            "lifeSpan": artist.to_dict()["lifeSpan"],
            "tags": [{"name": t.name, "count": t.count} for t in artist.tags[:10]],
            "releaseGroups": [
                rg.to_dict() for rg in sort_by_release_date(page.release_groups)
            ],
            "releaseGroupCount": page.count,
        }
