"""Core enums, constants, and typed records for the record store.

Enums:
    RequestStatus -- Request lifecycle (pending, approved, rejected, processing,
                     available). Only a transition INTO approved triggers an
                     acquisition attempt.
    RequestType   -- What the user asked for (artist or album).
    Role          -- Session role (admin or user).

Records are plain dataclasses. Upstream JSON never crosses the api/ package
boundary; each client converts payloads into these types.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class RequestStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PROCESSING = "PROCESSING"
    AVAILABLE = "AVAILABLE"


class RequestType(StrEnum):
    ARTIST = "ARTIST"
    ALBUM = "ALBUM"


class Role(StrEnum):
    ADMIN = "ADMIN"
    USER = "USER"


# Flat key/value integration settings
LIDARR_URL = "lidarr_url"
LIDARR_API_KEY = "lidarr_api_key"
LIDARR_ROOT_FOLDER = "lidarr_root_folder"
LIDARR_QUALITY_PROFILE = "lidarr_quality_profile"
LIDARR_METADATA_PROFILE = "lidarr_metadata_profile"
LIDARR_SETTINGS_PREFIX = "lidarr_"

API_KEY_MASK = "••••••••"


# -- Catalog (MusicBrainz) --


@dataclass
class LifeSpan:
    begin: str | None = None
    end: str | None = None
    ended: bool = False


@dataclass
class Tag:
    name: str
    count: int = 0


@dataclass
class ReleaseGroup:
    """An abstract album (any edition). cover_url is None until enriched."""

    id: str
    title: str
    primary_type: str | None = None
    secondary_types: list[str] = field(default_factory=list)
    first_release_date: str | None = None
    artist_id: str | None = None
    artist_name: str | None = None
    cover_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.primary_type,
            "secondaryTypes": list(self.secondary_types),
            "releaseDate": self.first_release_date,
            "artistId": self.artist_id,
            "artistName": self.artist_name,
            "coverUrl": self.cover_url,
        }


@dataclass
class CatalogArtist:
    id: str
    name: str
    sort_name: str = ""
    type: str | None = None
    country: str | None = None
    disambiguation: str | None = None
    life_span: LifeSpan = field(default_factory=LifeSpan)
    tags: list[Tag] = field(default_factory=list)
    release_groups: list[ReleaseGroup] = field(default_factory=list)
    cover_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "sortName": self.sort_name,
            "type": self.type,
            "country": self.country,
            "disambiguation": self.disambiguation,
            "lifeSpan": {
                "begin": self.life_span.begin,
                "end": self.life_span.end,
                "ended": self.life_span.ended,
            },
            "tags": [{"name": t.name, "count": t.count} for t in self.tags],
            "coverUrl": self.cover_url,
        }


@dataclass
class ArtistSearchPage:
    count: int
    offset: int
    artists: list[CatalogArtist]


@dataclass
class ReleaseGroupSearchPage:
    count: int
    offset: int
    release_groups: list[ReleaseGroup]


@dataclass
class ReleaseGroupBrowsePage:
    """One page of an artist's discography plus the total count."""

    release_groups: list[ReleaseGroup]
    count: int


# -- Library manager (Lidarr) --


@dataclass
class LidarrArtist:
    """An artist entry as Lidarr reports it.

    foreign_artist_id is the MusicBrainz artist id, the join key between the
    two systems. raw holds the unmodified payload because Lidarr expects the
    lookup result echoed back verbatim when adding.
    """

    id: int | None
    artist_name: str
    foreign_artist_id: str
    status: str = ""
    path: str = ""
    quality_profile_id: int | None = None
    metadata_profile_id: int | None = None
    monitored: bool = False
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "artistName": self.artist_name,
            "foreignArtistId": self.foreign_artist_id,
            "status": self.status,
            "path": self.path,
            "qualityProfileId": self.quality_profile_id,
            "metadataProfileId": self.metadata_profile_id,
            "monitored": self.monitored,
        }


@dataclass
class RootFolder:
    id: int
    path: str
    free_space: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "path": self.path, "freeSpace": self.free_space}


@dataclass
class QualityProfile:
    id: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class MetadataProfile:
    id: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class ConnectionResult:
    success: bool
    version: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.version is not None:
            data["version"] = self.version
        if self.error is not None:
            data["error"] = self.error
        return data


# -- Requests --


@dataclass
class MediaRequest:
    id: str
    music_brainz_id: str
    type: RequestType
    title: str
    user_id: str
    status: RequestStatus = RequestStatus.PENDING
    artist_name: str | None = None
    cover_url: str | None = None
    admin_note: str | None = None
    lidarr_id: int | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "musicBrainzId": self.music_brainz_id,
            "type": str(self.type),
            "title": self.title,
            "artistName": self.artist_name,
            "coverUrl": self.cover_url,
            "status": str(self.status),
            "adminNote": self.admin_note,
            "lidarrId": self.lidarr_id,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class SweepResult:
    """Counts from one reconciliation pass."""

    checked: int = 0
    linked: int = 0
    added: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "checked": self.checked,
            "linked": self.linked,
            "added": self.added,
            "failed": self.failed,
        }
