"""Lidarr REST (v1) client.

Connection details are read from the settings store on every call, so an
admin's edit applies to the very next request. Without a saved URL and API
key every operation raises NotConfiguredError before touching the network.

Artist lookup takes "mbid:<id>" terms; some Lidarr metadata backends only
answer the bare id, so add_artist retries once without the prefix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from loguru import logger

from ..errors import (
    ConfigurationIncompleteError,
    NotConfiguredError,
    NotFoundUpstreamError,
    UpstreamError,
)
from ..models import (
    LIDARR_API_KEY,
    LIDARR_METADATA_PROFILE,
    LIDARR_QUALITY_PROFILE,
    LIDARR_ROOT_FOLDER,
    LIDARR_URL,
    ConnectionResult,
    LidarrArtist,
    MetadataProfile,
    QualityProfile,
    RequestType,
    RootFolder,
)

log = logger.bind(component="lidarr")

API_PREFIX = "/api/v1"


class SettingsSource(Protocol):
    def get_setting(self, key: str) -> str | None: ...


@dataclass
class LidarrConnection:
    url: str
    api_key: str


@dataclass
class AddTarget:
    """Where and how a new artist is created in Lidarr."""

    root_folder_path: str
    quality_profile_id: int
    metadata_profile_id: int


def _parse_id(value: str | None) -> int | None:
    """Saved profile ids are stored as text; unparsable or zero means unset."""
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        log.warning(f"Ignoring non-numeric profile id setting: {value!r}")
        return None
    return parsed or None


def _error_message(resp: httpx.Response, fallback: str) -> str:
    """Extract Lidarr's error text from a rejected response.

    Lidarr answers either {"message": ...} or a list of validation failures
    [{"propertyName": ..., "errorMessage": ...}].
    """
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    if isinstance(body, list):
        messages = [
            str(item["errorMessage"])
            for item in body
            if isinstance(item, dict) and item.get("errorMessage")
        ]
        if messages:
            return "; ".join(messages)
    return fallback


def _json_list(resp: httpx.Response) -> list[dict]:
    data = resp.json()
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def parse_lidarr_artist(data: dict) -> LidarrArtist:
    return LidarrArtist(
        id=data.get("id"),
        artist_name=data.get("artistName", ""),
        foreign_artist_id=data.get("foreignArtistId", ""),
        status=data.get("status", "") or "",
        path=data.get("path", "") or "",
        quality_profile_id=data.get("qualityProfileId"),
        metadata_profile_id=data.get("metadataProfileId"),
        monitored=bool(data.get("monitored", False)),
        raw=dict(data),
    )


class LidarrClient:
    """Talks to the Lidarr instance described by the settings store."""

    def __init__(
        self,
        settings: SettingsSource,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.settings = settings
        self.client = client or httpx.Client(timeout=timeout)

    # -- Plumbing --

    def _connection(self) -> LidarrConnection:
        url = self.settings.get_setting(LIDARR_URL)
        api_key = self.settings.get_setting(LIDARR_API_KEY)
        if not url or not api_key:
            raise NotConfiguredError()
        return LidarrConnection(url=url.rstrip("/"), api_key=api_key)

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json: Any = None,
    ) -> httpx.Response:
        conn = self._connection()
        log.debug(f"{method} {endpoint} params={params}")
        return self.client.request(
            method,
            f"{conn.url}{API_PREFIX}{endpoint}",
            params=params,
            json=json,
            headers={
                "X-Api-Key": conn.api_key,
                "Content-Type": "application/json",
            },
        )

    def _get_list(self, endpoint: str, what: str) -> list[dict]:
        resp = self._request("GET", endpoint)
        if not resp.is_success:
            raise UpstreamError(
                f"Failed to get {what}: {resp.reason_phrase}",
                status=resp.status_code,
            )
        return _json_list(resp)

    # -- Operations --

    def test_connection(self) -> ConnectionResult:
        """Probe /system/status. Never raises."""
        try:
            resp = self._request("GET", "/system/status")
            if not resp.is_success:
                return ConnectionResult(
                    success=False,
                    error=f"HTTP {resp.status_code}: {resp.reason_phrase}",
                )
            data = resp.json()
            return ConnectionResult(success=True, version=data.get("version"))
        except Exception as e:
            log.warning(f"Lidarr connection test failed: {e}")
            return ConnectionResult(success=False, error=str(e) or "Unknown error")

    def get_root_folders(self) -> list[RootFolder]:
        return [
            RootFolder(
                id=f.get("id", 0),
                path=f.get("path", ""),
                free_space=f.get("freeSpace", 0) or 0,
            )
            for f in self._get_list("/rootfolder", "root folders")
        ]

    def get_quality_profiles(self) -> list[QualityProfile]:
        return [
            QualityProfile(id=p.get("id", 0), name=p.get("name", ""))
            for p in self._get_list("/qualityprofile", "quality profiles")
        ]

    def get_metadata_profiles(self) -> list[MetadataProfile]:
        return [
            MetadataProfile(id=p.get("id", 0), name=p.get("name", ""))
            for p in self._get_list("/metadataprofile", "metadata profiles")
        ]

    def search_artist(self, term: str) -> list[LidarrArtist]:
        """Lidarr's artist lookup; accepts free text or "mbid:<id>"."""
        resp = self._request("GET", "/artist/lookup", params={"term": term})
        if not resp.is_success:
            raise UpstreamError(
                f"Failed to search artist: {resp.reason_phrase}",
                status=resp.status_code,
            )
        results = [parse_lidarr_artist(a) for a in _json_list(resp)]
        log.debug(f"Lookup {term!r}: {len(results)} results")
        return results

    def get_artists(self) -> list[LidarrArtist]:
        return [parse_lidarr_artist(a) for a in self._get_list("/artist", "artists")]

    def find_artist(self, catalog_id: str) -> LidarrArtist | None:
        """Existing Lidarr entry whose foreign id matches, or None."""
        for artist in self.get_artists():
            if artist.foreign_artist_id == catalog_id:
                return artist
        return None

    def artist_exists(self, catalog_id: str) -> bool:
        """True if Lidarr already has the artist.

        Any failure while listing counts as "not present": a duplicate add
        attempt is preferable to blocking an approval.
        """
        try:
            return self.find_artist(catalog_id) is not None
        except Exception as e:
            log.warning(f"Could not list Lidarr artists, assuming absent: {e}")
            return False

    def resolve_add_target(self) -> AddTarget:
        """Saved defaults first, then the first option Lidarr reports for each."""
        root_folder = self.settings.get_setting(LIDARR_ROOT_FOLDER) or None
        quality_id = _parse_id(self.settings.get_setting(LIDARR_QUALITY_PROFILE))
        metadata_id = _parse_id(self.settings.get_setting(LIDARR_METADATA_PROFILE))

        if root_folder is None:
            folders = self.get_root_folders()
            root_folder = folders[0].path if folders else None
        if quality_id is None:
            profiles = self.get_quality_profiles()
            quality_id = profiles[0].id if profiles else None
        if metadata_id is None:
            meta_profiles = self.get_metadata_profiles()
            metadata_id = meta_profiles[0].id if meta_profiles else None

        if not root_folder or not quality_id or not metadata_id:
            missing = [
                name
                for name, value in (
                    ("root folder", root_folder),
                    ("quality profile", quality_id),
                    ("metadata profile", metadata_id),
                )
                if not value
            ]
            raise ConfigurationIncompleteError(
                f"Could not determine Lidarr configuration: missing {', '.join(missing)}"
            )
        return AddTarget(
            root_folder_path=root_folder,
            quality_profile_id=quality_id,
            metadata_profile_id=metadata_id,
        )

    def add_artist(self, catalog_id: str, kind: RequestType) -> LidarrArtist:
        """Create a monitored Lidarr artist for a catalog id and search for its albums."""
        self._connection()
        target = self.resolve_add_target()

        results = self.search_artist(f"mbid:{catalog_id}")
        if not results:
            log.debug(f"No results for mbid:{catalog_id}, retrying with bare id")
            results = self.search_artist(catalog_id)
        if not results:
            raise NotFoundUpstreamError(
                f"Artist not found in Lidarr lookup: {catalog_id}"
            )

        candidate = results[0]
        log.info(
            f"Adding {candidate.artist_name!r} ({kind}) to Lidarr: "
            f"root={target.root_folder_path} quality={target.quality_profile_id} "
            f"metadata={target.metadata_profile_id}"
        )
        resp = self._request(
            "POST",
            "/artist",
            json={
                **candidate.raw,
                "rootFolderPath": target.root_folder_path,
                "qualityProfileId": target.quality_profile_id,
                "metadataProfileId": target.metadata_profile_id,
                "monitored": True,
                "monitorNewItems": "all",
                "addOptions": {
                    "monitor": "all",
                    "searchForMissingAlbums": True,
                },
            },
        )
        if not resp.is_success:
            message = _error_message(
                resp, f"Failed to add artist: {resp.reason_phrase}"
            )
            raise UpstreamError(message, status=resp.status_code)

        added = parse_lidarr_artist(resp.json())
        log.info(f"Lidarr accepted {added.artist_name!r} as id={added.id}")
        return added
