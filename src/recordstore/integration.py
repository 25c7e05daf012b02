"""Lidarr integration settings: masked display, save, and connection test."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from .auth import Session, require_admin
from .models import (
    API_KEY_MASK,
    LIDARR_API_KEY,
    LIDARR_METADATA_PROFILE,
    LIDARR_QUALITY_PROFILE,
    LIDARR_ROOT_FOLDER,
    LIDARR_SETTINGS_PREFIX,
    LIDARR_URL,
)

if TYPE_CHECKING:
    from .api.lidarr import LidarrClient
    from .store import RecordStoreDB

log = logger.bind(component="settings")


def mask_api_key(api_key: str) -> str:
    """Only the last 4 characters of the key are ever shown."""
    if not api_key:
        return ""
    return API_KEY_MASK + api_key[-4:]


class IntegrationSettings:
    def __init__(self, store: RecordStoreDB, lidarr: LidarrClient) -> None:
        self.store = store
        self.lidarr = lidarr

    def show(self, session: Session | None) -> dict[str, str]:
        """Saved lidarr_* settings with the API key masked."""
        require_admin(session)
        saved = self.store.list_settings(LIDARR_SETTINGS_PREFIX)
        if saved.get(LIDARR_API_KEY):
            saved[LIDARR_API_KEY] = mask_api_key(saved[LIDARR_API_KEY])
        return saved

    def save(
        self,
        session: Session | None,
        url: str | None = None,
        api_key: str | None = None,
        root_folder: str | None = None,
        quality_profile: int | str | None = None,
        metadata_profile: int | str | None = None,
    ) -> None:
        """Upsert every value that was given.

        An api_key that still carries the mask prefix is the value shown by
        show() echoed back, so the stored key is left alone.
        """
        require_admin(session)
        if url is not None:
            self.store.set_setting(LIDARR_URL, url)
        if api_key is not None and not api_key.startswith(API_KEY_MASK[:4]):
            self.store.set_setting(LIDARR_API_KEY, api_key)
        if root_folder is not None:
            self.store.set_setting(LIDARR_ROOT_FOLDER, root_folder)
        if quality_profile is not None:
            self.store.set_setting(LIDARR_QUALITY_PROFILE, str(quality_profile))
        if metadata_profile is not None:
            self.store.set_setting(LIDARR_METADATA_PROFILE, str(metadata_profile))
        log.info("Lidarr settings saved")

    def test(self, session: Session | None) -> dict[str, Any]:
        """Connection test; on success also the three option lists.

        Each option list degrades to [] on its own failure.
        """
        require_admin(session)
        result = self.lidarr.test_connection()
        data: dict[str, Any] = result.to_dict()
        if not result.success:
            log.warning(f"Lidarr connection test failed: {result.error}")
            return data

        log.info(f"Lidarr connection OK (version {result.version})")
        for key, fetch in (
            ("rootFolders", self.lidarr.get_root_folders),
            ("qualityProfiles", self.lidarr.get_quality_profiles),
            ("metadataProfiles", self.lidarr.get_metadata_profiles),
        ):
            try:
                data[key] = [item.to_dict() for item in fetch()]
            except Exception as e:
                log.warning(f"Could not fetch {key}: {e}")
                data[key] = []
        return data
