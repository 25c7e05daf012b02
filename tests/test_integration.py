"""Tests for integration.py -- Lidarr settings display, save and test."""

from unittest.mock import MagicMock

import pytest

from recordstore.auth import Session
from recordstore.errors import (
    AuthenticationRequiredError,
    PermissionDeniedError,
    UpstreamError,
)
from recordstore.integration import IntegrationSettings, mask_api_key
from recordstore.models import (
    API_KEY_MASK,
    ConnectionResult,
    MetadataProfile,
    QualityProfile,
    Role,
    RootFolder,
)
from recordstore.store import RecordStoreDB

ADMIN = Session("root", role=Role.ADMIN)


@pytest.fixture
def db(tmp_path):
    sdb = RecordStoreDB(tmp_path / "test.db")
    yield sdb
    sdb.close()


@pytest.fixture
def lidarr():
    return MagicMock()


@pytest.fixture
def integration(db, lidarr):
    return IntegrationSettings(db, lidarr)


class TestMask:
    def test_shows_last_four(self):
        assert mask_api_key("abcdef123456") == API_KEY_MASK + "3456"

    def test_empty(self):
        assert mask_api_key("") == ""


class TestShowAndSave:
    """Test masked display and save semantics."""

    def test_show_masks_key(self, integration):
        integration.save(ADMIN, url="http://lidarr:8686", api_key="abcdef123456")
        shown = integration.show(ADMIN)
        assert shown["lidarr_url"] == "http://lidarr:8686"
        assert shown["lidarr_api_key"] == API_KEY_MASK + "3456"
        assert "abcdef" not in shown["lidarr_api_key"]

    def test_masked_key_echo_keeps_stored_key(self, integration, db):
        integration.save(ADMIN, api_key="abcdef123456")
        integration.save(ADMIN, url="http://new", api_key=integration.show(ADMIN)["lidarr_api_key"])
        assert db.get_setting("lidarr_api_key") == "abcdef123456"
        assert db.get_setting("lidarr_url") == "http://new"

    def test_new_key_replaces(self, integration, db):
        integration.save(ADMIN, api_key="first-key")
        integration.save(ADMIN, api_key="second-key")
        assert db.get_setting("lidarr_api_key") == "second-key"

    def test_omitted_values_unchanged(self, integration, db):
        integration.save(ADMIN, root_folder="/music", quality_profile=3, metadata_profile=5)
        integration.save(ADMIN, url="http://x")
        assert db.get_setting("lidarr_root_folder") == "/music"
        assert db.get_setting("lidarr_quality_profile") == "3"
        assert db.get_setting("lidarr_metadata_profile") == "5"

    def test_show_only_lidarr_keys(self, integration, db):
        db.set_setting("unrelated", "x")
        integration.save(ADMIN, url="http://x")
        assert set(integration.show(ADMIN)) == {"lidarr_url"}

    def test_non_admin_rejected(self, integration, db):
        with pytest.raises(PermissionDeniedError):
            integration.show(Session("alice"))
        with pytest.raises(PermissionDeniedError):
            integration.save(Session("alice"), url="http://x")
        assert db.get_setting("lidarr_url") is None

    def test_anonymous_rejected(self, integration):
        with pytest.raises(AuthenticationRequiredError):
            integration.test(None)


class TestConnectionTest:
    """Test connection test result and option lists."""

    def test_failure_has_no_option_lists(self, integration, lidarr):
        lidarr.test_connection.return_value = ConnectionResult(
            success=False, error="Lidarr is not configured"
        )
        assert integration.test(ADMIN) == {
            "success": False,
            "error": "Lidarr is not configured",
        }
        lidarr.get_root_folders.assert_not_called()

    def test_success_includes_options(self, integration, lidarr):
        lidarr.test_connection.return_value = ConnectionResult(success=True, version="2.3.3")
        lidarr.get_root_folders.return_value = [RootFolder(1, "/music", 100)]
        lidarr.get_quality_profiles.return_value = [QualityProfile(3, "Lossless")]
        lidarr.get_metadata_profiles.return_value = [MetadataProfile(5, "Standard")]

        result = integration.test(ADMIN)

        assert result["success"] is True
        assert result["version"] == "2.3.3"
        assert result["rootFolders"] == [{"id": 1, "path": "/music", "freeSpace": 100}]
        assert result["qualityProfiles"] == [{"id": 3, "name": "Lossless"}]
        assert result["metadataProfiles"] == [{"id": 5, "name": "Standard"}]

    def test_each_option_list_degrades_independently(self, integration, lidarr):
        lidarr.test_connection.return_value = ConnectionResult(success=True, version="2")
        lidarr.get_root_folders.side_effect = UpstreamError("nope", status=500)
        lidarr.get_quality_profiles.return_value = [QualityProfile(3, "Lossless")]
        lidarr.get_metadata_profiles.side_effect = RuntimeError("boom")

        result = integration.test(ADMIN)

        assert result["rootFolders"] == []
        assert result["qualityProfiles"] == [{"id": 3, "name": "Lossless"}]
        assert result["metadataProfiles"] == []
