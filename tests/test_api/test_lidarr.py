"""Tests for api/lidarr.py -- Lidarr client with a fake Lidarr instance."""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from recordstore.api.lidarr import LidarrClient
from recordstore.errors import (
    ConfigurationIncompleteError,
    NotConfiguredError,
    NotFoundUpstreamError,
    UpstreamError,
)
from recordstore.models import RequestType

MBID = "a74b1b7f-71a5-4011-9441-d0b5e4122711"


class FakeSettings(dict):
    def get_setting(self, key):
        return self.get(key)


class FakeLidarr:
    """Routes requests by (method, path) to canned responses and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response) -> None:
        self.routes[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "no route"})
        if callable(route):
            return route(request)
        return route

    def posted(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]


def _settings(**extra) -> FakeSettings:
    return FakeSettings(
        lidarr_url="http://lidarr.test:8686/",
        lidarr_api_key="secret-key-1234",
        **extra,
    )


def _client(fake: FakeLidarr, settings: FakeSettings | None = None) -> LidarrClient:
    http = httpx.Client(transport=httpx.MockTransport(fake))
    return LidarrClient(settings if settings is not None else _settings(), client=http)


def _options(fake: FakeLidarr, folders=None, qualities=None, metas=None) -> None:
    fake.on("GET", "/api/v1/rootfolder", httpx.Response(
        200, json=folders if folders is not None else [{"id": 1, "path": "/music", "freeSpace": 10}]
    ))
    fake.on("GET", "/api/v1/qualityprofile", httpx.Response(
        200, json=qualities if qualities is not None else [{"id": 3, "name": "Lossless"}]
    ))
    fake.on("GET", "/api/v1/metadataprofile", httpx.Response(
        200, json=metas if metas is not None else [{"id": 5, "name": "Standard"}]
    ))


def _lookup(results_by_term: dict[str, list]):
    def handler(request):
        term = request.url.params["term"]
        return httpx.Response(200, json=results_by_term.get(term, []))

    return handler


LOOKUP_RESULT = {"artistName": "Radiohead", "foreignArtistId": MBID, "images": []}


class TestNotConfigured:
    """Test that a missing URL or key short-circuits before any request."""

    @pytest.mark.parametrize(
        "settings",
        [
            FakeSettings(),
            FakeSettings(lidarr_url="http://lidarr.test"),
            FakeSettings(lidarr_api_key="k"),
        ],
    )
    def test_operations_raise_without_network(self, settings):
        fake = FakeLidarr()
        client = _client(fake, settings)
        with pytest.raises(NotConfiguredError):
            client.get_root_folders()
        with pytest.raises(NotConfiguredError):
            client.search_artist("x")
        with pytest.raises(NotConfiguredError):
            client.add_artist(MBID, RequestType.ARTIST)
        assert fake.requests == []

    def test_connection_test_reports_not_configured(self):
        result = _client(FakeLidarr(), FakeSettings()).test_connection()
        assert result.success is False
        assert "not configured" in result.error


class TestRequestShape:
    """Test URL, API prefix and auth header construction."""

    def test_url_and_headers(self):
        fake = FakeLidarr()
        _options(fake)
        _client(fake).get_root_folders()
        req = fake.requests[0]
        assert str(req.url) == "http://lidarr.test:8686/api/v1/rootfolder"
        assert req.headers["X-Api-Key"] == "secret-key-1234"
        assert req.headers["Content-Type"] == "application/json"

    def test_settings_read_fresh_on_each_call(self):
        fake = FakeLidarr()
        _options(fake)
        settings = _settings()
        client = _client(fake, settings)
        client.get_root_folders()
        settings["lidarr_api_key"] = "rotated-key"
        client.get_root_folders()
        assert fake.requests[1].headers["X-Api-Key"] == "rotated-key"


class TestTestConnection:
    """Test the /system/status probe."""

    def test_success_returns_version(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/system/status", httpx.Response(200, json={"version": "2.3.3"}))
        result = _client(fake).test_connection()
        assert result.success is True
        assert result.version == "2.3.3"

    def test_http_error_returns_failure(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/system/status", httpx.Response(401))
        result = _client(fake).test_connection()
        assert result.success is False
        assert result.error == "HTTP 401: Unauthorized"

    def test_network_error_never_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        client = LidarrClient(_settings(), client=httpx.Client(transport=httpx.MockTransport(handler)))
        result = client.test_connection()
        assert result.success is False
        assert "connection refused" in result.error


class TestOptionLists:
    def test_parses_options(self):
        fake = FakeLidarr()
        _options(fake)
        client = _client(fake)
        assert client.get_root_folders()[0].path == "/music"
        assert client.get_quality_profiles()[0].id == 3
        assert client.get_metadata_profiles()[0].name == "Standard"

    def test_non_2xx_raises_upstream_error(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/qualityprofile", httpx.Response(500))
        with pytest.raises(UpstreamError) as exc_info:
            _client(fake).get_quality_profiles()
        assert exc_info.value.status == 500


class TestAddArtist:
    """Test lookup fallback, target resolution and the creation call."""

    def _created(self, request):
        body = json.loads(request.content)
        return httpx.Response(201, json={**body, "id": 17})

    def test_fallback_to_bare_id(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({MBID: [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", self._created)

        added = _client(fake).add_artist(MBID, RequestType.ARTIST)

        terms = [r.url.params["term"] for r in fake.requests if r.url.path.endswith("/lookup")]
        assert terms == [f"mbid:{MBID}", MBID]
        assert added.id == 17
        assert added.foreign_artist_id == MBID

    def test_prefixed_hit_skips_fallback(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", self._created)

        _client(fake).add_artist(MBID, RequestType.ARTIST)

        lookups = [r for r in fake.requests if r.url.path.endswith("/lookup")]
        assert len(lookups) == 1

    def test_post_body_uses_defaults_and_monitoring(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", self._created)

        _client(fake).add_artist(MBID, RequestType.ARTIST)

        body = json.loads(fake.posted()[0].content)
        assert body["artistName"] == "Radiohead"
        assert body["foreignArtistId"] == MBID
        assert body["rootFolderPath"] == "/music"
        assert body["qualityProfileId"] == 3
        assert body["metadataProfileId"] == 5
        assert body["monitored"] is True
        assert body["monitorNewItems"] == "all"
        assert body["addOptions"] == {"monitor": "all", "searchForMissingAlbums": True}

    def test_saved_defaults_skip_option_lookup(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", self._created)
        settings = _settings(
            lidarr_root_folder="/data/music",
            lidarr_quality_profile="7",
            lidarr_metadata_profile="9",
        )

        _client(fake, settings).add_artist(MBID, RequestType.ALBUM)

        paths = [r.url.path for r in fake.requests]
        assert "/api/v1/rootfolder" not in paths
        assert "/api/v1/qualityprofile" not in paths
        body = json.loads(fake.posted()[0].content)
        assert body["rootFolderPath"] == "/data/music"
        assert body["qualityProfileId"] == 7
        assert body["metadataProfileId"] == 9

    def test_empty_root_folders_is_configuration_incomplete(self):
        fake = FakeLidarr()
        _options(fake, folders=[])
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", self._created)

        with pytest.raises(ConfigurationIncompleteError, match="root folder"):
            _client(fake).add_artist(MBID, RequestType.ARTIST)
        assert fake.posted() == []

    def test_not_found_for_both_forms(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({}))

        with pytest.raises(NotFoundUpstreamError):
            _client(fake).add_artist(MBID, RequestType.ARTIST)
        assert fake.posted() == []

    def test_rejection_carries_upstream_message(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", httpx.Response(
            400, json={"message": "This artist has already been added"}
        ))

        with pytest.raises(UpstreamError, match="already been added") as exc_info:
            _client(fake).add_artist(MBID, RequestType.ARTIST)
        assert exc_info.value.status == 400

    def test_rejection_with_validation_list(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", httpx.Response(
            400, json=[{"propertyName": "Path", "errorMessage": "Path is invalid"}]
        ))

        with pytest.raises(UpstreamError, match="Path is invalid"):
            _client(fake).add_artist(MBID, RequestType.ARTIST)

    def test_rejection_without_body_uses_reason(self):
        fake = FakeLidarr()
        _options(fake)
        fake.on("GET", "/api/v1/artist/lookup", _lookup({f"mbid:{MBID}": [LOOKUP_RESULT]}))
        fake.on("POST", "/api/v1/artist", httpx.Response(500, content=b""))

        with pytest.raises(UpstreamError, match="Failed to add artist: Internal Server Error"):
            _client(fake).add_artist(MBID, RequestType.ARTIST)


class TestArtistExists:
    """Test existence checks against the Lidarr artist list."""

    def test_true_when_foreign_id_matches(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/artist", httpx.Response(
            200, json=[{"id": 4, "artistName": "Radiohead", "foreignArtistId": MBID}]
        ))
        assert _client(fake).artist_exists(MBID) is True

    def test_false_when_absent(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/artist", httpx.Response(
            200, json=[{"id": 4, "artistName": "Other", "foreignArtistId": "other"}]
        ))
        assert _client(fake).artist_exists(MBID) is False

    def test_false_when_listing_fails(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/artist", httpx.Response(500))
        assert _client(fake).artist_exists(MBID) is False

    def test_false_when_not_configured(self):
        assert _client(FakeLidarr(), FakeSettings()).artist_exists(MBID) is False

    def test_false_on_transport_error(self):
        http = MagicMock()
        http.request.side_effect = httpx.ReadTimeout("timed out")
        client = LidarrClient(_settings(), client=http)
        assert client.artist_exists(MBID) is False

    def test_find_artist_returns_entry(self):
        fake = FakeLidarr()
        fake.on("GET", "/api/v1/artist", httpx.Response(
            200, json=[{"id": 4, "artistName": "Radiohead", "foreignArtistId": MBID}]
        ))
        found = _client(fake).find_artist(MBID)
        assert found is not None
        assert found.id == 4
