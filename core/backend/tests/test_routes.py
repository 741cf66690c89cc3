"""HTTP tests for the datapack installer router using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from conftest import BASE_URL, FakeResponse, make_zip
from datapack_installer.activity import MemoryActivitySink
from datapack_installer.app import create_app
from datapack_installer.cache import url_tag
from datapack_installer.config import TRANSPARENT_PNG
from datapack_installer.panel import ServerRecord, ServerRegistry

UUID_SHORT = "2f3ff273"
PREFIX = f"/api/user/servers/{UUID_SHORT}/addons/datapackinstaller"
CATALOG_URL = f"{BASE_URL}/assets/resources/json/1.21/dpcategories.json"
ICON_URL = f"{BASE_URL}/assets/resources/icons/datapacks/1.21/graves.png"


class FakeRegistry(ServerRegistry):
    """Registry whose servers all share one in-memory file volume"""

    def __init__(self, files):
        super().__init__(
            {UUID_SHORT: {"uuid": files.server_uuid, "node_id": 1}},
            {1: {"fqdn": "node1.test", "daemon_token": "t"}},
        )
        self.files = files

    def files_for(self, uuid_short):
        server, _ = self.resolve(uuid_short)
        return server, self.files


@pytest.fixture
def activity():
    return MemoryActivitySink()


@pytest.fixture
def api(client, files, activity):
    app = create_app(registry=FakeRegistry(files), catalog_client=client,
                     activity=activity, sleep=lambda seconds: None)
    return TestClient(app)


class TestHealth:

    def test_health(self, api):
        assert api.get("/health").json()["ok"] is True


class TestServerLookup:

    @pytest.mark.parametrize("method, path", [
        ("get", "/worlds"),
        ("get", "/detect-version"),
        ("get", "/packs"),
        ("get", "/image?pack=graves"),
    ])
    def test_unknown_server(self, api, method, path):
        response = getattr(api, method)(f"/api/user/servers/deadbeef/addons/datapackinstaller{path}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Server not found",
                                   "error_code": "NOT_FOUND"}

    def test_unknown_node(self, files):
        registry = ServerRegistry({UUID_SHORT: {"uuid": "u", "node_id": 9}}, {})
        api = TestClient(create_app(registry=registry))
        response = api.get(f"{PREFIX}/worlds")
        assert response.status_code == 404
        assert response.json()["message"] == "Node not found"


class TestWorlds:

    def test_lists_worlds(self, api, files):
        files.add_world("world_nether")
        files.add_world("world")
        files.mkdirs("/plugins")

        response = api.get(f"{PREFIX}/worlds")

        assert response.status_code == 200
        assert response.json()["data"]["worlds"] == [
            {"name": "world", "path": "/world"},
            {"name": "world_nether", "path": "/world_nether"},
        ]

    def test_root_failure(self, api, files):
        files.unlistable.add("/")
        response = api.get(f"{PREFIX}/worlds")
        assert response.status_code == 500
        assert response.json()["error_code"] == "LIST_ERROR"


class TestDetectVersion:

    def test_detected(self, api, files):
        files.mkdirs("/versions/1.20.4")
        body = api.get(f"{PREFIX}/detect-version").json()
        assert body["success"] is True
        assert body["data"] == {"version": "1.20"}

    def test_missing_folder(self, api):
        body = api.get(f"{PREFIX}/detect-version").json()
        assert body["success"] is True
        assert body["data"] == {"version": None}


class TestPacks:

    def test_fetch_then_cached(self, api, session, sample_catalog):
        session.routes[("GET", CATALOG_URL)] = FakeResponse(json_data=sample_catalog)

        first = api.get(f"{PREFIX}/packs", params={"mcVersion": "1.21", "type": "datapacks"})
        second = api.get(f"{PREFIX}/packs", params={"mcVersion": "1.21", "type": "datapacks"})

        assert first.json()["message"] == "Packs fetched"
        assert second.json()["message"] == "Packs fetched (cached)"
        assert second.json()["data"] == sample_catalog
        assert len(session.calls_for("GET", CATALOG_URL)) == 1

    def test_forwards_user_agent(self, api, session, sample_catalog):
        session.routes[("GET", CATALOG_URL)] = FakeResponse(json_data=sample_catalog)
        api.get(f"{PREFIX}/packs", headers={"User-Agent": "PanelBrowser/1.0"})
        assert session.calls[0].kwargs["headers"]["User-Agent"] == "PanelBrowser/1.0"

    def test_upstream_failure(self, api, session):
        session.routes[("GET", CATALOG_URL)] = FakeResponse(503, b"busy")
        response = api.get(f"{PREFIX}/packs")
        assert response.status_code == 500
        assert response.json()["error_code"] == "FETCH_ERROR"


class TestImage:

    def test_missing_pack_name(self, api):
        response = api.get(f"{PREFIX}/image")
        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_PACK_NAME"

    def test_serves_icon_with_etag(self, api, session):
        session.routes[("GET", ICON_URL)] = FakeResponse(200, b"\x89PNG icon")

        response = api.get(f"{PREFIX}/image", params={"pack": "graves"})

        assert response.status_code == 200
        assert response.content == b"\x89PNG icon"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["etag"] == f'"{url_tag(ICON_URL)}"'
        assert response.headers["cache-control"] == "public, max-age=86400"

    def test_matching_etag_is_304(self, api, session):
        response = api.get(f"{PREFIX}/image", params={"pack": "graves"},
                           headers={"If-None-Match": f'"{url_tag(ICON_URL)}"'})
        assert response.status_code == 304
        assert session.calls == []

    def test_missing_icon_is_placeholder(self, api):
        response = api.get(f"{PREFIX}/image", params={"pack": "graves"})
        assert response.status_code == 200
        assert response.content == TRANSPARENT_PNG
        assert response.headers["cache-control"] == "public, max-age=3600"


class TestInstall:

    def _serve(self, session, archive):
        session.routes[("POST", f"{BASE_URL}/assets/server/zipdatapacks.php")] = FakeResponse(
            json_data={"status": "success", "link": "/download/VanillaTweaks_d1.zip"})
        session.routes[("GET", f"{BASE_URL}/download/VanillaTweaks_d1.zip")] = FakeResponse(200, archive)

    def test_install(self, api, session, files, activity):
        files.add_world("world")
        self._serve(session, make_zip({"armor_stand.json": b"{}"}))

        response = api.post(f"{PREFIX}/install", json={
            "mcVersion": "1.21", "pack_type": "datapacks",
            "packs": {"Quality of Life": ["armor_stand_flip"]}, "world": "world",
        })

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Datapacks installed successfully"}
        assert files.files["/world/datapacks/armor_stand.json"] == b"{}"
        assert activity.records[0].server_uuid == files.server_uuid
        assert activity.records[0].node_id == "1"

    def test_local_failure_uses_envelope(self, api, session, files, monkeypatch):
        files.add_world("world")
        self._serve(session, make_zip({"a.json": b"{}"}))

        def no_temp_dir(*args, **kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("datapack_installer.installer.tempfile.TemporaryDirectory", no_temp_dir)

        response = api.post(f"{PREFIX}/install", json={"mcVersion": "1.21", "packs": {"a": ["b"]}})

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert response.json()["error_code"] == "INSTALL_ERROR"
        assert "No space left on device" in response.json()["message"]

    @pytest.mark.parametrize("body", [
        {"pack_type": "datapacks", "packs": {"a": ["b"]}},
        {"mcVersion": "1.21", "packs": {}},
        {"mcVersion": "1.21", "packs": "not-a-mapping"},
    ])
    def test_invalid_request(self, api, session, body):
        response = api.post(f"{PREFIX}/install", json=body)
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error_code"] == "INVALID_REQUEST"
        assert session.calls == []

    def test_upstream_refusal(self, api, session):
        session.routes[("POST", f"{BASE_URL}/assets/server/zipdatapacks.php")] = FakeResponse(
            json_data={"status": "error"})

        response = api.post(f"{PREFIX}/install", json={"mcVersion": "1.21", "packs": {"a": ["b"]}})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to generate pack"
