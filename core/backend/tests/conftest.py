# minecraft-datapack-installer/core/backend/tests/conftest.py
import io
import json
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from datapack_installer.api_clients import CatalogClientConfig, VanillaTweaksClient
from datapack_installer.cache import ResponseCache
from datapack_installer.wings import DaemonResponse

BASE_URL = "https://vanillatweaks.test"


# ---------------------------------------------------------------------------
# Fake HTTP session (stands in for requests.Session)
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", json_data: Any = None):
        self.status_code = status_code
        if json_data is not None:
            content = json.dumps(json_data).encode("utf-8")
        self.content = content
        self.text = content.decode("utf-8", errors="replace")
        self.closed = False

    def json(self):
        return json.loads(self.content.decode("utf-8"))

    def iter_content(self, chunk_size: int = 8192):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True


@dataclass
class Call:
    method: str
    url: str
    kwargs: Dict[str, Any] = field(default_factory=dict)


class FakeSession:
    """Routes (METHOD, url) to canned responses, exceptions or callables."""

    def __init__(self, routes: Optional[Dict] = None):
        self.headers: Dict[str, str] = {}
        self.routes = dict(routes or {})
        self.calls: List[Call] = []

    def _dispatch(self, method: str, url: str, **kwargs):
        self.calls.append(Call(method, url, kwargs))
        route = self.routes.get((method, url))
        if route is None:
            return FakeResponse(404, b"not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(**kwargs)
        return route

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, **kwargs)

    def request(self, method, url, **kwargs):
        return self._dispatch(method, url, **kwargs)

    def calls_for(self, method: str, url: Optional[str] = None) -> List[Call]:
        return [c for c in self.calls if c.method == method and (url is None or c.url == url)]


# ---------------------------------------------------------------------------
# Fake Wings file API bound to one server
# ---------------------------------------------------------------------------


def _norm(path: str) -> str:
    return "/" + path.strip("/") if path.strip("/") else "/"


def _parent(path: str) -> str:
    return _norm(path.rsplit("/", 1)[0])


class FakeServerFiles:
    """In-memory server volume with the Wings file API surface."""

    def __init__(self, server_uuid: str = "2f3ff273-dc88-4bee-931c-e126d8440605"):
        self.server_uuid = server_uuid
        self.dirs = {"/"}
        self.files: Dict[str, bytes] = {}
        self.calls: List[Call] = []
        self.unlistable = set()
        self.read_only = set()
        self.write_errors: Dict[str, str] = {}

    def mkdirs(self, path: str) -> None:
        parts = [p for p in path.strip("/").split("/") if p]
        for i in range(1, len(parts) + 1):
            self.dirs.add("/" + "/".join(parts[:i]))

    def add_file(self, path: str, content: bytes = b"") -> None:
        path = _norm(path)
        self.mkdirs(_parent(path))
        self.files[path] = content

    def add_world(self, name: str) -> None:
        self.add_file(f"/{name}/level.dat", b"\x0a")

    def list_directory(self, path: str) -> DaemonResponse:
        path = _norm(path)
        self.calls.append(Call("list_directory", path))
        if path in self.unlistable:
            return DaemonResponse(success=False, error="permission denied", status_code=403)
        if path not in self.dirs:
            return DaemonResponse(success=False, error="The requested resource was not found on this instance.", status_code=404)

        entries = [
            {"name": d.rsplit("/", 1)[1], "directory": True, "file": False}
            for d in sorted(self.dirs) if d != "/" and _parent(d) == path
        ]
        entries += [
            {"name": f.rsplit("/", 1)[1], "directory": False, "file": True, "size": len(c)}
            for f, c in sorted(self.files.items()) if _parent(f) == path
        ]
        return DaemonResponse(success=True, data=entries, status_code=200)

    def create_directory(self, name: str, parent_path: str) -> DaemonResponse:
        parent_path = _norm(parent_path)
        self.calls.append(Call("create_directory", parent_path, {"name": name}))
        path = _norm(f"{parent_path}/{name}")
        if parent_path not in self.dirs:
            return DaemonResponse(success=False, error="parent directory does not exist", status_code=404)
        if path in self.dirs:
            return DaemonResponse(success=False, error="directory already exists", status_code=400)
        if parent_path in self.read_only:
            return DaemonResponse(success=False, error="permission denied", status_code=403)
        self.dirs.add(path)
        return DaemonResponse(success=True, status_code=204)

    def write_file(self, path: str, content: bytes) -> DaemonResponse:
        self.calls.append(Call("write_file", path, {"size": len(content)}))
        path = _norm(path)
        if path in self.write_errors:
            return DaemonResponse(success=False, error=self.write_errors[path], status_code=500)
        if _parent(path) not in self.dirs:
            return DaemonResponse(success=False, error="parent directory does not exist", status_code=404)
        self.files[path] = content
        return DaemonResponse(success=True, status_code=204)

    def calls_named(self, name: str) -> List[Call]:
        return [c for c in self.calls if c.method == name]


# ---------------------------------------------------------------------------
# Helpers and fixtures
# ---------------------------------------------------------------------------


def make_zip(entries: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResponseCache(clock=clock)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session, cache):
    return VanillaTweaksClient(CatalogClientConfig(base_url=BASE_URL), cache=cache, session=session)


@pytest.fixture
def files():
    return FakeServerFiles()


@pytest.fixture
def sample_catalog():
    return {
        "versionName": "1.21",
        "categories": [
            {
                "category": "Quality of Life",
                "packs": [
                    {"name": "armor_stand_flip", "display": "Armor Stand Flip", "version": "1.0.0",
                     "description": "Flip armor stands", "incompatible": [], "lastupdated": 1700000000},
                    {"name": "graves", "display": "Graves", "version": "2.1.0", "video": "https://x.test/v"},
                ],
            },
            {
                "name": "Adventure/Utility",
                "packs": [{"name": "coordinates_hud", "display": "Coordinates HUD", "experimental": True}],
            },
        ],
        "unknownField": {"ignored": True},
    }
