"""
Wings Daemon Client

Handles communication with the Wings file daemon that performs file I/O on
the game server's volume.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import WINGS_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class DaemonResponse:
    """Outcome of a single Wings call"""

    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    def entries(self) -> List[Dict]:
        """Directory entries from a list-directory response."""
        if isinstance(self.data, dict):
            return self.data.get("contents") or []
        return self.data or []


@dataclass(frozen=True)
class NodeConnection:
    """Connection settings for one Wings node"""

    fqdn: str
    daemon_token: str
    scheme: str = "https"
    daemon_listen: int = 8080
    timeout: float = WINGS_TIMEOUT
    extra_headers: Dict[str, str] = field(default_factory=dict)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.fqdn}:{self.daemon_listen}"

    @classmethod
    def from_dict(cls, node: Dict) -> "NodeConnection":
        return cls(
            fqdn=node["fqdn"],
            daemon_token=node["daemon_token"],
            scheme=node.get("scheme", "https"),
            daemon_listen=int(node.get("daemon_listen", 8080)),
            timeout=float(node.get("timeout", WINGS_TIMEOUT)),
        )


class WingsClient:
    """Client for the Wings server file API"""

    def __init__(self, node: NodeConnection, session: Optional[requests.Session] = None):
        """
        Initialize Wings API client

        Args:
            node: Node connection settings
            session: Optional pre-built session (tests inject fakes here)
        """
        self.node = node
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {node.daemon_token}',
            'Accept': 'application/json',
        })

    def _url(self, server_uuid: str, endpoint: str) -> str:
        return f"{self.node.base_url}/api/servers/{server_uuid}/files/{endpoint}"

    def _request(self, method: str, url: str, **kwargs) -> DaemonResponse:
        """
        Perform a request and fold the outcome into a DaemonResponse

        Wings errors come back as {"error": "..."}; transport errors become
        unsuccessful responses carrying the exception text.
        """
        try:
            response = self.session.request(method, url, timeout=self.node.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Wings request failed: {method} {url}: {e}")
            return DaemonResponse(success=False, error=str(e))

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = response.text

        if 200 <= response.status_code < 300:
            return DaemonResponse(success=True, data=data, status_code=response.status_code)

        error = None
        if isinstance(data, dict):
            error = data.get("error")
            if not error and data.get("errors"):
                error = data["errors"][0].get("detail")
        if not error:
            error = f"HTTP {response.status_code}"

        logger.debug(f"Wings returned {response.status_code} for {method} {url}: {error}")
        return DaemonResponse(success=False, data=data, error=error, status_code=response.status_code)

    def list_directory(self, server_uuid: str, path: str) -> DaemonResponse:
        """
        List a directory on the server volume

        Args:
            server_uuid: Full server UUID
            path: Directory path relative to the volume root

        Returns:
            DaemonResponse whose entries() are Wings stat dicts (name, directory, file, ...)
        """
        return self._request('GET', self._url(server_uuid, 'list-directory'),
                             params={'directory': path})

    def create_directory(self, server_uuid: str, name: str, parent_path: str) -> DaemonResponse:
        """
        Create a single directory segment under parent_path

        Args:
            server_uuid: Full server UUID
            name: Directory name (one segment)
            parent_path: Existing parent directory
        """
        return self._request('POST', self._url(server_uuid, 'create-directory'),
                             json={'name': name, 'path': parent_path})

    def write_file(self, server_uuid: str, path: str, content: bytes) -> DaemonResponse:
        """
        Write raw bytes to a file, replacing it if present

        Args:
            server_uuid: Full server UUID
            path: File path relative to the volume root
            content: File contents
        """
        url = f"{self._url(server_uuid, 'write')}?file={quote(path)}"
        return self._request('POST', url, data=content,
                             headers={'Content-Type': 'application/octet-stream'})


class ServerFiles:
    """WingsClient bound to one server UUID"""

    def __init__(self, client: WingsClient, server_uuid: str):
        self.client = client
        self.server_uuid = server_uuid

    def list_directory(self, path: str) -> DaemonResponse:
        return self.client.list_directory(self.server_uuid, path)

    def create_directory(self, name: str, parent_path: str) -> DaemonResponse:
        return self.client.create_directory(self.server_uuid, name, parent_path)

    def write_file(self, path: str, content: bytes) -> DaemonResponse:
        return self.client.write_file(self.server_uuid, path, content)
