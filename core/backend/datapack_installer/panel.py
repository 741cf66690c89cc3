"""
Panel Records

Resolves panel server identifiers to server and node records, and builds
Wings connections for them.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .errors import NotFound
from .wings import NodeConnection, ServerFiles, WingsClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerRecord:
    uuid_short: str
    uuid: str
    node_id: str
    name: Optional[str] = None


class ServerRegistry:
    """Lookup of servers and nodes configured in config.yaml"""

    def __init__(self, servers: Dict[str, Dict], nodes: Dict[str, Dict],
                 client_factory: Callable[[NodeConnection], WingsClient] = WingsClient):
        """
        Args:
            servers: {uuid_short: {uuid, node_id, name?}}
            nodes: {node_id: {fqdn, daemon_token, scheme?, daemon_listen?, timeout?}}
            client_factory: Builds a Wings client for a node
        """
        self.servers = servers or {}
        self.nodes = nodes or {}
        self.client_factory = client_factory

    @classmethod
    def from_config(cls, config: Dict, **kwargs) -> "ServerRegistry":
        return cls(config.get('servers', {}), config.get('nodes', {}), **kwargs)

    def get_server(self, uuid_short: str) -> ServerRecord:
        server = self.servers.get(uuid_short)
        if not server:
            raise NotFound("Server not found")
        return ServerRecord(
            uuid_short=uuid_short,
            uuid=server.get('uuid', uuid_short),
            node_id=str(server.get('node_id', '')),
            name=server.get('name'),
        )

    def get_node(self, node_id: str) -> NodeConnection:
        node = self.nodes.get(node_id)
        if node is None:
            # YAML may have parsed numeric node ids as ints
            node = next((n for key, n in self.nodes.items() if str(key) == str(node_id)), None)
        if not node:
            raise NotFound("Node not found")
        return NodeConnection.from_dict(node)

    def resolve(self, uuid_short: str) -> Tuple[ServerRecord, NodeConnection]:
        server = self.get_server(uuid_short)
        return server, self.get_node(server.node_id)

    def files_for(self, uuid_short: str) -> Tuple[ServerRecord, ServerFiles]:
        """
        Build the Wings file API for a server

        Raises:
            NotFound: Unknown server or node
        """
        server, node = self.resolve(uuid_short)
        return server, ServerFiles(self.client_factory(node), server.uuid)
