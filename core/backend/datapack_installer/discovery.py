"""
World Discovery

Finds Minecraft worlds and the server's Minecraft version by inspecting
the server volume through Wings.
"""

import logging
import re
from typing import Dict, List, Optional

from .config import VERSIONS_DIR, WORLD_MARKER
from .deployment import join_remote_path
from .errors import RemoteDaemonError
from .models import World
from .wings import ServerFiles

logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r'^(\d+\.\d+)')


def is_directory(entry: Dict) -> bool:
    return entry.get('directory', False) is True


def world_sort_key(world: World):
    # "world" is the default level-name, always listed first
    return (world.name != 'world', world.name)


class WorldDiscovery:
    """Read-only inspection of a server volume"""

    def __init__(self, files: ServerFiles):
        self.files = files

    def list_worlds(self, remote_root: str = '/') -> List[World]:
        """
        List world directories directly under remote_root

        A directory is a world if it holds a regular file named level.dat.
        Directories that can't be listed are skipped.

        Args:
            remote_root: Directory to scan

        Returns:
            Worlds, 'world' first, the rest sorted by name

        Raises:
            RemoteDaemonError: remote_root itself couldn't be listed
        """
        response = self.files.list_directory(remote_root)
        if not response.success:
            logger.error(f"Failed to list {remote_root}: {response.error}")
            raise RemoteDaemonError("Failed to list directory")

        worlds = []
        for entry in response.entries():
            name = entry.get('name')
            if not name or not is_directory(entry):
                continue

            path = join_remote_path(remote_root, name)
            if self._has_marker(path):
                worlds.append(World(name=name, path=path))

        worlds.sort(key=world_sort_key)
        logger.info(f"Found {len(worlds)} world(s) in {remote_root}")
        return worlds

    def _has_marker(self, path: str) -> bool:
        try:
            response = self.files.list_directory(path)
        except RemoteDaemonError as e:
            logger.debug(f"Skipping {path}: {e}")
            return False

        if not response.success:
            logger.debug(f"Skipping {path}: {response.error}")
            return False

        return any(
            entry.get('name') == WORLD_MARKER and not is_directory(entry)
            for entry in response.entries()
        )

    def detect_version(self, versions_path: str = VERSIONS_DIR) -> Optional[str]:
        """
        Detect MAJOR.MINOR from the server's versions folder

        Args:
            versions_path: Folder the server jar unpacks versions into

        Returns:
            e.g. '1.21' for a '1.21.5' folder, or None if nothing matches
        """
        try:
            response = self.files.list_directory(versions_path)
        except RemoteDaemonError as e:
            logger.info(f"Versions folder not accessible: {e}")
            return None

        if not response.success:
            logger.info(f"Versions folder not found: {response.error}")
            return None

        for entry in response.entries():
            name = entry.get('name')
            if not name or not is_directory(entry):
                continue
            match = VERSION_PATTERN.match(name)
            if match:
                logger.info(f"✓ Detected Minecraft version {match.group(1)} from {name}")
                return match.group(1)

        return None
