"""
Remote File Deployment

Recreates local files and directory trees on a game server through the
Wings file API, one directory segment and one file at a time.
"""

import logging
import os
from pathlib import Path
from typing import List, Sequence

from .errors import RemoteWriteError
from .wings import ServerFiles

logger = logging.getLogger(__name__)


def split_remote_path(path: str) -> List[str]:
    return [part for part in path.strip('/').split('/') if part]


def join_remote_path(parent: str, name: str) -> str:
    return f"{parent.rstrip('/')}/{name}" if parent.strip('/') else f"/{name}"


class RemoteFileDeployer:
    """Writes files onto a server volume via Wings"""

    def __init__(self, files: ServerFiles):
        """
        Args:
            files: Wings file API bound to the target server
        """
        self.files = files

    def ensure_directory(self, remote_root: str, segments: Sequence[str]) -> str:
        """
        Create each directory segment under remote_root, root to leaf

        Wings only creates one segment at a time. A failed create (usually
        "already exists") is logged and the walk moves on; a real
        permission problem shows up when the file write fails.

        Args:
            remote_root: Existing directory to start from ('/' for the volume root)
            segments: Directory names to create in order

        Returns:
            Remote path of the deepest directory
        """
        current = '/' + remote_root.strip('/') if remote_root.strip('/') else '/'

        for segment in segments:
            if not segment:
                continue
            response = self.files.create_directory(segment, current)
            if not response.success:
                logger.debug(f"  create-directory {segment} in {current}: {response.error}")
            current = join_remote_path(current, segment)

        return current

    def write_file(self, remote_path: str, content: bytes) -> None:
        """
        Write a single file

        Args:
            remote_path: Absolute path on the server volume
            content: File contents

        Raises:
            RemoteWriteError: Wings reported the write as failed
        """
        response = self.files.write_file(remote_path, content)
        if not response.success:
            logger.error(f"  ✗ Failed to write {remote_path}: {response.error}")
            raise RemoteWriteError(f"Failed to write file: {response.error}")
        logger.debug(f"  ✓ Wrote {remote_path} ({len(content):,} bytes)")

    def upload_file(self, remote_path: str, content: bytes) -> str:
        """
        Create every parent directory of remote_path, then write the file

        Args:
            remote_path: Absolute path on the server volume
            content: File contents

        Returns:
            Normalized remote path that was written
        """
        parts = split_remote_path(remote_path)
        if not parts:
            raise RemoteWriteError(f"Failed to write file: invalid path '{remote_path}'")

        directory = self.ensure_directory('/', parts[:-1])
        full_path = join_remote_path(directory, parts[-1])
        self.write_file(full_path, content)
        return full_path

    def deploy_tree(self, local_root: Path, remote_root: str) -> List[str]:
        """
        Upload every regular file under local_root, preserving relative paths

        Args:
            local_root: Local staging directory
            remote_root: Remote directory the tree is recreated under

        Returns:
            Remote paths written, in upload order
        """
        local_root = Path(local_root)
        written = []

        for dirpath, dirnames, filenames in os.walk(local_root):
            dirnames.sort()
            for filename in sorted(filenames):
                local_path = Path(dirpath) / filename
                if not local_path.is_file() or local_path.is_symlink():
                    continue

                relative = local_path.relative_to(local_root).as_posix()
                remote_path = join_remote_path(remote_root, relative)
                written.append(self.upload_file(remote_path, local_path.read_bytes()))

        logger.info(f"  ✓ Uploaded {len(written)} file(s) to {remote_root}")
        return written
