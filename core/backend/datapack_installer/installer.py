"""
Pack Installer

Coordinates the install workflow: generate an archive on Vanilla Tweaks,
download it, unpack it and upload the result into a world's datapacks
folder through Wings.
"""

import logging
import random
import tempfile
import time
import zipfile
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import urlparse

from .activity import ActivityRecord, ActivitySink, LoggingActivitySink
from .api_clients import VanillaTweaksClient
from .config import DOWNLOAD_DELAY_RANGE
from .deployment import RemoteFileDeployer, join_remote_path
from .errors import DatapackInstallerError, InstallError, InvalidRequest
from .models import InstallJob, InstallResult, PackType, Selection, sanitize_version

logger = logging.getLogger(__name__)

INSTALL_EVENT = "datapacks_installed"


def build_job(mc_version: Optional[str], pack_type: Union[str, PackType, None],
              packs: Union[Selection, Dict[str, Iterable[str]], None],
              world: Optional[str]) -> InstallJob:
    """
    Validate raw install input and build an InstallJob

    Raises:
        InvalidRequest: mcVersion, packs or world missing/empty
    """
    selection = packs if isinstance(packs, Selection) else Selection(packs or {})

    if not mc_version or not selection:
        raise InvalidRequest("Missing required parameters")

    if not world or not str(world).strip('/'):
        raise InvalidRequest("Target world is required")

    if not isinstance(pack_type, PackType):
        pack_type = PackType.parse(pack_type)

    return InstallJob(mc_version=str(mc_version), pack_type=pack_type,
                      selection=selection, target_world=str(world))


def archive_filename(download_url: str, mc_version: str) -> str:
    """Stable file name for a crafting tweaks archive."""
    name = PurePosixPath(urlparse(download_url).path or '').name
    if name:
        return name
    return f"crafting-tweaks-{sanitize_version(mc_version) or 'pack'}.zip"


class ArchiveInstaller:
    """Installs Vanilla Tweaks packs into a world on one server"""

    def __init__(self, client: VanillaTweaksClient, deployer: RemoteFileDeployer,
                 server_uuid: str, activity: Optional[ActivitySink] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 work_dir: Optional[Path] = None, node_id: Optional[str] = None):
        """
        Args:
            client: Vanilla Tweaks client
            deployer: Remote file deployer bound to the target server
            server_uuid: Target server UUID (for activity records)
            activity: Audit sink notified after a successful install
            sleep: Delay function used before downloading the archive
            work_dir: Parent directory for temporary files (system default if None)
            node_id: Node hosting the server (for activity records)
        """
        self.client = client
        self.deployer = deployer
        self.server_uuid = server_uuid
        self.activity = activity or LoggingActivitySink()
        self.sleep = sleep
        self.work_dir = work_dir
        self.node_id = node_id

    def install(self, mc_version: str, pack_type: Union[str, PackType],
                selection: Union[Selection, Dict[str, Iterable[str]]], target_world: str,
                user_agent: Optional[str] = None, user: Optional[Dict] = None) -> InstallResult:
        """
        Install the selected packs into target_world/datapacks

        Args:
            mc_version: Minecraft version (e.g. '1.21')
            pack_type: datapacks, resourcepacks or craftingtweaks
            selection: Selected pack names per category
            target_world: World directory name
            user_agent: Browser User-Agent to forward upstream
            user: Acting panel user ({id, last_ip}) for the activity record

        Returns:
            InstallResult with the remote paths written

        Raises:
            InvalidRequest, UpstreamError, InstallError, RemoteWriteError
        """
        job = build_job(mc_version, pack_type, selection, target_world)

        logger.info("=" * 70)
        logger.info(f"Installing {job.pack_type.value} into {job.world_dir} "
                    f"(Minecraft {job.mc_version}, {job.selection.pack_count()} pack(s))")
        logger.info("=" * 70)

        try:
            written = self._run(job, user_agent)
        except OSError as e:
            logger.error(f"✗ Install failed for {job.world_dir}: {e}")
            raise InstallError(f"Local file operation failed: {e}") from e
        except DatapackInstallerError as e:
            logger.error(f"✗ Install failed for {job.world_dir}: {e.message}")
            raise

        self.activity.record(ActivityRecord(
            event=INSTALL_EVENT,
            server_uuid=self.server_uuid,
            metadata={
                'world': job.target_world,
                'pack_type': job.pack_type.value,
                'packs_count': len(job.selection),
            },
            node_id=self.node_id,
            user_id=(user or {}).get('id'),
            ip=(user or {}).get('last_ip'),
        ))

        logger.info(f"✓ {job.pack_type.success_message} ({len(written)} file(s))")
        return InstallResult(success=True, message=job.pack_type.success_message,
                             files_written=written)

    def _run(self, job: InstallJob, user_agent: Optional[str]) -> List[str]:
        download_url = self.client.request_archive(job.mc_version, job.pack_type,
                                                   job.selection, user_agent=user_agent)

        # Randomized pause between generating the archive and fetching it
        self.sleep(random.uniform(*DOWNLOAD_DELAY_RANGE))

        with tempfile.TemporaryDirectory(prefix="vanillatweaks_", dir=self.work_dir) as download_dir:
            archive_path = Path(download_dir) / "archive.zip"
            self.client.download_archive(download_url, archive_path, job.pack_type,
                                         user_agent=user_agent)

            self._precreate_datapacks(job)

            if job.pack_type == PackType.CRAFTINGTWEAKS:
                remote_path = join_remote_path(job.datapacks_dir,
                                               archive_filename(download_url, job.mc_version))
                return [self.deployer.upload_file(remote_path, archive_path.read_bytes())]

            with tempfile.TemporaryDirectory(prefix="vanillatweaks_extract_",
                                             dir=self.work_dir) as extract_dir:
                self._extract(archive_path, Path(extract_dir))
                return self.deployer.deploy_tree(Path(extract_dir), job.datapacks_dir)

    def _precreate_datapacks(self, job: InstallJob) -> None:
        """Best effort; upload_file creates any missing directories itself."""
        response = self.deployer.files.create_directory('datapacks', job.world_dir)
        if not response.success:
            logger.debug(f"Pre-create of {job.datapacks_dir} skipped: {response.error}")

    @staticmethod
    def _extract(archive_path: Path, dest: Path) -> None:
        try:
            archive = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise InstallError("Failed to open zip file") from e

        root = dest.resolve()
        with archive:
            for member in archive.namelist():
                target = (dest / member).resolve()
                if target != root and root not in target.parents:
                    raise InstallError(f"Archive entry escapes extraction directory: {member}")
            try:
                archive.extractall(dest)
            except (zipfile.BadZipFile, OSError) as e:
                raise InstallError(f"Failed to extract archive: {e}") from e

        logger.info(f"  Extracted {archive_path.name} to staging directory")
