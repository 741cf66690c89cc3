"""
Command-Line Interface

Entry point for the minecraft-datapack-installer CLI tool.
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .api_clients import CatalogClientConfig, VanillaTweaksClient
from .app import build_activity_sink, create_app
from .config import DEFAULT_MC_VERSION, DEFAULT_PACK_TYPE, DEFAULT_WORLD
from .config_loader import load_config, validate_config
from .deployment import RemoteFileDeployer
from .discovery import WorldDiscovery
from .errors import DatapackInstallerError, InvalidRequest
from .installer import ArchiveInstaller, build_job
from .models import PackType, Selection
from .panel import ServerRegistry

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", directory: Optional[str] = None) -> None:
    """Configure logging for CLI"""
    handlers = [logging.StreamHandler()]

    if directory:
        log_dir = Path(directory)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"datapack-installer-{datetime.now().strftime('%Y%m%d%H%M%S')}.log"
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def parse_selection(items: List[str]) -> Selection:
    """
    Parse CATEGORY:PACK arguments into a Selection

    Args:
        items: e.g. ["Quality of Life:armor_stand_flip", "Survival:graves"]

    Returns:
        Selection
    """
    selection = Selection()
    for item in items:
        category, sep, pack = item.partition(':')
        if not sep or not category.strip() or not pack.strip():
            raise InvalidRequest(f"Invalid pack '{item}', expected CATEGORY:PACK")
        selection.add(category.strip(), pack.strip())
    return selection


def run_worlds(registry: ServerRegistry, server: str) -> int:
    _, files = registry.files_for(server)
    worlds = WorldDiscovery(files).list_worlds()

    if not worlds:
        logger.warning("⚠ No worlds found (no directory contains level.dat)")
        return 1

    for world in worlds:
        logger.info(f"  • {world.name} ({world.path})")
    return 0


def run_detect_version(registry: ServerRegistry, server: str) -> int:
    _, files = registry.files_for(server)
    version = WorldDiscovery(files).detect_version()

    if not version:
        logger.warning("⚠ Could not detect Minecraft version")
        return 1

    logger.info(f"Minecraft version: {version}")
    return 0


def run_list_packs(client: VanillaTweaksClient, mc_version: str, pack_type: PackType) -> int:
    catalog = client.fetch_pack_catalog(mc_version, pack_type)

    logger.info(f"{pack_type.value} for {catalog.version_name or mc_version}: "
                f"{catalog.pack_count()} pack(s) in {len(catalog.categories)} categories")
    for category in catalog.categories:
        logger.info(f"\n{category.category_name} ({category.slug})")
        for pack in category.packs:
            logger.info(f"  • {pack.name}: {pack.display or pack.name}")
    return 0


def run_install(config: Dict, registry: ServerRegistry, client: VanillaTweaksClient,
                server: str, mc_version: str, pack_type: PackType, world: str,
                selection: Selection, dry_run: bool = False) -> int:
    job = build_job(mc_version, pack_type, selection, world)

    if dry_run:
        logger.info(f"[DRY RUN] Would install {job.selection.pack_count()} {job.pack_type.value} "
                    f"into {job.datapacks_dir} on {server}")
        logger.info(f"[DRY RUN]   Packs: {job.selection.to_wire()}")
        return 0

    record, files = registry.files_for(server)
    installer = ArchiveInstaller(client, RemoteFileDeployer(files), record.uuid,
                                 activity=build_activity_sink(config), node_id=record.node_id)
    result = installer.install(job.mc_version, job.pack_type, job.selection, job.target_world)

    logger.info(f"\n✓ {result.message}")
    for path in result.files_written:
        logger.info(f"  {path}")
    return 0


def run_serve(config: Dict, host: Optional[str], port: Optional[int]) -> int:
    import uvicorn

    http = config.get('http') or {}
    app = create_app(config)
    uvicorn.run(app, host=host or http.get('host'), port=int(port or http.get('port')))
    return 0


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description=f"Minecraft Datapack Installer v{__version__} - Install Vanilla Tweaks packs via Wings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List worlds on a server
  %(prog)s --server 1a2b3c4d --worlds

  # Detect the server's Minecraft version
  %(prog)s --server 1a2b3c4d --detect-version

  # Browse available datapacks
  %(prog)s --packs --mc-version 1.21 --type datapacks

  # Install packs into a world
  %(prog)s --server 1a2b3c4d --install "Quality of Life:armor_stand_flip" --world world

  # Serve the panel API
  %(prog)s --serve --port 8080
        """
    )

    parser.add_argument("--worlds", action="store_true", help="List worlds on the server")
    parser.add_argument("--detect-version", action="store_true", help="Detect Minecraft version from the versions folder")
    parser.add_argument("--packs", action="store_true", help="List packs available on Vanilla Tweaks")
    parser.add_argument("--install", nargs="+", metavar="CATEGORY:PACK", help="Install the given packs")
    parser.add_argument("--serve", action="store_true", help="Serve the HTTP API")
    parser.add_argument("--validate", action="store_true", help="Validate configuration and exit")

    parser.add_argument("--server", help="Server short UUID (as configured under 'servers')")
    parser.add_argument("--mc-version", default=DEFAULT_MC_VERSION, help="Minecraft version (default: %(default)s)")
    parser.add_argument("--type", default=DEFAULT_PACK_TYPE, choices=[t.value for t in PackType], help="Pack type (default: %(default)s)")
    parser.add_argument("--world", default=DEFAULT_WORLD, help="Target world (default: %(default)s)")
    parser.add_argument("--dry-run", action="store_true", help="Preview an install without contacting any service")
    parser.add_argument("--host", help="Bind address for --serve")
    parser.add_argument("--port", type=int, help="Port for --serve")
    parser.add_argument("--config", type=Path, help="Path to config file (overrides default search paths)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    config = load_config(args.config if args.config else None)
    setup_logging(config['logging'].get('level', 'INFO'), config['logging'].get('directory'))

    is_valid, errors = validate_config(config)
    if not is_valid:
        logger.error("\n✗ Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        return 1

    if args.validate:
        logger.info("✓ Configuration is valid")
        return 0

    registry = ServerRegistry.from_config(config)
    client = VanillaTweaksClient(CatalogClientConfig.from_dict(config['catalog'], config['cache']))
    pack_type = PackType.parse(args.type)

    try:
        if args.serve:
            return run_serve(config, args.host, args.port)

        if args.packs:
            return run_list_packs(client, args.mc_version, pack_type)

        if not args.server:
            parser.error("--server is required for --worlds, --detect-version and --install")

        if args.worlds:
            return run_worlds(registry, args.server)

        if args.detect_version:
            return run_detect_version(registry, args.server)

        if args.install:
            return run_install(config, registry, client, args.server, args.mc_version,
                               pack_type, args.world, parse_selection(args.install),
                               dry_run=args.dry_run)

        parser.print_help()
        return 0

    except DatapackInstallerError as e:
        logger.error(f"✗ {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.info("\n\nInterrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
