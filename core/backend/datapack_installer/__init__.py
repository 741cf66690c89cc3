"""
Minecraft Datapack Installer

Browse Vanilla Tweaks datapacks, resource packs and crafting tweaks and
install them into a Minecraft world through the Wings file daemon.

Version: 1.0.0
"""

__version__ = "1.0.0"
__description__ = "Vanilla Tweaks pack installer for panel-managed Minecraft servers"

from .installer import ArchiveInstaller
from .api_clients import VanillaTweaksClient, CatalogClientConfig
from .discovery import WorldDiscovery

__all__ = [
    "ArchiveInstaller",
    "VanillaTweaksClient",
    "CatalogClientConfig",
    "WorldDiscovery",
]
