"""
Configuration for Minecraft Datapack Installer

Defines the Vanilla Tweaks endpoints, pack types, cache lifetimes and
default infrastructure settings.
"""

import base64
from pathlib import Path

# Project root (core/backend/datapack_installer/config.py -> repository root)
BASE_DIR = Path(__file__).parent.parent.parent.parent

# Vanilla Tweaks
VANILLA_TWEAKS_URL = "https://vanillatweaks.net"
DEFAULT_MC_VERSION = "1.21"
DEFAULT_PACK_TYPE = "datapacks"
DEFAULT_WORLD = "world"

# Cloudflare sits in front of vanillatweaks.net and rejects anything that
# doesn't look like a browser.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:143.0) Gecko/20100101 Firefox/143.0"
)

BROWSER_HEADERS = {
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
    "Pragma": "no-cache",
    "Cache-Control": "no-cache",
}

# Upstream timeouts (seconds)
CONNECT_TIMEOUT = 10
READ_TIMEOUT = 30

# Wings daemon
WINGS_TIMEOUT = 30

# Cache lifetimes (minutes)
PACKS_CACHE_TTL = 60
IMAGE_CACHE_TTL = 1440
PLACEHOLDER_MAX_AGE = 3600
IMAGE_MAX_AGE = 86400

# Randomized pause between generating an archive and downloading it (seconds)
DOWNLOAD_DELAY_RANGE = (0.5, 1.5)

# 1x1 transparent PNG served when an icon is missing upstream
TRANSPARENT_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

# Pack types: URL path segment -> catalog JSON filename prefix
PACK_TYPES = {
    "datapacks": {
        "prefix": "dp",
        "success_message": "Datapacks installed successfully",
    },
    "resourcepacks": {
        "prefix": "rp",
        "success_message": "Resource packs installed successfully",
    },
    "craftingtweaks": {
        "prefix": "ct",
        "success_message": "Crafting tweaks installed successfully",
    },
}

# Marker file that identifies a Minecraft world directory
WORLD_MARKER = "level.dat"
VERSIONS_DIR = "/versions"

# HTTP surface
API_PREFIX = "/api/user/servers/{uuid_short}/addons/datapackinstaller"
HTTP_HOST = "127.0.0.1"
HTTP_PORT = 8080

# Panel records (normally supplied via config.yaml)
NODES = {}
SERVERS = {}
