"""
Pack Icon Proxy

Serves Vanilla Tweaks pack icons with ETag support. A missing or broken
icon never becomes an error: it degrades to a transparent pixel with a
short cache lifetime.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .api_clients import VanillaTweaksClient
from .cache import url_tag
from .config import IMAGE_MAX_AGE, PLACEHOLDER_MAX_AGE, TRANSPARENT_PNG
from .errors import DatapackInstallerError
from .models import PackType

logger = logging.getLogger(__name__)


@dataclass
class ImageResponse:
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_placeholder(self) -> bool:
        return self.body == TRANSPARENT_PNG


def placeholder_response() -> ImageResponse:
    return ImageResponse(200, TRANSPARENT_PNG, {
        'Content-Type': 'image/png',
        'Cache-Control': f'public, max-age={PLACEHOLDER_MAX_AGE}',
    })


class PackImageProxy:
    """Resolves, fetches and serves pack icons"""

    def __init__(self, client: VanillaTweaksClient):
        self.client = client

    def get_image(self, pack_name: str, mc_version: str, pack_type: PackType,
                  if_none_match: Optional[str] = None) -> ImageResponse:
        """
        Serve a pack icon

        Args:
            pack_name: Pack name as listed in the catalog
            mc_version: Minecraft version
            pack_type: Pack family
            if_none_match: Client's If-None-Match header

        Returns:
            304 when the client tag matches, otherwise 200 with PNG bytes
        """
        url = self.client.resolve_image_url(pack_name, mc_version, pack_type)
        etag = f'"{url_tag(url)}"'
        cache_headers = {
            'ETag': etag,
            'Cache-Control': f'public, max-age={IMAGE_MAX_AGE}',
        }

        if if_none_match == etag:
            return ImageResponse(304, b"", cache_headers)

        try:
            content = self.client.fetch_image(url, pack_type)
        except DatapackInstallerError as e:
            logger.warning(f"Icon fetch failed for {pack_name}: {e}")
            return placeholder_response()

        if content is None:
            return placeholder_response()

        return ImageResponse(200, content, {'Content-Type': 'image/png', **cache_headers})
