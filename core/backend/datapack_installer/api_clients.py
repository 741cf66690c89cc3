"""
API Client for Vanilla Tweaks

Handles communication with vanillatweaks.net: pack catalogs, pack icons,
zip generation and archive download.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote, urljoin

import requests

from .cache import ResponseCache, image_cache_key, packs_cache_key
from .config import (
    BROWSER_HEADERS,
    CONNECT_TIMEOUT,
    DEFAULT_USER_AGENT,
    IMAGE_CACHE_TTL,
    PACKS_CACHE_TTL,
    READ_TIMEOUT,
    VANILLA_TWEAKS_URL,
)
from .errors import InstallError, UpstreamError
from .models import PackCatalog, PackType, Selection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogClientConfig:
    """Fixed settings for talking to Vanilla Tweaks"""

    base_url: str = VANILLA_TWEAKS_URL
    user_agent: str = DEFAULT_USER_AGENT
    headers: Dict[str, str] = field(default_factory=lambda: dict(BROWSER_HEADERS))
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT
    packs_ttl_minutes: float = PACKS_CACHE_TTL
    image_ttl_minutes: float = IMAGE_CACHE_TTL

    @property
    def timeout(self):
        return (self.connect_timeout, self.read_timeout)

    def picker_url(self, pack_type: PackType) -> str:
        return f"{self.base_url}/picker/{pack_type.value}/"

    @classmethod
    def from_dict(cls, catalog: Dict, cache: Optional[Dict] = None) -> "CatalogClientConfig":
        """Build from the 'catalog' and 'cache' sections of config.yaml."""
        cache = cache or {}
        headers = dict(BROWSER_HEADERS)
        headers.update(catalog.get('headers') or {})
        return cls(
            base_url=catalog.get('base_url', VANILLA_TWEAKS_URL).rstrip('/'),
            user_agent=catalog.get('user_agent') or DEFAULT_USER_AGENT,
            headers=headers,
            connect_timeout=float(catalog.get('connect_timeout', CONNECT_TIMEOUT)),
            read_timeout=float(catalog.get('read_timeout', READ_TIMEOUT)),
            packs_ttl_minutes=float(cache.get('packs_ttl_minutes', PACKS_CACHE_TTL)),
            image_ttl_minutes=float(cache.get('image_ttl_minutes', IMAGE_CACHE_TTL)),
        )


class VanillaTweaksClient:
    """Client for the Vanilla Tweaks picker API"""

    def __init__(self, config: Optional[CatalogClientConfig] = None,
                 cache: Optional[ResponseCache] = None,
                 session: Optional[requests.Session] = None):
        """
        Args:
            config: Client settings (defaults to the public site)
            cache: Optional response cache consulted before catalog/image fetches
            session: Optional pre-built session (tests inject fakes here)
        """
        self.config = config or CatalogClientConfig()
        self.cache = cache
        self.session = session or requests.Session()
        self.session.headers.update(self.config.headers)
        self.session.headers['User-Agent'] = self.config.user_agent

    def _headers(self, pack_type: PackType, user_agent: Optional[str] = None, **extra) -> Dict[str, str]:
        headers = {
            'User-Agent': user_agent or self.config.user_agent,
            'Referer': self.config.picker_url(pack_type),
        }
        headers.update(extra)
        return headers

    def _get(self, url: str, headers: Dict[str, str], **kwargs) -> requests.Response:
        try:
            response = self.session.get(url, headers=headers, timeout=self.config.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Vanilla Tweaks request failed: {url}: {e}")
            raise UpstreamError(str(e)) from e
        return response

    def catalog_url(self, mc_version: str, pack_type: PackType) -> str:
        return f"{self.config.base_url}/assets/resources/json/{mc_version}/{pack_type.prefix}categories.json"

    def is_catalog_cached(self, mc_version: str, pack_type: PackType) -> bool:
        if self.cache is None:
            return False
        return self.cache.get(packs_cache_key(mc_version, pack_type.value)) is not None

    def fetch_catalog(self, mc_version: str, pack_type: PackType,
                      user_agent: Optional[str] = None) -> Dict:
        """
        Fetch the raw category JSON for a version and pack type

        Args:
            mc_version: Minecraft version (e.g. '1.21')
            pack_type: Pack family
            user_agent: Browser User-Agent to forward

        Returns:
            Decoded catalog JSON ({versionName?, categories: [...]})
        """
        cache_key = packs_cache_key(mc_version, pack_type.value)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Catalog cache hit: {cache_key}")
                return cached

        url = self.catalog_url(mc_version, pack_type)
        logger.info(f"Fetching Vanilla Tweaks catalog: {pack_type.value} {mc_version}")

        response = self._get(url, self._headers(
            pack_type, user_agent,
            **{'Accept': 'application/json, text/javascript, */*; q=0.01',
               'X-Requested-With': 'XMLHttpRequest'}))

        if response.status_code != 200:
            raise UpstreamError(f"Catalog request returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Catalog response is not valid JSON: {e}") from e

        if data is not None and self.cache is not None:
            self.cache.put(cache_key, data, self.config.packs_ttl_minutes)

        return data

    def fetch_pack_catalog(self, mc_version: str, pack_type: PackType) -> PackCatalog:
        return PackCatalog.from_dict(self.fetch_catalog(mc_version, pack_type) or {})

    def resolve_image_url(self, pack_name: str, mc_version: str, pack_type: PackType) -> str:
        return (f"{self.config.base_url}/assets/resources/icons/"
                f"{pack_type.value}/{mc_version}/{quote(pack_name, safe='')}.png")

    def fetch_image(self, url: str, pack_type: PackType = PackType.DATAPACKS) -> Optional[bytes]:
        """
        Fetch a pack icon

        Args:
            url: Resolved image URL
            pack_type: Pack family (selects the Referer)

        Returns:
            PNG bytes, or None if the icon doesn't exist upstream
        """
        cache_key = image_cache_key(url)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        response = self._get(url, self._headers(pack_type))

        if response.status_code == 404:
            logger.debug(f"No icon upstream: {url}")
            return None

        if response.status_code != 200:
            raise UpstreamError(f"Image request returned HTTP {response.status_code}")

        content = response.content
        if self.cache is not None:
            self.cache.put(cache_key, content, self.config.image_ttl_minutes)
        return content

    def request_archive(self, mc_version: str, pack_type: PackType, selection: Selection,
                        user_agent: Optional[str] = None) -> str:
        """
        Ask Vanilla Tweaks to build a zip for the selected packs

        Args:
            mc_version: Minecraft version
            pack_type: Pack family
            selection: Selected packs per category
            user_agent: Browser User-Agent to forward

        Returns:
            Absolute download URL of the generated archive
        """
        url = f"{self.config.base_url}/assets/server/zip{pack_type.value}.php"
        form = {
            'version': mc_version,
            'packs': json.dumps(selection.to_wire(), separators=(',', ':')),
        }
        headers = self._headers(
            pack_type, user_agent,
            **{'Content-Type': 'application/x-www-form-urlencoded; charset=UTF-8',
               'X-Requested-With': 'XMLHttpRequest',
               'Accept': '*/*',
               'Origin': self.config.base_url})

        logger.info(f"Requesting {pack_type.value} archive for {mc_version} "
                    f"({selection.pack_count()} pack(s))")

        try:
            response = self.session.post(url, data=form, headers=headers, timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error(f"Archive request failed: {e}")
            raise UpstreamError(str(e)) from e

        if response.status_code != 200:
            raise UpstreamError(f"Archive request returned HTTP {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise UpstreamError(f"Archive response is not valid JSON: {e}") from e

        if not isinstance(result, dict) or result.get('status') != 'success':
            message = (result or {}).get('message') if isinstance(result, dict) else None
            raise UpstreamError(message or 'Failed to generate pack')

        link = result.get('link')
        if not link:
            raise UpstreamError('Archive response did not include a download link')

        return urljoin(self.config.base_url + '/', link)

    def download_archive(self, url: str, dest_path: Path, pack_type: PackType = PackType.DATAPACKS,
                         user_agent: Optional[str] = None) -> Path:
        """
        Download a generated archive to dest_path

        Args:
            url: Absolute archive URL from request_archive()
            dest_path: Local file to write
            pack_type: Pack family (selects the Referer)
            user_agent: Browser User-Agent to forward

        Returns:
            dest_path
        """
        headers = self._headers(
            pack_type, user_agent,
            Accept='text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8')

        logger.info(f"Downloading: {url}")
        response = self._get(url, headers, stream=True)

        try:
            if response.status_code != 200:
                raise UpstreamError(f"Archive download returned HTTP {response.status_code}")

            with open(dest_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)
        except requests.RequestException as e:
            logger.error(f"Download failed: {e}")
            raise UpstreamError(str(e)) from e
        except OSError as e:
            logger.error(f"Could not save archive to {dest_path}: {e}")
            raise InstallError(f"Failed to save archive: {e}") from e
        finally:
            response.close()

        logger.info(f"  Downloaded: {Path(dest_path).stat().st_size:,} bytes")
        return dest_path
