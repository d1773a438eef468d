"""
External Addon Import
Re-exports catalogs of third-party Stremio addons as lists
"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote, urljoin

import aiohttp

from listhub.core.errors import ManifestImportError
from listhub.models.config import ImportedAddon, ImportedCatalog, SortPreference, UserConfig
from listhub.models.lists import ListDescriptor, MediaKind, RawListing, SourceKind
from listhub.services.base import ListSource
from listhub.utils.ids import SourceTag, encode_imported_id

logger = logging.getLogger(__name__)

MANIFEST_SEGMENT = "manifest.json"
ENABLED_TOGGLE_VALUES = ("on", True, "true", 1)
ANIME_SOURCES = ("myanimelist", "anilist", "anidb", "kitsu", "livechart", "notify.moe")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_UP_NEXT_ID = re.compile(r"^tun_(tt\d+)$")


def normalize_manifest_url(url: str) -> str:
    url = (url or "").strip()
    if url.startswith("stremio://"):
        return "https://" + url[len("stremio://"):]
    return url


def api_base_url(manifest_url: str) -> str:
    """Base URL (with trailing slash) that catalog paths are appended to"""
    suffix = "/" + MANIFEST_SEGMENT
    if manifest_url.endswith(suffix):
        return manifest_url[: -len(MANIFEST_SEGMENT)]
    return manifest_url if manifest_url.endswith("/") else manifest_url + "/"


def _fully_unquote(text: str, max_rounds: int = 5) -> str:
    for _ in range(max_rounds):
        decoded = unquote(text)
        if decoded == text:
            break
        text = decoded
    return text


def config_segment(manifest_url: str) -> Optional[str]:
    """
    Return the path segment before manifest.json when it carries a JSON config

    Args:
        manifest_url: Normalized manifest URL

    Returns:
        The raw (still percent-encoded) segment, or None for plain manifests
    """
    path = manifest_url.split("?", 1)[0].rstrip("/")
    parts = path.split("/")
    if len(parts) < 2 or parts[-1] != MANIFEST_SEGMENT:
        return None
    segment = parts[-2]
    decoded = _fully_unquote(segment)
    if "{" in decoded or '":' in decoded:
        return segment
    return None


def _repair_braces(text: str) -> str:
    text = text.strip()
    if not text.startswith("{"):
        text = "{" + text
    opens, closes = text.count("{"), text.count("}")
    if closes < opens:
        text += "}" * (opens - closes)
    while closes > opens and text.endswith("}"):
        text = text[:-1]
        closes -= 1
    return text


def _cleanup_json(text: str) -> str:
    text = _CONTROL_CHARS.sub("", text)
    text = text.replace("'", '"')
    text = _TRAILING_COMMA.sub(r"\1", text)
    return text.strip()


def decode_toggle_config(segment: str) -> Dict[str, Any]:
    """
    Decode a URL-embedded toggle map such as `%7B%22a%22%3A%22on%22%7D`

    Decoding is percent-decoding (repeated until stable), brace repair,
    then `json.loads`; on failure a cleanup pass normalizes quotes, trailing
    commas and control characters before a second parse.

    Raises:
        ManifestImportError: when the segment cannot be parsed as a JSON object
    """
    text = _repair_braces(_fully_unquote(segment))
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = json.loads(_cleanup_json(text))
        except ValueError as e:
            raise ManifestImportError(f"Could not decode addon configuration: {e}") from e
    if not isinstance(data, dict):
        raise ManifestImportError("Addon configuration is not a JSON object")
    return data


def _stremio_type(original_type: str) -> str:
    if original_type == "tv":
        return "series"
    if original_type in ("movie", "series", "all"):
        return original_type
    return "all"


def _title_case_key(key: str) -> str:
    return " ".join(word.capitalize() for word in re.split(r"[_\-]+", key) if word)


def detect_anime(manifest: Dict[str, Any], manifest_url: str) -> bool:
    name = str(manifest.get("name") or "").lower()
    if "anime" in name:
        return True
    if any(source in manifest_url.lower() for source in ANIME_SOURCES):
        return True
    if "anime" in (manifest.get("types") or []):
        return True
    return any((c or {}).get("type") == "anime" for c in manifest.get("catalogs") or [])


def _requires_search(catalog: Dict[str, Any]) -> bool:
    for extra in catalog.get("extra") or []:
        if isinstance(extra, dict) and extra.get("name") == "search" and extra.get("isRequired"):
            return True
    return "search" in (catalog.get("extraRequired") or [])


def _extra_names(catalog: Dict[str, Any]) -> List[str]:
    names = []
    for extra in catalog.get("extraSupported") or catalog.get("extra") or []:
        name = extra.get("name") if isinstance(extra, dict) else extra
        if name and name not in names:
            names.append(str(name))
    return names


class _CatalogIdAllocator:
    """Hands out codec ids, counting repeats of the same (catalog id, type)"""

    def __init__(self, addon_id: str):
        self.addon_id = addon_id
        self.usage: Dict[Tuple[str, str], int] = {}

    def allocate(self, catalog_id: str, catalog_type: str) -> str:
        key = (catalog_id, catalog_type)
        self.usage[key] = self.usage.get(key, 0) + 1
        return encode_imported_id(self.addon_id, catalog_id, catalog_type, self.usage[key])


def build_standard_catalogs(addon_id: str, manifest: Dict[str, Any]) -> List[ImportedCatalog]:
    """One catalog per manifest catalog, skipping invalid and search-only entries"""
    allocator = _CatalogIdAllocator(addon_id)
    catalogs: List[ImportedCatalog] = []
    for catalog in manifest.get("catalogs") or []:
        if not isinstance(catalog, dict) or not catalog.get("id") or not catalog.get("type"):
            continue
        original_id = str(catalog["id"])
        original_type = str(catalog["type"])
        # repeats are counted before search-only catalogs are skipped
        catalog_id = allocator.allocate(original_id, original_type)
        if _requires_search(catalog):
            continue
        catalogs.append(ImportedCatalog(
            id=catalog_id,
            original_id=original_id,
            original_type=original_type,
            name=catalog.get("name") or "Unnamed Catalog",
            type=_stremio_type(original_type),
            extra_supported=_extra_names(catalog),
        ))
    return catalogs


def build_toggle_catalogs(
    addon_id: str, manifest: Dict[str, Any], toggles: Dict[str, Any]
) -> List[ImportedCatalog]:
    """One catalog per enabled toggle of a configuration-driven addon"""
    declared = {
        str(c.get("id")): c
        for c in manifest.get("catalogs") or []
        if isinstance(c, dict) and c.get("id")
    }
    allocator = _CatalogIdAllocator(addon_id)
    catalogs: List[ImportedCatalog] = []
    for key, value in toggles.items():
        if value not in ENABLED_TOGGLE_VALUES:
            continue
        entry = declared.get(str(key)) or {}
        original_type = str(entry.get("type") or "anime")
        catalogs.append(ImportedCatalog(
            id=allocator.allocate(str(key), original_type),
            original_id=str(key),
            original_type=original_type,
            name=entry.get("name") or _title_case_key(str(key)),
            type=_stremio_type(original_type),
            extra_supported=_extra_names(entry),
        ))
    return catalogs


class ImportedAddonSource(ListSource):
    """Adapter for catalogs of imported third-party addons"""

    tag = SourceTag.IMPORTED
    genre_filtered_upstream = True

    @property
    def timeout(self) -> float:
        return float(self.settings.IMPORT_TIMEOUT_SECONDS)

    def is_configured(self, config: UserConfig) -> bool:
        return bool(config.imported_addons)

    async def import_addon(self, manifest_url: str) -> ImportedAddon:
        """
        Fetch and convert an addon manifest

        Args:
            manifest_url: Manifest URL, `stremio://` or `https://`

        Returns:
            ImportedAddon with its catalogs under synthetic ids

        Raises:
            ManifestImportError: on network failure, bad status, invalid
                manifest or undecodable configuration. Nothing is registered.
        """
        url = normalize_manifest_url(manifest_url)
        if not url.startswith(("http://", "https://")):
            raise ManifestImportError(f"Unsupported manifest URL: {manifest_url}")

        try:
            status, manifest = await self._request("GET", url, timeout=self.timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ManifestImportError(f"Failed to fetch manifest: {e}") from e

        if status != 200:
            raise ManifestImportError(f"Failed to fetch manifest (Status: {status})")
        if not isinstance(manifest, dict) or not manifest.get("id") or not isinstance(manifest.get("catalogs"), list):
            raise ManifestImportError("Invalid manifest format: missing id or catalogs")

        addon_id = str(manifest["id"])
        base_url = api_base_url(url)
        segment = config_segment(url)
        if segment is not None:
            catalogs = build_toggle_catalogs(addon_id, manifest, decode_toggle_config(segment))
        else:
            catalogs = build_standard_catalogs(addon_id, manifest)

        logo = manifest.get("logo")
        if logo and not str(logo).startswith(("http://", "https://", "data:")):
            logo = urljoin(base_url, str(logo))

        addon = ImportedAddon(
            id=addon_id,
            name=manifest.get("name") or "Unknown Addon",
            version=manifest.get("version") or "0.0.0",
            logo=logo,
            manifest_url=url,
            api_base_url=base_url,
            catalogs=catalogs,
            is_config_driven=segment is not None,
            is_anime=detect_anime(manifest, url),
        )
        logger.info(f"Imported addon {addon.id} with {len(catalogs)} catalogs")
        return addon

    async def list_catalogs(self, config: UserConfig) -> List[ListDescriptor]:
        descriptors = []
        for addon in config.imported_addons.values():
            for catalog in addon.catalogs:
                if catalog.type == "movie":
                    hint = MediaKind.MOVIE
                elif catalog.type == "series":
                    hint = MediaKind.SERIES
                else:
                    hint = MediaKind.ANY
                descriptors.append(ListDescriptor(
                    id=catalog.id,
                    name=catalog.name,
                    source_kind=SourceKind.IMPORTED_ADDON,
                    media_kind_hint=hint,
                    group_id=addon.id,
                ))
        return descriptors

    @staticmethod
    def catalog_url(addon: ImportedAddon, catalog: ImportedCatalog, skip: int = 0, genre: Optional[str] = None) -> str:
        path = f"catalog/{catalog.original_type}/{quote(catalog.original_id, safe='')}"
        extras = []
        if skip > 0:
            extras.append(f"skip={skip}")
        if genre:
            extras.append(f"genre={quote(genre, safe='')}")
        if extras:
            path += "/" + "&".join(extras)
        return f"{addon.api_base_url}{path}.json"

    @staticmethod
    def _fix_meta(meta: Dict[str, Any], catalog: ImportedCatalog) -> Dict[str, Any]:
        meta = dict(meta)
        match = _UP_NEXT_ID.match(str(meta.get("id") or ""))
        if match:
            meta["id"] = match.group(1)
        if meta.get("type") not in ("movie", "series", "show", "tv"):
            meta["type"] = "movie" if catalog.type == "movie" else "series"
        return meta

    async def list_items(
        self,
        list_id: str,
        config: UserConfig,
        skip: int = 0,
        media_kind: Optional[str] = None,
        sort: Optional[SortPreference] = None,
        genre: Optional[str] = None,
    ) -> Optional[RawListing]:
        owner = config.imported_catalog_ids().get(list_id)
        if owner is None:
            return None
        catalog = next(c for c in owner.catalogs if c.id == list_id)

        url = self.catalog_url(owner, catalog, skip, genre)
        try:
            status, data = await self._request("GET", url, timeout=self.timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error fetching imported catalog {list_id} from {url}: {e}")
            return None

        if status != 200 or not isinstance(data, dict) or not isinstance(data.get("metas"), list):
            logger.warning(f"Invalid catalog response from {url} (status {status})")
            return None

        metas = [self._fix_meta(m, catalog) for m in data["metas"] if isinstance(m, dict)]
        return RawListing(items=metas, offset_applied=True)
