"""
Catalog Id Codec
Encoding and decoding of the catalog ids advertised in manifests
"""
import re
from enum import Enum
from typing import Collection, List, Optional, Tuple

MDBLIST_PREFIX = "aiolists-"
TRAKT_PREFIX = "trakt_"

MDBLIST_WATCHLIST_ID = "aiolists-watchlist-W"
TRAKT_WATCHLIST_ID = "trakt_watchlist"

_MDBLIST_ID_RE = re.compile(r"^aiolists-(.+)-([ELW])$")
_TYPE_SUFFIX_RE = re.compile(r"_(movie|series|all|anime)(_\d+)?$")


class SourceTag(str, Enum):
    """Adapter that owns a catalog id"""
    MDBLIST = "mdblist"
    TRAKT = "trakt"
    IMPORTED = "imported"


def encode_mdblist_id(list_id: str, list_type: str) -> str:
    """Build `aiolists-{id}-{L|E|W}`; the watchlist always uses the fixed id."""
    if list_type == "W" or list_id == "watchlist":
        return MDBLIST_WATCHLIST_ID
    return f"{MDBLIST_PREFIX}{list_id}-{list_type}"


def decode_mdblist_id(catalog_id: str) -> Optional[Tuple[str, str]]:
    """
    Split an MDBList catalog id into (upstream list id, list type)

    Returns:
        Tuple like ("12345", "L") or None when the id is not an MDBList id
    """
    match = _MDBLIST_ID_RE.match(catalog_id or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def encode_trakt_id(slug: str) -> str:
    return f"{TRAKT_PREFIX}{slug}"


def decode_trakt_id(catalog_id: str) -> Optional[str]:
    if not catalog_id or not catalog_id.startswith(TRAKT_PREFIX):
        return None
    return catalog_id[len(TRAKT_PREFIX):] or None


def encode_imported_id(addon_id: str, catalog_id: str, catalog_type: str, occurrence: int = 1) -> str:
    """
    Build `{addonId}_{catalogId}_{type}`, suffixed with `_{n}` for the n-th repeat

    Args:
        addon_id: Manifest id of the imported addon
        catalog_id: Catalog id inside that manifest
        catalog_type: Catalog type after normalization (movie/series/anime...)
        occurrence: 1 for the first catalog with this (id, type), 2 for the next...
    """
    base = f"{addon_id}_{catalog_id}_{catalog_type}"
    if occurrence > 1:
        return f"{base}_{occurrence}"
    return base


def base_id(catalog_id: str) -> str:
    """Strip provider prefixes and type/counter suffixes from a catalog id."""
    if not catalog_id:
        return ""
    decoded = decode_mdblist_id(catalog_id)
    if decoded:
        return decoded[0]
    if catalog_id.startswith(MDBLIST_PREFIX):
        return catalog_id[len(MDBLIST_PREFIX):]
    if catalog_id.startswith(TRAKT_PREFIX):
        return catalog_id[len(TRAKT_PREFIX):]
    return _TYPE_SUFFIX_RE.sub("", catalog_id)


def candidate_keys(catalog_id: str) -> List[str]:
    """Keys to try, most specific first, when looking up per-list settings."""
    keys = [catalog_id]
    if catalog_id.startswith(MDBLIST_PREFIX):
        keys.append(catalog_id[len(MDBLIST_PREFIX):])
    stripped = base_id(catalog_id)
    if stripped and stripped not in keys:
        keys.append(stripped)
    return keys


def route(catalog_id: str, imported_ids: Collection[str] = ()) -> Optional[SourceTag]:
    """Return the adapter tag that owns `catalog_id`, or None if nobody does."""
    if not catalog_id:
        return None
    if catalog_id in imported_ids:
        return SourceTag.IMPORTED
    if decode_mdblist_id(catalog_id):
        return SourceTag.MDBLIST
    if decode_trakt_id(catalog_id):
        return SourceTag.TRAKT
    return None


def is_watchlist(catalog_id: str) -> bool:
    if not catalog_id:
        return False
    return (
        catalog_id.endswith("watchlist")
        or catalog_id.endswith("watchlist-W")
        or TRAKT_WATCHLIST_ID in catalog_id
    )


def ensure_imdb_prefix(value) -> Optional[str]:
    """
    Canonicalize an external id

    Bare digits get the `tt` prefix; `tt...` and namespaced ids such as
    `kitsu:123` pass through unchanged. Empty input returns None.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return f"tt{text}"
    return text


def catalog_cache_key(list_id: str, media_kind: str, skip: int, genre: Optional[str] = None) -> str:
    key = f"{list_id}_{media_kind}_{skip}"
    if genre:
        key = f"{key}_{genre}"
    return key
