"""
Item Normalizer
Converts provider-native item shapes into canonical catalog items
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from listhub.models.lists import CanonicalItem, RawListing
from listhub.utils.helpers import format_rating, format_runtime, parse_year, split_genres
from listhub.utils.ids import ensure_imdb_prefix

logger = logging.getLogger(__name__)

_SERIES_TYPES = ("series", "show", "tv")


def _tagged_items(raw: Any) -> Iterable[Tuple[Dict[str, Any], Optional[str]]]:
    """Yield (item, kind from container) pairs for both supported shapes."""
    if isinstance(raw, dict):
        if "movies" in raw or "shows" in raw:
            for item in raw.get("movies") or []:
                yield item, "movie"
            for item in raw.get("shows") or []:
                yield item, "series"
            return
        raw = raw.get("items") or raw.get("results") or raw.get("metas") or []
    if isinstance(raw, list):
        for item in raw:
            yield item, None


def resolve_external_id(item: Dict[str, Any]) -> Optional[str]:
    """
    Canonical id for a raw item

    Prefers `imdb_id`, then `imdbid`; a generic `id` is only trusted when it
    is already an IMDb or namespaced id (many providers put numeric
    database ids there). Bare digits gain the `tt` prefix.
    """
    for key in ("imdb_id", "imdbid"):
        candidate = ensure_imdb_prefix(item.get(key))
        if candidate:
            return candidate
    generic = str(item.get("id") or "").strip()
    if generic.startswith("tt") or ":" in generic:
        return generic
    return None


def resolve_media_kind(item: Dict[str, Any], container_kind: Optional[str]) -> str:
    if container_kind:
        return container_kind
    declared = str(item.get("type") or item.get("mediatype") or "").lower()
    return "series" if declared in _SERIES_TYPES else "movie"


def normalize_item(item: Dict[str, Any], container_kind: Optional[str] = None) -> Optional[CanonicalItem]:
    if not isinstance(item, dict):
        return None
    external_id = resolve_external_id(item)
    if not external_id:
        return None
    media_kind = resolve_media_kind(item, container_kind)
    fallback_title = "Untitled Movie" if media_kind == "movie" else "Untitled Series"
    return CanonicalItem(
        external_id=external_id,
        media_kind=media_kind,
        title=item.get("name") or item.get("title") or fallback_title,
        year=parse_year(item),
        poster=item.get("poster"),
        background=item.get("background") or item.get("backdrop"),
        description=item.get("description") or item.get("overview"),
        runtime=format_runtime(item.get("runtime")),
        genres=split_genres(item.get("genres") or item.get("genre")),
        rating=format_rating(item.get("imdbRating") or item.get("imdbrating")),
    )


def normalize(raw: Any, media_kind_filter: Optional[str] = None) -> List[CanonicalItem]:
    """
    Normalize raw provider items

    Args:
        raw: `{movies, shows}` mapping or a flat list tagged by `type`
        media_kind_filter: keep only "movie" or "series" items when given

    Returns:
        Canonical items in provider order; items without a derivable id
        are dropped
    """
    items: List[CanonicalItem] = []
    dropped = 0
    for entry, container_kind in _tagged_items(raw):
        item = normalize_item(entry, container_kind)
        if item is None:
            dropped += 1
            continue
        items.append(item)

    if dropped:
        logger.debug("Dropped %d items without a usable id", dropped)

    if media_kind_filter in ("movie", "series"):
        items = [item for item in items if item.media_kind == media_kind_filter]
    return items


def page(items: List[CanonicalItem], listing: RawListing, skip: int, limit: int) -> List[CanonicalItem]:
    """Slice one page; upstream-paginated listings already start at `skip`."""
    start = 0 if listing.offset_applied else max(skip, 0)
    return items[start:start + limit]


def filter_by_genre(items: List[CanonicalItem], genre: Optional[str]) -> List[CanonicalItem]:
    if not genre or genre.lower() == "all":
        return items
    wanted = genre.lower()
    return [item for item in items if any(g.lower() == wanted for g in item.genres)]
