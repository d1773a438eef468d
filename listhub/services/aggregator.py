"""
List Aggregator
Entry points for manifest generation and catalog page resolution
"""
import hashlib
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from listhub.core.errors import UnknownCatalogError
from listhub.models.config import SortPreference, UserConfig
from listhub.services.base import ListSource
from listhub.services.normalizer import filter_by_genre, normalize, page
from listhub.utils.ids import candidate_keys, catalog_cache_key, is_watchlist, route

if TYPE_CHECKING:
    from listhub.core.context import EngineContext

logger = logging.getLogger(__name__)


def config_fingerprint(config: UserConfig) -> str:
    """Stable digest of a configuration, used to namespace cache and debounce state."""
    return hashlib.sha256(config.model_dump_json().encode("utf-8")).hexdigest()[:16]


class ListAggregator:
    """Routes catalog requests to the owning source and shapes the results"""

    def __init__(self, context: "EngineContext"):
        self.context = context
        self.settings = context.settings

    async def build_manifest(self, config: UserConfig) -> Dict[str, Any]:
        return await self.context.manifest_builder.build(config, config_fingerprint(config))

    def source_for(self, list_id: str, config: UserConfig) -> ListSource:
        tag = route(list_id, config.imported_catalog_ids())
        if tag is None:
            raise UnknownCatalogError(list_id)
        return self.context.sources[tag]

    def sort_for(self, list_id: str, config: UserConfig, source: ListSource) -> Optional[SortPreference]:
        for key in candidate_keys(list_id):
            preference = config.sort_preferences.get(key)
            if preference:
                return preference
        return source.default_sort(list_id)

    async def resolve_catalog(
        self,
        list_id: str,
        media_kind: str,
        skip: int,
        config: UserConfig,
        genre: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Resolve one catalog page

        Args:
            list_id: Catalog id from the manifest
            media_kind: "movie" or "series"
            skip: Pagination offset
            config: User configuration; its Trakt bundle may be refreshed in place
            genre: Optional genre filter ("All" means none)

        Returns:
            {"items": [CanonicalItem, ...], "cacheTtlSeconds": int}, or None
            when the owning source could not fetch the list

        Raises:
            UnknownCatalogError: no source owns `list_id`
        """
        if genre and genre.lower() == "all":
            genre = None
        skip = max(int(skip or 0), 0)

        source = self.source_for(list_id, config)
        watchlist = is_watchlist(list_id)
        ttl = 0 if watchlist else self.settings.CACHE_TTL_CATALOG
        cache_key = f"catalog:{config_fingerprint(config)}:{catalog_cache_key(list_id, media_kind, skip, genre)}"

        if ttl > 0:
            cached = self.context.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Catalog cache hit for {list_id} ({media_kind}, skip={skip})")
                return cached

        listing = await source.list_items(
            list_id,
            config,
            skip=skip,
            media_kind=media_kind,
            sort=self.sort_for(list_id, config, source),
            genre=genre,
        )
        if listing is None:
            logger.info(f"Catalog {list_id} not fetchable from {source.tag.value}")
            return None

        items = normalize(listing.items, media_kind)
        items = page(items, listing, skip, self.settings.ITEMS_PER_PAGE)
        items = await self.context.enricher.enrich(items)
        if not source.genre_filtered_upstream:
            items = filter_by_genre(items, genre)

        result = {"items": items, "cacheTtlSeconds": ttl}
        self.context.cache.set(cache_key, result, ttl)
        logger.info(f"Resolved {list_id} ({media_kind}, skip={skip}): {len(items)} items")
        return result
