"""MDBList API Client
List enumeration and item listing for MDBList hosted lists and watchlist
"""
import aiohttp
import asyncio
import logging
from typing import List, Dict, Optional, Any
from listhub.models.config import SortPreference, UserConfig
from listhub.models.lists import ListDescriptor, MediaKind, RawListing, SourceKind
from listhub.services.base import ListSource
from listhub.utils.ids import MDBLIST_WATCHLIST_ID, SourceTag, decode_mdblist_id, encode_mdblist_id

logger = logging.getLogger(__name__)

RATE_LIMIT_BACKOFF_SECONDS = 2.0

_ENUMERATION_ENDPOINTS = (
    ("/lists/user", "L", SourceKind.HOSTED_INTERNAL),
    ("/external/lists/user", "E", SourceKind.HOSTED_EXTERNAL),
)


def _media_kind_hint(mediatype: Optional[str]) -> MediaKind:
    if mediatype == "movie":
        return MediaKind.MOVIE
    if mediatype in ("show", "series"):
        return MediaKind.SERIES
    return MediaKind.ANY


class MDBListSource(ListSource):
    """Async client for the MDBList list API"""

    tag = SourceTag.MDBLIST

    @property
    def base_url(self) -> str:
        return self.settings.MDBLIST_API_URL.rstrip("/")

    @property
    def rate_limiter(self):
        return self.context.rate_limiters.get("mdblist", self.settings.MDBLIST_RATE_LIMIT)

    def api_key_for(self, config: UserConfig) -> Optional[str]:
        return config.mdblist_api_key or self.settings.MDBLIST_API_KEY

    def is_configured(self, config: UserConfig) -> bool:
        return bool(self.api_key_for(config))

    def default_sort(self, list_id: str) -> Optional[SortPreference]:
        return SortPreference(sort="imdbvotes", order="desc")

    async def validate_key(self, api_key: str) -> Optional[Dict[str, Any]]:
        """
        Check an API key against the user endpoint

        Args:
            api_key: Candidate MDBList API key

        Returns:
            User info if the key is accepted, None otherwise
        """
        if not api_key:
            return None
        try:
            status, data = await self._request(
                "GET", f"{self.base_url}/user", params={"apikey": api_key}, timeout=5
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"MDBList key validation failed: {e}")
            return None
        if status == 200 and isinstance(data, dict):
            return data
        return None

    async def _fetch_user_lists(self, path: str, api_key: str) -> List[Dict[str, Any]]:
        await self.rate_limiter.acquire()
        try:
            status, data = await self._request(
                "GET", f"{self.base_url}{path}", params={"apikey": api_key}
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error fetching MDBList lists from {path}: {e}")
            return []
        if status == 429:
            self.rate_limiter.penalize(RATE_LIMIT_BACKOFF_SECONDS)
            return []
        if status != 200 or not isinstance(data, list):
            logger.warning(f"MDBList {path} returned status {status}")
            return []
        return data

    async def list_catalogs(self, config: UserConfig) -> List[ListDescriptor]:
        """
        Enumerate the user's internal and external lists plus the watchlist

        Each endpoint fails independently; the watchlist is always present
        when an API key is configured.
        """
        api_key = self.api_key_for(config)
        if not api_key:
            return []

        results = await asyncio.gather(
            *(self._fetch_user_lists(path, api_key) for path, _, _ in _ENUMERATION_ENDPOINTS)
        )

        descriptors: List[ListDescriptor] = []
        for (_, list_type, source_kind), lists in zip(_ENUMERATION_ENDPOINTS, results):
            for entry in lists:
                list_id = entry.get("id")
                if list_id is None:
                    continue
                descriptors.append(ListDescriptor(
                    id=encode_mdblist_id(str(list_id), list_type),
                    name=entry.get("name") or str(list_id),
                    source_kind=source_kind,
                    media_kind_hint=_media_kind_hint(entry.get("mediatype")),
                ))

        descriptors.append(ListDescriptor(
            id=MDBLIST_WATCHLIST_ID,
            name="My Watchlist",
            source_kind=SourceKind.WATCHLIST,
        ))
        logger.debug(f"MDBList enumerated {len(descriptors)} lists")
        return descriptors

    def _items_path(self, list_id: str) -> Optional[str]:
        decoded = decode_mdblist_id(list_id)
        if decoded is None:
            return None
        upstream_id, list_type = decoded
        if list_type == "W":
            return "/watchlist/items"
        if list_type == "E":
            return f"/external/lists/{upstream_id}/items"
        return f"/lists/{upstream_id}/items"

    async def list_items(
        self,
        list_id: str,
        config: UserConfig,
        skip: int = 0,
        media_kind: Optional[str] = None,
        sort: Optional[SortPreference] = None,
        genre: Optional[str] = None,
    ) -> Optional[RawListing]:
        """
        Fetch one upstream page of a list

        Returns:
            RawListing with the offset already applied upstream, or None when
            the list cannot be fetched (no key, unknown id, denied, rate limited)
        """
        api_key = self.api_key_for(config)
        if not api_key:
            logger.debug(f"No MDBList API key for {list_id}")
            return None

        path = self._items_path(list_id)
        if path is None:
            return None

        sort = sort or self.default_sort(list_id)
        params = {
            "apikey": api_key,
            "sort": sort.sort,
            "order": sort.order,
            "limit": self.settings.ITEMS_PER_PAGE,
            "offset": skip,
        }

        await self.rate_limiter.acquire()
        try:
            status, data = await self._request("GET", f"{self.base_url}{path}", params=params)
        except asyncio.TimeoutError:
            logger.error(f"MDBList request timeout for {list_id}")
            return None
        except aiohttp.ClientError as e:
            logger.error(f"MDBList request error for {list_id}: {e}")
            return None

        if status == 429:
            self.rate_limiter.penalize(RATE_LIMIT_BACKOFF_SECONDS)
            return None
        if status in (401, 403, 404):
            logger.info(f"MDBList list {list_id} not fetchable (status {status})")
            return None
        if status != 200 or data is None:
            logger.error(f"MDBList API error for {list_id}: {status}")
            return None
        if isinstance(data, dict) and data.get("error"):
            logger.error(f"MDBList API error for {list_id}: {data.get('error')}")
            return None

        return RawListing(items=data, offset_applied=True)
