"""
Trakt API Client
OAuth token lifecycle plus user and virtual list access
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import aiohttp

from listhub.models.config import SortPreference, TokenBundle, TokenState, UserConfig
from listhub.models.lists import ListDescriptor, MediaKind, RawListing, SourceKind
from listhub.services.base import ListSource
from listhub.utils.ids import TRAKT_WATCHLIST_ID, SourceTag, decode_trakt_id, encode_trakt_id

logger = logging.getLogger(__name__)

# Statuses that mean the refresh token itself was rejected
_AUTH_REJECTED = (400, 401, 403)

_KIND_SEGMENT = {"movie": "movies", "series": "shows"}
_KIND_PAYLOAD_KEY = {"movie": "movie", "series": "show"}


@dataclass(frozen=True)
class VirtualList:
    """
    A provider-defined list.

    `paths` maps each media kind the list serves to its endpoint; `wrapped`
    is True when the payload nests the item under a "movie"/"show" key.
    """
    id: str
    name: str
    paths: Dict[str, str]
    wrapped: bool
    requires_auth: bool

    @property
    def media_kind_hint(self) -> MediaKind:
        if len(self.paths) > 1:
            return MediaKind.ANY
        return MediaKind(next(iter(self.paths)))


VIRTUAL_LISTS: Dict[str, VirtualList] = {
    v.id: v for v in (
        VirtualList(
            id=TRAKT_WATCHLIST_ID,
            name="Trakt Watchlist",
            paths={"movie": "/users/me/watchlist/movies", "series": "/users/me/watchlist/shows"},
            wrapped=True,
            requires_auth=True,
        ),
        VirtualList(
            id="trakt_recommendations_movies",
            name="Trakt Recommended Movies",
            paths={"movie": "/recommendations/movies"},
            wrapped=False,
            requires_auth=True,
        ),
        VirtualList(
            id="trakt_recommendations_shows",
            name="Trakt Recommended Shows",
            paths={"series": "/recommendations/shows"},
            wrapped=False,
            requires_auth=True,
        ),
        VirtualList(
            id="trakt_trending_movies",
            name="Trending Movies",
            paths={"movie": "/movies/trending"},
            wrapped=True,
            requires_auth=False,
        ),
        VirtualList(
            id="trakt_trending_shows",
            name="Trending Shows",
            paths={"series": "/shows/trending"},
            wrapped=True,
            requires_auth=False,
        ),
        VirtualList(
            id="trakt_popular_movies",
            name="Popular Movies",
            paths={"movie": "/movies/popular"},
            wrapped=False,
            requires_auth=False,
        ),
        VirtualList(
            id="trakt_popular_shows",
            name="Popular Shows",
            paths={"series": "/shows/popular"},
            wrapped=False,
            requires_auth=False,
        ),
    )
}


def _to_raw_item(entry: Dict[str, Any], kind: str) -> Optional[Dict[str, Any]]:
    """Flatten a Trakt movie/show object into {imdb_id, title, year, type}."""
    if not isinstance(entry, dict):
        return None
    ids = entry.get("ids") or {}
    return {
        "imdb_id": ids.get("imdb"),
        "title": entry.get("title"),
        "year": entry.get("year"),
        "type": "movie" if kind == "movie" else "show",
    }


class TraktSource(ListSource):
    """Async client for the Trakt API"""

    tag = SourceTag.TRAKT

    @property
    def base_url(self) -> str:
        return self.settings.TRAKT_API_URL.rstrip("/")

    @property
    def rate_limiter(self):
        return self.context.rate_limiters.get("trakt", self.settings.TRAKT_RATE_LIMIT)

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "trakt-api-version": "2",
            "trakt-api-key": self.settings.TRAKT_CLIENT_ID,
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def authorization_url(self) -> str:
        """OAuth authorize URL the user visits to (re-)grant access"""
        query = urlencode({
            "response_type": "code",
            "client_id": self.settings.TRAKT_CLIENT_ID,
            "redirect_uri": self.settings.TRAKT_REDIRECT_URI,
        })
        return f"{self.base_url}/oauth/authorize?{query}"

    def is_configured(self, config: UserConfig) -> bool:
        return config.trakt.state(self.context.clock()) in (TokenState.VALID, TokenState.EXPIRED)

    async def ensure_valid_token(self, bundle: TokenBundle) -> TokenBundle:
        """
        Return a usable token bundle, refreshing it when expired

        Args:
            bundle: Current token bundle

        Returns:
            The same bundle when still valid, absent or already invalid; a new
            bundle after a successful refresh; an invalidated bundle when Trakt
            rejects the refresh token. Transient failures return the bundle
            unchanged so a later request can retry.
        """
        now = self.context.clock()
        state = bundle.state(now)
        if state != TokenState.EXPIRED:
            return bundle

        if not bundle.refresh_token:
            logger.warning("Trakt token expired and no refresh token is available")
            return TokenBundle.invalidated()

        body = {
            "refresh_token": bundle.refresh_token,
            "client_id": self.settings.TRAKT_CLIENT_ID,
            "client_secret": self.settings.TRAKT_CLIENT_SECRET,
            "redirect_uri": self.settings.TRAKT_REDIRECT_URI,
            "grant_type": "refresh_token",
        }
        try:
            status, data = await self._request(
                "POST", f"{self.base_url}/oauth/token",
                json=body, headers={"Content-Type": "application/json"},
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Trakt token refresh failed, keeping current token: {e}")
            return bundle

        if status in _AUTH_REJECTED:
            logger.warning(f"Trakt rejected refresh token (status {status}), invalidating credentials")
            return TokenBundle.invalidated()

        if status != 200 or not isinstance(data, dict) or not data.get("access_token"):
            logger.warning(f"Trakt token refresh returned status {status}, keeping current token")
            return bundle

        try:
            expires_in = float(data.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0.0
        previous = bundle.expires_at or 0.0
        refreshed = TokenBundle(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or bundle.refresh_token,
            expires_at=max(now + expires_in, previous + 1),
        )
        logger.info("Trakt token refreshed")
        return refreshed

    async def authorize(self, config: UserConfig) -> Optional[str]:
        """
        Refresh the config's token bundle in place if needed

        Returns:
            The access token when usable, None otherwise
        """
        refreshed = await self.ensure_valid_token(config.trakt)
        if refreshed is not config.trakt:
            config.trakt = refreshed
        if refreshed.state(self.context.clock()) != TokenState.VALID:
            return None
        return refreshed.access_token

    async def _get(self, path: str, params: Dict[str, Any], access_token: Optional[str] = None) -> Optional[Any]:
        await self.rate_limiter.acquire()
        try:
            status, data = await self._request(
                "GET", f"{self.base_url}{path}", params=params, headers=self._headers(access_token)
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Trakt request error for {path}: {e}")
            return None
        if status == 429:
            self.rate_limiter.penalize(2.0)
            return None
        if status != 200:
            logger.info(f"Trakt {path} returned status {status}")
            return None
        return data

    async def list_catalogs(self, config: UserConfig) -> List[ListDescriptor]:
        """Enumerate the user's Trakt lists followed by the virtual lists"""
        access_token = await self.authorize(config)
        if not access_token:
            return []

        descriptors: List[ListDescriptor] = []
        data = await self._get("/users/me/lists", {}, access_token)
        if isinstance(data, list):
            for entry in data:
                slug = ((entry or {}).get("ids") or {}).get("slug")
                if not slug:
                    continue
                descriptors.append(ListDescriptor(
                    id=encode_trakt_id(slug),
                    name=entry.get("name") or slug,
                    source_kind=SourceKind.SOCIAL_TRACKING,
                ))
        else:
            logger.warning("Could not enumerate Trakt user lists")

        for virtual in VIRTUAL_LISTS.values():
            descriptors.append(ListDescriptor(
                id=virtual.id,
                name=virtual.name,
                source_kind=SourceKind.WATCHLIST if virtual.id == TRAKT_WATCHLIST_ID else SourceKind.SOCIAL_TRACKING,
                media_kind_hint=virtual.media_kind_hint,
            ))
        return descriptors

    async def _fetch_virtual(
        self,
        virtual: VirtualList,
        access_token: Optional[str],
        params: Dict[str, Any],
        media_kind: Optional[str],
    ) -> Optional[Dict[str, List[Dict[str, Any]]]]:
        result: Dict[str, List[Dict[str, Any]]] = {"movies": [], "shows": []}
        kinds = [k for k in virtual.paths if media_kind in (None, k)]
        fetched_any = False
        for kind in kinds:
            data = await self._get(virtual.paths[kind], params, access_token)
            if not isinstance(data, list):
                continue
            fetched_any = True
            bucket = result["movies" if kind == "movie" else "shows"]
            for entry in data:
                if virtual.wrapped:
                    entry = (entry or {}).get(_KIND_PAYLOAD_KEY[kind])
                raw = _to_raw_item(entry, kind)
                if raw:
                    bucket.append(raw)
        if not fetched_any and kinds:
            return None
        return result

    async def _fetch_user_list(
        self, slug: str, access_token: str, params: Dict[str, Any]
    ) -> Optional[Dict[str, List[Dict[str, Any]]]]:
        data = await self._get(f"/users/me/lists/{slug}/items", params, access_token)
        if not isinstance(data, list):
            return None
        result: Dict[str, List[Dict[str, Any]]] = {"movies": [], "shows": []}
        for entry in data:
            entry_type = (entry or {}).get("type")
            if entry_type == "movie":
                raw = _to_raw_item(entry.get("movie"), "movie")
                bucket = result["movies"]
            elif entry_type == "show":
                raw = _to_raw_item(entry.get("show"), "series")
                bucket = result["shows"]
            else:
                continue
            if raw:
                bucket.append(raw)
        return result

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
        Fetch the Trakt page containing `skip`

        Public virtual lists are fetched with the client id only; every
        other list needs a usable user token and refreshes it first.
        Items come back in the order the list owner set on Trakt, so `sort`
        is not forwarded.
        """
        slug = decode_trakt_id(list_id)
        if slug is None:
            return None

        limit = self.settings.ITEMS_PER_PAGE
        params: Dict[str, Any] = {"limit": limit, "page": skip // limit + 1}

        virtual = VIRTUAL_LISTS.get(list_id)
        access_token: Optional[str] = None
        if virtual is None or virtual.requires_auth:
            access_token = await self.authorize(config)
            if not access_token:
                logger.debug(f"No usable Trakt token for {list_id}")
                return None

        if virtual is not None:
            result = await self._fetch_virtual(virtual, access_token, params, media_kind)
        else:
            result = await self._fetch_user_list(slug, access_token, params)

        if result is None:
            return None
        # Trakt pages start on page boundaries, so the offset inside the page is already consumed
        return RawListing(items=result, offset_applied=True)
