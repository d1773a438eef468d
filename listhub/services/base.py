"""
List Source Base Classes
Shared HTTP plumbing and the capability contract every list source implements
"""
import abc
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import aiohttp

from listhub.models.config import SortPreference, UserConfig
from listhub.models.lists import ListDescriptor, RawListing
from listhub.utils.ids import SourceTag

if TYPE_CHECKING:
    from listhub.core.context import EngineContext

logger = logging.getLogger(__name__)


class ProviderClient:
    """HTTP client bound to the engine's shared aiohttp session"""

    def __init__(self, context: "EngineContext"):
        self.context = context
        self.settings = context.settings

    async def get_session(self) -> aiohttp.ClientSession:
        return await self.context.get_session()

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Tuple[int, Any]:
        """
        Perform one HTTP call

        Args:
            method: HTTP verb
            url: Absolute URL
            params: Query string parameters
            json: JSON body
            headers: Extra request headers
            timeout: Total timeout in seconds (session default when None)

        Returns:
            (status, parsed JSON body). The body is None for error statuses
            and for responses that are not valid JSON.

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError on transport failures
        """
        session = await self.get_session()
        kwargs: Dict[str, Any] = {"params": params, "json": json, "headers": headers}
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        async with session.request(method, url, **kwargs) as response:
            if response.status >= 400:
                return response.status, None
            try:
                return response.status, await response.json(content_type=None)
            except ValueError:
                logger.debug("Non-JSON response from %s (status %s)", url, response.status)
                return response.status, None


class ListSource(ProviderClient, abc.ABC):
    """
    Capability contract for a list provider.

    Adapters never raise provider failures: enumeration returns an empty
    list and item listing returns None for "not fetchable".
    """

    tag: SourceTag
    # True when list_items already passes the genre to the upstream
    genre_filtered_upstream: bool = False

    @abc.abstractmethod
    def is_configured(self, config: UserConfig) -> bool:
        """True when the user supplied the credentials this source needs."""

    @abc.abstractmethod
    async def list_catalogs(self, config: UserConfig) -> List[ListDescriptor]:
        ...

    @abc.abstractmethod
    async def list_items(
        self,
        list_id: str,
        config: UserConfig,
        skip: int = 0,
        media_kind: Optional[str] = None,
        sort: Optional[SortPreference] = None,
        genre: Optional[str] = None,
    ) -> Optional[RawListing]:
        ...

    def default_sort(self, list_id: str) -> Optional[SortPreference]:
        return None
