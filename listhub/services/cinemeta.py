"""
Cinemeta API Client
Canonical metadata lookups used to fill in catalog items
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from listhub.services.base import ProviderClient
from listhub.utils.helpers import format_rating, format_runtime, parse_year, split_genres

logger = logging.getLogger(__name__)


def meta_to_fields(meta: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Cinemeta meta object onto canonical item fields, skipping empty values."""
    fields = {
        "title": meta.get("name"),
        "year": parse_year(meta),
        "poster": meta.get("poster"),
        "background": meta.get("background"),
        "description": meta.get("description"),
        "runtime": format_runtime(meta.get("runtime")),
        "genres": split_genres(meta.get("genres") or meta.get("genre")),
        "rating": format_rating(meta.get("imdbRating")),
    }
    return {key: value for key, value in fields.items() if value}


class CinemetaClient(ProviderClient):

    @property
    def base_url(self) -> str:
        return self.settings.CINEMETA_URL.rstrip("/")

    async def fetch(self, external_id: str, media_kind: str) -> Optional[Dict[str, Any]]:
        """Fetch partial canonical fields for one IMDb id (media_kind: movie or series)."""
        if not external_id or not external_id.startswith("tt"):
            return None

        url = f"{self.base_url}/meta/{media_kind}/{external_id}.json"
        try:
            status, data = await self._request("GET", url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug("Cinemeta fetch error for %s: %s", external_id, exc)
            return None

        if status != 200 or not isinstance(data, dict):
            logger.debug("Cinemeta fetch %s returned %s", external_id, status)
            return None
        meta = data.get("meta")
        if not isinstance(meta, dict):
            return None
        return meta_to_fields(meta)
