"""
Catalog Endpoint
Returns one page of a list as Stremio metas
"""
import logging
from typing import Optional, Tuple
from urllib.parse import parse_qs

from fastapi import APIRouter, HTTPException, Path, Request, Response

from listhub.api.deps import get_engine, load_config, publish_token_change, set_no_cache
from listhub.core.errors import UnknownCatalogError
from listhub.models.stremio import CatalogResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def parse_extra(extra: Optional[str]) -> Tuple[int, Optional[str]]:
    """
    Parse a Stremio extra path segment like `skip=100&genre=Drama`

    Returns:
        (skip, genre); malformed skip values fall back to 0
    """
    if not extra:
        return 0, None
    params = parse_qs(extra, keep_blank_values=False)
    try:
        skip = max(int(params.get("skip", ["0"])[0]), 0)
    except ValueError:
        skip = 0
    genre = params.get("genre", [None])[0]
    return skip, genre


async def _catalog_response(
    request: Request,
    response: Response,
    token: str,
    type: str,
    id: str,
    extra: Optional[str] = None,
):
    config = load_config(request, token)

    if type not in ["movie", "series"]:
        raise HTTPException(status_code=400, detail="Invalid catalog type")

    skip, genre = parse_extra(extra)
    before = config.trakt.model_copy()

    try:
        result = await get_engine(request).aggregator.resolve_catalog(id, type, skip, config, genre=genre)
    except UnknownCatalogError:
        raise HTTPException(status_code=404, detail="Catalog not found")

    publish_token_change(request, response, config, before)

    if result is None:
        set_no_cache(response)
        return CatalogResponse(metas=[], cacheMaxAge=0).model_dump()

    ttl = result["cacheTtlSeconds"]
    if ttl > 0:
        response.headers["Cache-Control"] = f"public, max-age={ttl}"
    else:
        set_no_cache(response)

    metas = [item.to_meta() for item in result["items"]]
    logger.info(f"Catalog {id} returned {len(metas)} items")
    return CatalogResponse(metas=metas, cacheMaxAge=ttl).model_dump()


@router.get("/{token}/catalog/{type}/{id}.json")
async def get_catalog(
    request: Request,
    response: Response,
    token: str = Path(..., description="User configuration token"),
    type: str = Path(..., description="Content type: movie or series"),
    id: str = Path(..., description="Catalog ID")
):
    """Return the first page of a catalog"""
    return await _catalog_response(request, response, token, type, id)


@router.get("/{token}/catalog/{type}/{id}/{extra}.json")
async def get_catalog_with_extra(
    request: Request,
    response: Response,
    token: str = Path(..., description="User configuration token"),
    type: str = Path(..., description="Content type: movie or series"),
    id: str = Path(..., description="Catalog ID"),
    extra: str = Path(..., description="Stremio extra, e.g. skip=100&genre=Drama")
):
    """Return a catalog page selected by skip/genre extras"""
    return await _catalog_response(request, response, token, type, id, extra)
