"""
Manifest Endpoint
Returns the Stremio addon manifest built from the user's lists
"""
import logging
from fastapi import APIRouter, Path, Request, Response
from listhub.api.deps import get_engine, load_config, publish_token_change, set_no_cache

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{token}/manifest.json")
async def get_manifest(
    request: Request,
    response: Response,
    token: str = Path(..., description="User configuration token")
):
    """
    Return addon manifest with user-specific configuration

    Lists from every configured source are merged, filtered, renamed and
    ordered; rebuilds are debounced per configuration.
    """
    # Lists change outside the addon, so clients must not cache the manifest
    set_no_cache(response)
    config = load_config(request, token)
    before = config.trakt.model_copy()

    manifest = await get_engine(request).aggregator.build_manifest(config)

    publish_token_change(request, response, config, before)
    return manifest
