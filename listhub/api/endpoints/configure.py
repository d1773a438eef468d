"""
Configuration Endpoint
Generates signed tokens and applies configuration changes
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Path, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from listhub.api.deps import get_engine, load_config, sign_config
from listhub.core.errors import ManifestImportError
from listhub.models.config import SortPreference, UserConfig

logger = logging.getLogger(__name__)
router = APIRouter()


class ImportAddonRequest(BaseModel):
    manifest_url: str


class ListSettingsRequest(BaseModel):
    """Explicit list-level mutations; omitted fields are left unchanged"""
    list_order: Optional[List[str]] = None
    hidden_lists: Optional[List[str]] = None
    custom_list_names: Optional[Dict[str, str]] = None
    sort_preferences: Optional[Dict[str, SortPreference]] = None
    disable_genre_filter: Optional[bool] = None


def _install_url(request: Request, token: str) -> str:
    base_url = str(get_engine(request).settings.BASE_URL).rstrip('/')
    return f"{base_url}/{token}/manifest.json"


@router.post("/generate-token")
async def generate_token(
    request: Request,
    config: UserConfig,
    verify_key: bool = Query(False, description="Check the MDBList key against the API first"),
):
    """
    Generate a signed token from user configuration

    Credential format is validated by the request model (422 on failure).
    """
    engine = get_engine(request)
    if verify_key and config.mdblist_api_key:
        user = await engine.mdblist.validate_key(config.mdblist_api_key)
        if user is None:
            raise HTTPException(status_code=400, detail="MDBList API key was rejected")

    token = sign_config(request, config)
    return JSONResponse({
        "success": True,
        "token": token,
        "install_url": _install_url(request, token),
        "trakt_auth_url": engine.trakt.authorization_url(),
    })


@router.post("/{token}/import-addon")
async def import_addon(
    request: Request,
    body: ImportAddonRequest,
    token: str = Path(..., description="User configuration token"),
):
    """Import an external addon manifest and register its catalogs"""
    config = load_config(request, token)
    try:
        addon = await get_engine(request).imported.import_addon(body.manifest_url)
    except ManifestImportError as e:
        logger.warning(f"Addon import failed for {body.manifest_url}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    config.imported_addons[addon.id] = addon
    new_token = sign_config(request, config)
    return {
        "success": True,
        "token": new_token,
        "install_url": _install_url(request, new_token),
        "addon": addon.model_dump(),
    }


@router.post("/{token}/lists")
async def update_lists(
    request: Request,
    body: ListSettingsRequest,
    token: str = Path(..., description="User configuration token"),
):
    """Apply ordering, visibility, naming and sort changes"""
    config = load_config(request, token)
    changes = body.model_dump(exclude_none=True)
    updated = config.model_copy(update={
        key: getattr(body, key) for key in changes
    })
    new_token = sign_config(request, updated)
    return {
        "success": True,
        "token": new_token,
        "install_url": _install_url(request, new_token),
    }
