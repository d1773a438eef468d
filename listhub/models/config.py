"""
User Configuration Models
Pydantic models for user-specific configuration
"""
import re
import time
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

_API_KEY_RE = re.compile(r"^[A-Za-z0-9]{8,64}$")


class TokenState(str, Enum):
    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


class TokenBundle(BaseModel):
    """Trakt OAuth credentials"""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = Field(None, description="Unix timestamp (seconds)")
    revoked: bool = Field(False, description="Set when the provider rejected the refresh token")

    def state(self, now: Optional[float] = None) -> TokenState:
        if self.revoked:
            return TokenState.INVALID
        if not self.access_token:
            return TokenState.NO_TOKEN
        now = time.time() if now is None else now
        if self.expires_at is not None and now >= self.expires_at:
            return TokenState.EXPIRED
        return TokenState.VALID

    @classmethod
    def invalidated(cls) -> "TokenBundle":
        """Bundle with every credential cleared, terminal until re-authentication."""
        return cls(access_token=None, refresh_token=None, expires_at=None, revoked=True)


class ImportedCatalog(BaseModel):
    """One catalog of an imported addon, under its synthetic id"""
    id: str
    original_id: str
    original_type: str
    name: str
    type: str = Field(..., description="movie, series, anime or all")
    extra_supported: List[str] = Field(default_factory=list)


class ImportedAddon(BaseModel):
    """A third-party addon whose catalogs are re-exported as lists"""
    id: str
    name: str
    version: Optional[str] = None
    logo: Optional[str] = None
    manifest_url: str
    api_base_url: str
    catalogs: List[ImportedCatalog] = Field(default_factory=list)
    is_config_driven: bool = False
    is_anime: bool = False


class SortPreference(BaseModel):
    sort: str
    order: str = "desc"


class UserConfig(BaseModel):
    """User configuration embedded in addon URL"""
    mdblist_api_key: Optional[str] = Field(None, description="MDBList API key")
    trakt: TokenBundle = Field(default_factory=TokenBundle)
    list_order: List[str] = Field(default_factory=list, description="Catalog ids in display order")
    hidden_lists: List[str] = Field(default_factory=list)
    custom_list_names: Dict[str, str] = Field(default_factory=dict)
    imported_addons: Dict[str, ImportedAddon] = Field(default_factory=dict)
    sort_preferences: Dict[str, SortPreference] = Field(default_factory=dict)
    disable_genre_filter: bool = False

    @field_validator("mdblist_api_key")
    @classmethod
    def validate_mdblist_api_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        if not _API_KEY_RE.match(value):
            raise ValueError("MDBList API key must be 8-64 alphanumeric characters")
        return value

    def imported_catalog_ids(self) -> Dict[str, ImportedAddon]:
        """Map every imported catalog id to the addon that owns it."""
        return {
            catalog.id: addon
            for addon in self.imported_addons.values()
            for catalog in addon.catalogs
        }
