"""
Stremio Protocol Models
Pydantic models for Stremio addon protocol
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal


class ManifestCatalog(BaseModel):
    """Catalog definition in manifest"""
    type: Literal["movie", "series"]
    id: str
    name: str
    extra: List[dict] = Field(default_factory=list)


class Manifest(BaseModel):
    """Stremio addon manifest"""
    id: str = "com.listhub.aggregator"
    version: str = "1.0.0"
    name: str = "ListHub"
    description: str = "Your MDBList, Trakt and imported addon lists in one place"

    resources: List[str] = ["catalog"]
    types: List[str] = ["movie", "series"]
    idPrefixes: List[str] = ["tt"]

    catalogs: List[ManifestCatalog]

    behaviorHints: dict = {
        "configurable": True,
        "configurationRequired": False,
    }


class CatalogResponse(BaseModel):
    """Catalog endpoint response"""
    metas: List[Dict[str, Any]]
    cacheMaxAge: int = 0
