"""
List Domain Models
Descriptors and canonical items shared by every list source
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class SourceKind(str, Enum):
    """Which provider family a list came from"""
    HOSTED_INTERNAL = "HostedInternal"
    HOSTED_EXTERNAL = "HostedExternal"
    WATCHLIST = "Watchlist"
    SOCIAL_TRACKING = "SocialTracking"
    IMPORTED_ADDON = "ImportedAddon"


class MediaKind(str, Enum):
    MOVIE = "movie"
    SERIES = "series"
    ANY = "any"

    def expand(self) -> List[str]:
        """Concrete catalog types this hint applies to."""
        if self is MediaKind.ANY:
            return ["movie", "series"]
        return [self.value]


@dataclass(frozen=True)
class ListDescriptor:
    """
    One list as enumerated by a source.

    Recreated on every enumeration; `id` is the routable catalog id and
    `group_id` is set when the list belongs to a larger hideable group
    (an imported addon).
    """
    id: str
    name: str
    source_kind: SourceKind
    media_kind_hint: MediaKind = MediaKind.ANY
    group_id: Optional[str] = None


@dataclass
class RawListing:
    """Provider-native items, either `{movies, shows}` or a flat tagged list."""
    items: Union[Dict[str, Any], List[Dict[str, Any]]]
    offset_applied: bool = True


class CanonicalItem(BaseModel):
    """Normalized cross-provider item"""
    external_id: str
    media_kind: Literal["movie", "series"]
    title: str
    year: Optional[str] = None
    poster: Optional[str] = None
    background: Optional[str] = None
    description: Optional[str] = None
    runtime: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    rating: Optional[str] = None

    def to_meta(self) -> Dict[str, Any]:
        """Render as a Stremio meta preview, dropping empty fields."""
        meta = {
            "id": self.external_id,
            "type": self.media_kind,
            "name": self.title,
            "poster": self.poster,
            "posterShape": "poster",
            "background": self.background,
            "description": self.description,
            "releaseInfo": self.year,
            "runtime": self.runtime,
            "genres": self.genres or None,
            "imdbRating": self.rating,
        }
        return {key: value for key, value in meta.items() if value is not None}
