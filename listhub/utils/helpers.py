"""
Helper Utilities
General purpose utility functions
"""
import re
from typing import Any, List, Optional

STATIC_GENRES: List[str] = [
    "All", "Action", "Adventure", "Animation", "Biography", "Comedy", "Crime",
    "Documentary", "Drama", "Family", "Fantasy", "History", "Horror", "Music",
    "Musical", "Mystery", "Romance", "Sci-Fi", "Sport", "Thriller", "War", "Western",
]

_UNSAFE_NAME_CHARS = re.compile(r"[^\w\s-]")


def sanitize_catalog_name(name: Optional[str]) -> str:
    """
    Reduce a display name to word characters, whitespace and hyphens

    Args:
        name: Original display name

    Returns:
        Sanitized name (may be empty)
    """
    if not name:
        return ""
    return _UNSAFE_NAME_CHARS.sub("", name).strip()


def parse_year(item: dict) -> Optional[str]:
    """Pull a release year out of the various date fields providers use."""
    for key in ("releaseInfo", "year", "release_year"):
        value = item.get(key)
        if value:
            return str(value)
    for key in ("release_date", "first_air_date", "released"):
        value = item.get(key)
        if value:
            return str(value).split("-")[0]
    return None


def split_genres(value: Any) -> List[str]:
    """Genres may arrive as a comma separated string, a list of strings or a list of dicts."""
    if not value:
        return []
    if isinstance(value, str):
        return [g.strip() for g in value.split(",") if g.strip()]
    genres = []
    for entry in value:
        if isinstance(entry, dict):
            entry = entry.get("title") or entry.get("name")
        if entry:
            genres.append(str(entry).strip())
    return genres


def format_runtime(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    text = str(value)
    if " min" in text or not text.replace(".", "", 1).isdigit():
        return text
    return f"{text} min"


def format_rating(value: Any) -> Optional[str]:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        return f"{value:.1f}"
    return str(value)
