"""
Tests for the catalog id codec
"""
import pytest

from listhub.utils.ids import (
    SourceTag,
    base_id,
    candidate_keys,
    catalog_cache_key,
    decode_mdblist_id,
    decode_trakt_id,
    encode_imported_id,
    encode_mdblist_id,
    ensure_imdb_prefix,
    is_watchlist,
    route,
)


def test_mdblist_ids_round_trip():
    assert encode_mdblist_id("12345", "L") == "aiolists-12345-L"
    assert encode_mdblist_id("987", "E") == "aiolists-987-E"
    assert decode_mdblist_id("aiolists-12345-L") == ("12345", "L")
    assert decode_mdblist_id("aiolists-987-E") == ("987", "E")


def test_mdblist_watchlist_has_fixed_id():
    assert encode_mdblist_id("watchlist", "W") == "aiolists-watchlist-W"
    assert decode_mdblist_id("aiolists-watchlist-W") == ("watchlist", "W")


@pytest.mark.parametrize("catalog_id", ["trakt_watchlist", "aiolists-12345", "aiolists-1-X", "", "12345"])
def test_decode_mdblist_id_rejects_other_ids(catalog_id):
    assert decode_mdblist_id(catalog_id) is None


def test_decode_trakt_id():
    assert decode_trakt_id("trakt_my-list") == "my-list"
    assert decode_trakt_id("trakt_") is None
    assert decode_trakt_id("aiolists-1-L") is None


def test_imported_ids_get_counter_on_repeats():
    assert encode_imported_id("com.addon", "top", "movie") == "com.addon_top_movie"
    assert encode_imported_id("com.addon", "top", "movie", 2) == "com.addon_top_movie_2"


@pytest.mark.parametrize("catalog_id,expected", [
    ("aiolists-L1-L", "L1"),
    ("aiolists-12345-E", "12345"),
    ("aiolists-watchlist-W", "watchlist"),
    ("trakt_trending_movies", "trending_movies"),
    ("trakt_my-list", "my-list"),
    ("com.addon_top_movie", "com.addon_top"),
    ("com.addon_top_series_2", "com.addon_top"),
    ("plain", "plain"),
])
def test_base_id(catalog_id, expected):
    assert base_id(catalog_id) == expected


def test_candidate_keys_most_specific_first():
    assert candidate_keys("aiolists-L1-L") == ["aiolists-L1-L", "L1-L", "L1"]
    assert candidate_keys("trakt_popular_shows") == ["trakt_popular_shows", "popular_shows"]
    assert candidate_keys("plain") == ["plain"]


def test_route_dispatches_by_encoded_tag():
    imported = {"com.addon_top_movie"}
    assert route("aiolists-1-L", imported) == SourceTag.MDBLIST
    assert route("aiolists-watchlist-W", imported) == SourceTag.MDBLIST
    assert route("trakt_watchlist", imported) == SourceTag.TRAKT
    assert route("com.addon_top_movie", imported) == SourceTag.IMPORTED
    assert route("com.addon_other_movie", imported) is None
    assert route("", imported) is None


@pytest.mark.parametrize("catalog_id,expected", [
    ("aiolists-watchlist-W", True),
    ("trakt_watchlist", True),
    ("my_watchlist", True),
    ("aiolists-trakt_watchlist-T", True),
    ("trakt_trending_movies", False),
    ("aiolists-1-L", False),
    ("", False),
])
def test_is_watchlist(catalog_id, expected):
    assert is_watchlist(catalog_id) is expected


def test_ensure_imdb_prefix():
    assert ensure_imdb_prefix("0137523") == "tt0137523"
    assert ensure_imdb_prefix(137523) == "tt137523"
    assert ensure_imdb_prefix("tt0137523") == "tt0137523"
    assert ensure_imdb_prefix("kitsu:1234") == "kitsu:1234"
    assert ensure_imdb_prefix("  ") is None
    assert ensure_imdb_prefix(None) is None


def test_catalog_cache_key():
    assert catalog_cache_key("aiolists-1-L", "movie", 0) == "aiolists-1-L_movie_0"
    assert catalog_cache_key("aiolists-1-L", "movie", 100, "Drama") == "aiolists-1-L_movie_100_Drama"
