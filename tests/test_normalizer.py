"""
Tests for item normalization, paging and genre filtering
"""
from listhub.models.lists import CanonicalItem, RawListing
from listhub.services.normalizer import (
    filter_by_genre,
    normalize,
    normalize_item,
    page,
    resolve_external_id,
)


def test_normalize_movies_and_shows_shape(sample_mdblist_items):
    """Container decides the media kind"""
    items = normalize(sample_mdblist_items)

    assert [item.external_id for item in items] == ["tt0137523", "tt0468569", "tt0903747"]
    assert [item.media_kind for item in items] == ["movie", "movie", "series"]
    assert items[0].title == "Fight Club"
    assert items[0].year == "1999"


def test_normalize_flat_list_uses_type_field():
    raw = [
        {"imdb_id": "tt0111161", "title": "The Shawshank Redemption", "type": "movie"},
        {"imdb_id": "tt0944947", "title": "Game of Thrones", "type": "show"},
        {"imdb_id": "tt0108778", "title": "Friends", "mediatype": "tv"},
    ]

    items = normalize(raw)

    assert [item.media_kind for item in items] == ["movie", "series", "series"]


def test_normalize_accepts_wrapped_metas():
    raw = {"metas": [{"id": "tt0133093", "name": "The Matrix", "type": "movie"}]}
    items = normalize(raw)
    assert len(items) == 1
    assert items[0].title == "The Matrix"


def test_media_kind_filter():
    raw = [
        {"imdb_id": "tt1", "title": "A", "type": "movie"},
        {"imdb_id": "tt2", "title": "B", "type": "series"},
    ]
    assert [i.external_id for i in normalize(raw, "movie")] == ["tt1"]
    assert [i.external_id for i in normalize(raw, "series")] == ["tt2"]
    assert len(normalize(raw, None)) == 2


def test_items_without_id_are_dropped():
    raw = [
        {"title": "No id at all", "type": "movie"},
        {"id": 550, "title": "Numeric database id only", "type": "movie"},
        {"imdb_id": "tt0137523", "title": "Fight Club", "type": "movie"},
    ]

    items = normalize(raw)

    assert [item.external_id for item in items] == ["tt0137523"]


def test_resolve_external_id_order():
    assert resolve_external_id({"imdb_id": "tt1", "imdbid": "tt2", "id": "tt3"}) == "tt1"
    assert resolve_external_id({"imdbid": "0137523"}) == "tt0137523"
    assert resolve_external_id({"id": "tt0468569"}) == "tt0468569"
    assert resolve_external_id({"id": "kitsu:1234"}) == "kitsu:1234"
    assert resolve_external_id({"id": 12345}) is None


def test_normalize_item_fallback_title():
    movie = normalize_item({"imdb_id": "tt1", "type": "movie"})
    series = normalize_item({"imdb_id": "tt2"}, "series")

    assert movie.title == "Untitled Movie"
    assert series.title == "Untitled Series"


def test_normalize_item_maps_optional_fields():
    item = normalize_item({
        "imdb_id": "tt0137523",
        "title": "Fight Club",
        "release_date": "1999-10-15",
        "poster": "https://img/poster.jpg",
        "backdrop": "https://img/back.jpg",
        "overview": "An insomniac office worker...",
        "runtime": 139,
        "genres": [{"title": "Drama"}],
        "imdbrating": 8.8,
    }, "movie")

    meta = item.to_meta()
    assert meta["releaseInfo"] == "1999"
    assert meta["background"] == "https://img/back.jpg"
    assert meta["description"].startswith("An insomniac")
    assert meta["runtime"] == "139 min"
    assert meta["genres"] == ["Drama"]
    assert meta["imdbRating"] == "8.8"
    assert meta["posterShape"] == "poster"


def test_to_meta_drops_empty_fields():
    meta = CanonicalItem(external_id="tt1", media_kind="movie", title="A").to_meta()
    assert meta == {"id": "tt1", "type": "movie", "name": "A", "posterShape": "poster"}


def _items(count):
    return [CanonicalItem(external_id=f"tt{i}", media_kind="movie", title=str(i)) for i in range(count)]


def test_page_when_upstream_applied_offset():
    items = _items(5)
    result = page(items, RawListing(items=[], offset_applied=True), skip=100, limit=3)
    assert [i.external_id for i in result] == ["tt0", "tt1", "tt2"]


def test_page_when_offset_is_local():
    items = _items(10)
    result = page(items, RawListing(items=[], offset_applied=False), skip=4, limit=3)
    assert [i.external_id for i in result] == ["tt4", "tt5", "tt6"]

    assert page(items, RawListing(items=[], offset_applied=False), skip=20, limit=3) == []


def test_filter_by_genre_is_case_insensitive():
    items = [
        CanonicalItem(external_id="tt1", media_kind="movie", title="A", genres=["Drama", "Crime"]),
        CanonicalItem(external_id="tt2", media_kind="movie", title="B", genres=["Comedy"]),
        CanonicalItem(external_id="tt3", media_kind="movie", title="C"),
    ]

    assert [i.external_id for i in filter_by_genre(items, "drama")] == ["tt1"]
    assert filter_by_genre(items, "All") == items
    assert filter_by_genre(items, None) == items
    assert filter_by_genre(items, "Horror") == []
