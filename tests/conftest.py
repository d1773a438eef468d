"""
Test configuration and fixtures
"""
import pytest
from typing import Dict, List, Optional

from listhub.core.config import Settings
from listhub.core.context import EngineContext
from listhub.models.config import SortPreference, UserConfig
from listhub.models.lists import ListDescriptor, RawListing
from listhub.services.base import ListSource
from listhub.utils.ids import SourceTag


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeSource(ListSource):
    """In-memory list source that records every call"""

    def __init__(
        self,
        context,
        tag: SourceTag,
        descriptors: Optional[List[ListDescriptor]] = None,
        listings: Optional[Dict[str, Optional[RawListing]]] = None,
        configured: bool = True,
    ):
        super().__init__(context)
        self.tag = tag
        self.descriptors = descriptors or []
        self.listings = listings or {}
        self.configured = configured
        self.catalog_calls = 0
        self.item_calls: List[dict] = []
        self.fail_enumeration = False

    def is_configured(self, config: UserConfig) -> bool:
        return self.configured

    async def list_catalogs(self, config: UserConfig) -> List[ListDescriptor]:
        self.catalog_calls += 1
        if self.fail_enumeration:
            raise RuntimeError("enumeration exploded")
        return list(self.descriptors)

    async def list_items(
        self,
        list_id: str,
        config: UserConfig,
        skip: int = 0,
        media_kind: Optional[str] = None,
        sort: Optional[SortPreference] = None,
        genre: Optional[str] = None,
    ) -> Optional[RawListing]:
        self.item_calls.append({
            "list_id": list_id, "skip": skip, "media_kind": media_kind, "sort": sort, "genre": genre,
        })
        return self.listings.get(list_id)

    def default_sort(self, list_id: str) -> Optional[SortPreference]:
        return SortPreference(sort="default", order="desc")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    """Settings isolated from any local .env file"""
    return Settings(
        _env_file=None,
        TOKEN_SALT="test-salt",
        BASE_URL="http://test",
        MDBLIST_API_KEY=None,
        TRAKT_CLIENT_ID="test-client-id",
        TRAKT_CLIENT_SECRET="test-client-secret",
        DISABLE_RATE_LIMITING=True,
        ITEMS_PER_PAGE=100,
        CACHE_TTL_CATALOG=300,
        MANIFEST_DEBOUNCE_SECONDS=5.0,
    )


@pytest.fixture
async def engine(test_settings, clock):
    """Engine context with an injectable clock; closed after the test"""
    context = EngineContext(test_settings, clock=clock)
    yield context
    await context.close()


@pytest.fixture
def fake_source(engine):
    """Factory for FakeSource instances bound to the test engine"""

    def _make(tag: SourceTag, descriptors=None, listings=None, configured: bool = True) -> FakeSource:
        return FakeSource(engine, tag, descriptors, listings, configured)

    return _make


@pytest.fixture
def install_fake_sources(engine):
    """Swap the engine's real sources for FakeSource instances"""

    def _install(*sources: FakeSource):
        engine.sources = {source.tag: source for source in sources}
        engine.manifest_builder.sources = list(sources)
        return sources

    return _install


@pytest.fixture
def sample_user_config():
    """Sample user configuration with realistic fake credentials"""
    return UserConfig(
        mdblist_api_key="fake1234567890abcdefghijklmnop",  # Fake 30-char alphanumeric
        list_order=[],
        hidden_lists=[],
        custom_list_names={},
    )


@pytest.fixture
def sample_mdblist_items():
    """Sample MDBList /lists/{id}/items payload"""
    return {
        "movies": [
            {"id": 550, "imdb_id": "tt0137523", "title": "Fight Club", "release_year": 1999, "mediatype": "movie"},
            {"id": 155, "imdb_id": "tt0468569", "title": "The Dark Knight", "release_year": 2008, "mediatype": "movie"},
        ],
        "shows": [
            {"id": 1396, "imdb_id": "tt0903747", "title": "Breaking Bad", "release_year": 2008, "mediatype": "show"},
        ],
    }
