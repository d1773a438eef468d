"""
Engine Context
Process-wide state shared by every request: cache, HTTP session, limiters and sources
"""
import logging
import time
from typing import Callable, Dict, Optional

import aiohttp

from listhub.core.config import Settings, settings as default_settings
from listhub.services.aggregator import ListAggregator
from listhub.services.base import ListSource
from listhub.services.cache import TTLCache
from listhub.services.cinemeta import CinemetaClient
from listhub.services.enricher import MetadataEnricher
from listhub.services.external_addons import ImportedAddonSource
from listhub.services.manifest import ManifestBuilder, ManifestBuildState
from listhub.services.mdblist import MDBListSource
from listhub.services.trakt import TraktSource
from listhub.utils.ids import SourceTag
from listhub.utils.rate_limiter import RateLimiterRegistry

logger = logging.getLogger(__name__)


class EngineContext:
    """
    Owns everything that outlives a single request.

    Construct once per process; `start()` launches the cache sweeper and
    `close()` stops it and releases the HTTP session.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Callable[[], float] = time.time):
        self.settings = settings or default_settings
        self.clock = clock
        self.cache = TTLCache(sweep_interval=self.settings.CACHE_SWEEP_INTERVAL_SECONDS, clock=clock)
        self.rate_limiters = RateLimiterRegistry(disabled=self.settings.DISABLE_RATE_LIMITING)
        self.manifest_states: Dict[str, ManifestBuildState] = {}
        self.session: Optional[aiohttp.ClientSession] = None

        self.mdblist = MDBListSource(self)
        self.trakt = TraktSource(self)
        self.imported = ImportedAddonSource(self)
        self.sources: Dict[SourceTag, ListSource] = {
            source.tag: source for source in (self.mdblist, self.trakt, self.imported)
        }

        self.cinemeta = CinemetaClient(self)
        self.enricher = MetadataEnricher(self.cinemeta, self.settings)
        self.manifest_builder = ManifestBuilder(self, list(self.sources.values()))
        self.aggregator = ListAggregator(self)

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=30),
                headers={"User-Agent": f"ListHub/{self.settings.APP_VERSION}"},
            )
        return self.session

    async def start(self):
        self.cache.start()
        logger.info("Engine context started")

    async def close(self):
        await self.cache.stop()
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None
        logger.info("Engine context closed")
