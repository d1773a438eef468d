"""
Metadata Enricher
Fills canonical items from the metadata service in bounded, self-throttling batches
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from listhub.models.lists import CanonicalItem
from listhub.services.cinemeta import CinemetaClient
from listhub.utils.rate_limiter import AdaptiveDelay

logger = logging.getLogger(__name__)

LookupKey = Tuple[str, str]


class MetadataEnricher:
    """
    Best-effort enrichment of catalog pages.

    Lookups are grouped into batches of `ENRICH_BATCH_SIZE`; up to
    `ENRICH_MAX_CONCURRENT_BATCHES` batches run per round. Each lookup has
    its own timeout and each batch an overall timeout. A failed batch is
    logged and skipped. Slow rounds grow the delay before the next round.
    """

    def __init__(
        self,
        client: CinemetaClient,
        settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.batch_size = max(1, settings.ENRICH_BATCH_SIZE)
        self.max_concurrent_batches = max(1, settings.ENRICH_MAX_CONCURRENT_BATCHES)
        self.item_timeout = settings.ENRICH_ITEM_TIMEOUT
        self.batch_timeout = settings.ENRICH_BATCH_TIMEOUT
        self.delay = AdaptiveDelay(
            slow_threshold=settings.ENRICH_SLOW_BATCH_SECONDS,
            step=settings.ENRICH_DELAY_STEP,
            max_delay=settings.ENRICH_MAX_DELAY,
        )
        self.semaphore = asyncio.Semaphore(settings.ENRICH_MAX_CONCURRENT_LOOKUPS)
        self._sleep = sleep
        self._clock = clock

    async def _lookup(self, key: LookupKey) -> Optional[Dict[str, Any]]:
        external_id, media_kind = key
        async with self.semaphore:
            try:
                return await asyncio.wait_for(
                    self.client.fetch(external_id, media_kind), timeout=self.item_timeout
                )
            except asyncio.TimeoutError:
                logger.debug("Metadata lookup timed out for %s", external_id)
                return None

    async def _run_batch(self, keys: List[LookupKey]) -> Dict[LookupKey, Dict[str, Any]]:
        results = await asyncio.wait_for(
            asyncio.gather(*(self._lookup(key) for key in keys)),
            timeout=self.batch_timeout,
        )
        return {key: fields for key, fields in zip(keys, results) if fields}

    async def fetch_all(self, keys: List[LookupKey]) -> Dict[LookupKey, Dict[str, Any]]:
        """Run all lookups batch by batch; failures only reduce what is returned."""
        batches = [keys[i:i + self.batch_size] for i in range(0, len(keys), self.batch_size)]
        found: Dict[LookupKey, Dict[str, Any]] = {}

        for start in range(0, len(batches), self.max_concurrent_batches):
            if start > 0 and self.delay.current > 0:
                await self._sleep(self.delay.current)

            round_batches = batches[start:start + self.max_concurrent_batches]
            started = self._clock()
            outcomes = await asyncio.gather(
                *(self._run_batch(batch) for batch in round_batches),
                return_exceptions=True,
            )
            for batch, outcome in zip(round_batches, outcomes):
                if isinstance(outcome, Exception):
                    logger.warning(f"Metadata batch of {len(batch)} items failed: {outcome!r}")
                    continue
                found.update(outcome)

            elapsed = self._clock() - started
            delay = self.delay.observe(elapsed)
            if delay:
                logger.debug("Metadata round took %.2fs, next delay %.2fs", elapsed, delay)

        return found

    async def enrich(self, items: List[CanonicalItem]) -> List[CanonicalItem]:
        """
        Merge metadata service fields into items

        Service values replace provider values; provider values remain
        wherever the service had nothing. Only `tt` ids are looked up and
        each distinct (id, kind) is fetched once.
        """
        keys: List[LookupKey] = []
        seen = set()
        for item in items:
            key = (item.external_id, item.media_kind)
            if item.external_id.startswith("tt") and key not in seen:
                seen.add(key)
                keys.append(key)

        if not keys:
            return items

        found = await self.fetch_all(keys)
        logger.debug(f"Enriched {len(found)}/{len(keys)} items")

        enriched = []
        for item in items:
            fields = found.get((item.external_id, item.media_kind))
            enriched.append(item.model_copy(update=fields) if fields else item)
        return enriched
