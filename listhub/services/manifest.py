"""
Manifest Builder
Merges every source's lists into one ordered, filtered addon manifest
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Collection, Dict, Iterable, List, Optional, Set

from listhub.models.config import UserConfig
from listhub.models.lists import ListDescriptor
from listhub.models.stremio import Manifest, ManifestCatalog
from listhub.services.base import ListSource
from listhub.utils.helpers import STATIC_GENRES, sanitize_catalog_name
from listhub.utils.ids import candidate_keys

if TYPE_CHECKING:
    from listhub.core.context import EngineContext

logger = logging.getLogger(__name__)


@dataclass
class ManifestBuildState:
    """Debounce bookkeeping for one configuration fingerprint"""
    completed_at: float = -math.inf
    manifest: Optional[Dict[str, Any]] = None
    task: Optional["asyncio.Task"] = None


def _normalized(values: Iterable[Any]) -> List[str]:
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


def ambiguous_keys(descriptors: Iterable[ListDescriptor]) -> Set[str]:
    """
    Looser keys that lists from more than one owner reduce to

    Catalogs of one imported addon share an owner (the addon), so the
    movie and series variants of a catalog can still be addressed together.
    """
    owners: Dict[str, Set[str]] = {}
    for descriptor in descriptors:
        owner = descriptor.group_id or descriptor.id
        for key in candidate_keys(descriptor.id)[1:]:
            owners.setdefault(key, set()).add(owner)
    return {key for key, found in owners.items() if len(found) > 1}


def lookup_keys(catalog_id: str, ambiguous: Collection[str] = ()) -> List[str]:
    """Exact id first, then the looser keys no other catalog shares"""
    keys = candidate_keys(catalog_id)
    return keys[:1] + [key for key in keys[1:] if key not in ambiguous]


def is_hidden(descriptor: ListDescriptor, hidden: set, ambiguous: Collection[str] = ()) -> bool:
    if descriptor.group_id and descriptor.group_id in hidden:
        return True
    return any(key in hidden for key in lookup_keys(descriptor.id, ambiguous))


def resolve_name(
    descriptor: ListDescriptor, custom_names: Dict[str, str], ambiguous: Collection[str] = ()
) -> str:
    """Custom name (exact id, then looser keys) else provider name, sanitized."""
    for key in lookup_keys(descriptor.id, ambiguous):
        custom = sanitize_catalog_name(custom_names.get(key))
        if custom:
            return custom
    return sanitize_catalog_name(descriptor.name) or descriptor.id


def catalog_extras(disable_genre_filter: bool) -> List[dict]:
    extras = [{"name": "skip"}]
    if not disable_genre_filter:
        extras.append({"name": "genre", "options": list(STATIC_GENRES)})
    return extras


def order_catalogs(
    catalogs: List[ManifestCatalog], list_order: Iterable[Any], ambiguous: Collection[str] = ()
) -> List[ManifestCatalog]:
    """
    Stable sort by user rank

    An exact id match takes its rank first; otherwise the looser keys of the
    id (prefix-stripped, base id) are tried, skipping keys that several
    catalogs share. Unranked catalogs go last in their original order.
    """
    ranks: Dict[str, int] = {}
    for index, key in enumerate(_normalized(list_order)):
        ranks.setdefault(key, index)
    if not ranks:
        return list(catalogs)

    def rank(catalog: ManifestCatalog) -> float:
        for key in lookup_keys(catalog.id, ambiguous):
            if key in ranks:
                return ranks[key]
        return math.inf

    ordered = sorted(enumerate(catalogs), key=lambda pair: (rank(pair[1]), pair[0]))
    return [catalog for _, catalog in ordered]


def compose_manifest(
    config: UserConfig,
    descriptors: Iterable[ListDescriptor],
    version: str = "1.0.0",
) -> Manifest:
    """
    Pure manifest assembly from already-enumerated descriptors

    Args:
        config: User configuration (hidden set, names, order, genre switch)
        descriptors: Descriptors from all sources, earlier ones win on id clashes
        version: Manifest version string
    """
    hidden = set(_normalized(config.hidden_lists))
    extras = catalog_extras(config.disable_genre_filter)

    merged: Dict[str, ListDescriptor] = {}
    for descriptor in descriptors:
        merged.setdefault(descriptor.id, descriptor)
    ambiguous = ambiguous_keys(merged.values())

    catalogs: List[ManifestCatalog] = []
    for descriptor in merged.values():
        if is_hidden(descriptor, hidden, ambiguous):
            continue
        name = resolve_name(descriptor, config.custom_list_names, ambiguous)
        for media_kind in descriptor.media_kind_hint.expand():
            catalogs.append(ManifestCatalog(
                type=media_kind,
                id=descriptor.id,
                name=name,
                extra=[dict(e) for e in extras],
            ))

    return Manifest(version=version, catalogs=order_catalogs(catalogs, config.list_order, ambiguous))


class ManifestBuilder:
    """Enumerates sources and caches the result per configuration with a debounce window"""

    def __init__(self, context: "EngineContext", sources: List[ListSource]):
        self.context = context
        self.sources = sources

    async def _enumerate(self, source: ListSource, config: UserConfig) -> List[ListDescriptor]:
        if not source.is_configured(config):
            return []
        return await source.list_catalogs(config)

    async def collect(self, config: UserConfig) -> List[ListDescriptor]:
        """Enumerate all configured sources concurrently; a failing source contributes nothing."""
        results = await asyncio.gather(
            *(self._enumerate(source, config) for source in self.sources),
            return_exceptions=True,
        )
        descriptors: List[ListDescriptor] = []
        for source, result in zip(self.sources, results):
            if isinstance(result, Exception):
                logger.warning(f"{source.tag.value} enumeration failed: {result!r}")
                continue
            descriptors.extend(result)
        return descriptors

    async def _rebuild(self, config: UserConfig, state: ManifestBuildState) -> Dict[str, Any]:
        try:
            descriptors = await self.collect(config)
            manifest = compose_manifest(
                config, descriptors, version=self.context.settings.APP_VERSION
            ).model_dump()
            state.manifest = manifest
            state.completed_at = self.context.clock()
            logger.info(f"Manifest built with {len(manifest['catalogs'])} catalogs")
            return manifest
        finally:
            state.task = None
            self.prune()

    def prune(self) -> int:
        """Drop idle states whose debounce window has passed. Returns the number removed."""
        now = self.context.clock()
        window = self.context.settings.MANIFEST_DEBOUNCE_SECONDS
        stale = [
            key for key, state in self.context.manifest_states.items()
            if state.task is None and now - state.completed_at >= window
        ]
        for key in stale:
            del self.context.manifest_states[key]
        if stale:
            logger.debug(f"Pruned {len(stale)} stale manifest states")
        return len(stale)

    async def build(self, config: UserConfig, key: str) -> Dict[str, Any]:
        """
        Return the manifest for `config`, rebuilding at most once per debounce window

        Args:
            config: User configuration
            key: Configuration fingerprint the debounce state is kept under

        Returns:
            JSON-serializable manifest dict
        """
        state = self.context.manifest_states.setdefault(key, ManifestBuildState())
        window = self.context.settings.MANIFEST_DEBOUNCE_SECONDS
        if state.manifest is not None and self.context.clock() - state.completed_at < window:
            logger.debug("Reusing manifest built %.2fs ago", self.context.clock() - state.completed_at)
            return state.manifest

        if state.task is None:
            state.task = asyncio.ensure_future(self._rebuild(config, state))
        return await asyncio.shield(state.task)
