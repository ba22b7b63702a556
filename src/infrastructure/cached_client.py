"""
Cache-aside plumbing shared by the structured and document clients.

Records are cached as JSON text (``model_dump_json``) under the request's
namespaced key and validated back into their model on a hit.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.core.analytics import compute_neighborhood_stats, compute_occupancy_estimate
from src.domain.entities import (
    CacheNamespace,
    FetchRequest,
    NeighborhoodStats,
    OccupancyEstimate,
    OperationKind,
    SearchParams,
)
from src.domain.interfaces.listing_client_interface import ListingClientInterface
from src.infrastructure.cache.memory_cache import MemoryCache
from src.utils.config import CacheConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

TTL_FIELDS = {
    OperationKind.SEARCH: "search_ttl",
    OperationKind.DETAIL: "detail_ttl",
    OperationKind.REVIEWS: "reviews_ttl",
    OperationKind.CALENDAR: "calendar_ttl",
    OperationKind.HOST: "host_profile_ttl",
}


class CachedListingClient(ListingClientInterface):
    """
    Listing client base with a response cache and the derived operations.

    Subclasses fetch through ``_cached`` and set ``namespace``. Neighborhood
    statistics and occupancy estimates are computed from this client's own
    search and calendar operations, so they share its cache and pacing.
    """

    namespace: CacheNamespace

    def __init__(self, cache: Optional[MemoryCache] = None, cache_config: Optional[CacheConfig] = None):
        self.cache_config = cache_config or CacheConfig()
        self.cache = cache if cache is not None else MemoryCache(self.cache_config.max_entries)

    def ttl_for(self, kind: OperationKind) -> int:
        return getattr(self.cache_config, TTL_FIELDS[kind])

    async def _cached(
        self,
        request: FetchRequest,
        record_type: Type[RecordT],
        fetch: Callable[[], Awaitable[RecordT]],
    ) -> RecordT:
        """
        Return the cached record for ``request`` or fetch and store it.

        Failures from ``fetch`` propagate and leave the cache untouched.
        """
        key = request.cache_key
        payload = self.cache.get(key)
        if payload is not None:
            try:
                record = record_type.model_validate_json(payload)
            except PydanticValidationError:
                logger.warning(f"[{self.name}] Dropping unreadable cache entry {key}")
                self.cache.delete(key)
            else:
                logger.debug(f"[{self.name}] Cache hit: {key}")
                return record

        logger.debug(f"[{self.name}] Cache miss: {key}")
        record = await fetch()
        self.cache.set(key, record.model_dump_json(), self.ttl_for(request.kind))
        return record

    # ============================================
    # Derived operations
    # ============================================

    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats:
        result = await self.search_listings(params)
        return compute_neighborhood_stats(params.location, result.listings)

    async def get_occupancy_estimate(self, listing_id: str, months: int = 3) -> OccupancyEstimate:
        calendar = await self.get_price_calendar(listing_id, months)
        return compute_occupancy_estimate(calendar.listing_id, calendar)
