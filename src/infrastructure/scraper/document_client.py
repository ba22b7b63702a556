"""
Document-source listing client.

Fetches the human-facing listing pages and hands them to the
TieredExtractor. Network fetches are paced by the client's own rate
limiter and retried with a linear backoff; a 404 is never retried and a
429 is surfaced immediately unless ``retry_on_rate_limit`` is set.

Example:
    >>> client = DocumentClient(http, config.scraper, cache, config.cache)
    >>> detail = await client.get_listing_detail("12345")
    >>> print(detail.name, detail.house_rules)
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Sequence
from urllib.parse import quote

from src.domain.entities import (
    CacheNamespace,
    FetchRequest,
    HostProfile,
    ListingDetail,
    OperationKind,
    PriceCalendar,
    ReviewsPage,
    SearchParams,
    SearchResult,
)
from src.infrastructure.cache.memory_cache import MemoryCache
from src.infrastructure.cached_client import CachedListingClient
from src.infrastructure.http.http_client import HttpClient
from src.infrastructure.scraper.parsers import (
    CALENDAR_SPEC,
    DETAIL_SPEC,
    HOST_SPEC,
    REVIEWS_SPEC,
    SEARCH_SPEC,
    ExtractionContext,
    TieredExtractor,
)
from src.infrastructure.scraper.rate_limiter import RateLimiter, create_rate_limiter_from_config
from src.utils.config import CacheConfig, ScraperConfig
from src.utils.exceptions import AcquisitionError, NotFoundError, RateLimitedError, TransportError
from src.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


HTML_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class DocumentClient(CachedListingClient):
    """
    Listing client backed by page scraping.

    Attributes:
        config: Scraper settings (base URL, retries, pacing).
        rate_limiter: Limiter owned by this client.
        extractor: Tiered extractor applied to every fetched document.
        operations: Operations this client serves; the composite client
            only falls back or merges into these.
    """

    name = "document"
    namespace = CacheNamespace.DOCUMENT

    def __init__(
        self,
        http: HttpClient,
        config: Optional[ScraperConfig] = None,
        cache: Optional[MemoryCache] = None,
        cache_config: Optional[CacheConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        extractor: Optional[TieredExtractor] = None,
        operations: Optional[Iterable[OperationKind]] = None,
    ):
        super().__init__(cache, cache_config)
        if operations is not None:
            self.operations = frozenset(operations)
        self.http = http
        self.config = config or ScraperConfig()
        self.rate_limiter = rate_limiter or create_rate_limiter_from_config(
            self.config.requests_per_second, self.name
        )
        self.extractor = extractor or TieredExtractor()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def listing_url(self, listing_id: str) -> str:
        return f"{self.base_url}/rooms/{listing_id}"

    # ============================================
    # Fetching
    # ============================================

    async def fetch_document(
        self,
        url: str,
        operation: OperationKind,
        identifier: Optional[str],
        params: Optional[Sequence[tuple[str, str]]] = None,
    ) -> str:
        """
        GET a page with pacing and retries.

        Every attempt acquires a fresh rate limiter grant. Retry ``n`` first
        waits ``n * base_retry_delay`` seconds.

        Args:
            url: Page URL.
            operation: Operation the page is fetched for.
            identifier: Listing id or location, for error messages.
            params: Query string pairs.

        Returns:
            Page body.

        Raises:
            NotFoundError: On HTTP 404.
            RateLimitedError: On HTTP 429.
            TransportError: When every attempt failed on the network or
                with another non-success status.
        """
        max_retries = self.config.max_retries
        last_error: Optional[AcquisitionError] = None

        for attempt in range(max_retries + 1):
            if attempt:
                delay = attempt * self.config.base_retry_delay
                logger.warning(
                    f"{operation.value} retry {attempt}/{max_retries} for '{identifier}' "
                    f"in {delay:.1f}s after: {last_error.reason}"
                )
                await asyncio.sleep(delay)

            await self.rate_limiter.acquire()

            try:
                response = await self.http.get(
                    url,
                    params=list(params) if params else None,
                    headers=HTML_HEADERS,
                    operation=operation.value,
                    identifier=identifier,
                )
            except TransportError as e:
                last_error = e
                continue

            if response.ok:
                return response.text

            if response.status == 404:
                raise NotFoundError(
                    f"no page at {url}",
                    operation=operation.value,
                    identifier=identifier,
                    context={"status": 404},
                )

            if response.status == 429:
                error = RateLimitedError(
                    f"HTTP 429 from {url}",
                    retry_after=response.retry_after,
                    operation=operation.value,
                    identifier=identifier,
                )
                if not self.config.retry_on_rate_limit:
                    raise error
                last_error = error
                continue

            last_error = TransportError(
                f"HTTP {response.status} from {url}",
                status=response.status,
                operation=operation.value,
                identifier=identifier,
            )

        logger.error(f"Giving up after {max_retries + 1} attempts: {last_error}")
        raise last_error

    async def _fetch_and_extract(self, request: FetchRequest, url: str, spec, params=None):
        ctx = ExtractionContext(
            operation=request.kind,
            base_url=self.base_url,
            listing_id=None if request.kind is OperationKind.SEARCH else request.identifier,
        )
        with log_execution_time(logger, f"{request.operation} '{request.identifier}'"):
            document = await self.fetch_document(url, request.kind, request.identifier, params)
        return self.extractor.extract(document, spec, ctx)

    # ============================================
    # Operations
    # ============================================

    async def search_listings(self, params: SearchParams) -> SearchResult:
        request = FetchRequest.search(params, self.namespace)
        slug = quote(params.location.replace(" ", "-"))
        url = f"{self.base_url}/s/{slug}/homes"

        return await self._cached(
            request,
            SearchResult,
            lambda: self._fetch_and_extract(request, url, SEARCH_SPEC, params.to_query_pairs()),
        )

    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        request = FetchRequest.detail(listing_id, self.namespace)
        url = self.listing_url(request.identifier)

        return await self._cached(
            request,
            ListingDetail,
            lambda: self._fetch_and_extract(request, url, DETAIL_SPEC),
        )

    async def get_reviews(self, listing_id: str, cursor: Optional[str] = None) -> ReviewsPage:
        request = FetchRequest.reviews(listing_id, cursor, self.namespace)
        url = f"{self.listing_url(request.identifier)}/reviews"
        params = [("review_cursor", cursor)] if cursor else None

        return await self._cached(
            request,
            ReviewsPage,
            lambda: self._fetch_and_extract(request, url, REVIEWS_SPEC, params),
        )

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        request = FetchRequest.calendar(listing_id, months, self.namespace)
        url = self.listing_url(request.identifier)

        return await self._cached(
            request,
            PriceCalendar,
            lambda: self._fetch_and_extract(
                request, url, CALENDAR_SPEC, [("calendar_months", str(months))]
            ),
        )

    async def get_host_profile(self, listing_id: str) -> HostProfile:
        request = FetchRequest.host(listing_id, self.namespace)
        url = self.listing_url(request.identifier)

        return await self._cached(
            request,
            HostProfile,
            lambda: self._fetch_and_extract(request, url, HOST_SPEC),
        )

    async def close(self) -> None:
        await self.http.close()
