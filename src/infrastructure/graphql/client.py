"""
Structured-source listing client.

Issues persisted GraphQL queries against the site's ``/api/v3`` endpoint
with the access token from the CredentialManager. Requests are never
retried here: any failure surfaces immediately as a typed error and the
composite client decides whether to fall back.

Example:
    >>> client = StructuredClient(http, credentials, config.structured, base_url)
    >>> result = await client.search_listings(SearchParams.create(location="Lisbon"))
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable, Mapping, Optional

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
from src.infrastructure.graphql import parsers
from src.infrastructure.http.http_client import HttpClient
from src.infrastructure.scraper.credentials import CredentialManager
from src.infrastructure.scraper.parsers import ExtractionContext
from src.infrastructure.scraper.parsers.calendar_parser import utc_today
from src.infrastructure.scraper.rate_limiter import RateLimiter, create_rate_limiter_from_config
from src.utils.config import CacheConfig, StructuredConfig
from src.utils.exceptions import (
    AuthError,
    NotFoundError,
    ParseError,
    RateLimitedError,
    TransportError,
    ValidationError,
)
from src.utils.logger import get_logger, log_execution_time

logger = get_logger(__name__)


# ============================================
# Persisted query names
# ============================================

STAYS_SEARCH = "StaysSearch"
STAYS_PDP_SECTIONS = "StaysPdpSections"
STAYS_PDP_REVIEWS = "StaysPdpReviewsQuery"
AVAILABILITY_CALENDAR = "PdpAvailabilityCalendar"

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


class StructuredClient(CachedListingClient):
    """
    Listing client backed by the structured endpoint.

    Attributes:
        config: Structured source settings (hashes, locale, currency).
        base_url: Site root the endpoint lives under.
        credentials: Token provider shared by every request.
        rate_limiter: Limiter owned by this client.
    """

    name = "structured"
    namespace = CacheNamespace.STRUCTURED

    def __init__(
        self,
        http: HttpClient,
        credentials: CredentialManager,
        config: Optional[StructuredConfig] = None,
        base_url: str = "https://www.airbnb.com",
        cache: Optional[MemoryCache] = None,
        cache_config: Optional[CacheConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        super().__init__(cache, cache_config)
        self.http = http
        self.credentials = credentials
        self.config = config or StructuredConfig()
        self.base_url = base_url
        if rate_limiter is None:
            rps = self.config.requests_per_second
            rate_limiter = create_rate_limiter_from_config(0.5 if rps is None else rps, self.name)
        self.rate_limiter = rate_limiter
        self._today = today or utc_today

    def endpoint(self, operation_name: str) -> tuple[str, str]:
        """Return the endpoint URL and the persisted query hash."""
        query_hash = self.config.operation_hashes[operation_name]
        return f"{self.base_url}/api/v3/{operation_name}/{query_hash}", query_hash

    # ============================================
    # Transport
    # ============================================

    async def execute(
        self,
        operation_name: str,
        variables: Mapping[str, Any],
        kind: OperationKind,
        identifier: Optional[str],
        method: str = "GET",
    ) -> Any:
        """
        Run one persisted query and return the decoded JSON body.

        Raises:
            AuthError: If no token could be obtained or the token was rejected.
            RateLimitedError: On HTTP 429.
            NotFoundError: On HTTP 404.
            TransportError: On network failure or any other non-success status.
            ParseError: If the body is not JSON or only carries GraphQL errors.
        """
        await self.rate_limiter.acquire()
        token = await self.credentials.get_token()

        url, query_hash = self.endpoint(operation_name)
        extensions = {"persistedQuery": {"version": 1, "sha256Hash": query_hash}}
        params = {
            "operationName": operation_name,
            "locale": self.config.locale,
            "currency": self.config.currency,
        }
        headers = {"X-Airbnb-Api-Key": token, **JSON_HEADERS}

        with log_execution_time(logger, f"{operation_name} '{identifier}'"):
            if method == "POST":
                body = {
                    "operationName": operation_name,
                    "variables": variables,
                    "extensions": extensions,
                }
                response = await self.http.post_json(
                    url, body, params=params, headers=headers,
                    operation=kind.value, identifier=identifier,
                )
            else:
                params["variables"] = _compact(variables)
                params["extensions"] = _compact(extensions)
                response = await self.http.get(
                    url, params=params, headers=headers,
                    operation=kind.value, identifier=identifier,
                )

        if response.status == 429:
            raise RateLimitedError(
                f"{operation_name} returned HTTP 429",
                retry_after=response.retry_after,
                operation=kind.value,
                identifier=identifier,
            )
        if response.status == 404:
            raise NotFoundError(
                f"{operation_name} returned HTTP 404",
                operation=kind.value,
                identifier=identifier,
            )
        if response.status in (401, 403):
            self.credentials.invalidate()
            raise AuthError(
                f"{operation_name} rejected the API key (HTTP {response.status})",
                operation=kind.value,
                identifier=identifier,
                context={"status": response.status},
            )
        if not response.ok:
            raise TransportError(
                f"{operation_name} returned HTTP {response.status}",
                status=response.status,
                operation=kind.value,
                identifier=identifier,
            )

        try:
            data = json.loads(response.text)
        except json.JSONDecodeError as e:
            raise ParseError(
                f"{operation_name} body is not JSON: {e.msg}",
                document_size=len(response.text.encode('utf-8')),
                operation=kind.value,
                identifier=identifier,
            ) from e

        if isinstance(data, dict) and data.get("errors") and not data.get("data"):
            first = data["errors"][0] if isinstance(data["errors"], list) else data["errors"]
            message = first.get("message") if isinstance(first, dict) else str(first)
            raise ParseError(
                f"{operation_name} returned errors: {message}",
                operation=kind.value,
                identifier=identifier,
            )
        return data

    def _context(self, request: FetchRequest) -> ExtractionContext:
        return ExtractionContext(
            operation=request.kind,
            base_url=self.base_url,
            listing_id=None if request.kind is OperationKind.SEARCH else request.identifier,
        )

    # ============================================
    # Operations
    # ============================================

    async def search_listings(self, params: SearchParams) -> SearchResult:
        request = FetchRequest.search(params, self.namespace)

        async def fetch() -> SearchResult:
            data = await self.execute(
                STAYS_SEARCH,
                parsers.build_search_variables(params),
                request.kind,
                request.identifier,
                method="POST",
            )
            return parsers.parse_search_response(data, self._context(request))

        return await self._cached(request, SearchResult, fetch)

    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        request = FetchRequest.detail(listing_id, self.namespace)

        async def fetch() -> ListingDetail:
            data = await self.execute(
                STAYS_PDP_SECTIONS,
                parsers.build_sections_variables(request.identifier),
                request.kind,
                request.identifier,
            )
            return parsers.parse_detail_response(data, self._context(request))

        return await self._cached(request, ListingDetail, fetch)

    async def get_reviews(self, listing_id: str, cursor: Optional[str] = None) -> ReviewsPage:
        request = FetchRequest.reviews(listing_id, cursor, self.namespace)
        offset = self._parse_offset(cursor, request.identifier)

        async def fetch() -> ReviewsPage:
            data = await self.execute(
                STAYS_PDP_REVIEWS,
                parsers.build_reviews_variables(request.identifier, offset),
                request.kind,
                request.identifier,
            )
            return parsers.parse_reviews_response(data, self._context(request), offset)

        return await self._cached(request, ReviewsPage, fetch)

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        request = FetchRequest.calendar(listing_id, months, self.namespace)

        async def fetch() -> PriceCalendar:
            data = await self.execute(
                AVAILABILITY_CALENDAR,
                parsers.build_calendar_variables(request.identifier, months, self._today()),
                request.kind,
                request.identifier,
            )
            return parsers.parse_calendar_response(data, self._context(request))

        return await self._cached(request, PriceCalendar, fetch)

    async def get_host_profile(self, listing_id: str) -> HostProfile:
        # GetUserProfile wants a user id; the sections response carries the host card
        request = FetchRequest.host(listing_id, self.namespace)

        async def fetch() -> HostProfile:
            data = await self.execute(
                STAYS_PDP_SECTIONS,
                parsers.build_sections_variables(request.identifier),
                request.kind,
                request.identifier,
            )
            return parsers.parse_host_response(data, self._context(request))

        return await self._cached(request, HostProfile, fetch)

    @staticmethod
    def _parse_offset(cursor: Optional[str], listing_id: str) -> int:
        if not cursor:
            return 0
        try:
            offset = int(cursor)
        except ValueError:
            offset = -1
        if offset < 0:
            raise ValidationError(
                f"reviews cursor must be a non-negative offset, got {cursor!r}",
                operation=OperationKind.REVIEWS.value,
                identifier=listing_id,
                field="cursor",
            )
        return offset

    async def close(self) -> None:
        await self.http.close()
