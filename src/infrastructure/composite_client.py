"""
Composite listing client: structured source first, document source second.

Each operation runs as a small pipeline of stages whose outcomes are
tagged results, so fallback and merge decisions are plain branches:

    TryStructured -> ok  -> (merge with document for detail/reviews) -> done
                  -> err -> TryDocument -> ok  -> done
                                        -> err -> raise document error

Example:
    >>> client = CompositeClient(structured, document)
    >>> detail = await client.get_listing_detail("12345")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from src.domain.entities import (
    HostProfile,
    ListingDetail,
    NeighborhoodStats,
    OccupancyEstimate,
    OperationKind,
    PriceCalendar,
    ReviewsPage,
    SearchParams,
    SearchResult,
)
from src.domain.interfaces.listing_client_interface import ListingClientInterface
from src.utils.exceptions import AcquisitionError, ValidationError
from src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


# Detail fields filled from the document source when the structured one
# left them empty. Counts of zero are handled separately; price and
# currency travel together.
DETAIL_MERGE_FIELDS = (
    "name",
    "location",
    "description",
    "amenities",
    "photos",
    "house_rules",
    "host_name",
    "host_id",
    "rating",
    "bedrooms",
    "beds",
    "bathrooms",
    "max_guests",
    "check_in_time",
    "check_out_time",
    "latitude",
    "longitude",
)


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one source attempt: a record or the error it raised."""

    source: str
    record: Optional[T] = None
    error: Optional[AcquisitionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_stage(source: str, call: Callable[[], Awaitable[T]]) -> StageResult[T]:
    """
    Run ``call`` and capture an acquisition failure as a tagged result.

    Validation errors are the caller's fault and are raised straight away.
    """
    try:
        return StageResult(source=source, record=await call())
    except ValidationError:
        raise
    except AcquisitionError as e:
        return StageResult(source=source, error=e)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def merge_details(primary: ListingDetail, secondary: ListingDetail) -> ListingDetail:
    """
    Fill the empty fields of ``primary`` from ``secondary``.

    A field present in ``primary`` is never replaced.
    """
    update = {
        name: getattr(secondary, name)
        for name in DETAIL_MERGE_FIELDS
        if _is_empty(getattr(primary, name)) and not _is_empty(getattr(secondary, name))
    }
    if primary.price_per_night == 0 and secondary.price_per_night > 0:
        update["price_per_night"] = secondary.price_per_night
        update["currency"] = secondary.currency
    if primary.review_count == 0 and secondary.review_count > 0:
        update["review_count"] = secondary.review_count
    if not update:
        return primary
    return primary.model_copy(update=update)


def detail_needs_merge(detail: ListingDetail) -> bool:
    return detail.price_per_night == 0 or any(
        _is_empty(getattr(detail, name)) for name in DETAIL_MERGE_FIELDS
    )


def merge_reviews(primary: ReviewsPage, secondary: ReviewsPage) -> ReviewsPage:
    """Adopt the document page when the structured page had no reviews."""
    if primary.reviews:
        return primary
    if secondary.reviews:
        return secondary
    if primary.summary is None and secondary.summary is not None:
        return secondary
    return primary


class CompositeClient(ListingClientInterface):
    """
    The single listing client exposed to callers.

    With no structured client (structured source disabled) every operation
    goes to the document client directly.

    Attributes:
        structured: Structured-source client, or None.
        document: Document-source client.
    """

    name = "composite"

    def __init__(
        self,
        structured: Optional[ListingClientInterface],
        document: ListingClientInterface,
    ):
        self.structured = structured
        self.document = document

    async def _with_fallback(
        self,
        kind: OperationKind,
        call: Callable[[ListingClientInterface], Awaitable[T]],
        merge: Optional[Callable[[T], Awaitable[T]]] = None,
    ) -> T:
        if self.structured is None:
            return await call(self.document)

        first = await run_stage(self.structured.name, lambda: call(self.structured))
        if first.ok:
            return await merge(first.record) if merge is not None else first.record

        if not self.document.supports(kind):
            raise first.error

        logger.warning(
            f"{kind.value}: {first.source} failed ({first.error.kind}), "
            f"falling back to {self.document.name}: {first.error.reason}"
        )
        second = await run_stage(self.document.name, lambda: call(self.document))
        if second.ok:
            return second.record

        logger.warning(f"{kind.value}: {second.source} also failed: {second.error}")
        raise second.error

    # ============================================
    # Operations
    # ============================================

    async def search_listings(self, params: SearchParams) -> SearchResult:
        return await self._with_fallback(
            OperationKind.SEARCH, lambda client: client.search_listings(params)
        )

    async def get_listing_detail(self, listing_id: str) -> ListingDetail:
        async def fill_gaps(detail: ListingDetail) -> ListingDetail:
            if not detail_needs_merge(detail) or not self.document.supports(OperationKind.DETAIL):
                return detail
            scraped = await run_stage(
                self.document.name, lambda: self.document.get_listing_detail(listing_id)
            )
            if not scraped.ok:
                logger.debug(f"detail: merge source unavailable: {scraped.error}")
                return detail
            return merge_details(detail, scraped.record)

        return await self._with_fallback(
            OperationKind.DETAIL,
            lambda client: client.get_listing_detail(listing_id),
            merge=fill_gaps,
        )

    async def get_reviews(self, listing_id: str, cursor: Optional[str] = None) -> ReviewsPage:
        async def fill_gaps(page: ReviewsPage) -> ReviewsPage:
            if page.reviews or not self.document.supports(OperationKind.REVIEWS):
                return page
            scraped = await run_stage(
                self.document.name, lambda: self.document.get_reviews(listing_id, cursor)
            )
            if not scraped.ok:
                logger.debug(f"reviews: merge source unavailable: {scraped.error}")
                return page
            return merge_reviews(page, scraped.record)

        return await self._with_fallback(
            OperationKind.REVIEWS,
            lambda client: client.get_reviews(listing_id, cursor),
            merge=fill_gaps,
        )

    async def get_price_calendar(self, listing_id: str, months: int = 3) -> PriceCalendar:
        return await self._with_fallback(
            OperationKind.CALENDAR, lambda client: client.get_price_calendar(listing_id, months)
        )

    async def get_host_profile(self, listing_id: str) -> HostProfile:
        return await self._with_fallback(
            OperationKind.HOST, lambda client: client.get_host_profile(listing_id)
        )

    async def get_neighborhood_stats(self, params: SearchParams) -> NeighborhoodStats:
        return await self._with_fallback(
            OperationKind.NEIGHBORHOOD, lambda client: client.get_neighborhood_stats(params)
        )

    async def get_occupancy_estimate(self, listing_id: str, months: int = 3) -> OccupancyEstimate:
        return await self._with_fallback(
            OperationKind.OCCUPANCY,
            lambda client: client.get_occupancy_estimate(listing_id, months),
        )

    async def close(self) -> None:
        if self.structured is not None:
            await self.structured.close()
        await self.document.close()
