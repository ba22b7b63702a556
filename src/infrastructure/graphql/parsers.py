"""
Request variables and response parsing for the structured endpoint.

Responses carry the same JSON trees the listing pages embed, so parsing
reuses the record specs of the page extractor; only the entry points and
the empty-result rules differ.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from src.domain.entities import (
    HostProfile,
    ListingDetail,
    PriceCalendar,
    ReviewsPage,
    SearchParams,
    SearchResult,
)
from src.infrastructure.scraper.parsers import (
    CALENDAR_SPEC,
    DETAIL_SPEC,
    HOST_SPEC,
    REVIEWS_SPEC,
    ExtractionContext,
    extract_from_json,
    extract_from_payload,
)
from src.infrastructure.scraper.parsers.json_utils import (
    as_int,
    as_list,
    as_str,
    encode_global_id,
    first_value,
    navigate,
)
from src.infrastructure.scraper.parsers.pdp_sections import PDP_PATH
from src.infrastructure.scraper.parsers.review_parser import parse_reviews, summary_from_node
from src.infrastructure.scraper.parsers.search_parser import (
    CURSOR_PATHS,
    STAYS_SEARCH_PATH,
    TOTAL_COUNT_PATHS,
    listing_from_section,
)
from src.utils.exceptions import ParseError

REVIEWS_PAGE_SIZE = 50

SEARCH_RESULTS_PATHS = (
    STAYS_SEARCH_PATH + ("searchResults",),
    ("data", "presentation", "explore", "sections", "sectionIndependentData",
     "staysSearch", "searchResults"),
)

REVIEWS_PATH = PDP_PATH + ("reviews",)


# ============================================
# Variables
# ============================================

def _filter(name: str, value: Any) -> dict:
    return {"filterName": name, "filterValues": [str(value)]}


def build_search_variables(params: SearchParams) -> dict:
    """Variables for StaysSearch, with every filter as a raw param."""
    raw_params = [
        _filter("cdnCacheSafe", "false"),
        _filter("channel", "EXPLORE"),
        _filter("placeId", params.location),
        _filter("source", "structured_search_input_header"),
        _filter("searchType", "filter_change"),
    ]
    optional = (
        ("checkin", params.checkin),
        ("checkout", params.checkout),
        ("adults", params.adults),
        ("children", params.children),
        ("infants", params.infants),
        ("pets", params.pets),
        ("priceMin", params.min_price),
        ("priceMax", params.max_price),
    )
    raw_params.extend(_filter(name, value) for name, value in optional if value is not None)

    request = {
        "requestedPageType": "STAYS_SEARCH",
        "metadataOnly": False,
        "searchType": "filter_change",
        "treatmentFlags": ["decompose_stays_search_m2_treatment"],
        "rawParams": raw_params,
    }
    if params.cursor:
        request["cursor"] = params.cursor
    return {"staysSearchRequest": request, "staysMapSearchRequestV2": dict(request)}


def build_sections_variables(listing_id: str) -> dict:
    """Variables for StaysPdpSections, used by detail and host."""
    return {
        "id": encode_global_id("StayListing", listing_id),
        "demandStayListingId": encode_global_id("DemandStayListing", listing_id),
        "pdpSectionsRequest": {
            "adults": "1",
            "bypassTargetings": False,
            "categoryTag": None,
            "children": None,
            "infants": None,
            "layouts": ["SIDEBAR", "SINGLE_COLUMN"],
            "pets": 0,
            "preview": False,
            "privateBooking": False,
            "staysBookingMigrationEnabled": False,
            "useNewSectionWrapperApi": False,
        },
    }


def build_reviews_variables(listing_id: str, offset: int) -> dict:
    return {
        "id": encode_global_id("StayListing", listing_id),
        "pdpReviewsRequest": {
            "fieldSelector": "for_p3_translation_only",
            "forPreview": False,
            "limit": REVIEWS_PAGE_SIZE,
            "offset": str(offset),
            "showingTranslationButton": False,
            "first": REVIEWS_PAGE_SIZE,
            "sortingPreference": "MOST_RECENT",
            "numberOfAdults": "1",
            "numberOfChildren": "0",
            "numberOfInfants": "0",
            "numberOfPets": "0",
        },
    }


def build_calendar_variables(listing_id: str, months: int, today: date) -> dict:
    """Variables for PdpAvailabilityCalendar starting at ``today``'s month."""
    return {
        "request": {
            "count": months,
            "listingId": listing_id,
            "month": today.month,
            "year": today.year,
        }
    }


# ============================================
# Responses
# ============================================

def _unrecognized(ctx: ExtractionContext, what: str) -> ParseError:
    return ParseError(
        f"unrecognized response shape: {what}",
        operation=ctx.operation.value,
        identifier=ctx.identifier,
    )


def _require(outcome, ctx: ExtractionContext, what: str):
    if not outcome.succeeded:
        raise _unrecognized(ctx, what)
    return outcome.record


def parse_search_response(data: Any, ctx: ExtractionContext) -> SearchResult:
    """
    Parse a StaysSearch response.

    An empty results array is a valid empty page. Results without a price
    are kept with a price of 0.
    """
    results = None
    for path in SEARCH_RESULTS_PATHS:
        results = navigate(data, path)
        if isinstance(results, list):
            break
    if not isinstance(results, list):
        raise _unrecognized(ctx, "no searchResults array")

    listings = [
        listing for listing in (
            listing_from_section(section, ctx, require_price=False) for section in results
        )
        if listing is not None
    ]

    next_cursor = None
    for path in CURSOR_PATHS:
        next_cursor = as_str(navigate(data, path))
        if next_cursor:
            break
    total_count = None
    for path in TOTAL_COUNT_PATHS:
        total_count = as_int(navigate(data, path))
        if total_count is not None:
            break

    return SearchResult(listings=listings, total_count=total_count, next_cursor=next_cursor)


def parse_detail_response(data: Any, ctx: ExtractionContext) -> ListingDetail:
    return _require(extract_from_payload(data, DETAIL_SPEC, ctx), ctx, "no listing sections")


def parse_host_response(data: Any, ctx: ExtractionContext) -> HostProfile:
    return _require(extract_from_payload(data, HOST_SPEC, ctx), ctx, "no host section")


def parse_calendar_response(data: Any, ctx: ExtractionContext) -> PriceCalendar:
    return _require(extract_from_json(data, CALENDAR_SPEC, ctx), ctx, "no calendar months")


def next_reviews_offset(reviews_data: dict, offset: int, received: int) -> Optional[str]:
    """
    Offset cursor of the following page, or None on the last page.

    More pages are assumed while ``offset + received`` does not exceed the
    reported total.
    """
    if received == 0:
        return None
    total = as_int(first_value(reviews_data, "reviewsCount"))
    if total is None:
        total = as_int(navigate(reviews_data, ("metadata", "reviewsCount")))
    if total is None:
        return None
    current = as_int(navigate(reviews_data, ("metadata", "offset")))
    current = offset if current is None else current
    if current + received > total:
        return None
    return str(current + received)


def parse_reviews_response(data: Any, ctx: ExtractionContext, offset: int = 0) -> ReviewsPage:
    """
    Parse a StaysPdpReviewsQuery response.

    A reviews object with no reviews is a valid empty page.
    """
    reviews_data = navigate(data, REVIEWS_PATH)
    if not isinstance(reviews_data, dict):
        return _require(extract_from_payload(data, REVIEWS_SPEC, ctx), ctx, "no reviews object")

    reviews = parse_reviews(as_list(reviews_data.get("reviews")))
    return ReviewsPage(
        listing_id=ctx.listing_id,
        summary=summary_from_node(reviews_data),
        reviews=reviews,
        next_cursor=next_reviews_offset(reviews_data, offset, len(reviews)),
    )


__all__ = [
    "REVIEWS_PAGE_SIZE",
    "build_calendar_variables",
    "build_reviews_variables",
    "build_search_variables",
    "build_sections_variables",
    "next_reviews_offset",
    "parse_calendar_response",
    "parse_detail_response",
    "parse_host_response",
    "parse_reviews_response",
    "parse_search_response",
]
