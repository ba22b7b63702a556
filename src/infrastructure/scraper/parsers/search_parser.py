"""
Search results extraction.

Search payloads come in two shapes: the current one, where each result
wraps a base64 ``demandStayListing`` id and displays prices as strings,
and a legacy flat shape with a ``listing`` object and numeric prices.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from bs4 import BeautifulSoup

from src.domain.entities import Listing, OperationKind, SearchResult
from src.infrastructure.scraper.parsers.extractor import ExtractionContext, RecordSpec
from src.infrastructure.scraper.parsers.json_utils import (
    as_bool,
    as_float,
    as_id,
    as_int,
    as_list,
    as_str,
    currency_symbol,
    decode_global_id,
    extract_id_from_url,
    first_value,
    navigate,
    parse_price_string,
)

STAYS_SEARCH_PATH = ("data", "presentation", "staysSearch", "results")

CURSOR_PATHS = (
    STAYS_SEARCH_PATH + ("paginationInfo", "nextPageCursor"),
    ("props", "pageProps", "pagination", "nextCursor"),
)

TOTAL_COUNT_PATHS = (
    STAYS_SEARCH_PATH + ("paginationInfo", "totalCount"),
    ("props", "pageProps", "pagination", "totalCount"),
)

ENTIRE_HOME_PREFIXES = (
    "apartment in", "home in", "condo in", "loft in",
    "townhouse in", "villa in", "rental unit in",
)

_RATING_PATTERN = re.compile(r'^\s*([\d.]+)\s*(?:\((\d+)\))?')


@dataclass
class SearchSelectors:
    """Markup hooks for search result cards."""

    card: str = "[itemprop='itemListElement'], [data-testid='card-container']"
    link: str = "a[href*='/rooms/']"
    title: str = "[data-testid='listing-card-title'], [itemprop='name']"
    image: str = "img"


def parse_rating_text(text: Optional[str]) -> tuple[Optional[float], int]:
    """
    Parse a localized rating such as "4.92 (118)".

    Returns:
        (rating, review count); (None, 0) when unparseable
    """
    if not text:
        return None, 0
    match = _RATING_PATTERN.match(text)
    if match is None:
        return None, 0
    try:
        rating = float(match.group(1))
    except ValueError:
        return None, 0
    return rating, int(match.group(2)) if match.group(2) else 0


def property_type_from_title(title: Optional[str]) -> Optional[str]:
    lower = (title or "").lower()
    if lower.startswith(("room in", "place to stay")):
        return "Private room"
    if lower.startswith(ENTIRE_HOME_PREFIXES):
        return "Entire home"
    if lower.startswith("hotel"):
        return "Hotel"
    return None


def location_from_title(title: Optional[str]) -> str:
    """Place name from titles like "Apartment in Paris"."""
    if not title:
        return ""
    _, sep, tail = title.rpartition(" in ")
    return tail if sep else title


def _per_night_from_explanation(display_price: dict) -> Optional[float]:
    # First price detail item reads like "5 nights x $120.00"
    groups = as_list(navigate(display_price, ("explanationData", "priceDetails")))
    if not groups or not isinstance(groups[0], dict):
        return None
    items = as_list(groups[0].get("items"))
    if not items or not isinstance(items[0], dict):
        return None
    text = as_str(items[0].get("description"))
    if not text or " x " not in text:
        return None
    return parse_price_string(text.split(" x ", 1)[1])


def _structured_content_items(section: dict) -> list[dict]:
    return [
        item for item in as_list(navigate(section, ("structuredContent", "primaryLine")))
        if isinstance(item, dict)
    ]


def _badge_types(section: dict) -> list[str]:
    return [
        badge["type"] for badge in as_list(section.get("badges"))
        if isinstance(badge, dict) and isinstance(badge.get("type"), str)
    ]


def listing_from_result(section: dict, ctx: ExtractionContext) -> Optional[Listing]:
    """Build a listing from a current-shape search result."""
    stay = section.get("demandStayListing")
    stay = stay if isinstance(stay, dict) else {}
    listing_id = decode_global_id(as_str(stay.get("id"))) or as_id(section.get("listingId"))
    if listing_id is None:
        return None

    title = as_str(section.get("title"))
    display_price = section.get("structuredDisplayPrice")
    display_price = display_price if isinstance(display_price, dict) else {}
    price_text = as_str(navigate(display_price, ("primaryLine", "price"))) or as_str(
        navigate(display_price, ("primaryLine", "discountedPrice"))
    )

    price = _per_night_from_explanation(display_price)
    if price is None:
        price = parse_price_string(price_text)

    rating, review_count = parse_rating_text(as_str(section.get("avgRatingLocalized")))
    pictures = [
        pic["picture"] for pic in as_list(section.get("contextualPictures"))
        if isinstance(pic, dict) and isinstance(pic.get("picture"), str)
    ]

    content = _structured_content_items(section)
    host_name = next(
        (as_str(item.get("body")) for item in content if item.get("type") == "HOSTINFO"),
        None,
    )

    badges = _badge_types(section)
    is_superhost = True if any("SUPERHOST" in b for b in badges) else None
    if is_superhost is None and any("Superhost" in (as_str(i.get("body")) or "") for i in content):
        is_superhost = True
    is_guest_favorite = as_bool(section.get("guestFavorite"))
    if is_guest_favorite is None and any("GUEST_FAVORITE" in b for b in badges):
        is_guest_favorite = True

    coordinate = navigate(stay, ("location", "coordinate")) or {}

    return Listing(
        id=listing_id,
        name=(
            as_str(section.get("subtitle"))
            or as_str(navigate(section, ("nameLocalized", "localizedStringWithTranslationPreference")))
            or title
            or "Unknown listing"
        ),
        location=location_from_title(title),
        price_per_night=price or 0.0,
        currency=currency_symbol(price_text) or "$",
        rating=rating,
        review_count=review_count,
        thumbnail_url=pictures[0] if pictures else None,
        property_type=property_type_from_title(title),
        host_name=host_name,
        url=ctx.listing_url(listing_id),
        is_superhost=is_superhost,
        is_guest_favorite=is_guest_favorite,
        instant_book=as_bool(stay.get("instantBookEnabled")),
        total_price=parse_price_string(as_str(navigate(display_price, ("secondaryLine", "price")))),
        photos=pictures,
        latitude=as_float(coordinate.get("latitude")) if isinstance(coordinate, dict) else None,
        longitude=as_float(coordinate.get("longitude")) if isinstance(coordinate, dict) else None,
    )


def _legacy_price(data: dict) -> Optional[float]:
    quote = data.get("pricingQuote")
    if isinstance(quote, dict):
        amount = as_float(navigate(quote, ("price", "amount")))
        if amount is None:
            amount = as_float(navigate(quote, ("rate", "amount")))
        if amount is not None:
            return amount
        text = as_str(navigate(quote, ("structuredStayDisplayPrice", "primaryLine", "price")))
        if parse_price_string(text) is not None:
            return parse_price_string(text)
    value = first_value(data, "price", "pricePerNight")
    if as_float(value) is not None:
        return as_float(value)
    return parse_price_string(as_str(value))


def listing_from_legacy(
    section: dict,
    ctx: ExtractionContext,
    require_price: bool = True,
) -> Optional[Listing]:
    """
    Build a listing from a legacy-shape search result.

    Results without a price are skipped unless ``require_price`` is False,
    in which case the price is reported as 0.
    """
    data = section.get("listing") if isinstance(section.get("listing"), dict) else section
    listing_id = as_id(first_value(data, "id", "listingId"))
    if listing_id is None:
        return None

    price = _legacy_price(section)
    if price is None and data is not section:
        price = _legacy_price(data)
    if price is None:
        if require_price:
            return None
        price = 0.0

    quote = section.get("pricingQuote") if isinstance(section.get("pricingQuote"), dict) else {}
    currency = (
        as_str(first_value(quote.get("price") or {}, "currencySymbol", "currency"))
        or as_str(first_value(quote.get("rate") or {}, "currency"))
        or as_str(first_value(quote, "currencySymbol", "currency"))
        or as_str(first_value(data, "currency", "priceCurrency"))
        or "$"
    )

    thumbnail = None
    pictures = as_list(data.get("contextualPictures"))
    if pictures and isinstance(pictures[0], dict):
        thumbnail = as_str(pictures[0].get("picture"))
    thumbnail = thumbnail or as_str(first_value(data, "thumbnail", "pictureUrl"))

    coordinate = data.get("coordinate") if isinstance(data.get("coordinate"), dict) else {}

    return Listing(
        id=listing_id,
        name=as_str(first_value(data, "name", "title")) or "Unknown listing",
        location=as_str(first_value(data, "city", "location", "publicAddress")) or "",
        price_per_night=price,
        currency=currency,
        rating=as_float(data.get("avgRating")),
        review_count=as_int(data.get("reviewsCount")) or 0,
        thumbnail_url=thumbnail,
        property_type=as_str(first_value(data, "roomType", "propertyType", "roomTypeCategory")),
        host_name=as_str(navigate(data, ("user", "firstName"))) or as_str(data.get("hostName")),
        host_id=as_id(navigate(data, ("user", "id"))),
        url=ctx.listing_url(listing_id),
        is_superhost=as_bool(data.get("isSuperhost")),
        latitude=as_float(first_value(data, "lat", "latitude")) or as_float(coordinate.get("latitude")),
        longitude=as_float(first_value(data, "lng", "longitude")) or as_float(coordinate.get("longitude")),
    )


def listing_from_section(
    section: Any,
    ctx: ExtractionContext,
    require_price: bool = True,
) -> Optional[Listing]:
    if not isinstance(section, dict):
        return None
    if "demandStayListing" in section or "structuredDisplayPrice" in section:
        return listing_from_result(section, ctx)
    return listing_from_legacy(section, ctx, require_price)


class SearchSpec(RecordSpec[SearchResult]):
    """Where search results live in search page payloads."""

    operation = OperationKind.SEARCH
    paths = (
        ("props", "pageProps", "searchResults"),
        ("niobeMinimalClientData",),
        STAYS_SEARCH_PATH + ("searchResults",),
        ("data", "presentation", "explore", "sections", "sectionIndependentData",
         "staysSearch", "searchResults"),
    )

    def __init__(self, selectors: Optional[SearchSelectors] = None):
        self.selectors = selectors or SearchSelectors()

    def matches(self, node: Any) -> bool:
        return isinstance(node, list) and any(
            isinstance(item, dict)
            and (
                "listing" in item
                or "listingId" in item
                or "demandStayListing" in item
                or isinstance(item.get("id"), str)
            )
            for item in node
        )

    def build(self, node: Any, root: Any, ctx: ExtractionContext) -> Optional[SearchResult]:
        if not isinstance(node, list):
            return None
        listings = [
            listing for listing in (listing_from_section(s, ctx) for s in node)
            if listing is not None
        ]
        if not listings:
            return None

        next_cursor = None
        for path in CURSOR_PATHS:
            next_cursor = as_str(navigate(root, path))
            if next_cursor:
                break
        total_count = None
        for path in TOTAL_COUNT_PATHS:
            total_count = as_int(navigate(root, path))
            if total_count is not None:
                break

        return SearchResult(listings=listings, total_count=total_count, next_cursor=next_cursor)

    def build_from_markup(self, soup: BeautifulSoup, ctx: ExtractionContext) -> Optional[SearchResult]:
        listings = []
        seen = set()
        for card in soup.select(self.selectors.card):
            link = card.select_one(self.selectors.link)
            if link is None:
                continue
            listing_id = extract_id_from_url(link.get("href", ""))
            if listing_id is None or listing_id in seen:
                continue
            seen.add(listing_id)

            title_el = card.select_one(self.selectors.title)
            name = (title_el or link).get_text(strip=True) or "Untitled listing"
            image = card.select_one(self.selectors.image)
            listings.append(Listing(
                id=listing_id,
                name=name,
                currency="$",
                thumbnail_url=image.get("src") if image is not None else None,
                url=ctx.listing_url(listing_id),
            ))
        if not listings:
            return None
        return SearchResult(listings=listings)


SEARCH_SPEC = SearchSpec()
