"""
Listing detail extraction.

Two payload layouts are understood: the flat listing object of older
pages (``props.pageProps.listing``) and the page-sections layout shared by
the deferred state and the structured endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from bs4 import BeautifulSoup

from src.domain.entities import ListingDetail, OperationKind
from src.infrastructure.scraper.parsers.extractor import ExtractionContext, RecordSpec
from src.infrastructure.scraper.parsers.host_parser import HOST_SECTION_TYPES, host_from_section
from src.infrastructure.scraper.parsers.json_utils import (
    as_bool,
    as_float,
    as_id,
    as_int,
    as_list,
    as_str,
    currency_symbol,
    first_value,
    navigate,
    parse_price_string,
    strip_html_tags,
)
from src.infrastructure.scraper.parsers.pdp_sections import (
    PageSections,
    parse_check_times,
    parse_overview_items,
    parse_room_info,
    rule_titles,
)

SIDEBAR_PRICE_PATHS = (
    ("structuredDisplayPrice", "primaryLine", "discountedPrice"),
    ("structuredDisplayPrice", "primaryLine", "originalPrice"),
    ("structuredDisplayPrice", "primaryLine", "price"),
    ("structuredStayDisplayPrice", "primaryLine", "price"),
)


@dataclass
class DetailSelectors:
    """Markup hooks for a listing page."""

    title: str = "h1, [data-testid='listing-title']"
    photos: str = "[data-testid='photo-viewer-section'] img, picture img"


# ============================================
# Page-sections layout
# ============================================

def _amenities(section: Optional[dict]) -> list[str]:
    if not section:
        return []
    groups = first_value(section, "seeAllAmenitiesGroups", "previewAmenitiesGroups", "amenityGroups")
    titles: list[str] = []
    for group in as_list(groups):
        for amenity in as_list(group.get("amenities") if isinstance(group, dict) else None):
            if not isinstance(amenity, dict) or amenity.get("available") is False:
                continue
            title = as_str(amenity.get("title"))
            if title and title not in titles:
                titles.append(title)
    return titles


def _photos(page: PageSections) -> list[str]:
    urls: list[str] = []
    hero = page.find("HERO_DEFAULT")
    for image in as_list(hero.get("previewImages") if hero else None):
        url = as_str(image.get("baseUrl")) if isinstance(image, dict) else None
        if url and url not in urls:
            urls.append(url)
    tour = page.find("PHOTO_TOUR_SCROLLABLE", "PHOTO_TOUR_MODAL")
    for item in as_list(tour.get("mediaItems") if tour else None):
        url = as_str(first_value(item, "baseUrl", "url"))
        if url and url not in urls:
            urls.append(url)
    if not urls:
        image = as_str(page.sharing.get("imageUrl"))
        if image:
            urls.append(image)
    return urls


def _sidebar_price(section: Optional[dict]) -> tuple[Optional[float], Optional[str]]:
    if not section:
        return None, None
    for path in SIDEBAR_PRICE_PATHS:
        text = as_str(navigate(section, path))
        price = parse_price_string(text)
        if price is not None:
            return price, currency_symbol(text)
    return as_float(navigate(section, ("price", "amount"))), None


def _fees(page: PageSections) -> tuple[Optional[float], Optional[float]]:
    cleaning = service = None
    items = navigate(page.booking_prefetch, ("priceBreakdown", "priceItems"))
    for item in as_list(items):
        if not isinstance(item, dict):
            continue
        label = (as_str(item.get("localizedTitle")) or "").lower()
        micros = as_float(navigate(item, ("total", "amountMicros")))
        amount = micros / 1_000_000 if micros is not None else as_float(navigate(item, ("total", "amount")))
        if "cleaning" in label:
            cleaning = amount
        elif "service" in label:
            service = amount
    return cleaning, service


def detail_from_sections(page: PageSections, ctx: ExtractionContext) -> ListingDetail:
    """Build a listing detail from a page-sections payload."""
    sharing = page.sharing
    logging_ctx = page.logging

    title = page.find("TITLE_DEFAULT") or {}
    calendar = page.find("AVAILABILITY_CALENDAR_DEFAULT") or {}
    location_section = page.find("LOCATION_PDP", "LOCATION_DEFAULT") or {}
    reviews = page.find("REVIEWS_DEFAULT") or {}
    sidebar = page.find("BOOK_IT_SIDEBAR")
    policies = page.find("POLICIES_DEFAULT", "HOUSE_RULES_DEFAULT")
    description_section = page.find("DESCRIPTION_DEFAULT", "DESCRIPTION_SECTION") or {}
    host_section = page.find(*HOST_SECTION_TYPES)

    description = ""
    html_text = as_str(navigate(description_section, ("htmlDescription", "htmlText")))
    if html_text:
        description = strip_html_tags(html_text)
    elif as_str(description_section.get("description")):
        description = description_section["description"]

    price, symbol = _sidebar_price(sidebar)
    if price is None:
        price = as_float(logging_ctx.get("listingPrice"))
    currency = as_str(logging_ctx.get("currency")) or symbol or "USD"

    overview = page.find("OVERVIEW_DEFAULT") or page.find_by_id("OVERVIEW_DEFAULT_V2", "OVERVIEW_DEFAULT")
    counts = parse_overview_items(overview.get("detailItems")) if overview else {}
    bedrooms, beds, bathrooms = parse_room_info(as_str(sharing.get("title")))
    if counts.get("bedrooms") is not None:
        bedrooms = counts["bedrooms"]
    if counts.get("beds") is not None:
        beds = counts["beds"]
    if counts.get("bathrooms") is not None:
        bathrooms = counts["bathrooms"]

    max_guests = (
        as_int(calendar.get("maxGuestCapacity"))
        or as_int(sidebar.get("maxGuestCapacity") if sidebar else None)
        or counts.get("max_guests")
        or as_int(sharing.get("personCapacity"))
        or as_int(logging_ctx.get("personCapacity"))
    )

    rules = rule_titles(policies)
    check_in, check_out = parse_check_times(rules)
    check_in = check_in or as_str(page.booking_prefetch.get("checkIn"))
    check_out = check_out or as_str(page.booking_prefetch.get("checkOut"))

    cancellation = None
    if policies:
        cancellation = as_str(
            first_value(policies.get("cancellationPolicy") or {}, "title", "policyName")
        ) or as_str(policies.get("cancellationPolicyForDisplay"))

    host = host_from_section(host_section) if host_section else None
    host_name = None
    if host is not None:
        host_name = host.name if host.name != "Unknown" else as_str(host_section.get("titleText"))
    cleaning_fee, service_fee = _fees(page)

    rating = as_float(reviews.get("overallRating"))
    if rating is None:
        rating = as_float(sharing.get("starRating"))
    if rating is None:
        rating = as_float(logging_ctx.get("guestSatisfactionOverall"))

    review_count = as_int(first_value(reviews, "overallCount", "reviewsCount"))
    if review_count is None:
        review_count = as_int(sharing.get("reviewCount"))

    latitude = as_float(location_section.get("lat"))
    if latitude is None:
        latitude = as_float(logging_ctx.get("listingLat"))
    longitude = as_float(location_section.get("lng"))
    if longitude is None:
        longitude = as_float(logging_ctx.get("listingLng"))

    return ListingDetail(
        id=ctx.listing_id,
        name=(
            as_str(title.get("title"))
            or as_str(calendar.get("listingTitle"))
            or as_str(sharing.get("title"))
            or ""
        ),
        location=(
            as_str(sharing.get("location"))
            or as_str(title.get("subtitle"))
            or as_str(first_value(location_section, "subtitle", "title"))
            or ""
        ),
        description=description,
        price_per_night=price or 0.0,
        currency=currency,
        rating=rating,
        review_count=review_count or 0,
        property_type=as_str(sharing.get("propertyType")) or as_str(logging_ctx.get("roomType")),
        host_name=host_name,
        url=ctx.listing_url(),
        amenities=_amenities(page.find("AMENITIES_DEFAULT", "AMENITIES_SECTION")),
        house_rules=rules,
        latitude=latitude,
        longitude=longitude,
        photos=_photos(page),
        bedrooms=bedrooms,
        beds=beds,
        bathrooms=bathrooms,
        max_guests=max_guests,
        check_in_time=check_in,
        check_out_time=check_out,
        host_id=as_id(logging_ctx.get("hostId")) or (host.host_id if host else None),
        host_is_superhost=host.is_superhost if host else None,
        host_response_rate=host.response_rate if host else None,
        host_response_time=host.response_time if host else None,
        host_joined=host.member_since if host else None,
        host_total_listings=host.total_listings if host else None,
        host_languages=host.languages if host else [],
        cancellation_policy=cancellation,
        instant_book=as_bool(first_value(logging_ctx, "instantBook", "isInstantBook")),
        cleaning_fee=cleaning_fee,
        service_fee=service_fee,
        neighborhood=as_str(first_value(location_section, "subtitle", "neighborhoodName")),
    )


# ============================================
# Flat listing object
# ============================================

def _named_items(value: Any, *keys: str) -> list[str]:
    names = []
    for item in as_list(value):
        name = as_str(first_value(item, *keys)) if isinstance(item, dict) else as_str(item)
        if name:
            names.append(name)
    return names


def detail_from_listing(listing: dict, ctx: ExtractionContext) -> ListingDetail:
    """Build a listing detail from a flat listing object."""
    price = as_float(listing.get("price"))
    if price is None:
        price = as_float(navigate(listing, ("pricingQuote", "price", "amount")))

    host_name = as_str(navigate(listing, ("host", "name"))) or as_str(
        navigate(listing, ("primaryHost", "firstName"))
    )
    host_id = as_id(navigate(listing, ("primaryHost", "id"))) or as_id(navigate(listing, ("host", "id")))

    return ListingDetail(
        id=ctx.listing_id,
        name=as_str(first_value(listing, "name", "title")) or "",
        location=as_str(first_value(listing, "location", "city", "publicAddress")) or "",
        description=(
            as_str(listing.get("description"))
            or as_str(navigate(listing, ("sectionedDescription", "description")))
            or ""
        ),
        price_per_night=price or 0.0,
        currency=as_str(first_value(listing, "priceCurrency", "currency")) or "USD",
        rating=as_float(first_value(listing, "avgRating", "overallRating")),
        review_count=as_int(first_value(listing, "reviewsCount", "visibleReviewCount")) or 0,
        property_type=as_str(first_value(listing, "roomType", "propertyType")),
        host_name=host_name,
        host_id=host_id,
        url=ctx.listing_url(),
        amenities=_named_items(listing.get("amenities"), "name", "tag", "title"),
        house_rules=_named_items(listing.get("houseRules"), "title"),
        latitude=as_float(first_value(listing, "lat", "latitude")),
        longitude=as_float(first_value(listing, "lng", "longitude")),
        photos=_named_items(listing.get("photos"), "pictureUrl", "baseUrl", "url"),
        bedrooms=as_int(first_value(listing, "bedrooms", "bedroomCount")),
        beds=as_int(first_value(listing, "beds", "bedCount")),
        bathrooms=as_float(first_value(listing, "bathrooms", "bathroomCount")),
        max_guests=as_int(first_value(listing, "personCapacity", "maxGuests")),
        check_in_time=as_str(first_value(listing, "checkIn", "checkInTime")),
        check_out_time=as_str(first_value(listing, "checkOut", "checkOutTime")),
        instant_book=as_bool(first_value(listing, "instantBookable", "isInstantBook")),
    )


class DetailSpec(RecordSpec[ListingDetail]):
    """Where listing details live in listing page payloads."""

    operation = OperationKind.DETAIL
    paths = (
        ("props", "pageProps", "listing"),
        ("props", "pageProps", "listingData", "listing"),
    )

    def __init__(self, selectors: Optional[DetailSelectors] = None):
        self.selectors = selectors or DetailSelectors()

    def matches(self, node: Any) -> bool:
        return (
            isinstance(node, dict)
            and "name" in node
            and ("description" in node or "amenities" in node)
        )

    def build(self, node: Any, root: Any, ctx: ExtractionContext) -> Optional[ListingDetail]:
        if not isinstance(node, dict) or first_value(node, "name", "title") is None:
            return None
        return detail_from_listing(node, ctx)

    def build_from_sections(self, data: Any, ctx: ExtractionContext) -> Optional[ListingDetail]:
        page = PageSections.locate(data)
        if page is None:
            return None
        return detail_from_sections(page, ctx)

    def build_from_markup(self, soup: BeautifulSoup, ctx: ExtractionContext) -> Optional[ListingDetail]:
        heading = soup.select_one(self.selectors.title)
        name = heading.get_text(strip=True) if heading is not None else ""
        if not name:
            return None
        photos = []
        for img in soup.select(self.selectors.photos):
            src = img.get("src") or img.get("data-src")
            if src and src not in photos:
                photos.append(src)
        return ListingDetail(id=ctx.listing_id, name=name, url=ctx.listing_url(), photos=photos)


DETAIL_SPEC = DetailSpec()
