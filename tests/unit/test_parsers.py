"""Unit tests for the per-record parsers and JSON helpers."""

import json
from datetime import date

import pytest

from src.domain.entities import OperationKind, UnavailabilityReason
from src.infrastructure.scraper.parsers import (
    HOST_SPEC,
    REVIEWS_SPEC,
    SEARCH_SPEC,
    CalendarSpec,
    ExtractionContext,
    TieredExtractor,
)
from src.infrastructure.scraper.parsers.detail_parser import detail_from_listing, detail_from_sections
from src.infrastructure.scraper.parsers.host_parser import host_from_section
from src.infrastructure.scraper.parsers.json_utils import (
    as_float,
    as_id,
    as_int,
    decode_global_id,
    encode_global_id,
    extract_id_from_url,
    extract_number,
    navigate,
    parse_price_string,
)
from src.infrastructure.scraper.parsers.pdp_sections import (
    PageSections,
    parse_check_times,
    parse_languages,
    parse_room_info,
)
from src.infrastructure.scraper.parsers.review_parser import parse_category_ratings
from src.infrastructure.scraper.parsers.search_parser import parse_rating_text
from tests.helpers import BASE_URL, next_data_page, pdp_sections_payload


def context(kind: OperationKind, listing_id=None) -> ExtractionContext:
    return ExtractionContext(kind, BASE_URL, listing_id)


@pytest.fixture
def extractor():
    return TieredExtractor()


class TestJsonUtils:
    """Test tolerant accessors and text helpers."""

    def test_navigate(self):
        assert navigate({"a": {"b": [1, 2]}}, ("a", "b")) == [1, 2]
        assert navigate({"a": 1}, ("a", "b")) is None
        assert navigate({"a": 1}, ()) == {"a": 1}

    @pytest.mark.parametrize("text,expected", [
        ("$1,250.50", 1250.5),
        ("€95", 95.0),
        ("120 USD", 120.0),
        ("free", None),
        (None, None),
    ])
    def test_parse_price_string(self, text, expected):
        assert parse_price_string(text) == expected

    def test_coercions_reject_wrong_types(self):
        assert as_float(True) is None
        assert as_int(-1) is None
        assert as_int(3.0) == 3
        assert as_id(123) == "123"
        assert as_id("") is None

    def test_global_id(self):
        encoded = encode_global_id("DemandStayListing", "987")
        assert decode_global_id(encoded) == "987"
        assert decode_global_id("not base64!") is None

    def test_extract_id_from_url(self):
        assert extract_id_from_url("/rooms/12345?adults=2") == "12345"
        assert extract_id_from_url("/users/show/1") is None

    def test_extract_number(self):
        assert extract_number("4 guests") == 4
        assert extract_number("Studio") is None


class TestPageSections:
    """Test section helpers."""

    def test_room_info_with_studio(self):
        assert parse_room_info("Rental unit in Paris · Studio · 1 bed · 1 bath") == (0, 1, 1.0)

    def test_room_info_counts(self):
        title = "Home in Lisbon · ★4.90 · 2 bedrooms · 3 beds · 1.5 baths"
        bedrooms, beds, _ = parse_room_info(title)
        assert (bedrooms, beds) == (2, 3)

    def test_check_times(self):
        rules = ["Check-in after 3:00 PM", "Checkout before 11:00 AM", "No pets"]
        assert parse_check_times(rules) == ("Check-in after 3:00 PM", "Checkout before 11:00 AM")

    def test_languages(self):
        highlights = [{"title": "Lives in Porto"}, {"title": "Speaks English, French and Spanish"}]
        assert parse_languages(highlights) == ["English", "French", "Spanish"]

    def test_locate_requires_sections_list(self):
        assert PageSections.locate({"data": {}}) is None
        assert PageSections.locate(pdp_sections_payload([])) is not None


class TestDetailParser:
    """Test both listing detail layouts."""

    def test_from_listing(self, listing_json):
        detail = detail_from_listing(listing_json, context(OperationKind.DETAIL, "123"))

        assert detail.id == "123"
        assert detail.location == "Lisbon"
        assert detail.price_per_night == 120.0
        assert detail.currency == "EUR"
        assert detail.rating == 4.87
        assert detail.review_count == 54
        assert detail.amenities == ["Wifi", "Kitchen"]
        assert detail.house_rules == ["No parties", "Check-in after 3:00 PM"]
        assert detail.host_name == "Ana"
        assert detail.host_id == "77"
        assert detail.max_guests == 4
        assert detail.url == f"{BASE_URL}/rooms/123"

    def test_from_sections(self, detail_sections, detail_metadata):
        page = PageSections.locate(pdp_sections_payload(detail_sections, detail_metadata))

        detail = detail_from_sections(page, context(OperationKind.DETAIL, "123"))

        assert detail.name == "Sunny loft"
        assert detail.location == "Lisbon"
        assert detail.description == "Bright loft\nnear the river"
        assert detail.price_per_night == 150.0
        assert detail.currency == "$"
        assert detail.amenities == ["Wifi", "Kitchen"]
        assert detail.rating == 4.9
        assert detail.review_count == 87
        assert (detail.bedrooms, detail.beds, detail.bathrooms) == (2, 3, 1.0)
        assert detail.max_guests == 4
        assert detail.host_name == "Ana"
        assert detail.host_id == "77"
        assert detail.host_is_superhost is True
        assert detail.latitude == 38.71
        assert detail.house_rules == []


class TestSearchParser:
    """Test both search result shapes and the markup fallback."""

    def test_legacy_shape(self, extractor):
        payload = {"props": {"pageProps": {
            "searchResults": [
                {
                    "listing": {"id": 1, "name": "Loft", "city": "Porto", "avgRating": 4.5,
                                "reviewsCount": 10, "roomType": "Entire home"},
                    "pricingQuote": {"price": {"amount": 80, "currencySymbol": "€"}},
                },
                {"listing": {"id": 2, "name": "No price"}},
            ],
            "pagination": {"nextCursor": "abc", "totalCount": 40},
        }}}

        result = extractor.extract(next_data_page(payload), SEARCH_SPEC, context(OperationKind.SEARCH))

        assert [listing.id for listing in result.listings] == ["1"]
        listing = result.listings[0]
        assert listing.price_per_night == 80.0
        assert listing.currency == "€"
        assert listing.url == f"{BASE_URL}/rooms/1"
        assert result.next_cursor == "abc"
        assert result.total_count == 40

    def test_current_shape(self, extractor):
        section = {
            "demandStayListing": {
                "id": encode_global_id("DemandStayListing", "555"),
                "location": {"coordinate": {"latitude": 41.1, "longitude": -8.6}},
            },
            "title": "Apartment in Porto",
            "subtitle": "River view flat",
            "structuredDisplayPrice": {"primaryLine": {"price": "$95"}},
            "avgRatingLocalized": "4.92 (118)",
            "contextualPictures": [{"picture": "https://img/1.jpg"}],
            "badges": [{"type": "SUPERHOST"}],
        }
        payload = {"data": {"presentation": {"staysSearch": {"results": {
            "searchResults": [section],
            "paginationInfo": {"nextPageCursor": "next"},
        }}}}}

        result = extractor.extract(next_data_page(payload), SEARCH_SPEC, context(OperationKind.SEARCH))

        listing = result.listings[0]
        assert listing.id == "555"
        assert listing.name == "River view flat"
        assert listing.location == "Porto"
        assert listing.price_per_night == 95.0
        assert listing.currency == "$"
        assert (listing.rating, listing.review_count) == (4.92, 118)
        assert listing.property_type == "Entire home"
        assert listing.is_superhost is True
        assert listing.thumbnail_url == "https://img/1.jpg"
        assert listing.latitude == 41.1
        assert result.next_cursor == "next"

    def test_markup_cards(self, extractor):
        card = (
            '<div itemprop="itemListElement"><a href="/rooms/42?adults=2">'
            '<span data-testid="listing-card-title">Tiny house</span></a><img src="t.jpg"></div>'
        )
        html = f"<html><body>{card}{card}</body></html>"

        result = extractor.extract(html, SEARCH_SPEC, context(OperationKind.SEARCH))

        assert len(result.listings) == 1
        assert result.listings[0].id == "42"
        assert result.listings[0].name == "Tiny house"
        assert result.listings[0].thumbnail_url == "t.jpg"

    @pytest.mark.parametrize("text,expected", [
        ("4.92 (118)", (4.92, 118)),
        ("4.5", (4.5, 0)),
        ("New", (None, 0)),
        (None, (None, 0)),
    ])
    def test_rating_text(self, text, expected):
        assert parse_rating_text(text) == expected


class TestReviewParser:
    """Test review pages and category ratings."""

    def test_reviews_with_summary(self, extractor):
        payload = {"props": {"pageProps": {
            "reviews": [
                {
                    "comments": "Great stay",
                    "reviewer": {"firstName": "Joe", "location": "Berlin"},
                    "createdAt": "2024-05-01",
                    "rating": 5,
                    "response": {"comments": "Thanks!"},
                },
                {"rating": 4},
            ],
            "listing": {"avgRating": 4.8, "reviewsCount": 12, "cleanlinessRating": 4.9},
        }}}

        page = extractor.extract(
            next_data_page(payload), REVIEWS_SPEC, context(OperationKind.REVIEWS, "123")
        )

        assert page.listing_id == "123"
        assert len(page.reviews) == 1
        review = page.reviews[0]
        assert review.author == "Joe"
        assert review.comment == "Great stay"
        assert review.rating == 5.0
        assert review.response == "Thanks!"
        assert review.reviewer_location == "Berlin"
        assert page.summary.overall_rating == 4.8
        assert page.summary.total_reviews == 12
        assert page.summary.cleanliness == 4.9

    def test_category_ratings(self):
        ratings = parse_category_ratings([
            {"label": "Cleanliness", "localizedRating": "4.9"},
            {"categoryType": "VALUE", "percentage": 0.9},
            {"label": "Vibes", "value": 3},
        ])

        assert ratings["cleanliness"] == 4.9
        assert ratings["value"] == pytest.approx(4.5)
        assert "vibes" not in ratings

    def test_markup_reviews(self, extractor):
        html = (
            '<html><body><div data-testid="review"><h3>Mia</h3>'
            '<span data-testid="review-text">Lovely place</span></div></body></html>'
        )

        page = extractor.extract(html, REVIEWS_SPEC, context(OperationKind.REVIEWS, "9"))

        assert page.reviews[0].author == "Mia"
        assert page.reviews[0].comment == "Lovely place"
        assert page.summary is None


class TestCalendarParser:
    """Test calendar days, statistics and unavailability reasons."""

    @pytest.fixture
    def spec(self):
        return CalendarSpec(today=lambda: date(2024, 6, 15))

    def test_bare_calendar_body(self, extractor, spec):
        body = {
            "currency": "EUR",
            "calendarMonths": [{"days": [
                {"date": "2024-06-14", "available": False},
                {"date": "2024-06-20", "available": True, "price": {"localPriceFormatted": "$100"}},
                {"date": "2024-06-21", "available": True, "price": 150, "minNights": 2},
                {"date": "2024-06-22", "available": False, "bookingStatusType": "BOOKED"},
                {"date": "2024-06-23", "available": False},
            ]}],
        }

        calendar = extractor.extract(json.dumps(body), spec, context(OperationKind.CALENDAR, "123"))

        assert calendar.listing_id == "123"
        assert calendar.currency == "EUR"
        assert len(calendar.days) == 5
        reasons = [day.unavailability_reason for day in calendar.days]
        assert reasons == [
            UnavailabilityReason.PAST_DATE,
            None,
            None,
            UnavailabilityReason.BOOKED,
            UnavailabilityReason.UNKNOWN,
        ]
        assert calendar.days[2].min_nights == 2
        assert calendar.average_price == 125.0
        assert calendar.min_price == 100.0
        assert calendar.max_price == 150.0
        assert calendar.occupancy_rate == pytest.approx(60.0)

    def test_host_blocked_day(self, extractor, spec):
        body = {"calendarMonths": [{"days": [
            {"date": "2024-07-01", "available": False, "autoAvailability": False},
            {"date": "2024-07-02", "available": False,
             "closedToArrival": True, "closedToDeparture": True},
        ]}]}

        calendar = extractor.extract(json.dumps(body), spec, context(OperationKind.CALENDAR, "1"))

        assert calendar.days[0].unavailability_reason is UnavailabilityReason.BLOCKED_BY_HOST
        assert calendar.days[1].unavailability_reason is UnavailabilityReason.MIN_NIGHT_RESTRICTION

    def test_markup_grid(self, extractor, spec):
        html = (
            "<html><body>"
            '<div data-testid="calendar-day-2030-01-10" data-is-day-blocked="true"></div>'
            '<div data-testid="calendar-day-2030-01-11">'
            '<span data-testid="calendar-day-price">$90</span></div>'
            "</body></html>"
        )

        calendar = extractor.extract(html, spec, context(OperationKind.CALENDAR, "1"))

        assert [day.date for day in calendar.days] == ["2030-01-10", "2030-01-11"]
        assert calendar.days[0].available is False
        assert calendar.days[0].unavailability_reason is UnavailabilityReason.UNKNOWN
        assert calendar.days[1].price == 90.0

    def test_no_days_is_parse_failure(self, extractor, spec):
        outcome = extractor.try_extract(
            json.dumps({"calendarMonths": []}), spec, context(OperationKind.CALENDAR, "1")
        )
        assert not outcome.succeeded


class TestHostParser:
    """Test host cards, flat profiles and markup."""

    def test_section_with_details(self):
        section = {
            "cardData": {"name": "Ana", "userId": "77", "isSuperhost": True,
                         "timeAsHost": {"years": 5}},
            "hostDetails": ["Response rate: 100%", "Responds within an hour"],
            "hostHighlights": [{"title": "Speaks English and Portuguese"}],
        }

        host = host_from_section(section)

        assert host.host_id == "77"
        assert host.name == "Ana"
        assert host.is_superhost is True
        assert host.response_rate == "Response rate: 100%"
        assert host.response_time == "Responds within an hour"
        assert host.member_since == "5 years hosting"
        assert host.languages == ["English", "Portuguese"]

    def test_primary_host_object(self, extractor):
        payload = {"props": {"pageProps": {"listing": {"primaryHost": {
            "id": 77, "firstName": "Ana", "isSuperhost": True, "responseRate": 100,
            "languages": ["English", "Portuguese"],
        }}}}}

        host = extractor.extract(next_data_page(payload), HOST_SPEC, context(OperationKind.HOST, "1"))

        assert host.host_id == "77"
        assert host.name == "Ana"
        assert host.response_rate == "100%"
        assert host.languages == ["English", "Portuguese"]

    def test_markup(self, extractor):
        html = (
            '<html><body><div data-testid="host-profile">'
            '<h2>Hosted by Maria</h2><img src="m.jpg"></div></body></html>'
        )

        host = extractor.extract(html, HOST_SPEC, context(OperationKind.HOST, "1"))

        assert host.name == "Maria"
        assert host.profile_picture_url == "m.jpg"
