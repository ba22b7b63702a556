"""Pytest fixtures and configuration for StayScout tests."""

import os

os.environ.setdefault("STAYSCOUT_LOG_TO_FILE", "0")

import pytest

from src.utils.config import AppConfig, CacheConfig, ScraperConfig, StructuredConfig, reset_config

from tests.helpers import BASE_URL, FakeHttpClient


# ============================================
# Fixtures
# ============================================

@pytest.fixture(autouse=True)
def _reset_config():
    """Drop the configuration singleton around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def test_config() -> AppConfig:
    """Configuration with pacing and retry delays disabled."""
    return AppConfig(
        scraper=ScraperConfig(
            base_url=BASE_URL,
            requests_per_second=0,
            max_retries=2,
            base_retry_delay=0,
        ),
        cache=CacheConfig(max_entries=50),
        structured=StructuredConfig(requests_per_second=0),
        log_level="DEBUG",
    )


@pytest.fixture
def fake_http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def listing_json() -> dict:
    """Flat listing object as embedded in older listing pages."""
    return {
        "id": 123,
        "name": "Sunny loft by the river",
        "city": "Lisbon",
        "description": "Bright loft with a view.",
        "price": 120,
        "priceCurrency": "EUR",
        "avgRating": 4.87,
        "reviewsCount": 54,
        "roomType": "Entire home",
        "amenities": [{"name": "Wifi"}, {"name": "Kitchen"}],
        "houseRules": [{"title": "No parties"}, {"title": "Check-in after 3:00 PM"}],
        "photos": [{"pictureUrl": "https://img.example/1.jpg"}],
        "bedrooms": 2,
        "beds": 3,
        "bathrooms": 1,
        "personCapacity": 4,
        "primaryHost": {"id": 77, "firstName": "Ana", "isSuperhost": True},
        "lat": 38.71,
        "lng": -9.14,
    }


@pytest.fixture
def detail_sections() -> list:
    """Listing page sections as returned by the structured endpoint."""
    return [
        {"sectionComponentType": "TITLE_DEFAULT", "section": {"title": "Sunny loft"}},
        {
            "sectionComponentType": "DESCRIPTION_DEFAULT",
            "section": {"htmlDescription": {"htmlText": "Bright <b>loft</b><br/>near the river"}},
        },
        {
            "sectionComponentType": "BOOK_IT_SIDEBAR",
            "section": {"structuredDisplayPrice": {"primaryLine": {"price": "$150"}}},
        },
        {
            "sectionComponentType": "AMENITIES_DEFAULT",
            "section": {
                "seeAllAmenitiesGroups": [
                    {"amenities": [
                        {"title": "Wifi", "available": True},
                        {"title": "Pool", "available": False},
                        {"title": "Kitchen", "available": True},
                    ]}
                ]
            },
        },
        {
            "sectionComponentType": "REVIEWS_DEFAULT",
            "section": {"overallRating": 4.9, "overallCount": 87},
        },
        {
            "sectionComponentType": "MEET_YOUR_HOST",
            "section": {"cardData": {"name": "Ana", "userId": "77", "isSuperhost": True}},
        },
    ]


@pytest.fixture
def detail_metadata() -> dict:
    return {
        "sharingConfig": {
            "title": "Rental unit in Lisbon · ★4.90 · 2 bedrooms · 3 beds · 1 bath",
            "location": "Lisbon",
            "personCapacity": 4,
        },
        "loggingContext": {
            "eventDataLogging": {"listingLat": 38.71, "listingLng": -9.14, "hostId": "77"}
        },
    }
