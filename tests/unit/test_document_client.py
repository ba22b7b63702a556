"""Unit tests for the document-source client."""

import asyncio
import json

import pytest

from src.domain.entities import SearchParams
from src.infrastructure.scraper.document_client import DocumentClient
from src.infrastructure.scraper.rate_limiter import RateLimiter
from src.utils.config import ScraperConfig
from src.utils.exceptions import (
    NotFoundError,
    ParseError,
    RateLimitedError,
    TransportError,
    ValidationError,
)
from tests.helpers import BASE_URL, html_response, next_data_page

DETAIL_URL = f"{BASE_URL}/rooms/123"


@pytest.fixture
def client(fake_http, test_config):
    return DocumentClient(fake_http, config=test_config.scraper, cache_config=test_config.cache)


@pytest.fixture
def detail_page(listing_json):
    return next_data_page({"props": {"pageProps": {"listing": listing_json}}})


class TestFetchDocument:
    """Test status handling and retries."""

    @pytest.mark.asyncio
    async def test_detail(self, client, fake_http, detail_page):
        fake_http.add(DETAIL_URL, html_response(detail_page))

        detail = await client.get_listing_detail("123")

        assert detail.id == "123"
        assert detail.house_rules == ["No parties", "Check-in after 3:00 PM"]
        assert fake_http.calls[0]["headers"]["Accept"].startswith("text/html")

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, client, fake_http):
        fake_http.add(DETAIL_URL, html_response("", status=404))

        with pytest.raises(NotFoundError) as exc_info:
            await client.get_listing_detail("123")

        assert exc_info.value.identifier == "123"
        assert fake_http.count(DETAIL_URL) == 1

    @pytest.mark.asyncio
    async def test_rate_limited_raised_immediately(self, client, fake_http):
        fake_http.add(DETAIL_URL, html_response("", status=429, headers={"Retry-After": "30"}))

        with pytest.raises(RateLimitedError) as exc_info:
            await client.get_listing_detail("123")

        assert exc_info.value.retry_after == 30.0
        assert fake_http.count(DETAIL_URL) == 1

    @pytest.mark.asyncio
    async def test_retry_after_header_name_is_case_insensitive(self, client, fake_http):
        fake_http.add(DETAIL_URL, html_response("", status=429, headers={"retry-after": "12"}))

        with pytest.raises(RateLimitedError) as exc_info:
            await client.get_listing_detail("123")

        assert exc_info.value.retry_after == 12.0

    @pytest.mark.asyncio
    async def test_rate_limited_retried_when_enabled(self, fake_http, detail_page):
        config = ScraperConfig(
            requests_per_second=0, base_retry_delay=0, retry_on_rate_limit=True
        )
        client = DocumentClient(fake_http, config=config)
        fake_http.add(DETAIL_URL, html_response("", status=429), html_response(detail_page))

        detail = await client.get_listing_detail("123")

        assert detail.id == "123"
        assert fake_http.count(DETAIL_URL) == 2

    @pytest.mark.asyncio
    async def test_server_error_retried_then_raised(self, client, fake_http):
        """Test max_retries extra attempts before giving up."""
        fake_http.add(DETAIL_URL, html_response("", status=503))

        with pytest.raises(TransportError) as exc_info:
            await client.get_listing_detail("123")

        assert exc_info.value.status == 503
        assert fake_http.count(DETAIL_URL) == 3

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self, client, fake_http, detail_page):
        fake_http.add(
            DETAIL_URL,
            TransportError("connection reset"),
            html_response("", status=502),
            html_response(detail_page),
        )

        detail = await client.get_listing_detail("123")

        assert detail.name == "Sunny loft by the river"
        assert fake_http.count(DETAIL_URL) == 3

    @pytest.mark.asyncio
    async def test_parse_error_not_retried(self, client, fake_http):
        fake_http.add(DETAIL_URL, html_response("<html><p>blocked</p></html>"))

        with pytest.raises(ParseError):
            await client.get_listing_detail("123")

        assert fake_http.count(DETAIL_URL) == 1

    @pytest.mark.asyncio
    async def test_invalid_id_makes_no_request(self, client, fake_http):
        with pytest.raises(ValidationError):
            await client.get_listing_detail("12/3")
        assert fake_http.calls == []


class TestCaching:
    """Test cache-aside behavior."""

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, client, fake_http, detail_page):
        fake_http.add(DETAIL_URL, html_response(detail_page))

        first = await client.get_listing_detail("123")
        second = await client.get_listing_detail("123")

        assert first == second
        assert fake_http.count(DETAIL_URL) == 1
        assert client.cache.get("document:detail:id=123") is not None

    @pytest.mark.asyncio
    async def test_failures_not_cached(self, client, fake_http, detail_page):
        fake_http.add(DETAIL_URL, html_response("<html></html>"), html_response(detail_page))

        with pytest.raises(ParseError):
            await client.get_listing_detail("123")
        detail = await client.get_listing_detail("123")

        assert detail.id == "123"
        assert fake_http.count(DETAIL_URL) == 2

    @pytest.mark.asyncio
    async def test_unreadable_entry_refetched(self, client, fake_http, detail_page):
        fake_http.add(DETAIL_URL, html_response(detail_page))
        client.cache.set("document:detail:id=123", "{not json", ttl=60)

        detail = await client.get_listing_detail("123")

        assert detail.id == "123"
        assert fake_http.count(DETAIL_URL) == 1


class TestOperations:
    """Test URLs and query strings per operation."""

    @pytest.mark.asyncio
    async def test_search_url_and_params(self, client, fake_http):
        url = f"{BASE_URL}/s/New-York/homes"
        card = (
            '<div itemprop="itemListElement"><a href="/rooms/42">'
            '<span itemprop="name">Tiny house</span></a></div>'
        )
        fake_http.add(url, html_response(f"<html><body>{card}</body></html>"))

        result = await client.search_listings(SearchParams.create(location="New York", adults=2))

        assert [listing.id for listing in result.listings] == ["42"]
        assert fake_http.calls[0]["params"] == [("adults", "2")]

    @pytest.mark.asyncio
    async def test_reviews_cursor(self, client, fake_http):
        url = f"{DETAIL_URL}/reviews"
        payload = {"props": {"pageProps": {"reviews": [{"comments": "Nice", "reviewer": {"firstName": "Al"}}]}}}
        fake_http.add(url, html_response(next_data_page(payload)))

        page = await client.get_reviews("123", cursor="abc")

        assert page.reviews[0].comment == "Nice"
        assert fake_http.calls[0]["params"] == [("review_cursor", "abc")]

    @pytest.mark.asyncio
    async def test_calendar_and_occupancy(self, client, fake_http):
        body = {"calendarMonths": [{"days": [
            {"date": "2099-01-02", "available": True, "price": 100},
            {"date": "2099-01-03", "available": False},
        ]}]}
        fake_http.add(DETAIL_URL, html_response(json.dumps(body)))

        calendar = await client.get_price_calendar("123", months=2)
        estimate = await client.get_occupancy_estimate("123", months=2)

        assert len(calendar.days) == 2
        assert estimate.occupancy_rate == 50.0
        assert fake_http.calls[0]["params"] == [("calendar_months", "2")]
        # The estimate reuses the cached calendar
        assert fake_http.count(DETAIL_URL) == 1

    @pytest.mark.asyncio
    async def test_host_profile(self, client, fake_http, listing_json):
        fake_http.add(DETAIL_URL, html_response(next_data_page({"props": {"pageProps": {"listing": listing_json}}})))

        host = await client.get_host_profile("123")

        assert host.name == "Ana"
        assert host.host_id == "77"
        assert host.is_superhost is True

    @pytest.mark.asyncio
    async def test_neighborhood_stats(self, client, fake_http):
        url = f"{BASE_URL}/s/Porto/homes"
        payload = {"props": {"pageProps": {"searchResults": [
            {"listing": {"id": 1, "name": "A", "roomType": "Entire home"}, "price": 100},
            {"listing": {"id": 2, "name": "B", "roomType": "Entire home"}, "price": 300},
        ]}}}
        fake_http.add(url, html_response(next_data_page(payload)))

        stats = await client.get_neighborhood_stats(SearchParams.create(location="Porto"))

        assert stats.total_listings == 2
        assert stats.average_price == 200.0

    @pytest.mark.asyncio
    async def test_close(self, client, fake_http):
        await client.close()
        assert fake_http.closed


class RecordingRateLimiter(RateLimiter):
    """Rate limiter that records the clock reading of every grant."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.grants = []

    async def acquire(self) -> float:
        waited = await super().acquire()
        self.grants.append(self.last_grant_time)
        return waited


class TestRetryPacing:
    """Test backoff delays and rate limiter grants across retries."""

    @pytest.fixture
    def clock(self, monkeypatch):
        """Fake monotonic clock advanced by every asyncio.sleep call."""
        state = {"now": 0.0, "sleeps": []}

        async def fake_sleep(delay, result=None):
            state["sleeps"].append(delay)
            state["now"] += delay
            return result

        monkeypatch.setattr(asyncio, "sleep", fake_sleep)
        return state

    @pytest.mark.asyncio
    async def test_linear_backoff_and_grant_per_attempt(self, fake_http, clock):
        """Test retry n waits n * base_retry_delay and each attempt takes a grant."""
        config = ScraperConfig(requests_per_second=0, base_retry_delay=1.5, max_retries=3)
        limiter = RecordingRateLimiter(requests_per_second=0, clock=lambda: clock["now"])
        client = DocumentClient(fake_http, config=config, rate_limiter=limiter)
        fake_http.add(DETAIL_URL, html_response("", status=503))

        with pytest.raises(TransportError):
            await client.get_listing_detail("123")

        assert clock["sleeps"] == [1.5, 3.0, 4.5]
        assert limiter.grants == [0.0, 1.5, 4.5, 9.0]
        assert fake_http.count(DETAIL_URL) == 4

    @pytest.mark.asyncio
    async def test_retries_respect_pacing(self, fake_http, clock):
        """Test a backoff shorter than the pacing interval is topped up by the limiter."""
        config = ScraperConfig(requests_per_second=1, base_retry_delay=0.5, max_retries=3)
        limiter = RecordingRateLimiter(requests_per_second=1, clock=lambda: clock["now"])
        client = DocumentClient(fake_http, config=config, rate_limiter=limiter)
        fake_http.add(DETAIL_URL, html_response("", status=502))

        with pytest.raises(TransportError):
            await client.get_listing_detail("123")

        # backoff 0.5, pacing 0.5, backoff 1.0, backoff 1.5
        assert clock["sleeps"] == [0.5, 0.5, 1.0, 1.5]
        assert limiter.grants == [0.0, 1.0, 2.0, 3.5]
        for earlier, later in zip(limiter.grants, limiter.grants[1:]):
            assert later - earlier >= limiter.min_interval
