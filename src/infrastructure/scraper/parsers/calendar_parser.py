"""
Price calendar extraction.

Accepts listing pages as well as bare JSON bodies of the availability
calendar endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from bs4 import BeautifulSoup

from src.domain.entities import CalendarDay, OperationKind, PriceCalendar, UnavailabilityReason
from src.infrastructure.scraper.parsers.extractor import ExtractionContext, RecordSpec
from src.infrastructure.scraper.parsers.json_utils import (
    as_bool,
    as_float,
    as_int,
    as_list,
    as_str,
    first_value,
    parse_price_string,
)

MONTHS_KEYS = ("calendarMonths", "calendar_months")
DAY_DATE_KEYS = ("date", "calendarDate")
DAY_TESTID_PREFIX = "calendar-day-"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class CalendarSelectors:
    """Markup hooks for the availability calendar grid."""

    day: str = "[data-testid^='calendar-day-']"
    price: str = "[data-testid='calendar-day-price']"


def _is_dated(item: Any) -> bool:
    return isinstance(item, dict) and any(key in item for key in DAY_DATE_KEYS)


def day_price(day: dict) -> Optional[float]:
    """
    Nightly price from any of the known encodings.

    ``price`` may be a number, an object with ``amount``/``local_price``/
    ``native_price``, or a display string; ``localPriceFormatted`` and
    ``price_string`` are display strings.
    """
    price = day.get("price")
    if as_float(price) is not None:
        return as_float(price)
    if isinstance(price, dict):
        value = as_float(first_value(price, "amount", "local_price", "native_price"))
        if value is not None:
            return value
        formatted = as_str(first_value(price, "localPriceFormatted", "amountFormatted"))
        if formatted:
            return parse_price_string(formatted)
    if isinstance(price, str):
        return parse_price_string(price)
    return parse_price_string(as_str(first_value(day, "localPriceFormatted", "price_string")))


def infer_unavailability(day: dict, day_date: str, today: date) -> UnavailabilityReason:
    """Best guess at why an unavailable night cannot be booked."""
    try:
        if date.fromisoformat(day_date) < today:
            return UnavailabilityReason.PAST_DATE
    except ValueError:
        pass

    status = as_str(first_value(day, "bookingStatusType", "booking_status_type", "bookingStatus"))
    if status and ("booked" in status.lower() or "reservation" in status.lower()):
        return UnavailabilityReason.BOOKED

    if as_bool(first_value(day, "autoAvailability", "auto_availability")) is False:
        return UnavailabilityReason.BLOCKED_BY_HOST
    if as_bool(first_value(day, "hostBlocked", "host_blocked", "blocked")) is True:
        return UnavailabilityReason.BLOCKED_BY_HOST

    if day.get("closedToArrival") is True and day.get("closedToDeparture") is True:
        return UnavailabilityReason.MIN_NIGHT_RESTRICTION

    return UnavailabilityReason.UNKNOWN


def parse_day(node: Any, today: date) -> Optional[CalendarDay]:
    if not isinstance(node, dict):
        return None
    day_date = as_str(first_value(node, *DAY_DATE_KEYS))
    if not day_date:
        return None

    available = as_bool(first_value(node, "available", "isAvailable")) or False
    return CalendarDay(
        date=day_date,
        price=day_price(node),
        available=available,
        min_nights=as_int(first_value(node, "minNights", "minimumNights", "min_nights")),
        max_nights=as_int(first_value(node, "maxNights", "maximumNights", "max_nights")),
        closed_to_arrival=as_bool(node.get("closedToArrival")),
        closed_to_departure=as_bool(node.get("closedToDeparture")),
        unavailability_reason=None if available else infer_unavailability(node, day_date, today),
    )


class CalendarSpec(RecordSpec[PriceCalendar]):
    """
    Where calendar months live in payloads.

    The empty path comes first so a bare calendar response is read as-is.
    """

    operation = OperationKind.CALENDAR
    paths = (
        (),
        ("props", "pageProps", "calendarData"),
        ("props", "pageProps", "listing", "calendarData"),
        ("data", "merlin", "pdpAvailabilityCalendar"),
    )

    def __init__(
        self,
        selectors: Optional[CalendarSelectors] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.selectors = selectors or CalendarSelectors()
        self.today = today or utc_today

    def matches(self, node: Any) -> bool:
        if isinstance(node, dict):
            if any(key in node for key in MONTHS_KEYS):
                return True
            return any(_is_dated(item) for item in as_list(node.get("days")))
        if isinstance(node, list):
            return any(_is_dated(item) for item in node)
        return False

    def _day_nodes(self, node: Any) -> list:
        if isinstance(node, list):
            return node
        if not isinstance(node, dict):
            return []
        months = first_value(node, *MONTHS_KEYS)
        nodes: list = []
        for month in as_list(months):
            if isinstance(month, dict):
                nodes.extend(as_list(month.get("days")))
        return nodes or as_list(node.get("days"))

    def build(self, node: Any, root: Any, ctx: ExtractionContext) -> Optional[PriceCalendar]:
        today = self.today()
        days = [d for d in (parse_day(n, today) for n in self._day_nodes(node)) if d is not None]
        if not days:
            return None
        currency = "$"
        if isinstance(node, dict):
            currency = as_str(first_value(node, "currency", "priceCurrency")) or currency
        return PriceCalendar.from_days(ctx.listing_id, days, currency=currency)

    def build_from_markup(self, soup: BeautifulSoup, ctx: ExtractionContext) -> Optional[PriceCalendar]:
        today = self.today()
        days = []
        for cell in soup.select(self.selectors.day):
            day_date = cell.get("data-testid", "")[len(DAY_TESTID_PREFIX):]
            try:
                date.fromisoformat(day_date)
            except ValueError:
                continue
            blocked = (
                cell.get("data-is-day-blocked") == "true"
                or cell.get("aria-disabled") == "true"
            )
            price_el = cell.select_one(self.selectors.price)
            days.append(CalendarDay(
                date=day_date,
                price=parse_price_string(price_el.get_text(strip=True)) if price_el else None,
                available=not blocked,
                unavailability_reason=(
                    infer_unavailability({}, day_date, today) if blocked else None
                ),
            ))
        if not days:
            return None
        return PriceCalendar.from_days(ctx.listing_id, days, currency="$")


CALENDAR_SPEC = CalendarSpec()
