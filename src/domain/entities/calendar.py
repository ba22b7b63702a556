"""
Price calendar records.
"""

from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class UnavailabilityReason(str, Enum):
    """Why a calendar day cannot be booked."""

    UNKNOWN = "unknown"
    BOOKED = "booked"
    BLOCKED_BY_HOST = "blocked_by_host"
    PAST_DATE = "past_date"
    MIN_NIGHT_RESTRICTION = "min_night_restriction"


class CalendarDay(BaseModel):
    """Availability and price of a single night."""

    model_config = ConfigDict(frozen=True)

    date: str = Field(..., description="Night in YYYY-MM-DD format")
    price: Optional[float] = Field(default=None, description="Nightly price when published")
    available: bool = Field(default=False, description="Night can be booked")
    min_nights: Optional[int] = Field(default=None, ge=0, description="Minimum stay starting this night")
    max_nights: Optional[int] = Field(default=None, ge=0, description="Maximum stay starting this night")
    closed_to_arrival: Optional[bool] = None
    closed_to_departure: Optional[bool] = None
    unavailability_reason: Optional[UnavailabilityReason] = Field(
        default=None, description="Set only for unavailable nights"
    )


class PriceCalendar(BaseModel):
    """Day-by-day calendar with summary statistics.

    Build through ``from_days`` so the statistics match the days.
    """

    model_config = ConfigDict(frozen=True)

    listing_id: str = Field(..., description="Listing identifier")
    currency: str = Field(default="USD", description="Currency code or symbol")
    days: list[CalendarDay] = Field(default_factory=list, description="Calendar days in order")
    average_price: Optional[float] = Field(default=None, description="Mean price of available priced days")
    occupancy_rate: Optional[float] = Field(default=None, description="Unavailable days as a percentage")
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @classmethod
    def from_days(
        cls,
        listing_id: str,
        days: Iterable[CalendarDay],
        currency: str = "USD",
    ) -> "PriceCalendar":
        """Create a calendar and compute its statistics."""
        days = list(days)
        prices = [d.price for d in days if d.available and d.price is not None]

        average_price = sum(prices) / len(prices) if prices else None
        occupancy_rate = None
        if days:
            unavailable = sum(1 for d in days if not d.available)
            occupancy_rate = unavailable / len(days) * 100.0

        return cls(
            listing_id=listing_id,
            currency=currency,
            days=days,
            average_price=average_price,
            occupancy_rate=occupancy_rate,
            min_price=min(prices) if prices else None,
            max_price=max(prices) if prices else None,
        )
