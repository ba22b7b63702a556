"""
Aggregation of listings and calendars into analytics records.

Pure and synchronous: no I/O, no caching, no logging side effects.
"""

from collections import Counter, defaultdict
from datetime import date
from statistics import median
from typing import Iterable, Optional

from src.domain.entities.analytics import (
    MonthlyOccupancy,
    NeighborhoodStats,
    OccupancyEstimate,
    PropertyTypeCount,
)
from src.domain.entities.calendar import PriceCalendar
from src.domain.entities.listing import Listing

# date.weekday(): Friday=4, Saturday=5
WEEKEND_DAYS = (4, 5)


def _mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def compute_neighborhood_stats(location: str, listings: Iterable[Listing]) -> NeighborhoodStats:
    """
    Summarize prices, ratings and property mix of a set of listings.

    Args:
        location: Location the listings were searched for.
        listings: Listings of one or more search pages.

    Returns:
        NeighborhoodStats; price and rating figures are None when empty.
    """
    listings = list(listings)
    total = len(listings)

    prices = sorted(l.price_per_night for l in listings)
    ratings = [l.rating for l in listings if l.rating is not None]

    type_counts = Counter(l.property_type or "Unknown" for l in listings)
    distribution = [
        PropertyTypeCount(
            property_type=property_type,
            count=count,
            percentage=count / total * 100.0,
        )
        for property_type, count in type_counts.items()
    ]
    distribution.sort(key=lambda entry: entry.count, reverse=True)

    superhosts = sum(1 for l in listings if l.is_superhost is True)

    return NeighborhoodStats(
        location=location,
        total_listings=total,
        average_price=_mean(prices),
        median_price=median(prices) if prices else None,
        price_range=(prices[0], prices[-1]) if prices else None,
        average_rating=_mean(ratings),
        property_type_distribution=distribution,
        superhost_percentage=superhosts / total * 100.0 if total else None,
    )


def compute_occupancy_estimate(listing_id: str, calendar: PriceCalendar) -> OccupancyEstimate:
    """
    Estimate occupancy from the unavailable nights of a calendar.

    Unavailable nights count as occupied. Weekend prices are Friday and
    Saturday nights; days with unparseable dates are excluded from the
    weekend/weekday split but still counted.
    """
    days = calendar.days
    total = len(days)
    available = sum(1 for d in days if d.available)
    occupied = total - available

    available_prices = [d.price for d in days if d.available and d.price is not None]

    weekend_prices: list[float] = []
    weekday_prices: list[float] = []
    for day in days:
        if not day.available or day.price is None:
            continue
        try:
            weekday = date.fromisoformat(day.date).weekday()
        except ValueError:
            continue
        if weekday in WEEKEND_DAYS:
            weekend_prices.append(day.price)
        else:
            weekday_prices.append(day.price)

    monthly: dict[str, dict] = defaultdict(lambda: {"total": 0, "occupied": 0, "prices": []})
    for day in days:
        month = day.date[:7] if len(day.date) >= 7 else "unknown"
        bucket = monthly[month]
        bucket["total"] += 1
        if not day.available:
            bucket["occupied"] += 1
        elif day.price is not None:
            bucket["prices"].append(day.price)

    breakdown = [
        MonthlyOccupancy(
            month=month,
            total_days=bucket["total"],
            occupied_days=bucket["occupied"],
            available_days=bucket["total"] - bucket["occupied"],
            occupancy_rate=bucket["occupied"] / bucket["total"] * 100.0,
            average_price=_mean(bucket["prices"]),
        )
        for month, bucket in sorted(monthly.items())
    ]

    return OccupancyEstimate(
        listing_id=listing_id,
        period_start=days[0].date if days else "",
        period_end=days[-1].date if days else "",
        total_days=total,
        occupied_days=occupied,
        available_days=available,
        occupancy_rate=occupied / total * 100.0 if total else 0.0,
        average_available_price=_mean(available_prices),
        weekend_avg_price=_mean(weekend_prices),
        weekday_avg_price=_mean(weekday_prices),
        monthly_breakdown=breakdown,
    )
