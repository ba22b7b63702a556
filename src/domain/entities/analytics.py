"""
Host profile and aggregated analytics records.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HostProfile(BaseModel):
    """Public profile of a listing's host."""

    model_config = ConfigDict(frozen=True)

    host_id: Optional[str] = Field(default=None, description="Host user identifier")
    name: str = Field(default="Unknown", description="Host display name")
    is_superhost: Optional[bool] = None
    response_rate: Optional[str] = None
    response_time: Optional[str] = None
    member_since: Optional[str] = Field(default=None, description="Join date or hosting tenure text")
    languages: list[str] = Field(default_factory=list)
    total_listings: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, description="About text")
    profile_picture_url: Optional[str] = None
    identity_verified: Optional[bool] = None


class PropertyTypeCount(BaseModel):
    """Share of one property type among a set of listings."""

    model_config = ConfigDict(frozen=True)

    property_type: str
    count: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0.0, le=100.0)


class NeighborhoodStats(BaseModel):
    """Price, rating and property-mix statistics for a search area."""

    model_config = ConfigDict(frozen=True)

    location: str = Field(..., description="Searched location")
    total_listings: int = Field(default=0, ge=0)
    average_price: Optional[float] = None
    median_price: Optional[float] = None
    price_range: Optional[tuple[float, float]] = Field(default=None, description="(min, max) nightly price")
    average_rating: Optional[float] = None
    property_type_distribution: list[PropertyTypeCount] = Field(
        default_factory=list, description="Sorted by count, most common first"
    )
    superhost_percentage: Optional[float] = None


class MonthlyOccupancy(BaseModel):
    """Occupancy figures for one calendar month."""

    model_config = ConfigDict(frozen=True)

    month: str = Field(..., description="YYYY-MM")
    total_days: int = Field(..., ge=0)
    occupied_days: int = Field(..., ge=0)
    available_days: int = Field(..., ge=0)
    occupancy_rate: float = Field(..., ge=0.0, le=100.0)
    average_price: Optional[float] = None


class OccupancyEstimate(BaseModel):
    """Occupancy estimate derived from a price calendar."""

    model_config = ConfigDict(frozen=True)

    listing_id: str
    period_start: str = ""
    period_end: str = ""
    total_days: int = Field(default=0, ge=0)
    occupied_days: int = Field(default=0, ge=0)
    available_days: int = Field(default=0, ge=0)
    occupancy_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    average_available_price: Optional[float] = None
    weekend_avg_price: Optional[float] = Field(default=None, description="Friday and Saturday nights")
    weekday_avg_price: Optional[float] = None
    monthly_breakdown: list[MonthlyOccupancy] = Field(default_factory=list, description="Sorted by month")
