"""
Listing records returned by search and detail operations.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Listing(BaseModel):
    """A listing as it appears in search results."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Listing identifier")
    name: str = Field(..., description="Listing title")
    location: str = Field(default="", description="City or area")
    price_per_night: float = Field(default=0.0, ge=0.0, description="Nightly price, 0 when unknown")
    currency: str = Field(default="USD", description="Currency code or symbol")
    rating: Optional[float] = Field(default=None, description="Average guest rating")
    review_count: int = Field(default=0, ge=0, description="Number of reviews")
    thumbnail_url: Optional[str] = Field(default=None, description="First picture")
    property_type: Optional[str] = Field(default=None, description="Room or property type")
    host_name: Optional[str] = Field(default=None, description="Host display name")
    host_id: Optional[str] = Field(default=None, description="Host user identifier")
    url: str = Field(..., description="Listing page URL")
    is_superhost: Optional[bool] = Field(default=None, description="Host holds superhost status")
    is_guest_favorite: Optional[bool] = Field(default=None, description="Guest favorite badge")
    instant_book: Optional[bool] = Field(default=None, description="Instant booking enabled")
    total_price: Optional[float] = Field(default=None, description="Total for the searched stay")
    photos: list[str] = Field(default_factory=list, description="Picture URLs")
    latitude: Optional[float] = Field(default=None, description="Latitude")
    longitude: Optional[float] = Field(default=None, description="Longitude")


class ListingDetail(BaseModel):
    """Full listing details from a listing page."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Listing identifier")
    name: str = Field(default="", description="Listing title")
    location: str = Field(default="", description="City or area")
    description: str = Field(default="", description="Plain-text description")
    price_per_night: float = Field(default=0.0, ge=0.0, description="Nightly price, 0 when unknown")
    currency: str = Field(default="USD", description="Currency code or symbol")
    rating: Optional[float] = Field(default=None, description="Average guest rating")
    review_count: int = Field(default=0, ge=0, description="Number of reviews")
    property_type: Optional[str] = Field(default=None, description="Room or property type")
    host_name: Optional[str] = Field(default=None, description="Host display name")
    url: str = Field(..., description="Listing page URL")
    amenities: list[str] = Field(default_factory=list, description="Amenity titles")
    house_rules: list[str] = Field(default_factory=list, description="House rule titles")
    latitude: Optional[float] = Field(default=None, description="Latitude")
    longitude: Optional[float] = Field(default=None, description="Longitude")
    photos: list[str] = Field(default_factory=list, description="Picture URLs")
    bedrooms: Optional[int] = Field(default=None, ge=0, description="Bedroom count, 0 for studios")
    beds: Optional[int] = Field(default=None, ge=0, description="Bed count")
    bathrooms: Optional[float] = Field(default=None, ge=0.0, description="Bathroom count")
    max_guests: Optional[int] = Field(default=None, ge=0, description="Guest capacity")
    check_in_time: Optional[str] = Field(default=None, description="Check-in rule text")
    check_out_time: Optional[str] = Field(default=None, description="Checkout rule text")
    host_id: Optional[str] = Field(default=None, description="Host user identifier")
    host_is_superhost: Optional[bool] = Field(default=None, description="Host holds superhost status")
    host_response_rate: Optional[str] = Field(default=None, description="Host response rate text")
    host_response_time: Optional[str] = Field(default=None, description="Host response time text")
    host_joined: Optional[str] = Field(default=None, description="Host member-since text")
    host_total_listings: Optional[int] = Field(default=None, ge=0, description="Listings managed by host")
    host_languages: list[str] = Field(default_factory=list, description="Languages spoken by host")
    cancellation_policy: Optional[str] = Field(default=None, description="Cancellation policy title")
    instant_book: Optional[bool] = Field(default=None, description="Instant booking enabled")
    cleaning_fee: Optional[float] = Field(default=None, description="Cleaning fee")
    service_fee: Optional[float] = Field(default=None, description="Service fee")
    neighborhood: Optional[str] = Field(default=None, description="Neighborhood name")


class SearchResult(BaseModel):
    """One page of search results."""

    model_config = ConfigDict(frozen=True)

    listings: list[Listing] = Field(default_factory=list, description="Listings on this page")
    total_count: Optional[int] = Field(default=None, ge=0, description="Total matches when reported")
    next_cursor: Optional[str] = Field(default=None, description="Cursor for the next page")
