"""
Search parameters value object.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic import field_validator, model_validator

from src.utils.exceptions import ValidationError


def _parse_iso_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"invalid {field} date format '{value}', expected YYYY-MM-DD") from None


class SearchParams(BaseModel):
    """Validated parameters of a listing search.

    Use ``SearchParams.create`` to get the domain ``ValidationError``
    instead of pydantic's on malformed input.
    """

    model_config = ConfigDict(frozen=True)

    location: str = Field(..., description="Free-text location, e.g. 'Paris, France'")
    checkin: Optional[str] = Field(default=None, description="YYYY-MM-DD, requires checkout")
    checkout: Optional[str] = Field(default=None, description="YYYY-MM-DD, requires checkin")
    adults: Optional[int] = Field(default=None, ge=0)
    children: Optional[int] = Field(default=None, ge=0)
    infants: Optional[int] = Field(default=None, ge=0)
    pets: Optional[int] = Field(default=None, ge=0)
    min_price: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[int] = Field(default=None, ge=0)
    property_type: Optional[str] = None
    cursor: Optional[str] = Field(default=None, description="Pagination cursor from a previous page")

    @field_validator('location')
    @classmethod
    def validate_location(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("location is required")
        return v.strip()

    @model_validator(mode='after')
    def validate_dates_and_prices(self) -> 'SearchParams':
        """Check the date pair and the price range."""
        if (self.checkin is None) != (self.checkout is None):
            raise ValueError("both checkin and checkout must be provided together")
        if self.checkin is not None and self.checkout is not None:
            checkin = _parse_iso_date(self.checkin, "checkin")
            checkout = _parse_iso_date(self.checkout, "checkout")
            if checkout <= checkin:
                raise ValueError("checkout date must be after checkin date")
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot be greater than max_price")
        return self

    @classmethod
    def create(cls, **kwargs: Any) -> "SearchParams":
        """Build search parameters, raising ``ValidationError`` on bad input."""
        try:
            return cls(**kwargs)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            message = first.get("msg", str(e)).removeprefix("Value error, ")
            raise ValidationError(
                message,
                operation="search",
                identifier=kwargs.get("location") or None,
                field=field,
            ) from e

    def to_query_pairs(self) -> list[tuple[str, str]]:
        """Query-string pairs for the search page URL, in a fixed order."""
        pairs: list[tuple[str, str]] = []
        if self.checkin is not None:
            pairs.append(("checkin", self.checkin))
        if self.checkout is not None:
            pairs.append(("checkout", self.checkout))
        for name in ("adults", "children", "infants", "pets"):
            value = getattr(self, name)
            if value is not None:
                pairs.append((name, str(value)))
        if self.min_price is not None:
            pairs.append(("price_min", str(self.min_price)))
        if self.max_price is not None:
            pairs.append(("price_max", str(self.max_price)))
        if self.property_type is not None:
            pairs.append(("property_type", self.property_type))
        if self.cursor is not None:
            pairs.append(("cursor", self.cursor))
        return pairs
