from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PROPERTY_TYPES = ("house", "apartment", "flat", "villa", "land", "commercial", "plot")


class PropertyFilter(BaseModel):
    status: Optional[str] = "available"
    property_type: Optional[str] = None
    city: Optional[str] = Field(default=None, description="Case-insensitive match against the listing city.")
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_bedrooms: Optional[int] = None
    min_bathrooms: Optional[int] = None
    amenities: List[str] = Field(default_factory=list, description="Any-of, case-insensitive.")


class PropertySort(BaseModel):
    field: Literal["created_at", "price"] = "created_at"
    descending: bool = True


NEWEST_FIRST = PropertySort()


class LocationSummary(BaseModel):
    address: str
    city: str
    state: str
    zip_code: Optional[str] = None


class PropertySummary(BaseModel):
    id: str
    title: str
    price: float
    location: LocationSummary
    bedrooms: int


class PropertyDetail(PropertySummary):
    description: str
    property_type: str
    bathrooms: int
    area: float
    area_unit: str
    amenities: List[str] = Field(default_factory=list)
    status: str
    contact_name: Optional[str] = None
    views: int = 0
