from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PriceRange(BaseModel):
    min_price: float
    max_price: float


class LocationMention(BaseModel):
    city: str


class ExtractedData(BaseModel):
    """Fields pulled from a single message.

    Only fields that were actually matched are set, so ``model_fields_set``
    tells "not mentioned" apart from an explicit value.
    """

    model_config = ConfigDict(extra="forbid")

    price: Optional[PriceRange] = None
    location: Optional[LocationMention] = None
    bedrooms: Optional[int] = None
    property_type: Optional[str] = None
    amenities: Optional[List[str]] = None

    def is_empty(self) -> bool:
        return not self.model_fields_set

    def as_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ExtractedFilters(BaseModel):
    """Filter payload returned by the LLM for a natural-language search."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Optional[str] = None
    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")
    city: Optional[str] = None
    min_bedrooms: Optional[int] = Field(default=None, alias="minBedrooms")
    amenities: Optional[List[str]] = None
