from __future__ import annotations

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from dateutil import parser as dateparser

from propbot.errors import NotFoundError
from propbot.models.listing import NEWEST_FIRST, LocationSummary, PropertyDetail, PropertyFilter, PropertySort, PropertySummary
from propbot.utils.fixture_loader import load_properties

logger = logging.getLogger(__name__)


@dataclass
class Location:
    address: str
    city: str
    state: str
    zip_code: Optional[str] = None


@dataclass
class Listing:
    id: str
    title: str
    description: str
    property_type: str
    price: float
    location: Location
    bedrooms: int = 0
    bathrooms: int = 0
    area: float = 0
    area_unit: str = "sqm"
    amenities: List[str] = field(default_factory=list)
    status: str = "available"
    featured: bool = False
    views: int = 0
    contact_name: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_summary(self) -> PropertySummary:
        return PropertySummary(
            id=self.id,
            title=self.title,
            price=self.price,
            location=LocationSummary(**self.location.__dict__),
            bedrooms=self.bedrooms,
        )

    def to_detail(self) -> PropertyDetail:
        return PropertyDetail(
            **self.to_summary().model_dump(),
            description=self.description,
            property_type=self.property_type,
            bathrooms=self.bathrooms,
            area=self.area,
            area_unit=self.area_unit,
            amenities=list(self.amenities),
            status=self.status,
            contact_name=self.contact_name,
            views=self.views,
        )


def listing_from_raw(raw: Dict[str, Any]) -> Listing:
    created_at = raw.get("created_at")
    if isinstance(created_at, str):
        created_at = dateparser.parse(created_at)
    return Listing(
        id=raw.get("id") or uuid.uuid4().hex[:12],
        title=raw["title"],
        description=raw.get("description", ""),
        property_type=raw["property_type"],
        price=float(raw["price"]),
        location=Location(**raw["location"]),
        bedrooms=raw.get("bedrooms", 0),
        bathrooms=raw.get("bathrooms", 0),
        area=raw.get("area", 0),
        area_unit=raw.get("area_unit", "sqm"),
        amenities=raw.get("amenities", []),
        status=raw.get("status", "available"),
        featured=raw.get("featured", False),
        views=raw.get("views", 0),
        contact_name=raw.get("contact_name"),
        created_at=created_at or datetime.now(timezone.utc),
    )


class PropertyRepository(Protocol):
    async def find(self, query: PropertyFilter, limit: int, sort: PropertySort = NEWEST_FIRST) -> List[Listing]:
        ...

    async def count(self, query: PropertyFilter) -> int:
        ...

    async def get(self, property_id: str) -> Optional[Listing]:
        ...

    async def increment_views(self, property_id: str) -> None:
        ...


def matches(listing: Listing, query: PropertyFilter) -> bool:
    if query.status and listing.status != query.status:
        return False
    if query.property_type and listing.property_type != query.property_type:
        return False
    if query.city and not re.search(re.escape(query.city), listing.location.city, re.IGNORECASE):
        return False
    if query.min_price is not None and listing.price < query.min_price:
        return False
    if query.max_price is not None and listing.price > query.max_price:
        return False
    if query.min_bedrooms is not None and listing.bedrooms < query.min_bedrooms:
        return False
    if query.min_bathrooms is not None and listing.bathrooms < query.min_bathrooms:
        return False
    if query.amenities:
        wanted = [re.compile(re.escape(amenity), re.IGNORECASE) for amenity in query.amenities]
        if not any(pattern.search(amenity) for pattern in wanted for amenity in listing.amenities):
            return False
    return True


class InMemoryPropertyRepository:
    """Listing store kept in process memory, typically seeded from ``fixtures/properties.json``."""

    def __init__(self, listings: Iterable[Listing] = ()) -> None:
        self._listings: Dict[str, Listing] = {listing.id: listing for listing in listings}
        self._lock = asyncio.Lock()

    @classmethod
    def from_fixture(cls, path: Optional[Union[str, Path]] = None) -> "InMemoryPropertyRepository":
        listings = [listing_from_raw(raw) for raw in load_properties(path)]
        logger.info("portfolio.loaded count=%d", len(listings))
        return cls(listings)

    async def find(self, query: PropertyFilter, limit: int, sort: PropertySort = NEWEST_FIRST) -> List[Listing]:
        found = [listing for listing in self._listings.values() if matches(listing, query)]
        found.sort(key=lambda listing: getattr(listing, sort.field), reverse=sort.descending)
        logger.info("portfolio.find matched=%d limit=%d", len(found), limit)
        return [replace(listing) for listing in found[:limit]]

    async def count(self, query: PropertyFilter) -> int:
        return sum(1 for listing in self._listings.values() if matches(listing, query))

    async def get(self, property_id: str) -> Optional[Listing]:
        listing = self._listings.get(property_id)
        return replace(listing) if listing else None

    async def increment_views(self, property_id: str) -> None:
        async with self._lock:
            listing = self._listings.get(property_id)
            if not listing:
                raise NotFoundError(f"Property {property_id} not found")
            listing.views += 1
