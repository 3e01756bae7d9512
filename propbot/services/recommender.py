"""Natural-language property search.

The LLM only translates the query into filter fields; matching and ranking
are done by the property repository.
"""

from __future__ import annotations

import logging
from typing import Optional

import pydantic

from propbot.errors import MalformedResponseError, ValidationError
from propbot.models.api import RecommendResponse
from propbot.models.extraction import ExtractedFilters
from propbot.models.listing import NEWEST_FIRST, PROPERTY_TYPES, PropertyFilter
from propbot.services.model_gateway import ModelGateway
from propbot.services.portfolio import PropertyRepository

logger = logging.getLogger(__name__)

EXTRACTOR_SYSTEM_PROMPT = "You are a JSON extractor. Output valid JSON only. No markdown."

EXTRACTION_PROMPT = """
Extract search filters from this user query for a real estate database: "{query}"

Return a JSON object with these keys (use null if not mentioned):
- type: string (one of: 'house', 'apartment', 'flat', 'villa', 'land', 'commercial', 'plot')
- minPrice: number (in INR)
- maxPrice: number (in INR)
- city: string (city name only)
- minBedrooms: number
- amenities: array of strings (keywords like 'pool', 'gym', 'parking')

Example input: "3bhk flat in Mumbai under 2 crores with pool"
Example output: {{"type": "flat", "minPrice": null, "maxPrice": 20000000, "city": "Mumbai", "minBedrooms": 3, "amenities": ["pool"]}}
"""


def normalize_property_type(raw: Optional[str]) -> Optional[str]:
    """Map free-form type text onto the listing vocabulary.

    Exact match first, then the first vocabulary entry contained in the text.
    Returns None when nothing matches.
    """
    if not raw:
        return None
    text = raw.strip().lower()
    if text in PROPERTY_TYPES:
        return text
    return next((candidate for candidate in PROPERTY_TYPES if candidate in text), None)


def filter_from_extraction(filters: ExtractedFilters) -> PropertyFilter:
    query = PropertyFilter(status="available")
    query.property_type = normalize_property_type(filters.type)
    if filters.city:
        query.city = filters.city
    if filters.min_price:
        query.min_price = filters.min_price
    if filters.max_price:
        query.max_price = filters.max_price
    if filters.min_bedrooms:
        query.min_bedrooms = filters.min_bedrooms
    if filters.amenities:
        query.amenities = [amenity for amenity in filters.amenities if amenity]
    return query


class PropertyRecommender:
    def __init__(self, gateway: ModelGateway, repository: PropertyRepository, limit: int = 10) -> None:
        self.gateway = gateway
        self.repository = repository
        self.limit = limit

    async def extract_filters(self, query: str) -> ExtractedFilters:
        messages = [
            {"role": "system", "content": EXTRACTOR_SYSTEM_PROMPT},
            {"role": "user", "content": EXTRACTION_PROMPT.format(query=query)},
        ]
        payload = await self.gateway.complete_json(messages)
        try:
            return ExtractedFilters.model_validate(payload)
        except pydantic.ValidationError as exc:
            logger.warning("recommender.bad_filters payload=%s err=%s", payload, exc)
            raise MalformedResponseError("Model returned filters of the wrong shape", raw=str(payload)) from exc

    async def recommend(self, query: Optional[str]) -> RecommendResponse:
        if not query or not query.strip():
            raise ValidationError("Search query is required")

        filters = await self.extract_filters(query.strip())
        repository_query = filter_from_extraction(filters)
        logger.info("recommender.filters extracted=%s query=%s", filters.model_dump(), repository_query.model_dump())

        listings = await self.repository.find(repository_query, limit=self.limit, sort=NEWEST_FIRST)
        total = await self.repository.count(repository_query)
        logger.info("recommender.results returned=%d total=%d", len(listings), total)
        return RecommendResponse(
            filters=filters,
            count=len(listings),
            total=total,
            properties=[listing.to_detail() for listing in listings],
        )
