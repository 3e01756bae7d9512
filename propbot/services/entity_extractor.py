from __future__ import annotations

import logging
import re
from typing import Dict, List

from propbot.models.extraction import ExtractedData, LocationMention, PriceRange

logger = logging.getLogger(__name__)

CRORE = 10_000_000
LAKH = 100_000

_PRICE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(cr|lakh|lacs|crs)", re.IGNORECASE)
# Preposition is case-insensitive; the place name must be capitalised words.
_LOCATION_RE = re.compile(r"\b(?i:in|at|near)\s+([A-Z][a-zA-Z]*(?:\s+[A-Z][a-zA-Z]*)*)")
# Capitalised connectives end a place name: "in Rajkot With Pool" -> "Rajkot".
_LOCATION_STOP_WORDS = {"with", "under", "and", "for", "near", "in", "at", "having", "budget", "within", "below", "above", "around"}
_BHK_RE = re.compile(r"\b(\d+)\s*bhk", re.IGNORECASE)

# Iteration order decides ties: "apartment" wins over "flat" in the same message.
PROPERTY_TYPE_KEYWORDS: Dict[str, str] = {
    "apartment": "apartment",
    "flat": "flat",
    "villa": "villa",
    "house": "house",
    "commercial": "commercial",
    "land": "land",
    "plot": "plot",
}

AMENITY_SYNONYMS: Dict[str, str] = {
    "gym": "gym",
    "pool": "pool",
    "swimming pool": "pool",
    "parking": "parking",
    "security": "security",
    "garden": "garden",
    "lift": "lift",
    "elevator": "lift",
    "balcony": "balcony",
    "terrace": "terrace",
}


def extract_prices(message: str) -> List[float]:
    prices: List[float] = []
    for match in _PRICE_RE.finditer(message):
        amount = float(match.group(1))
        unit = match.group(2).lower()
        multiplier = CRORE if unit.startswith("cr") else LAKH
        prices.append(round(amount * multiplier))
    return prices


def place_name(words: str) -> str:
    kept: List[str] = []
    for word in words.split():
        if word.lower() in _LOCATION_STOP_WORDS:
            break
        kept.append(word)
    return " ".join(kept)


def extract_amenities(message: str) -> List[str]:
    lowered = message.lower()
    found: List[str] = []
    for keyword, amenity in AMENITY_SYNONYMS.items():
        if keyword in lowered and amenity not in found:
            found.append(amenity)
    return found


def extract(message: str) -> ExtractedData:
    """Pull price, location, bedrooms, property type and amenities out of ``message``.

    Only matched fields are set on the returned model. A single price mention
    becomes both bounds of the range.
    """
    fields = {}

    prices = extract_prices(message)
    if prices:
        fields["price"] = PriceRange(min_price=min(prices), max_price=max(prices))

    location_match = _LOCATION_RE.search(message)
    if location_match:
        city = place_name(location_match.group(1))
        if city:
            fields["location"] = LocationMention(city=city)

    bhk_match = _BHK_RE.search(message)
    if bhk_match:
        fields["bedrooms"] = int(bhk_match.group(1))

    lowered = message.lower()
    for keyword, property_type in PROPERTY_TYPE_KEYWORDS.items():
        if keyword in lowered:
            fields["property_type"] = property_type
            break

    amenities = extract_amenities(message)
    if amenities:
        fields["amenities"] = amenities

    data = ExtractedData(**fields)
    logger.debug("extractor.fields %s", data.as_record())
    return data
