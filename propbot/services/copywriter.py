from __future__ import annotations

import logging
from typing import Any, Optional

from propbot.errors import ValidationError
from propbot.models.api import DescriptionRequest
from propbot.models.listing import LocationSummary
from propbot.services.model_gateway import ModelGateway

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = (
    "You are a real estate assistant for {platform}. Answer only real-estate related queries. "
    "If data is unavailable, respond with a safe fallback."
)
COPYWRITER_SYSTEM_PROMPT = "You are a professional real estate copywriter."

DESCRIPTION_PROMPT = """
Write a professional real estate property description based on these details:
- Type: {property_type}
- Location: {location}
- Size: {area}
- Bedrooms: {bedrooms}
- Bathrooms: {bathrooms}
- Price: {price}
- Amenities: {amenities}

Rules:
- Tone: Professional and inviting
- Length: 80-120 words
- NO emojis
- NO exaggeration (stick to facts provided)
- Suitable for a real estate listing
"""


def _location_text(location: Any) -> str:
    if isinstance(location, LocationSummary):
        location = location.model_dump()
    if isinstance(location, dict):
        return ", ".join(str(location.get(key) or "") for key in ("address", "city", "state"))
    return str(location)


def _amenities_text(amenities: Any) -> str:
    if isinstance(amenities, list):
        return ", ".join(amenities)
    return amenities or ""


class Copywriter:
    """Free-text generation: one-shot chat replies and listing descriptions."""

    def __init__(self, gateway: ModelGateway, platform_name: str = "Urbannest") -> None:
        self.gateway = gateway
        self.platform_name = platform_name

    async def chat(self, message: Optional[str]) -> str:
        if not message or not message.strip():
            raise ValidationError("Message is required")
        messages = [
            {"role": "system", "content": CHAT_SYSTEM_PROMPT.format(platform=self.platform_name)},
            {"role": "user", "content": message},
        ]
        return await self.gateway.complete(messages)

    async def generate_description(self, details: DescriptionRequest) -> str:
        if not details.property_type or not details.location or not details.price:
            raise ValidationError("Missing required property details")

        prompt = DESCRIPTION_PROMPT.format(
            property_type=details.property_type,
            location=_location_text(details.location),
            area=details.area,
            bedrooms=details.bedrooms,
            bathrooms=details.bathrooms,
            price=details.price,
            amenities=_amenities_text(details.amenities),
        )
        messages = [
            {"role": "system", "content": COPYWRITER_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        description = await self.gateway.complete(messages)
        logger.info("copywriter.description property_type=%s words=%d", details.property_type, len(description.split()))
        return description.strip()
