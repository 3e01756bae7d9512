from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from propbot.models.conversation import ConversationState, Preferences, Turn
from propbot.models.extraction import ExtractedFilters
from propbot.models.listing import LocationSummary, PropertyDetail, PropertySummary


class ChatMessageRequest(BaseModel):
    message: Optional[str] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None


class DialogReply(BaseModel):
    reply: str
    reply_type: str
    session_id: str
    state: ConversationState
    intent: str
    confidence: float
    properties: List[PropertySummary] = Field(default_factory=list)


class ConversationSnapshot(BaseModel):
    session_id: str
    state: ConversationState
    preferences: Preferences
    messages: List[Turn] = Field(default_factory=list)
    total_messages: int = 0
    last_activity: Optional[datetime] = None


class SessionClosed(BaseModel):
    session_id: str
    closed: bool


class AiChatRequest(BaseModel):
    message: Optional[str] = None


class AiChatResponse(BaseModel):
    reply: str


class DescriptionRequest(BaseModel):
    property_type: Optional[str] = Field(default=None, alias="propertyType")
    location: Optional[Union[str, LocationSummary, Dict[str, Any]]] = None
    area: Optional[Union[str, float]] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    price: Optional[Union[str, float]] = None
    amenities: Optional[Union[str, List[str]]] = None

    model_config = {"populate_by_name": True}


class DescriptionResponse(BaseModel):
    description: str


class RecommendRequest(BaseModel):
    query: Optional[str] = None


class RecommendResponse(BaseModel):
    filters: ExtractedFilters
    count: int
    total: int = 0
    properties: List[PropertyDetail] = Field(default_factory=list)
