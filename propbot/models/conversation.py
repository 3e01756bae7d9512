from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

OPENING_MESSAGE = "Hello! I am your AI assistant. How can I help you find your dream property today?"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationState(str, Enum):
    GREETING = "greeting"
    GATHERING_REQUIREMENTS = "gathering_requirements"
    SEARCHING = "searching"
    SHOWING_RESULTS = "showing_results"
    NEGOTIATING = "negotiating"
    SCHEDULING_VISIT = "scheduling_visit"
    FOLLOW_UP = "follow_up"


class Intent(str, Enum):
    SEARCH_PROPERTY = "search_property"
    GET_PROPERTY_DETAILS = "get_property_details"
    NEGOTIATE_PRICE = "negotiate_price"
    SCHEDULE_VISIT = "schedule_visit"
    ASK_QUESTIONS = "ask_questions"
    GENERAL_CHAT = "general_chat"


class Urgency(str, Enum):
    IMMEDIATE = "immediate"
    WITHIN_MONTH = "within_month"
    WITHIN_3_MONTHS = "within_3_months"
    JUST_LOOKING = "just_looking"


class Purpose(str, Enum):
    INVESTMENT = "investment"
    SELF_USE = "self_use"
    RENTAL_INCOME = "rental_income"
    VACATION_HOME = "vacation_home"


class Budget(BaseModel):
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)


class LocationPreference(BaseModel):
    city: Optional[str] = None
    areas: List[str] = Field(default_factory=list)
    state: Optional[str] = None


class PropertySize(BaseModel):
    min_area: Optional[float] = None
    max_area: Optional[float] = None
    unit: Literal["sqft", "sqm"] = "sqft"


class Preferences(BaseModel):
    budget: Budget = Field(default_factory=Budget)
    location: LocationPreference = Field(default_factory=LocationPreference)
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    amenities: List[str] = Field(default_factory=list)
    property_size: PropertySize = Field(default_factory=PropertySize)
    urgency: Urgency = Urgency.JUST_LOOKING
    purpose: Purpose = Purpose.SELF_USE


class SuggestedProperty(BaseModel):
    property_id: str
    relevance_score: Optional[float] = None


class Turn(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    intent: Optional[str] = None
    extracted_data: Optional[Dict[str, Any]] = None
    suggested_properties: List[SuggestedProperty] = Field(default_factory=list)


class PropertyView(BaseModel):
    property_id: str
    viewed_at: datetime = Field(default_factory=utcnow)
    interested: Optional[bool] = None


class Conversation(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    session_id: str
    user_id: Optional[str] = None
    preferences: Preferences = Field(default_factory=Preferences)
    state: ConversationState = ConversationState.GREETING
    message_history: List[Turn] = Field(default_factory=list)
    total_messages: int = 0
    properties_viewed: List[PropertyView] = Field(default_factory=list)
    last_activity: datetime = Field(default_factory=utcnow)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    @classmethod
    def start(cls, session_id: str, user_id: Optional[str] = None) -> "Conversation":
        conversation = cls(session_id=session_id, user_id=user_id)
        conversation.message_history.append(
            Turn(role="assistant", content=OPENING_MESSAGE, intent="greeting")
        )
        return conversation

    def append_turn(self, turn: Turn) -> None:
        self.message_history.append(turn)

    def last_suggestions(self) -> List[str]:
        for turn in reversed(self.message_history):
            if turn.role == "assistant" and turn.suggested_properties:
                return [item.property_id for item in turn.suggested_properties]
        return []

    def touch(self) -> None:
        now = utcnow()
        self.last_activity = now
        self.updated_at = now
