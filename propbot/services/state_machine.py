from __future__ import annotations

import logging

from propbot.models.conversation import Conversation, ConversationState, Intent, Preferences
from propbot.models.extraction import ExtractedData

logger = logging.getLogger(__name__)

# Intents that move the conversation regardless of where it currently is.
_INTENT_TARGETS = {
    Intent.GET_PROPERTY_DETAILS: ConversationState.SHOWING_RESULTS,
    Intent.NEGOTIATE_PRICE: ConversationState.NEGOTIATING,
    Intent.SCHEDULE_VISIT: ConversationState.SCHEDULING_VISIT,
}


def next_state(current: ConversationState, intent: Intent, data: ExtractedData) -> ConversationState:
    if intent == Intent.SEARCH_PROPERTY:
        if data.is_empty():
            return ConversationState.GATHERING_REQUIREMENTS
        return ConversationState.SEARCHING
    if intent in _INTENT_TARGETS:
        return _INTENT_TARGETS[intent]
    # ask_questions, general_chat: only the opening greeting moves on.
    if current == ConversationState.GREETING:
        return ConversationState.GATHERING_REQUIREMENTS
    return current


def merge_preferences(preferences: Preferences, data: ExtractedData) -> Preferences:
    """Fold extracted fields into ``preferences`` in place.

    Scalars overwrite, budget and location merge field by field, amenities
    are unioned keeping first-seen order.
    """
    fields = data.model_fields_set
    if "price" in fields and data.price is not None:
        preferences.budget.min_price = data.price.min_price
        preferences.budget.max_price = data.price.max_price
    if "location" in fields and data.location is not None:
        preferences.location.city = data.location.city
    if "property_type" in fields and data.property_type is not None:
        preferences.property_type = data.property_type
    if "bedrooms" in fields and data.bedrooms is not None:
        preferences.bedrooms = data.bedrooms
    if "amenities" in fields and data.amenities:
        merged = list(preferences.amenities)
        for amenity in data.amenities:
            if amenity not in merged:
                merged.append(amenity)
        preferences.amenities = merged
    return preferences


class ConversationStateMachine:
    def transition(self, conversation: Conversation, intent: Intent, data: ExtractedData) -> ConversationState:
        previous = conversation.state
        conversation.state = next_state(previous, intent, data)

        if intent != Intent.ASK_QUESTIONS:
            merge_preferences(conversation.preferences, data)

        logger.info(
            "state_machine.transition session_id=%s intent=%s from=%s to=%s",
            conversation.session_id,
            intent.value,
            previous.value,
            conversation.state.value,
        )
        return conversation.state
