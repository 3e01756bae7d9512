import pytest

from propbot.models.conversation import Conversation, ConversationState, Intent, Preferences
from propbot.models.extraction import ExtractedData, LocationMention, PriceRange
from propbot.services.state_machine import ConversationStateMachine, merge_preferences, next_state


def test_search_with_data_moves_to_searching():
    data = ExtractedData(bedrooms=3)
    assert next_state(ConversationState.GREETING, Intent.SEARCH_PROPERTY, data) == ConversationState.SEARCHING


def test_search_without_data_gathers_requirements():
    state = next_state(ConversationState.SHOWING_RESULTS, Intent.SEARCH_PROPERTY, ExtractedData())
    assert state == ConversationState.GATHERING_REQUIREMENTS


@pytest.mark.parametrize(
    "intent, target",
    [
        (Intent.GET_PROPERTY_DETAILS, ConversationState.SHOWING_RESULTS),
        (Intent.NEGOTIATE_PRICE, ConversationState.NEGOTIATING),
        (Intent.SCHEDULE_VISIT, ConversationState.SCHEDULING_VISIT),
    ],
)
def test_intent_targets_apply_from_any_state(intent, target):
    for current in ConversationState:
        assert next_state(current, intent, ExtractedData()) == target


def test_small_talk_only_leaves_greeting():
    assert (
        next_state(ConversationState.GREETING, Intent.GENERAL_CHAT, ExtractedData())
        == ConversationState.GATHERING_REQUIREMENTS
    )
    assert next_state(ConversationState.NEGOTIATING, Intent.ASK_QUESTIONS, ExtractedData()) == ConversationState.NEGOTIATING
    assert next_state(ConversationState.FOLLOW_UP, Intent.GENERAL_CHAT, ExtractedData()) == ConversationState.FOLLOW_UP


def test_merge_overwrites_only_present_fields():
    preferences = Preferences()
    preferences.bedrooms = 2
    preferences.location.city = "Rajkot"

    merge_preferences(preferences, ExtractedData(price=PriceRange(min_price=1, max_price=5)))

    assert preferences.bedrooms == 2
    assert preferences.location.city == "Rajkot"
    assert (preferences.budget.min_price, preferences.budget.max_price) == (1, 5)


def test_amenity_merge_is_idempotent_and_ordered():
    preferences = Preferences()
    merge_preferences(preferences, ExtractedData(amenities=["gym", "parking"]))
    merge_preferences(preferences, ExtractedData(amenities=["parking", "pool"]))
    merge_preferences(preferences, ExtractedData(amenities=["parking", "pool"]))
    assert preferences.amenities == ["gym", "parking", "pool"]


def test_platform_questions_do_not_touch_preferences():
    conversation = Conversation.start("session_test")
    machine = ConversationStateMachine()

    machine.transition(conversation, Intent.ASK_QUESTIONS, ExtractedData(location=LocationMention(city="Surat")))

    assert conversation.preferences.location.city is None
    assert conversation.state == ConversationState.GATHERING_REQUIREMENTS


def test_transition_merges_and_returns_new_state():
    conversation = Conversation.start("session_test")
    state = ConversationStateMachine().transition(
        conversation, Intent.SEARCH_PROPERTY, ExtractedData(property_type="villa", bedrooms=4)
    )
    assert state == conversation.state == ConversationState.SEARCHING
    assert conversation.preferences.property_type == "villa"
    assert conversation.preferences.bedrooms == 4
