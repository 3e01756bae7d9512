import pytest

from propbot.models.conversation import Budget, Conversation, ConversationState, Intent, Preferences, SuggestedProperty, Turn
from propbot.models.extraction import ExtractedData
from propbot.services.response_composer import (
    ResponseComposer,
    build_search_filter,
    format_price,
    format_price_range,
)


def _conversation(state=ConversationState.GREETING, **preferences):
    conversation = Conversation.start("session_test")
    conversation.state = state
    conversation.preferences = Preferences(**preferences)
    return conversation


@pytest.mark.parametrize(
    "amount, rendered",
    [
        (999, "₹999"),
        (100000, "₹1,00,000"),
        (8500000, "₹85,00,000"),
        (123456789, "₹12,34,56,789"),
        (7800000.4, "₹78,00,000"),
    ],
)
def test_format_price_uses_indian_grouping(amount, rendered):
    assert format_price(amount) == rendered


def test_format_price_range():
    assert format_price_range(Budget(min_price=5000000, max_price=8000000)) == "₹50,00,000 - ₹80,00,000"
    assert format_price_range(Budget(max_price=8000000)) == "Up to ₹80,00,000"
    assert format_price_range(Budget(min_price=8000000, max_price=8000000)) == "₹80,00,000"
    assert format_price_range(Budget()) == "Any budget"


def test_search_filter_prefers_max_price():
    preferences = Preferences(budget=Budget(min_price=8000000, max_price=8000000), bedrooms=3, amenities=["parking"])
    query = build_search_filter(preferences)
    assert query.max_price == 8000000
    assert query.min_price is None
    assert query.min_bedrooms == 3
    assert query.amenities == ["parking"]
    assert query.status == "available"


def test_search_filter_uses_min_price_without_max():
    query = build_search_filter(Preferences(budget=Budget(min_price=5000000)))
    assert query.min_price == 5000000
    assert query.max_price is None


async def test_search_renders_numbered_results(composer):
    conversation = _conversation(
        ConversationState.SEARCHING,
        property_type="flat",
        bedrooms=3,
        budget=Budget(min_price=8000000, max_price=8000000),
        amenities=["parking"],
    )
    conversation.preferences.location.city = "rajkot"

    reply = await composer.generate(conversation, Intent.SEARCH_PROPERTY, ExtractedData(), "3bhk flat")

    assert reply.reply_type == "search_results"
    assert [item.id for item in reply.properties] == ["rjk-flat-kalavad"]
    assert "1. **Family 3BHK Flat off Kalavad Road**" in reply.content
    assert "₹78,00,000" in reply.content
    assert "/properties/rjk-flat-kalavad" in reply.content
    assert "(1-1)" in reply.content


async def test_search_results_are_newest_first_and_limited(repository):
    composer = ResponseComposer(repository, search_limit=2)
    conversation = _conversation(ConversationState.SEARCHING)
    conversation.preferences.location.city = "Rajkot"

    reply = await composer.generate(conversation, Intent.SEARCH_PROPERTY, ExtractedData(), "show me")

    assert [item.id for item in reply.properties] == ["rjk-commercial-yagnik", "rjk-apt-university"]


async def test_search_without_matches_offers_to_broaden(composer):
    conversation = _conversation(ConversationState.SEARCHING, property_type="plot")
    reply = await composer.generate(conversation, Intent.SEARCH_PROPERTY, ExtractedData(), "plot")
    assert reply.reply_type == "no_results"
    assert reply.properties == []
    assert "Expand your search criteria" in reply.content


async def test_requirements_lists_missing_fields(composer):
    conversation = _conversation(ConversationState.GATHERING_REQUIREMENTS, bedrooms=2)
    reply = await composer.generate(conversation, Intent.GENERAL_CHAT, ExtractedData(), "hi")
    assert reply.reply_type == "gathering_info"
    assert "• Your budget range" in reply.content
    assert "• Your preferred location" in reply.content
    assert "• Your property type" in reply.content
    assert "number of bedrooms" not in reply.content


async def test_requirements_ready_when_all_known(composer):
    conversation = _conversation(
        ConversationState.GATHERING_REQUIREMENTS,
        bedrooms=2,
        property_type="flat",
        budget=Budget(max_price=6500000),
    )
    conversation.preferences.location.city = "Rajkot"
    reply = await composer.generate(conversation, Intent.GENERAL_CHAT, ExtractedData(), "ok")
    assert reply.reply_type == "ready_to_search"
    assert "2BHK flat" in reply.content
    assert "Up to ₹65,00,000" in reply.content


async def test_details_resolve_ordinal_against_last_results(composer, repository):
    conversation = _conversation(ConversationState.SHOWING_RESULTS)
    conversation.append_turn(
        Turn(
            role="assistant",
            content="results",
            suggested_properties=[
                SuggestedProperty(property_id="rjk-flat-kasturba"),
                SuggestedProperty(property_id="rjk-villa-kalavad"),
            ],
        )
    )

    reply = await composer.generate(conversation, Intent.GET_PROPERTY_DETAILS, ExtractedData(), "tell me about the second")
    await composer.wait_pending()

    assert reply.viewed_property_id == "rjk-villa-kalavad"
    assert "Premium 4BHK Villa in Rajkot" in reply.content
    assert (await repository.get("rjk-villa-kalavad")).views == 1


async def test_details_without_reference_asks_which_one(composer):
    conversation = _conversation(ConversationState.SHOWING_RESULTS)
    reply = await composer.generate(conversation, Intent.GET_PROPERTY_DETAILS, ExtractedData(), "property #2")
    assert reply.reply_type == "property_details"
    assert reply.viewed_property_id is None
    assert "Which property are you interested in" in reply.content


async def test_view_increment_failure_is_not_fatal(composer, repository, monkeypatch):
    async def broken(property_id):
        raise RuntimeError("views store down")

    monkeypatch.setattr(repository, "increment_views", broken)
    conversation = _conversation(ConversationState.SHOWING_RESULTS)
    conversation.append_turn(
        Turn(role="assistant", content="results", suggested_properties=[SuggestedProperty(property_id="rjk-apt-150ring")])
    )

    reply = await composer.generate(conversation, Intent.GET_PROPERTY_DETAILS, ExtractedData(), "property 1")
    await composer.wait_pending()

    assert reply.viewed_property_id == "rjk-apt-150ring"


@pytest.mark.parametrize(
    "message, expected",
    [
        ("can I get a discount", "put an offer together"),
        ("the price is too high", "prices are often negotiable"),
    ],
)
async def test_negotiation_variants(composer, message, expected):
    reply = await composer.generate(_conversation(), Intent.NEGOTIATE_PRICE, ExtractedData(), message)
    assert reply.reply_type == "negotiation"
    assert expected in reply.content


async def test_visit_variants(composer):
    weekend = await composer.generate(_conversation(), Intent.SCHEDULE_VISIT, ExtractedData(), "visit this weekend")
    generic = await composer.generate(_conversation(), Intent.SCHEDULE_VISIT, ExtractedData(), "schedule a visit")
    assert "this weekend works" in weekend.content
    assert generic.content.startswith("Excellent! Scheduling a property visit")


@pytest.mark.parametrize(
    "message, reply_type",
    [
        ("how do I sign up", "platform_info"),
        ("what is your support email", "contact_info"),
        ("how does it work", "how_it_works"),
        ("who are you", "about_info"),
        ("what are your fees", "pricing_info"),
        ("membership", "platform_general"),
    ],
)
async def test_platform_question_dispatch(composer, message, reply_type):
    reply = await composer.generate(_conversation(), Intent.ASK_QUESTIONS, ExtractedData(), message)
    assert reply.reply_type == reply_type


async def test_platform_name_is_configurable(repository):
    composer = ResponseComposer(repository, platform_name="Homestead")
    reply = await composer.generate(_conversation(), Intent.ASK_QUESTIONS, ExtractedData(), "contact")
    assert "support@homestead.com" in reply.content


@pytest.mark.parametrize(
    "message, reply_type",
    [
        ("thank you!", "gratitude_response"),
        ("ok sounds good", "affirmative_response"),
        ("nope", "negative_response"),
        ("what is stamp duty", "general"),
    ],
)
async def test_general_replies_without_llm(composer, message, reply_type):
    conversation = _conversation(ConversationState.FOLLOW_UP)
    reply = await composer.generate(conversation, Intent.GENERAL_CHAT, ExtractedData(), message)
    assert reply.reply_type == reply_type


async def test_general_uses_llm_when_configured(repository, make_gateway):
    gateway = make_gateway({"model-a": "Stamp duty in Gujarat is 4.9%."})
    composer = ResponseComposer(repository, gateway=gateway)
    reply = await composer.generate(
        _conversation(ConversationState.FOLLOW_UP), Intent.GENERAL_CHAT, ExtractedData(), "what is stamp duty"
    )
    assert reply.reply_type == "ai_general"
    assert reply.content == "Stamp duty in Gujarat is 4.9%."
    system_prompt = gateway._client.completions.calls[0]["messages"][0]["content"]
    assert "real estate assistant for Urbannest" in system_prompt


async def test_general_apologises_when_llm_fails(repository, make_gateway):
    gateway = make_gateway({"model-a": RuntimeError("down"), "model-b": RuntimeError("down"), "model-c": None})
    composer = ResponseComposer(repository, gateway=gateway)
    reply = await composer.generate(
        _conversation(ConversationState.FOLLOW_UP), Intent.GENERAL_CHAT, ExtractedData(), "what is stamp duty"
    )
    assert reply.reply_type == "general"
    assert reply.content.startswith("Sorry")


async def test_composer_never_changes_state(composer):
    conversation = _conversation(ConversationState.NEGOTIATING)
    await composer.generate(conversation, Intent.SEARCH_PROPERTY, ExtractedData(), "3bhk")
    assert conversation.state == ConversationState.NEGOTIATING


async def test_ready_summary_shows_single_price_once(composer):
    conversation = _conversation(
        ConversationState.GATHERING_REQUIREMENTS,
        bedrooms=3,
        property_type="flat",
        budget=Budget(min_price=8000000, max_price=8000000),
    )
    conversation.preferences.location.city = "Rajkot"
    reply = await composer.generate(conversation, Intent.GENERAL_CHAT, ExtractedData(), "ok")
    assert "• Budget: ₹80,00,000\n" in reply.content
