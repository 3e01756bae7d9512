from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Set

from propbot.errors import ExternalServiceError, NotFoundError
from propbot.logging.flight_recorder import FlightRecorder
from propbot.models.conversation import Budget, Conversation, ConversationState, Intent, Preferences
from propbot.models.extraction import ExtractedData
from propbot.models.listing import NEWEST_FIRST, PropertyFilter, PropertySummary
from propbot.services.copywriter import CHAT_SYSTEM_PROMPT
from propbot.services.model_gateway import ModelGateway
from propbot.services.portfolio import Listing, PropertyRepository

logger = logging.getLogger(__name__)

_ORDINALS = {
    "first": 1, "1st": 1,
    "second": 2, "2nd": 2,
    "third": 3, "3rd": 3,
    "fourth": 4, "4th": 4,
    "fifth": 5, "5th": 5,
}
_ORDINAL_RE = re.compile(r"\bthe\s+(first|second|third|fourth|fifth|1st|2nd|3rd|4th|5th)\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"(?:\bproperty\s+#?|#)(\d+)\b", re.IGNORECASE)
_AFFIRMATIVE_RE = re.compile(r"^(yes|yeah|yep|sure|okay|ok|alright)", re.IGNORECASE)
_NEGATIVE_RE = re.compile(r"^(no|nope|nah|not really)", re.IGNORECASE)


def format_price(amount: float) -> str:
    """Render rupees with Indian digit grouping, e.g. 8500000 -> ₹85,00,000."""
    rupees = int(round(amount))
    digits = str(abs(rupees))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups: List[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    sign = "-" if rupees < 0 else ""
    return f"{sign}₹{digits}"


def format_price_range(budget: Budget) -> str:
    if budget.min_price and budget.max_price and budget.min_price == budget.max_price:
        return format_price(budget.max_price)
    if budget.min_price and budget.max_price:
        return f"{format_price(budget.min_price)} - {format_price(budget.max_price)}"
    if budget.max_price:
        return f"Up to {format_price(budget.max_price)}"
    if budget.min_price:
        return f"From {format_price(budget.min_price)}"
    return "Any budget"


def build_search_filter(preferences: Preferences) -> PropertyFilter:
    """Repository filter for the accumulated preferences.

    A max price takes precedence; the min bound is only used when no max has
    been captured.
    """
    query = PropertyFilter(status="available")
    if preferences.property_type:
        query.property_type = preferences.property_type
    if preferences.location.city:
        query.city = preferences.location.city
    if preferences.bedrooms:
        query.min_bedrooms = preferences.bedrooms
    if preferences.budget.max_price:
        query.max_price = preferences.budget.max_price
    elif preferences.budget.min_price:
        query.min_price = preferences.budget.min_price
    if preferences.amenities:
        query.amenities = list(preferences.amenities)
    return query


@dataclass
class ComposedReply:
    reply_type: str
    content: str
    properties: List[PropertySummary] = field(default_factory=list)
    viewed_property_id: Optional[str] = None


class ResponseComposer:
    def __init__(
        self,
        repository: PropertyRepository,
        gateway: Optional[ModelGateway] = None,
        platform_name: str = "Urbannest",
        search_limit: int = 5,
    ) -> None:
        self.repository = repository
        self.gateway = gateway
        self.platform_name = platform_name
        self.search_limit = search_limit
        self._pending: Set[asyncio.Task] = set()

    async def generate(
        self,
        conversation: Conversation,
        intent: Intent,
        data: ExtractedData,
        message: str,
        recorder: Optional[FlightRecorder] = None,
    ) -> ComposedReply:
        if intent == Intent.ASK_QUESTIONS:
            return self.platform_questions(message)
        if intent == Intent.SEARCH_PROPERTY:
            return await self.search(conversation.preferences, recorder)
        if intent == Intent.GET_PROPERTY_DETAILS:
            return await self.details(conversation, message)
        if intent == Intent.NEGOTIATE_PRICE:
            return self.negotiation(message)
        if intent == Intent.SCHEDULE_VISIT:
            return self.visit_scheduling(message)

        state = conversation.state
        if state == ConversationState.GREETING:
            return self.greeting()
        if state == ConversationState.GATHERING_REQUIREMENTS:
            return self.requirements(conversation.preferences)
        if state == ConversationState.SEARCHING:
            return await self.search(conversation.preferences, recorder)
        if state == ConversationState.SHOWING_RESULTS:
            return await self.details(conversation, message)
        if state == ConversationState.NEGOTIATING:
            return self.negotiation(message)
        if state == ConversationState.SCHEDULING_VISIT:
            return self.visit_scheduling(message)
        return await self.general(message)

    def greeting(self) -> ComposedReply:
        return ComposedReply(
            "greeting",
            f"Hello! I'm your AI real estate assistant at {self.platform_name}. I can help you find the perfect "
            "property in Rajkot and surrounding areas.\n\n"
            "What are you looking for today?\n"
            "• Buy a property\n"
            "• Commercial space\n"
            "• Specific location or budget\n"
            "• General questions about real estate\n\n"
            "Just tell me what you're interested in, and I'll guide you through the process!",
        )

    def requirements(self, preferences: Preferences) -> ComposedReply:
        missing = []
        if not preferences.budget.max_price:
            missing.append("budget range")
        if not preferences.location.city:
            missing.append("preferred location")
        if not preferences.property_type:
            missing.append("property type")
        if not preferences.bedrooms:
            missing.append("number of bedrooms")

        if missing:
            asks = "\n".join(f"• Your {item}" for item in missing)
            return ComposedReply(
                "gathering_info",
                "I'd love to help you find the perfect property! To give you the best recommendations, "
                f"could you please share:\n\n{asks}\n\n"
                'For example: "I\'m looking for a 3BHK apartment in Rajkot under 80 lakhs with parking"\n\n'
                "What are your preferences?",
            )

        amenities = ", ".join(preferences.amenities) or "Any"
        return ComposedReply(
            "ready_to_search",
            "Perfect! Based on our conversation, you're looking for:\n"
            f"• {preferences.bedrooms}BHK {preferences.property_type}\n"
            f"• Budget: {format_price_range(preferences.budget)}\n"
            f"• Location: {preferences.location.city or 'Any'}\n"
            f"• Amenities: {amenities}\n\n"
            "Let me search for matching properties for you!",
        )

    async def search(self, preferences: Preferences, recorder: Optional[FlightRecorder] = None) -> ComposedReply:
        query = build_search_filter(preferences)
        if recorder:
            with recorder.stage("SEARCH", city=query.city, property_type=query.property_type):
                listings = await self.repository.find(query, limit=self.search_limit, sort=NEWEST_FIRST)
        else:
            listings = await self.repository.find(query, limit=self.search_limit, sort=NEWEST_FIRST)

        if not listings:
            return ComposedReply("no_results", self._no_results_text(preferences))

        lines = [f"Great! I found {len(listings)} matching properties:\n"]
        for index, listing in enumerate(listings, start=1):
            lines.append(self._listing_block(index, listing))
        lines.append(
            "Would you like to:\n"
            "• Get more details about any of these properties\n"
            "• Search for more options\n"
            "• Schedule a visit to see one of these properties\n\n"
            f"Which property interests you most? (1-{len(listings)})"
        )
        return ComposedReply(
            "search_results",
            "\n".join(lines),
            properties=[listing.to_summary() for listing in listings],
        )

    def _no_results_text(self, preferences: Preferences) -> str:
        criteria = [f"{preferences.bedrooms or 'any'}BHK", preferences.property_type or "properties"]
        if preferences.location.city:
            criteria.append(f"in {preferences.location.city}")
        if preferences.budget.max_price:
            criteria.append(f"under {format_price(preferences.budget.max_price)}")
        return (
            f"I searched for {' '.join(criteria)}, but couldn't find any exact matches.\n\n"
            "Would you like me to:\n"
            "• Expand your search criteria\n"
            "• Look in nearby areas\n"
            "• Adjust your budget range\n"
            "• Show similar properties\n\n"
            "What would you prefer?"
        )

    def _listing_block(self, index: int, listing: Listing) -> str:
        block = [
            f"{index}. **{listing.title}**",
            f"   Address: {listing.location.address}, {listing.location.city}",
            f"   Price: {format_price(listing.price)}",
            f"   {listing.bedrooms or 0} BHK, {listing.bathrooms or 0} bathrooms",
            f"   Area: {listing.area:g} {listing.area_unit}",
        ]
        if listing.amenities:
            more = "..." if len(listing.amenities) > 3 else ""
            block.append(f"   Amenities: {', '.join(listing.amenities[:3])}{more}")
        block.append(f"   Contact: {listing.contact_name or 'Agent'}")
        block.append(f"   View details: /properties/{listing.id}\n")
        return "\n".join(block)

    async def details(self, conversation: Conversation, message: str) -> ComposedReply:
        property_id = self._referenced_property(conversation, message)
        listing = await self.repository.get(property_id) if property_id else None
        if listing is None:
            return ComposedReply(
                "property_details",
                "I'd be happy to provide more details! Which property are you interested in learning more about? "
                "Please tell me the property number (1-5) from the list above, or describe what you're looking for.",
            )

        self._track_view(listing.id)
        amenities = ", ".join(listing.amenities) or "None listed"
        content = (
            f"Here are the details for **{listing.title}**:\n\n"
            f"{listing.description}\n\n"
            f"• Type: {listing.property_type}\n"
            f"• Price: {format_price(listing.price)}\n"
            f"• Address: {listing.location.address}, {listing.location.city}, {listing.location.state}\n"
            f"• {listing.bedrooms} BHK, {listing.bathrooms} bathrooms, {listing.area:g} {listing.area_unit}\n"
            f"• Amenities: {amenities}\n"
            f"• Contact: {listing.contact_name or 'Agent'}\n"
            f"• Full listing: /properties/{listing.id}\n\n"
            "Would you like to schedule a visit or discuss the price?"
        )
        return ComposedReply(
            "property_details",
            content,
            properties=[listing.to_summary()],
            viewed_property_id=listing.id,
        )

    def _referenced_property(self, conversation: Conversation, message: str) -> Optional[str]:
        suggestions = conversation.last_suggestions()
        if not suggestions:
            return None
        position: Optional[int] = None
        number_match = _NUMBER_RE.search(message)
        ordinal_match = _ORDINAL_RE.search(message)
        if number_match:
            position = int(number_match.group(1))
        elif ordinal_match:
            position = _ORDINALS[ordinal_match.group(1).lower()]
        if position is None or not 1 <= position <= len(suggestions):
            return None
        return suggestions[position - 1]

    def _track_view(self, property_id: str) -> None:
        task = asyncio.create_task(self._increment_views(property_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _increment_views(self, property_id: str) -> None:
        try:
            await self.repository.increment_views(property_id)
        except NotFoundError:
            logger.warning("composer.view_unknown_property property_id=%s", property_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("composer.view_increment_failed property_id=%s err=%s", property_id, exc)

    async def wait_pending(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def negotiation(self, message: str) -> ComposedReply:
        lowered = message.lower()
        if "discount" in lowered or "offer" in lowered:
            opener = (
                "Happy to help you put an offer together. Sellers here usually consider offers within "
                "5-10% of the asking price, depending on the property and market conditions."
            )
        else:
            opener = (
                "I understand you're interested in negotiating the price. For properties in Rajkot, prices are "
                "often negotiable by 5-10% depending on the property and market conditions."
            )
        return ComposedReply(
            "negotiation",
            f"{opener}\n\n"
            "Would you like me to:\n"
            "• Connect you with the property agent to discuss pricing\n"
            "• Show you comparable properties in the same price range\n"
            "• Provide market analysis for the area\n\n"
            "Which property would you like to negotiate for?",
        )

    def visit_scheduling(self, message: str) -> ComposedReply:
        lowered = message.lower()
        day = next((word for word in ("today", "tomorrow", "weekend") if word in lowered), None)
        if day:
            opener = f"Great, {'this ' if day == 'weekend' else ''}{day} works for a visit. Let's lock in the details:"
        else:
            opener = "Excellent! Scheduling a property visit is a great next step. Here's how we can arrange it:"
        return ComposedReply(
            "visit_scheduling",
            f"{opener}\n\n"
            "**Next Steps:**\n"
            "1. Choose your preferred date and time\n"
            "2. Confirm which property you'd like to visit\n"
            "3. I'll connect you with the property agent\n"
            "4. Arrange transportation if needed\n\n"
            "**Popular Visiting Times:**\n"
            "• Weekdays: 10 AM - 6 PM\n"
            "• Weekends: 9 AM - 7 PM\n"
            "• Evenings: 4 PM - 8 PM\n\n"
            "Which property would you like to visit, and what day/time works best for you?",
        )

    def platform_questions(self, message: str) -> ComposedReply:
        lowered = message.lower()
        name = self.platform_name

        if any(key in lowered for key in ("sign up", "register", "signup", "create account", "join", "how to")):
            return ComposedReply(
                "platform_info",
                f"Great question! Here's how to sign up on {name}:\n\n"
                "**How to Create an Account:**\n"
                '1. Click "Start for free" in the top-right corner of any page\n'
                "2. Choose your account type: User (buyers and renters) or Agent (real estate professionals)\n"
                "3. Fill in your name, email address, phone number and a password\n"
                "4. Verify your email using the link in your inbox\n"
                "5. Complete your profile\n\n"
                "**Benefits of Signing Up:**\n"
                "• Save favorite properties\n"
                "• Get personalized recommendations\n"
                "• Schedule property visits\n"
                "• Receive price alerts\n\n"
                "Would you like me to help you find properties first, or do you have questions about the signup process?",
            )

        if any(key in lowered for key in ("contact", "phone", "email", "support", "help")):
            return ComposedReply(
                "contact_info",
                f"Here's how to get in touch with {name}:\n\n"
                "**Contact Information:**\n"
                f"• Email: support@{name.lower()}.com\n"
                "• Phone: +91 98765 43210\n"
                "• Address: 150 Feet Ring Road, Rajkot, Gujarat, India 360005\n\n"
                "**Support Hours:**\n"
                "• Monday - Saturday: 9:00 AM - 8:00 PM IST\n"
                "• Sunday: 10:00 AM - 5:00 PM IST\n\n"
                "You can also keep chatting with me right here. How can I assist you today?",
            )

        if any(key in lowered for key in ("how it works", "how does it work", "getting started", "tutorial")):
            return ComposedReply(
                "how_it_works",
                f"Here's how {name} works:\n\n"
                "**For Property Seekers:**\n"
                "1. Sign up (free) to create your profile\n"
                "2. Tell us your requirements: budget, location, property type\n"
                "3. Browse personalized recommendations or search manually\n"
                "4. Save favorites and compare them\n"
                "5. Contact agents and schedule visits\n\n"
                "**For Real Estate Agents:**\n"
                "1. Register as an agent\n"
                "2. Add listings with photos, details and pricing\n"
                "3. Manage inquiries and schedule showings\n\n"
                "**Smart Search:** describe what you want in plain English and I'll find matches.\n\n"
                "What would you like to explore first?",
            )

        if any(key in lowered for key in ("about us", f"about {name.lower()}", "who are you", "company")):
            return ComposedReply(
                "about_info",
                f"**About {name}**\n\n"
                f"{name} is a modern real estate platform connecting property buyers, sellers and real estate "
                "professionals in one place.\n\n"
                "**What Makes Us Different:**\n"
                "• AI-powered search in plain English\n"
                "• Verified listings\n"
                "• Real-time pricing and trend insights\n"
                "• Local expertise in Rajkot and across Gujarat\n\n"
                "**Service Areas:** Rajkot (primary), Ahmedabad, Surat, Vadodara\n\n"
                "Ready to start your property journey? I can help you find the perfect property!",
            )

        if any(key in lowered for key in ("pricing", "cost", "fees", "features", "services")):
            return ComposedReply(
                "pricing_info",
                f"Here's an overview of {name}'s features and pricing:\n\n"
                "**Free Services:**\n"
                "• Property search and browsing\n"
                "• Saved favorites\n"
                "• Basic property inquiries\n"
                "• AI chat assistance\n\n"
                "**Agent Services:**\n"
                "• Property listing: ₹499/month per listing\n"
                "• Advanced analytics: ₹999/month\n"
                "• Lead generation tools: ₹1999/month\n"
                "• Priority support: ₹2999/month\n\n"
                "Would you like help finding properties that match your needs?",
            )

        return ComposedReply(
            "platform_general",
            f"I'm here to help you with all aspects of {name}! I can answer questions about:\n\n"
            "• Property search and buying\n"
            "• Accounts, features and pricing\n"
            "• Support and contact options\n"
            "• Agent services and listings\n\n"
            "What specific question can I help you with today?",
        )

    async def general(self, message: str) -> ComposedReply:
        lowered = message.lower().strip()
        if "thank" in lowered:
            return ComposedReply(
                "gratitude_response",
                "You're very welcome! I'm glad I could help.\n\n"
                "Is there anything else I can assist you with? Finding more properties, platform questions "
                "or scheduling visits, I'm here whenever you need me.",
            )
        if _AFFIRMATIVE_RE.match(lowered):
            return ComposedReply(
                "affirmative_response",
                "Great! What would you like to do next? I can help you with:\n\n"
                "• **Property Search**: tell me your requirements (budget, location, type)\n"
                "• **More Details**: ask about specific properties\n"
                "• **Visit Scheduling**: arrange property viewings\n"
                "• **Questions**: anything about real estate or our platform",
            )
        if _NEGATIVE_RE.match(lowered):
            return ComposedReply(
                "negative_response",
                "No problem at all! Take your time to think about what you're looking for.\n\n"
                "Just let me know when you'd like to continue.",
            )

        if self.gateway is None or not self.gateway.configured:
            return ComposedReply("general", self._general_text())

        prompt = [
            {"role": "system", "content": CHAT_SYSTEM_PROMPT.format(platform=self.platform_name)},
            {"role": "user", "content": message},
        ]
        try:
            reply = await self.gateway.complete(prompt)
        except ExternalServiceError as exc:
            logger.warning("composer.llm_unavailable err=%s", exc)
            return ComposedReply(
                "general",
                "Sorry, I couldn't come up with a detailed answer just now. " + self._general_text(),
            )
        return ComposedReply("ai_general", reply.strip())

    def _general_text(self) -> str:
        return (
            f"I'm here to help with all your real estate needs on {self.platform_name}! "
            "Whether you're looking to buy, sell, or just have questions about the Rajkot property market, "
            "I can assist you.\n\n"
            "• Finding properties that match your requirements\n"
            "• Understanding current market prices and trends\n"
            "• Answering questions about the buying/selling process\n"
            "• Commercial property information\n\n"
            "What would you like to know more about?"
        )
