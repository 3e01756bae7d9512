"""Ordered rule groups used to classify a message.

Groups are evaluated in list order and the first one with a matching
pattern decides the intent. Greeting resolves to ``general_chat`` but still
stops evaluation, so "hi, any 2bhk flats?" is treated as small talk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from propbot.models.conversation import Intent


@dataclass(frozen=True)
class PatternGroup:
    name: str
    priority: int
    intent: Intent
    patterns: Tuple[Pattern[str], ...]
    fixed_confidence: Optional[float] = None

    def count_matches(self, text: str) -> int:
        return sum(1 for pattern in self.patterns if pattern.search(text))

    def confidence(self, matches: int) -> float:
        if self.fixed_confidence is not None:
            return self.fixed_confidence
        return min(matches / len(self.patterns), 1.0)


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


PLATFORM_QUESTIONS = PatternGroup(
    name="platform",
    priority=1,
    intent=Intent.ASK_QUESTIONS,
    patterns=_compile(
        r"\b(?:how\s+(?:do|can)\s+i|how\s+to)\s+(?:sign\s+up|register|create\s+account|join|get\s+started)",
        r"\b(?:sign\s+up|register|signup|login|sign\s+in|create\s+account|join|membership)",
        r"\b(?:what\s+is|how\s+does|tell\s+me\s+about)\s+(?:urbannest|this\s+platform|the\s+website)",
        r"\b(?:contact|phone|email|address|support|help|customer\s+service)",
        r"\b(?:how\s+it\s+works|how\s+does\s+it\s+work|getting\s+started|tutorial|guide)",
        r"\b(?:about\s+us|company|who\s+are\s+you|what\s+do\s+you\s+do)",
        r"\b(?:pricing|cost|fees|charges|payment|subscription)",
        r"\b(?:features|services|what\s+can\s+you\s+do)",
    ),
)

GREETING = PatternGroup(
    name="greeting",
    priority=2,
    intent=Intent.GENERAL_CHAT,
    patterns=_compile(
        r"\b(?:hello|hi|hey|greetings|good\s+(?:morning|afternoon|evening))",
        r"\b(?:how\s+are\s+you|how\s+do\s+you\s+do)",
        r"\b(?:nice\s+to\s+meet\s+you|pleased\s+to\s+meet)",
    ),
    fixed_confidence=0.8,
)

PROPERTY_SEARCH = PatternGroup(
    name="search",
    priority=3,
    intent=Intent.SEARCH_PROPERTY,
    patterns=_compile(
        r"\b\d+\s*bhk",
        r"\bapartment\b",
        r"\bflat\b",
        r"\bvilla\b",
        r"\bhouse\b",
        r"\bcommercial\b",
        r"\bland\b",
        r"\bplot\b",
        r"\bunder\s+\d+(?:\.\d+)?\s*(?:cr|lakh|lacs|crs)",
        r"\bbudget\s+\d+(?:\.\d+)?\s*(?:cr|lakh|lacs|crs)",
        r"\b(?:find|show|search|get)\s+me\s+(?:a|an|some)",
        r"\blooking\s+for",
        r"\bwant\s+(?:to\s+)?(?:buy|purchase)",
        r"\bin\s+[a-zA-Z\s]+(?:city|area|location)",
        r"\bgym\b",
        r"\bpool\b",
        r"\bparking\b",
        r"\bsecurity\b",
        r"\bbalcony\b",
        r"\bgarden\b",
    ),
)

PROPERTY_DETAIL = PatternGroup(
    name="detail",
    priority=4,
    intent=Intent.GET_PROPERTY_DETAILS,
    patterns=_compile(
        r"\bshow\s+(?:me\s+)?(?:more\s+)?(?:details?|info)",
        r"\btell\s+me\s+(?:more\s+)?about",
        r"\bwhat\s+(?:is|are)\s+(?:the\s+)?details",
        r"\bprice\s+(?:of|for)",
        r"\bhow\s+much",
        r"\bproperty\s+#?\d+",
        r"\bthe\s+(?:first|second|third|1st|2nd|3rd)",
    ),
)

NEGOTIATION = PatternGroup(
    name="negotiation",
    priority=5,
    intent=Intent.NEGOTIATE_PRICE,
    patterns=_compile(
        r"\bnegotiate\b",
        r"\bprice\s+(?:too\s+)?high",
        r"\bcan\s+(?:we\s+)?(?:reduce|lower|decrease)",
        r"\bbargain",
        r"\boffer",
        r"\bdiscount",
        r"\bdeal",
    ),
    fixed_confidence=1.0,
)

VISIT_SCHEDULING = PatternGroup(
    name="visit",
    priority=6,
    intent=Intent.SCHEDULE_VISIT,
    patterns=_compile(
        r"\bvisit\b",
        r"\bsee\s+(?:the\s+)?property",
        r"\bschedule\b",
        r"\bappointment",
        r"\bmeet",
        r"\bwhen\s+can\s+i\s+see",
        r"\barrange\s+(?:a\s+)?visit",
    ),
)

PATTERN_GROUPS: List[PatternGroup] = sorted(
    [PLATFORM_QUESTIONS, GREETING, PROPERTY_SEARCH, PROPERTY_DETAIL, NEGOTIATION, VISIT_SCHEDULING],
    key=lambda group: group.priority,
)
