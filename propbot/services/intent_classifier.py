from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from propbot.models.conversation import Intent
from propbot.services.patterns import PATTERN_GROUPS, PatternGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentResult:
    intent: Intent
    confidence: float
    group: Optional[str] = None
    matches: int = 0


class IntentClassifier:
    def __init__(self, groups: Sequence[PatternGroup] = PATTERN_GROUPS) -> None:
        self.groups = list(groups)

    def classify(self, message: str) -> IntentResult:
        text = message.lower()
        for group in self.groups:
            matches = group.count_matches(text)
            if matches:
                result = IntentResult(
                    intent=group.intent,
                    confidence=group.confidence(matches),
                    group=group.name,
                    matches=matches,
                )
                logger.info(
                    "classifier.intent intent=%s group=%s matches=%d confidence=%.3f",
                    result.intent.value,
                    group.name,
                    matches,
                    result.confidence,
                )
                return result
        logger.info("classifier.intent intent=%s group=none", Intent.GENERAL_CHAT.value)
        return IntentResult(intent=Intent.GENERAL_CHAT, confidence=0.0)
