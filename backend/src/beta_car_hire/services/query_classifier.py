"""
Keyword classifier used when the model cannot classify a message.

Rules are ordered regular expressions; the highest-confidence match wins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from beta_car_hire.core.constants import CAR_TYPES
from beta_car_hire.schemas import IntentResult, IntentEntities

logger = logging.getLogger(__name__)


@dataclass
class ClassificationRule:
    """Rule for classifying customer messages."""
    pattern: str
    intent: str
    confidence: float
    description: str
    tools: List[str] = field(default_factory=list)


class QueryClassifier:
    """Classifies messages into support intents."""

    def __init__(self):
        """Initialize the query classifier."""
        self.rules: List[ClassificationRule] = []
        self._load_classification_rules()

    def _load_classification_rules(self) -> None:
        """Load classification rules."""
        self.rules = [
            ClassificationRule(
                pattern=r"\b(my (booking|bookings|reservation|reservations|rental|rentals))\b",
                intent="booking",
                confidence=0.85,
                description="Own bookings query",
                tools=["get_user_bookings"],
            ),
            ClassificationRule(
                pattern=r"\b(book|reserve|reservation|rent)\b",
                intent="booking",
                confidence=0.7,
                description="Booking request",
                tools=["search_cars"],
            ),
            ClassificationRule(
                pattern=r"\b(price|prices|pricing|cost|costs|rate|rates|how much|cheap|expensive)\b",
                intent="pricing",
                confidence=0.8,
                description="Pricing query",
                tools=["search_cars"],
            ),
            ClassificationRule(
                pattern=r"\b(available|availability|free on|in stock)\b",
                intent="availability",
                confidence=0.8,
                description="Availability query",
                tools=["search_cars"],
            ),
            ClassificationRule(
                pattern=r"\b(feature|features|spec|specs|specification|seats|horsepower|gps|bluetooth)\b",
                intent="features",
                confidence=0.7,
                description="Vehicle features query",
                tools=["search_cars"],
            ),
            ClassificationRule(
                pattern=r"\b(car|cars|vehicle|vehicles|fleet|model|models)\b",
                intent="car_inquiry",
                confidence=0.6,
                description="Fleet query",
                tools=["search_cars"],
            ),
            ClassificationRule(
                pattern=r"\b(my (account|profile|details))\b",
                intent="support",
                confidence=0.75,
                description="Account query",
                tools=["get_user_info"],
            ),
            ClassificationRule(
                pattern=r"\b(help|problem|issue|complain|complaint|refund|broken|accident)\b",
                intent="support",
                confidence=0.65,
                description="Support request",
            ),
            ClassificationRule(
                pattern=r"\b(hi|hello|hey|thanks|thank you|good (morning|afternoon|evening))\b",
                intent="general_chat",
                confidence=0.6,
                description="Greeting",
            ),
        ]

        logger.info(f"Loaded {len(self.rules)} classification rules")

    def classify_query(self, message: str) -> Optional[IntentResult]:
        """
        Classify a message.

        Returns:
            The intent of the best matching rule, or None when no rule matches
        """
        if not message or not message.strip():
            return None

        best_match: Optional[ClassificationRule] = None
        for rule in self.rules:
            if re.search(rule.pattern, message, re.IGNORECASE):
                if best_match is None or rule.confidence > best_match.confidence:
                    best_match = rule

        if best_match is None:
            return None

        logger.debug(f"Keyword classifier matched: {best_match.description}")
        return IntentResult(
            intent=best_match.intent,
            confidence=best_match.confidence,
            entities=IntentEntities(car_type=self.extract_car_type(message)),
            requires_tools=list(best_match.tools),
        )

    @staticmethod
    def extract_car_type(message: str) -> Optional[str]:
        """Find a fleet car type named in the message."""
        lowered = message.lower()
        for car_type in CAR_TYPES:
            if re.search(rf"\b{car_type.lower()}s?\b", lowered):
                return car_type
        if re.search(r"\bsports? cars?\b", lowered):
            return "SportsCar"
        return None


# Global classifier instance
_query_classifier: Optional[QueryClassifier] = None


def get_query_classifier() -> QueryClassifier:
    """Get the global query classifier instance."""
    global _query_classifier
    if _query_classifier is None:
        _query_classifier = QueryClassifier()
    return _query_classifier
