"""
Intent Classifier - Fine-grained classification of in-trip messages.
"""
from typing import Optional
import logging

from .fallback import guarded_json
from .llm_client import TextGateway, get_llm_client
from ..models.in_trip import DEFAULT_INTENT, Intent

logger = logging.getLogger(__name__)


INTENT_SYSTEM_PROMPT = """You classify messages from travelers who are currently on a trip.
Respond with ONLY a JSON object. No explanations."""

INTENT_PROMPT = """Analyze this in-trip message and determine the user's intent:

Message: "{message}"
Current Location: {location}

Classify as exactly one of these types:
- emergency: Safety concerns, medical issues, lost, danger
- navigation: Directions, how to get somewhere, transport
- booking_change: Flight changes, hotel issues, reservation problems
- recommendation: Where to eat, what to do, places to visit
- translation: Language help, communication issues
- weather: Weather questions, conditions
- safety: Safety concerns, areas to avoid
- general: General questions, help needed

Also extract:
- urgency: high, medium, low
- location_mentioned: any location mentioned in the message, or null
- action_needed: what action the user needs

Respond with JSON:
{{"type": "...", "urgency": "...", "location_mentioned": null, "action_needed": "..."}}"""


class IntentClassifier:
    """Classifies in-trip messages; never raises."""

    def __init__(self, gateway: Optional[TextGateway] = None):
        self.llm = gateway or get_llm_client()

    async def classify(self, message: str, location: Optional[str] = None) -> Intent:
        """
        Classify ``message`` sent from ``location``.

        Any gateway failure or output that is not a valid intent object gives
        the default: general, medium urgency, no location, "general assistance".
        """
        prompt = INTENT_PROMPT.format(message=message, location=location or "Unknown")
        result = await guarded_json(
            self.llm,
            prompt,
            Intent,
            DEFAULT_INTENT.model_copy,
            system=INTENT_SYSTEM_PROMPT,
            label="intent",
        )
        if result.fallback_used:
            logger.info("Intent classification fell back to general assistance")
        return result.value
