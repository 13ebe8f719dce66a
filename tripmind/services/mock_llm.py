"""
Mock LLM Client - Offline, deterministic stand-in for the text-generation service.
Recognizes the prompts the phase handlers send and answers with canned,
keyword-driven text or JSON. No network access.
"""
import json
import logging
import re
from typing import Optional

from .extractor import NEGATIVE_WORDS, POSITIVE_WORDS

logger = logging.getLogger(__name__)


INTENT_KEYWORDS = [
    ("emergency", ["emergency", "hospital", "ambulance", "injured", "stolen", "lost my", "danger", "police"]),
    ("navigation", ["directions", "how do i get", "how to get", "route", "way to", "navigate", "lost"]),
    ("booking_change", ["booking", "reservation", "flight", "hotel", "cancel", "reschedule"]),
    ("recommendation", ["eat", "restaurant", "food", "visit", "what to do", "recommend", "attraction"]),
    ("translation", ["translate", "language", "say", "phrase", "speak"]),
    ("weather", ["weather", "rain", "forecast", "temperature", "sunny"]),
    ("safety", ["safe", "unsafe", "avoid", "scam", "dangerous"]),
]


def _field(prompt: str, name: str, default: str = "Unknown") -> str:
    """Value of a 'Name: value' line in a prompt."""
    match = re.search(rf"^{re.escape(name)}:\s*(.+)$", prompt, re.MULTILINE)
    if not match:
        return default
    return match.group(1).strip().strip('"') or default


class MockLLMClient:
    """Deterministic offline provider."""

    def __init__(self):
        self.model = "mock-offline"

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """Answer the last user message."""
        prompt = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        lower = prompt.lower()

        if "analyze this in-trip message" in lower:
            return self._intent(prompt)
        if "analyze this travel feedback" in lower:
            return self._feedback_analysis(prompt)
        if "visa requirements" in lower and json_mode:
            return self._visa(prompt)
        if "medical advisories" in lower and json_mode:
            return self._medical(prompt)
        if "travel alerts" in lower and json_mode:
            return self._alerts(prompt)
        if "weather forecast" in lower and json_mode:
            return self._weather(prompt)
        if "cultural information" in lower and json_mode:
            return self._cultural(prompt)

        if json_mode:
            return json.dumps({"summary": "No structured data available offline."})
        return self._narrative(prompt)

    def _intent(self, prompt: str) -> str:
        message = _field(prompt, "Message", "").lower()
        location = _field(prompt, "Current Location", "Unknown")

        intent_type = "general"
        for name, words in INTENT_KEYWORDS:
            if any(word in message for word in words):
                intent_type = name
                break

        urgency = "high" if intent_type == "emergency" else "medium"
        mentioned = re.search(r"\b(?:to|in|at|near)\s+(?:the\s+)?([A-Z][\w ]+?)(?:[?.!,]|$)", _field(prompt, "Message", ""))
        return json.dumps({
            "type": intent_type,
            "urgency": urgency,
            "location_mentioned": mentioned.group(1) if mentioned else None,
            "action_needed": f"{intent_type.replace('_', ' ')} assistance near {location}",
        })

    def _visa(self, prompt: str) -> str:
        destination = _field(prompt, "Destination")
        nationality = _field(prompt, "Nationality", "your")
        return json.dumps({
            "summary": f"{nationality} citizens should confirm entry rules for {destination} before booking.",
            "visaRequired": True,
            "processingTime": "2-4 weeks",
            "documents": ["Passport", "Application form", "Photos", "Travel itinerary"],
            "fees": "Check official website",
            "validity": "6 months",
        })

    def _medical(self, prompt: str) -> str:
        destination = _field(prompt, "Destination")
        return json.dumps({
            "summary": f"Routine vaccinations should be up to date before visiting {destination}.",
            "vaccinations": {"required": [], "recommended": ["Routine vaccines", "Hepatitis A"]},
            "healthRisks": ["Food and water safety"],
            "precautions": ["Drink bottled water", "Carry a basic first aid kit"],
            "emergencyContacts": ["Local emergency: 112"],
            "insurance": "Travel health insurance recommended",
        })

    def _alerts(self, prompt: str) -> str:
        destination = _field(prompt, "Destination")
        return json.dumps({
            "summary": f"No major advisories on record for {destination}.",
            "safetyLevel": "Exercise normal precautions",
            "alerts": [],
            "areasToAvoid": [],
            "recommendations": ["Stay aware of surroundings"],
            "emergencyNumbers": ["Emergency: 112"],
            "laws": ["Respect local customs"],
        })

    def _weather(self, prompt: str) -> str:
        destination = _field(prompt, "Destination")
        return json.dumps({
            "summary": f"Expect variable conditions in {destination}; pack layers.",
            "temperature": "15-25°C",
            "conditions": "Variable",
            "season": "Check local season",
            "clothing": ["Layers", "Light rain jacket"],
            "activities": ["Walking tours", "Museums"],
            "bestTime": "Spring and autumn",
        })

    def _cultural(self, prompt: str) -> str:
        destination = _field(prompt, "Destination")
        return json.dumps({
            "summary": f"Polite greetings and modest dress go a long way in {destination}.",
            "etiquette": ["Learn basic greetings"],
            "dressCode": ["Dress modestly at religious sites"],
            "language": ["Learn basic phrases"],
            "customs": ["Observe local traditions"],
            "tipping": ["Check whether service is included"],
            "business": ["Punctuality important"],
        })

    def _feedback_analysis(self, prompt: str) -> str:
        feedback = _field(prompt, "Feedback", "").lower()
        rating = _field(prompt, "Rating", "")
        positive = sum(1 for word in POSITIVE_WORDS if word in feedback)
        negative = sum(1 for word in NEGATIVE_WORDS if word in feedback)

        satisfaction = int(rating) if rating.isdigit() else (8 if positive >= negative else 4)
        favorites = [part.strip() for part in re.findall(r"loved ([^.,!]+)", feedback)]
        dislikes = [part.strip() for part in re.findall(r"(?:hated|disliked) ([^.,!]+)", feedback)]
        return json.dumps({
            "satisfaction": satisfaction,
            "favorite_experiences": favorites,
            "least_favorite_experiences": dislikes,
            "budget_satisfaction": "Good" if positive >= negative else "Poor",
            "safety_rating": "Safe",
            "cultural_experience": "Positive",
            "recommendations": "Would recommend" if positive >= negative else "Would not recommend",
            "improvements": "None major" if not dislikes else "Address the low points",
        })

    def _narrative(self, prompt: str) -> str:
        location = _field(prompt, "Current Location", "") or _field(prompt, "Destination", "")
        first_line = prompt.strip().splitlines()[0] if prompt.strip() else "your request"
        if location and location != "Unknown":
            return f"Here is what I can tell you about {location}. {first_line}"
        return f"Happy to help. {first_line}"
