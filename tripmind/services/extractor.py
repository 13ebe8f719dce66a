"""
Message Extractor - Rule-based extraction of trip facts from free-form messages.
Feeds the session memory and fills placeholders where a message says nothing.
"""
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from ..models.pre_trip import TripDetails
from ..models.session import Session, TravelMode
from ..models.trip import Feedback, Sentiment, TripData


KNOWN_DESTINATIONS = [
    "new york", "los angeles", "san francisco", "california", "paris", "tokyo",
    "kyoto", "london", "rome", "venice", "barcelona", "madrid", "amsterdam",
    "berlin", "bali", "thailand", "bangkok", "italy", "spain", "germany",
    "japan", "dubai", "singapore", "sydney", "iceland", "maldives", "goa",
    "delhi", "mumbai", "jaipur", "india", "lisbon", "istanbul", "cairo",
]

# Capitalized words that follow "to"/"in" without being places
NOT_PLACES = {"The", "My", "Our", "A", "An", "I", "It", "This", "That", "Me", "Us", "Go", "See"}

POSITIVE_WORDS = ["great", "amazing", "wonderful", "excellent", "loved", "enjoyed", "fantastic"]
NEGATIVE_WORDS = ["terrible", "awful", "hated", "disappointed", "bad", "worst", "horrible"]

DEFAULT_TRIP_DAYS = 3
MAX_TRIP_DAYS = 30


class MessageExtractor:
    """Extracts structured travel facts from user messages without the LLM."""

    def extract_destination(self, message: str) -> Optional[str]:
        """Earliest known destination in the message, else a capitalized place after to/in/visit."""
        lower = message.lower()
        best = None
        for dest in KNOWN_DESTINATIONS:
            for match in re.finditer(rf"\b{re.escape(dest)}\b", lower):
                # "from <place>" names the origin
                if lower[:match.start()].endswith("from "):
                    continue
                if best is None or match.start() < best[0]:
                    best = (match.start(), dest)
                break
        if best:
            return best[1].title()

        for match in re.finditer(r"\b(?:to|in|visit|visiting|towards)\s+([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*)", message):
            candidate = match.group(1)
            if candidate.split()[0] not in NOT_PLACES:
                return candidate
        return None

    def extract_days(self, message: str) -> Optional[int]:
        """Trip length in days, capped at MAX_TRIP_DAYS, or None when the message does not say."""
        day_match = re.search(r"(\d+)\s*-?\s*days?\b", message, re.IGNORECASE)
        if day_match:
            digits = day_match.group(1)
            if len(digits) > 3:
                return MAX_TRIP_DAYS
            return min(int(digits), MAX_TRIP_DAYS)

        lower = message.lower()
        if "weekend" in lower:
            return 2
        if "week" in lower:
            return 7
        if "month" in lower:
            return 30
        return None

    def extract_date(self, message: str, today: Optional[date] = None) -> Optional[str]:
        """Departure date as YYYY-MM-DD, resolving simple relative phrases."""
        today = today or date.today()

        iso = re.search(r"\b(\d{4}-\d{2}-\d{2})\b", message)
        if iso:
            try:
                return date.fromisoformat(iso.group(1)).isoformat()
            except ValueError:
                pass

        slashed = re.search(r"\b(\d{1,2}/\d{1,2}/\d{4})\b", message)
        if slashed:
            for fmt in ("%m/%d/%Y", "%d/%m/%Y"):
                try:
                    return datetime.strptime(slashed.group(1), fmt).date().isoformat()
                except ValueError:
                    continue

        lower = message.lower()
        if "tomorrow" in lower:
            return (today + timedelta(days=1)).isoformat()
        if "next week" in lower:
            return (today + timedelta(weeks=1)).isoformat()
        if "next month" in lower:
            return (today + timedelta(days=30)).isoformat()
        return None

    def extract_origin(self, message: str) -> Optional[str]:
        match = re.search(r"\bfrom\s+([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*)", message)
        if match and match.group(1).split()[0] not in NOT_PLACES:
            return match.group(1)
        return None

    def extract_group_size(self, message: str) -> Optional[int]:
        match = re.search(r"\b(\d+)\s+(?:people|persons|travell?ers|adults|of us)\b", message, re.IGNORECASE)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))
        return None

    def extract_rating(self, message: str) -> Optional[int]:
        """Explicit rating such as '8/10', '4 stars' or 'rating 7'."""
        match = re.search(r"(\d+)\s*/\s*10|(\d+)\s*stars?|rating\s*(?:of\s*)?(\d+)", message, re.IGNORECASE)
        if not match:
            return None
        rating = int(match.group(1) or match.group(2) or match.group(3))
        return rating if 1 <= rating <= 10 else None

    def analyze_sentiment(self, message: str) -> Sentiment:
        lower = message.lower()
        positive = sum(1 for word in POSITIVE_WORDS if word in lower)
        negative = sum(1 for word in NEGATIVE_WORDS if word in lower)

        if positive > negative:
            return Sentiment.POSITIVE
        if negative > positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL

    def extract_feedback(self, message: str) -> Feedback:
        return Feedback(
            message=message,
            comments=message,
            rating=self.extract_rating(message),
            sentiment=self.analyze_sentiment(message),
        )

    def memory_updates(self, message: str) -> dict[str, Any]:
        """
        Session fields implied by the message.

        Returns a patch for ``SessionStore.update``; fields the message does
        not mention are absent.
        """
        lower = message.lower()
        patch: dict[str, Any] = {}

        # Travel mode
        if "family" in lower or "kids" in lower:
            patch["mode"] = TravelMode.FAMILY
        elif "solo" in lower or "alone" in lower:
            if "female" in lower or "woman" in lower:
                patch["mode"] = TravelMode.SOLO_FEMALE
            else:
                patch["mode"] = TravelMode.SOLO
        elif re.search(r"\b(?:pets?|dogs?|cats?)\b", lower):
            patch["mode"] = TravelMode.PETS

        # Budget
        if "budget" in lower or any(symbol in message for symbol in ("₹", "$", "€", "£")):
            budget_match = re.search(r"[₹$€£]\s?\d[\d,]*|\d[\d,]*\s?(?:usd|inr|eur|gbp|dollars|rupees|euros)\b", message, re.IGNORECASE)
            if budget_match:
                patch["budget_hint"] = budget_match.group(0)

        # Dietary
        if "jain" in lower:
            patch["dietary"] = "jain"
        elif "halal" in lower:
            patch["dietary"] = "halal"
        elif "vegan" in lower:
            patch["dietary"] = "vegan"
        elif "vegetarian" in lower or re.search(r"\bveg\b", lower):
            patch["dietary"] = "vegetarian"

        # Traveler details
        age = re.search(r"\b(\d{1,3})\s*(?:years? old|yo)\b", lower)
        if age:
            patch["age"] = age.group(1)
        allergies = re.search(r"allergic to ([a-z ,]+?)(?:[.!?]|$)", lower)
        if allergies:
            patch["allergies"] = allergies.group(1).strip()
        nationality = re.search(r"\b(?:i am|i'm)\s+(?:an?\s+)?([A-Z][a-z]+)\s+(?:citizen|national|passport holder)\b", message, re.IGNORECASE)
        if nationality:
            patch["nationality"] = nationality.group(1).title()
        if re.search(r"\b(?:i am|i'm)\s+(?:a\s+)?(?:woman|female|girl)\b", lower):
            patch["gender"] = "female"
        elif re.search(r"\b(?:i am|i'm)\s+(?:a\s+)?(?:man|male|guy)\b", lower):
            patch["gender"] = "male"

        group_size = self.extract_group_size(message)
        if group_size:
            patch["group_size"] = group_size

        # Places
        destination = self.extract_destination(message)
        if destination:
            patch["last_destination"] = destination
        origin = self.extract_origin(message)
        if origin:
            patch["origin"] = origin

        return patch

    def extract_trip_details(self, message: str, session: Session, today: Optional[date] = None) -> TripDetails:
        """Pre-trip facts from the message, falling back to session memory and placeholders."""
        return TripDetails(
            destination=self.extract_destination(message) or session.last_destination or "Unknown",
            origin=self.extract_origin(message) or session.origin or "Not specified",
            departure_date=self.extract_date(message, today) or "Not specified",
            nationality=session.nationality or "Not specified",
            group_size=session.group_size,
            mode=session.mode,
        )

    def extract_trip_data(self, message: str, session: Session) -> TripData:
        """What a post-trip message says about the finished trip."""
        days = self.extract_days(message)
        return TripData(
            destination=self.extract_destination(message) or session.last_destination or "Unknown",
            duration=days if days else "Not specified",
            budget=session.budget_hint or "Not specified",
        )


# Global extractor instance
extractor: Optional[MessageExtractor] = None


def get_extractor() -> MessageExtractor:
    """Get or create the global extractor."""
    global extractor
    if extractor is None:
        extractor = MessageExtractor()
    return extractor
