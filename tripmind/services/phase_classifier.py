"""
Phase Classifier - Decides which phase of a trip a message belongs to.

Keyword driven and evaluated in a fixed priority order: the first phase whose
vocabulary appears wins, however many other phases also match.
"""
from enum import Enum
from typing import Optional

from ..models.session import Session


class TripPhase(str, Enum):
    """Phase of the trip a message is about."""
    PLANNING = "planning"
    PRE_TRIP = "pre-trip"
    IN_TRIP = "in-trip"
    POST_TRIP = "post-trip"


PRE_TRIP_KEYWORDS = (
    "visa", "vaccination", "before", "prepare", "document",
    "insurance", "packing", "planning",
)

IN_TRIP_KEYWORDS = (
    "here", "currently", "now", "emergency", "help",
    "lost", "directions", "nearby",
)

POST_TRIP_KEYWORDS = (
    "feedback", "review", "experience", "trip was", "loved",
    "hated", "next time", "recommend",
)


def classify_phase(message: str, session: Optional[Session] = None) -> TripPhase:
    """
    Classify a message into a trip phase.

    Matching is plain substring search on the lowercased message. An active
    trip on the session selects in-trip even without in-trip vocabulary, but
    pre-trip vocabulary still takes precedence over it.
    """
    lower = message.lower()

    if any(keyword in lower for keyword in PRE_TRIP_KEYWORDS):
        return TripPhase.PRE_TRIP

    has_active_trip = session is not None and session.current_trip_id is not None
    if has_active_trip or any(keyword in lower for keyword in IN_TRIP_KEYWORDS):
        return TripPhase.IN_TRIP

    if any(keyword in lower for keyword in POST_TRIP_KEYWORDS):
        return TripPhase.POST_TRIP

    return TripPhase.PLANNING
