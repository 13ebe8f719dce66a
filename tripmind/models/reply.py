"""
Reply envelope returned for every inbound message.
"""
from enum import Enum
from typing import Optional

from pydantic import Field

from .base import WireModel
from .in_trip import InTripResult
from .itinerary import TripPlan
from .post_trip import PostTripResult
from .pre_trip import PreTripResult
from .session import TravelMode


class ReplyAction(str, Enum):
    """What the client should do with the reply."""
    CHAT = "chat"
    ITINERARY = "itinerary"
    PRE_TRIP = "pre-trip"
    IN_TRIP = "in-trip"
    POST_TRIP = "post-trip"
    RESTAURANTS = "restaurants"


class AssistantReply(WireModel):
    """Conversational response plus the structured payload of the phase that produced it."""
    message: str
    mode: TravelMode
    suggestions: list[str] = Field(default_factory=list)
    action: ReplyAction = ReplyAction.CHAT
    itinerary: Optional[TripPlan] = None
    pre_trip_data: Optional[PreTripResult] = None
    in_trip_data: Optional[InTripResult] = None
    post_trip_data: Optional[PostTripResult] = None
    trip_id: Optional[str] = None
