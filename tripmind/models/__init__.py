"""Data models for the trip assistant."""
from .session import Session, SessionStore, TravelMode, UserProfile, TRAVEL_MODES
from .trip import TripState, TripStatus, TripRecord, TripData, Feedback, FeedbackAnalysis, UserPreferences
from .pre_trip import PreTripResult, PreTripInfo, TripDetails, CategoryResult
from .in_trip import Intent, IntentType, InTripResult, ResponderResult
from .post_trip import PostTripResult, TravelProfile
from .itinerary import TripPlan
from .reply import AssistantReply, ReplyAction

__all__ = [
    "Session",
    "SessionStore",
    "TravelMode",
    "UserProfile",
    "TRAVEL_MODES",
    "TripState",
    "TripStatus",
    "TripRecord",
    "TripData",
    "Feedback",
    "FeedbackAnalysis",
    "UserPreferences",
    "PreTripResult",
    "PreTripInfo",
    "TripDetails",
    "CategoryResult",
    "Intent",
    "IntentType",
    "InTripResult",
    "ResponderResult",
    "PostTripResult",
    "TravelProfile",
    "TripPlan",
    "AssistantReply",
    "ReplyAction",
]
