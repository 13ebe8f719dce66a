"""
In-trip models - Intent descriptors and responder output.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .base import WireModel


class IntentType:
    """Fine-grained in-trip intents."""
    EMERGENCY = "emergency"
    NAVIGATION = "navigation"
    BOOKING_CHANGE = "booking_change"
    RECOMMENDATION = "recommendation"
    TRANSLATION = "translation"
    WEATHER = "weather"
    SAFETY = "safety"
    GENERAL = "general"

    ALL = (EMERGENCY, NAVIGATION, BOOKING_CHANGE, RECOMMENDATION, TRANSLATION, WEATHER, SAFETY, GENERAL)


URGENCY_LEVELS = ("high", "medium", "low")


class Intent(BaseModel):
    """Classified in-trip message. Keys stay snake_case on the wire."""
    type: str = IntentType.GENERAL
    urgency: str = "medium"
    location_mentioned: Optional[str] = None
    action_needed: str = "general assistance"

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        value = str(v).strip().lower()
        if value not in IntentType.ALL:
            raise ValueError(f"unknown intent type: {v}")
        return value

    @field_validator("urgency", mode="before")
    @classmethod
    def validate_urgency(cls, v):
        value = str(v).strip().lower()
        if value not in URGENCY_LEVELS:
            raise ValueError(f"unknown urgency: {v}")
        return value

    @field_validator("location_mentioned", mode="before")
    @classmethod
    def blank_location(cls, v):
        if v is None:
            return None
        value = str(v).strip()
        if not value or value.lower() in ("null", "none", "unknown", "n/a"):
            return None
        return value

    @field_validator("action_needed", mode="before")
    @classmethod
    def require_action(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("action_needed is empty")
        return str(v).strip()


DEFAULT_INTENT = Intent()


class EmergencyContact(WireModel):
    name: str
    number: str


class ResponderResult(WireModel):
    """
    Output of one intent responder: narrative text plus side data that is
    computed without the text-generation service.
    """
    type: str
    message: str
    fallback_used: bool = False
    priority: Optional[str] = None
    contacts: Optional[list[EmergencyContact]] = None
    actions: Optional[list[str]] = None
    directions: Optional[str] = None
    distance_km: Optional[float] = None
    transport_options: Optional[list[str]] = None
    safety_tips: Optional[list[str]] = None
    nearby_attractions: Optional[list[str]] = None
    restaurants: Optional[list[str]] = None
    activities: Optional[list[str]] = None
    common_phrases: Optional[list[str]] = None
    emergency_phrases: Optional[list[str]] = None
    cultural_tips: Optional[list[str]] = None
    current_conditions: Optional[str] = None
    recommendations: Optional[list[str]] = None
    tips: Optional[list[str]] = None
    safe_areas: Optional[list[str]] = None
    areas_to_avoid: Optional[list[str]] = None
    suggestions: Optional[list[str]] = None
    resources: Optional[list[str]] = None


class InTripFallback(WireModel):
    type: str = IntentType.GENERAL
    message: str
    suggestions: list[str] = Field(default_factory=lambda: ["Emergency help", "Directions", "Recommendations", "Translation"])


class InTripResult(WireModel):
    """Envelope returned by the in-trip assistant."""
    success: bool
    trip_id: str
    intent: Optional[Intent] = None
    response: Optional[ResponderResult] = None
    suggestions: list[str] = Field(default_factory=list)
    emergency_contacts: list[EmergencyContact] = Field(default_factory=list)
    nearby_services: dict[str, list[str]] = Field(default_factory=dict)
    error: Optional[str] = None
    fallback: Optional[InTripFallback] = None
