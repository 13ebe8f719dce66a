"""
In-Trip Assistant - Live help for travelers who are on the road.

Every message is classified into an intent and answered by one responder.
Responders ask the text-generation service for narrative guidance and attach
side data that is always computed locally.
"""
import logging
import re
from typing import Awaitable, Callable, Optional

from .fallback import guarded_text
from .intent_classifier import IntentClassifier
from .llm_client import TextGateway, get_llm_client
from .location import LocationService, get_location_service, haversine_km
from ..models.in_trip import (
    EmergencyContact,
    InTripFallback,
    InTripResult,
    Intent,
    IntentType,
    ResponderResult,
)
from ..models.session import TravelMode, UserProfile
from ..models.trip import TripState, TripStatus

logger = logging.getLogger(__name__)


IN_TRIP_SYSTEM_PROMPT = """You are a calm, practical travel assistant helping someone who is travelling right now.
Be specific and brief. Put safety first."""

EMERGENCY_PROMPT = """Give immediate guidance for a traveler in an emergency.

Current Location: {location}
Situation: {action}
Traveler: {profile}

List the first steps to take, who to call and how to stay safe."""

NAVIGATION_PROMPT = """Provide navigation assistance.

Current Location: {location}
Destination: {destination}
User needs: {action}

Include directions, transportation options, estimated time and cost, safety considerations and alternative routes."""

BOOKING_PROMPT = """Help a traveler with a booking problem.

Current Location: {location}
Request: {action}

Explain who to contact, what to check in the booking policy and what alternatives to look for."""

RECOMMENDATION_PROMPT = """Provide personalized recommendations.

Current Location: {location}
Request: {action}
Traveler: {profile}

Suggest nearby attractions, restaurants and cafes, activities for the time of day and local experiences."""

TRANSLATION_PROMPT = """Help with translation and communication.

Current Location: {location}
Original message: "{message}"
Context: {action}

Provide a translation if needed, common phrases for the situation, cultural communication tips and emergency phrases."""

WEATHER_PROMPT = """Provide current weather information and recommendations.

Current Location: {location}

Include current conditions, temperature and forecast, clothing recommendations and weather-appropriate activities."""

SAFETY_PROMPT = """Give safety advice for a traveler.

Current Location: {location}
Concern: {action}
Traveler: {profile}

Cover areas to avoid, safe areas, common scams and what to do if something goes wrong."""

GENERAL_PROMPT = """Provide helpful assistance for a traveler.

Current Location: {location}
Message: "{message}"
Traveler: {profile}

Give practical advice and suggestions."""


# (local emergency, police, medical) numbers by place; anything else gets 911
EMERGENCY_NUMBERS = {
    ("london", "england", "uk"): ("999", "999", "999"),
    ("tokyo", "kyoto", "japan"): ("110", "110", "119"),
    ("sydney", "australia"): ("000", "000", "000"),
    ("paris", "rome", "venice", "italy", "barcelona", "madrid", "spain", "amsterdam",
     "berlin", "germany", "lisbon", "iceland", "india", "delhi", "mumbai", "goa", "jaipur"): ("112", "112", "112"),
}
DEFAULT_EMERGENCY_NUMBERS = ("911", "911", "911")

LOCAL_CONTACT_NAMES = ("Local Emergency", "Police", "Medical Emergency")
EMERGENCY_CONTACTS = [
    ("Tourist Helpline", "Check local number"),
    ("Embassy", "Check embassy contact"),
]

EMERGENCY_ACTIONS = [
    "Call local emergency services",
    "Contact embassy",
    "Share location with trusted contacts",
    "Follow safety protocols",
]

TRANSPORT_OPTIONS = ["Walking", "Public transport", "Taxi/Uber", "Rental car"]
NAVIGATION_SAFETY_TIPS = ["Stay aware of surroundings", "Use well-lit routes", "Keep phone charged"]

BOOKING_ACTIONS = [
    "Contact service provider directly",
    "Check booking policies",
    "Look for alternatives",
    "Document all communications",
]

DEFAULT_ATTRACTIONS = ["Local attractions", "Popular spots", "Hidden gems"]
DEFAULT_RESTAURANTS = ["Local restaurants", "Popular cafes", "Budget options"]
DEFAULT_ACTIVITIES = ["Current events", "Popular activities", "Local experiences"]

COMMON_PHRASES = ["Hello", "Thank you", "Excuse me", "Help", "Where is...?"]
EMERGENCY_PHRASES = ["Help", "Emergency", "Police", "Hospital", "I need help"]
CULTURAL_TIPS = ["Be respectful", "Use gestures", "Speak slowly", "Learn basic greetings"]

WEATHER_RECOMMENDATIONS = ["Dress appropriately", "Stay hydrated", "Check weather updates"]

SAFETY_TIPS = ["Stay aware", "Avoid dark areas", "Keep valuables safe"]
SAFE_AREAS = ["Tourist areas", "Well-lit places"]
AREAS_TO_AVOID = ["Check local advisories"]

GENERAL_SUGGESTIONS = ["Ask locals", "Use apps", "Check tourism office", "Explore safely"]
LOCAL_RESOURCES = ["Tourism office", "Hotel concierge", "Local apps", "Emergency services"]

NEARBY_SERVICES = {
    "hospitals": ["Nearest hospital", "Emergency clinic"],
    "police": ["Police station", "Tourist police"],
    "restaurants": ["Nearby restaurants", "Emergency food"],
    "transport": ["Taxi stand", "Public transport", "Rental car"],
}

INTENT_SUGGESTIONS = {
    IntentType.EMERGENCY: ["Call emergency services", "Contact embassy", "Share location"],
    IntentType.NAVIGATION: ["Get directions", "Find transport", "Check traffic"],
    IntentType.RECOMMENDATION: ["Find restaurants", "Discover attractions", "Check events"],
}
DEFAULT_SUGGESTIONS = ["Ask for help", "Find services", "Get recommendations"]


def emergency_numbers(location: Optional[str]) -> tuple[str, str, str]:
    lower = (location or "").lower()
    for places, numbers in EMERGENCY_NUMBERS.items():
        if any(re.search(rf"\b{place}\b", lower) for place in places):
            return numbers
    return DEFAULT_EMERGENCY_NUMBERS


def emergency_contacts(location: Optional[str]) -> list[EmergencyContact]:
    """Contacts shown with every in-trip reply, using the local numbers for ``location``."""
    local = zip(LOCAL_CONTACT_NAMES, emergency_numbers(location))
    return [EmergencyContact(name=name, number=number) for name, number in [*local, *EMERGENCY_CONTACTS]]


def suggestions_for(intent: Intent) -> list[str]:
    return list(INTENT_SUGGESTIONS.get(intent.type, DEFAULT_SUGGESTIONS))


def location_safety_tips(location: str, profile: UserProfile) -> dict:
    """Safety side data for a location."""
    tips = list(SAFETY_TIPS)
    if profile.mode == TravelMode.SOLO_FEMALE or profile.gender == "female":
        tips.append("Share your itinerary with someone you trust")
    return {
        "message": f"Safety tips for {location}",
        "tips": tips,
        "safe_areas": list(SAFE_AREAS),
        "areas_to_avoid": list(AREAS_TO_AVOID),
    }


def _contact_lines(contacts: list[EmergencyContact]) -> str:
    return "\n".join(f"• {c.name}: {c.number}" for c in contacts)


class InTripAssistant:
    """Tracks active trips and answers in-trip messages."""

    def __init__(
        self,
        gateway: Optional[TextGateway] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        location_service: Optional[LocationService] = None,
    ):
        self.llm = gateway or get_llm_client()
        self.intent_classifier = intent_classifier or IntentClassifier(self.llm)
        self.location_service = location_service or get_location_service()
        self._trips: dict[str, TripState] = {}

        self._responders: dict[str, Callable[..., Awaitable[ResponderResult]]] = {
            IntentType.EMERGENCY: self._handle_emergency,
            IntentType.NAVIGATION: self._handle_navigation,
            IntentType.BOOKING_CHANGE: self._handle_booking_change,
            IntentType.RECOMMENDATION: self._handle_recommendation,
            IntentType.TRANSLATION: self._handle_translation,
            IntentType.WEATHER: self._handle_weather,
            IntentType.SAFETY: self._handle_safety,
            IntentType.GENERAL: self._handle_general,
        }

    def get_trip(self, trip_id: str) -> Optional[TripState]:
        return self._trips.get(trip_id)

    def end_trip(self, trip_id: str) -> Optional[TripState]:
        """Close a tracked trip. Returns None for unknown trips."""
        trip = self._trips.get(trip_id)
        if trip is not None and trip.status == TripStatus.ACTIVE:
            trip.close()
            logger.info(f"Trip {trip_id} closed after {trip.message_count} messages")
        return trip

    def _get_or_create_trip(self, trip_id: str, profile: UserProfile) -> TripState:
        trip = self._trips.get(trip_id)
        if trip is None:
            trip = TripState(trip_id=trip_id, user_profile=profile.model_dump(mode="json"))
            self._trips[trip_id] = trip
            logger.info(f"Tracking new trip {trip_id}")
        return trip

    async def provide_assistance(
        self,
        user_id: str,
        trip_id: str,
        message: str,
        current_location: Optional[str] = None,
        user_profile: Optional[UserProfile] = None,
    ) -> InTripResult:
        """
        Answer an in-trip message.

        Responder failures are absorbed inside the responder; only an
        unexpected error outside them returns ``success=False``.
        """
        location = current_location or "your location"
        profile = user_profile or UserProfile()
        try:
            trip = self._get_or_create_trip(trip_id, profile)
            intent = await self.intent_classifier.classify(message, current_location)

            responder = self._responders.get(intent.type, self._handle_general)
            response = await responder(
                message=message,
                location=location,
                intent=intent,
                profile=profile,
            )

            trip.record_message(current_location)

            return InTripResult(
                success=True,
                trip_id=trip_id,
                intent=intent,
                response=response,
                suggestions=suggestions_for(intent),
                emergency_contacts=emergency_contacts(location),
                nearby_services={k: list(v) for k, v in NEARBY_SERVICES.items()},
            )
        except Exception as e:
            logger.exception(f"In-trip assistance failed for {user_id} on {trip_id}")
            return InTripResult(
                success=False,
                trip_id=trip_id,
                error=str(e),
                fallback=InTripFallback(
                    message=f"I'm here to help you in {location}! Let me know what you need assistance with.",
                ),
            )

    async def _narrate(self, label: str, prompt: str, fallback: str):
        return await guarded_text(self.llm, prompt, fallback, system=IN_TRIP_SYSTEM_PROMPT, label=label)

    async def _lookup(self, location: str, category: str, default: list[str]) -> list[str]:
        """Nearby place names, or ``default`` when the lookup has nothing."""
        try:
            places = await self.location_service.nearby_places(location, category)
        except Exception as e:
            logger.warning(f"Nearby lookup for {category} near {location} failed: {e}")
            places = []
        return places or list(default)

    async def _distance(self, origin: str, destination: Optional[str]) -> Optional[float]:
        if not destination:
            return None
        try:
            start = await self.location_service.geocode(origin)
            end = await self.location_service.geocode(destination)
        except Exception as e:
            logger.warning(f"Geocoding {origin} -> {destination} failed: {e}")
            return None
        if start is None or end is None:
            return None
        return round(haversine_km(start, end), 1)

    # Responders

    async def _handle_emergency(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        contacts = emergency_contacts(location)
        canned = (
            "🚨 EMERGENCY ASSISTANCE ACTIVATED 🚨\n\n"
            "I'm here to help! Here are immediate steps:\n\n"
            f"📞 Emergency Contacts:\n{_contact_lines(contacts)}\n\n"
            f"📍 Your Location: {location}\n\n"
            "🆘 Immediate Actions:\n"
            "• Stay calm and safe\n"
            "• Call local emergency services\n"
            "• Contact your embassy\n"
            "• Share your location with trusted contacts"
        )
        prompt = EMERGENCY_PROMPT.format(location=location, action=intent.action_needed, profile=profile.model_dump_json())
        text = await self._narrate("emergency", prompt, canned)
        return ResponderResult(
            type=IntentType.EMERGENCY,
            message=text.value,
            fallback_used=text.fallback_used,
            priority="high",
            contacts=contacts,
            actions=list(EMERGENCY_ACTIONS),
        )

    async def _handle_navigation(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        destination = intent.location_mentioned
        prompt = NAVIGATION_PROMPT.format(
            location=location,
            destination=destination or "Not specified",
            action=intent.action_needed,
        )
        text = await self._narrate(
            "navigation",
            prompt,
            f"I'll help you navigate from {location}. Let me get the best route for you.",
        )
        return ResponderResult(
            type=IntentType.NAVIGATION,
            message=text.value,
            fallback_used=text.fallback_used,
            directions=f"From {location} to {destination}" if destination else f"From {location}",
            distance_km=await self._distance(location, destination),
            transport_options=list(TRANSPORT_OPTIONS),
            safety_tips=list(NAVIGATION_SAFETY_TIPS),
        )

    async def _handle_booking_change(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        canned = (
            "I'll help you with your booking changes. Let me connect you with the right services:\n\n"
            "🏨 Hotel Issues:\n• Contact hotel directly\n• Check booking confirmation\n• Request room changes if needed\n\n"
            "✈️ Flight Changes:\n• Contact airline immediately\n• Check flight status\n• Look for alternative flights\n\n"
            "🎫 Activity Bookings:\n• Contact booking provider\n• Check cancellation policies\n• Look for alternatives"
        )
        prompt = BOOKING_PROMPT.format(location=location, action=intent.action_needed)
        text = await self._narrate("booking_change", prompt, canned)
        return ResponderResult(
            type=IntentType.BOOKING_CHANGE,
            message=text.value,
            fallback_used=text.fallback_used,
            actions=list(BOOKING_ACTIONS),
        )

    async def _handle_recommendation(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        prompt = RECOMMENDATION_PROMPT.format(location=location, action=intent.action_needed, profile=profile.model_dump_json())
        text = await self._narrate("recommendation", prompt, f"Here are some great recommendations for {location}!")
        return ResponderResult(
            type=IntentType.RECOMMENDATION,
            message=text.value,
            fallback_used=text.fallback_used,
            nearby_attractions=await self._lookup(location, "tourist attraction", DEFAULT_ATTRACTIONS),
            restaurants=await self._lookup(location, "restaurant", DEFAULT_RESTAURANTS),
            activities=list(DEFAULT_ACTIVITIES),
        )

    async def _handle_translation(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        prompt = TRANSLATION_PROMPT.format(location=location, message=message, action=intent.action_needed)
        text = await self._narrate("translation", prompt, "I'll help you communicate effectively!")
        return ResponderResult(
            type=IntentType.TRANSLATION,
            message=text.value,
            fallback_used=text.fallback_used,
            common_phrases=list(COMMON_PHRASES),
            emergency_phrases=list(EMERGENCY_PHRASES),
            cultural_tips=list(CULTURAL_TIPS),
        )

    async def _handle_weather(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        text = await self._narrate(
            "weather",
            WEATHER_PROMPT.format(location=location),
            f"Here's the weather information for {location}. Check the local weather service for current conditions.",
        )
        return ResponderResult(
            type=IntentType.WEATHER,
            message=text.value,
            fallback_used=text.fallback_used,
            current_conditions="Check weather service",
            recommendations=list(WEATHER_RECOMMENDATIONS),
        )

    async def _handle_safety(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        safety = location_safety_tips(location, profile)
        contacts = emergency_contacts(location)
        canned = (
            "🛡️ SAFETY ASSISTANCE 🛡️\n\n"
            f"I'm here to help keep you safe in {location}.\n\n"
            f"{safety['message']}\n\n"
            f"Emergency Contacts:\n{_contact_lines(contacts)}\n\n"
            "Stay safe and let me know if you need anything!"
        )
        prompt = SAFETY_PROMPT.format(location=location, action=intent.action_needed, profile=profile.model_dump_json())
        text = await self._narrate("safety", prompt, canned)
        return ResponderResult(
            type=IntentType.SAFETY,
            message=text.value,
            fallback_used=text.fallback_used,
            tips=safety["tips"],
            contacts=contacts,
            safe_areas=safety["safe_areas"],
            areas_to_avoid=safety["areas_to_avoid"],
        )

    async def _handle_general(self, message: str, location: str, intent: Intent, profile: UserProfile) -> ResponderResult:
        prompt = GENERAL_PROMPT.format(location=location, message=message, profile=profile.model_dump_json())
        text = await self._narrate("general", prompt, f"I'm here to help you in {location}! How can I assist you today?")
        return ResponderResult(
            type=IntentType.GENERAL,
            message=text.value,
            fallback_used=text.fallback_used,
            suggestions=list(GENERAL_SUGGESTIONS),
            resources=list(LOCAL_RESOURCES),
        )
