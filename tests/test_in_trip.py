"""Tests for in-trip assistance."""
import pytest

from tripmind.models.session import TravelMode, UserProfile
from tripmind.models.trip import TripStatus
from tripmind.services.in_trip import InTripAssistant, emergency_contacts, location_safety_tips

INTENT_MARKER = "Analyze this in-trip message"

PARIS = (48.8566, 2.3522)
LOUVRE = (48.8606, 2.3376)


def intent_json(intent_type, location="null", urgency="medium"):
    location = "null" if location == "null" else f'"{location}"'
    return (
        f'{{"type": "{intent_type}", "urgency": "{urgency}", '
        f'"location_mentioned": {location}, "action_needed": "{intent_type} help"}}'
    )


class RaisingClassifier:
    async def classify(self, message, location=None):
        raise RuntimeError("classifier crashed")


class TestProvideAssistance:
    """Test intent dispatch and the fallback paths."""

    @pytest.mark.asyncio
    async def test_gateway_down_gives_general_fallback(self, failing_gateway, location_service):
        """Test that a dead gateway still produces a general reply."""
        assistant = InTripAssistant(failing_gateway, location_service=location_service())
        result = await assistant.provide_assistance("u1", "trip-1", "hmm", "Paris")

        assert result.success is True
        assert result.intent.type == "general"
        assert result.response.message == "I'm here to help you in Paris! How can I assist you today?"
        assert result.response.fallback_used is True
        assert result.suggestions == ["Ask for help", "Find services", "Get recommendations"]
        assert len(result.emergency_contacts) == 5

    @pytest.mark.asyncio
    async def test_missing_location_placeholder(self, failing_gateway, location_service):
        assistant = InTripAssistant(failing_gateway, location_service=location_service())
        result = await assistant.provide_assistance("u1", "trip-1", "hmm")

        assert "your location" in result.response.message

    @pytest.mark.asyncio
    async def test_emergency(self, scripted_gateway, location_service):
        gateway = scripted_gateway(
            replies={INTENT_MARKER: intent_json("emergency", urgency="high")},
            default="Call 112 now.",
        )
        assistant = InTripAssistant(gateway, location_service=location_service())
        result = await assistant.provide_assistance("u1", "trip-1", "I've been injured", "Rome")
        response = result.response

        assert response.type == "emergency"
        assert response.priority == "high"
        assert response.message == "Call 112 now."
        assert response.contacts[0].name == "Local Emergency"
        assert response.contacts[0].number == "112"
        assert "Contact embassy" in response.actions
        assert result.suggestions == ["Call emergency services", "Contact embassy", "Share location"]

    @pytest.mark.asyncio
    async def test_emergency_fallback_lists_contacts(self, scripted_gateway, location_service):
        gateway = scripted_gateway(
            replies={INTENT_MARKER: intent_json("emergency", urgency="high")},
            default=RuntimeError("down"),
        )
        assistant = InTripAssistant(gateway, location_service=location_service())
        result = await assistant.provide_assistance("u1", "trip-1", "help", "Rome")

        assert "EMERGENCY ASSISTANCE ACTIVATED" in result.response.message
        assert "📍 Your Location: Rome" in result.response.message
        assert "• Police: 112" in result.response.message
        assert result.response.fallback_used is True

    @pytest.mark.asyncio
    async def test_navigation_distance(self, scripted_gateway, location_service):
        """Test that navigation computes distance to the mentioned place."""
        gateway = scripted_gateway(replies={INTENT_MARKER: intent_json("navigation", "Louvre")})
        locations = location_service(coordinates={"Paris": PARIS, "Louvre": LOUVRE})
        assistant = InTripAssistant(gateway, location_service=locations)
        result = await assistant.provide_assistance("u1", "trip-1", "how do I get to the Louvre?", "Paris")
        response = result.response

        assert response.type == "navigation"
        assert response.directions == "From Paris to Louvre"
        assert 0.5 < response.distance_km < 2.0
        assert "Public transport" in response.transport_options

    @pytest.mark.asyncio
    async def test_navigation_without_coordinates(self, scripted_gateway, location_service):
        gateway = scripted_gateway(replies={INTENT_MARKER: intent_json("navigation", "Louvre")})
        assistant = InTripAssistant(gateway, location_service=location_service(fail=True))
        result = await assistant.provide_assistance("u1", "trip-1", "how do I get to the Louvre?", "Paris")

        assert result.success is True
        assert result.response.distance_km is None

    @pytest.mark.asyncio
    async def test_recommendation_uses_nearby_places(self, scripted_gateway, location_service):
        gateway = scripted_gateway(replies={INTENT_MARKER: intent_json("recommendation")})
        locations = location_service(places={"restaurant": ["Chez Janou", "Le Comptoir"]})
        assistant = InTripAssistant(gateway, location_service=locations)
        result = await assistant.provide_assistance("u1", "trip-1", "where should we eat?", "Paris")

        assert result.response.restaurants == ["Chez Janou", "Le Comptoir"]
        assert result.response.nearby_attractions == ["Local attractions", "Popular spots", "Hidden gems"]

    @pytest.mark.asyncio
    async def test_recommendation_lookup_failure(self, scripted_gateway, location_service):
        """Test that a failing place lookup falls back to generic lists."""
        gateway = scripted_gateway(replies={INTENT_MARKER: intent_json("recommendation")})
        assistant = InTripAssistant(gateway, location_service=location_service(fail=True))
        result = await assistant.provide_assistance("u1", "trip-1", "where should we eat?", "Paris")

        assert result.response.restaurants == ["Local restaurants", "Popular cafes", "Budget options"]

    @pytest.mark.asyncio
    async def test_safety_for_solo_female(self, scripted_gateway, location_service):
        gateway = scripted_gateway(replies={INTENT_MARKER: intent_json("safety")})
        assistant = InTripAssistant(gateway, location_service=location_service())
        profile = UserProfile(mode=TravelMode.SOLO_FEMALE)
        result = await assistant.provide_assistance("u1", "trip-1", "is this area safe?", "Lima", profile)

        assert "Share your itinerary with someone you trust" in result.response.tips
        assert result.response.safe_areas == ["Tourist areas", "Well-lit places"]

    @pytest.mark.asyncio
    async def test_unexpected_failure_returns_fallback(self, failing_gateway, location_service):
        """Test the outer guard."""
        assistant = InTripAssistant(
            failing_gateway,
            intent_classifier=RaisingClassifier(),
            location_service=location_service(),
        )
        result = await assistant.provide_assistance("u1", "trip-1", "hello", "Oslo")

        assert result.success is False
        assert result.error == "classifier crashed"
        assert result.fallback.message == "I'm here to help you in Oslo! Let me know what you need assistance with."
        assert result.fallback.suggestions == ["Emergency help", "Directions", "Recommendations", "Translation"]


class TestTripTracking:
    """Test trip state bookkeeping."""

    @pytest.mark.asyncio
    async def test_messages_and_locations_recorded(self, failing_gateway, location_service):
        assistant = InTripAssistant(failing_gateway, location_service=location_service())

        await assistant.provide_assistance("u1", "trip-1", "hi", "Paris")
        await assistant.provide_assistance("u1", "trip-1", "hi", "Lyon")
        await assistant.provide_assistance("u1", "trip-1", "hi", "Paris")
        await assistant.provide_assistance("u1", "trip-1", "hi")
        trip = assistant.get_trip("trip-1")

        assert trip.message_count == 4
        assert trip.locations == ["Paris", "Lyon"]
        assert trip.status == TripStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_end_trip(self, failing_gateway, location_service):
        assistant = InTripAssistant(failing_gateway, location_service=location_service())
        await assistant.provide_assistance("u1", "trip-1", "hi", "Paris")

        trip = assistant.end_trip("trip-1")

        assert trip.status == TripStatus.CLOSED
        assert assistant.end_trip("unknown") is None

    def test_safety_tips_by_profile(self):
        assert "Share your itinerary with someone you trust" in location_safety_tips(
            "Lima", UserProfile(gender="female")
        )["tips"]
        assert "Share your itinerary with someone you trust" not in location_safety_tips(
            "Lima", UserProfile(mode=TravelMode.FAMILY)
        )["tips"]

    def test_emergency_contacts_by_location(self):
        """Test that local numbers follow the traveler's location."""
        def numbers(location):
            return {c.name: c.number for c in emergency_contacts(location)}

        assert numbers("Kyoto")["Police"] == "110"
        assert numbers("Kyoto")["Medical Emergency"] == "119"
        assert numbers("near the Eiffel Tower, Paris")["Local Emergency"] == "112"
        assert numbers("London")["Police"] == "999"
        assert numbers("Lima")["Local Emergency"] == "911"
        assert numbers(None)["Embassy"] == "Check embassy contact"
        assert len(emergency_contacts("Lima")) == 5
