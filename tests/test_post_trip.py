"""Tests for post-trip processing and the learned traveler profile."""
import json

import pytest

from tripmind.models.trip import Feedback, FeedbackAnalysis, TripData, TripRecord, UserPreferences
from tripmind.services.post_trip import (
    PostTripProcessor,
    TripRecordStore,
    budget_preference,
    suggest_improvements,
)

ROME_ANALYSIS = json.dumps({
    "satisfaction": 9,
    "favorite_experiences": ["Rome food tours", "Vatican museums"],
    "least_favorite_experiences": ["Crowded buses"],
    "budget_satisfaction": "Excellent",
    "safety_rating": "Safe",
    "cultural_experience": "Positive",
    "recommendations": "Would recommend",
    "improvements": "Book museums early",
})


def rome_trip():
    return TripData(destination="Rome", duration=5, budget="$1500", activities=["Food tour"])


class TestProcessPostTrip:
    """Test feedback processing end to end."""

    @pytest.mark.asyncio
    async def test_preferences_keep_set_semantics(self, scripted_gateway):
        """Test that repeating a trip does not duplicate learned values."""
        gateway = scripted_gateway(replies={"Analyze this travel feedback": ROME_ANALYSIS})
        processor = PostTripProcessor(gateway)
        feedback = Feedback(message="Loved the food tours in Rome", rating=9)

        await processor.process_post_trip("u1", "trip-1", rome_trip(), feedback)
        result = await processor.process_post_trip("u1", "trip-2", rome_trip(), feedback)
        preferences = result.updated_preferences

        assert preferences.destinations == ["Rome"]
        assert preferences.activities == ["Rome food tours", "Vatican museums"]
        assert preferences.dislikes == ["Crowded buses"]
        assert preferences.budget.comfort == "Luxury"

    @pytest.mark.asyncio
    async def test_gateway_down_uses_default_analysis(self, failing_gateway):
        """Test that the fixed analysis carries the explicit rating."""
        processor = PostTripProcessor(failing_gateway)
        result = await processor.process_post_trip("u1", "trip-1", rome_trip(), Feedback(message="ok", rating=6))

        assert result.success is True
        assert result.feedback_analysis.satisfaction == 6
        assert result.feedback_analysis.favorite_experiences == ["Great experiences"]
        assert result.trip_summary.overview == "Trip to Rome completed!"
        assert result.trip_summary.fallback_used is True
        assert result.future_recommendations.detailed_recommendations == "Personalized recommendations available"
        assert result.insights.satisfaction == 6
        assert result.improvements == []

    @pytest.mark.asyncio
    async def test_default_analysis_without_rating(self, failing_gateway):
        processor = PostTripProcessor(failing_gateway)
        result = await processor.process_post_trip("u1", "trip-1", rome_trip(), Feedback(message="ok"))

        assert result.feedback_analysis.satisfaction == 8

    @pytest.mark.asyncio
    async def test_missing_satisfaction_filled_from_rating(self, scripted_gateway):
        gateway = scripted_gateway(replies={"Analyze this travel feedback": '{"favorite_experiences": "Beaches"}'})
        processor = PostTripProcessor(gateway)
        analysis = await processor.analyze_feedback(rome_trip(), Feedback(message="nice", rating=7))

        assert analysis.satisfaction == 7
        assert analysis.favorite_experiences == ["Beaches"]

    @pytest.mark.asyncio
    async def test_placeholder_destination_not_learned(self, scripted_gateway):
        gateway = scripted_gateway(replies={
            "Analyze this travel feedback": '{"favorite_experiences": ["Unknown beaches"]}',
        })
        processor = PostTripProcessor(gateway)
        result = await processor.process_post_trip("u1", "trip-1", TripData(), Feedback(message="nice"))

        assert result.updated_preferences.destinations == []

    @pytest.mark.asyncio
    async def test_trip_recorded(self, failing_gateway):
        processor = PostTripProcessor(failing_gateway)
        trip = rome_trip()
        await processor.process_post_trip("u1", "trip-1", trip, Feedback(message="ok"))
        trip.activities.append("changed later")

        record = processor.records.get("trip-1")
        assert record.user_id == "u1"
        assert record.trip_data.activities == ["Food tour"]


class TestTravelProfile:
    """Test the profile aggregated from processed trips."""

    @pytest.mark.asyncio
    async def test_profile_after_trips(self, scripted_gateway):
        gateway = scripted_gateway(replies={"Analyze this travel feedback": ROME_ANALYSIS})
        processor = PostTripProcessor(gateway)
        await processor.process_post_trip("u1", "trip-1", rome_trip(), Feedback(message="great"))
        await processor.process_post_trip(
            "u1", "trip-2", TripData(destination="Lisbon", duration=2), Feedback(message="great"),
        )
        await processor.process_post_trip("u1", "trip-3", TripData(destination="Rome"), Feedback(message="great"))

        profile = processor.get_user_travel_profile("u1")

        assert profile.total_trips == 3
        assert profile.favorite_destinations == ["Rome"]
        assert profile.travel_patterns.average_trip_length == "4 days"
        assert profile.travel_patterns.common_destinations == ["Rome", "Lisbon"]

    def test_empty_profile(self, failing_gateway):
        profile = PostTripProcessor(failing_gateway).get_user_travel_profile("nobody")

        assert profile.total_trips == 0
        assert profile.trip_history == []
        assert profile.travel_patterns.average_trip_length == "Not enough data"
        assert profile.travel_patterns.common_destinations == []

    def test_profile_serializes_camel_case(self, failing_gateway):
        data = PostTripProcessor(failing_gateway).get_user_travel_profile("u1").model_dump(by_alias=True)

        assert "totalTrips" in data
        assert "averageTripLength" in data["travelPatterns"]


class TestHelpers:
    def test_budget_tiers(self):
        assert budget_preference("Excellent").range == "High"
        assert budget_preference("Good").comfort == "Comfortable"
        assert budget_preference("Fair").range == "Budget"

    def test_improvements(self):
        analysis = FeedbackAnalysis(
            budget_satisfaction="Poor",
            safety_rating="Concerns",
            cultural_experience="Challenging",
            accommodation_issues=True,
            transportation_issues=False,
        )

        assert suggest_improvements(analysis) == [
            "Consider budget planning tools",
            "Research safety information better",
            "Learn more about local culture",
            "Research accommodations more thoroughly",
        ]

    def test_record_store_returns_latest(self):
        store = TripRecordStore()
        for satisfaction in (5, 9):
            store.append(TripRecord(
                trip_id="t1",
                user_id="u1",
                trip_data=TripData(),
                feedback_analysis=FeedbackAnalysis(satisfaction=satisfaction),
                preferences=UserPreferences(),
            ))

        assert len(store) == 2
        assert store.get("t1").feedback_analysis.satisfaction == 9
        assert store.get("missing") is None
