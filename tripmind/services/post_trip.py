"""
Post-Trip Processor - Turns traveler feedback into a summary, recommendations
and a preference profile that grows with every trip.
"""
import logging
from collections import Counter
from typing import Optional

from .fallback import guarded_json, guarded_text
from .llm_client import TextGateway, get_llm_client
from ..models.post_trip import (
    BudgetReview,
    FutureRecommendations,
    PostTripFallback,
    PostTripResult,
    TravelPatterns,
    TravelProfile,
    TripInsights,
    TripSummary,
)
from ..models.trip import (
    BudgetPreference,
    Feedback,
    FeedbackAnalysis,
    TripData,
    TripRecord,
    UserPreferences,
    default_feedback_analysis,
)

logger = logging.getLogger(__name__)


POST_TRIP_SYSTEM_PROMPT = """You are a thoughtful travel companion reviewing a trip that just ended.
Be warm, concrete and concise."""

FEEDBACK_PROMPT = """Analyze this travel feedback and provide insights.

Destination: {destination}
Duration: {duration}
Budget: {budget}
Feedback: "{feedback}"
Rating: {rating}

Respond with ONLY a JSON object:
{{"satisfaction": 1-10, "favorite_experiences": ["..."], "least_favorite_experiences": ["..."],
"budget_satisfaction": "Excellent|Good|Fair|Poor", "safety_rating": "Safe|Concerns",
"cultural_experience": "Positive|Neutral|Challenging", "recommendations": "...", "improvements": "...",
"travel_style": null, "value_for_money": "...", "accommodation_issues": false, "transportation_issues": false}}"""

SUMMARY_PROMPT = """Create a short, personal trip summary.

Destination: {destination}
Duration: {duration}
Favorite experiences: {favorites}
Least favorite experiences: {dislikes}
Satisfaction: {satisfaction}/10

Cover the highlights, what made the trip special and lessons for next time."""

FUTURE_PROMPT = """Suggest future trips for this traveler.

Destination: {destination}
Liked destinations: {destinations}
Liked activities: {activities}
Dislikes: {dislikes}
Travel style: {travel_style}

Suggest similar destinations, different types of trips, activities, budget considerations and timing."""


MEMORIES = ["Amazing experiences", "Great memories", "Wonderful people met"]
LESSONS = ["Travel lessons learned", "What worked well", "What to improve next time", "New preferences discovered"]
DEFAULT_HIGHLIGHTS = ["Amazing experiences", "Great memories", "Wonderful people"]

PROFILE_RECOMMENDATIONS = [
    "Personalized destination suggestions",
    "Activity recommendations",
    "Budget-friendly options",
    "Timing suggestions",
]

PLACEHOLDER_DESTINATIONS = ("Unknown", "Not specified")


def budget_preference(budget_satisfaction: str) -> BudgetPreference:
    if budget_satisfaction == "Excellent":
        return BudgetPreference(range="High", comfort="Luxury")
    if budget_satisfaction == "Good":
        return BudgetPreference(range="Medium", comfort="Comfortable")
    return BudgetPreference(range="Budget", comfort="Basic")


def build_insights(analysis: FeedbackAnalysis) -> TripInsights:
    return TripInsights(
        satisfaction=analysis.satisfaction or 8,
        value_for_money=analysis.budget_satisfaction or "Good",
        safety=analysis.safety_rating or "Safe",
        cultural=analysis.cultural_experience or "Positive",
        recommendations=analysis.recommendations or "Would recommend",
        improvements=analysis.improvements or "None major",
    )


def suggest_improvements(analysis: FeedbackAnalysis) -> list[str]:
    improvements = []
    if analysis.budget_satisfaction == "Poor":
        improvements.append("Consider budget planning tools")
    if analysis.safety_rating == "Concerns":
        improvements.append("Research safety information better")
    if analysis.cultural_experience == "Challenging":
        improvements.append("Learn more about local culture")
    if analysis.accommodation_issues:
        improvements.append("Research accommodations more thoroughly")
    if analysis.transportation_issues:
        improvements.append("Plan transportation better")
    return improvements


class TripRecordStore:
    """Append-only store of processed trips."""

    def __init__(self):
        self._records: list[TripRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def append(self, record: TripRecord):
        self._records.append(record)

    def get(self, trip_id: str) -> Optional[TripRecord]:
        """Most recent record for a trip id."""
        for record in reversed(self._records):
            if record.trip_id == trip_id:
                return record
        return None

    def for_user(self, user_id: str) -> list[TripRecord]:
        return [record for record in self._records if record.user_id == user_id]


class PostTripProcessor:
    """Processes feedback on finished trips."""

    def __init__(self, gateway: Optional[TextGateway] = None, records: Optional[TripRecordStore] = None):
        self.llm = gateway or get_llm_client()
        self.records = records or TripRecordStore()
        self._preferences: dict[str, UserPreferences] = {}

    def get_preferences(self, user_id: str) -> UserPreferences:
        """Learned preferences for a user (empty profile when nothing is known)."""
        return self._preferences.get(user_id) or UserPreferences()

    async def process_post_trip(
        self,
        user_id: str,
        trip_id: str,
        trip_data: TripData,
        feedback: Feedback,
    ) -> PostTripResult:
        """
        Analyze feedback, update preferences and record the trip.

        Never raises; an unexpected failure returns ``success=False``.
        """
        try:
            analysis = await self.analyze_feedback(trip_data, feedback)
            preferences = self.update_preferences(user_id, trip_data, analysis)
            summary = await self.summarize_trip(trip_data, analysis)
            future = await self.recommend_future_trips(trip_data, preferences)

            self.records.append(TripRecord(
                trip_id=trip_id,
                user_id=user_id,
                trip_data=trip_data.model_copy(deep=True),
                feedback_analysis=analysis.model_copy(deep=True),
                preferences=preferences.model_copy(deep=True),
            ))
            logger.info(f"Recorded trip {trip_id} for {user_id} ({len(self.records.for_user(user_id))} total)")

            return PostTripResult(
                success=True,
                trip_id=trip_id,
                feedback_analysis=analysis,
                updated_preferences=preferences,
                trip_summary=summary,
                future_recommendations=future,
                insights=build_insights(analysis),
                improvements=suggest_improvements(analysis),
            )
        except Exception as e:
            logger.exception(f"Post-trip processing failed for {user_id} on {trip_id}")
            return PostTripResult(
                success=False,
                trip_id=trip_id,
                error=str(e),
                fallback=PostTripFallback(),
            )

    async def analyze_feedback(self, trip_data: TripData, feedback: Feedback) -> FeedbackAnalysis:
        prompt = FEEDBACK_PROMPT.format(
            destination=trip_data.destination,
            duration=trip_data.duration,
            budget=trip_data.budget,
            feedback=feedback.comments or feedback.message,
            rating=feedback.rating or "Not given",
        )
        result = await guarded_json(
            self.llm,
            prompt,
            FeedbackAnalysis,
            lambda: default_feedback_analysis(feedback.rating),
            system=POST_TRIP_SYSTEM_PROMPT,
            label="feedback",
        )
        analysis = result.value
        if analysis.satisfaction is None and feedback.rating:
            analysis.satisfaction = feedback.rating
        return analysis

    def update_preferences(self, user_id: str, trip_data: TripData, analysis: FeedbackAnalysis) -> UserPreferences:
        """Merge what this trip taught us into the user's preferences. Lists keep set semantics."""
        preferences = self.get_preferences(user_id).model_copy(deep=True)
        liked = analysis.favorite_experiences
        disliked = analysis.least_favorite_experiences

        destination = trip_data.destination
        if destination and destination not in PLACEHOLDER_DESTINATIONS:
            if any(destination.lower() in experience.lower() for experience in liked):
                preferences.add_unique("destinations", destination)

        for experience in liked:
            preferences.add_unique("activities", experience)
        for experience in disliked:
            preferences.add_unique("dislikes", experience)

        if analysis.budget_satisfaction:
            preferences.budget = budget_preference(analysis.budget_satisfaction)
        if analysis.travel_style:
            preferences.travel_style = analysis.travel_style

        self._preferences[user_id] = preferences
        return preferences

    async def summarize_trip(self, trip_data: TripData, analysis: FeedbackAnalysis) -> TripSummary:
        prompt = SUMMARY_PROMPT.format(
            destination=trip_data.destination,
            duration=trip_data.duration,
            favorites=", ".join(analysis.favorite_experiences) or "None given",
            dislikes=", ".join(analysis.least_favorite_experiences) or "None given",
            satisfaction=analysis.satisfaction or "?",
        )
        overview = await guarded_text(
            self.llm,
            prompt,
            f"Trip to {trip_data.destination} completed!",
            system=POST_TRIP_SYSTEM_PROMPT,
            label="trip_summary",
        )
        return TripSummary(
            overview=overview.value,
            highlights=list(analysis.favorite_experiences) or list(DEFAULT_HIGHLIGHTS),
            budget=BudgetReview(
                spent=trip_data.budget or "Not specified",
                satisfaction=analysis.budget_satisfaction or "Good",
                value=analysis.value_for_money or "Good value",
            ),
            memories=[f"Trip to {trip_data.destination}"] + MEMORIES,
            lessons=list(LESSONS),
            fallback_used=overview.fallback_used,
        )

    async def recommend_future_trips(self, trip_data: TripData, preferences: UserPreferences) -> FutureRecommendations:
        prompt = FUTURE_PROMPT.format(
            destination=trip_data.destination,
            destinations=", ".join(preferences.destinations) or "None yet",
            activities=", ".join(preferences.activities) or "None yet",
            dislikes=", ".join(preferences.dislikes) or "None",
            travel_style=preferences.travel_style,
        )
        text = await guarded_text(
            self.llm,
            prompt,
            "Personalized recommendations available",
            system=POST_TRIP_SYSTEM_PROMPT,
            label="future_recommendations",
        )
        return FutureRecommendations(
            similar_destinations=["Similar destinations", "Related places", "Nearby countries"],
            new_experiences=["New activities", "Different experiences", "Adventure options"],
            budget_options=["Budget-friendly trips", "Luxury options", "Mid-range choices"],
            timing=["Best seasons", "Avoid crowds", "Weather considerations"],
            detailed_recommendations=text.value,
            fallback_used=text.fallback_used,
        )

    def get_user_travel_profile(self, user_id: str) -> TravelProfile:
        """Everything learned about a user across processed trips."""
        preferences = self.get_preferences(user_id)
        history = self.records.for_user(user_id)
        return TravelProfile(
            user_id=user_id,
            preferences=preferences,
            trip_history=history,
            total_trips=len(history),
            favorite_destinations=list(preferences.destinations),
            travel_patterns=self.analyze_travel_patterns(history, preferences),
            recommendations=list(PROFILE_RECOMMENDATIONS),
        )

    def analyze_travel_patterns(self, history: list[TripRecord], preferences: UserPreferences) -> TravelPatterns:
        durations = [r.trip_data.duration for r in history if isinstance(r.trip_data.duration, int)]
        if durations:
            average = round(sum(durations) / len(durations))
            average_length = f"{average} day" if average == 1 else f"{average} days"
        else:
            average_length = "Not enough data"

        destinations = Counter(
            r.trip_data.destination for r in history
            if r.trip_data.destination not in PLACEHOLDER_DESTINATIONS
        )
        return TravelPatterns(
            average_trip_length=average_length,
            common_destinations=[name for name, _ in destinations.most_common(3)],
            travel_style=preferences.travel_style,
        )
