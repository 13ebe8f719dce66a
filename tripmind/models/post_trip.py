"""
Post-trip models - Summaries, recommendations and the traveler profile.
"""
from typing import Optional, Union

from pydantic import Field

from .base import WireModel
from .trip import FeedbackAnalysis, TripRecord, UserPreferences


class BudgetReview(WireModel):
    spent: str
    satisfaction: str
    value: str
    recommendations: str = "Budget planning for next trip"


class TripSummary(WireModel):
    overview: str
    highlights: list[str]
    budget: BudgetReview
    memories: list[str]
    lessons: list[str]
    fallback_used: bool = False


class FutureRecommendations(WireModel):
    """Generated advice alongside labelled placeholder categories."""
    similar_destinations: list[str]
    new_experiences: list[str]
    budget_options: list[str]
    timing: list[str]
    detailed_recommendations: str
    fallback_used: bool = False


class TripInsights(WireModel):
    satisfaction: int
    value_for_money: str
    safety: str
    cultural: str
    recommendations: Union[str, list[str]]
    improvements: Union[str, list[str]]


class PostTripFallback(WireModel):
    message: str = "Thank you for sharing your trip experience!"
    suggestions: list[str] = Field(default_factory=lambda: ["Plan your next trip", "Share your experience", "Leave reviews"])


class PostTripResult(WireModel):
    """Envelope returned by the post-trip processor."""
    success: bool
    trip_id: str
    feedback_analysis: Optional[FeedbackAnalysis] = None
    updated_preferences: Optional[UserPreferences] = None
    trip_summary: Optional[TripSummary] = None
    future_recommendations: Optional[FutureRecommendations] = None
    insights: Optional[TripInsights] = None
    improvements: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    fallback: Optional[PostTripFallback] = None


class TravelPatterns(WireModel):
    average_trip_length: str
    common_destinations: list[str]
    travel_style: str


class TravelProfile(WireModel):
    """Everything learned about a traveler across processed trips."""
    user_id: str
    preferences: UserPreferences
    trip_history: list[TripRecord]
    total_trips: int
    favorite_destinations: list[str]
    travel_patterns: TravelPatterns
    recommendations: list[str]
