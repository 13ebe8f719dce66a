"""
Trip models - Live trip tracking, post-trip feedback and the learned preference profile.
"""
import re
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from .base import WireModel


class TripStatus(str, Enum):
    """Lifecycle of a tracked trip."""
    ACTIVE = "active"
    CLOSED = "closed"


class Sentiment(str, Enum):
    """Rule-based sentiment of free-text feedback."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class TripState(WireModel):
    """State of one active trip, updated on every in-trip message."""
    trip_id: str
    user_profile: dict[str, Any] = Field(default_factory=dict)
    start_time: datetime = Field(default_factory=datetime.now)
    last_activity: Optional[datetime] = None
    message_count: int = 0
    locations: list[str] = Field(
        default_factory=list,
        description="Locations reported during the trip, in first-seen order"
    )
    status: TripStatus = TripStatus.ACTIVE

    def record_message(self, location: Optional[str] = None):
        """Count a message and remember a newly reported location."""
        self.message_count += 1
        self.last_activity = datetime.now()
        if location and location not in self.locations:
            self.locations.append(location)

    def close(self):
        self.status = TripStatus.CLOSED
        self.last_activity = datetime.now()


class TripData(WireModel):
    """What is known about a finished trip."""
    destination: str = "Unknown"
    duration: Union[int, str] = "Not specified"
    budget: str = "Not specified"
    activities: list[str] = Field(default_factory=list)


class Feedback(WireModel):
    """Raw traveler feedback with the rule-based extras derived from it."""
    message: str
    comments: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=10)
    sentiment: Sentiment = Sentiment.NEUTRAL
    timestamp: datetime = Field(default_factory=datetime.now)


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return value


class FeedbackAnalysis(WireModel):
    """Structured reading of a traveler's feedback."""
    model_config = ConfigDict(extra="ignore")

    satisfaction: Optional[int] = Field(None, ge=1, le=10)
    favorite_experiences: list[str] = Field(default_factory=list)
    least_favorite_experiences: list[str] = Field(default_factory=list)
    budget_satisfaction: Optional[str] = None
    safety_rating: Optional[str] = None
    cultural_experience: Optional[str] = None
    recommendations: Optional[Union[str, list[str]]] = None
    improvements: Optional[Union[str, list[str]]] = None
    travel_style: Optional[str] = None
    value_for_money: Optional[str] = None
    accommodation_issues: Optional[Any] = None
    transportation_issues: Optional[Any] = None

    @field_validator("favorite_experiences", "least_favorite_experiences", mode="before")
    @classmethod
    def coerce_experience_list(cls, v):
        return _as_list(v)

    @field_validator("satisfaction", mode="before")
    @classmethod
    def coerce_satisfaction(cls, v):
        if isinstance(v, str):
            match = re.search(r"\d+(?:\.\d+)?", v)
            if not match:
                return None
            v = match.group(0)
        if isinstance(v, (str, float)):
            return round(float(v))
        return v


def default_feedback_analysis(rating: Optional[int] = None) -> FeedbackAnalysis:
    """The fixed analysis used when the generated one is unavailable."""
    return FeedbackAnalysis(
        satisfaction=rating or 8,
        favorite_experiences=["Great experiences"],
        least_favorite_experiences=["Minor issues"],
        budget_satisfaction="Good",
        safety_rating="Safe",
        cultural_experience="Positive",
        recommendations="Would recommend",
        improvements="None major",
    )


class BudgetPreference(WireModel):
    """Budget comfort tier inferred from feedback."""
    range: str
    comfort: str


class UserPreferences(WireModel):
    """Long-lived preference profile, grown one trip at a time."""
    destinations: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    accommodations: list[str] = Field(default_factory=list)
    restaurants: list[str] = Field(default_factory=list)
    budget: Optional[BudgetPreference] = None
    travel_style: str = "friends"
    dislikes: list[str] = Field(default_factory=list)
    special_requirements: list[str] = Field(default_factory=list)

    def add_unique(self, field_name: str, value: str) -> bool:
        """Append ``value`` to a list field unless already present."""
        values = getattr(self, field_name)
        if value in values:
            return False
        values.append(value)
        return True


class TripRecord(WireModel):
    """Immutable snapshot of a processed trip."""
    model_config = ConfigDict(frozen=True)

    trip_id: str
    user_id: str
    trip_data: TripData
    feedback_analysis: FeedbackAnalysis
    preferences: UserPreferences
    timestamp: datetime = Field(default_factory=datetime.now)
