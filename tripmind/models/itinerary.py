"""
Itinerary models - Quick trip plans produced during the planning phase.
"""
from pydantic import Field

from .base import WireModel
from .session import TravelMode


class Activity(WireModel):
    """A single activity in the itinerary."""
    time: str = Field(
        ...,
        description="Start time, e.g. '09:00'"
    )
    activity: str = Field(
        ...,
        description="What to do"
    )
    location: str = Field(
        ...,
        description="Where it happens"
    )
    duration: str = Field(
        default="2-3 hours",
        description="Expected duration"
    )
    cost: str = Field(
        default="Varies",
        description="Rough cost per person"
    )


class DayPlan(WireModel):
    """Plan for a single day."""
    day: int = Field(
        ...,
        ge=1,
        description="Day number in the trip"
    )
    date: str = Field(
        ...,
        description="Date for this day (YYYY-MM-DD)"
    )
    title: str
    activities: list[Activity] = Field(
        default_factory=list,
        description="List of activities for the day"
    )


class BudgetBreakdown(WireModel):
    accommodation: str
    food: str
    activities: str
    transportation: str
    total: str


class TripPlan(WireModel):
    """Mode-aware trip plan for a destination."""
    destination: str
    duration: int = Field(..., ge=1)
    travel_mode: TravelMode
    total_cost: str
    summary: str
    days: list[DayPlan] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    accommodations: list[str] = Field(default_factory=list)
    transportation: list[str] = Field(default_factory=list)
    budget: BudgetBreakdown
