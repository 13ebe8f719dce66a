"""
Pre-trip models - Category results, checklists and the assembled departure plan.
"""
from datetime import date
from typing import Any, Optional, get_origin

from pydantic import ConfigDict, Field, ValidationInfo, field_validator

from .base import WireModel
from .session import TravelMode


class CategoryInfo(WireModel):
    """Base for the structured objects requested per information category."""
    model_config = ConfigDict(extra="allow")

    summary: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def wrap_scalar_lists(cls, v: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name)
        if field is not None and get_origin(field.annotation) is list and isinstance(v, str):
            return [v]
        return v


class VisaInfo(CategoryInfo):
    visa_required: bool = True
    processing_time: str = "2-4 weeks"
    documents: list[str] = Field(default_factory=lambda: ["Passport", "Application form", "Photos", "Travel itinerary"])
    fees: str = "Check official website"
    validity: str = "6 months"
    note: Optional[str] = None


class Vaccinations(WireModel):
    required: list[str] = Field(default_factory=list)
    recommended: list[str] = Field(default_factory=list)


class MedicalInfo(CategoryInfo):
    vaccinations: Vaccinations = Field(default_factory=Vaccinations)
    health_risks: list[str] = Field(default_factory=list)
    precautions: list[str] = Field(default_factory=list)
    emergency_contacts: list[str] = Field(default_factory=list)
    insurance: str = "Travel health insurance recommended"


class TravelAlerts(CategoryInfo):
    safety_level: str = "Exercise normal precautions"
    alerts: list[str] = Field(default_factory=list)
    areas_to_avoid: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    emergency_numbers: list[str] = Field(default_factory=list)
    laws: list[str] = Field(default_factory=list)


class WeatherInfo(CategoryInfo):
    temperature: str = "Check weather service"
    conditions: str = "Variable"
    season: str = "Check local season"
    clothing: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    best_time: str = "Check destination-specific information"


class CulturalInfo(CategoryInfo):
    etiquette: list[str] = Field(default_factory=list)
    dress_code: list[str] = Field(default_factory=list)
    language: list[str] = Field(default_factory=list)
    customs: list[str] = Field(default_factory=list)
    tipping: list[str] = Field(default_factory=list)
    business: list[str] = Field(default_factory=list)


class CategoryResult(WireModel):
    """One information category, tagged with whether the fallback was used."""
    category: str
    summary: str = Field(..., min_length=1)
    fallback_used: bool = False
    data: dict[str, Any] = Field(default_factory=dict)


class TripDetails(WireModel):
    """Trip facts the pre-trip plan is built for."""
    destination: str = "Unknown"
    origin: str = "Not specified"
    departure_date: str = "Not specified"
    nationality: str = "Not specified"
    group_size: int = 1
    mode: TravelMode = TravelMode.FRIENDS


class PackingList(WireModel):
    essentials: list[str]
    mode_specific: list[str] = Field(default_factory=list)
    destination: list[str] = Field(default_factory=list)
    seasonal: list[str] = Field(default_factory=list)

    def all_items(self) -> list[str]:
        """Every item once, in list order."""
        seen = []
        for item in self.essentials + self.mode_specific + self.destination + self.seasonal:
            if item not in seen:
                seen.append(item)
        return seen


class DocumentChecklist(WireModel):
    required: list[str]
    recommended: list[str]
    destination: list[str]


class CostEstimate(WireModel):
    """Rough pre-departure costs. Display strings, not a computed total."""
    visa: str
    vaccinations: str
    insurance: str
    documents: str
    total: str


class TimelineEntry(WireModel):
    weeks_before: int
    due_date: Optional[date] = None
    tasks: list[str]


class PreTripInfo(WireModel):
    visa: CategoryResult
    medical: CategoryResult
    alerts: CategoryResult
    weather: CategoryResult
    cultural: CategoryResult
    packing_list: PackingList
    documents: DocumentChecklist
    insurance: dict[str, str]
    budget: CostEstimate

    def categories(self) -> list[CategoryResult]:
        return [self.visa, self.medical, self.alerts, self.weather, self.cultural]


class PreTripFallback(WireModel):
    """Minimal one-line guidance per category."""
    visa: str = "Check embassy website for requirements"
    medical: str = "Consult travel health clinic"
    alerts: str = "Check government travel advisories"
    weather: str = "Check weather service for forecast"
    cultural: str = "Research local customs and etiquette"


class PreTripResult(WireModel):
    """Outcome of pre-trip planning; ``fallback`` is set only when planning failed outright."""
    success: bool
    trip_id: Optional[str] = None
    destination: str = "Unknown"
    origin: str = "Not specified"
    departure_date: str = "Not specified"
    pre_trip_info: Optional[PreTripInfo] = None
    recommendations: list[str] = Field(default_factory=list)
    timeline: list[TimelineEntry] = Field(default_factory=list)
    error: Optional[str] = None
    fallback: Optional[PreTripFallback] = None
