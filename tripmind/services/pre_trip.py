"""
Pre-Trip Planner - Assembles everything a traveler needs before departure.

Five information categories are requested from the text-generation service
concurrently; packing list, documents, insurance, costs and the timeline are
built locally.
"""
import asyncio
import logging
import time
from datetime import date, timedelta
from typing import Callable, Optional

from pydantic import BaseModel

from .fallback import Guarded, guarded_json
from .llm_client import TextGateway, get_llm_client
from ..errors import classify_error
from ..models.pre_trip import (
    CategoryInfo,
    CategoryResult,
    CostEstimate,
    CulturalInfo,
    DocumentChecklist,
    MedicalInfo,
    PackingList,
    PreTripFallback,
    PreTripInfo,
    PreTripResult,
    TimelineEntry,
    TravelAlerts,
    TripDetails,
    Vaccinations,
    VisaInfo,
    WeatherInfo,
)
from ..models.session import TravelMode, UserProfile

logger = logging.getLogger(__name__)


PRE_TRIP_SYSTEM_PROMPT = """You are a travel preparation expert.
Answer with ONLY a JSON object using the keys requested. Keep the summary to one or two sentences."""

VISA_PROMPT = """Provide visa requirements for this trip.

Destination: {destination}
Nationality: {nationality}
Origin: {origin}
Departure Date: {departure_date}

Respond with JSON:
{{"summary": "...", "visaRequired": true, "processingTime": "...", "documents": ["..."], "fees": "...", "validity": "..."}}"""

MEDICAL_PROMPT = """Provide medical advisories for this trip.

Destination: {destination}
Departure Date: {departure_date}
Traveler Age: {age}
Medical Conditions: {medical_conditions}
Allergies: {allergies}

Respond with JSON:
{{"summary": "...", "vaccinations": {{"required": ["..."], "recommended": ["..."]}}, "healthRisks": ["..."], "precautions": ["..."], "emergencyContacts": ["..."], "insurance": "..."}}"""

ALERTS_PROMPT = """Provide current travel alerts for this trip.

Destination: {destination}
Travel Mode: {mode}
Traveler Gender: {gender}

Respond with JSON:
{{"summary": "...", "safetyLevel": "...", "alerts": ["..."], "areasToAvoid": ["..."], "recommendations": ["..."], "emergencyNumbers": ["..."], "laws": ["..."]}}"""

WEATHER_PROMPT = """Provide the weather forecast and seasonal conditions for this trip.

Destination: {destination}
Departure Date: {departure_date}

Respond with JSON:
{{"summary": "...", "temperature": "...", "conditions": "...", "season": "...", "clothing": ["..."], "activities": ["..."], "bestTime": "..."}}"""

CULTURAL_PROMPT = """Provide cultural information for visitors.

Destination: {destination}
Travel Mode: {mode}
Dietary Needs: {dietary}

Respond with JSON:
{{"summary": "...", "etiquette": ["..."], "dressCode": ["..."], "language": ["..."], "customs": ["..."], "tipping": ["..."], "business": ["..."]}}"""


ESSENTIALS = [
    "Passport and copies",
    "Travel insurance documents",
    "Emergency contacts list",
    "Medications and prescriptions",
    "Phone and charger",
    "Universal adapter",
    "Comfortable walking shoes",
    "Weather-appropriate clothing",
]

MODE_ITEMS = {
    TravelMode.FAMILY: ["Kids' essentials", "Entertainment for children", "Snacks", "First aid kit"],
    TravelMode.SOLO_FEMALE: ["Safety items", "Personal alarm", "Women's health products", "Emergency cash"],
    TravelMode.PETS: ["Pet food", "Pet carrier", "Veterinary records", "Pet medications"],
    TravelMode.FRIENDS: ["Group activities items", "Camera", "Party supplies"],
    TravelMode.SOLO: ["Solo travel essentials", "Journal", "Books", "Portable charger"],
}

DESTINATION_ITEMS = {
    "tropical": ["Sunscreen", "Hat", "Swimwear", "Sandals"],
    "cold": ["Warm jacket", "Gloves", "Thermal wear", "Boots"],
    "urban": ["City map", "Comfortable shoes", "Small backpack"],
}

SEASONAL_ITEMS = {
    "winter": ["Warm clothing", "Layers", "Winter accessories"],
    "spring": ["Light jacket", "Umbrella", "Layers"],
    "summer": ["Light clothing", "Sunscreen", "Hat"],
    "fall": ["Medium layers", "Rain gear", "Comfortable shoes"],
}

REQUIRED_DOCUMENTS = [
    "Valid passport (6+ months validity)",
    "Visa (if required)",
    "Travel insurance",
    "Flight tickets",
    "Hotel confirmations",
]

RECOMMENDED_DOCUMENTS = [
    "International driving permit",
    "Health certificates",
    "Emergency contacts",
    "Copies of all documents",
    "Digital backups",
]

TIMELINE_TASKS = [
    (8, ["Research destination", "Check passport validity", "Start visa application if needed"]),
    (6, ["Book flights and accommodation", "Purchase travel insurance", "Schedule vaccinations"]),
    (4, ["Complete visa application", "Plan itinerary", "Book activities"]),
    (2, ["Finalize packing list", "Check travel alerts", "Confirm bookings"]),
    (1, ["Pack bags", "Check weather forecast", "Download apps"]),
]

DEFAULT_SAFETY_LEVEL = "Exercise normal precautions"


def parse_departure(departure_date: str) -> Optional[date]:
    """The departure date, or None when it is a placeholder or malformed."""
    try:
        return date.fromisoformat(departure_date)
    except (TypeError, ValueError):
        return None


def season_for(departure: Optional[date]) -> Optional[str]:
    """Northern-hemisphere season of the departure month."""
    if departure is None:
        return None
    if departure.month in (12, 1, 2):
        return "winter"
    if departure.month in (3, 4, 5):
        return "spring"
    if departure.month in (6, 7, 8):
        return "summer"
    return "fall"


def destination_category(destination: str) -> str:
    lower = destination.lower()
    if "beach" in lower or "tropical" in lower:
        return "tropical"
    if "mountain" in lower or "cold" in lower:
        return "cold"
    return "urban"


def build_packing_list(details: TripDetails) -> PackingList:
    season = season_for(parse_departure(details.departure_date))
    return PackingList(
        essentials=list(ESSENTIALS),
        mode_specific=list(MODE_ITEMS.get(details.mode, [])),
        destination=list(DESTINATION_ITEMS[destination_category(details.destination)]),
        seasonal=list(SEASONAL_ITEMS[season]) if season else [],
    )


def build_document_checklist(details: TripDetails) -> DocumentChecklist:
    return DocumentChecklist(
        required=list(REQUIRED_DOCUMENTS),
        recommended=list(RECOMMENDED_DOCUMENTS),
        destination=["Check destination-specific requirements"],
    )


def build_insurance(mode: TravelMode) -> dict[str, str]:
    """Coverage recommendation, extended for travel modes with extra needs."""
    insurance = {
        "medical": "Emergency medical coverage",
        "tripCancellation": "Trip cancellation protection",
        "baggage": "Baggage loss coverage",
        "emergency": "Emergency evacuation",
    }
    if mode == TravelMode.SOLO_FEMALE:
        insurance["safety"] = "Women-specific safety coverage"
        insurance["emergency"] = "24/7 emergency assistance"
    elif mode == TravelMode.FAMILY:
        insurance["family"] = "Family coverage options"
        insurance["children"] = "Children-specific coverage"
    elif mode == TravelMode.PETS:
        insurance["pet"] = "Pet travel insurance"
        insurance["veterinary"] = "Emergency veterinary coverage"
    return insurance


def build_cost_estimate(visa: VisaInfo) -> CostEstimate:
    return CostEstimate(
        visa=visa.fees,
        vaccinations="Varies by location",
        insurance="$50-200 depending on coverage",
        documents="$20-100 for processing",
        total="Estimate $100-500 depending on requirements",
    )


def build_recommendations(visa: VisaInfo, medical: MedicalInfo, alerts: TravelAlerts) -> list[str]:
    recommendations = []
    if visa.visa_required:
        recommendations.append("Apply for visa well in advance")
    if medical.vaccinations.required:
        recommendations.append("Schedule required vaccinations")
    if alerts.safety_level != DEFAULT_SAFETY_LEVEL:
        recommendations.append("Review travel advisories carefully")
    recommendations.extend([
        "Purchase comprehensive travel insurance",
        "Register with embassy if required",
        "Download offline maps and translation apps",
    ])
    return recommendations


def build_timeline(departure_date: str) -> list[TimelineEntry]:
    """Preparation tasks by weeks before departure, dated when the departure date is known."""
    departure = parse_departure(departure_date)
    return [
        TimelineEntry(
            weeks_before=weeks,
            due_date=departure - timedelta(weeks=weeks) if departure else None,
            tasks=list(tasks),
        )
        for weeks, tasks in TIMELINE_TASKS
    ]


# Defaults used when a category cannot be generated

def default_visa(details: TripDetails) -> VisaInfo:
    return VisaInfo(
        summary=f"Visa requirements for {details.nationality} citizens to {details.destination}",
        note="Please verify with official embassy website",
    )


def default_medical(details: TripDetails) -> MedicalInfo:
    return MedicalInfo(
        summary="Consult a travel health clinic before departure",
        vaccinations=Vaccinations(
            required=["Check destination requirements"],
            recommended=["Hepatitis A", "Hepatitis B", "Typhoid"],
        ),
        health_risks=["Food and water safety", "Mosquito-borne diseases"],
        precautions=["Drink bottled water", "Use insect repellent", "Eat cooked food"],
        emergency_contacts=["Local emergency: 911", "Embassy contact required"],
    )


def default_alerts(details: TripDetails) -> TravelAlerts:
    return TravelAlerts(
        summary="Check government travel advisories",
        safety_level=DEFAULT_SAFETY_LEVEL,
        alerts=["Check official travel advisories"],
        areas_to_avoid=["Check local authorities"],
        recommendations=["Stay aware of surroundings", "Keep documents safe"],
        emergency_numbers=["Police: 911", "Emergency: 911"],
        laws=["Respect local customs", "Follow local laws"],
    )


def default_weather(details: TripDetails) -> WeatherInfo:
    return WeatherInfo(
        summary="Check weather service for forecast",
        clothing=["Layers recommended", "Check weather before packing"],
        activities=["Weather-dependent activities available"],
    )


def default_cultural(details: TripDetails) -> CulturalInfo:
    return CulturalInfo(
        summary="Research local customs and etiquette",
        etiquette=["Respect local customs", "Learn basic greetings"],
        dress_code=["Dress modestly", "Check religious sites requirements"],
        language=["Learn basic phrases", "English may be limited"],
        customs=["Observe local traditions", "Be respectful"],
        tipping=["Check local customs", "Service charges may be included"],
        business=["Formal attire for business", "Punctuality important"],
    )


CATEGORIES: dict[str, tuple[str, type[CategoryInfo], Callable[[TripDetails], CategoryInfo]]] = {
    "visa": (VISA_PROMPT, VisaInfo, default_visa),
    "medical": (MEDICAL_PROMPT, MedicalInfo, default_medical),
    "alerts": (ALERTS_PROMPT, TravelAlerts, default_alerts),
    "weather": (WEATHER_PROMPT, WeatherInfo, default_weather),
    "cultural": (CULTURAL_PROMPT, CulturalInfo, default_cultural),
}


def to_category_result(name: str, guarded: Guarded) -> CategoryResult:
    """Tag a category value with whether it came from the fallback."""
    info: BaseModel = guarded.value
    summary = (info.summary or "").strip() or getattr(PreTripFallback(), name)
    return CategoryResult(
        category=name,
        summary=summary,
        fallback_used=guarded.fallback_used,
        data=info.model_dump(by_alias=True, exclude={"summary"}, exclude_none=True),
    )


class PreTripPlanner:
    """Builds pre-departure plans."""

    def __init__(self, gateway: Optional[TextGateway] = None):
        self.llm = gateway or get_llm_client()

    async def plan_pre_trip(
        self,
        user_id: str,
        details: TripDetails,
        profile: Optional[UserProfile] = None,
    ) -> PreTripResult:
        """
        Plan everything needed before departure.

        Never raises: category failures fall back individually, anything
        unexpected yields ``success=False`` with one-line guidance.
        """
        profile = profile or UserProfile(mode=details.mode)
        if details.nationality == "Not specified" and profile.nationality != "Not specified":
            details = details.model_copy(update={"nationality": profile.nationality})
        try:
            trip_id = f"{user_id}_{details.destination}_{int(time.time() * 1000)}"
            logger.info(f"Planning pre-trip {trip_id} for {details.destination}")

            guarded = await self._fetch_categories(details, profile)
            results = {name: to_category_result(name, value) for name, value in guarded.items()}

            visa, medical, alerts = guarded["visa"].value, guarded["medical"].value, guarded["alerts"].value
            info = PreTripInfo(
                visa=results["visa"],
                medical=results["medical"],
                alerts=results["alerts"],
                weather=results["weather"],
                cultural=results["cultural"],
                packing_list=build_packing_list(details),
                documents=build_document_checklist(details),
                insurance=build_insurance(details.mode),
                budget=build_cost_estimate(visa),
            )

            fallbacks = [r.category for r in results.values() if r.fallback_used]
            if fallbacks:
                logger.info(f"Pre-trip {trip_id} used fallbacks for: {', '.join(fallbacks)}")

            return PreTripResult(
                success=True,
                trip_id=trip_id,
                destination=details.destination,
                origin=details.origin,
                departure_date=details.departure_date,
                pre_trip_info=info,
                recommendations=build_recommendations(visa, medical, alerts),
                timeline=build_timeline(details.departure_date),
            )
        except Exception as e:
            logger.exception(f"Pre-trip planning failed for {user_id}")
            return PreTripResult(
                success=False,
                destination=details.destination,
                origin=details.origin,
                departure_date=details.departure_date,
                error=str(e),
                fallback=PreTripFallback(),
            )

    async def _fetch_categories(self, details: TripDetails, profile: UserProfile) -> dict[str, Guarded]:
        """Request every category concurrently; one failure never cancels the others."""
        values = {
            "destination": details.destination,
            "origin": details.origin,
            "departure_date": details.departure_date,
            "nationality": details.nationality,
            "mode": details.mode.value,
            "age": profile.age,
            "medical_conditions": profile.medical_conditions,
            "allergies": profile.allergies,
            "gender": profile.gender,
            "dietary": profile.dietary,
        }

        tasks = []
        for name, (template, schema, default) in CATEGORIES.items():
            tasks.append(guarded_json(
                self.llm,
                template.format(**values),
                schema,
                lambda default=default: default(details),
                system=PRE_TRIP_SYSTEM_PROMPT,
                label=name,
            ))

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        guarded = {}
        for (name, (_, _, default)), outcome in zip(CATEGORIES.items(), outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Category '{name}' raised outside the guard: {outcome!r}")
                outcome = Guarded(default(details), fallback_used=True, error=classify_error(outcome))
            guarded[name] = outcome
        return guarded
