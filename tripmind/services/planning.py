"""
Trip Planner - Conversational replies for the planning phase and quick,
mode-aware itineraries built without the text-generation service.
"""
import re
import logging
from datetime import date, timedelta
from typing import Optional

from .extractor import DEFAULT_TRIP_DAYS, get_extractor
from .fallback import guarded_text
from .llm_client import TextGateway, get_llm_client
from ..models.itinerary import Activity, BudgetBreakdown, DayPlan, TripPlan
from ..models.reply import AssistantReply, ReplyAction
from ..models.session import Session, TravelMode, TRAVEL_MODES

logger = logging.getLogger(__name__)


PLANNING_REQUEST = re.compile(
    r"\b(?:plan|itinerary|schedule|trip|create|generate|organize|arrange|book|reserve|detailed|days?|weekend|week|month)\b",
    re.IGNORECASE,
)
RESTAURANT_REQUEST = re.compile(
    r"\b(?:restaurants?|food|eat|dining|meal|cuisine|veg|vegetarian|vegan|hungry|lunch|dinner|breakfast)\b",
    re.IGNORECASE,
)
GREETING = re.compile(r"\b(?:hi|hello|hey|yo|what's up|how are you)\b", re.IGNORECASE)

SHORT_MESSAGE_LENGTH = 10

# Per-person daily cost in USD
DAILY_COST = {
    TravelMode.FAMILY: 200,
    TravelMode.FRIENDS: 150,
    TravelMode.SOLO: 100,
    TravelMode.SOLO_FEMALE: 120,
    TravelMode.PETS: 180,
}

ACTIVITIES = {
    TravelMode.FAMILY: ["Museums", "Parks", "Family restaurants", "Educational sites", "Zoos", "Aquariums"],
    TravelMode.FRIENDS: ["Nightlife", "Adventure activities", "Group tours", "Bars", "Clubs", "Sports"],
    TravelMode.SOLO: ["Walking tours", "Cafes", "Museums", "Local meetups", "Photography spots", "Markets"],
    TravelMode.SOLO_FEMALE: ["Safe neighborhoods", "Women-friendly cafes", "Museums", "Shopping", "Well-lit areas", "Group tours"],
    TravelMode.PETS: ["Dog parks", "Pet-friendly restaurants", "Outdoor activities", "Pet stores", "Veterinary clinics", "Beaches"],
}

HIGHLIGHTS = {
    TravelMode.FAMILY: ["Visit {destination} with kids", "Family-friendly attractions", "Safe neighborhoods", "Educational experiences"],
    TravelMode.FRIENDS: ["{destination} nightlife", "Adventure activities", "Group experiences", "Social hotspots"],
    TravelMode.SOLO: ["Solo exploration of {destination}", "Local culture immersion", "Flexible schedule", "Personal growth"],
    TravelMode.SOLO_FEMALE: ["Safe solo travel in {destination}", "Women-friendly spots", "Empowering experiences", "Cultural immersion"],
    TravelMode.PETS: ["Pet-friendly {destination}", "Outdoor adventures", "Pet services", "Family bonding"],
}

TIPS = {
    TravelMode.FAMILY: ["Book family-friendly hotels", "Pack snacks for kids", "Plan rest breaks", "Check age restrictions"],
    TravelMode.FRIENDS: ["Book group activities", "Share costs", "Plan transportation", "Stay flexible"],
    TravelMode.SOLO: ["Stay in hostels for socializing", "Use public transport", "Keep emergency contacts", "Trust your instincts"],
    TravelMode.SOLO_FEMALE: ["Share location with someone", "Avoid walking alone at night", "Use trusted transport", "Stay in well-lit areas"],
    TravelMode.PETS: ["Check pet policies", "Pack pet supplies", "Find pet-friendly hotels", "Locate nearby vets"],
}

ACCOMMODATIONS = {
    TravelMode.FAMILY: ["Family suites", "Apartments with kitchens", "Hotels with pools", "Near attractions"],
    TravelMode.FRIENDS: ["Hostels", "Shared apartments", "Budget hotels", "Near nightlife"],
    TravelMode.SOLO: ["Hostels", "Boutique hotels", "Airbnb", "Near public transport"],
    TravelMode.SOLO_FEMALE: ["Women-only hostels", "Safe neighborhoods", "Well-lit areas", "Near public transport"],
    TravelMode.PETS: ["Pet-friendly hotels", "Apartments with yards", "Near parks", "Pet services available"],
}

TRANSPORTATION = {
    TravelMode.FAMILY: ["Rental car", "Family passes", "Taxis", "Public transport"],
    TravelMode.FRIENDS: ["Group transport", "Rideshare", "Public transport", "Walking"],
    TravelMode.SOLO: ["Public transport", "Walking", "Bike rental", "Rideshare"],
    TravelMode.SOLO_FEMALE: ["Safe transport options", "Public transport", "Trusted taxis", "Well-lit routes"],
    TravelMode.PETS: ["Pet-friendly transport", "Car rental", "Walking routes", "Pet carriers"],
}

GREETINGS = {
    TravelMode.FAMILY: "Hey there! 👨‍👩‍👧‍👦 Ready to plan an amazing family adventure? I'll help you find kid-friendly spots and safe activities!",
    TravelMode.FRIENDS: "What's up! 👥 Let's plan an epic trip with your crew! I'll find the best hangout spots and group activities!",
    TravelMode.SOLO: "Hey traveler! 🎒 Ready for your next solo adventure? I'll help you find social spots and flexible itineraries!",
    TravelMode.SOLO_FEMALE: "Hi! 👩‍🦰 I'm here to help you plan a safe and amazing solo trip! I'll focus on women-friendly places and safety tips!",
    TravelMode.PETS: "Hey! 🐕 Ready to plan a pet-friendly getaway? I'll find places where your furry friend is welcome!",
}

MODE_SWITCH_REPLIES = {
    TravelMode.SOLO_FEMALE: (
        "Solo female travel! 👩‍🦰 I'll make sure to find safe, women-friendly places for you.\n\n"
        "🛡️ I'll provide:\n"
        "• Safe neighborhoods & areas to avoid\n"
        "• Day vs night safety tips\n"
        "• Emergency contacts & helplines\n"
        "• Women-friendly accommodations\n"
        "• Cultural safety guidelines\n\n"
        "Where are you thinking of going?"
    ),
    TravelMode.SOLO: "Solo travel! 🎒 I'll find flexible, social opportunities and budget-friendly options for you. Where are you thinking of going?",
    TravelMode.FAMILY: "Family trip! 👨‍👩‍👧‍👦 I'll find kid-friendly activities and safe places. Where would you like to go?",
}

MODE_SUGGESTIONS = {
    TravelMode.SOLO_FEMALE: ["🛡️ Safety tips", "👩‍🦰 Women-friendly places", "🚨 Emergency contacts", "🌙 Night safety", "🚕 Safe transport", "🏨 Women-only hostels"],
    TravelMode.SOLO: ["Social hostels", "Meetup spots", "Flexible itineraries"],
    TravelMode.FAMILY: ["Kid-friendly activities", "Family restaurants", "Educational sites"],
    TravelMode.PETS: ["Pet-friendly hotels", "Dog parks", "Veterinary services"],
}
COMMON_SUGGESTIONS = ["Budget options", "Local transport", "Best time to visit"]

CHAT_PROMPT = """You are an expert travel planner specializing in {mode_name} {emoji}.

{mode_description}

User Profile:
- Travel Mode: {mode_name}
- Budget: {budget}
- Dietary: {dietary}
- Group Size: {group_size}
- Previous preferences: {preferences}
{location_context}
User Message: "{message}"

Respond as a knowledgeable, enthusiastic travel expert. Give destination-specific recommendations,
safety considerations, budget-friendly options, the best times to visit, local transportation tips,
cultural insights and activities suited to the travel mode. Ask a follow-up question."""


def suggestions_for(mode: TravelMode) -> list[str]:
    """Suggestion chips for the current travel mode."""
    return MODE_SUGGESTIONS.get(mode, []) + COMMON_SUGGESTIONS


def estimate_cost(mode: TravelMode, days: int) -> str:
    base = DAILY_COST[mode] * days
    return f"${base} - ${round(base * 1.5)}"


def build_budget(mode: TravelMode, days: int) -> BudgetBreakdown:
    daily = DAILY_COST[mode]
    return BudgetBreakdown(
        accommodation=f"${round(daily * 0.4 * days)}",
        food=f"${round(daily * 0.3 * days)}",
        activities=f"${round(daily * 0.2 * days)}",
        transportation=f"${round(daily * 0.1 * days)}",
        total=f"${daily * days}",
    )


def build_days(destination: str, days: int, mode: TravelMode, start: date) -> list[DayPlan]:
    plans = []
    for day in range(1, days + 1):
        activities = [
            Activity(
                time=f"{9 + 2 * slot:02d}:00",
                activity=name,
                location=f"{destination} {name.lower()}",
                duration="2-3 hours",
                cost=f"${20 + 10 * slot}",
            )
            for slot, name in enumerate(ACTIVITIES[mode][:4])
        ]
        plans.append(DayPlan(
            day=day,
            date=(start + timedelta(days=day)).isoformat(),
            title=f"Day {day} in {destination}",
            activities=activities,
        ))
    return plans


class TripPlanner:
    """Handles planning-phase messages."""

    def __init__(self, gateway: Optional[TextGateway] = None):
        self.llm = gateway or get_llm_client()
        self.extractor = get_extractor()

    def generate_trip_plan(
        self,
        message: str,
        mode: TravelMode,
        location: Optional[str] = None,
        today: Optional[date] = None,
    ) -> TripPlan:
        """Itinerary for the destination and length the message asks for."""
        info = TRAVEL_MODES[mode]
        days = self.extractor.extract_days(message) or DEFAULT_TRIP_DAYS
        destination = self.extractor.extract_destination(message) or location or "your chosen destination"

        return TripPlan(
            destination=destination,
            duration=days,
            travel_mode=mode,
            total_cost=estimate_cost(mode, days),
            summary=f"Perfect {info['name']} trip to {destination} for {days} days! {info['emoji']}",
            days=build_days(destination, days, mode, today or date.today()),
            highlights=[h.format(destination=destination) for h in HIGHLIGHTS[mode]],
            tips=list(TIPS[mode]),
            accommodations=list(ACCOMMODATIONS[mode]),
            transportation=list(TRANSPORTATION[mode]),
            budget=build_budget(mode, days),
        )

    async def respond(self, session: Session, message: str, location: Optional[str] = None) -> AssistantReply:
        """Reply to a planning-phase message."""
        mode = session.mode
        info = TRAVEL_MODES[mode]
        lower = message.lower()
        suggestions = suggestions_for(mode)

        if PLANNING_REQUEST.search(message):
            itinerary = self.generate_trip_plan(message, mode, location or session.last_destination)
            return AssistantReply(
                message=(
                    f"I'll create a detailed {mode.value} trip plan for you! {info['emoji']}\n\n"
                    f"{itinerary.summary}\n\nWould you like me to add more details or adjust anything?"
                ),
                mode=mode,
                suggestions=suggestions,
                action=ReplyAction.ITINERARY,
                itinerary=itinerary,
            )

        if RESTAURANT_REQUEST.search(message):
            return AssistantReply(
                message=f"I'll find the best restaurants for you! {info['emoji']} Let me search for great dining options in your area.",
                mode=mode,
                suggestions=suggestions,
                action=ReplyAction.RESTAURANTS,
            )

        # Mode was already switched from this message's memory updates
        mentions_mode = any(word in lower for word in ("solo", "alone", "family", "kids"))
        if mentions_mode and mode in MODE_SWITCH_REPLIES:
            return AssistantReply(message=MODE_SWITCH_REPLIES[mode], mode=mode, suggestions=suggestions)

        if GREETING.search(message):
            return AssistantReply(message=GREETINGS[mode], mode=mode, suggestions=suggestions)

        if len(message.strip()) < SHORT_MESSAGE_LENGTH:
            return AssistantReply(
                message=f'I see you mentioned "{message.strip()}" - tell me more! Are you thinking of a specific place or activity? {info["emoji"]}',
                mode=mode,
                suggestions=suggestions,
            )

        prompt = CHAT_PROMPT.format(
            mode_name=info["name"],
            emoji=info["emoji"],
            mode_description=info["description"],
            budget=session.budget_hint or "Not specified",
            dietary=session.dietary or "Not specified",
            group_size=session.group_size,
            preferences=session.preferences or "None yet",
            location_context=f"\nCurrent location context: {location}\n" if location else "",
            message=message,
        )
        reply = await guarded_text(
            self.llm,
            prompt,
            f"I'm here to help you plan the perfect {info['name'].lower()} trip! {info['emoji']} What destination are you considering?",
            label="planning_chat",
        )
        return AssistantReply(message=reply.value, mode=mode, suggestions=suggestions)
