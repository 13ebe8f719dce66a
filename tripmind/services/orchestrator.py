"""
Orchestrator - Entry point for every inbound chat message.

Serializes work per user, keeps session memory current, decides the trip
phase and hands the message to the matching handler. Always answers.
"""
import logging
import time
from typing import Optional

from .extractor import MessageExtractor, get_extractor
from .in_trip import InTripAssistant
from .llm_client import TextGateway, get_llm_client
from .phase_classifier import TripPhase, classify_phase
from .planning import TripPlanner, suggestions_for
from .post_trip import PostTripProcessor
from .pre_trip import PreTripPlanner
from ..config import settings
from ..models.in_trip import InTripResult
from ..models.post_trip import PostTripResult
from ..models.pre_trip import PreTripResult, TripDetails
from ..models.reply import AssistantReply, ReplyAction
from ..models.session import Session, SessionStore, TravelMode, UserProfile, TRAVEL_MODES
from ..models.trip import Feedback, TripData, TripState

logger = logging.getLogger(__name__)


PRE_TRIP_SUGGESTIONS = ["Visa requirements", "Medical advisories", "Travel alerts", "Packing list"]
IN_TRIP_SUGGESTIONS = ["Emergency help", "Directions", "Recommendations"]
POST_TRIP_SUGGESTIONS = ["Plan next trip", "Share experience", "Leave reviews", "Get recommendations"]


def new_trip_id(user_id: str) -> str:
    return f"{user_id}_{int(time.time() * 1000)}"


class Orchestrator:
    """
    Routes messages to the planning, pre-trip, in-trip and post-trip handlers.

    Handlers share one gateway unless they are injected individually.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        gateway: Optional[TextGateway] = None,
        pre_trip: Optional[PreTripPlanner] = None,
        in_trip: Optional[InTripAssistant] = None,
        post_trip: Optional[PostTripProcessor] = None,
        planner: Optional[TripPlanner] = None,
        extractor: Optional[MessageExtractor] = None,
    ):
        self.store = store if store is not None else SessionStore()
        gateway = gateway or get_llm_client()
        self.pre_trip = pre_trip or PreTripPlanner(gateway)
        self.in_trip = in_trip or InTripAssistant(gateway)
        self.post_trip = post_trip or PostTripProcessor(gateway)
        self.planner = planner or TripPlanner(gateway)
        self.extractor = extractor or get_extractor()

    async def handle_message(
        self,
        user_id: str,
        message: str,
        current_location: Optional[str] = None,
    ) -> AssistantReply:
        """Answer one message from ``user_id``."""
        async with self.store.lock(user_id):
            session = self.store.get_or_create(user_id)
            try:
                session.add_message("user", message)
                patch = self.extractor.memory_updates(message)
                if patch:
                    session = self.store.update(user_id, patch)

                phase = classify_phase(message, session)
                logger.info(f"User {user_id}: phase={phase.value}, mode={session.mode.value}")

                if phase == TripPhase.PRE_TRIP:
                    reply = await self._handle_pre_trip(session, message)
                elif phase == TripPhase.IN_TRIP:
                    reply = await self._handle_in_trip(session, message, current_location)
                elif phase == TripPhase.POST_TRIP:
                    reply = await self._handle_post_trip(session, message)
                else:
                    reply = await self.planner.respond(session, message, current_location)
            except Exception:
                logger.exception(f"Failed to handle message for {user_id}")
                reply = self._fallback_reply(session)

            session.add_message("assistant", reply.message)
            return reply

    async def set_mode(self, user_id: str, mode: TravelMode) -> Session:
        """Switch the user's travel mode."""
        async with self.store.lock(user_id):
            return self.store.update(user_id, {"mode": mode})

    async def end_trip(self, user_id: str, trip_id: Optional[str] = None) -> Optional[TripState]:
        """
        Close a trip and unlink it from the session.

        Defaults to the session's linked trip, then its chat trip. Returns None
        when no such trip is being tracked.
        """
        async with self.store.lock(user_id):
            session = self.store.get(user_id)
            if trip_id is None and session is not None:
                trip_id = session.current_trip_id or session.chat_trip_id
            if trip_id is None:
                return None

            trip = self.in_trip.end_trip(trip_id)
            if session is not None:
                patch = {key: None for key in ("current_trip_id", "chat_trip_id") if getattr(session, key) == trip_id}
                if patch:
                    self.store.update(user_id, patch)
            return trip

    async def plan_pre_trip(
        self,
        user_id: str,
        details: TripDetails,
        profile: Optional[UserProfile] = None,
    ) -> PreTripResult:
        """Pre-trip plan for explicit trip details, using session memory for the profile."""
        async with self.store.lock(user_id):
            session = self.store.get_or_create(user_id)
            return await self.pre_trip.plan_pre_trip(user_id, details, profile or session.profile())

    async def assist_in_trip(
        self,
        user_id: str,
        trip_id: str,
        message: str,
        current_location: Optional[str] = None,
        profile: Optional[UserProfile] = None,
    ) -> InTripResult:
        """In-trip help for a known trip. Links the trip to the session if none is active."""
        async with self.store.lock(user_id):
            session = self.store.get_or_create(user_id)
            if session.current_trip_id is None:
                self.store.update(user_id, {"current_trip_id": trip_id})
            return await self.in_trip.provide_assistance(
                user_id, trip_id, message, current_location, profile or session.profile()
            )

    async def process_feedback(
        self,
        user_id: str,
        trip_id: str,
        trip_data: TripData,
        feedback: Feedback,
    ) -> PostTripResult:
        """Post-trip processing for explicit trip data and feedback."""
        async with self.store.lock(user_id):
            session = self.store.get_or_create(user_id)
            result = await self.post_trip.process_post_trip(user_id, trip_id, trip_data, feedback)
            self._remember_trip(session, trip_id, result)
            return result

    def _remember_trip(self, session: Session, trip_id: str, result: PostTripResult):
        """Copy a processed trip into session memory."""
        if not result.success:
            return
        session.add_trip(trip_id)
        self.store.update(session.user_id, {
            "preferences": result.updated_preferences.model_dump(mode="json"),
        })

    async def _handle_pre_trip(self, session: Session, message: str) -> AssistantReply:
        details = self.extractor.extract_trip_details(message, session)
        result = await self.pre_trip.plan_pre_trip(session.user_id, details, session.profile())

        if result.success:
            text = (
                f"🧳 Pre-trip planning for {details.destination}!\n\n"
                "I've gathered visa requirements, medical advisories, travel alerts, weather "
                "and cultural tips, plus a packing list and a preparation timeline."
            )
        else:
            text = (
                f"I couldn't put together the full pre-trip plan for {details.destination} right now. "
                f"Start here: {result.fallback.visa}."
            )

        return AssistantReply(
            message=text,
            mode=session.mode,
            suggestions=list(PRE_TRIP_SUGGESTIONS),
            action=ReplyAction.PRE_TRIP,
            pre_trip_data=result,
            trip_id=result.trip_id,
        )

    async def _handle_in_trip(self, session: Session, message: str, current_location: Optional[str]) -> AssistantReply:
        # Only assist_in_trip links a trip; chat-started trips stay unlinked
        trip_id = session.current_trip_id or session.chat_trip_id
        if trip_id is None:
            trip_id = new_trip_id(session.user_id)
            session = self.store.update(session.user_id, {"chat_trip_id": trip_id})
            logger.info(f"User {session.user_id} started trip {trip_id}")

        result = await self.in_trip.provide_assistance(
            session.user_id,
            trip_id,
            message,
            current_location,
            session.profile(),
        )
        text = result.response.message if result.success else result.fallback.message

        return AssistantReply(
            message=text,
            mode=session.mode,
            suggestions=list(IN_TRIP_SUGGESTIONS),
            action=ReplyAction.IN_TRIP,
            in_trip_data=result,
            trip_id=trip_id,
        )

    async def _handle_post_trip(self, session: Session, message: str) -> AssistantReply:
        trip_id = new_trip_id(session.user_id)
        trip_data = self.extractor.extract_trip_data(message, session)
        feedback = self.extractor.extract_feedback(message)

        result = await self.post_trip.process_post_trip(session.user_id, trip_id, trip_data, feedback)

        self._remember_trip(session, trip_id, result)
        if result.success:
            text = f"🌟 Thanks for sharing your trip feedback!\n\n{result.trip_summary.overview}"
        else:
            text = result.fallback.message

        return AssistantReply(
            message=text,
            mode=session.mode,
            suggestions=list(POST_TRIP_SUGGESTIONS),
            action=ReplyAction.POST_TRIP,
            post_trip_data=result,
            trip_id=trip_id,
        )

    def _fallback_reply(self, session: Session) -> AssistantReply:
        emoji = TRAVEL_MODES[session.mode]["emoji"]
        return AssistantReply(
            message=f"I'm here to help you plan an amazing trip! {emoji} What destination interests you?",
            mode=session.mode,
            suggestions=suggestions_for(session.mode),
        )


# Global orchestrator instance
orchestrator: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """Get or create the global orchestrator."""
    global orchestrator
    if orchestrator is None:
        orchestrator = Orchestrator(store=SessionStore(
            ttl_seconds=settings.session_ttl_seconds,
            max_sessions=settings.max_sessions,
        ))
    return orchestrator
