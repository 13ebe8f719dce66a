"""
API Routes for the trip assistant.
"""
from fastapi import APIRouter, HTTPException
from pydantic import Field
from typing import Optional
import logging

from ..models.base import WireModel
from ..models.in_trip import InTripResult
from ..models.post_trip import PostTripResult, TravelProfile
from ..models.pre_trip import PreTripResult, TripDetails
from ..models.reply import AssistantReply
from ..models.session import Session, TravelMode, UserProfile, TRAVEL_MODES
from ..models.trip import Feedback, TripData, TripState
from ..services.orchestrator import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["trip-assistant"])


# Request/Response Models
class ChatRequest(WireModel):
    user_id: str = ""
    message: str = ""
    current_location: Optional[str] = None


class SetModeRequest(WireModel):
    user_id: str = ""
    mode: str = ""


class SetModeResponse(WireModel):
    success: bool
    mode: TravelMode
    mode_info: dict


class PreTripRequest(WireModel):
    user_id: str = ""
    trip_details: Optional[TripDetails] = None
    user_profile: Optional[UserProfile] = None


class InTripRequest(WireModel):
    user_id: str = ""
    trip_id: str = ""
    message: str = ""
    current_location: Optional[str] = None
    user_profile: Optional[UserProfile] = None


class FeedbackIn(WireModel):
    message: str = ""
    comments: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=10)


class PostTripRequest(WireModel):
    user_id: str = ""
    trip_id: str = ""
    trip_data: Optional[TripData] = None
    feedback: Optional[FeedbackIn] = None


class EndTripRequest(WireModel):
    user_id: str = ""


def require(**fields):
    """400 for any missing or blank field."""
    missing = [name for name, value in fields.items() if value is None or (isinstance(value, str) and not value.strip())]
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required fields: {', '.join(missing)}"
        )


# Endpoints

@router.post("/chat", response_model=AssistantReply)
async def chat(request: ChatRequest):
    """Send a chat message and get the assistant's reply."""
    require(userId=request.user_id, message=request.message)

    try:
        return await get_orchestrator().handle_message(
            request.user_id,
            request.message,
            request.current_location,
        )
    except Exception as e:
        logger.exception("Chat request failed")
        raise HTTPException(status_code=500, detail=f"Error processing message: {str(e)}")


@router.post("/set-mode", response_model=SetModeResponse)
async def set_mode(request: SetModeRequest):
    """Switch the user's travel mode."""
    require(userId=request.user_id, mode=request.mode)
    try:
        mode = TravelMode(request.mode)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid travel mode: {request.mode}")

    session = await get_orchestrator().set_mode(request.user_id, mode)
    return SetModeResponse(success=True, mode=session.mode, mode_info=TRAVEL_MODES[mode])


@router.post("/pre-trip-planning", response_model=PreTripResult)
async def pre_trip_planning(request: PreTripRequest):
    """Build a pre-departure plan for explicit trip details."""
    require(userId=request.user_id, tripDetails=request.trip_details)
    return await get_orchestrator().plan_pre_trip(
        request.user_id,
        request.trip_details,
        request.user_profile,
    )


@router.post("/in-trip-assistance", response_model=InTripResult)
async def in_trip_assistance(request: InTripRequest):
    """Help a traveler during a trip."""
    require(userId=request.user_id, tripId=request.trip_id, message=request.message)
    return await get_orchestrator().assist_in_trip(
        request.user_id,
        request.trip_id,
        request.message,
        request.current_location,
        request.user_profile,
    )


@router.post("/post-trip-feedback", response_model=PostTripResult)
async def post_trip_feedback(request: PostTripRequest):
    """Process feedback on a finished trip."""
    require(userId=request.user_id, tripId=request.trip_id, tripData=request.trip_data, feedback=request.feedback)

    text = request.feedback.comments or request.feedback.message
    feedback = Feedback(
        message=text,
        comments=text,
        rating=request.feedback.rating,
    )
    return await get_orchestrator().process_feedback(
        request.user_id,
        request.trip_id,
        request.trip_data,
        feedback,
    )


@router.post("/trips/{trip_id}/end", response_model=TripState)
async def end_trip(trip_id: str, request: EndTripRequest):
    """Close an active trip."""
    require(userId=request.user_id)
    trip = await get_orchestrator().end_trip(request.user_id, trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return trip


@router.get("/user-travel-profile/{user_id}", response_model=TravelProfile)
async def user_travel_profile(user_id: str):
    """Get everything learned about a traveler."""
    return get_orchestrator().post_trip.get_user_travel_profile(user_id)


@router.get("/session/{user_id}", response_model=Session)
async def get_session(user_id: str):
    """Get a user's session memory."""
    session = get_orchestrator().store.get(user_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
