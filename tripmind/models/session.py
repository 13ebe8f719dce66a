"""
Session management - Per-user conversational memory and the store that owns it.
"""
import asyncio
from collections.abc import MutableMapping
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import ConfigDict, Field

from .base import WireModel


class TravelMode(str, Enum):
    """Travel-party archetype that biases recommendations."""
    FAMILY = "family"
    FRIENDS = "friends"
    SOLO = "solo"
    SOLO_FEMALE = "solo_female"
    PETS = "pets"


# Display metadata and preference tags per travel mode
TRAVEL_MODES: dict[TravelMode, dict] = {
    TravelMode.FAMILY: {
        "name": "Family Mode",
        "description": "Kid-friendly activities, family restaurants, safety-first planning",
        "emoji": "👨‍👩‍👧‍👦",
        "preferences": ["family-friendly", "safe", "educational", "comfortable"],
    },
    TravelMode.FRIENDS: {
        "name": "Friends Mode",
        "description": "Adventure activities, nightlife, budget-friendly options",
        "emoji": "👥",
        "preferences": ["adventure", "nightlife", "budget", "social"],
    },
    TravelMode.SOLO: {
        "name": "Solo Traveler",
        "description": "Flexible itineraries, social opportunities, budget-conscious options",
        "emoji": "🎒",
        "preferences": ["flexible", "social", "budget", "adventure", "cultural"],
    },
    TravelMode.SOLO_FEMALE: {
        "name": "Solo Female Traveler",
        "description": "Safety-first itineraries, women-friendly places, emergency features",
        "emoji": "👩‍🦰",
        "preferences": ["safe", "women-friendly", "well-lit", "public-transport"],
    },
    TravelMode.PETS: {
        "name": "Pet-Friendly Mode",
        "description": "Pet-friendly stays, parks and restaurants that welcome animals",
        "emoji": "🐕",
        "preferences": ["pet-friendly", "outdoor", "parks", "spacious"],
    },
}


class ChatMessage(WireModel):
    """A single message in the conversation."""
    role: str = Field(..., description="'user' or 'assistant'")
    content: str = Field(..., description="Message content")
    timestamp: datetime = Field(default_factory=datetime.now)


class UserProfile(WireModel):
    """Traveler details forwarded to the phase handlers, with placeholders for gaps."""
    nationality: str = "Not specified"
    age: str = "Not specified"
    medical_conditions: str = "None"
    allergies: str = "None"
    dietary: str = "Not specified"
    gender: str = "Not specified"
    mode: TravelMode = TravelMode.FRIENDS
    budget: str = "Not specified"
    group_size: int = 1


class Session(WireModel):
    """Conversational memory for one user."""
    model_config = ConfigDict(validate_assignment=True)

    user_id: str = Field(..., description="Owner of the session")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    mode: TravelMode = Field(
        default=TravelMode.FRIENDS,
        description="Current travel mode"
    )

    # Free-text traveler details, filled from conversation
    budget_hint: Optional[str] = None
    dietary: Optional[str] = None
    group_size: int = Field(default=1, ge=1)
    nationality: Optional[str] = None
    age: Optional[str] = None
    medical_conditions: Optional[str] = None
    allergies: Optional[str] = None
    gender: Optional[str] = None

    # Learned after trips
    preferences: dict[str, Any] = Field(
        default_factory=dict,
        description="Learned preference values keyed by name"
    )
    trip_history: list[str] = Field(
        default_factory=list,
        description="Trip ids of processed trips, oldest first"
    )
    current_trip_id: Optional[str] = Field(
        None,
        description="Active trip, if the user is travelling"
    )
    chat_trip_id: Optional[str] = Field(
        None,
        description="Trip id reused for in-trip chat messages when no trip is linked"
    )

    last_destination: Optional[str] = None
    origin: Optional[str] = None

    messages: list[ChatMessage] = Field(
        default_factory=list,
        description="Chat history"
    )

    def add_message(self, role: str, content: str) -> ChatMessage:
        """Add a message to the conversation."""
        msg = ChatMessage(role=role, content=content)
        self.messages.append(msg)
        self.updated_at = datetime.now()
        return msg

    def add_trip(self, trip_id: str):
        """Record a processed trip in the history."""
        if trip_id not in self.trip_history:
            self.trip_history.append(trip_id)
            self.updated_at = datetime.now()

    def profile(self) -> UserProfile:
        """Snapshot of traveler details with placeholders for unknown values."""
        return UserProfile(
            nationality=self.nationality or "Not specified",
            age=self.age or "Not specified",
            medical_conditions=self.medical_conditions or "None",
            allergies=self.allergies or "None",
            dietary=self.dietary or "Not specified",
            gender=self.gender or "Not specified",
            mode=self.mode,
            budget=self.budget_hint or "Not specified",
            group_size=self.group_size,
        )


class SessionStore:
    """
    Keyed session storage with per-user locks.

    The backing mapping is injected so an external key-value store can replace
    the default in-process dict. Retention is off unless ``ttl_seconds`` or
    ``max_sessions`` is given.
    """

    def __init__(
        self,
        backend: Optional[MutableMapping[str, Session]] = None,
        ttl_seconds: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._sessions: MutableMapping[str, Session] = backend if backend is not None else {}
        self._locks: dict[str, asyncio.Lock] = {}
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def get(self, user_id: str) -> Optional[Session]:
        """Get a session by user id."""
        return self._sessions.get(user_id)

    def get_or_create(self, user_id: str) -> Session:
        """Return the user's session, creating one with defaults if absent."""
        session = self._sessions.get(user_id)
        if session is None:
            self.evict_expired(reserve=1)
            now = self._clock()
            session = Session(user_id=user_id, created_at=now, updated_at=now)
            self._sessions[user_id] = session
        return session

    def update(self, user_id: str, patch: dict[str, Any]) -> Session:
        """
        Merge ``patch`` into the user's session.

        Scalar fields are overwritten, mapping fields are merged key by key.
        Unknown field names raise ``KeyError``.
        """
        session = self.get_or_create(user_id)
        for key, value in patch.items():
            if key not in Session.model_fields or key in ("user_id", "created_at"):
                raise KeyError(f"Unknown session field: {key}")
            current = getattr(session, key)
            if isinstance(current, dict) and isinstance(value, dict):
                value = {**current, **value}
            setattr(session, key, value)
        session.updated_at = self._clock()
        self._sessions[user_id] = session
        return session

    def lock(self, user_id: str) -> asyncio.Lock:
        """Lock serializing all work on one user's session."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def evict_expired(self, now: Optional[datetime] = None, reserve: int = 0) -> list[str]:
        """
        Drop idle sessions past the TTL, then the least recently updated ones
        above ``max_sessions`` (keeping ``reserve`` free slots). Sessions whose
        lock is held are kept.
        """
        now = now or self._clock()
        evicted = []

        def is_busy(uid: str) -> bool:
            lock = self._locks.get(uid)
            return lock is not None and lock.locked()

        if self.ttl_seconds is not None:
            cutoff = now - timedelta(seconds=self.ttl_seconds)
            for uid, session in list(self._sessions.items()):
                if session.updated_at < cutoff and not is_busy(uid):
                    evicted.append(uid)

        for uid in evicted:
            self._drop(uid)

        if self.max_sessions is not None and len(self._sessions) + reserve > self.max_sessions:
            by_age = sorted(self._sessions.items(), key=lambda item: item[1].updated_at)
            overflow = len(self._sessions) + reserve - self.max_sessions
            for uid, _ in by_age:
                if overflow <= 0:
                    break
                if is_busy(uid):
                    continue
                self._drop(uid)
                evicted.append(uid)
                overflow -= 1

        return evicted

    def _drop(self, user_id: str):
        # Locks outlive their session: a waiter may still hold a reference
        self._sessions.pop(user_id, None)
