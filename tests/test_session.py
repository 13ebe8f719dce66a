"""Tests for session memory and the session store."""
import asyncio
from datetime import datetime, timedelta

import pytest

from tripmind.models.session import Session, SessionStore, TravelMode


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class TestSession:
    """Test session defaults and helpers."""

    def test_new_session_defaults(self):
        """Test that a new user gets friends mode and no history."""
        store = SessionStore()
        session = store.get_or_create("new-user")

        assert session.mode == TravelMode.FRIENDS
        assert session.trip_history == []
        assert session.current_trip_id is None
        assert session.group_size == 1

    def test_add_message(self):
        session = Session(user_id="u1")

        session.add_message("user", "Hello")
        session.add_message("assistant", "Hi there!")

        assert len(session.messages) == 2
        assert session.messages[1].content == "Hi there!"

    def test_add_trip_is_idempotent(self):
        session = Session(user_id="u1")

        session.add_trip("t1")
        session.add_trip("t1")

        assert session.trip_history == ["t1"]

    def test_profile_placeholders(self):
        """Test that unknown details become placeholders."""
        profile = Session(user_id="u1", dietary="vegan").profile()

        assert profile.dietary == "vegan"
        assert profile.nationality == "Not specified"
        assert profile.allergies == "None"

    def test_camel_case_serialization(self):
        data = Session(user_id="u1").model_dump(by_alias=True)

        assert "userId" in data
        assert "currentTripId" in data


class TestSessionStore:
    """Test storage, merging and eviction."""

    def test_one_session_per_user(self):
        store = SessionStore()

        assert store.get_or_create("u1") is store.get_or_create("u1")
        assert len(store) == 1
        assert store.get("missing") is None

    def test_update_overwrites_scalars_and_merges_mappings(self):
        """Test patch semantics."""
        store = SessionStore()
        store.update("u1", {"mode": TravelMode.FAMILY, "preferences": {"a": 1}})
        session = store.update("u1", {"preferences": {"b": 2}, "dietary": "halal"})

        assert session.mode == TravelMode.FAMILY
        assert session.preferences == {"a": 1, "b": 2}
        assert session.dietary == "halal"

    def test_update_rejects_unknown_fields(self):
        store = SessionStore()

        with pytest.raises(KeyError):
            store.update("u1", {"favorite_color": "blue"})
        with pytest.raises(KeyError):
            store.update("u1", {"user_id": "someone-else"})

    def test_injected_backend(self):
        """Test that the store writes through to an injected mapping."""
        backend = {}
        store = SessionStore(backend=backend)
        store.get_or_create("u1")

        assert "u1" in backend

    def test_lock_is_per_user(self):
        store = SessionStore()

        assert store.lock("u1") is store.lock("u1")
        assert store.lock("u1") is not store.lock("u2")

    def test_no_eviction_by_default(self):
        clock = FakeClock(datetime(2026, 1, 1))
        store = SessionStore(clock=clock)
        store.get_or_create("u1")
        clock.advance(10 ** 7)

        assert store.evict_expired() == []
        assert "u1" in store

    def test_ttl_eviction(self):
        """Test that idle sessions past the TTL are dropped."""
        clock = FakeClock(datetime(2026, 1, 1))
        store = SessionStore(ttl_seconds=60, clock=clock)
        store.get_or_create("idle")
        clock.advance(30)
        store.get_or_create("recent")
        clock.advance(45)

        assert store.evict_expired() == ["idle"]
        assert "recent" in store

    def test_capacity_eviction_drops_least_recent(self):
        """Test that creating a session over capacity evicts the oldest one."""
        clock = FakeClock(datetime(2026, 1, 1))
        store = SessionStore(max_sessions=2, clock=clock)
        store.get_or_create("first")
        clock.advance(1)
        store.get_or_create("second")
        clock.advance(1)
        store.get_or_create("third")

        assert len(store) == 2
        assert "first" not in store
        assert "third" in store

    @pytest.mark.asyncio
    async def test_busy_session_not_evicted(self):
        """Test that a session whose lock is held survives eviction."""
        clock = FakeClock(datetime(2026, 1, 1))
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.get_or_create("busy")
        clock.advance(60)

        async with store.lock("busy"):
            assert store.evict_expired() == []

        assert store.evict_expired() == ["busy"]

    @pytest.mark.asyncio
    async def test_eviction_keeps_lock_for_waiters(self):
        """Test that a waiter queued on an evicted session's lock still excludes later callers."""
        clock = FakeClock(datetime(2026, 1, 1))
        store = SessionStore(ttl_seconds=10, clock=clock)
        store.get_or_create("u1")
        lock = store.lock("u1")
        order = []

        async def waiter():
            async with store.lock("u1"):
                order.append("waiter")

        await lock.acquire()
        task = asyncio.create_task(waiter())
        await asyncio.sleep(0)
        lock.release()
        clock.advance(60)

        assert store.evict_expired() == ["u1"]
        assert store.lock("u1") is lock
        async with store.lock("u1"):
            order.append("later")
        await task

        assert order == ["waiter", "later"]
