"""Tests for trip phase classification."""
from tripmind.models.session import Session
from tripmind.services.phase_classifier import TripPhase, classify_phase


class TestPhaseClassifier:
    """Test keyword priority and active-trip handling."""

    def test_pre_trip_wins_over_in_trip(self):
        """Test that pre-trip vocabulary beats 'help'."""
        assert classify_phase("I need help, what visa do I need for Japan?") == TripPhase.PRE_TRIP

    def test_active_trip_selects_in_trip(self):
        """Test that an active trip routes neutral messages in-trip."""
        session = Session(user_id="u1", current_trip_id="u1_1700000000000")

        assert classify_phase("what a lovely day", session) == TripPhase.IN_TRIP

    def test_active_trip_does_not_override_pre_trip(self):
        session = Session(user_id="u1", current_trip_id="u1_1700000000000")

        assert classify_phase("is my travel insurance valid?", session) == TripPhase.PRE_TRIP

    def test_in_trip_keywords(self):
        assert classify_phase("I'm lost near the station") == TripPhase.IN_TRIP
        assert classify_phase("any cafes nearby?") == TripPhase.IN_TRIP

    def test_post_trip(self):
        assert classify_phase("trip was amazing, loved Paris") == TripPhase.POST_TRIP
        assert classify_phase("here is my review") == TripPhase.IN_TRIP

    def test_planning_is_the_default(self):
        assert classify_phase("plan a 5 day trip to Tokyo") == TripPhase.PLANNING
        assert classify_phase("hello!") == TripPhase.PLANNING

    def test_substring_matching(self):
        """Test that keywords match inside longer words."""
        assert classify_phase("where should I go next?") == TripPhase.IN_TRIP
        assert classify_phase("I know a good place") == TripPhase.IN_TRIP
