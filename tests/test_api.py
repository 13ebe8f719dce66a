"""Tests for the HTTP API."""
import pytest
from fastapi.testclient import TestClient

from tripmind.main import app
from tripmind.services.in_trip import InTripAssistant
from tripmind.services.orchestrator import Orchestrator


@pytest.fixture
def client(monkeypatch, failing_gateway, location_service):
    orchestrator = Orchestrator(
        gateway=failing_gateway,
        in_trip=InTripAssistant(failing_gateway, location_service=location_service()),
    )
    monkeypatch.setattr("tripmind.services.orchestrator.orchestrator", orchestrator)
    with TestClient(app) as test_client:
        yield test_client


class TestChat:
    """Test the chat endpoint."""

    def test_chat_reply_uses_camel_case(self, client):
        response = client.post("/api/chat", json={"userId": "u1", "message": "plan a 5 day trip to Tokyo"})

        assert response.status_code == 200
        data = response.json()
        assert data["action"] == "itinerary"
        assert data["mode"] == "friends"
        assert data["itinerary"]["travelMode"] == "friends"
        assert data["itinerary"]["totalCost"] == "$750 - $1125"

    def test_chat_accepts_snake_case(self, client):
        response = client.post("/api/chat", json={"user_id": "u1", "message": "hello"})

        assert response.status_code == 200

    def test_chat_missing_fields(self, client):
        """Test that blank fields are rejected with 400."""
        response = client.post("/api/chat", json={"userId": "u1", "message": "  "})

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields: message"

    def test_in_trip_chat_keeps_intent_keys(self, client):
        response = client.post(
            "/api/chat",
            json={"userId": "u1", "message": "I'm lost", "currentLocation": "Rome"},
        )
        data = response.json()

        assert data["action"] == "in-trip"
        assert data["inTripData"]["intent"]["action_needed"] == "general assistance"
        assert data["tripId"]

    def test_session_endpoint(self, client):
        client.post("/api/chat", json={"userId": "u1", "message": "hello"})

        response = client.get("/api/session/u1")

        assert response.status_code == 200
        assert len(response.json()["messages"]) == 2
        assert client.get("/api/session/nobody").status_code == 404


class TestSetMode:
    def test_set_mode(self, client):
        response = client.post("/api/set-mode", json={"userId": "u1", "mode": "solo_female"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["mode"] == "solo_female"
        assert data["modeInfo"]["name"] == "Solo Female Traveler"

    def test_invalid_mode(self, client):
        response = client.post("/api/set-mode", json={"userId": "u1", "mode": "backpacker"})

        assert response.status_code == 400


class TestPhaseEndpoints:
    """Test the explicit phase endpoints."""

    def test_pre_trip_planning(self, client):
        response = client.post("/api/pre-trip-planning", json={
            "userId": "u1",
            "tripDetails": {"destination": "Rome", "departureDate": "2026-07-01"},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["preTripInfo"]["visa"]["fallbackUsed"] is True
        assert data["preTripInfo"]["packingList"]["seasonal"] == ["Light clothing", "Sunscreen", "Hat"]
        assert data["timeline"][0]["dueDate"] == "2026-05-06"

    def test_pre_trip_requires_details(self, client):
        response = client.post("/api/pre-trip-planning", json={"userId": "u1"})

        assert response.status_code == 400
        assert "tripDetails" in response.json()["detail"]

    def test_in_trip_assistance(self, client):
        response = client.post("/api/in-trip-assistance", json={
            "userId": "u1",
            "tripId": "trip-1",
            "message": "where am I?",
            "currentLocation": "Oslo",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["response"]["message"] == "I'm here to help you in Oslo! How can I assist you today?"
        assert len(data["emergencyContacts"]) == 5

    def test_post_trip_feedback_and_profile(self, client):
        """Test feedback processing followed by the learned profile."""
        response = client.post("/api/post-trip-feedback", json={
            "userId": "u1",
            "tripId": "trip-1",
            "tripData": {"destination": "Rome", "duration": 4},
            "feedback": {"message": "Wonderful food", "rating": 9},
        })

        assert response.status_code == 200
        assert response.json()["feedbackAnalysis"]["satisfaction"] == 9

        profile = client.get("/api/user-travel-profile/u1").json()
        assert profile["totalTrips"] == 1
        assert profile["travelPatterns"]["averageTripLength"] == "4 days"

    def test_post_trip_missing_feedback(self, client):
        response = client.post("/api/post-trip-feedback", json={
            "userId": "u1",
            "tripId": "trip-1",
            "tripData": {"destination": "Rome"},
        })

        assert response.status_code == 400

    def test_end_trip(self, client):
        client.post("/api/in-trip-assistance", json={"userId": "u1", "tripId": "trip-1", "message": "hi"})

        response = client.post("/api/trips/trip-1/end", json={"userId": "u1"})

        assert response.status_code == 200
        assert response.json()["status"] == "closed"
        assert client.post("/api/trips/unknown/end", json={"userId": "u1"}).status_code == 404


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
