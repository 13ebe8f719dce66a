"""Shared fakes for the test suite."""
import pytest

from tripmind.errors import GatewayError, GatewayErrorKind


class FailingGateway:
    """Gateway whose every call fails."""

    def __init__(self, kind: str = GatewayErrorKind.TRANSPORT):
        self.kind = kind
        self.calls = 0

    async def generate(self, prompt, *, system=None, json_mode=False):
        self.calls += 1
        raise GatewayError("service unavailable", kind=self.kind)


class ScriptedGateway:
    """Answers with the first scripted reply whose marker appears in the prompt."""

    def __init__(self, replies=None, default="Here is some helpful guidance."):
        self.replies = replies or {}
        self.default = default
        self.prompts = []

    async def generate(self, prompt, *, system=None, json_mode=False):
        self.prompts.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        if isinstance(self.default, Exception):
            raise self.default
        return self.default


class FakeLocationService:
    """Location service with fixed coordinates and places."""

    def __init__(self, coordinates=None, places=None, fail=False):
        self.coordinates = coordinates or {}
        self.places = places or {}
        self.fail = fail

    async def geocode(self, place):
        if self.fail:
            raise RuntimeError("lookup failed")
        return self.coordinates.get(place)

    async def nearby_places(self, location, category, limit=5):
        if self.fail:
            raise RuntimeError("lookup failed")
        return self.places.get(category, [])[:limit]


@pytest.fixture
def failing_gateway():
    return FailingGateway()


@pytest.fixture
def scripted_gateway():
    """Factory for scripted gateways."""
    return ScriptedGateway


@pytest.fixture
def location_service():
    """Factory for fake location services."""
    return FakeLocationService
