"""Tests for the gateway client and the fallback layer."""
import asyncio

import pytest

from tripmind.errors import GatewayError, GatewayErrorKind, classify_error
from tripmind.models.pre_trip import VisaInfo
from tripmind.services.fallback import guarded_json, guarded_text
from tripmind.services.llm_client import parse_json_response


class TestGuardedText:
    """Test narrative text guarding."""

    @pytest.mark.asyncio
    async def test_success(self, scripted_gateway):
        result = await guarded_text(scripted_gateway(default="  Enjoy Rome!  "), "prompt", "fallback")

        assert result.value == "Enjoy Rome!"
        assert result.fallback_used is False

    @pytest.mark.asyncio
    async def test_failure_uses_fallback(self, failing_gateway):
        result = await guarded_text(failing_gateway, "prompt", "fallback")

        assert result.value == "fallback"
        assert result.fallback_used is True
        assert result.error == GatewayErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_blank_output_uses_fallback(self, scripted_gateway):
        result = await guarded_text(scripted_gateway(default="   "), "prompt", lambda: "built lazily")

        assert result.value == "built lazily"
        assert result.error == GatewayErrorKind.INVALID_RESPONSE


class TestGuardedJson:
    """Test schema-or-default decoding."""

    @pytest.mark.asyncio
    async def test_valid_object(self, scripted_gateway):
        gateway = scripted_gateway(default='{"summary": "Visa on arrival", "visaRequired": false, "fees": "$25"}')
        result = await guarded_json(gateway, "prompt", VisaInfo, VisaInfo())

        assert result.fallback_used is False
        assert result.value.visa_required is False
        assert result.value.fees == "$25"

    @pytest.mark.asyncio
    async def test_non_object_uses_default(self, scripted_gateway):
        default = VisaInfo(summary="default")
        result = await guarded_json(scripted_gateway(default='["not", "an", "object"]'), "prompt", VisaInfo, default)

        assert result.value is default
        assert result.fallback_used is True

    @pytest.mark.asyncio
    async def test_schema_mismatch_uses_default(self, scripted_gateway):
        gateway = scripted_gateway(default='{"visaRequired": "perhaps", "documents": {"a": 1}}')
        result = await guarded_json(gateway, "prompt", VisaInfo, lambda: VisaInfo(summary="default"))

        assert result.value.summary == "default"
        assert result.error == GatewayErrorKind.INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_scalar_coerced_to_list(self, scripted_gateway):
        """Test that a single string is accepted where a list is expected."""
        result = await guarded_json(scripted_gateway(default='{"documents": "Passport"}'), "prompt", VisaInfo, VisaInfo())

        assert result.value.documents == ["Passport"]


class TestGatewayClient:
    """Test parsing, error classification and the timeout."""

    def test_parse_json_variants(self):
        assert parse_json_response('{"a": 1}') == {"a": 1}
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
        assert parse_json_response('Sure! {"a": 1} Hope that helps.') == {"a": 1}
        assert parse_json_response("no json here") is None
        assert parse_json_response("") is None

    def test_classify_error(self):
        assert classify_error(asyncio.TimeoutError()) == GatewayErrorKind.TIMEOUT
        assert classify_error(GatewayError("x", kind=GatewayErrorKind.QUOTA)) == GatewayErrorKind.QUOTA
        assert classify_error(RuntimeError("429 rate limit exceeded")) == GatewayErrorKind.QUOTA
        assert classify_error(RuntimeError("boom")) == GatewayErrorKind.UNKNOWN

    def test_gateway_error_str(self):
        assert str(GatewayError("slow", kind=GatewayErrorKind.TIMEOUT)) == "[timeout] slow"

    @pytest.mark.asyncio
    async def test_timeout_raises_gateway_error(self, monkeypatch):
        """Test that a slow provider surfaces as a timeout GatewayError."""
        from tripmind.config import settings
        from tripmind.services.llm_client import LLMClient

        monkeypatch.setattr(settings, "llm_provider", "mock")
        client = LLMClient(timeout=0.01)

        async def slow_chat(*args, **kwargs):
            await asyncio.sleep(1)
            return "too late"

        monkeypatch.setattr(client._mock, "chat", slow_chat)

        with pytest.raises(GatewayError) as exc_info:
            await client.generate("hello")
        assert exc_info.value.kind == GatewayErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_mock_provider_answers_intent_prompts(self, monkeypatch):
        from tripmind.config import settings
        from tripmind.services.intent_classifier import IntentClassifier
        from tripmind.services.llm_client import LLMClient

        monkeypatch.setattr(settings, "llm_provider", "mock")
        intent = await IntentClassifier(LLMClient()).classify("there's an emergency, call an ambulance", "Rome")

        assert intent.type == "emergency"
        assert intent.urgency == "high"

    @pytest.mark.asyncio
    async def test_mock_feedback_analysis_uses_extractor_vocabulary(self):
        import json

        from tripmind.services import extractor, mock_llm
        from tripmind.services.post_trip import FEEDBACK_PROMPT

        def prompt(feedback):
            return FEEDBACK_PROMPT.format(
                destination="Rome", duration=4, budget="Not specified", feedback=feedback, rating="Not given",
            )

        mock = mock_llm.MockLLMClient()
        unhappy = json.loads(await mock.chat([{"role": "user", "content": prompt("awful hotel, we hated the food")}]))
        happy = json.loads(await mock.chat([{"role": "user", "content": prompt("a fantastic week")}]))

        assert mock_llm.NEGATIVE_WORDS is extractor.NEGATIVE_WORDS
        assert unhappy["satisfaction"] == 4
        assert unhappy["least_favorite_experiences"] == ["the food"]
        assert happy["satisfaction"] == 8
