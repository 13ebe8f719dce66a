"""
LLM Client - Text-generation gateway used by every phase handler.
Talks to any OpenAI-compatible provider (OpenAI, Mistral, OpenRouter, Ollama)
or to the offline mock.
"""
from openai import AsyncOpenAI
from typing import Any, Iterator, Optional, Protocol
import asyncio
import json
import logging
import re

from ..config import get_llm_config, settings
from ..errors import GatewayError, GatewayErrorKind, classify_error

logger = logging.getLogger(__name__)

# Providers known to accept response_format={"type": "json_object"}
JSON_MODE_PROVIDERS = ("openai", "mistral")

FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class TextGateway(Protocol):
    """Anything that turns a prompt into text, raising GatewayError on failure."""

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        ...


class LLMClient:
    """Gateway over an OpenAI-compatible chat API, bounded by a timeout and never retried."""

    def __init__(self, timeout: Optional[float] = None):
        config = get_llm_config()
        self.provider = settings.llm_provider
        self.timeout = timeout if timeout is not None else config["timeout"]
        self.temperature = config["temperature"]
        self.max_tokens = config["max_tokens"]

        if self.provider == "mock":
            from .mock_llm import MockLLMClient
            self._mock = MockLLMClient()
            self.client = None
            self.model = self._mock.model
        else:
            self._mock = None
            self.client = AsyncOpenAI(api_key=config["api_key"], base_url=config["base_url"], max_retries=0)
            self.model = config["model"]

        logger.info(f"LLM gateway ready: provider={self.provider}, model={self.model}, timeout={self.timeout}")

    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        """Single-turn generation from a prompt and optional system instruction."""
        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        return await self.chat(messages, json_mode=json_mode)

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        """
        Run one chat completion and return its text.

        Raises GatewayError for timeouts, provider errors and empty output.
        """
        try:
            content = await asyncio.wait_for(
                self._complete(messages, temperature, max_tokens, json_mode),
                timeout=self.timeout,
            )
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"LLM request failed: {e!r}", kind=classify_error(e), cause=e) from e

        if not content or not content.strip():
            raise GatewayError("LLM returned an empty response", kind=GatewayErrorKind.INVALID_RESPONSE)
        return content

    async def _complete(
        self,
        messages: list[dict],
        temperature: Optional[float],
        max_tokens: Optional[int],
        json_mode: bool
    ) -> Optional[str]:
        if self._mock is not None:
            return await self._mock.chat(messages, temperature, max_tokens, json_mode)

        request = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if json_mode and self.provider in JSON_MODE_PROVIDERS:
            request["response_format"] = {"type": "json_object"}

        completion = await self.client.chat.completions.create(**request)
        return completion.choices[0].message.content


def _json_candidates(text: str) -> Iterator[str]:
    """Whole text, then a fenced block, then the outermost braces."""
    yield text
    fenced = FENCED_JSON.search(text)
    if fenced:
        yield fenced.group(1).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        yield text[start:end + 1]


def parse_json_response(text: Optional[str]) -> Optional[Any]:
    """JSON recovered from model output, or None when nothing parses."""
    if not text:
        return None
    for candidate in _json_candidates(text.strip()):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


# Global LLM client instance
llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the global LLM client."""
    global llm_client
    if llm_client is None:
        llm_client = LLMClient()
    return llm_client
