"""
Error types shared by the gateway and the phase handlers.
"""
import asyncio
from typing import Optional

import httpx
import openai


class GatewayErrorKind:
    """Classification of text-generation failures."""

    TIMEOUT = "timeout"
    QUOTA = "quota"
    TRANSPORT = "transport"
    STATUS = "status"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


class GatewayError(Exception):
    """Raised when the text-generation service cannot produce a usable reply."""

    def __init__(self, message: str, kind: str = GatewayErrorKind.UNKNOWN, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause

    def __str__(self) -> str:
        return f"[{self.kind}] {super().__str__()}"


def classify_error(error: BaseException) -> str:
    """Classify an exception into a GatewayErrorKind."""
    if isinstance(error, GatewayError):
        return error.kind
    if isinstance(error, (asyncio.TimeoutError, openai.APITimeoutError, httpx.TimeoutException)):
        return GatewayErrorKind.TIMEOUT
    if isinstance(error, openai.RateLimitError):
        return GatewayErrorKind.QUOTA
    if isinstance(error, (openai.APIConnectionError, httpx.TransportError)):
        return GatewayErrorKind.TRANSPORT
    if isinstance(error, openai.APIStatusError):
        return GatewayErrorKind.STATUS

    error_msg = str(error).lower()
    if "rate" in error_msg or "quota" in error_msg or "429" in error_msg:
        return GatewayErrorKind.QUOTA
    elif "timeout" in error_msg or "timed out" in error_msg:
        return GatewayErrorKind.TIMEOUT
    elif "connection" in error_msg or "network" in error_msg:
        return GatewayErrorKind.TRANSPORT
    elif "json" in error_msg or "parse" in error_msg:
        return GatewayErrorKind.INVALID_RESPONSE
    return GatewayErrorKind.UNKNOWN
