"""
Fallback layer - Every call into the text-generation gateway goes through here.

Failures and malformed output become a deterministic value of the shape the
caller asked for, tagged with ``fallback_used`` so handlers can report it.
"""
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union
import logging

from pydantic import BaseModel, ValidationError

from .llm_client import TextGateway, parse_json_response
from ..errors import GatewayErrorKind, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class Guarded(Generic[T]):
    """Value produced by a guarded gateway call."""
    value: T
    fallback_used: bool = False
    error: Optional[str] = None


def _resolve(default: Union[T, Callable[[], T]]) -> T:
    return default() if callable(default) else default


async def guarded_text(
    gateway: TextGateway,
    prompt: str,
    fallback: Union[str, Callable[[], str]],
    *,
    system: Optional[str] = None,
    label: str = "text",
) -> Guarded[str]:
    """Narrative text from the gateway, or ``fallback`` on any failure."""
    try:
        text = await gateway.generate(prompt, system=system)
    except Exception as e:
        logger.warning(f"Gateway call '{label}' failed ({classify_error(e)}): {e}")
        return Guarded(_resolve(fallback), fallback_used=True, error=classify_error(e))

    if not isinstance(text, str) or not text.strip():
        logger.warning(f"Gateway call '{label}' returned no text")
        return Guarded(_resolve(fallback), fallback_used=True, error=GatewayErrorKind.INVALID_RESPONSE)
    return Guarded(text.strip())


async def guarded_json(
    gateway: TextGateway,
    prompt: str,
    schema: type[ModelT],
    default: Union[ModelT, Callable[[], ModelT]],
    *,
    system: Optional[str] = None,
    label: str = "json",
) -> Guarded[ModelT]:
    """
    Structured object from the gateway, validated against ``schema``.

    Anything that is not a JSON object matching the schema yields ``default``.
    """
    try:
        text = await gateway.generate(prompt, system=system, json_mode=True)
    except Exception as e:
        logger.warning(f"Gateway call '{label}' failed ({classify_error(e)}): {e}")
        return Guarded(_resolve(default), fallback_used=True, error=classify_error(e))

    data = parse_json_response(text) if isinstance(text, str) else None
    if not isinstance(data, dict):
        logger.warning(f"Gateway call '{label}' returned no JSON object")
        return Guarded(_resolve(default), fallback_used=True, error=GatewayErrorKind.INVALID_RESPONSE)

    try:
        return Guarded(schema.model_validate(data))
    except ValidationError as e:
        logger.warning(f"Gateway call '{label}' failed schema validation: {e.error_count()} error(s)")
        return Guarded(_resolve(default), fallback_used=True, error=GatewayErrorKind.INVALID_RESPONSE)
