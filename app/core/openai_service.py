"""Structured JSON completions on top of the OpenAI chat API.

``chat_json`` performs exactly one call: it asks ``model`` for a reply,
parses it as JSON and validates it against a pydantic schema. Retrying with a
fallback model is left to the callers, whose policies differ.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Literal, Sequence, Type, TypedDict, TypeVar

from openai import OpenAI
from pydantic import BaseModel, ValidationError

from app.core.config import settings

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

RAW_PREVIEW_MAX_CHARS = 2000
MAX_REPORTED_ISSUES = 5


class ChatMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class CompletionError(Exception):
    """Base class for failures of a single structured completion call."""


class EmptyResponse(CompletionError):
    pass


class NonJsonResponse(CompletionError):
    pass


class SchemaMismatch(CompletionError):
    pass


_openai_client: OpenAI | None = None
_openai_client_lock = threading.Lock()


def get_openai_client() -> OpenAI:
    """Return the shared OpenAI client, created on first use.

    The SDK's own retries are disabled: the fallback-model retry of the
    generation services is the only retry policy.
    """

    global _openai_client
    with _openai_client_lock:
        if _openai_client is None:
            if not settings.OPENAI_API_KEY:
                raise ConnectionError("Missing env: OPENAI_API_KEY")
            _openai_client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
                max_retries=0,
            )
            logger.info("OpenAI client configured (timeout=%ss).", settings.OPENAI_TIMEOUT_SECONDS)
        return _openai_client


def debug_raw_enabled() -> bool:
    return bool(settings.OPENAI_DEBUG_RAW_RESPONSE)


def clip(text: str, max_chars: int = RAW_PREVIEW_MAX_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "…(truncated)"


def format_validation_issues(exc: ValidationError, limit: int = MAX_REPORTED_ISSUES) -> str:
    issues = []
    for error in exc.errors()[:limit]:
        path = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        issues.append(f"{path}: {error.get('msg', 'invalid')}")
    return " | ".join(issues)


def chat_json(
    model: str,
    messages: Sequence[ChatMessage],
    schema: Type[SchemaT],
    *,
    client: Any = None,
    include_raw: bool | None = None,
) -> SchemaT:
    """Run one chat completion and return the reply validated by ``schema``.

    Raises :class:`EmptyResponse`, :class:`NonJsonResponse` or
    :class:`SchemaMismatch`. The raw payload is embedded in the message only
    when ``include_raw`` (default: ``OPENAI_DEBUG_RAW_RESPONSE``) is set.
    """

    client = client or get_openai_client()
    if include_raw is None:
        include_raw = debug_raw_enabled()

    logger.info("Calling OpenAI model %s (%s)", model, schema.__name__)
    completion = client.chat.completions.create(model=model, messages=list(messages))

    choices = getattr(completion, "choices", None) or []
    content = choices[0].message.content if choices else None
    if not content:
        raise EmptyResponse("Empty OpenAI response")

    try:
        data = json.loads(content)
    except (ValueError, TypeError) as exc:
        message = "OpenAI returned non-JSON"
        if include_raw:
            message = f"{message}. raw={clip(content)}"
        raise NonJsonResponse(message) from exc

    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        summary = format_validation_issues(exc)
        raw = f" raw={clip(json.dumps(data, ensure_ascii=False))}" if include_raw else ""
        raise SchemaMismatch(f"OpenAI response schema mismatch. {summary}.{raw}") from exc
