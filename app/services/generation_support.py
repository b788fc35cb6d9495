# Fichier: app/services/generation_support.py
"""Helpers shared by the generation services."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from app.core.model_policy import TaskModels
from app.core.openai_service import clip, debug_raw_enabled

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class GenerationError(Exception):
    """Failure of a generation service, carrying the HTTP status to answer with."""

    message: str
    status_code: int = 500

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.message


def run_with_fallback(task_models: TaskModels, call: Callable[[str], T]) -> T:
    """Run ``call`` with the primary model, then once with a distinct fallback model.

    When no distinct fallback is configured the first error propagates as is.
    """

    try:
        return call(task_models.model)
    except Exception as exc:
        if not task_models.has_distinct_fallback:
            raise
        logger.warning(
            "Model %s failed (%s). Retrying with fallback model %s.",
            task_models.model,
            exc,
            task_models.fallback_model,
        )
        return call(task_models.fallback_model)


def debug_details(payload: dict[str, Any]) -> str:
    """`` details=<clipped json>`` when raw diagnostics are enabled, else an empty string."""

    if not debug_raw_enabled():
        return ""
    return f" details={clip(json.dumps(payload, ensure_ascii=False, default=str))}"
