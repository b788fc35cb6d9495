"""Per-task model selection for the OpenAI calls.

The orchestrators never read the environment themselves: they receive a
:class:`ModelPolicy` at construction time (``get_model_policy()`` by default),
which keeps the tests free to inject stub model ids.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings, settings as default_settings


@dataclass(frozen=True, slots=True)
class TaskModels:
    model: str
    fallback_model: str | None = None

    @property
    def has_distinct_fallback(self) -> bool:
        return bool(self.fallback_model) and self.fallback_model != self.model


@dataclass(frozen=True, slots=True)
class GradeModels(TaskModels):
    fallback_on_needs_fix: bool = True


@dataclass(frozen=True, slots=True)
class ModelPolicy:
    generate: TaskModels
    autofill: TaskModels
    grade: GradeModels
    tts: TaskModels


def get_model_policy(config: Settings | None = None) -> ModelPolicy:
    config = config or default_settings
    return ModelPolicy(
        generate=TaskModels(config.OPENAI_MODEL_GENERATE, config.OPENAI_MODEL_GENERATE_FALLBACK),
        autofill=TaskModels(config.OPENAI_MODEL_AUTOFILL, config.OPENAI_MODEL_AUTOFILL_FALLBACK),
        grade=GradeModels(
            config.OPENAI_MODEL_GRADE,
            config.OPENAI_MODEL_GRADE_FALLBACK,
            fallback_on_needs_fix=config.OPENAI_GRADE_FALLBACK_ON_NEEDS_FIX,
        ),
        tts=TaskModels(config.OPENAI_MODEL_TTS, config.OPENAI_MODEL_TTS_FALLBACK),
    )
