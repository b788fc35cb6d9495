from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from app.models.practice.practice_attempt_model import Verdict
from app.models.user.user_settings_model import JlptLevel


class GenerateProblemsIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: UUID = Field(..., alias="sessionId")


class OkOut(BaseModel):
    ok: bool = True


class GradeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    problem_id: UUID = Field(..., alias="problemId")
    user_answer_ja: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)] = Field(
        ..., alias="userAnswerJa"
    )
    verdict: Verdict


class GradeOut(BaseModel):
    ok: bool = True
    verdict: Verdict


class PracticeAttemptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    verdict: Verdict
    user_answer_ja: str
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None


class PracticeProblemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    prompt_ko: str
    model_answer_ja: str
    alt_answer_ja: Optional[str] = None
    target_item_ids: List[str]
    created_at: Optional[datetime] = None
    current_attempt: Optional[PracticeAttemptOut] = None


class PracticeSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    list_id: str
    problem_count: int
    jlpt_level: JlptLevel
    scenario_prompt: Optional[str] = None
    created_at: Optional[datetime] = None


class PracticeSessionDetailOut(PracticeSessionOut):
    problems: List[PracticeProblemOut] = Field(default_factory=list)


class ResetSessionOut(BaseModel):
    ok: bool = True
    deleted_attempts: int
