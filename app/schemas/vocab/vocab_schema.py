from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from app.models.vocab.vocab_list_model import VocabListKind

ScenarioPrompt = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=800)]
ListName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
JaSurface = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
KoMeaning = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=400)]


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ScenarioCreateIn(_CamelModel):
    scenario_prompt: ScenarioPrompt = Field(..., alias="scenarioPrompt")
    problem_count: int = Field(..., alias="problemCount", ge=1, le=50)


class ScenarioCreateOut(_CamelModel):
    ok: bool = True
    list_id: str = Field(..., alias="listId")
    session_id: str = Field(..., alias="sessionId")


class VocabListCreateIn(BaseModel):
    name: ListName


class VocabListOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    kind: VocabListKind
    scenario_prompt: Optional[str] = None
    created_at: Optional[datetime] = None


class BulkDeleteIn(_CamelModel):
    ids: List[str] = Field(default_factory=list)


class BulkDeleteOut(BaseModel):
    deleted: int


class VocabItemCreateIn(_CamelModel):
    ja_surface: JaSurface = Field(..., alias="jaSurface")
    ja_reading_hira: Optional[str] = Field(None, alias="jaReadingHira", max_length=200)
    ko_meaning: KoMeaning = Field(..., alias="koMeaning")
    memo: Optional[str] = Field(None, max_length=800)

    _normalize_optional = field_validator("ja_reading_hira", "memo", mode="after")(_blank_to_none)


class VocabItemUpdateIn(_CamelModel):
    is_active: bool = Field(..., alias="isActive")


class VocabItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    list_id: str
    ja_surface: str
    ja_reading_hira: Optional[str] = None
    ko_meaning: str
    memo: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class StartPracticeOut(_CamelModel):
    ok: bool = True
    session_id: str = Field(..., alias="sessionId")


class AutofillIn(_CamelModel):
    ja_surface: JaSurface = Field(..., alias="jaSurface")


class AutofillOut(_CamelModel):
    ko_meaning: str = Field(..., alias="koMeaning")
    ja_reading_hira: Optional[str] = Field(None, alias="jaReadingHira")
