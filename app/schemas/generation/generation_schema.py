"""Pydantic shapes accepted from the language model.

The shapes are deliberately permissive (extra keys allowed, every spelling of
a field optional); the services normalise them with
:mod:`app.utils.normalizer` and then apply their own validation gates. Only
the list lengths are enforced here, since they depend on the requested
problem count.
"""

from __future__ import annotations

from typing import Annotated, List, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints, create_model

NonEmptyStr = Optional[Annotated[str, StringConstraints(min_length=1)]]
RawIdList = Optional[List[Union[str, int]]]


class _LooseModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class RawScenarioProblem(_LooseModel):
    promptKo: NonEmptyStr = None
    prompt_ko: NonEmptyStr = None
    prompt: NonEmptyStr = None
    modelAnswerJa: NonEmptyStr = None
    model_answer_ja: NonEmptyStr = None
    modelAnswer: NonEmptyStr = None
    model_answer: NonEmptyStr = None


class RawScenarioSessionProblem(RawScenarioProblem):
    targetItemIds: RawIdList = None
    target_item_ids: RawIdList = None
    targetIds: RawIdList = None
    target_ids: RawIdList = None


class RawProblem(RawScenarioSessionProblem):
    altAnswerJa: NonEmptyStr = None
    alt_answer_ja: NonEmptyStr = None
    altAnswer: NonEmptyStr = None
    alt_answer: NonEmptyStr = None


class RawExtractedItem(_LooseModel):
    key: Optional[Union[str, int]] = None
    jaSurface: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=200)]] = None
    koMeaning: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=400)]] = None
    memo: Optional[Annotated[str, StringConstraints(strip_whitespace=True, max_length=800)]] = None


class RawProblemTarget(_LooseModel):
    index: Optional[int] = None
    targetItemKeys: RawIdList = None
    target_item_keys: RawIdList = None


def problems_response_schema(
    problem_count: int,
    problem_schema: Type[BaseModel] = RawProblem,
) -> Type[BaseModel]:
    """``{"problems": [...]}`` with at least ``problem_count`` entries."""

    return create_model(
        f"{problem_schema.__name__}sResponse",
        problems=(List[problem_schema], Field(..., min_length=problem_count)),  # type: ignore[valid-type]
    )


def vocab_extraction_schema(problem_count: int) -> Type[BaseModel]:
    """List name, keyed items and per-problem key selections."""

    return create_model(
        "VocabExtractionResponse",
        __config__=ConfigDict(extra="allow"),
        listName=(
            Optional[str],
            Field(None, validation_alias=AliasChoices("listName", "list_name")),
        ),
        items=(List[RawExtractedItem], Field(..., min_length=1)),
        problemTargets=(
            List[RawProblemTarget],
            Field(
                ...,
                min_length=problem_count,
                validation_alias=AliasChoices("problemTargets", "problem_targets"),
            ),
        ),
    )


class AutofillResponse(BaseModel):
    koMeaning: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=400)]
    jaReadingHira: Optional[
        Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
    ] = None
