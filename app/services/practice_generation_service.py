# Fichier: app/services/practice_generation_service.py
"""Single-call problem generation for an existing practice session.

The model receives the active items of the session's list (id, surface,
meaning...) and returns problems that reference them. Target ids are
normalised (surfaces echoed in place of ids are mapped back) and a problem
without any usable target gets the most recent item as its only target. The
batch is stored only when every problem has a prompt and a model answer.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.model_policy import ModelPolicy, get_model_policy
from app.core.openai_service import ChatMessage, chat_json
from app.crud import practice_crud, vocab_crud
from app.models.practice.practice_session_model import (
    DEFAULT_PROBLEM_COUNT,
    MAX_PROBLEM_COUNT,
    MIN_PROBLEM_COUNT,
    PracticeSession,
)
from app.models.user.user_model import User
from app.models.user.user_settings_model import DEFAULT_JLPT_LEVEL, JlptLevel
from app.models.vocab.vocab_item_model import VocabItem
from app.schemas.generation.generation_schema import (
    RawProblem,
    RawScenarioSessionProblem,
    problems_response_schema,
)
from app.services.generation_support import GenerationError, debug_details, run_with_fallback
from app.utils.normalizer import (
    ALT_ANSWER_JA_KEYS,
    MODEL_ANSWER_JA_KEYS,
    PROMPT_KO_KEYS,
    TARGET_ITEM_IDS_KEYS,
    normalize_target_ids,
    pick_field,
    pick_fallback_target_ids,
    pick_raw,
)

logger = logging.getLogger(__name__)


def clamp_problem_count(value: int | None) -> int:
    if value is None:
        return DEFAULT_PROBLEM_COUNT
    return min(max(int(value), MIN_PROBLEM_COUNT), MAX_PROBLEM_COUNT)


class PracticeGenerationService:
    """Fills a practice session with generated problems."""

    def __init__(
        self,
        db: Session,
        user: User,
        *,
        client: Any = None,
        models: ModelPolicy | None = None,
    ):
        self.db = db
        self.user = user
        self.client = client
        self.models = models or get_model_policy()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def generate_problems_for_session(self, session_id: str) -> list[str]:
        """Generate and store the problems of a vocabulary-list session."""
        session = self._load_session(session_id)
        return self._generate(session, scenario_prompt=None)

    def generate_scenario_problems_for_session(self, session_id: str) -> list[str]:
        """Same as above, with the session's stored scenario prompt as extra context."""
        session = self._load_session(session_id)
        scenario_prompt = (session.scenario_prompt or "").strip()
        if not scenario_prompt:
            raise GenerationError("이 세션은 상황별 단어장 세션이 아닙니다.", status_code=400)
        return self._generate(session, scenario_prompt=scenario_prompt)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _load_session(self, session_id: str) -> PracticeSession:
        session = practice_crud.get_session(self.db, self.user.id, str(session_id))
        if not session:
            raise GenerationError("Session not found", status_code=404)
        return session

    def _load_items(self, session: PracticeSession) -> list[VocabItem]:
        try:
            items = vocab_crud.list_active_items(self.db, self.user.id, session.list_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise GenerationError(str(exc), status_code=500) from exc
        if not items:
            raise GenerationError("단어장에 활성 표현이 없습니다.", status_code=400)
        return items

    def _generate(self, session: PracticeSession, *, scenario_prompt: str | None) -> list[str]:
        items = self._load_items(session)
        problem_count = clamp_problem_count(session.problem_count)
        jlpt_level = JlptLevel(session.jlpt_level or DEFAULT_JLPT_LEVEL)

        problem_schema = RawScenarioSessionProblem if scenario_prompt else RawProblem
        schema = problems_response_schema(problem_count, problem_schema)
        messages = self._build_messages(items, problem_count, jlpt_level, scenario_prompt)

        try:
            response = run_with_fallback(
                self.models.generate,
                lambda model: chat_json(model, messages, schema, client=self.client),
            )
        except Exception as exc:
            logger.error("Problem generation failed for session %s: %s", session.id, exc)
            raise GenerationError(str(exc) or "OpenAI error", status_code=502) from exc

        raw_problems = response.problems[:problem_count]
        rows = self._normalize(raw_problems, items, session, with_alt_answer=scenario_prompt is None)

        try:
            problems = practice_crud.create_problems(self.db, rows)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise GenerationError(str(exc), status_code=500) from exc

        logger.info("Stored %s problems for session %s.", len(problems), session.id)
        return [problem.id for problem in problems]

    def _normalize(
        self,
        raw_problems: Sequence[Any],
        items: Sequence[VocabItem],
        session: PracticeSession,
        *,
        with_alt_answer: bool,
    ) -> list[dict[str, Any]]:
        valid_ids = {item.id: item for item in items}
        id_by_surface = {item.ja_surface: item.id for item in items}

        rows: list[dict[str, Any]] = []
        for raw in raw_problems:
            target_ids = normalize_target_ids(
                pick_raw(raw, TARGET_ITEM_IDS_KEYS), valid_ids, id_by_surface
            ) or pick_fallback_target_ids(valid_ids)
            alt_answer = pick_field(raw, ALT_ANSWER_JA_KEYS) if with_alt_answer else ""
            rows.append(
                {
                    "user_id": self.user.id,
                    "session_id": session.id,
                    "prompt_ko": pick_field(raw, PROMPT_KO_KEYS),
                    "model_answer_ja": pick_field(raw, MODEL_ANSWER_JA_KEYS),
                    "alt_answer_ja": alt_answer or None,
                    "target_item_ids": target_ids,
                }
            )

        for row in rows:
            if row["prompt_ko"] and row["model_answer_ja"] and row["target_item_ids"]:
                continue
            details = debug_details(
                {
                    "reason": "missing promptKo/modelAnswerJa/targetItemIds after normalization",
                    "normalizedPreview": rows[:3],
                    "rawPreview": [raw.model_dump(exclude_none=True) for raw in raw_problems[:3]],
                }
            )
            raise GenerationError(f"OpenAI response schema mismatch.{details}", status_code=502)

        return rows

    @staticmethod
    def _build_messages(
        items: Sequence[VocabItem],
        problem_count: int,
        jlpt_level: JlptLevel,
        scenario_prompt: str | None,
    ) -> list[ChatMessage]:
        if scenario_prompt:
            system = "\n".join(
                [
                    "당신은 '상황별 단어장' 전용 일본어 작문 연습문제를 생성합니다.",
                    "규칙:",
                    "- 출력은 반드시 제공된 스키마를 만족하는 '유효한 JSON'이어야 합니다.",
                    f"- 문제는 정확히 {problem_count}개 생성하세요.",
                    "- 각 문제는 제공된 단어(id) 중 1~3개를 선택해 자연스럽게 사용해야 합니다.",
                    "- 서로 무관한 단어를 억지로 한 문장에 넣지 마세요.",
                    "- 프롬프트(promptKo)는 실제로 말할 법한 한국어 문장이어야 합니다.",
                    "- 모범답안(modelAnswerJa)은 자연스러운 일본어여야 하고, 선택한 표현을 반드시 포함해야 합니다.",
                    f"- 난이도는 {jlpt_level.label} 수준을 목표로 합니다.",
                    "- IMPORTANT: target ids는 제공된 uuid를 그대로 사용해야 합니다(새로 만들면 안 됨).",
                    "- 마크다운/설명/코멘트는 절대 포함하지 말고, JSON만 출력하세요.",
                    "- 각 문제는 반드시 다음 키를 사용하세요: promptKo, targetItemIds, modelAnswerJa.",
                    '예시 JSON: {"problems":[{"promptKo":"...","targetItemIds":["<uuid>"],"modelAnswerJa":"..."}]}',
                    "",
                    "상황(반드시 반영):",
                    scenario_prompt,
                ]
            )
            vocab_items = [
                {"id": it.id, "jaSurface": it.ja_surface, "koMeaning": it.ko_meaning, "memo": it.memo}
                for it in items
            ]
        else:
            system = "\n".join(
                [
                    "You generate Korean prompts for Japanese writing practice.",
                    "Rules:",
                    "- Output MUST be valid JSON matching the provided schema.",
                    f"- Create exactly {problem_count} problems.",
                    "- Each problem must select 1-3 target item IDs from the provided list.",
                    "- Do NOT force unrelated items into the same sentence; keep it natural and realistic.",
                    "- Prompts should be natural Korean sentences one might actually say.",
                    "- Model answers should be natural Japanese that includes the chosen target expressions.",
                    f"- Target difficulty: {jlpt_level.label}. Keep grammar/vocabulary/naturalness appropriate for that level.",
                    "- IMPORTANT: For target ids, use the provided 'id' strings exactly (UUIDs). Do not invent new ids.",
                    "- Use these exact JSON keys per problem: promptKo, targetItemIds, modelAnswerJa, altAnswerJa(optional).",
                    'Example JSON: {"problems":[{"promptKo":"...","targetItemIds":["<uuid>"],"modelAnswerJa":"...","altAnswerJa":"..."}]}',
                ]
            )
            vocab_items = [
                {
                    "id": it.id,
                    "jaSurface": it.ja_surface,
                    "jaReadingHira": it.ja_reading_hira,
                    "koMeaning": it.ko_meaning,
                    "memo": it.memo,
                }
                for it in items
            ]

        return [
            {"role": "system", "content": system},
            {"role": "user", "content": json.dumps({"vocabItems": vocab_items}, ensure_ascii=False, indent=2)},
        ]
