# Fichier: app/services/scenario_vocab_service.py
"""Scenario vocabulary lists: problems first, then the vocabulary they use.

Stage 1 asks the generate model for ``problem_count`` practice problems about
the scenario. Stage 2 hands those problems to the autofill model, which
extracts keyed vocabulary items (``w1``, ``w2``...) and selects, for every
problem, the keys its model answer uses. The keys are resolved to real item
ids once the items are stored.

Persistence is a sequence of independent commits anchored on the list row:
any failure after the list exists deletes it again (items, session and
problems cascade) before the error is re-raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from sqlalchemy.orm import Session

from app.core.model_policy import ModelPolicy, get_model_policy
from app.core.openai_service import ChatMessage, SchemaMismatch, chat_json
from app.crud import practice_crud, vocab_crud
from app.models.user.user_model import User
from app.models.user.user_settings_model import JlptLevel
from app.models.vocab.vocab_item_model import (
    JA_SURFACE_MAX_LENGTH,
    KO_MEANING_MAX_LENGTH,
    MAX_ITEMS_PER_LIST,
    MEMO_MAX_LENGTH,
)
from app.models.vocab.vocab_list_model import LIST_NAME_MAX_LENGTH, VocabListKind
from app.schemas.generation.generation_schema import (
    RawScenarioProblem,
    problems_response_schema,
    vocab_extraction_schema,
)
from app.services.generation_support import GenerationError, debug_details, run_with_fallback
from app.utils.japanese import collapse_whitespace
from app.utils.normalizer import (
    ITEM_KEY_KEYS,
    JA_SURFACE_KEYS,
    KO_MEANING_KEYS,
    LIST_NAME_KEYS,
    MEMO_KEYS,
    MODEL_ANSWER_JA_KEYS,
    PROMPT_KO_KEYS,
    TARGET_ITEM_KEYS_KEYS,
    normalize_target_ids,
    pick_field,
    pick_raw,
)

logger = logging.getLogger(__name__)

LIST_NAME_PREFIX = "상황: "
LIST_NAME_PROMPT_CHARS = 30


@dataclass(slots=True)
class ScenarioProblem:
    prompt_ko: str
    model_answer_ja: str


@dataclass(slots=True)
class ExtractedItem:
    key: str
    ja_surface: str
    ko_meaning: str
    memo: str | None = None


@dataclass(slots=True)
class ScenarioVocabResult:
    list_id: str
    session_id: str


def list_name_from_scenario(scenario_prompt: str) -> str:
    """Fallback list name: ``"상황: "`` + the first 30 characters of the prompt."""

    trimmed = collapse_whitespace(scenario_prompt)
    base = trimmed if len(trimmed) <= LIST_NAME_PROMPT_CHARS else trimmed[:LIST_NAME_PROMPT_CHARS] + "…"
    return f"{LIST_NAME_PREFIX}{base}"[:LIST_NAME_MAX_LENGTH]


def normalize_extracted_items(raw_items: Sequence[Any]) -> tuple[list[ExtractedItem], dict[str, str]]:
    """Return the items to store and the key -> surface map.

    Items are deduplicated by surface (first occurrence wins) but every key
    stays in the map, so a dropped duplicate's key still resolves to the
    surviving item. Items over the column limits are dropped, never cut.
    """

    key_to_surface: dict[str, str] = {}
    items: list[ExtractedItem] = []
    seen_surfaces: set[str] = set()

    for raw in raw_items:
        key = pick_field(raw, ITEM_KEY_KEYS)
        ja_surface = pick_field(raw, JA_SURFACE_KEYS)
        ko_meaning = pick_field(raw, KO_MEANING_KEYS)
        memo = pick_field(raw, MEMO_KEYS)
        if not key or not ja_surface or not ko_meaning:
            continue
        if (
            len(ja_surface) > JA_SURFACE_MAX_LENGTH
            or len(ko_meaning) > KO_MEANING_MAX_LENGTH
            or len(memo) > MEMO_MAX_LENGTH
        ):
            logger.warning("Dropping over-long extracted item %r.", key)
            continue

        key_to_surface.setdefault(key, ja_surface)
        if ja_surface in seen_surfaces:
            continue
        seen_surfaces.add(ja_surface)
        items.append(ExtractedItem(key=key, ja_surface=ja_surface, ko_meaning=ko_meaning, memo=memo or None))

    return items, key_to_surface


def resolve_problem_targets(
    raw_targets: Sequence[Any],
    key_to_surface: Mapping[str, str],
    problem_count: int,
    fallback_key: str,
) -> dict[int, list[str]]:
    """Map every problem index (1-based) to 1..3 known item keys.

    The first usable entry for an index wins; indexes left without a key get
    ``[fallback_key]``.
    """

    targets: dict[int, list[str]] = {}
    for raw in raw_targets:
        try:
            index = int(pick_field(raw, ("index",)))
        except ValueError:
            continue
        if index < 1 or index > problem_count or index in targets:
            continue
        keys = normalize_target_ids(pick_raw(raw, TARGET_ITEM_KEYS_KEYS), key_to_surface)
        if keys:
            targets[index] = keys

    for index in range(1, problem_count + 1):
        targets.setdefault(index, [fallback_key])
    return targets


class ScenarioVocabService:
    """Builds a scenario list, its items, a practice session and its problems."""

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
    def create_scenario_vocab_list(
        self,
        scenario_prompt: str,
        problem_count: int,
        jlpt_level: JlptLevel,
    ) -> ScenarioVocabResult:
        jlpt_level = JlptLevel(jlpt_level)
        problems = self._generate_problems(scenario_prompt, problem_count, jlpt_level)
        extraction = self._extract_vocabulary(scenario_prompt, problems, jlpt_level)

        items, key_to_surface = normalize_extracted_items(extraction.items)
        if not items:
            raise GenerationError("저장할 단어를 만들지 못했어요.", status_code=500)

        list_name = self._resolve_list_name(extraction, scenario_prompt)
        targets = resolve_problem_targets(
            extraction.problemTargets, key_to_surface, len(problems), items[0].key
        )

        return self._persist(
            scenario_prompt=scenario_prompt,
            problem_count=problem_count,
            jlpt_level=jlpt_level,
            list_name=list_name,
            problems=problems,
            items=items,
            key_to_surface=key_to_surface,
            targets=targets,
        )

    # ------------------------------------------------------------------
    # Stage 1: problems
    # ------------------------------------------------------------------
    def _generate_problems(
        self, scenario_prompt: str, problem_count: int, jlpt_level: JlptLevel
    ) -> list[ScenarioProblem]:
        schema = problems_response_schema(problem_count, RawScenarioProblem)
        system = "\n".join(
            [
                "당신은 일본어 작문 연습용 문제를 생성합니다.",
                "규칙:",
                "- 출력은 반드시 제공된 스키마를 만족하는 '유효한 JSON'이어야 합니다.",
                f"- 문제는 정확히 {problem_count}개 생성하세요.",
                "- 프롬프트(promptKo)는 주어진 상황에서 실제로 말할 법한 자연스러운 한국어 문장이어야 합니다.",
                "- 모범답안(modelAnswerJa)은 프롬프트에 대응하는 자연스러운 일본어(대체로 1문장, 길어도 2문장)여야 합니다.",
                f"- 난이도는 {jlpt_level.label} 수준을 목표로 합니다.",
                "- 마크다운/설명/코멘트는 절대 포함하지 말고, JSON만 출력하세요.",
                "- 각 문제는 반드시 다음 키를 사용하세요: promptKo, modelAnswerJa.",
                '예시 JSON: {"problems":[{"promptKo":"...","modelAnswerJa":"..."}]}',
            ]
        )
        user_prompt = json.dumps(
            {
                "scenarioPrompt": scenario_prompt,
                "notes": [
                    "문장 길이는 너무 길지 않게(대체로 1문장, 길어도 2문장).",
                    "실제 회화에서 자주 나오는 상황/말투를 우선.",
                ],
            },
            ensure_ascii=False,
            indent=2,
        )
        messages: list[ChatMessage] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user_prompt},
        ]

        response = run_with_fallback(
            self.models.generate,
            lambda model: chat_json(model, messages, schema, client=self.client),
        )

        raw_problems = response.problems[:problem_count]
        problems = [
            ScenarioProblem(
                prompt_ko=pick_field(raw, PROMPT_KO_KEYS),
                model_answer_ja=pick_field(raw, MODEL_ANSWER_JA_KEYS),
            )
            for raw in raw_problems
        ]

        if any(not p.prompt_ko or not p.model_answer_ja for p in problems):
            details = debug_details(
                {
                    "reason": "missing promptKo/modelAnswerJa after normalization",
                    "normalizedPreview": [
                        {"promptKo": p.prompt_ko, "modelAnswerJa": p.model_answer_ja} for p in problems[:3]
                    ],
                    "rawPreview": [raw.model_dump(exclude_none=True) for raw in raw_problems[:3]],
                }
            )
            raise SchemaMismatch(f"OpenAI response schema mismatch.{details}")

        return problems

    # ------------------------------------------------------------------
    # Stage 2: vocabulary extraction
    # ------------------------------------------------------------------
    def _extract_vocabulary(
        self,
        scenario_prompt: str,
        problems: Sequence[ScenarioProblem],
        jlpt_level: JlptLevel,
    ) -> Any:
        problem_count = len(problems)
        schema = vocab_extraction_schema(problem_count)
        system = "\n".join(
            [
                "당신은 주어진 연습문제(모범답안 포함)로부터 단어/표현을 추출합니다.",
                "규칙:",
                "- 출력은 반드시 제공된 스키마를 만족하는 '유효한 JSON'이어야 합니다.",
                "- listName은 가능하면 짧게(가급적 20자 이내) 작성하세요.",
                "- 단어장에 저장할 가치가 있는 단어/표현만 추출하세요(불필요한 조사/기호/중복 제외).",
                "- 각 항목은 jaSurface + koMeaning이 필수입니다.",
                "- IMPORTANT: 각 항목에 안정적인 key를 부여하세요(예: w1, w2, ...).",
                f"- 각 문제(index 1..{problem_count})마다 modelAnswerJa에 실제로 등장하는 key를 1-3개 선택하세요.",
                "- 마크다운/설명/코멘트는 절대 포함하지 말고, JSON만 출력하세요.",
                '예시: {"listName":"...","items":[{"key":"w1","jaSurface":"カフェ","koMeaning":"카페"}],'
                '"problemTargets":[{"index":1,"targetItemKeys":["w1"]}]}',
            ]
        )
        user_prompt = json.dumps(
            {
                "scenarioPrompt": scenario_prompt,
                "jlptLevel": jlpt_level.value,
                "problems": [
                    {"index": idx, "promptKo": p.prompt_ko, "modelAnswerJa": p.model_answer_ja}
                    for idx, p in enumerate(problems, start=1)
                ],
            },
            ensure_ascii=False,
            indent=2,
        )
        messages: list[ChatMessage] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user_prompt},
        ]

        return run_with_fallback(
            self.models.autofill,
            lambda model: chat_json(model, messages, schema, client=self.client),
        )

    @staticmethod
    def _resolve_list_name(extraction: Any, scenario_prompt: str) -> str:
        proposed = pick_field(extraction, LIST_NAME_KEYS)
        name = proposed or list_name_from_scenario(scenario_prompt)
        return collapse_whitespace(name)[:LIST_NAME_MAX_LENGTH]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _persist(
        self,
        *,
        scenario_prompt: str,
        problem_count: int,
        jlpt_level: JlptLevel,
        list_name: str,
        problems: Sequence[ScenarioProblem],
        items: Sequence[ExtractedItem],
        key_to_surface: Mapping[str, str],
        targets: Mapping[int, list[str]],
    ) -> ScenarioVocabResult:
        owner_id = self.user.id
        created_list_id: str | None = None

        try:
            vocab_list = vocab_crud.create_list(
                self.db,
                owner_id,
                name=list_name,
                kind=VocabListKind.SCENARIO,
                scenario_prompt=scenario_prompt,
            )
            created_list_id = vocab_list.id

            rows = [
                {
                    "user_id": owner_id,
                    "list_id": created_list_id,
                    "ja_surface": item.ja_surface,
                    "ja_reading_hira": None,
                    "ko_meaning": item.ko_meaning,
                    "memo": item.memo,
                    "is_active": True,
                }
                for item in items[:MAX_ITEMS_PER_LIST]
            ]
            vocab_crud.insert_items(self.db, rows)

            stored = vocab_crud.find_items_by_surfaces(
                self.db, owner_id, created_list_id, [row["ja_surface"] for row in rows]
            )
            id_by_surface = {item.ja_surface: item.id for item in stored}

            session = practice_crud.create_session(
                self.db,
                owner_id,
                created_list_id,
                problem_count=problem_count,
                jlpt_level=jlpt_level,
                scenario_prompt=scenario_prompt,
            )

            problem_rows = []
            for index, problem in enumerate(problems, start=1):
                surfaces = [key_to_surface[key] for key in targets.get(index, []) if key in key_to_surface]
                target_ids = normalize_target_ids(
                    [id_by_surface.get(surface) for surface in surfaces], set(id_by_surface.values())
                )
                if not target_ids:
                    details = debug_details(
                        {
                            "reason": "empty target_item_ids after mapping",
                            "problemIndex": index,
                            "keyToSurfacePreview": list(key_to_surface.items())[:5],
                            "insertedItemsPreview": list(id_by_surface.items())[:5],
                        }
                    )
                    raise GenerationError(
                        f"단어 매핑 실패: 문제가 참조할 단어를 찾지 못했어요.{details}", status_code=500
                    )
                problem_rows.append(
                    {
                        "user_id": owner_id,
                        "session_id": session.id,
                        "prompt_ko": problem.prompt_ko,
                        "model_answer_ja": problem.model_answer_ja,
                        "alt_answer_ja": None,
                        "target_item_ids": target_ids,
                    }
                )

            practice_crud.create_problems(self.db, problem_rows)
        except Exception:
            if created_list_id:
                self._discard_list(owner_id, created_list_id)
            raise

        logger.info(
            "Scenario list %s created for user %s (%s items, %s problems).",
            created_list_id,
            owner_id,
            len(rows),
            len(problem_rows),
        )
        return ScenarioVocabResult(list_id=created_list_id, session_id=session.id)

    def _discard_list(self, owner_id: int, list_id: str) -> None:
        """Compensating delete of a partially created list; never masks the original error."""

        logger.warning("Scenario list creation failed, deleting list %s.", list_id)
        try:
            self.db.rollback()
            vocab_crud.delete_list(self.db, owner_id, list_id)
        except Exception:
            logger.exception("Could not delete partially created list %s", list_id)
