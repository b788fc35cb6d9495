"""Vocabulary lists and items owned by the current user."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from app.core.model_policy import ModelPolicy, get_model_policy
from app.core.openai_service import ChatMessage, chat_json
from app.crud import practice_crud, user_crud, vocab_crud
from app.models.practice.practice_session_model import DEFAULT_PROBLEM_COUNT, PracticeSession
from app.models.user.user_model import User
from app.models.vocab.vocab_item_model import MAX_ITEMS_PER_LIST, VocabItem
from app.models.vocab.vocab_list_model import VocabList
from app.schemas.generation.generation_schema import AutofillResponse
from app.services.generation_support import GenerationError, run_with_fallback
from app.services.practice_generation_service import PracticeGenerationService
from app.utils.japanese import has_kanji

logger = logging.getLogger(__name__)

MIN_ACTIVE_ITEMS_FOR_PRACTICE = 10


class VocabService:
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
    # Lists
    # ------------------------------------------------------------------
    def create_list(self, name: str) -> VocabList:
        return vocab_crud.create_list(self.db, self.user.id, name=name)

    def list_lists(self) -> list[VocabList]:
        return vocab_crud.list_lists(self.db, self.user.id)

    def delete_lists(self, list_ids: Iterable[str]) -> int:
        deleted = vocab_crud.delete_lists(self.db, self.user.id, list_ids)
        logger.info("User %s deleted %s vocab list(s).", self.user.id, deleted)
        return deleted

    def get_list_or_404(self, list_id: str) -> VocabList:
        vocab_list = vocab_crud.get_list(self.db, self.user.id, list_id)
        if not vocab_list:
            raise GenerationError("List not found", status_code=404)
        return vocab_list

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------
    def list_items(self, list_id: str) -> list[VocabItem]:
        self.get_list_or_404(list_id)
        return vocab_crud.list_items(self.db, self.user.id, list_id)

    def add_item(
        self,
        list_id: str,
        *,
        ja_surface: str,
        ko_meaning: str,
        ja_reading_hira: Optional[str] = None,
        memo: Optional[str] = None,
    ) -> VocabItem:
        self.get_list_or_404(list_id)
        if vocab_crud.count_items(self.db, self.user.id, list_id) >= MAX_ITEMS_PER_LIST:
            raise GenerationError(
                f"단어/표현은 단어장당 최대 {MAX_ITEMS_PER_LIST}개까지 저장할 수 있어요.", status_code=400
            )
        return vocab_crud.create_item(
            self.db,
            self.user.id,
            list_id,
            ja_surface=ja_surface,
            ko_meaning=ko_meaning,
            ja_reading_hira=ja_reading_hira,
            memo=memo,
        )

    def delete_items(self, list_id: str, item_ids: Iterable[str]) -> int:
        self.get_list_or_404(list_id)
        return vocab_crud.delete_items(self.db, self.user.id, list_id, item_ids)

    def set_item_active(self, item_id: str, is_active: bool) -> VocabItem:
        item = vocab_crud.get_item(self.db, self.user.id, item_id)
        if not item:
            raise GenerationError("Item not found", status_code=404)
        return vocab_crud.set_item_active(self.db, item, is_active)

    # ------------------------------------------------------------------
    # Autofill
    # ------------------------------------------------------------------
    def autofill(self, ja_surface: str) -> dict[str, str]:
        """Suggest a Korean meaning, plus a hiragana reading when the surface has kanji."""

        need_reading = has_kanji(ja_surface)
        system = "\n".join(
            [
                "You help fill a Japanese vocabulary form for a Korean learner.",
                "Return JSON only.",
                "Rules:",
                "- koMeaning: concise Korean meaning (not a full sentence).",
                "- jaReadingHira: full reading in hiragana for the entire jaSurface."
                if need_reading
                else "- Do NOT include jaReadingHira.",
                "- Keep it short and practical.",
                "- If the input is a phrase with symbols like 〜, keep them; reading should correspond naturally.",
            ]
        )
        messages: list[ChatMessage] = [
            {"role": "system", "content": system},
            {
                "role": "user",
                "content": json.dumps({"jaSurface": ja_surface, "needReading": need_reading}, ensure_ascii=False),
            },
        ]

        try:
            result = run_with_fallback(
                self.models.autofill,
                lambda model: chat_json(model, messages, AutofillResponse, client=self.client),
            )
        except Exception as exc:
            raise GenerationError(str(exc) or "OpenAI error", status_code=502) from exc

        payload = {"koMeaning": result.koMeaning}
        if need_reading and result.jaReadingHira:
            payload["jaReadingHira"] = result.jaReadingHira
        return payload

    # ------------------------------------------------------------------
    # Practice
    # ------------------------------------------------------------------
    def start_practice(self, list_id: str) -> PracticeSession:
        """Create a 10-problem session for the list and generate its problems.

        The session is kept when generation fails; the error still propagates.
        """

        self.get_list_or_404(list_id)
        active_count = vocab_crud.count_items(self.db, self.user.id, list_id, active_only=True)
        if active_count < MIN_ACTIVE_ITEMS_FOR_PRACTICE:
            raise GenerationError(
                f"연습은 표현 {MIN_ACTIVE_ITEMS_FOR_PRACTICE}개 이상부터 가능해요.", status_code=400
            )

        session = practice_crud.create_session(
            self.db,
            self.user.id,
            list_id,
            problem_count=DEFAULT_PROBLEM_COUNT,
            jlpt_level=user_crud.get_jlpt_level(self.db, self.user.id),
        )
        PracticeGenerationService(
            self.db, self.user, client=self.client, models=self.models
        ).generate_problems_for_session(session.id)
        return session
