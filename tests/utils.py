"""Utility helpers for test factories."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any

from app.models.practice.practice_session_model import PracticeSession
from app.models.user.user_model import User
from app.models.user.user_settings_model import JlptLevel
from app.models.vocab.vocab_item_model import VocabItem
from app.models.vocab.vocab_list_model import VocabList, VocabListKind


class StubOpenAI:
    """In-process stand-in for ``openai.OpenAI`` (``chat.completions.create`` only).

    Replies are queued per model; a queued exception is raised instead of
    answering. Every call is recorded so tests can assert the call order.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._replies: dict[str, list[Any]] = {}
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def queue(self, model: str, *replies: Any) -> "StubOpenAI":
        self._replies.setdefault(model, []).extend(replies)
        return self

    @property
    def models_called(self) -> list[str]:
        return [call["model"] for call in self.calls]

    def _create(self, *, model: str, messages, **kwargs):
        self.calls.append({"model": model, "messages": list(messages)})
        pending = self._replies.get(model)
        if not pending:
            raise AssertionError(f"unexpected completion call for model {model!r}")
        reply = pending.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if reply is None or isinstance(reply, str):
            content = reply
        else:
            content = json.dumps(reply, ensure_ascii=False)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def create_user(db, **kwargs) -> User:
    defaults = {
        "email": "user@example.com",
        "display_name": "user",
        "is_active": True,
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_vocab_list(db, user: User, **kwargs) -> VocabList:
    defaults = {
        "user_id": user.id,
        "name": "기본 단어장",
        "kind": VocabListKind.MANUAL,
    }
    defaults.update(kwargs)
    vocab_list = VocabList(**defaults)
    db.add(vocab_list)
    db.commit()
    db.refresh(vocab_list)
    return vocab_list


def create_vocab_items(db, user: User, vocab_list: VocabList, surfaces: list[str], **kwargs) -> list[VocabItem]:
    """One item per surface; the last surface is the most recently created."""

    base_time = datetime(2024, 1, 1, 12, 0, 0)
    items = []
    for offset, surface in enumerate(surfaces):
        item = VocabItem(
            user_id=user.id,
            list_id=vocab_list.id,
            ja_surface=surface,
            ko_meaning=kwargs.get("ko_meaning", f"뜻 {offset}"),
            is_active=kwargs.get("is_active", True),
            created_at=base_time + timedelta(minutes=offset),
        )
        db.add(item)
        items.append(item)
    db.commit()
    for item in items:
        db.refresh(item)
    return items


def create_practice_session(db, user: User, vocab_list: VocabList, **kwargs) -> PracticeSession:
    defaults = {
        "user_id": user.id,
        "list_id": vocab_list.id,
        "problem_count": 2,
        "jlpt_level": JlptLevel.N3,
        "scenario_prompt": None,
    }
    defaults.update(kwargs)
    session = PracticeSession(**defaults)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def problems_payload(*pairs: tuple[str, str], **extra: Any) -> dict[str, Any]:
    return {"problems": [{"promptKo": ko, "modelAnswerJa": ja, **extra} for ko, ja in pairs]}
