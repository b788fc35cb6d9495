from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.user.user_model import User
    from app.models.vocab.vocab_item_model import VocabItem
    from app.models.practice.practice_session_model import PracticeSession

LIST_NAME_MAX_LENGTH = 50


class VocabListKind(str, enum.Enum):
    MANUAL = "manual"
    SCENARIO = "scenario"


class VocabList(Base):
    """A user's word list. Deleting it cascades to items, sessions, problems and attempts."""

    __tablename__ = "vocab_lists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(LIST_NAME_MAX_LENGTH), nullable=False)
    kind: Mapped[VocabListKind] = mapped_column(
        Enum(VocabListKind, name="vocablistkind", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=VocabListKind.MANUAL,
        server_default=VocabListKind.MANUAL.value,
    )
    # Present iff kind == scenario.
    scenario_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user: Mapped["User"] = relationship(back_populates="vocab_lists")
    items: Mapped[List["VocabItem"]] = relationship(
        back_populates="vocab_list", cascade="all, delete-orphan"
    )
    sessions: Mapped[List["PracticeSession"]] = relationship(
        back_populates="vocab_list", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<VocabList(id={self.id}, name='{self.name}', kind={self.kind.value})>"
