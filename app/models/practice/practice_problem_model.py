from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

if TYPE_CHECKING:
    from app.models.practice.practice_attempt_model import PracticeAttempt


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PracticeProblem(Base):
    __tablename__ = "practice_problems"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("practice_sessions.id", ondelete="CASCADE"), index=True, nullable=False
    )
    prompt_ko: Mapped[str] = mapped_column(Text, nullable=False)
    model_answer_ja: Mapped[str] = mapped_column(Text, nullable=False)
    alt_answer_ja: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # 1-3 vocab item ids; ownership is guaranteed by the generators, not by a FK.
    target_item_ids: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    # Python-side default keeps the insertion order of a bulk insert.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    session = relationship("PracticeSession", back_populates="problems")
    attempts: Mapped[List["PracticeAttempt"]] = relationship(
        back_populates="problem",
        cascade="all, delete-orphan",
        order_by="PracticeAttempt.created_at.desc()",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PracticeProblem(id={self.id}, session_id={self.session_id})>"
