from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.models.user.user_settings_model import DEFAULT_JLPT_LEVEL, JlptLevel

if TYPE_CHECKING:
    from app.models.practice.practice_problem_model import PracticeProblem

MIN_PROBLEM_COUNT = 1
MAX_PROBLEM_COUNT = 50
DEFAULT_PROBLEM_COUNT = 10


class PracticeSession(Base):
    """One generation batch of practice problems for a vocabulary list."""

    __tablename__ = "practice_sessions"
    __table_args__ = (
        CheckConstraint(
            f"problem_count BETWEEN {MIN_PROBLEM_COUNT} AND {MAX_PROBLEM_COUNT}",
            name="ck_practice_sessions_problem_count",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    list_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vocab_lists.id", ondelete="CASCADE"), index=True, nullable=False
    )
    problem_count: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_PROBLEM_COUNT)
    jlpt_level: Mapped[JlptLevel] = mapped_column(
        Enum(JlptLevel, name="jlptlevel", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=DEFAULT_JLPT_LEVEL,
    )
    scenario_prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    vocab_list = relationship("VocabList", back_populates="sessions")
    problems: Mapped[List["PracticeProblem"]] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="PracticeProblem.created_at",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PracticeSession(id={self.id}, list_id={self.list_id}, problem_count={self.problem_count})>"
