from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class Verdict(str, enum.Enum):
    PERFECT = "perfect"
    ACCEPTABLE = "acceptable"
    NEEDS_FIX = "needs_fix"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PracticeAttempt(Base):
    """A self-graded answer. The most recent attempt of a problem is the current one."""

    __tablename__ = "practice_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    problem_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("practice_problems.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_answer_ja: Mapped[str] = mapped_column(Text, nullable=False)
    verdict: Mapped[Verdict] = mapped_column(
        Enum(Verdict, name="practiceverdict", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)

    problem = relationship("PracticeProblem", back_populates="attempts")
