from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base

MAX_ITEMS_PER_LIST = 100
JA_SURFACE_MAX_LENGTH = 200
JA_READING_MAX_LENGTH = 200
KO_MEANING_MAX_LENGTH = 400
MEMO_MAX_LENGTH = 800


class VocabItem(Base):
    __tablename__ = "vocab_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    list_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vocab_lists.id", ondelete="CASCADE"), index=True, nullable=False
    )
    ja_surface: Mapped[str] = mapped_column(String(JA_SURFACE_MAX_LENGTH), nullable=False)
    # Furigana is rendered on read; generated items never store a reading.
    ja_reading_hira: Mapped[Optional[str]] = mapped_column(String(JA_READING_MAX_LENGTH), nullable=True)
    ko_meaning: Mapped[str] = mapped_column(String(KO_MEANING_MAX_LENGTH), nullable=False)
    memo: Mapped[Optional[str]] = mapped_column(String(MEMO_MAX_LENGTH), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    vocab_list = relationship("VocabList", back_populates="items")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<VocabItem(id={self.id}, ja_surface='{self.ja_surface}')>"
