from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class JlptLevel(str, enum.Enum):
    N1 = "n1"
    N2 = "n2"
    N3 = "n3"
    N4 = "n4"
    N5 = "n5"

    @property
    def label(self) -> str:
        return f"JLPT {self.value.upper()}"


DEFAULT_JLPT_LEVEL = JlptLevel.N3


class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    jlpt_level: Mapped[JlptLevel] = mapped_column(
        Enum(JlptLevel, name="jlptlevel", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        default=DEFAULT_JLPT_LEVEL,
        server_default=DEFAULT_JLPT_LEVEL.value,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User", back_populates="settings")
