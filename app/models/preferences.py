from datetime import datetime

from sqlalchemy import Integer, String, DateTime, ForeignKey, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.database import Base


def normalize_subject(subject: str) -> str:
    return subject.strip().lower()


class Preference(Base):
    """
    Per-user interest counter for a catalog subject.

    The subject is always stored trimmed and lower-cased, whatever the caller passes.
    """
    __tablename__ = "preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    subject: Mapped[str] = mapped_column(String, nullable=False)
    weight: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="preferences")

    __table_args__ = (
        UniqueConstraint("user_id", "subject", name="uq_preference_user_subject"),
    )

    @validates("subject")
    def _normalize(self, key, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Subject is required")
        return normalize_subject(value)
