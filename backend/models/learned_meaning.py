"""Learned word meaning with SM-2 scheduling state."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.config import utcnow
from backend.models.base import Base, TimestampMixin


class LearnedMeaning(Base, TimestampMixin):
    """One meaning of a word a user has chosen to learn; the unit of review."""

    __tablename__ = "user_learned_meanings"
    __table_args__ = (
        Index("idx_user_word", "user_id", "word"),
        Index("idx_next_review", "user_id", "next_review_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    word: Mapped[str] = mapped_column(String(100), nullable=False)  # lower-cased lemma
    word_in_text: Mapped[str | None] = mapped_column(String(100), nullable=True)  # e.g. "running"
    pos: Mapped[str | None] = mapped_column(String(20), nullable=True)
    meaning_text: Mapped[str] = mapped_column(Text, nullable=False)
    example_sentence: Mapped[str | None] = mapped_column(Text, nullable=True)

    ease_factor: Mapped[float] = mapped_column(Float, nullable=False, default=2.5)
    interval_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_review_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    total_reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    user: Mapped["User"] = relationship(back_populates="learned_meanings")  # type: ignore[name-defined] # noqa: F821
