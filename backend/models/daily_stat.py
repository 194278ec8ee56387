import datetime as dt

from sqlalchemy import Date, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.models.base import Base, TimestampMixin


class DailyLearningStat(Base, TimestampMixin):
    """Per-user, per-day learning counters. One row per (user, day)."""

    __tablename__ = "user_learning_stats"
    __table_args__ = (UniqueConstraint("user_id", "date", name="user_learning_stats_user_date_idx"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    reviewed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # rating != again

    # Owned by the reading side; the review engine never writes these.
    new_words_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    articles_read: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    words_read: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_spent_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    user: Mapped["User"] = relationship(back_populates="daily_stats")  # type: ignore[name-defined] # noqa: F821
