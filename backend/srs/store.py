"""Persistence operations the review engine depends on.

Every read and write goes through here so storage failures surface as
``PersistenceError``. Callers own the transaction (commit/rollback).
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import and_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import utcnow
from backend.models.daily_stat import DailyLearningStat
from backend.models.learned_meaning import LearnedMeaning
from backend.srs.errors import PersistenceError
from backend.srs.sm2 import CardState, next_review_date

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Failed to {action}") from exc


async def load_due_cards(db: AsyncSession, user_id: int) -> list[LearnedMeaning]:
    """Return all of a user's cards; the selector decides which are due."""
    stmt = (
        select(LearnedMeaning)
        .where(LearnedMeaning.user_id == user_id)
        .order_by(LearnedMeaning.id.asc())
        .execution_options(populate_existing=True)
    )
    with storage_errors("load cards"):
        result = await db.execute(stmt)
        return list(result.scalars().all())


async def load_card(db: AsyncSession, user_id: int, card_id: int) -> LearnedMeaning | None:
    """Return a card only if it exists and belongs to ``user_id``."""
    stmt = (
        select(LearnedMeaning)
        .where(and_(LearnedMeaning.id == card_id, LearnedMeaning.user_id == user_id))
        .execution_options(populate_existing=True)
    )
    with storage_errors("load card"):
        result = await db.execute(stmt)
        return result.scalar_one_or_none()


async def load_word_meanings(db: AsyncSession, user_id: int, word: str) -> list[LearnedMeaning]:
    """Return every meaning the user has learned for ``word``."""
    stmt = (
        select(LearnedMeaning)
        .where(and_(LearnedMeaning.user_id == user_id, LearnedMeaning.word == word))
        .order_by(LearnedMeaning.id.asc())
        .execution_options(populate_existing=True)
    )
    with storage_errors("load word meanings"):
        result = await db.execute(stmt)
        return list(result.scalars().all())


async def save_card(
    db: AsyncSession,
    user_id: int,
    card_id: int,
    new_state: CardState,
    now: datetime | None = None,
) -> bool:
    """Persist a new scheduling state for a card.

    Returns:
        False if no card with this id is owned by ``user_id``.
    """
    now = now or utcnow()
    stmt = (
        update(LearnedMeaning)
        .where(and_(LearnedMeaning.id == card_id, LearnedMeaning.user_id == user_id))
        .values(
            ease_factor=new_state.ease_factor,
            interval_days=new_state.interval_days,
            repetitions=new_state.repetitions,
            next_review_date=next_review_date(new_state.interval_days, now),
            last_reviewed_at=now,
            total_reviews=LearnedMeaning.total_reviews + 1,
            updated_at=now,
        )
    )
    with storage_errors("save card"):
        result = await db.execute(stmt)
    return result.rowcount > 0


async def upsert_daily_stat(
    db: AsyncSession,
    user_id: int,
    day: date,
    reviewed_delta: int = 0,
    correct_delta: int = 0,
) -> None:
    """Atomically add to a user's counters for ``day``, creating the row if needed.

    Expressed as a single INSERT ... ON CONFLICT DO UPDATE so concurrent
    submissions for the same user and day never lose an increment.
    """
    dialect = db.bind.dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise PersistenceError(f"Atomic upsert is not supported on {dialect!r}")

    now = utcnow()
    stmt = insert(DailyLearningStat).values(
        user_id=user_id,
        date=day,
        reviewed_count=reviewed_delta,
        correct_count=correct_delta,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "date"],
        set_={
            "reviewed_count": DailyLearningStat.reviewed_count + stmt.excluded.reviewed_count,
            "correct_count": DailyLearningStat.correct_count + stmt.excluded.correct_count,
            "updated_at": now,
        },
    )
    with storage_errors("update daily stats"):
        await db.execute(stmt)
    logger.debug(
        "Daily stats for user %d on %s: +%d reviewed, +%d correct",
        user_id,
        day,
        reviewed_delta,
        correct_delta,
    )


async def read_daily_stat(db: AsyncSession, user_id: int, day: date) -> DailyLearningStat | None:
    """Return the user's counters for ``day``, or None if nothing was recorded."""
    stmt = (
        select(DailyLearningStat)
        .where(and_(DailyLearningStat.user_id == user_id, DailyLearningStat.date == day))
        .execution_options(populate_existing=True)
    )
    with storage_errors("read daily stats"):
        result = await db.execute(stmt)
        return result.scalar_one_or_none()
