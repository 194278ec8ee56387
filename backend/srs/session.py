"""Review session flow.

Ties the scheduler, selector and stats together: an answer updates the
card and the day's counters in one transaction, a skip writes nothing.
``ReviewSession`` walks one sitting through entrance, session and complete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import today, utcnow
from backend.srs.errors import CardNotFoundError, ReviewError, SessionStateError
from backend.srs.selector import CardView, get_next_card
from backend.srs.sm2 import CardState, Rating, calculate_next_review, next_review_date
from backend.srs.stats import ReviewStats, get_review_stats, record_answer
from backend.srs.store import load_card, save_card, storage_errors

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    ENTRANCE = "entrance"
    SESSION = "session"
    COMPLETE = "complete"


@dataclass
class ReviewSessionCounters:
    """Ratings given during one sitting, for the completion summary only.

    Daily stats are recorded per answer; these counters are never written back.
    """

    reviewed: int = 0
    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0
    skipped: int = 0

    def record(self, rating: Rating) -> None:
        self.reviewed += 1
        name = rating.value
        setattr(self, name, getattr(self, name) + 1)

    @property
    def correct(self) -> int:
        return self.reviewed - self.again

    @property
    def accuracy(self) -> float:
        """Share of reviewed cards not rated Again (0.0 with no reviews)."""
        return self.correct / self.reviewed if self.reviewed else 0.0


@dataclass
class AnswerResult:
    """The outcome of rating one card."""

    card_id: int
    rating: Rating
    previous_state: CardState
    new_state: CardState
    next_review_date: datetime


async def submit_answer(
    db: AsyncSession,
    user_id: int,
    card_id: int,
    rating: Rating,
    now: datetime | None = None,
) -> AnswerResult:
    """Apply a rating to a card and record it in today's stats.

    The card update and the daily counter increment commit together.

    Raises:
        CardNotFoundError: The card is missing or owned by another user.
        PersistenceError: The database failed; nothing was committed.
    """
    now = now or utcnow()
    card = await load_card(db, user_id, card_id)
    if card is None:
        logger.warning("Answer for unknown card %d from user %d", card_id, user_id)
        raise CardNotFoundError(user_id, card_id)

    previous = CardState(
        ease_factor=card.ease_factor,
        interval_days=card.interval_days,
        repetitions=card.repetitions,
    )
    new_state = calculate_next_review(previous, rating)

    try:
        if not await save_card(db, user_id, card_id, new_state, now):
            raise CardNotFoundError(user_id, card_id)
        await record_answer(db, user_id, today(now), rating)
        with storage_errors("commit answer"):
            await db.commit()
    except ReviewError:
        await db.rollback()
        raise

    logger.info(
        "User %d rated card %d %s: interval %d -> %d days, ease %.2f -> %.2f",
        user_id,
        card_id,
        rating.value,
        previous.interval_days,
        new_state.interval_days,
        previous.ease_factor,
        new_state.ease_factor,
    )
    return AnswerResult(
        card_id=card_id,
        rating=rating,
        previous_state=previous,
        new_state=new_state,
        next_review_date=next_review_date(new_state.interval_days, now),
    )


async def skip_card(
    db: AsyncSession,
    user_id: int,
    skipped_ids: set[int] | frozenset[int] = frozenset(),
    now: datetime | None = None,
) -> CardView | None:
    """Return the next card without touching any card or counter.

    Skipped cards stay due and come back on a later due check; ``skipped_ids``
    only keeps them out of the current sitting.
    """
    return await get_next_card(db, user_id, now=now, exclude=skipped_ids)


@dataclass
class ReviewSession:
    """One review sitting for a user.

    Entrance shows the stats, the session loops over due cards, and the
    session is complete when nothing is due or the user exits.
    """

    db: AsyncSession
    user_id: int
    phase: SessionPhase = SessionPhase.ENTRANCE
    entrance_stats: ReviewStats | None = None
    counters: ReviewSessionCounters = field(default_factory=ReviewSessionCounters)
    current: CardView | None = None
    _skipped: set[int] = field(default_factory=set)

    @property
    def is_complete(self) -> bool:
        return self.phase is SessionPhase.COMPLETE

    async def begin(self, now: datetime | None = None) -> CardView | None:
        """Leave the entrance and fetch the first card.

        Returns None (and completes the session) when nothing is due.
        """
        self._require(SessionPhase.ENTRANCE)
        self.phase = SessionPhase.SESSION
        return await self._advance(now)

    async def answer(self, rating: Rating, now: datetime | None = None) -> AnswerResult:
        """Rate the current card and move on to the next one."""
        card = self._require_current()
        result = await submit_answer(self.db, self.user_id, card.id, rating, now=now)
        self.counters.record(rating)
        await self._advance(now)
        return result

    async def skip(self, now: datetime | None = None) -> CardView | None:
        """Pass over the current card for the rest of this sitting."""
        card = self._require_current()
        self._skipped.add(card.id)
        self.counters.skipped += 1
        return await self._advance(now)

    def finish(self) -> ReviewSessionCounters:
        """End the sitting and return its counters."""
        if self.phase is not SessionPhase.COMPLETE:
            logger.info(
                "User %d left review after %d cards (%d skipped)",
                self.user_id,
                self.counters.reviewed,
                self.counters.skipped,
            )
        self.phase = SessionPhase.COMPLETE
        self.current = None
        return self.counters

    async def _advance(self, now: datetime | None) -> CardView | None:
        self.current = await get_next_card(self.db, self.user_id, now=now, exclude=self._skipped)
        if self.current is None:
            self.phase = SessionPhase.COMPLETE
            logger.info(
                "User %d finished review: %d reviewed, %d correct",
                self.user_id,
                self.counters.reviewed,
                self.counters.correct,
            )
        return self.current

    def _require(self, phase: SessionPhase) -> None:
        if self.phase is not phase:
            raise SessionStateError(f"Expected phase {phase.value}, session is {self.phase.value}")

    def _require_current(self) -> CardView:
        self._require(SessionPhase.SESSION)
        if self.current is None:
            raise SessionStateError("No card is being shown")
        return self.current


async def start_session(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> ReviewSession:
    """Open a review session at its entrance, with today's stats loaded.

    Args:
        db: Database session.
        user_id: The user starting the session.
        now: Current time (defaults to utcnow).

    Returns:
        A ReviewSession in the entrance phase.
    """
    stats = await get_review_stats(db, user_id, now=now)
    session = ReviewSession(db=db, user_id=user_id, entrance_stats=stats)

    logger.info(
        "Opened review for user %d: %d due (%d new, %d learning, %d reviewing)",
        user_id,
        stats.today_due,
        stats.new_cards,
        stats.learning,
        stats.reviewing,
    )
    return session
