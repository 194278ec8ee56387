"""Review statistics and per-day activity recording."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import today, utcnow
from backend.models.daily_stat import DailyLearningStat
from backend.srs.selector import CardCategory, ScheduledCard, categorize, due_cards
from backend.srs.sm2 import Rating
from backend.srs.store import load_due_cards, read_daily_stat, upsert_daily_stat

# Learned-word list breakdown: repetitions 1-3 are still being learned
LEARNING_MAX_REPETITIONS = 3


@dataclass
class ReviewStats:
    """Point-in-time review dashboard numbers for one user."""

    today_due: int = 0
    new_cards: int = 0      # due, never recalled
    learning: int = 0       # due, interval < 21 days
    reviewing: int = 0      # due, interval >= 21 days
    total_vocab: int = 0    # all cards, due or not
    completed_today: int = 0


@dataclass
class LearnedWordsSummary:
    """Breakdown of a user's whole learned-word list by repetitions."""

    total: int = 0
    new_words: int = 0
    learning: int = 0
    reviewing: int = 0


def compute_stats(
    cards: Iterable[ScheduledCard],
    daily_stat: DailyLearningStat | None,
    now: datetime,
) -> ReviewStats:
    """Compute review statistics from a user's cards and today's counters.

    The three category counts partition ``today_due``: each due card lands in
    exactly one of them.
    """
    cards = list(cards)
    stats = ReviewStats(
        total_vocab=len(cards),
        completed_today=daily_stat.reviewed_count if daily_stat is not None else 0,
    )

    for card in due_cards(cards, now):
        stats.today_due += 1
        category = categorize(card)
        if category is CardCategory.NEW:
            stats.new_cards += 1
        elif category is CardCategory.LEARNING:
            stats.learning += 1
        else:
            stats.reviewing += 1

    return stats


def summarize_learned_words(cards: Iterable[ScheduledCard]) -> LearnedWordsSummary:
    summary = LearnedWordsSummary()
    for card in cards:
        summary.total += 1
        if card.repetitions == 0:
            summary.new_words += 1
        elif card.repetitions <= LEARNING_MAX_REPETITIONS:
            summary.learning += 1
        else:
            summary.reviewing += 1
    return summary


async def get_review_stats(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> ReviewStats:
    """Load a user's cards and today's counters and compute their stats."""
    now = now or utcnow()
    cards = await load_due_cards(db, user_id)
    daily_stat = await read_daily_stat(db, user_id, today(now))
    return compute_stats(cards, daily_stat, now)


async def record_answer(
    db: AsyncSession,
    user_id: int,
    day: date,
    rating: Rating,
) -> None:
    """Count one review (and one correct answer unless rated Again) for ``day``."""
    await upsert_daily_stat(
        db,
        user_id,
        day,
        reviewed_delta=1,
        correct_delta=1 if rating.is_correct else 0,
    )
