"""Due-card selection and display classification.

Picks the single next card to review: never-recalled cards first, then the
longest-waiting. Also derives the display projection of a card, including
whether it is the first meaning of its word or an extra one.
"""

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import utcnow
from backend.models.learned_meaning import LearnedMeaning
from backend.srs.store import load_due_cards, load_word_meanings

logger = logging.getLogger(__name__)

# Cards at or beyond this interval count as long-term reviews
MATURE_INTERVAL_DAYS = 21


class ScheduledCard(Protocol):
    id: int
    repetitions: int
    interval_days: int
    next_review_date: datetime


class CardCategory(Enum):
    """Display grouping derived from a card's current state."""

    NEW = "new"                # never successfully recalled
    LEARNING = "learning"      # recalled, interval < 21 days
    REVIEWING = "reviewing"    # interval >= 21 days


class DisplayType(Enum):
    """Whether a card shows the first or an additional meaning of its word."""

    NEW = "new"
    EXTEND = "extend"


@dataclass
class CardView:
    """What the review screen needs to present one card."""

    id: int
    word: str
    highlighted_word: str
    meaning: str
    pos: str | None
    sentence: str | None
    display_type: DisplayType
    category: CardCategory
    learned_meanings: list[str] = field(default_factory=list)


def is_due(card: ScheduledCard, now: datetime) -> bool:
    """A card is due once its next review date has passed."""
    return card.next_review_date <= now


def categorize(card: ScheduledCard) -> CardCategory:
    """Classify a card for display; independent of selection order."""
    if card.repetitions == 0:
        return CardCategory.NEW
    if card.interval_days < MATURE_INTERVAL_DAYS:
        return CardCategory.LEARNING
    return CardCategory.REVIEWING


def due_cards(cards: Iterable[ScheduledCard], now: datetime) -> list[ScheduledCard]:
    """Return the cards that are due at ``now``."""
    return [card for card in cards if is_due(card, now)]


def priority_key(card: ScheduledCard) -> tuple[int, datetime, int]:
    """Sort key among due cards: repetitions, then due date, then id."""
    return (card.repetitions, card.next_review_date, card.id)


def select_next(cards: Iterable[ScheduledCard], now: datetime) -> ScheduledCard | None:
    """Return the highest-priority due card, or None if nothing is due."""
    candidates = due_cards(cards, now)
    if not candidates:
        return None
    return min(candidates, key=priority_key)


def format_meaning(meaning_text: str, pos: str | None) -> str:
    return f"{meaning_text} ({pos})" if pos else meaning_text


def describe_card(card: LearnedMeaning, word_meanings: list[LearnedMeaning]) -> CardView:
    """Build the display view of ``card``.

    Args:
        card: The selected card.
        word_meanings: All of the user's learned meanings for the same word,
            which may include ``card`` itself.
    """
    others = [m for m in word_meanings if m.id != card.id]
    display_type = DisplayType.EXTEND if others else DisplayType.NEW

    return CardView(
        id=card.id,
        word=card.word,
        highlighted_word=card.word_in_text or card.word,
        meaning=card.meaning_text,
        pos=card.pos,
        sentence=card.example_sentence,
        display_type=display_type,
        category=categorize(card),
        learned_meanings=[format_meaning(m.meaning_text, m.pos) for m in others],
    )


async def get_next_card(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    exclude: Collection[int] = (),
) -> CardView | None:
    """Load a user's cards and return the view of the next one to review.

    Args:
        db: Database session.
        user_id: The user whose cards to consider.
        now: Current time (defaults to utcnow).
        exclude: Card ids to pass over, e.g. cards skipped in this sitting.

    Returns:
        The CardView, or None when no card is due.
    """
    now = now or utcnow()
    cards = await load_due_cards(db, user_id)
    card = select_next([c for c in cards if c.id not in exclude], now)
    if card is None:
        logger.debug("No due cards for user %d", user_id)
        return None

    word_meanings = await load_word_meanings(db, user_id, card.word)
    return describe_card(card, word_meanings)
