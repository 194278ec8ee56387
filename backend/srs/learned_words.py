"""Adding, editing, listing and removing a user's learned word meanings."""

import logging
from datetime import datetime
from typing import Literal

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import utcnow
from backend.models.learned_meaning import LearnedMeaning
from backend.models.user import User
from backend.srs.errors import UserNotFoundError
from backend.srs.sm2 import initial_state
from backend.srs.store import storage_errors

logger = logging.getLogger(__name__)


def normalize_word(word: str) -> str:
    """Return the stored form of a word: stripped and lower-cased.

    Raises:
        ValueError: The word is empty or only whitespace.
    """
    normalized = word.strip().lower()
    if not normalized:
        raise ValueError("word must not be blank")
    return normalized


async def add_learned_meaning(
    db: AsyncSession,
    user_id: int,
    word: str,
    meaning_text: str,
    *,
    word_in_text: str | None = None,
    pos: str | None = None,
    example_sentence: str | None = None,
    now: datetime | None = None,
) -> LearnedMeaning:
    """Start learning a meaning; the new card is due immediately. Does not commit.

    Raises:
        ValueError: ``word`` is blank.
        UserNotFoundError: No user with ``user_id`` exists.
    """
    word = normalize_word(word)
    with storage_errors("load user"):
        user = await db.get(User, user_id)
    if user is None:
        logger.warning("Learned meaning for unknown user %d", user_id)
        raise UserNotFoundError(user_id)

    now = now or utcnow()
    state = initial_state()
    card = LearnedMeaning(
        user_id=user_id,
        word=word,
        word_in_text=word_in_text,
        pos=pos,
        meaning_text=meaning_text,
        example_sentence=example_sentence,
        ease_factor=state.ease_factor,
        interval_days=state.interval_days,
        repetitions=state.repetitions,
        next_review_date=now,
        total_reviews=0,
    )
    db.add(card)
    with storage_errors("add learned meaning"):
        await db.flush()

    logger.info("User %d started learning %r (card %d)", user_id, card.word, card.id)
    return card


async def update_learned_meaning(
    db: AsyncSession,
    user_id: int,
    card_id: int,
    word: str,
    meaning_text: str,
) -> bool:
    """Correct the word or meaning of a card, keeping its review progress.

    Returns:
        False if no card with this id is owned by ``user_id``.

    Raises:
        ValueError: ``word`` is blank.
    """
    stmt = (
        update(LearnedMeaning)
        .where(and_(LearnedMeaning.id == card_id, LearnedMeaning.user_id == user_id))
        .values(word=normalize_word(word), meaning_text=meaning_text, updated_at=utcnow())
    )
    with storage_errors("update learned meaning"):
        result = await db.execute(stmt)
    if result.rowcount == 0:
        return False
    logger.info("User %d edited card %d", user_id, card_id)
    return True


async def list_learned_meanings(
    db: AsyncSession,
    user_id: int,
    order: Literal["asc", "desc"] = "desc",
) -> list[LearnedMeaning]:
    """Return a user's learned meanings ordered by when they were added."""
    if order == "desc":
        order_by = (LearnedMeaning.created_at.desc(), LearnedMeaning.id.desc())
    else:
        order_by = (LearnedMeaning.created_at.asc(), LearnedMeaning.id.asc())
    stmt = (
        select(LearnedMeaning)
        .where(LearnedMeaning.user_id == user_id)
        .order_by(*order_by)
        .execution_options(populate_existing=True)
    )
    with storage_errors("list learned meanings"):
        result = await db.execute(stmt)
        return list(result.scalars().all())


async def remove_learned_meaning(db: AsyncSession, user_id: int, card_id: int) -> bool:
    """Delete one of the user's learned meanings. Returns False if none matched."""
    stmt = delete(LearnedMeaning).where(
        and_(LearnedMeaning.id == card_id, LearnedMeaning.user_id == user_id)
    )
    with storage_errors("remove learned meaning"):
        result = await db.execute(stmt)
    if result.rowcount == 0:
        return False
    logger.info("User %d removed card %d", user_id, card_id)
    return True
