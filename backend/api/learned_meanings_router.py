"""API routes for managing a user's learned word meanings."""

import logging
from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import (
    LearnedMeaningCreate,
    LearnedMeaningResponse,
    LearnedMeaningUpdate,
    LearnedWordsSummaryResponse,
)
from backend.database import get_session
from backend.srs.errors import PersistenceError, UserNotFoundError
from backend.srs.learned_words import (
    add_learned_meaning,
    list_learned_meanings,
    remove_learned_meaning,
    update_learned_meaning,
)
from backend.srs.stats import summarize_learned_words
from backend.srs.store import load_card, storage_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/learned-meanings", tags=["learned-meanings"])


@router.post("", response_model=LearnedMeaningResponse, status_code=201)
async def create_learned_meaning(
    user_id: int,
    request: LearnedMeaningCreate,
    db: AsyncSession = Depends(get_session),
) -> LearnedMeaningResponse:
    """Start learning a word meaning; it is due for review right away."""
    try:
        card = await add_learned_meaning(
            db,
            user_id,
            request.word,
            request.meaning_text,
            word_in_text=request.word_in_text,
            pos=request.pos,
            example_sentence=request.example_sentence,
        )
        with storage_errors("commit learned meaning"):
            await db.commit()
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail="User not found") from exc
    except PersistenceError as exc:
        await db.rollback()
        logger.exception("Could not add learned meaning for user %d", user_id)
        raise HTTPException(status_code=503, detail="Storage unavailable, please try again") from exc
    return LearnedMeaningResponse.model_validate(card)


@router.get("", response_model=list[LearnedMeaningResponse])
async def get_learned_meanings(
    user_id: int,
    order: Literal["asc", "desc"] = "desc",
    db: AsyncSession = Depends(get_session),
) -> list[LearnedMeaningResponse]:
    """List a user's learned meanings, newest first by default."""
    try:
        cards = await list_learned_meanings(db, user_id, order=order)
    except PersistenceError as exc:
        logger.exception("Could not list learned meanings for user %d", user_id)
        raise HTTPException(status_code=503, detail="Storage unavailable, please try again") from exc
    return [LearnedMeaningResponse.model_validate(card) for card in cards]


@router.get("/summary", response_model=LearnedWordsSummaryResponse)
async def get_learned_words_summary(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> LearnedWordsSummaryResponse:
    """Count a user's learned meanings by learning stage."""
    try:
        cards = await list_learned_meanings(db, user_id)
    except PersistenceError as exc:
        logger.exception("Could not summarize learned meanings for user %d", user_id)
        raise HTTPException(status_code=503, detail="Storage unavailable, please try again") from exc
    return LearnedWordsSummaryResponse(**asdict(summarize_learned_words(cards)))


@router.put("/{card_id}", response_model=LearnedMeaningResponse)
async def edit_learned_meaning(
    card_id: int,
    user_id: int,
    request: LearnedMeaningUpdate,
    db: AsyncSession = Depends(get_session),
) -> LearnedMeaningResponse:
    """Correct the word or meaning of a card without resetting its progress."""
    try:
        updated = await update_learned_meaning(
            db, user_id, card_id, request.word, request.meaning_text
        )
        with storage_errors("commit edit"):
            await db.commit()
        card = await load_card(db, user_id, card_id) if updated else None
    except PersistenceError as exc:
        await db.rollback()
        logger.exception("Could not edit card %d for user %d", card_id, user_id)
        raise HTTPException(status_code=503, detail="Storage unavailable, please try again") from exc
    if card is None:
        raise HTTPException(status_code=404, detail="Card not found")
    return LearnedMeaningResponse.model_validate(card)


@router.delete("/{card_id}", status_code=204)
async def delete_learned_meaning(
    card_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> None:
    """Stop learning a meaning."""
    try:
        removed = await remove_learned_meaning(db, user_id, card_id)
        with storage_errors("commit removal"):
            await db.commit()
    except PersistenceError as exc:
        await db.rollback()
        logger.exception("Could not remove card %d for user %d", card_id, user_id)
        raise HTTPException(status_code=503, detail="Storage unavailable, please try again") from exc
    if not removed:
        raise HTTPException(status_code=404, detail="Card not found")
