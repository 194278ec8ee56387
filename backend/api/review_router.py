"""API routes for the review flow."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import (
    AnswerRequest,
    AnswerResponse,
    CardResponse,
    ExitRequest,
    ExitResponse,
    NextCardResponse,
    ReviewStatsResponse,
    SkipRequest,
    SkipResponse,
)
from backend.database import get_session
from backend.srs.errors import CardNotFoundError, PersistenceError
from backend.srs.selector import CardView, get_next_card
from backend.srs.session import skip_card, submit_answer
from backend.srs.stats import get_review_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/review", tags=["review"])


def card_response(view: CardView | None) -> CardResponse | None:
    if view is None:
        return None
    return CardResponse(
        id=view.id,
        word=view.word,
        highlighted_word=view.highlighted_word,
        meaning=view.meaning,
        pos=view.pos,
        sentence=view.sentence,
        type=view.display_type.value,
        category=view.category.value,
        learned_meanings=view.learned_meanings,
    )


def storage_unavailable(exc: PersistenceError) -> HTTPException:
    logger.exception("Review storage failure: %s", exc)
    return HTTPException(status_code=503, detail="Storage unavailable, please try again")


@router.get("/stats", response_model=ReviewStatsResponse)
async def review_stats(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> ReviewStatsResponse:
    """Get due counts, category breakdown and today's progress."""
    try:
        stats = await get_review_stats(db, user_id)
    except PersistenceError as exc:
        raise storage_unavailable(exc) from exc
    return ReviewStatsResponse(**asdict(stats))


@router.get("/next", response_model=NextCardResponse)
async def review_next(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> NextCardResponse:
    """Get the next due card, or null when the review is done."""
    try:
        view = await get_next_card(db, user_id)
    except PersistenceError as exc:
        raise storage_unavailable(exc) from exc
    return NextCardResponse(card=card_response(view))


@router.post("/answer", response_model=AnswerResponse)
async def review_answer(
    user_id: int,
    request: AnswerRequest,
    db: AsyncSession = Depends(get_session),
) -> AnswerResponse:
    """Rate a card, reschedule it and return the next card."""
    try:
        result = await submit_answer(db, user_id, request.card_id, request.rating)
        next_view = await get_next_card(db, user_id)
    except CardNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Card not found") from exc
    except PersistenceError as exc:
        raise storage_unavailable(exc) from exc

    return AnswerResponse(
        interval_days=result.new_state.interval_days,
        ease_factor=result.new_state.ease_factor,
        repetitions=result.new_state.repetitions,
        next_review_date=result.next_review_date,
        next_card=card_response(next_view),
    )


@router.post("/skip", response_model=SkipResponse)
async def review_skip(
    user_id: int,
    request: SkipRequest | None = None,
    db: AsyncSession = Depends(get_session),
) -> SkipResponse:
    """Move past a card without changing it or any counter."""
    skipped = frozenset(request.skipped_card_ids) if request else frozenset()
    try:
        view = await skip_card(db, user_id, skipped)
    except PersistenceError as exc:
        raise storage_unavailable(exc) from exc
    return SkipResponse(next_card=card_response(view))


@router.post("/exit", response_model=ExitResponse)
async def review_exit(
    user_id: int,
    request: ExitRequest,
    db: AsyncSession = Depends(get_session),
) -> ExitResponse:
    """End a review sitting.

    Answers are already counted when they are submitted, so the session
    counters are only echoed back, never added to the daily stats again.
    """
    try:
        stats = await get_review_stats(db, user_id)
    except PersistenceError as exc:
        raise storage_unavailable(exc) from exc

    logger.info(
        "User %d exited review: %d reviewed, %d correct this session",
        user_id,
        request.reviewed_count,
        request.correct_count,
    )
    return ExitResponse(
        reviewed_count=request.reviewed_count,
        correct_count=request.correct_count,
        completed_today=stats.completed_today,
    )
