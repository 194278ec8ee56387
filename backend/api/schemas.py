"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from backend.srs.learned_words import normalize_word
from backend.srs.sm2 import Rating

# --- Review ---


class ReviewStatsResponse(BaseModel):
    """Entrance/completion screen numbers."""

    today_due: int
    new_cards: int
    learning: int  # interval < 21 days
    reviewing: int  # interval >= 21 days
    total_vocab: int
    completed_today: int


class CardResponse(BaseModel):
    """A card to present for review."""

    id: int
    word: str
    highlighted_word: str  # form shown in the example sentence
    meaning: str
    pos: str | None = None
    sentence: str | None = None
    type: Literal["new", "extend"]
    category: Literal["new", "learning", "reviewing"]
    learned_meanings: list[str] = []  # other meanings, only for "extend"


class NextCardResponse(BaseModel):
    card: CardResponse | None


class AnswerRequest(BaseModel):
    """Request to rate a card."""

    card_id: int = Field(gt=0)
    rating: Rating


class AnswerResponse(BaseModel):
    """Scheduling outcome of the answer plus the next card, if any."""

    interval_days: int
    ease_factor: float
    repetitions: int
    next_review_date: datetime
    next_card: CardResponse | None


class SkipRequest(BaseModel):
    """Cards skipped so far in this sitting; they are passed over."""

    skipped_card_ids: list[int] = []


class SkipResponse(BaseModel):
    next_card: CardResponse | None


class ExitRequest(BaseModel):
    """Session-local counters reported when leaving a review."""

    reviewed_count: int = Field(ge=0)
    correct_count: int = Field(ge=0)


class ExitResponse(BaseModel):
    status: Literal["ended"] = "ended"
    reviewed_count: int
    correct_count: int
    completed_today: int


# --- Learned meanings ---

# Stripped and lower-cased; blank words are rejected
Word = Annotated[str, Field(min_length=1, max_length=100), AfterValidator(normalize_word)]


class LearnedMeaningCreate(BaseModel):
    """Request to start learning a word meaning."""

    word: Word
    meaning_text: str = Field(min_length=1)
    word_in_text: str | None = Field(default=None, max_length=100)
    pos: str | None = Field(default=None, max_length=20)
    example_sentence: str | None = None


class LearnedMeaningUpdate(BaseModel):
    """Correction to the word or meaning of a card; review progress is kept."""

    word: Word
    meaning_text: str = Field(min_length=1)


class LearnedMeaningResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    word: str
    word_in_text: str | None
    meaning_text: str
    pos: str | None
    example_sentence: str | None
    ease_factor: float
    interval_days: int
    repetitions: int
    next_review_date: datetime
    last_reviewed_at: datetime | None
    total_reviews: int
    created_at: datetime


class LearnedWordsSummaryResponse(BaseModel):
    total: int
    new_words: int
    learning: int  # 1-3 repetitions
    reviewing: int  # more than 3 repetitions
