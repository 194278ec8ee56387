"""SM-2 spaced repetition scheduler.

An Anki-flavoured variant of SuperMemo SM-2 used for learned word meanings.
Reference: https://faqs.ankiweb.net/what-spaced-repetition-algorithm.html

Key concepts:
- Ease factor: Multiplier controlling how fast the interval grows (>= 1.3).
- Interval: Whole days until the next review (>= 1).
- Repetitions: Consecutive successful recalls since the last "Again".
- Rating: again, hard, good, easy

Everything here is pure: no I/O, no clock reads unless ``now`` is omitted.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from backend.config import utcnow

INITIAL_EASE_FACTOR = 2.5
INITIAL_INTERVAL_DAYS = 1
MIN_EASE_FACTOR = 1.3

AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15  # no upper bound

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6

HARD_INTERVAL_FACTOR = 1.2
EASY_INTERVAL_FACTOR = 1.3


class Rating(Enum):
    """The learner's recall judgment for one review."""

    AGAIN = "again"  # Forgot: reset progress
    HARD = "hard"    # Remembered with effort
    GOOD = "good"    # Remembered normally
    EASY = "easy"    # Remembered effortlessly

    @property
    def is_correct(self) -> bool:
        """Every rating except Again counts as a correct recall."""
        return self is not Rating.AGAIN


@dataclass(frozen=True)
class CardState:
    """The SM-2 scheduling state of a card."""

    ease_factor: float
    interval_days: int
    repetitions: int


def initial_state() -> CardState:
    """Return the state a freshly learned meaning starts with."""
    return CardState(
        ease_factor=INITIAL_EASE_FACTOR,
        interval_days=INITIAL_INTERVAL_DAYS,
        repetitions=0,
    )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values.

    ``round()`` uses banker's rounding (``round(26.5) == 26``), which would
    shorten intervals that land on a half day.
    """
    return int(math.floor(value + 0.5))


def calculate_next_review(state: CardState, rating: Rating) -> CardState:
    """Compute the scheduling state after a review.

    Args:
        state: Current card state.
        rating: The learner's rating for this review.

    Returns:
        The new CardState. Never raises for any Rating.
    """
    # Persisted state is expected to be in range already; clamp corrupt rows.
    ease_factor = max(MIN_EASE_FACTOR, state.ease_factor)
    interval_days = max(1, int(state.interval_days))
    repetitions = max(0, int(state.repetitions))

    if rating is Rating.AGAIN:
        return CardState(
            ease_factor=max(MIN_EASE_FACTOR, ease_factor - AGAIN_EASE_PENALTY),
            interval_days=1,
            repetitions=0,
        )

    if rating is Rating.HARD:
        new_ease = max(MIN_EASE_FACTOR, ease_factor - HARD_EASE_PENALTY)
    elif rating is Rating.EASY:
        new_ease = ease_factor + EASY_EASE_BONUS
    else:
        new_ease = ease_factor

    new_repetitions = repetitions + 1

    if new_repetitions == 1:
        base = FIRST_INTERVAL_DAYS
    elif new_repetitions == 2:
        base = SECOND_INTERVAL_DAYS
    else:
        # Grows from the previous interval using the updated ease
        base = round_half_up(interval_days * new_ease)

    if rating is Rating.HARD:
        new_interval = max(1, round_half_up(base * HARD_INTERVAL_FACTOR))
    elif rating is Rating.EASY:
        new_interval = round_half_up(base * EASY_INTERVAL_FACTOR)
    else:
        new_interval = base

    return CardState(
        ease_factor=new_ease,
        interval_days=max(1, new_interval),
        repetitions=new_repetitions,
    )


def next_review_date(interval_days: int, now: datetime | None = None) -> datetime:
    """Return the moment a card becomes due again, ``interval_days`` calendar days from now."""
    now = now or utcnow()
    return now + timedelta(days=interval_days)
