"""Tests for the SM-2 scheduler: state transitions and review dates."""

import random
from datetime import datetime, timedelta

import pytest

from backend.config import utcnow
from backend.srs.sm2 import (
    MIN_EASE_FACTOR,
    CardState,
    Rating,
    calculate_next_review,
    initial_state,
    next_review_date,
    round_half_up,
)

ALL_RATINGS = list(Rating)
REMEMBERED = [Rating.HARD, Rating.GOOD, Rating.EASY]


def _state(ease: float = 2.5, interval: int = 1, reps: int = 0) -> CardState:
    return CardState(ease_factor=ease, interval_days=interval, repetitions=reps)


# --- Again ---


class TestAgain:
    def test_resets_interval_and_repetitions(self) -> None:
        result = calculate_next_review(_state(2.5, 10, 3), Rating.AGAIN)
        assert result.interval_days == 1
        assert result.repetitions == 0

    def test_lowers_ease(self) -> None:
        result = calculate_next_review(_state(2.5, 10, 3), Rating.AGAIN)
        assert result.ease_factor == pytest.approx(2.3)

    def test_ease_floor(self) -> None:
        result = calculate_next_review(_state(1.4, 10, 3), Rating.AGAIN)
        assert result.ease_factor == MIN_EASE_FACTOR

    def test_resets_regardless_of_history(self) -> None:
        for reps in (0, 1, 5, 40):
            result = calculate_next_review(_state(2.5, 365, reps), Rating.AGAIN)
            assert (result.interval_days, result.repetitions) == (1, 0)


# --- Hard ---


class TestHard:
    def test_lowers_ease(self) -> None:
        result = calculate_next_review(initial_state(), Rating.HARD)
        assert result.ease_factor == pytest.approx(2.35)

    def test_ease_floor(self) -> None:
        result = calculate_next_review(_state(1.4, 1, 0), Rating.HARD)
        assert result.ease_factor == MIN_EASE_FACTOR

    def test_first_success_interval(self) -> None:
        result = calculate_next_review(initial_state(), Rating.HARD)
        assert result.repetitions == 1
        assert result.interval_days == 1  # round(1 * 1.2)

    def test_second_success_interval(self) -> None:
        result = calculate_next_review(_state(2.5, 1, 1), Rating.HARD)
        assert result.repetitions == 2
        assert result.interval_days == 7  # round(6 * 1.2)

    def test_later_interval_rounds_twice(self) -> None:
        # round(10 * 1.85) = 19 (half up), then round(19 * 1.2) = 23
        result = calculate_next_review(_state(2.0, 10, 2), Rating.HARD)
        assert result.repetitions == 3
        assert result.interval_days == 23

    def test_half_day_rounds_up(self) -> None:
        # Halves round up as JavaScript's Math.round does, not to even:
        # 10 * 2.35 = 23.5 -> 24, then 24 * 1.2 = 28.8 -> 29 (not 28)
        result = calculate_next_review(_state(2.5, 10, 2), Rating.HARD)
        assert result.ease_factor == pytest.approx(2.35)
        assert result.interval_days == 29
        assert result.repetitions == 3


# --- Good ---


class TestGood:
    def test_keeps_ease(self) -> None:
        result = calculate_next_review(initial_state(), Rating.GOOD)
        assert result.ease_factor == 2.5

    def test_learning_path(self) -> None:
        state = calculate_next_review(initial_state(), Rating.GOOD)
        assert state == _state(2.5, 1, 1)

        state = calculate_next_review(state, Rating.GOOD)
        assert state == _state(2.5, 6, 2)

        state = calculate_next_review(state, Rating.GOOD)
        assert state == _state(2.5, 15, 3)  # round(6 * 2.5)

    def test_large_interval_grows(self) -> None:
        result = calculate_next_review(_state(2.5, 365, 10), Rating.GOOD)
        assert result.interval_days > 365
        assert isinstance(result.interval_days, int)


# --- Easy ---


class TestEasy:
    def test_raises_ease_without_cap(self) -> None:
        assert calculate_next_review(initial_state(), Rating.EASY).ease_factor == pytest.approx(2.65)
        assert calculate_next_review(_state(3.0, 20, 5), Rating.EASY).ease_factor == pytest.approx(3.15)

    def test_first_success_interval(self) -> None:
        result = calculate_next_review(initial_state(), Rating.EASY)
        assert result.interval_days == 1  # round(1 * 1.3)

    def test_second_success_interval(self) -> None:
        result = calculate_next_review(_state(2.5, 1, 1), Rating.EASY)
        assert result.interval_days == 8  # round(6 * 1.3)

    def test_later_interval(self) -> None:
        # round(10 * 2.65) = 27, round(27 * 1.3) = 35
        result = calculate_next_review(_state(2.5, 10, 2), Rating.EASY)
        assert result.repetitions == 3
        assert result.interval_days == 35


# --- Invariants ---


class TestInvariants:
    def test_relearn_after_lapse(self) -> None:
        state = calculate_next_review(_state(2.5, 15, 3), Rating.AGAIN)
        assert (state.interval_days, state.repetitions) == (1, 0)
        assert state.ease_factor == pytest.approx(2.3)
        state = calculate_next_review(state, Rating.GOOD)
        assert (state.interval_days, state.repetitions) == (1, 1)

    def test_repetitions_increment_on_success(self) -> None:
        for rating in REMEMBERED:
            result = calculate_next_review(_state(2.5, 6, 2), rating)
            assert result.repetitions == 3

    def test_random_walks_keep_bounds(self) -> None:
        rng = random.Random(1234)
        for _ in range(200):
            state = initial_state()
            for _ in range(30):
                rating = rng.choice(ALL_RATINGS)
                new = calculate_next_review(state, rating)
                assert new.ease_factor >= MIN_EASE_FACTOR
                assert isinstance(new.interval_days, int)
                assert new.interval_days >= 1
                if rating is Rating.AGAIN:
                    assert new.repetitions == 0
                else:
                    assert new.repetitions == state.repetitions + 1
                state = new

    def test_corrupt_state_is_clamped(self) -> None:
        result = calculate_next_review(_state(0.8, 0, 5), Rating.GOOD)
        assert result.ease_factor >= MIN_EASE_FACTOR
        assert result.interval_days >= 1

    def test_zero_interval_new_card(self) -> None:
        result = calculate_next_review(_state(2.5, 0, 0), Rating.GOOD)
        assert (result.interval_days, result.repetitions) == (1, 1)

    def test_input_is_not_mutated(self) -> None:
        state = _state(2.5, 10, 3)
        calculate_next_review(state, Rating.EASY)
        assert state == _state(2.5, 10, 3)


def test_round_half_up() -> None:
    assert round_half_up(26.5) == 27
    assert round_half_up(18.5) == 19
    assert round_half_up(7.2) == 7
    assert round_half_up(7.8) == 8


def test_rating_correctness() -> None:
    assert not Rating.AGAIN.is_correct
    assert all(rating.is_correct for rating in REMEMBERED)


# --- Review dates ---


class TestNextReviewDate:
    def test_adds_whole_days(self) -> None:
        now = datetime(2025, 3, 10, 14, 30)
        assert next_review_date(7, now) == datetime(2025, 3, 17, 14, 30)

    def test_month_rollover(self) -> None:
        assert next_review_date(1, datetime(2025, 1, 31, 9, 0)) == datetime(2025, 2, 1, 9, 0)
        assert next_review_date(45, datetime(2025, 1, 20)) == datetime(2025, 3, 6)

    def test_year_rollover_and_leap_day(self) -> None:
        assert next_review_date(1, datetime(2024, 12, 31, 23, 59)) == datetime(2025, 1, 1, 23, 59)
        assert next_review_date(1, datetime(2024, 2, 28)) == datetime(2024, 2, 29)
        assert next_review_date(400, datetime(2025, 1, 1)).year == 2026

    def test_zero_days(self) -> None:
        now = datetime(2025, 6, 1, 8, 0)
        assert next_review_date(0, now) == now

    def test_defaults_to_now(self) -> None:
        before = utcnow()
        result = next_review_date(1)
        assert before + timedelta(days=1) <= result <= utcnow() + timedelta(days=1)
