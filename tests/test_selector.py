"""Tests for due-card selection and card classification."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from backend.models.learned_meaning import LearnedMeaning
from backend.srs.selector import (
    CardCategory,
    DisplayType,
    categorize,
    describe_card,
    due_cards,
    is_due,
    select_next,
)

NOW = datetime(2025, 1, 15, 12, 0)


@dataclass
class StubCard:
    id: int
    repetitions: int = 0
    interval_days: int = 1
    next_review_date: datetime = NOW


def _meaning(
    card_id: int,
    word: str = "bank",
    meaning_text: str = "river side",
    pos: str | None = "n.",
    word_in_text: str | None = None,
) -> LearnedMeaning:
    return LearnedMeaning(
        id=card_id,
        user_id=1,
        word=word,
        word_in_text=word_in_text,
        meaning_text=meaning_text,
        pos=pos,
        example_sentence="We sat on the bank.",
        ease_factor=2.5,
        interval_days=1,
        repetitions=0,
        next_review_date=NOW,
        total_reviews=0,
    )


# --- Due predicate ---


class TestDue:
    def test_due_at_exact_time(self) -> None:
        assert is_due(StubCard(1, next_review_date=NOW), NOW)

    def test_overdue(self) -> None:
        assert is_due(StubCard(1, next_review_date=NOW - timedelta(days=3)), NOW)

    def test_not_yet_due(self) -> None:
        assert not is_due(StubCard(1, next_review_date=NOW + timedelta(seconds=1)), NOW)

    def test_due_cards_filters(self) -> None:
        cards = [
            StubCard(1, next_review_date=NOW - timedelta(hours=1)),
            StubCard(2, next_review_date=NOW + timedelta(hours=1)),
            StubCard(3, next_review_date=NOW),
        ]
        assert [c.id for c in due_cards(cards, NOW)] == [1, 3]


# --- Categories ---


class TestCategorize:
    def test_new(self) -> None:
        assert categorize(StubCard(1, repetitions=0, interval_days=1)) is CardCategory.NEW

    def test_new_wins_over_long_interval(self) -> None:
        # Not reachable via the scheduler, but repetitions decide first
        assert categorize(StubCard(1, repetitions=0, interval_days=30)) is CardCategory.NEW

    def test_learning_below_threshold(self) -> None:
        assert categorize(StubCard(1, repetitions=2, interval_days=20)) is CardCategory.LEARNING

    def test_reviewing_at_threshold(self) -> None:
        assert categorize(StubCard(1, repetitions=4, interval_days=21)) is CardCategory.REVIEWING


# --- Selection order ---


class TestSelectNext:
    def test_nothing_due(self) -> None:
        cards = [StubCard(1, next_review_date=NOW + timedelta(days=1))]
        assert select_next(cards, NOW) is None

    def test_empty(self) -> None:
        assert select_next([], NOW) is None

    def test_new_cards_first(self) -> None:
        cards = [
            StubCard(1, repetitions=3, interval_days=15, next_review_date=NOW - timedelta(days=10)),
            StubCard(2, repetitions=0, next_review_date=NOW - timedelta(minutes=1)),
        ]
        assert select_next(cards, NOW).id == 2

    def test_lower_repetitions_first(self) -> None:
        cards = [
            StubCard(1, repetitions=2, next_review_date=NOW - timedelta(days=5)),
            StubCard(2, repetitions=1, next_review_date=NOW - timedelta(days=1)),
        ]
        assert select_next(cards, NOW).id == 2

    def test_earliest_due_within_same_repetitions(self) -> None:
        cards = [
            StubCard(1, repetitions=1, next_review_date=NOW - timedelta(days=1)),
            StubCard(2, repetitions=1, next_review_date=NOW - timedelta(days=4)),
            StubCard(3, repetitions=1, next_review_date=NOW - timedelta(days=2)),
        ]
        assert select_next(cards, NOW).id == 2

    def test_not_due_cards_ignored(self) -> None:
        cards = [
            StubCard(1, repetitions=0, next_review_date=NOW + timedelta(days=1)),
            StubCard(2, repetitions=5, interval_days=40, next_review_date=NOW - timedelta(days=1)),
        ]
        assert select_next(cards, NOW).id == 2

    def test_deterministic_regardless_of_input_order(self) -> None:
        cards = [
            StubCard(i, repetitions=i % 3, next_review_date=NOW - timedelta(hours=i % 5))
            for i in range(1, 20)
        ]
        first = select_next(cards, NOW)
        assert select_next(list(reversed(cards)), NOW) is first
        assert select_next(sorted(cards, key=lambda c: -c.id), NOW) is first


# --- Display view ---


class TestDescribeCard:
    def test_single_meaning_is_new(self) -> None:
        card = _meaning(1)
        view = describe_card(card, [card])
        assert view.display_type is DisplayType.NEW
        assert view.learned_meanings == []
        assert view.category is CardCategory.NEW

    def test_additional_meaning_is_extend(self) -> None:
        card = _meaning(2, meaning_text="financial institution")
        siblings = [_meaning(1), _meaning(3, meaning_text="to rely on", pos="v."), card]
        view = describe_card(card, siblings)
        assert view.display_type is DisplayType.EXTEND
        assert view.learned_meanings == ["river side (n.)", "to rely on (v.)"]

    def test_meaning_without_pos(self) -> None:
        card = _meaning(2)
        view = describe_card(card, [_meaning(1, pos=None), card])
        assert view.learned_meanings == ["river side"]

    def test_highlighted_word_prefers_text_form(self) -> None:
        card = _meaning(1, word="run", word_in_text="running")
        assert describe_card(card, [card]).highlighted_word == "running"

    def test_highlighted_word_falls_back_to_word(self) -> None:
        card = _meaning(1, word="run")
        assert describe_card(card, [card]).highlighted_word == "run"
