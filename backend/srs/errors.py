"""Exceptions raised by the review engine.

"No card due" is not an error: the selector returns ``None`` for it.
"""


class ReviewError(Exception):
    """Base class for review engine errors."""


class CardNotFoundError(ReviewError):
    """The card does not exist or belongs to another user."""

    def __init__(self, user_id: int, card_id: int) -> None:
        super().__init__(f"Card {card_id} not found for user {user_id}")
        self.user_id = user_id
        self.card_id = card_id


class PersistenceError(ReviewError):
    """The storage layer failed while reading or writing review state."""


class SessionStateError(ReviewError):
    """A review session action was called in the wrong phase."""


class UserNotFoundError(ReviewError):
    """No user with this id exists."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id
