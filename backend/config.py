from datetime import UTC, date, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Replaces the deprecated ``datetime.utcnow()`` while keeping datetimes
    naive so they stay compatible with SQLite (which doesn't store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


def today(now: datetime | None = None) -> date:
    """Return the calendar day key used for daily learning stats.

    ``now`` is a naive UTC timestamp like every stored one. Days roll over at
    the server's local midnight, not the user's.
    """
    now = now or utcnow()
    return now.replace(tzinfo=UTC).astimezone().date()


class Settings(BaseSettings):
    app_name: str = "Vocab Review"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'vocab_review.db'}"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    default_user_name: str = "Learner"
    debug: bool = False

    model_config = {"env_prefix": "VOCAB_REVIEW_", "env_file": ".env"}


settings = Settings()
