"""SQLAlchemy ORM models for the vocabulary review database."""

from backend.models.base import Base
from backend.models.daily_stat import DailyLearningStat
from backend.models.learned_meaning import LearnedMeaning
from backend.models.user import User

__all__ = ["Base", "DailyLearningStat", "LearnedMeaning", "User"]
