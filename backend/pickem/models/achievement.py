from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class AchievementCategory(str, Enum):
    round = "round"
    streak = "streak"
    milestone = "milestone"
    special = "special"


class AchievementDefinition(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True, max_length=50)
    name: str = Field(max_length=100)
    description: str
    category: AchievementCategory = Field(sa_column=Column(String, nullable=False, index=True))
    badge_color: Optional[str] = Field(default=None, max_length=50)
    threshold: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserAchievement(SQLModel, table=True):
    """One row per unlocked achievement; a user unlocks each code once"""

    __table_args__ = (SAUniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    achievement_id: int = Field(foreign_key="achievementdefinition.id", index=True)
    tournament_id: Optional[int] = Field(default=None, foreign_key="tournament.id")
    round_id: Optional[int] = Field(default=None, foreign_key="round.id")
    value: Optional[int] = Field(default=None)  # streak length, exact-score count, ...
    unlocked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
