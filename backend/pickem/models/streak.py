from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class UserStreak(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True, max_length=255)
    current_streak: int = Field(default=0)
    longest_streak: int = Field(default=0)
    last_match_id: Optional[int] = Field(default=None, foreign_key="match.id")
    last_updated_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
