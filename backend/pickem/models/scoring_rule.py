from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickem.models.round import Round


class RoundScoringRule(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    round_id: int = Field(foreign_key="round.id", unique=True)
    points_per_winner: int = Field(default=10)
    points_exact_score: int = Field(default=5)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    round: "Round" = Relationship(back_populates="scoring_rule")
