from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickem.models.match import Match
    from pickem.models.picks import UserRoundPick
    from pickem.models.scoring_rule import RoundScoringRule
    from pickem.models.tournament import Tournament


class Round(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "round_number", name="uq_tournament_round_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round_number: int  # 1-based bracket depth
    name: str = Field(max_length=100)

    # Owned by the round lifecycle service; set once every live match is finalized
    is_finalized: bool = Field(default=False)

    # Scheduling hints for the UI only
    opens_at: Optional[datetime] = Field(default=None)
    deadline: Optional[datetime] = Field(default=None)

    # Submission gate (null = open)
    submissions_closed_at: Optional[datetime] = Field(default=None, index=True)
    submissions_closed_by: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="rounds")
    matches: List["Match"] = Relationship(back_populates="round")
    scoring_rule: Optional["RoundScoringRule"] = Relationship(
        back_populates="round", sa_relationship_kwargs={"uselist": False}
    )
    user_round_picks: List["UserRoundPick"] = Relationship(back_populates="round")
