from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickem.models.match import Match
    from pickem.models.round import Round


class UserRoundPick(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("user_id", "round_id", name="uq_user_round_pick"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, max_length=255)
    round_id: int = Field(foreign_key="round.id", index=True)
    is_draft: bool = Field(default=False)
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Denormalized totals, recomputed by the scoring service
    total_points: int = Field(default=0)
    correct_winners: int = Field(default=0)
    exact_scores: int = Field(default=0)
    scored_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    round: "Round" = Relationship(back_populates="user_round_picks")
    match_picks: List["MatchPick"] = Relationship(
        back_populates="user_round_pick", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class MatchPick(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("user_round_pick_id", "match_id", name="uq_match_pick"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_round_pick_id: int = Field(foreign_key="userroundpick.id", index=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    predicted_winner: str = Field(max_length=255)
    predicted_sets_won: int
    predicted_sets_lost: int

    # None until the match is scored (and again after unfinalize / retirement)
    is_winner_correct: Optional[bool] = Field(default=None)
    is_exact_score: Optional[bool] = Field(default=None)
    points_earned: int = Field(default=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    user_round_pick: "UserRoundPick" = Relationship(back_populates="match_picks")
    match: "Match" = Relationship(back_populates="match_picks")
