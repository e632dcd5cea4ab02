from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickem.models.picks import MatchPick
    from pickem.models.round import Round

TBD = "TBD"
BYE = "BYE"


class MatchStatus(str, Enum):
    pending = "pending"
    finalized = "finalized"


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    round_id: int = Field(foreign_key="round.id", index=True)
    match_number: int  # 1-based, contiguous within the round

    # "TBD" while unknown; "BYE" (any case) marks an intentionally empty slot
    player1_name: str = Field(max_length=255)
    player2_name: str = Field(max_length=255)
    player1_seed: Optional[int] = Field(default=None)
    player2_seed: Optional[int] = Field(default=None)

    winner_name: Optional[str] = Field(default=None, max_length=255)
    final_score: Optional[str] = Field(default=None, max_length=50)  # e.g. "6-4,6-3"
    sets_won: Optional[int] = Field(default=None)  # winner's perspective
    sets_lost: Optional[int] = Field(default=None)

    status: MatchStatus = Field(
        default=MatchStatus.pending, sa_column=Column(String, nullable=False, default="pending", index=True)
    )
    finalized_at: Optional[datetime] = Field(default=None)
    finalized_by: Optional[str] = Field(default=None)
    is_retirement: bool = Field(default=False)
    is_bye: bool = Field(default=False)

    deleted_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    round: "Round" = Relationship(back_populates="matches")
    match_picks: List["MatchPick"] = Relationship(back_populates="match")

    @property
    def is_finalized(self) -> bool:
        return self.status == MatchStatus.finalized
