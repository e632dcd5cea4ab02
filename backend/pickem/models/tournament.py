from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pickem.models.round import Round


class TournamentFormat(str, Enum):
    bo3 = "bo3"  # best of 3 sets
    bo5 = "bo5"  # best of 5 sets


class TournamentStatus(str, Enum):
    draft = "draft"
    active = "active"
    archived = "archived"


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True)  # unique among live (non-deleted) tournaments
    year: int = Field(index=True)
    format: TournamentFormat = Field(
        default=TournamentFormat.bo3, sa_column=Column(String, nullable=False, default="bo3")
    )
    atp_url: Optional[str] = Field(default=None, max_length=500)
    status: TournamentStatus = Field(
        default=TournamentStatus.draft, sa_column=Column(String, nullable=False, default="draft", index=True)
    )

    # Single source of truth for "the round currently open for picks"
    active_round_number: Optional[int] = Field(default=None)

    start_date: Optional[datetime] = Field(default=None)
    end_date: Optional[datetime] = Field(default=None)
    uploaded_by: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    deleted_at: Optional[datetime] = Field(default=None)
    closed_at: Optional[datetime] = Field(default=None)
    closed_by: Optional[str] = Field(default=None)

    # Relationships
    rounds: List["Round"] = Relationship(back_populates="tournament")
