"""
Read-only tournament, round and match views for players and admins.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session, select

from pickem.database import get_session
from pickem.models.match import MatchStatus
from pickem.models.round import Round
from pickem.models.tournament import Tournament, TournamentFormat, TournamentStatus
from pickem.services.round_lifecycle import is_round_active
from pickem.services.scoring_config import get_round_abbreviation
from pickem.utils.guards import get_live_round_matches, get_round_or_404, get_tournament_or_404

router = APIRouter()


class MatchResponse(BaseModel):
    id: int
    round_id: int
    match_number: int
    player1_name: str
    player2_name: str
    player1_seed: Optional[int] = None
    player2_seed: Optional[int] = None
    winner_name: Optional[str] = None
    final_score: Optional[str] = None
    sets_won: Optional[int] = None
    sets_lost: Optional[int] = None
    status: MatchStatus
    is_retirement: bool
    is_bye: bool
    finalized_at: Optional[datetime] = None
    finalized_by: Optional[str] = None

    class Config:
        from_attributes = True


class RoundResponse(BaseModel):
    id: int
    tournament_id: int
    round_number: int
    name: str
    abbreviation: str
    is_active: bool
    is_finalized: bool
    submissions_closed_at: Optional[datetime] = None
    submissions_closed_by: Optional[str] = None
    matches: List[MatchResponse] = []


class TournamentResponse(BaseModel):
    id: int
    name: str
    slug: str
    year: int
    format: TournamentFormat
    status: TournamentStatus
    atp_url: Optional[str] = None
    active_round_number: Optional[int] = None
    uploaded_by: str
    created_at: datetime
    closed_at: Optional[datetime] = None
    closed_by: Optional[str] = None

    class Config:
        from_attributes = True


class TournamentDetailResponse(TournamentResponse):
    rounds: List[RoundResponse] = []


def round_to_response(session: Session, tournament: Tournament, round_: Round) -> RoundResponse:
    return RoundResponse(
        id=round_.id,
        tournament_id=round_.tournament_id,
        round_number=round_.round_number,
        name=round_.name,
        abbreviation=get_round_abbreviation(round_.name, round_.round_number),
        is_active=is_round_active(tournament, round_),
        is_finalized=round_.is_finalized,
        submissions_closed_at=round_.submissions_closed_at,
        submissions_closed_by=round_.submissions_closed_by,
        matches=[MatchResponse.model_validate(m) for m in get_live_round_matches(session, round_.id)],
    )


def tournament_to_detail(session: Session, tournament: Tournament) -> TournamentDetailResponse:
    rounds = session.exec(
        select(Round).where(Round.tournament_id == tournament.id).order_by(Round.round_number)
    ).all()
    base = TournamentResponse.model_validate(tournament)
    return TournamentDetailResponse(
        **base.model_dump(),
        rounds=[round_to_response(session, tournament, r) for r in rounds],
    )


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(status: Optional[TournamentStatus] = None, session: Session = Depends(get_session)):
    """List live tournaments, newest first"""
    stmt = select(Tournament).where(Tournament.deleted_at.is_(None))
    if status is not None:
        stmt = stmt.where(Tournament.status == status.value)
    return session.exec(stmt.order_by(Tournament.year.desc(), Tournament.id.desc())).all()


@router.get("/tournaments/slug/{slug}", response_model=TournamentDetailResponse)
def get_tournament_by_slug(slug: str, session: Session = Depends(get_session)):
    tournament = session.exec(
        select(Tournament).where(Tournament.slug == slug, Tournament.deleted_at.is_(None))
    ).first()
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament_to_detail(session, tournament)


@router.get("/tournaments/{tournament_id}", response_model=TournamentDetailResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Tournament with its rounds (by number) and live matches (by match number)"""
    tournament = get_tournament_or_404(session, tournament_id)
    return tournament_to_detail(session, tournament)


@router.get("/rounds/{round_id}/results", response_model=RoundResponse)
def get_round_results(round_id: int, session: Session = Depends(get_session)):
    round_ = get_round_or_404(session, round_id)
    tournament = session.get(Tournament, round_.tournament_id)
    return round_to_response(session, tournament, round_)
