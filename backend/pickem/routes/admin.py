"""
Admin endpoints: draw upload, match results, round submission gate and the
tournament lifecycle.

The acting admin id comes from the X-Admin-Id header (PICKEM_ADMIN_ID when
absent); it is recorded in finalized_by / closed_by fields.
"""
import os
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Response
from pydantic import BaseModel, Field, model_validator
from sqlmodel import Session

from pickem.database import get_session, transaction
from pickem.models.tournament import TournamentFormat, TournamentStatus
from pickem.routes.tournaments import (
    MatchResponse,
    RoundResponse,
    TournamentDetailResponse,
    TournamentResponse,
    round_to_response,
    tournament_to_detail,
)
from pickem.services import round_lifecycle, tournament_lifecycle
from pickem.services.draw_ingestion import ParsedDraw, ParsedMatch, ParsedRound, commit_draw
from pickem.services.scoring import recalculate_round_scores
from pickem.utils.guards import get_round_or_404, get_tournament_or_404

router = APIRouter(prefix="/admin")

DEFAULT_ADMIN_ID = os.getenv("PICKEM_ADMIN_ID", "admin")


def get_admin_id(x_admin_id: Optional[str] = Header(default=None)) -> str:
    return x_admin_id or DEFAULT_ADMIN_ID


# ---------------------------------------------------------------------------
# Draw upload
# ---------------------------------------------------------------------------


class DrawMatchIn(BaseModel):
    match_number: int = Field(ge=1)
    player1_name: Optional[str] = None
    player2_name: Optional[str] = None
    player1_seed: Optional[int] = None
    player2_seed: Optional[int] = None
    winner_name: Optional[str] = None
    sets_won: Optional[int] = None
    sets_lost: Optional[int] = None
    final_score: Optional[str] = None
    is_retirement: bool = False


class DrawRoundIn(BaseModel):
    round_number: int = Field(ge=1)
    name: str
    matches: List[DrawMatchIn] = []


class ParsedDrawIn(BaseModel):
    tournament_name: str
    year: int
    rounds: List[DrawRoundIn]


class CommitDrawRequest(BaseModel):
    parsed_draw: ParsedDrawIn
    format: TournamentFormat = TournamentFormat.bo3
    atp_url: Optional[str] = None
    overwrite_existing: bool = False


def _to_parsed_draw(payload: ParsedDrawIn) -> ParsedDraw:
    return ParsedDraw(
        tournament_name=payload.tournament_name,
        year=payload.year,
        rounds=[
            ParsedRound(
                round_number=r.round_number,
                name=r.name,
                matches=[ParsedMatch(**m.model_dump()) for m in r.matches],
            )
            for r in payload.rounds
        ],
    )


@router.post("/draws", response_model=TournamentDetailResponse, status_code=201)
def commit_draw_endpoint(
    payload: CommitDrawRequest,
    admin_id: str = Depends(get_admin_id),
    session: Session = Depends(get_session),
):
    """Create a tournament from a parsed draw (replaces an earlier upload of the same slug)"""
    tournament = commit_draw(
        session,
        _to_parsed_draw(payload.parsed_draw),
        uploaded_by=admin_id,
        fmt=payload.format,
        atp_url=payload.atp_url,
        overwrite_existing=payload.overwrite_existing,
    )
    return tournament_to_detail(session, tournament)


# ---------------------------------------------------------------------------
# Tournament metadata
# ---------------------------------------------------------------------------


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    year: Optional[int] = None
    format: Optional[TournamentFormat] = None
    atp_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[TournamentStatus] = None

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


@router.patch("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, payload: TournamentUpdate, session: Session = Depends(get_session)):
    return tournament_lifecycle.update_tournament(session, tournament_id, payload.model_dump(exclude_unset=True))


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Soft delete a tournament and its matches"""
    tournament_lifecycle.delete_tournament(session, tournament_id)
    return Response(status_code=204)


class ActiveRoundRequest(BaseModel):
    round_number: int


@router.post("/tournaments/{tournament_id}/active-round", response_model=RoundResponse)
def set_active_round(tournament_id: int, payload: ActiveRoundRequest, session: Session = Depends(get_session)):
    round_ = round_lifecycle.set_active_round(session, tournament_id, payload.round_number)
    tournament = get_tournament_or_404(session, tournament_id)
    return round_to_response(session, tournament, round_)


# ---------------------------------------------------------------------------
# Tournament close / reopen
# ---------------------------------------------------------------------------


class TournamentSummary(BaseModel):
    total_rounds: int
    total_matches: int
    total_participants: int


class CloseTournamentResponse(BaseModel):
    summary: TournamentSummary


class ReopenTournamentRequest(BaseModel):
    status: TournamentStatus = TournamentStatus.active


@router.post("/tournaments/{tournament_id}/close", response_model=CloseTournamentResponse)
def close_tournament(
    tournament_id: int,
    admin_id: str = Depends(get_admin_id),
    session: Session = Depends(get_session),
):
    summary = tournament_lifecycle.close_tournament(session, tournament_id, closed_by=admin_id)
    return CloseTournamentResponse(summary=TournamentSummary(**summary))


@router.post("/tournaments/{tournament_id}/reopen", response_model=TournamentResponse)
def reopen_tournament(
    tournament_id: int,
    payload: Optional[ReopenTournamentRequest] = None,
    session: Session = Depends(get_session),
):
    status = payload.status if payload else TournamentStatus.active
    return tournament_lifecycle.reopen_tournament(session, tournament_id, status)


# ---------------------------------------------------------------------------
# Match results
# ---------------------------------------------------------------------------


class FinalizeMatchRequest(BaseModel):
    winner_name: str
    sets_won: int
    sets_lost: int
    final_score: Optional[str] = None
    is_retirement: bool = False


@router.post("/matches/{match_id}/finalize", response_model=MatchResponse)
def finalize_match(
    match_id: int,
    payload: FinalizeMatchRequest,
    admin_id: str = Depends(get_admin_id),
    session: Session = Depends(get_session),
):
    """Record the result, advance the winner into the next round and score picks"""
    return round_lifecycle.finalize_match(
        session,
        match_id,
        winner_name=payload.winner_name,
        sets_won=payload.sets_won,
        sets_lost=payload.sets_lost,
        finalized_by=admin_id,
        final_score=payload.final_score,
        is_retirement=payload.is_retirement,
    )


@router.post("/matches/{match_id}/unfinalize", response_model=MatchResponse)
def unfinalize_match(match_id: int, session: Session = Depends(get_session)):
    return round_lifecycle.unfinalize_match(session, match_id)


# ---------------------------------------------------------------------------
# Round submission gate
# ---------------------------------------------------------------------------


class CloseSubmissionsResponse(BaseModel):
    drafts_finalized: int


class ReopenSubmissionsResponse(BaseModel):
    pending_matches: int
    finalized_matches: int
    total_matches: int


class RecalculateResponse(BaseModel):
    round_id: int
    matches_rescored: int


@router.post("/rounds/{round_id}/close-submissions", response_model=CloseSubmissionsResponse)
def close_round_submissions(
    round_id: int,
    admin_id: str = Depends(get_admin_id),
    session: Session = Depends(get_session),
):
    return round_lifecycle.close_round_submissions(session, round_id, closed_by=admin_id)


@router.post("/rounds/{round_id}/reopen-submissions", response_model=ReopenSubmissionsResponse)
def reopen_round_submissions(round_id: int, session: Session = Depends(get_session)):
    return round_lifecycle.reopen_round_submissions(session, round_id)


@router.post("/rounds/{round_id}/recalculate-scores", response_model=RecalculateResponse)
def recalculate_scores(round_id: int, session: Session = Depends(get_session)):
    with transaction(session):
        get_round_or_404(session, round_id)
        rescored = recalculate_round_scores(session, round_id)
    return RecalculateResponse(round_id=round_id, matches_rescored=rescored)
