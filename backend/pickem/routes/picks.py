"""
Player pick and achievement endpoints. The caller is identified by the X-User-Id header.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from pickem.database import get_session
from pickem.models.achievement import AchievementCategory
from pickem.services.achievements import get_user_achievements
from pickem.services.picks_service import (
    PickInput,
    get_user_round_pick,
    save_round_picks_draft,
    submit_round_picks,
)
from pickem.utils.guards import get_round_or_404

router = APIRouter()


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return x_user_id.strip()


class MatchPickIn(BaseModel):
    match_id: int
    predicted_winner: str
    predicted_sets_won: int
    predicted_sets_lost: int


class RoundPicksRequest(BaseModel):
    picks: List[MatchPickIn]


class MatchPickResponse(BaseModel):
    match_id: int
    predicted_winner: str
    predicted_sets_won: int
    predicted_sets_lost: int
    is_winner_correct: Optional[bool] = None
    is_exact_score: Optional[bool] = None
    points_earned: int

    class Config:
        from_attributes = True


class UserRoundPickResponse(BaseModel):
    id: int
    user_id: str
    round_id: int
    is_draft: bool
    submitted_at: datetime
    total_points: int
    correct_winners: int
    exact_scores: int
    match_picks: List[MatchPickResponse] = []

    class Config:
        from_attributes = True


def _to_inputs(payload: RoundPicksRequest) -> List[PickInput]:
    return [PickInput(**p.model_dump()) for p in payload.picks]


@router.post("/rounds/{round_id}/picks", response_model=UserRoundPickResponse, status_code=201)
def submit_picks(
    round_id: int,
    payload: RoundPicksRequest,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Submit final picks for the active round"""
    return submit_round_picks(session, user_id, round_id, _to_inputs(payload))


@router.put("/rounds/{round_id}/picks/draft", response_model=UserRoundPickResponse)
def save_draft(
    round_id: int,
    payload: RoundPicksRequest,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    return save_round_picks_draft(session, user_id, round_id, _to_inputs(payload))


@router.get("/rounds/{round_id}/picks", response_model=UserRoundPickResponse)
def get_my_picks(
    round_id: int,
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    get_round_or_404(session, round_id)
    user_round_pick = get_user_round_pick(session, user_id, round_id)
    if not user_round_pick:
        raise HTTPException(status_code=404, detail="No picks for this round")
    return user_round_pick


class UserAchievementResponse(BaseModel):
    code: str
    name: str
    description: str
    category: str
    badge_color: Optional[str] = None
    tournament_id: Optional[int] = None
    round_id: Optional[int] = None
    value: Optional[int] = None
    unlocked_at: datetime


@router.get("/achievements", response_model=List[UserAchievementResponse])
def list_my_achievements(user_id: str = Depends(get_user_id), session: Session = Depends(get_session)):
    return [
        UserAchievementResponse(
            code=definition.code,
            name=definition.name,
            description=definition.description,
            category=AchievementCategory(definition.category).value,
            badge_color=definition.badge_color,
            tournament_id=unlocked.tournament_id,
            round_id=unlocked.round_id,
            value=unlocked.value,
            unlocked_at=unlocked.unlocked_at,
        )
        for unlocked, definition in get_user_achievements(session, user_id)
    ]
