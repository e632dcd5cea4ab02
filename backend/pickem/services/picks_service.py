"""
User picks for a round: final submission and drafts.

A round accepts picks only while it is the tournament's active round, its
submission gate is open and the tournament is not closed. Individual picks
are rejected for matches that are already finalized or still undetermined.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, select

from pickem.database import transaction
from pickem.errors import InvalidStateError, ValidationError
from pickem.models.match import TBD, MatchStatus
from pickem.models.picks import MatchPick, UserRoundPick
from pickem.models.round import Round
from pickem.models.tournament import Tournament
from pickem.services.round_lifecycle import is_round_active
from pickem.services.score_rules import validate_score_for_format
from pickem.utils.guards import get_live_round_matches, get_round_or_404, get_tournament_or_404

logger = logging.getLogger(__name__)


@dataclass
class PickInput:
    match_id: int
    predicted_winner: str
    predicted_sets_won: int
    predicted_sets_lost: int


def get_user_round_pick(session: Session, user_id: str, round_id: int) -> Optional[UserRoundPick]:
    return session.exec(
        select(UserRoundPick).where(UserRoundPick.user_id == user_id, UserRoundPick.round_id == round_id)
    ).first()


def _require_round_accepting_picks(tournament: Tournament, round_: Round) -> None:
    if tournament.closed_at is not None or not is_round_active(tournament, round_):
        raise InvalidStateError("This round is not currently accepting picks")
    if round_.submissions_closed_at is not None:
        raise InvalidStateError("Submissions are closed for this round")


def _validate_picks(session: Session, tournament: Tournament, round_: Round, picks: List[PickInput]) -> None:
    matches = {m.id: m for m in get_live_round_matches(session, round_.id)}
    seen = set()
    for pick in picks:
        if pick.match_id in seen:
            raise ValidationError(f"Duplicate pick for match {pick.match_id}")
        seen.add(pick.match_id)

        match = matches.get(pick.match_id)
        if match is None:
            raise ValidationError(f"Match {pick.match_id} does not belong to {round_.name}")
        if match.status == MatchStatus.finalized:
            raise ValidationError(
                f"Cannot submit pick for match {match.match_number} "
                f"({match.player1_name} vs {match.player2_name}) - it has already been finalized"
            )
        if TBD in (match.player1_name, match.player2_name):
            raise ValidationError(f"Match {match.match_number} does not have both players yet")
        if pick.predicted_winner not in (match.player1_name, match.player2_name):
            raise ValidationError(
                f"Predicted winner for match {match.match_number} must be "
                f"{match.player1_name} or {match.player2_name}"
            )
        validate_score_for_format(tournament.format, pick.predicted_sets_won, pick.predicted_sets_lost)


def _replace_match_picks(session: Session, user_round_pick: UserRoundPick, picks: List[PickInput]) -> None:
    for existing in list(user_round_pick.match_picks):
        session.delete(existing)
    session.flush()
    for pick in picks:
        session.add(
            MatchPick(
                user_round_pick_id=user_round_pick.id,
                match_id=pick.match_id,
                predicted_winner=pick.predicted_winner,
                predicted_sets_won=pick.predicted_sets_won,
                predicted_sets_lost=pick.predicted_sets_lost,
            )
        )
    session.flush()


def _save(session: Session, user_id: str, round_id: int, picks: List[PickInput], is_draft: bool) -> UserRoundPick:
    with transaction(session):
        round_ = get_round_or_404(session, round_id)
        tournament = get_tournament_or_404(session, round_.tournament_id)
        _require_round_accepting_picks(tournament, round_)

        user_round_pick = get_user_round_pick(session, user_id, round_.id)
        if user_round_pick is not None and not user_round_pick.is_draft:
            raise InvalidStateError("You have already submitted final picks for this round")

        _validate_picks(session, tournament, round_, picks)

        now = datetime.now(timezone.utc)
        if user_round_pick is None:
            user_round_pick = UserRoundPick(user_id=user_id, round_id=round_.id)
        user_round_pick.is_draft = is_draft
        user_round_pick.submitted_at = now
        session.add(user_round_pick)
        session.flush()

        _replace_match_picks(session, user_round_pick, picks)

    session.refresh(user_round_pick)
    return user_round_pick


def submit_round_picks(session: Session, user_id: str, round_id: int, picks: List[PickInput]) -> UserRoundPick:
    """Submit final picks. An existing draft is replaced and promoted."""
    if not picks:
        raise ValidationError("At least one pick is required")
    user_round_pick = _save(session, user_id, round_id, picks, is_draft=False)
    logger.info("User %s submitted %d picks for round %s", user_id, len(picks), round_id)
    return user_round_pick


def save_round_picks_draft(session: Session, user_id: str, round_id: int, picks: List[PickInput]) -> UserRoundPick:
    user_round_pick = _save(session, user_id, round_id, picks, is_draft=True)
    logger.debug("User %s saved a draft with %d picks for round %s", user_id, len(picks), round_id)
    return user_round_pick
