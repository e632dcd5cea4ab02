"""
Round lifecycle: match finalization, the round-level finalized flag, the
submission gate and the active-round pointer.

Each public operation runs in a single transaction: the match write, the
winner propagation, pick scoring and the round auto-finalize either all
commit or none do.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlmodel import Session, select

from pickem.database import transaction
from pickem.errors import InvalidStateError, NotFoundError, ValidationError
from pickem.models.match import TBD, Match, MatchStatus
from pickem.models.picks import UserRoundPick
from pickem.models.round import Round
from pickem.models.tournament import Tournament, TournamentStatus
from pickem.services import scoring
from pickem.services.bracket_propagation import propagate_winner, retract_winner
from pickem.services.score_rules import validate_result_score
from pickem.utils.guards import (
    get_live_round_matches,
    get_match_or_404,
    get_round_or_404,
    get_tournament_or_404,
    require_open_tournament,
)

logger = logging.getLogger(__name__)


def is_round_complete(matches: List[Match]) -> bool:
    """A round with zero live matches is never complete."""
    return len(matches) > 0 and all(m.status == MatchStatus.finalized for m in matches)


def is_round_active(tournament: Tournament, round_: Round) -> bool:
    return tournament.active_round_number is not None and tournament.active_round_number == round_.round_number


def maybe_finalize_round(session: Session, round_: Round) -> bool:
    """Set round.is_finalized when every live match is finalized.

    Returns True only when this call flipped the flag; an already finalized
    round is left untouched.
    """
    if round_.is_finalized:
        return False
    if not is_round_complete(get_live_round_matches(session, round_.id)):
        return False
    round_.is_finalized = True
    session.add(round_)
    session.flush()
    logger.info("Round %s (%s) auto-finalized", round_.id, round_.name)
    return True


def _rounds_from(session: Session, round_: Round) -> List[Round]:
    return session.exec(
        select(Round)
        .where(Round.tournament_id == round_.tournament_id, Round.round_number >= round_.round_number)
        .order_by(Round.round_number)
    ).all()


def finalize_match(
    session: Session,
    match_id: int,
    winner_name: str,
    sets_won: int,
    sets_lost: int,
    finalized_by: str,
    final_score: Optional[str] = None,
    is_retirement: bool = False,
) -> Match:
    """Record a match result, advance the winner and score the picks."""
    with transaction(session):
        match = get_match_or_404(session, match_id, lock=True)

        if match.is_bye:
            raise InvalidStateError("BYE matches are resolved automatically and cannot be finalized")
        if match.status == MatchStatus.finalized:
            raise InvalidStateError(f"Match {match_id} is already finalized")
        if TBD in (match.player1_name, match.player2_name):
            raise InvalidStateError(f"Match {match_id} does not have both players yet")
        if winner_name not in (match.player1_name, match.player2_name):
            raise ValidationError(
                f"Winner must be one of the match players: {match.player1_name} or {match.player2_name}"
            )

        round_ = session.get(Round, match.round_id)
        tournament = get_tournament_or_404(session, round_.tournament_id)
        require_open_tournament(tournament)
        validate_result_score(tournament.format, sets_won, sets_lost, is_retirement)

        match.winner_name = winner_name
        match.sets_won = sets_won
        match.sets_lost = sets_lost
        match.final_score = final_score
        match.is_retirement = is_retirement
        match.status = MatchStatus.finalized
        match.finalized_at = datetime.now(timezone.utc)
        match.finalized_by = finalized_by
        session.add(match)
        session.flush()

        propagate_winner(session, match)
        scoring.calculate_match_pick_scores(session, match)
        # a BYE resolved downstream can complete a later round too
        for later in _rounds_from(session, round_):
            maybe_finalize_round(session, later)

    session.refresh(match)
    logger.info("Match %s finalized by %s: %s won %s-%s", match.id, finalized_by, winner_name, sets_won, sets_lost)
    return match


def unfinalize_match(session: Session, match_id: int) -> Match:
    """Reopen a finalized match for correction.

    The winner is pulled back out of the next round (that match must not be
    finalized yet), pick scores are reset and the round flag is cleared.
    """
    with transaction(session):
        match = get_match_or_404(session, match_id, lock=True)

        if match.is_bye:
            raise InvalidStateError("BYE matches cannot be unfinalized")
        if match.status != MatchStatus.finalized:
            raise InvalidStateError(f"Match {match_id} is not finalized")

        round_ = session.get(Round, match.round_id)
        tournament = get_tournament_or_404(session, round_.tournament_id)
        require_open_tournament(tournament)

        retract_winner(session, match, match.winner_name)

        match.status = MatchStatus.pending
        match.winner_name = None
        match.final_score = None
        match.sets_won = None
        match.sets_lost = None
        match.is_retirement = False
        match.finalized_at = None
        match.finalized_by = None
        session.add(match)

        if round_.is_finalized:
            round_.is_finalized = False
            session.add(round_)
        session.flush()

        scoring.reset_match_pick_scores(session, match.id)

    session.refresh(match)
    logger.info("Match %s unfinalized", match.id)
    return match


def close_round_submissions(session: Session, round_id: int, closed_by: str) -> Dict[str, int]:
    """Stop accepting picks for the active round and promote drafts to submissions."""
    with transaction(session):
        round_ = get_round_or_404(session, round_id)
        tournament = get_tournament_or_404(session, round_.tournament_id)
        require_open_tournament(tournament)

        if not is_round_active(tournament, round_):
            raise InvalidStateError(f"{round_.name} is not the active round")
        if round_.submissions_closed_at is not None:
            raise InvalidStateError(f"Submissions for {round_.name} are already closed")

        now = datetime.now(timezone.utc)
        round_.submissions_closed_at = now
        round_.submissions_closed_by = closed_by
        session.add(round_)

        drafts = session.exec(
            select(UserRoundPick).where(UserRoundPick.round_id == round_.id, UserRoundPick.is_draft == True)  # noqa: E712
        ).all()
        for draft in drafts:
            draft.is_draft = False
            draft.submitted_at = now
            session.add(draft)
        session.flush()

        # a reopen clears the round flag, so re-check it here
        maybe_finalize_round(session, round_)

    logger.info("Submissions closed for round %s by %s (%d drafts finalized)", round_id, closed_by, len(drafts))
    return {"drafts_finalized": len(drafts)}


def reopen_round_submissions(session: Session, round_id: int) -> Dict[str, int]:
    """Re-open the submission gate. Matches keep their results."""
    with transaction(session):
        round_ = get_round_or_404(session, round_id)
        tournament = get_tournament_or_404(session, round_.tournament_id)
        require_open_tournament(tournament)

        if round_.submissions_closed_at is None:
            raise InvalidStateError(f"Submissions for {round_.name} are not closed")

        round_.submissions_closed_at = None
        round_.submissions_closed_by = None
        round_.is_finalized = False
        session.add(round_)
        session.flush()

        matches = get_live_round_matches(session, round_.id)
        finalized = sum(1 for m in matches if m.status == MatchStatus.finalized)

    summary = {
        "pending_matches": len(matches) - finalized,
        "finalized_matches": finalized,
        "total_matches": len(matches),
    }
    logger.info("Submissions reopened for round %s: %s", round_id, summary)
    return summary


def set_active_round(session: Session, tournament_id: int, round_number: int) -> Round:
    """Point the tournament at the round open for picks. A draft tournament goes active."""
    with transaction(session):
        tournament = get_tournament_or_404(session, tournament_id)
        require_open_tournament(tournament)

        round_ = session.exec(
            select(Round).where(Round.tournament_id == tournament.id, Round.round_number == round_number)
        ).first()
        if round_ is None:
            raise NotFoundError(f"Round {round_number} not found in tournament {tournament_id}")

        tournament.active_round_number = round_number
        if tournament.status == TournamentStatus.draft:
            tournament.status = TournamentStatus.active
        session.add(tournament)
        session.flush()

    session.refresh(round_)
    logger.info("Tournament %s active round set to %s", tournament_id, round_number)
    return round_
