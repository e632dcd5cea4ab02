"""
Lookup Guards

Reusable get-or-raise helpers for the records every operation starts from:
- Soft-deleted tournaments and matches are treated as missing
- A round is live only while its tournament is live
- Mutating callers may ask for a row lock on the match
"""

from typing import List

from sqlmodel import Session, select

from pickem.errors import InvalidStateError, NotFoundError
from pickem.models.match import Match
from pickem.models.round import Round
from pickem.models.tournament import Tournament


def get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    """
    Get a live tournament or raise NotFoundError.

    Args:
        session: Database session
        tournament_id: Tournament ID

    Returns:
        Tournament

    Raises:
        NotFoundError: Tournament missing or soft-deleted
    """
    tournament = session.get(Tournament, tournament_id)
    if not tournament or tournament.deleted_at is not None:
        raise NotFoundError(f"Tournament {tournament_id} not found")
    return tournament


def get_round_or_404(session: Session, round_id: int) -> Round:
    """
    Get a round whose tournament is live, or raise NotFoundError.
    """
    round_ = session.get(Round, round_id)
    if not round_:
        raise NotFoundError(f"Round {round_id} not found")
    tournament = session.get(Tournament, round_.tournament_id)
    if not tournament or tournament.deleted_at is not None:
        raise NotFoundError(f"Round {round_id} not found")
    return round_


def get_match_or_404(session: Session, match_id: int, lock: bool = False) -> Match:
    """
    Get a live match or raise NotFoundError.

    Args:
        session: Database session
        match_id: Match ID
        lock: Take a row lock (SELECT ... FOR UPDATE) until the transaction ends

    Returns:
        Match

    Raises:
        NotFoundError: Match missing or soft-deleted
    """
    stmt = select(Match).where(Match.id == match_id, Match.deleted_at.is_(None))
    if lock:
        stmt = stmt.with_for_update()
    match = session.exec(stmt).first()
    if not match:
        raise NotFoundError(f"Match {match_id} not found")
    return match


def require_open_tournament(tournament: Tournament) -> Tournament:
    """Raise InvalidStateError when the tournament has been closed."""
    if tournament.closed_at is not None:
        raise InvalidStateError(f"Tournament {tournament.id} is closed. Reopen it first.")
    return tournament


def get_live_round_matches(session: Session, round_id: int) -> List[Match]:
    return list(
        session.exec(
            select(Match)
            .where(Match.round_id == round_id, Match.deleted_at.is_(None))
            .order_by(Match.match_number)
        ).all()
    )
