"""
Tournament lifecycle: close / reopen, metadata updates and soft deletion.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from pickem.database import transaction
from pickem.errors import InvalidStateError, ValidationError
from pickem.models.match import Match, MatchStatus
from pickem.models.picks import UserRoundPick
from pickem.models.round import Round
from pickem.models.tournament import Tournament, TournamentFormat, TournamentStatus
from pickem.services.round_lifecycle import maybe_finalize_round
from pickem.utils.guards import get_tournament_or_404

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100

UPDATABLE_FIELDS = ("name", "year", "format", "atp_url", "start_date", "end_date", "status")


def generate_slug(name: str, year: int) -> str:
    """'Australian Open' + 2025 -> 'australian-open-2025'"""
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return f"{base}-{year}"


def validate_year(year: int) -> None:
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")


def get_tournament_rounds(session: Session, tournament_id: int) -> List[Round]:
    return list(
        session.exec(select(Round).where(Round.tournament_id == tournament_id).order_by(Round.round_number)).all()
    )


def _require_free_slug(session: Session, slug: str, tournament_id: int) -> None:
    taken = session.exec(
        select(Tournament).where(
            Tournament.slug == slug,
            Tournament.id != tournament_id,
            Tournament.deleted_at.is_(None),
        )
    ).first()
    if taken is not None:
        raise InvalidStateError(f"Another tournament already uses the slug {slug!r}")


def close_tournament(session: Session, tournament_id: int, closed_by: str) -> Dict[str, int]:
    """Archive a tournament once every round and every match is finalized.

    Returns a summary with the round, match and participant counts.
    """
    with transaction(session):
        tournament = get_tournament_or_404(session, tournament_id)
        if tournament.closed_at is not None:
            raise InvalidStateError(f"Tournament {tournament_id} is already closed")

        rounds = get_tournament_rounds(session, tournament.id)
        if not rounds:
            raise InvalidStateError("Cannot close a tournament without rounds")

        # a round reopened after its last result was entered has every match
        # finalized but the flag cleared
        for round_ in rounds:
            maybe_finalize_round(session, round_)

        open_rounds = [r.name for r in rounds if not r.is_finalized]
        if open_rounds:
            raise InvalidStateError(
                f"Cannot close tournament: {len(open_rounds)} round(s) not finalized ({', '.join(open_rounds)})"
            )

        round_ids = [r.id for r in rounds]
        matches = session.exec(
            select(Match).where(Match.round_id.in_(round_ids), Match.deleted_at.is_(None))
        ).all()
        pending = [m for m in matches if m.status != MatchStatus.finalized]
        if pending:
            raise InvalidStateError(f"Cannot close tournament: {len(pending)} match(es) still pending")

        participants = session.exec(
            select(func.count(func.distinct(UserRoundPick.user_id))).where(
                UserRoundPick.round_id.in_(round_ids),
                UserRoundPick.is_draft == False,  # noqa: E712
            )
        ).one()

        tournament.closed_at = datetime.now(timezone.utc)
        tournament.closed_by = closed_by
        tournament.status = TournamentStatus.archived
        session.add(tournament)
        session.flush()

    summary = {
        "total_rounds": len(rounds),
        "total_matches": len(matches),
        "total_participants": participants,
    }
    logger.info("Tournament %s closed by %s: %s", tournament_id, closed_by, summary)
    return summary


def reopen_tournament(
    session: Session, tournament_id: int, status: TournamentStatus = TournamentStatus.active
) -> Tournament:
    """Undo close_tournament. Round and match state is untouched."""
    status = TournamentStatus(status)
    if status == TournamentStatus.draft:
        raise ValidationError("A reopened tournament must be active or archived")

    with transaction(session):
        tournament = get_tournament_or_404(session, tournament_id)
        if tournament.closed_at is None:
            raise InvalidStateError(f"Tournament {tournament_id} is not closed")

        tournament.closed_at = None
        tournament.closed_by = None
        tournament.status = status
        session.add(tournament)
        session.flush()

    session.refresh(tournament)
    logger.info("Tournament %s reopened as %s", tournament_id, status.value)
    return tournament


def update_tournament(session: Session, tournament_id: int, changes: Dict[str, Any]) -> Tournament:
    """Patch tournament metadata. The slug follows name/year changes."""
    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    with transaction(session):
        tournament = get_tournament_or_404(session, tournament_id)

        if "year" in changes and changes["year"] is not None:
            validate_year(changes["year"])
        if "format" in changes and changes["format"] is not None:
            changes["format"] = TournamentFormat(changes["format"])
        if "status" in changes and changes["status"] is not None:
            changes["status"] = TournamentStatus(changes["status"])
            if tournament.closed_at is not None and changes["status"] != TournamentStatus.archived:
                raise InvalidStateError("Reopen the tournament to change the status of a closed tournament")

        if changes.get("atp_url") == "":
            changes["atp_url"] = None

        for field, value in changes.items():
            if value is None and field in ("name", "year", "format", "status"):
                continue
            setattr(tournament, field, value)

        slug = generate_slug(tournament.name, tournament.year)
        if slug != tournament.slug:
            _require_free_slug(session, slug, tournament.id)
        tournament.slug = slug
        session.add(tournament)
        session.flush()

    session.refresh(tournament)
    return tournament


def soft_delete_tournament(session: Session, tournament: Tournament, now: Optional[datetime] = None) -> int:
    """Mark a tournament and all its matches deleted. Does not commit.

    Returns the number of matches soft-deleted.
    """
    now = now or datetime.now(timezone.utc)
    tournament.deleted_at = now
    session.add(tournament)

    round_ids = [r.id for r in get_tournament_rounds(session, tournament.id)]
    deleted = 0
    if round_ids:
        matches = session.exec(
            select(Match).where(Match.round_id.in_(round_ids), Match.deleted_at.is_(None))
        ).all()
        for match in matches:
            match.deleted_at = now
            session.add(match)
        deleted = len(matches)
    session.flush()
    logger.info("Tournament %s soft-deleted (%d matches)", tournament.id, deleted)
    return deleted


def delete_tournament(session: Session, tournament_id: int) -> None:
    with transaction(session):
        tournament = get_tournament_or_404(session, tournament_id)
        soft_delete_tournament(session, tournament)
