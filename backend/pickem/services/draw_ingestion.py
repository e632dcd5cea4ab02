"""
Draw ingestion: create a whole tournament (rounds, scoring rules, matches)
from an already-parsed draw in one transaction.

Steps:
1. Slug + re-upload checks (soft-delete the previous upload when allowed)
2. Tournament, one Round + RoundScoringRule per parsed round
3. Matches, with player slots normalized, BYEs auto-resolved and any
   result already present in the draw recorded as finalized
4. Bulk bracket propagation, then round auto-finalization

No picks can exist for a fresh tournament, so scoring is not run here.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from pickem.database import transaction
from pickem.errors import InvalidStateError, ValidationError
from pickem.models.match import Match, MatchStatus
from pickem.models.picks import UserRoundPick
from pickem.models.round import Round
from pickem.models.scoring_rule import RoundScoringRule
from pickem.models.tournament import Tournament, TournamentFormat, TournamentStatus
from pickem.services.bracket_propagation import propagate_bracket, settle_bye
from pickem.services.draw_normalization import normalize_slot, resolve_bye
from pickem.services.round_lifecycle import maybe_finalize_round
from pickem.services.score_rules import validate_result_score
from pickem.services.scoring_config import get_scoring_for_round
from pickem.services.tournament_lifecycle import (
    generate_slug,
    get_tournament_rounds,
    soft_delete_tournament,
    validate_year,
)

logger = logging.getLogger(__name__)


@dataclass
class ParsedMatch:
    match_number: int
    player1_name: Optional[str]
    player2_name: Optional[str]
    player1_seed: Optional[int] = None
    player2_seed: Optional[int] = None
    winner_name: Optional[str] = None
    sets_won: Optional[int] = None
    sets_lost: Optional[int] = None
    final_score: Optional[str] = None
    is_retirement: bool = False

    @property
    def has_result(self) -> bool:
        return (
            self.winner_name is not None
            and self.sets_won is not None
            and self.sets_lost is not None
            and self.final_score is not None
        )


@dataclass
class ParsedRound:
    round_number: int
    name: str
    matches: List[ParsedMatch] = field(default_factory=list)


@dataclass
class ParsedDraw:
    tournament_name: str
    year: int
    rounds: List[ParsedRound] = field(default_factory=list)


def _check_existing(session: Session, slug: str, overwrite_existing: bool) -> Optional[Tournament]:
    existing = session.exec(
        select(Tournament).where(Tournament.slug == slug, Tournament.deleted_at.is_(None))
    ).first()
    if existing is None:
        return None

    round_ids = [r.id for r in get_tournament_rounds(session, existing.id)]
    if round_ids:
        finalized = session.exec(
            select(func.count(Match.id)).where(
                Match.round_id.in_(round_ids),
                Match.deleted_at.is_(None),
                Match.status == MatchStatus.finalized.value,
                Match.is_bye == False,  # noqa: E712
            )
        ).one()
        if finalized:
            raise InvalidStateError(
                "Cannot re-upload: Tournament has finalized matches. "
                "This operation is blocked to preserve data integrity."
            )

        total_picks = session.exec(
            select(func.count(UserRoundPick.id)).where(UserRoundPick.round_id.in_(round_ids))
        ).one()
        if total_picks and not overwrite_existing:
            raise InvalidStateError(
                f"Tournament already exists with {total_picks} user picks. "
                f"Set overwrite_existing=true to proceed with soft delete."
            )

    return existing


def _build_match(round_: Round, parsed: ParsedMatch, fmt: TournamentFormat, uploaded_by: str, now: datetime) -> Match:
    p1_name, p1_seed = normalize_slot(parsed.player1_name, parsed.player1_seed)
    p2_name, p2_seed = normalize_slot(parsed.player2_name, parsed.player2_seed)
    match = Match(
        round_id=round_.id,
        match_number=parsed.match_number,
        player1_name=p1_name,
        player2_name=p2_name,
        player1_seed=p1_seed,
        player2_seed=p2_seed,
        status=MatchStatus.pending,
    )

    if resolve_bye(p1_name, p1_seed, p2_name, p2_seed) is not None:
        # stays pending while the opponent is still TBD
        match.is_bye = True
        settle_bye(match, now)
        return match

    if parsed.has_result:
        if parsed.winner_name not in (p1_name, p2_name):
            raise ValidationError(
                f"{round_.name} match {parsed.match_number}: winner {parsed.winner_name!r} "
                f"is not one of {p1_name} / {p2_name}"
            )
        validate_result_score(fmt, parsed.sets_won, parsed.sets_lost, parsed.is_retirement)
        match.winner_name = parsed.winner_name
        match.sets_won = parsed.sets_won
        match.sets_lost = parsed.sets_lost
        match.final_score = parsed.final_score
        match.is_retirement = parsed.is_retirement
        match.status = MatchStatus.finalized
        match.finalized_at = now
        match.finalized_by = uploaded_by
    return match


def _validate_draw(draw: ParsedDraw) -> None:
    validate_year(draw.year)
    if not draw.tournament_name or not draw.tournament_name.strip():
        raise ValidationError("Tournament name is required")
    if not draw.rounds:
        raise ValidationError("Draw must contain at least one round")

    round_numbers = [r.round_number for r in draw.rounds]
    if len(set(round_numbers)) != len(round_numbers):
        raise ValidationError("Round numbers must be unique")
    for parsed_round in draw.rounds:
        numbers = sorted(m.match_number for m in parsed_round.matches)
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValidationError(f"{parsed_round.name}: match numbers must be contiguous starting at 1")


def commit_draw(
    session: Session,
    draw: ParsedDraw,
    uploaded_by: str,
    fmt: TournamentFormat = TournamentFormat.bo3,
    atp_url: Optional[str] = None,
    overwrite_existing: bool = False,
) -> Tournament:
    _validate_draw(draw)
    fmt = TournamentFormat(fmt)
    slug = generate_slug(draw.tournament_name, draw.year)
    now = datetime.now(timezone.utc)

    with transaction(session):
        existing = _check_existing(session, slug, overwrite_existing)
        if existing is not None:
            logger.info("Replacing existing upload %s (tournament %s)", slug, existing.id)
            soft_delete_tournament(session, existing, now)

        tournament = Tournament(
            name=draw.tournament_name.strip(),
            slug=slug,
            year=draw.year,
            format=fmt,
            atp_url=atp_url or None,
            status=TournamentStatus.draft,
            uploaded_by=uploaded_by,
        )
        session.add(tournament)
        session.flush()

        rounds_with_matches: List[Tuple[Round, List[Match]]] = []
        for parsed_round in sorted(draw.rounds, key=lambda r: r.round_number):
            round_ = Round(tournament_id=tournament.id, round_number=parsed_round.round_number, name=parsed_round.name)
            session.add(round_)
            session.flush()

            scoring = get_scoring_for_round(parsed_round.name)
            session.add(RoundScoringRule(round_id=round_.id, **scoring))

            matches = [
                _build_match(round_, parsed, fmt, uploaded_by, now)
                for parsed in sorted(parsed_round.matches, key=lambda m: m.match_number)
            ]
            session.add_all(matches)
            rounds_with_matches.append((round_, matches))
        session.flush()

        updates = propagate_bracket(session, rounds_with_matches)
        finalized_rounds = [r.round_number for r, _ in rounds_with_matches if maybe_finalize_round(session, r)]

    session.refresh(tournament)
    logger.info(
        "Draw committed: %s (%d rounds, %d matches, %d propagated, rounds finalized: %s)",
        slug,
        len(rounds_with_matches),
        sum(len(ms) for _, ms in rounds_with_matches),
        updates,
        finalized_rounds,
    )
    return tournament
