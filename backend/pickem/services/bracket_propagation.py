"""
Bracket propagation: when a match is finalized, write its winner into the
next round of the single-elimination tree.

Slot mapping for match m of round r:
  destination = match ceil(m / 2) of round r + 1
  slot        = player1 if m is odd, player2 if m is even
The final has no round r + 1, so propagating its winner is a no-op.

Only the destination *name* is always overwritten; the destination seed is
written only when the winner is seeded.

A BYE match waiting on a "TBD" opponent stays pending. The winner arriving
from the previous round resolves it, and the walkover winner then moves on
to the round after that.
"""
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from pickem.errors import BracketIntegrityError, InvalidStateError
from pickem.models.match import TBD, Match, MatchStatus
from pickem.models.round import Round
from pickem.services.draw_normalization import resolve_bye

logger = logging.getLogger(__name__)

PLAYER1_SLOT = 1
PLAYER2_SLOT = 2


@dataclass(frozen=True)
class SlotTarget:
    match_number: int
    slot: int  # PLAYER1_SLOT | PLAYER2_SLOT


def next_slot(match_number: int) -> SlotTarget:
    if match_number < 1:
        raise ValueError(f"match_number must be >= 1, got {match_number}")
    return SlotTarget(
        match_number=(match_number + 1) // 2,
        slot=PLAYER1_SLOT if match_number % 2 == 1 else PLAYER2_SLOT,
    )


def winner_seed(match: Match) -> Optional[int]:
    """Seed of the recorded winner (None when unseeded)."""
    if match.winner_name == match.player1_name:
        return match.player1_seed
    return match.player2_seed


def apply_winner_to_slot(dest: Match, slot: int, name: str, seed: Optional[int]) -> None:
    if slot == PLAYER1_SLOT:
        dest.player1_name = name
        if seed is not None:
            dest.player1_seed = seed
    else:
        dest.player2_name = name
        if seed is not None:
            dest.player2_seed = seed


def clear_slot(dest: Match, slot: int) -> None:
    if slot == PLAYER1_SLOT:
        dest.player1_name = TBD
        dest.player1_seed = None
    else:
        dest.player2_name = TBD
        dest.player2_seed = None


def slot_name(dest: Match, slot: int) -> str:
    return dest.player1_name if slot == PLAYER1_SLOT else dest.player2_name


def settle_bye(match: Match, when: Optional[datetime] = None) -> bool:
    """Resolve a BYE match once its opponent is known.

    Returns True when the match is finalized as a walkover. While the other
    side is still "TBD" the match is left pending without a winner.
    """
    resolution = resolve_bye(match.player1_name, match.player1_seed, match.player2_name, match.player2_seed)
    if resolution is None:
        raise BracketIntegrityError(f"Match {match.match_number} is flagged as a BYE but has no BYE slot")
    if resolution.winner_name == TBD:
        match.status = MatchStatus.pending
        match.winner_name = None
        match.finalized_at = None
        return False
    match.status = MatchStatus.finalized
    match.winner_name = resolution.winner_name
    match.finalized_at = when or datetime.now(timezone.utc)
    return True


def unsettle_bye(match: Match) -> None:
    match.status = MatchStatus.pending
    match.winner_name = None
    match.finalized_at = None


def get_next_round(session: Session, round_: Round) -> Optional[Round]:
    return session.exec(
        select(Round).where(
            Round.tournament_id == round_.tournament_id,
            Round.round_number == round_.round_number + 1,
        )
    ).first()


def _lock_destination(session: Session, next_round: Round, target: SlotTarget, source: Match) -> Match:
    """Fetch the destination row with a row lock held until commit.

    Two sources of the same pair finalized concurrently serialize here.
    """
    dest = session.exec(
        select(Match)
        .where(
            Match.round_id == next_round.id,
            Match.match_number == target.match_number,
            Match.deleted_at.is_(None),
        )
        .with_for_update()
    ).first()
    if dest is None:
        logger.error(
            "Bracket integrity: match %s (round %s, #%s) has no destination #%s in round %s",
            source.id,
            next_round.round_number - 1,
            source.match_number,
            target.match_number,
            next_round.round_number,
        )
        raise BracketIntegrityError(
            f"Next-round match {target.match_number} not found in round {next_round.round_number}"
        )
    return dest


def propagate_winner(session: Session, match: Match) -> Optional[Match]:
    """Write a finalized match's winner (and seed) into the next round.

    Returns the updated destination match, or None when match is in the final
    round. A BYE destination is resolved on the spot and its walkover winner
    propagated in turn. Does not commit; the caller owns the transaction.
    """
    if not match.is_finalized or not match.winner_name:
        raise InvalidStateError(f"Match {match.id} has no recorded winner to propagate")

    round_ = session.get(Round, match.round_id)
    next_round = get_next_round(session, round_)
    if next_round is None:
        logger.debug("Match %s is in the last round; nothing to propagate", match.id)
        return None

    target = next_slot(match.match_number)
    dest = _lock_destination(session, next_round, target, match)
    if dest.is_finalized:
        raise InvalidStateError(
            f"Next-round match {dest.match_number} in {next_round.name} is already finalized"
        )

    apply_winner_to_slot(dest, target.slot, match.winner_name, winner_seed(match))
    resolved_bye = dest.is_bye and settle_bye(dest)
    session.add(dest)
    session.flush()
    logger.info(
        "Propagated %s from match %s to round %s match %s (player%s)",
        match.winner_name,
        match.id,
        next_round.round_number,
        dest.match_number,
        target.slot,
    )
    if resolved_bye:
        logger.info("BYE match %s resolved: %s advances", dest.id, dest.winner_name)
        propagate_winner(session, dest)
    return dest


def retract_winner(session: Session, match: Match, previous_winner: str) -> Optional[Match]:
    """Undo propagate_winner for a match that is being unfinalized.

    The destination slot is reset to "TBD" only while it still holds
    previous_winner; a slot an admin has since corrected is left alone.
    A BYE destination resolved by that winner goes back to pending (and its
    own walkover winner is retracted further down). Any other finalized
    destination cannot be retracted from.
    """
    round_ = session.get(Round, match.round_id)
    next_round = get_next_round(session, round_)
    if next_round is None:
        return None

    target = next_slot(match.match_number)
    dest = _lock_destination(session, next_round, target, match)
    holds_winner = slot_name(dest, target.slot) == previous_winner
    if dest.is_finalized and not (dest.is_bye and holds_winner):
        raise InvalidStateError(
            f"Cannot unfinalize: next-round match {dest.match_number} in {next_round.name} "
            f"is already finalized. Unfinalize it first."
        )

    if not holds_winner:
        logger.warning(
            "Destination slot of match %s no longer holds %s; leaving it unchanged",
            match.id,
            previous_winner,
        )
        return dest

    if dest.is_finalized:
        retract_winner(session, dest, dest.winner_name)
        unsettle_bye(dest)
        if next_round.is_finalized:
            next_round.is_finalized = False
            session.add(next_round)

    clear_slot(dest, target.slot)
    session.add(dest)
    session.flush()
    logger.info("Cleared round %s match %s player%s back to TBD", next_round.round_number, dest.match_number, target.slot)
    return dest


def propagate_bracket(session: Session, rounds_with_matches: Sequence[Tuple[Round, List[Match]]]) -> int:
    """Bulk propagation for a whole tournament in one pass.

    Rounds are taken off a worklist in strict ascending order, so a winner
    written into round r + 1 is visible when round r + 1 propagates in turn
    (BYE chains of any depth resolve without recursion). Writes into one
    destination round are collected and flushed together.

    Returns the number of slot updates applied.
    """
    by_round: Dict[int, Dict[int, Match]] = {
        round_.round_number: {m.match_number: m for m in matches if m.deleted_at is None}
        for round_, matches in rounds_with_matches
    }
    worklist = deque(sorted(by_round))
    applied = 0

    while worklist:
        round_number = worklist.popleft()
        destinations = by_round.get(round_number + 1)
        if destinations is None:
            continue

        updates: List[Tuple[Match, int, str, Optional[int]]] = []
        for number in sorted(by_round[round_number]):
            source = by_round[round_number][number]
            if not source.is_finalized or not source.winner_name:
                continue
            target = next_slot(source.match_number)
            dest = destinations.get(target.match_number)
            if dest is None:
                logger.error(
                    "Bracket integrity: round %s match %s has no destination #%s in round %s",
                    round_number,
                    source.match_number,
                    target.match_number,
                    round_number + 1,
                )
                raise BracketIntegrityError(
                    f"Next-round match {target.match_number} not found in round {round_number + 1}"
                )
            updates.append((dest, target.slot, source.winner_name, winner_seed(source)))

        if not updates:
            continue

        for dest, slot, name, seed in updates:
            apply_winner_to_slot(dest, slot, name, seed)
            if dest.is_bye:
                # a walkover fed from the previous round advances whoever arrived
                settle_bye(dest)
            session.add(dest)
        session.flush()
        applied += len(updates)
        logger.debug("Applied %d winner updates into round %d", len(updates), round_number + 1)

    return applied
