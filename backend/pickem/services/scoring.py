"""
Pick scoring: award points on match finalization and reset them on unfinalize.

Every function here flushes but never commits; callers wrap them in
``pickem.database.transaction`` together with the match state change.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from sqlmodel import Session, select

from pickem.errors import InvalidStateError
from pickem.models.match import Match, MatchStatus
from pickem.models.picks import MatchPick, UserRoundPick
from pickem.models.scoring_rule import RoundScoringRule
from pickem.models.streak import UserStreak
from pickem.services import achievements
from pickem.services.scoring_config import DEFAULT_POINTS_PER_WINNER

logger = logging.getLogger(__name__)

DEFAULT_POINTS_EXACT_SCORE = 5


def _picks_for_match(session: Session, match_id: int) -> List[MatchPick]:
    return list(session.exec(select(MatchPick).where(MatchPick.match_id == match_id)).all())


def _recalculate_totals(session: Session, user_round_pick_ids: Iterable[int]) -> None:
    for user_round_pick_id in sorted(set(user_round_pick_ids)):
        recalculate_user_round_pick_totals(session, user_round_pick_id)


def calculate_match_pick_scores(session: Session, match: Match, update_streaks: bool = True) -> int:
    """Score every pick on a finalized match. Returns the number of picks scored.

    Retirements void the match for pick purposes: every pick gets null
    correctness flags, zero points, and streaks are left untouched.
    """
    if match.status != MatchStatus.finalized:
        raise InvalidStateError(f"Match {match.id} is not finalized")
    if not match.winner_name or match.sets_won is None or match.sets_lost is None:
        raise InvalidStateError(f"Match {match.id} does not have complete result data")

    picks = _picks_for_match(session, match.id)

    if match.is_retirement:
        for pick in picks:
            pick.is_winner_correct = None
            pick.is_exact_score = None
            pick.points_earned = 0
            session.add(pick)
        session.flush()
        _recalculate_totals(session, (p.user_round_pick_id for p in picks))
        logger.info("Match %s ended in retirement; %d picks voided", match.id, len(picks))
        return len(picks)

    rule = session.exec(select(RoundScoringRule).where(RoundScoringRule.round_id == match.round_id)).first()
    points_per_winner = rule.points_per_winner if rule else DEFAULT_POINTS_PER_WINNER
    points_exact_score = rule.points_exact_score if rule else DEFAULT_POINTS_EXACT_SCORE

    for pick in picks:
        is_winner_correct = pick.predicted_winner == match.winner_name
        is_exact_score = (
            is_winner_correct
            and pick.predicted_sets_won == match.sets_won
            and pick.predicted_sets_lost == match.sets_lost
        )
        points = 0
        if is_winner_correct:
            points += points_per_winner
        if is_exact_score:
            points += points_exact_score

        pick.is_winner_correct = is_winner_correct
        pick.is_exact_score = is_exact_score
        pick.points_earned = points
        session.add(pick)
    session.flush()

    _recalculate_totals(session, (p.user_round_pick_id for p in picks))
    if update_streaks and picks:
        update_streaks_for_match(session, match, picks)
        for user_id in sorted(set(_pick_owners(session, picks).values())):
            achievements.evaluate_achievements_after_scoring(session, user_id, match.round_id)

    logger.info("Scored %d picks for match %s", len(picks), match.id)
    return len(picks)


def recalculate_user_round_pick_totals(session: Session, user_round_pick_id: int) -> UserRoundPick:
    user_round_pick = session.get(UserRoundPick, user_round_pick_id)
    picks = session.exec(select(MatchPick).where(MatchPick.user_round_pick_id == user_round_pick_id)).all()

    user_round_pick.total_points = sum(p.points_earned for p in picks)
    user_round_pick.correct_winners = sum(1 for p in picks if p.is_winner_correct)
    user_round_pick.exact_scores = sum(1 for p in picks if p.is_exact_score)
    user_round_pick.scored_at = datetime.now(timezone.utc)
    session.add(user_round_pick)
    session.flush()
    return user_round_pick


def recalculate_round_scores(session: Session, round_id: int) -> int:
    """Re-score every finalized match of a round (after a rule change or correction).

    Streaks are not replayed, so re-running this is idempotent.
    Returns the number of matches re-scored.
    """
    finalized = session.exec(
        select(Match)
        .where(
            Match.round_id == round_id,
            Match.status == MatchStatus.finalized.value,
            Match.deleted_at.is_(None),
        )
        .order_by(Match.match_number)
    ).all()

    rescored = 0
    for match in finalized:
        if match.is_bye:
            continue
        calculate_match_pick_scores(session, match, update_streaks=False)
        rescored += 1
    return rescored


def reset_match_pick_scores(session: Session, match_id: int) -> int:
    """Return every pick on a match to the unscored state and refresh totals."""
    picks = _picks_for_match(session, match_id)
    for pick in picks:
        pick.is_winner_correct = None
        pick.is_exact_score = None
        pick.points_earned = 0
        session.add(pick)
    session.flush()
    _recalculate_totals(session, (p.user_round_pick_id for p in picks))
    return len(picks)


def _pick_owners(session: Session, picks: List[MatchPick]) -> Dict[int, str]:
    """user_round_pick_id -> user_id"""
    round_pick_ids = {p.user_round_pick_id for p in picks}
    return {
        urp.id: urp.user_id
        for urp in session.exec(select(UserRoundPick).where(UserRoundPick.id.in_(round_pick_ids))).all()
    }


def update_streaks_for_match(session: Session, match: Match, picks: List[MatchPick]) -> None:
    if not match.winner_name or not picks:
        return

    owners = _pick_owners(session, picks)
    now = datetime.now(timezone.utc)

    for pick in picks:
        user_id = owners.get(pick.user_round_pick_id)
        if user_id is None:
            continue
        is_correct = pick.predicted_winner == match.winner_name

        streak = session.exec(select(UserStreak).where(UserStreak.user_id == user_id).with_for_update()).first()
        if streak is None:
            streak = UserStreak(
                user_id=user_id,
                current_streak=1 if is_correct else 0,
                longest_streak=1 if is_correct else 0,
            )
        elif is_correct:
            streak.current_streak += 1
            streak.longest_streak = max(streak.current_streak, streak.longest_streak)
        else:
            streak.current_streak = 0
        streak.last_match_id = match.id
        streak.last_updated_at = now
        session.add(streak)
        # flush per user so a second pick by the same user sees the new row
        session.flush()
