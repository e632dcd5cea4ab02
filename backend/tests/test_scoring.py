"""Pick scoring on finalize / unfinalize, round totals and streaks."""
from sqlmodel import Session, select

from pickem.models.picks import MatchPick, UserRoundPick
from pickem.models.scoring_rule import RoundScoringRule
from pickem.models.streak import UserStreak
from pickem.services.round_lifecycle import finalize_match, unfinalize_match
from pickem.services.scoring import recalculate_round_scores
from tests.factories import four_player_draw


def _pick(session: Session, user_id: str, round_id: int, match_id: int, winner: str, won: int = 2, lost: int = 0):
    urp = session.exec(
        select(UserRoundPick).where(UserRoundPick.user_id == user_id, UserRoundPick.round_id == round_id)
    ).first()
    if urp is None:
        urp = UserRoundPick(user_id=user_id, round_id=round_id)
        session.add(urp)
        session.flush()
    session.add(
        MatchPick(
            user_round_pick_id=urp.id,
            match_id=match_id,
            predicted_winner=winner,
            predicted_sets_won=won,
            predicted_sets_lost=lost,
        )
    )
    session.commit()


def _round_pick(session: Session, user_id: str) -> UserRoundPick:
    session.expire_all()
    return session.exec(select(UserRoundPick).where(UserRoundPick.user_id == user_id)).one()


def test_finalize_scores_picks(session: Session, commit, bracket, rounds):
    """Semi Finals: 18 points for the winner, 27 more for the exact score."""
    t = commit(four_player_draw())
    round_id = rounds(t.id)[1].id
    m = bracket(t.id)
    _pick(session, "exact", round_id, m[(1, 1)].id, "Sinner", 2, 1)
    _pick(session, "winner", round_id, m[(1, 1)].id, "Sinner", 2, 0)
    _pick(session, "wrong", round_id, m[(1, 1)].id, "Musetti", 2, 1)

    finalize_match(session, m[(1, 1)].id, winner_name="Sinner", sets_won=2, sets_lost=1, finalized_by="admin-1")

    exact = _round_pick(session, "exact")
    assert (exact.total_points, exact.correct_winners, exact.exact_scores) == (45, 1, 1)
    assert exact.scored_at is not None
    winner = _round_pick(session, "winner")
    assert (winner.total_points, winner.correct_winners, winner.exact_scores) == (18, 1, 0)
    wrong = _round_pick(session, "wrong")
    assert (wrong.total_points, wrong.correct_winners, wrong.exact_scores) == (0, 0, 0)

    wrong_pick = wrong.match_picks[0]
    assert wrong_pick.is_winner_correct is False
    assert wrong_pick.is_exact_score is False


def test_missing_rule_falls_back_to_defaults(session: Session, commit, bracket, rounds):
    t = commit(four_player_draw())
    round_id = rounds(t.id)[1].id
    rule = session.exec(select(RoundScoringRule).where(RoundScoringRule.round_id == round_id)).one()
    session.delete(rule)
    session.commit()
    m = bracket(t.id)
    _pick(session, "u1", round_id, m[(1, 1)].id, "Sinner", 2, 0)

    finalize_match(session, m[(1, 1)].id, winner_name="Sinner", sets_won=2, sets_lost=0, finalized_by="admin-1")

    assert _round_pick(session, "u1").total_points == 15


def test_retirement_voids_picks_and_skips_streaks(session: Session, commit, bracket, rounds):
    t = commit(four_player_draw())
    round_id = rounds(t.id)[1].id
    m = bracket(t.id)
    _pick(session, "u1", round_id, m[(1, 1)].id, "Sinner", 2, 0)

    finalize_match(
        session,
        m[(1, 1)].id,
        winner_name="Sinner",
        sets_won=1,
        sets_lost=0,
        finalized_by="admin-1",
        is_retirement=True,
    )

    urp = _round_pick(session, "u1")
    assert urp.total_points == 0
    assert urp.match_picks[0].is_winner_correct is None
    assert urp.match_picks[0].is_exact_score is None
    assert session.exec(select(UserStreak)).all() == []


def test_unfinalize_resets_scores(session: Session, commit, bracket, rounds):
    t = commit(four_player_draw())
    round_id = rounds(t.id)[1].id
    m = bracket(t.id)
    _pick(session, "u1", round_id, m[(1, 1)].id, "Sinner", 2, 0)
    finalize_match(session, m[(1, 1)].id, winner_name="Sinner", sets_won=2, sets_lost=0, finalized_by="admin-1")
    assert _round_pick(session, "u1").total_points == 45

    unfinalize_match(session, m[(1, 1)].id)

    urp = _round_pick(session, "u1")
    assert (urp.total_points, urp.correct_winners, urp.exact_scores) == (0, 0, 0)
    pick = urp.match_picks[0]
    assert pick.is_winner_correct is None
    assert pick.points_earned == 0


def test_streaks_advance_and_reset(session: Session, commit, bracket, rounds):
    t = commit(four_player_draw())
    round_id = rounds(t.id)[1].id
    m = bracket(t.id)
    _pick(session, "u1", round_id, m[(1, 1)].id, "Sinner")
    _pick(session, "u1", round_id, m[(1, 2)].id, "Alcaraz")

    finalize_match(session, m[(1, 1)].id, winner_name="Sinner", sets_won=2, sets_lost=0, finalized_by="admin-1")
    finalize_match(session, m[(1, 2)].id, winner_name="Alcaraz", sets_won=2, sets_lost=0, finalized_by="admin-1")

    streak = session.exec(select(UserStreak).where(UserStreak.user_id == "u1")).one()
    assert (streak.current_streak, streak.longest_streak) == (2, 2)

    final = bracket(t.id)[(2, 1)]
    final_round_id = rounds(t.id)[2].id
    _pick(session, "u1", final_round_id, final.id, "Alcaraz")
    finalize_match(session, final.id, winner_name="Sinner", sets_won=2, sets_lost=0, finalized_by="admin-1")

    session.expire_all()
    streak = session.exec(select(UserStreak).where(UserStreak.user_id == "u1")).one()
    assert (streak.current_streak, streak.longest_streak) == (0, 2)
    assert streak.last_match_id == final.id


def test_recalculate_round_scores_after_rule_change(session: Session, commit, bracket, rounds):
    t = commit(four_player_draw())
    round_id = rounds(t.id)[1].id
    m = bracket(t.id)
    _pick(session, "u1", round_id, m[(1, 1)].id, "Sinner", 2, 1)
    finalize_match(session, m[(1, 1)].id, winner_name="Sinner", sets_won=2, sets_lost=0, finalized_by="admin-1")
    assert _round_pick(session, "u1").total_points == 18

    rule = session.exec(select(RoundScoringRule).where(RoundScoringRule.round_id == round_id)).one()
    rule.points_per_winner = 20
    session.add(rule)
    session.commit()

    assert recalculate_round_scores(session, round_id) == 1
    session.commit()

    assert _round_pick(session, "u1").total_points == 20
    streak = session.exec(select(UserStreak).where(UserStreak.user_id == "u1")).one()
    assert streak.current_streak == 1
