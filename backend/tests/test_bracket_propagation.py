"""Winner propagation into the next round: slot mapping, seeds, locking, integrity."""
import pytest
from sqlmodel import Session

from pickem.errors import BracketIntegrityError, InvalidStateError
from pickem.models.match import TBD, Match, MatchStatus
from pickem.models.round import Round
from pickem.services.bracket_propagation import (
    PLAYER1_SLOT,
    PLAYER2_SLOT,
    next_slot,
    propagate_bracket,
    propagate_winner,
    retract_winner,
    winner_seed,
)
from tests.factories import eight_player_draw, four_player_draw


@pytest.mark.parametrize(
    "match_number,expected_match,expected_slot",
    [
        (1, 1, PLAYER1_SLOT),
        (2, 1, PLAYER2_SLOT),
        (3, 2, PLAYER1_SLOT),
        (5, 3, PLAYER1_SLOT),
        (63, 32, PLAYER1_SLOT),
        (64, 32, PLAYER2_SLOT),
    ],
)
def test_next_slot_mapping(match_number, expected_match, expected_slot):
    target = next_slot(match_number)
    assert target.match_number == expected_match
    assert target.slot == expected_slot


def test_next_slot_rejects_non_positive():
    with pytest.raises(ValueError):
        next_slot(0)


def test_winner_seed_follows_winner_side():
    match = Match(round_id=1, match_number=1, player1_name="Sinner", player1_seed=1, player2_name="Musetti")
    match.winner_name = "Sinner"
    assert winner_seed(match) == 1
    match.winner_name = "Musetti"
    assert winner_seed(match) is None


def _finalize_in_place(session: Session, match: Match, winner: str) -> None:
    match.winner_name = winner
    match.sets_won = 2
    match.sets_lost = 0
    match.status = MatchStatus.finalized
    session.add(match)
    session.flush()


def test_propagate_unseeded_winner_keeps_destination_seed_empty(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)

    _finalize_in_place(session, matches[(1, 1)], "Musetti")
    dest = propagate_winner(session, matches[(1, 1)])
    session.commit()

    assert dest.player1_name == "Musetti"
    assert dest.player1_seed is None
    assert dest.player2_name == TBD


def test_propagate_seeded_winner_into_player2_slot(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)

    _finalize_in_place(session, matches[(1, 2)], "Draper")
    dest = propagate_winner(session, matches[(1, 2)])
    session.commit()

    assert dest.player2_name == "Draper"
    assert dest.player2_seed == 5
    assert dest.player1_name == TBD


def test_propagate_from_final_is_noop(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)
    final = matches[(2, 1)]
    final.player1_name = "Sinner"
    final.player2_name = "Alcaraz"
    _finalize_in_place(session, final, "Sinner")

    assert propagate_winner(session, final) is None


def test_propagate_requires_recorded_winner(session: Session, commit, bracket):
    t = commit(four_player_draw())
    with pytest.raises(InvalidStateError):
        propagate_winner(session, bracket(t.id)[(1, 1)])


def test_missing_destination_is_integrity_error(session: Session, commit, bracket):
    t = commit(eight_player_draw())
    matches = bracket(t.id)
    doomed = matches[(2, 2)]
    doomed.deleted_at = doomed.created_at
    session.add(doomed)
    session.commit()

    source = bracket(t.id)[(1, 3)]
    _finalize_in_place(session, source, "Fritz")
    with pytest.raises(BracketIntegrityError):
        propagate_winner(session, source)


def test_propagate_into_finalized_destination_rejected(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)
    final = matches[(2, 1)]
    final.status = MatchStatus.finalized
    session.add(final)
    session.flush()

    _finalize_in_place(session, matches[(1, 1)], "Sinner")
    with pytest.raises(InvalidStateError):
        propagate_winner(session, matches[(1, 1)])


def test_retract_clears_slot_still_holding_winner(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)
    _finalize_in_place(session, matches[(1, 1)], "Sinner")
    propagate_winner(session, matches[(1, 1)])

    dest = retract_winner(session, matches[(1, 1)], "Sinner")
    assert dest.player1_name == TBD
    assert dest.player1_seed is None


def test_retract_leaves_corrected_slot_alone(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)
    final = matches[(2, 1)]
    final.player1_name = "Musetti"
    session.add(final)
    session.flush()

    dest = retract_winner(session, matches[(1, 1)], "Sinner")
    assert dest.player1_name == "Musetti"


def test_propagate_bracket_resolves_chains_in_round_order(session: Session):
    """Round 1 winners land in round 2 before round 2 propagates into round 3."""
    from pickem.models.tournament import Tournament

    tournament = Tournament(name="Chain", slug="chain-2025", year=2025, uploaded_by="admin")
    session.add(tournament)
    session.flush()
    r1 = Round(tournament_id=tournament.id, round_number=1, name="Quarter Finals")
    r2 = Round(tournament_id=tournament.id, round_number=2, name="Semi Finals")
    r3 = Round(tournament_id=tournament.id, round_number=3, name="Final")
    session.add_all([r1, r2, r3])
    session.flush()

    q1 = Match(round_id=r1.id, match_number=1, player1_name="Sinner", player1_seed=1, player2_name="BYE",
               is_bye=True, status=MatchStatus.finalized, winner_name="Sinner")
    q2 = Match(round_id=r1.id, match_number=2, player1_name="Zverev", player2_name="Rune")
    s1 = Match(round_id=r2.id, match_number=1, player1_name=TBD, player2_name="BYE", is_bye=True)
    f1 = Match(round_id=r3.id, match_number=1, player1_name=TBD, player2_name=TBD)
    session.add_all([q1, q2, s1, f1])
    session.flush()

    applied = propagate_bracket(session, [(r3, [f1]), (r1, [q1, q2]), (r2, [s1])])

    assert applied == 2
    assert s1.player1_name == "Sinner"
    assert s1.player1_seed == 1
    assert s1.winner_name == "Sinner"
    assert f1.player1_name == "Sinner"
    assert f1.player1_seed == 1
    assert s1.status == MatchStatus.finalized


def test_unseeded_winner_keeps_existing_destination_seed(session: Session, commit, bracket):
    t = commit(four_player_draw())
    matches = bracket(t.id)
    final = matches[(2, 1)]
    final.player1_seed = 7
    session.add(final)
    session.flush()

    _finalize_in_place(session, matches[(1, 1)], "Musetti")
    dest = propagate_winner(session, matches[(1, 1)])

    assert dest.player1_name == "Musetti"
    assert dest.player1_seed == 7


def test_propagate_into_waiting_bye_resolves_it(session: Session):
    from pickem.models.tournament import Tournament

    tournament = Tournament(name="Walkover", slug="walkover-2025", year=2025, uploaded_by="admin")
    session.add(tournament)
    session.flush()
    r1 = Round(tournament_id=tournament.id, round_number=1, name="Quarter Finals")
    r2 = Round(tournament_id=tournament.id, round_number=2, name="Semi Finals")
    r3 = Round(tournament_id=tournament.id, round_number=3, name="Final")
    session.add_all([r1, r2, r3])
    session.flush()

    q1 = Match(round_id=r1.id, match_number=1, player1_name="Fritz", player1_seed=3, player2_name="Paul")
    s1 = Match(round_id=r2.id, match_number=1, player1_name=TBD, player2_name="BYE", is_bye=True)
    f1 = Match(round_id=r3.id, match_number=1, player1_name=TBD, player2_name=TBD)
    session.add_all([q1, s1, f1])
    session.flush()

    _finalize_in_place(session, q1, "Fritz")
    dest = propagate_winner(session, q1)

    assert dest.id == s1.id
    assert dest.status == MatchStatus.finalized
    assert dest.winner_name == "Fritz"
    assert (f1.player1_name, f1.player1_seed) == ("Fritz", 3)

    retract_winner(session, q1, "Fritz")

    assert s1.status == MatchStatus.pending
    assert s1.winner_name is None
    assert s1.player1_name == TBD
    assert f1.player1_name == TBD
