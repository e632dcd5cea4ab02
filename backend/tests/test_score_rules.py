"""Set-count rules and the progressive scoring table."""
import pytest

from pickem.errors import ValidationError
from pickem.models.tournament import TournamentFormat
from pickem.services.score_rules import (
    is_valid_score_shape,
    validate_result_score,
    validate_score_for_format,
    validate_score_shape,
)
from pickem.services.scoring_config import get_round_abbreviation, get_scoring_for_round


@pytest.mark.parametrize("sets_won,sets_lost", [(2, 0), (2, 1), (3, 0), (3, 1), (3, 2)])
def test_valid_shapes(sets_won, sets_lost):
    validate_score_shape(sets_won, sets_lost)
    assert is_valid_score_shape(sets_won, sets_lost)


@pytest.mark.parametrize(
    "sets_won,sets_lost,message",
    [
        (1, 0, "at least 2 sets"),
        (4, 0, "more than 3 sets"),
        (2, -1, "cannot be negative"),
        (2, 2, "more sets than they lost"),
        (3, 3, "more sets than they lost"),
    ],
)
def test_invalid_shapes(sets_won, sets_lost, message):
    with pytest.raises(ValidationError, match=message):
        validate_score_shape(sets_won, sets_lost)
    assert not is_valid_score_shape(sets_won, sets_lost)


def test_shape_is_format_agnostic():
    # a 3-1 result is a valid shape even though bo3 would reject it
    assert is_valid_score_shape(3, 1)
    with pytest.raises(ValidationError, match="exactly 2 sets"):
        validate_score_for_format(TournamentFormat.bo3, 3, 1)


def test_bo5_requires_three_sets():
    validate_score_for_format("bo5", 3, 2)
    with pytest.raises(ValidationError, match="exactly 3 sets"):
        validate_score_for_format("bo5", 2, 1)


def test_completed_result_follows_format():
    validate_result_score("bo3", 2, 1)
    with pytest.raises(ValidationError, match="exactly 2 sets"):
        validate_result_score("bo3", 3, 1)


@pytest.mark.parametrize("fmt,sets_won,sets_lost", [("bo3", 1, 0), ("bo3", 0, 1), ("bo3", 0, 0), ("bo5", 2, 2)])
def test_retirement_accepts_partial_score(fmt, sets_won, sets_lost):
    validate_result_score(fmt, sets_won, sets_lost, is_retirement=True)


@pytest.mark.parametrize("fmt,sets_won,sets_lost", [("bo3", 2, 0), ("bo3", 1, 2), ("bo5", 3, 1), ("bo3", -1, 0)])
def test_retirement_rejects_completed_or_negative_score(fmt, sets_won, sets_lost):
    with pytest.raises(ValidationError):
        validate_result_score(fmt, sets_won, sets_lost, is_retirement=True)


@pytest.mark.parametrize(
    "round_name,winner,exact",
    [
        ("Round of 128", 2, 3),
        ("Round of 64", 3, 5),
        ("Round of 32", 5, 8),
        ("Round of 16", 8, 12),
        ("Quarter Finals", 12, 18),
        ("Semi Finals", 18, 27),
        ("Final", 30, 45),
        ("Qualifying", 10, 15),
    ],
)
def test_progressive_round_points(round_name, winner, exact):
    assert get_scoring_for_round(round_name) == {"points_per_winner": winner, "points_exact_score": exact}


def test_round_abbreviations():
    assert get_round_abbreviation("Quarter Finals", 5) == "QF"
    assert get_round_abbreviation("Qualifying", 1) == "R1"
