import pytest

from pickem.errors import ValidationError
from pickem.models.match import TBD
from pickem.services.draw_normalization import (
    is_bye_name,
    normalize_player_name,
    normalize_slot,
    resolve_bye,
)


@pytest.mark.parametrize("raw", [None, "", "   ", "\t"])
def test_empty_names_become_tbd(raw):
    assert normalize_player_name(raw) == TBD


def test_names_are_trimmed():
    assert normalize_player_name("  Jannik Sinner ") == "Jannik Sinner"


def test_tbd_slot_drops_seed():
    assert normalize_slot("", 3) == (TBD, None)
    assert normalize_slot("Sinner", 1) == ("Sinner", 1)


@pytest.mark.parametrize("name", ["BYE", "bye", " Bye "])
def test_bye_detection_is_case_insensitive(name):
    assert is_bye_name(name)


@pytest.mark.parametrize("name", ["Byers", "Goodbye", TBD, None])
def test_bye_detection_needs_the_whole_name(name):
    assert not is_bye_name(name)


def test_resolve_bye_picks_other_side_with_seed():
    result = resolve_bye("BYE", None, "Sinner", 1)
    assert result.winner_name == "Sinner"
    assert result.winner_seed == 1

    result = resolve_bye("Alcaraz", 2, "bye", None)
    assert result.winner_name == "Alcaraz"
    assert result.winner_seed == 2


def test_resolve_bye_regular_match():
    assert resolve_bye("Sinner", 1, "Musetti", None) is None


def test_double_bye_rejected():
    with pytest.raises(ValidationError, match="both players cannot be BYE"):
        resolve_bye("BYE", None, "bye", None)
