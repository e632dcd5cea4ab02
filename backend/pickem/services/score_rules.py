"""
Set-count rules for tennis results and predictions.

validate_score_shape() is format-agnostic: a 3-x result is a valid shape even
for a best-of-3 tournament. validate_score_for_format() additionally pins the
winner's set count to the tournament format.
"""
from pickem.errors import ValidationError
from pickem.models.tournament import TournamentFormat

SETS_TO_WIN = {
    TournamentFormat.bo3: 2,
    TournamentFormat.bo5: 3,
}


def validate_score_shape(sets_won: int, sets_lost: int) -> None:
    if sets_won < 2:
        raise ValidationError("Winner must have won at least 2 sets")
    if sets_won > 3:
        raise ValidationError("Winner cannot have won more than 3 sets")
    if sets_lost < 0:
        raise ValidationError("Sets lost cannot be negative")
    if sets_lost >= sets_won:
        raise ValidationError("Winner must have won more sets than they lost")
    if sets_won == 2 and sets_lost > 1:
        raise ValidationError("Invalid score: if sets won is 2, sets lost must be 0 or 1")
    # sets_won == 3 leaves sets_lost in {0, 1, 2} after the checks above


def validate_score_for_format(fmt: str, sets_won: int, sets_lost: int) -> None:
    validate_score_shape(sets_won, sets_lost)
    required = SETS_TO_WIN[TournamentFormat(fmt)]
    if sets_won != required:
        raise ValidationError(
            f"Invalid score for {TournamentFormat(fmt).value}: winner must have won exactly {required} sets"
        )


def validate_result_score(fmt: str, sets_won: int, sets_lost: int, is_retirement: bool = False) -> None:
    """Check a recorded result. Used for admin finalization and for results
    already present in an uploaded draw.

    A retirement ends the match early, so only a partial count is required:
    neither side may have reached the sets needed to win.
    """
    if not is_retirement:
        validate_score_for_format(fmt, sets_won, sets_lost)
        return
    required = SETS_TO_WIN[TournamentFormat(fmt)]
    if sets_won < 0 or sets_lost < 0:
        raise ValidationError("Set counts cannot be negative")
    if sets_won >= required or sets_lost >= required:
        raise ValidationError(
            f"Invalid retirement score for {TournamentFormat(fmt).value}: "
            f"neither player can have won {required} sets"
        )


def is_valid_score_shape(sets_won: int, sets_lost: int) -> bool:
    try:
        validate_score_shape(sets_won, sets_lost)
    except ValidationError:
        return False
    return True
