"""Progressive round-based point values (2-3-5-8-12-18-30) and round labels."""
import math
from typing import Dict

ROUND_POINTS: Dict[str, int] = {
    "Round of 128": 2,
    "Round of 64": 3,
    "Round of 32": 5,
    "Round of 16": 8,
    "Quarter Finals": 12,
    "Semi Finals": 18,
    "Final": 30,
}

ROUND_ABBREVIATIONS: Dict[str, str] = {
    "Round of 128": "R128",
    "Round of 64": "R64",
    "Round of 32": "R32",
    "Round of 16": "R16",
    "Quarter Finals": "QF",
    "Semi Finals": "SF",
    "Final": "F",
}

DEFAULT_POINTS_PER_WINNER = 10
EXACT_SCORE_MULTIPLIER = 1.5


def get_scoring_for_round(round_name: str) -> Dict[str, int]:
    """Points for a correct winner and for a correct exact score in a round.

    The exact-score bonus is 1.5x the winner points, rounded up.
    """
    winner_points = ROUND_POINTS.get(round_name, DEFAULT_POINTS_PER_WINNER)
    return {
        "points_per_winner": winner_points,
        "points_exact_score": math.ceil(winner_points * EXACT_SCORE_MULTIPLIER),
    }


def get_round_abbreviation(round_name: str, round_number: int) -> str:
    return ROUND_ABBREVIATIONS.get(round_name, f"R{round_number}")
