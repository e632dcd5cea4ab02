"""
Player-slot normalization shared by draw ingestion and bracket propagation.

- Empty / None / whitespace-only names become "TBD".
- A "TBD" player never carries a seed.
- "BYE" is matched case-insensitively on the whole name only.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from pickem.errors import ValidationError
from pickem.models.match import BYE, TBD


@dataclass
class ByeResolution:
    winner_name: str
    winner_seed: Optional[int]


def normalize_player_name(name: Optional[str]) -> str:
    if name is None:
        return TBD
    stripped = name.strip()
    return stripped or TBD


def normalize_seed(name: str, seed: Optional[int]) -> Optional[int]:
    return None if name == TBD else seed


def normalize_slot(name: Optional[str], seed: Optional[int]) -> Tuple[str, Optional[int]]:
    normalized = normalize_player_name(name)
    return normalized, normalize_seed(normalized, seed)


def is_bye_name(name: Optional[str]) -> bool:
    return name is not None and name.strip().upper() == BYE


def resolve_bye(
    player1_name: str,
    player1_seed: Optional[int],
    player2_name: str,
    player2_seed: Optional[int],
) -> Optional[ByeResolution]:
    """Return the walkover winner when exactly one side is a BYE.

    Returns None for a regular match. Raises ValidationError when both sides
    are BYE, since such a slot can never produce a winner.
    """
    bye1 = is_bye_name(player1_name)
    bye2 = is_bye_name(player2_name)
    if bye1 and bye2:
        raise ValidationError("Invalid match: both players cannot be BYE")
    if bye1:
        return ByeResolution(winner_name=player2_name, winner_seed=player2_seed)
    if bye2:
        return ByeResolution(winner_name=player1_name, winner_seed=player1_seed)
    return None
