"""
Achievements unlocked by pick results.

Evaluated for every user holding a pick on a match right after that match is
scored. A user unlocks each code at most once; unfinalizing a match does not
take an achievement back.
"""
import logging
from typing import List, Optional, Tuple

from sqlmodel import Session, select

from pickem.models.achievement import AchievementCategory, AchievementDefinition, UserAchievement
from pickem.models.picks import MatchPick, UserRoundPick
from pickem.models.round import Round
from pickem.models.streak import UserStreak
from pickem.utils.guards import get_live_round_matches

logger = logging.getLogger(__name__)

PERFECT_ROUND = "PERFECT_ROUND"
EXACT_MASTER = "EXACT_MASTER"
STREAK_5 = "STREAK_5"
STREAK_10 = "STREAK_10"

ACHIEVEMENT_DEFINITIONS = {
    PERFECT_ROUND: {
        "name": "Perfect Round",
        "description": "Get 100% correct winners in a round",
        "category": AchievementCategory.round,
        "badge_color": "gold",
        "threshold": 100,
    },
    EXACT_MASTER: {
        "name": "Exact Master",
        "description": "Get 3 or more exact scores in one round",
        "category": AchievementCategory.round,
        "badge_color": "purple",
        "threshold": 3,
    },
    STREAK_5: {
        "name": "On Fire",
        "description": "Get 5 consecutive correct predictions",
        "category": AchievementCategory.streak,
        "badge_color": "orange",
        "threshold": 5,
    },
    STREAK_10: {
        "name": "Streak Master",
        "description": "Get 10 consecutive correct predictions",
        "category": AchievementCategory.streak,
        "badge_color": "red",
        "threshold": 10,
    },
}


def get_definition(session: Session, code: str) -> AchievementDefinition:
    """Definition row for a code, created from ACHIEVEMENT_DEFINITIONS on first use"""
    definition = session.exec(select(AchievementDefinition).where(AchievementDefinition.code == code)).first()
    if definition is None:
        definition = AchievementDefinition(code=code, **ACHIEVEMENT_DEFINITIONS[code])
        session.add(definition)
        session.flush()
    return definition


def award_achievement(
    session: Session,
    user_id: str,
    code: str,
    tournament_id: Optional[int] = None,
    round_id: Optional[int] = None,
    value: Optional[int] = None,
) -> bool:
    """Unlock an achievement. Returns False when the user already has it."""
    definition = get_definition(session, code)
    existing = session.exec(
        select(UserAchievement).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == definition.id,
        )
    ).first()
    if existing is not None:
        return False

    session.add(
        UserAchievement(
            user_id=user_id,
            achievement_id=definition.id,
            tournament_id=tournament_id,
            round_id=round_id,
            value=value,
        )
    )
    session.flush()
    logger.info("User %s unlocked %s", user_id, code)
    return True


def check_streak_achievements(session: Session, user_id: str) -> List[str]:
    streak = session.exec(select(UserStreak).where(UserStreak.user_id == user_id)).first()
    if streak is None:
        return []

    awarded = []
    for code in (STREAK_5, STREAK_10):
        if streak.current_streak >= ACHIEVEMENT_DEFINITIONS[code]["threshold"]:
            if award_achievement(session, user_id, code, value=streak.current_streak):
                awarded.append(code)
    return awarded


def check_round_achievements(session: Session, user_id: str, round_id: int) -> List[str]:
    user_round_pick = session.exec(
        select(UserRoundPick).where(UserRoundPick.user_id == user_id, UserRoundPick.round_id == round_id)
    ).first()
    if user_round_pick is None:
        return []

    round_ = session.get(Round, round_id)
    picks = session.exec(select(MatchPick).where(MatchPick.user_round_pick_id == user_round_pick.id)).all()
    # BYE matches take no picks
    pickable = [m for m in get_live_round_matches(session, round_id) if not m.is_bye]

    awarded = []
    scored = [p for p in picks if p.is_winner_correct is not None]
    if scored and len(scored) == len(pickable) and all(p.is_winner_correct for p in scored):
        if award_achievement(
            session, user_id, PERFECT_ROUND, tournament_id=round_.tournament_id, round_id=round_id, value=len(scored)
        ):
            awarded.append(PERFECT_ROUND)

    exact = sum(1 for p in picks if p.is_exact_score)
    if exact >= ACHIEVEMENT_DEFINITIONS[EXACT_MASTER]["threshold"]:
        if award_achievement(
            session, user_id, EXACT_MASTER, tournament_id=round_.tournament_id, round_id=round_id, value=exact
        ):
            awarded.append(EXACT_MASTER)
    return awarded


def evaluate_achievements_after_scoring(session: Session, user_id: str, round_id: int) -> List[str]:
    return check_streak_achievements(session, user_id) + check_round_achievements(session, user_id, round_id)


def get_user_achievements(session: Session, user_id: str) -> List[Tuple[UserAchievement, AchievementDefinition]]:
    return list(
        session.exec(
            select(UserAchievement, AchievementDefinition)
            .join(AchievementDefinition, AchievementDefinition.id == UserAchievement.achievement_id)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.unlocked_at, UserAchievement.id)
        ).all()
    )
