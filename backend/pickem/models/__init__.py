from pickem.models.achievement import AchievementCategory, AchievementDefinition, UserAchievement
from pickem.models.match import BYE, TBD, Match, MatchStatus
from pickem.models.picks import MatchPick, UserRoundPick
from pickem.models.round import Round
from pickem.models.scoring_rule import RoundScoringRule
from pickem.models.streak import UserStreak
from pickem.models.tournament import Tournament, TournamentFormat, TournamentStatus

__all__ = [
    "Tournament",
    "TournamentFormat",
    "TournamentStatus",
    "Round",
    "RoundScoringRule",
    "Match",
    "MatchStatus",
    "TBD",
    "BYE",
    "UserRoundPick",
    "MatchPick",
    "UserStreak",
    "AchievementCategory",
    "AchievementDefinition",
    "UserAchievement",
]
