# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from pickem.models.achievement import AchievementDefinition, UserAchievement  # noqa: F401
from pickem.models.match import Match  # noqa: F401
from pickem.models.picks import MatchPick, UserRoundPick  # noqa: F401
from pickem.models.round import Round  # noqa: F401
from pickem.models.scoring_rule import RoundScoringRule  # noqa: F401
from pickem.models.streak import UserStreak  # noqa: F401
from pickem.models.tournament import Tournament  # noqa: F401
