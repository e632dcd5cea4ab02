import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pickem.db")

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=_echo,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit everything done inside the block once, or roll all of it back.

    Services flush as they go so later queries in the same block see earlier
    writes; nothing is visible to other sessions until the single commit.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from pickem.models.achievement import AchievementDefinition, UserAchievement  # noqa: F401
    from pickem.models.match import Match  # noqa: F401
    from pickem.models.picks import MatchPick, UserRoundPick  # noqa: F401
    from pickem.models.round import Round  # noqa: F401
    from pickem.models.scoring_rule import RoundScoringRule  # noqa: F401
    from pickem.models.streak import UserStreak  # noqa: F401
    from pickem.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database schema ready (%s)", "sqlite" if _is_sqlite else "external")
