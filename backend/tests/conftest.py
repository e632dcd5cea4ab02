import os
from typing import Dict, Optional

# Keep app startup (init_db) off the on-disk default database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from pickem.database import get_session
from pickem.main import app
from pickem.models.match import Match
from pickem.models.round import Round
from pickem.models.tournament import TournamentFormat
from pickem.services.draw_ingestion import ParsedDraw, commit_draw

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after each test so slugs never collide between tests
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    from pickem.models.achievement import AchievementDefinition, UserAchievement  # noqa: F401
    from pickem.models.match import Match  # noqa: F401
    from pickem.models.picks import MatchPick, UserRoundPick  # noqa: F401
    from pickem.models.round import Round  # noqa: F401
    from pickem.models.scoring_rule import RoundScoringRule  # noqa: F401
    from pickem.models.streak import UserStreak  # noqa: F401
    from pickem.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override is set BEFORE TestClient() so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def commit(session: Session):
    """commit_draw bound to the test session"""

    def _commit(
        draw: ParsedDraw,
        fmt: TournamentFormat = TournamentFormat.bo3,
        overwrite: bool = False,
        atp_url: Optional[str] = None,
    ):
        return commit_draw(
            session, draw, uploaded_by="admin-1", fmt=fmt, atp_url=atp_url, overwrite_existing=overwrite
        )

    return _commit


@pytest.fixture
def bracket(session: Session):
    """Lookup of a tournament's live matches keyed by (round_number, match_number)"""

    def _bracket(tournament_id: int) -> Dict[tuple, Match]:
        session.expire_all()
        rows = session.exec(
            select(Round, Match)
            .join(Match, Match.round_id == Round.id)
            .where(Round.tournament_id == tournament_id, Match.deleted_at.is_(None))
        ).all()
        return {(r.round_number, m.match_number): m for r, m in rows}

    return _bracket


@pytest.fixture
def rounds(session: Session):
    """Lookup of a tournament's rounds keyed by round_number"""

    def _rounds(tournament_id: int) -> Dict[int, Round]:
        session.expire_all()
        return {r.round_number: r for r in session.exec(select(Round).where(Round.tournament_id == tournament_id)).all()}

    return _rounds
