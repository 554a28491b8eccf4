import os
import random
from datetime import date

# Keep the app's own engine off disk; tests use test_engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from cupmanager.database import build_engine, get_session, init_db
from cupmanager.main import app

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. build_engine gives sqlite:///:memory: a StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are dropped and recreated per test for isolation
test_engine = build_engine(TEST_DATABASE_URL)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.drop_all(test_engine)
    init_db(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def event(session: Session):
    from cupmanager.models.event import Event

    event = Event(title="Copa Barrio 2026", date=date(2026, 6, 1), location="Campo Municipal")
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture
def make_teams(session: Session):
    """Factory: create n catalog teams and return their ids"""
    from cupmanager.models.team import Team

    def _make(n: int, prefix: str = "Team"):
        teams = [Team(name=f"{prefix} {i + 1}") for i in range(n)]
        for team in teams:
            session.add(team)
        session.commit()
        return [team.id for team in teams]

    return _make


@pytest.fixture
def service(session: Session):
    from cupmanager.services.store import TournamentStore
    from cupmanager.services.tournament_service import TournamentService

    return TournamentService(TournamentStore(session), rng=random.Random(2026))
