"""Shared pytest fixtures for parlay-sync tests."""
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, List

# Test configuration must be in place before parlay_sync.core.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["SYNC_SECRET"] = "test-sync-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["THE_ODDS_API_KEY"] = "test-odds-key"
os.environ["CURRENT_SEASON_NAME"] = "2025 NFL Season"
os.environ["LOG_JSON"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

SYNC_SECRET = "test-sync-secret"

# Sunday 1:00 PM ET, week 1
KICKOFF = datetime(2025, 9, 7, 17, 0, tzinfo=timezone.utc)


def make_external(
    event_id: str,
    home: str,
    away: str,
    commence_time: datetime,
    source: str = "odds_api"
):
    from parlay_sync.schemas.matching import ExternalGame
    return ExternalGame(id=event_id, home_team=home, away_team=away, commence_time=commence_time, source=source)


def make_schedule(
    game_id: int,
    home_code: str,
    away_code: str,
    start_time: datetime,
    week: int = 1
):
    from parlay_sync.schemas.matching import ScheduleGame
    return ScheduleGame(
        id=game_id,
        external_schedule_id=f"40177{game_id:04d}",
        home_team_code=home_code,
        away_team_code=away_code,
        start_time=start_time,
        week=week,
    )


def make_raw_event(event_id: str, home: str, away: str, commence_time: str, bookmakers=None) -> dict:
    """A The Odds API /odds event as returned on the wire."""
    return {
        "id": event_id,
        "sport_key": "americanfootball_nfl",
        "sport_title": "NFL",
        "commence_time": commence_time,
        "home_team": home,
        "away_team": away,
        "bookmakers": bookmakers if bookmakers is not None else [],
    }


def make_bookmaker(key: str, home: str, away: str, home_ml: int, away_ml: int, spread: float, total: float) -> dict:
    return {
        "key": key,
        "title": key.title(),
        "last_update": "2025-09-06T12:00:00Z",
        "markets": [
            {
                "key": "h2h",
                "outcomes": [{"name": home, "price": home_ml}, {"name": away, "price": away_ml}],
            },
            {
                "key": "spreads",
                "outcomes": [
                    {"name": home, "price": -110, "point": spread},
                    {"name": away, "price": -110, "point": -spread},
                ],
            },
            {
                "key": "totals",
                "outcomes": [
                    {"name": "Over", "price": -110, "point": total},
                    {"name": "Under", "price": -110, "point": total},
                ],
            },
        ],
    }


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from parlay_sync.models import Base

    # StaticPool keeps one connection so TestClient worker threads see the same data
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def seeded_schedule(db_session: Session) -> List:
    """
    Seed two seasons, the teams they use and four week-1 games.

    Current season (2025):
        1: BUF @ KC   Sun 1:00 PM ET
        2: DAL @ PHI  Sun 4:00 PM ET
        3: LAR @ SF   Sun 8:20 PM ET (next day in UTC)
    Previous season (2024):
        4: BUF @ KC   a year earlier
    """
    from parlay_sync.models import Game, Season, Team

    current = Season(name="2025 NFL Season", year=2025)
    previous = Season(name="2024 NFL Season", year=2024)
    db_session.add_all([current, previous])

    teams = {}
    for code, name in [
        ("KC", "Kansas City Chiefs"),
        ("BUF", "Buffalo Bills"),
        ("PHI", "Philadelphia Eagles"),
        ("DAL", "Dallas Cowboys"),
        ("SF", "San Francisco 49ers"),
        ("LAR", "Los Angeles Rams"),
    ]:
        teams[code] = Team(name=name, abbreviation=code)
        db_session.add(teams[code])
    db_session.flush()

    games = [
        Game(id=1, season_id=current.id, espn_game_id="401772001", home_team_id=teams["KC"].id,
             away_team_id=teams["BUF"].id, start_time=KICKOFF, week=1, status="STATUS_SCHEDULED"),
        Game(id=2, season_id=current.id, espn_game_id="401772002", home_team_id=teams["PHI"].id,
             away_team_id=teams["DAL"].id, start_time=KICKOFF + timedelta(hours=3), week=1, status="scheduled"),
        Game(id=3, season_id=current.id, espn_game_id="401772003", home_team_id=teams["SF"].id,
             away_team_id=teams["LAR"].id, start_time=datetime(2025, 9, 8, 0, 20, tzinfo=timezone.utc),
             week=1, status="scheduled"),
        Game(id=4, season_id=previous.id, espn_game_id="401671001", home_team_id=teams["KC"].id,
             away_team_id=teams["BUF"].id, start_time=KICKOFF - timedelta(days=364), week=1, status="final"),
    ]
    db_session.add_all(games)
    db_session.commit()
    return games


@pytest.fixture(autouse=True)
def reset_odds_api_breaker():
    """Keep breaker state from leaking between tests."""
    from parlay_sync.services.core.circuit_breaker import reset_breaker
    reset_breaker()
    yield
    reset_breaker()


@pytest.fixture
def fake_odds_service():
    """Odds service double; set ``fetch_odds.return_value`` or ``side_effect`` per test."""
    from unittest.mock import AsyncMock, MagicMock
    from parlay_sync.services.core.odds_api_service import OddsApiService

    service = MagicMock(spec=OddsApiService)
    service.fetch_odds = AsyncMock(return_value=[])
    service.close = AsyncMock()
    return service


@pytest.fixture
def test_client(db_session, fake_odds_service):
    """
    Create FastAPI TestClient backed by the in-memory database and the fake
    odds service.

    Note: We don't use context manager (with TestClient) so the lifespan
    handler does not run against the configured database.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/v1/sync/status")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from parlay_sync.main import app
    from parlay_sync.core.database import get_db
    from parlay_sync.api.routes.sync import get_odds_api_service

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_odds_api_service] = lambda: fake_odds_service

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sync_headers() -> dict:
    return {"Authorization": f"Bearer {SYNC_SECRET}"}
