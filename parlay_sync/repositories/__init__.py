"""
Repository layer for data access.

Usage:
    from parlay_sync.repositories import GameRepository
    from parlay_sync.core.database import get_session_factory

    db = get_session_factory()()
    schedule = GameRepository(db).find_schedule_games(season_name="2025 NFL Season")
    db.close()
"""

from parlay_sync.repositories.base import BaseRepository, PersistenceError, SeasonNotFoundError
from parlay_sync.repositories.game_repository import GameRepository
from parlay_sync.repositories.odds_repository import OddsRepository, OddsSourceMappingRepository

__all__ = [
    "BaseRepository",
    "PersistenceError",
    "SeasonNotFoundError",
    "GameRepository",
    "OddsRepository",
    "OddsSourceMappingRepository",
]
