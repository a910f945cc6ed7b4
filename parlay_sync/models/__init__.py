"""
Database models.

Usage:
    from parlay_sync.models import Game, OddsSourceMapping
"""
from parlay_sync.models.models import (
    Base,
    Season,
    Team,
    Game,
    Odds,
    OddsSourceMapping,
    SyncMetadata,
)

__all__ = [
    "Base",
    "Season",
    "Team",
    "Game",
    "Odds",
    "OddsSourceMapping",
    "SyncMetadata",
]
