"""
Database models for the parlay challenge schedule and odds tables.

Ownership:
- seasons / teams / games are written by the ESPN schedule ingestion and
  only read here (the schedule snapshot for matching).
- odds_source_mapping is the audit trail of accepted odds-to-game matches,
  unique per (game_id, source_type, source_game_id) so that repeated sync
  runs upsert instead of duplicating.
- odds holds the latest betting lines per (game_id, sportsbook).
- sync_metadata tracks the outcome of each sync job type.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Float, Integer, DateTime, Date, ForeignKey, Text, Index, UniqueConstraint
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Season(Base):
    """A league season; games are grouped by season."""
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True, index=True)  # e.g. "2025 NFL Season"
    year = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    games = relationship("Game", back_populates="season")


class Team(Base):
    """NFL team keyed by its ESPN abbreviation (the canonical code)."""
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    abbreviation = Column(String(8), nullable=False, unique=True, index=True)


class Game(Base):
    """Schedule game from the ESPN feed."""
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False, index=True)
    espn_game_id = Column(String(32), nullable=False, unique=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    week = Column(Integer, nullable=False, default=1)
    status = Column(String(32), nullable=False, default="scheduled")  # scheduled, live, completed
    home_score = Column(Integer, nullable=True)
    away_score = Column(Integer, nullable=True)

    season = relationship("Season", back_populates="games")
    home_team = relationship("Team", foreign_keys=[home_team_id])
    away_team = relationship("Team", foreign_keys=[away_team_id])
    odds = relationship("Odds", back_populates="game")

    __table_args__ = (
        Index("ix_games_season_week", "season_id", "week"),
    )


class Odds(Base):
    """Latest betting lines for one game from one sportsbook."""
    __tablename__ = "odds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    sportsbook = Column(String(64), nullable=False)
    last_update = Column(DateTime(timezone=True), nullable=True)
    moneyline_home = Column(Integer, nullable=True)
    moneyline_away = Column(Integer, nullable=True)
    spread_home = Column(Float, nullable=True)
    spread_away = Column(Float, nullable=True)
    total_over = Column(Float, nullable=True)
    total_under = Column(Float, nullable=True)

    game = relationship("Game", back_populates="odds")

    __table_args__ = (
        UniqueConstraint("game_id", "sportsbook", name="uq_odds_game_sportsbook"),
    )


class OddsSourceMapping(Base):
    """Audit record of an accepted odds-feed game to schedule game match."""
    __tablename__ = "odds_source_mapping"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    source_type = Column(String(32), nullable=False)  # odds_api, espn_bet, ...
    source_game_id = Column(String(64), nullable=False)
    home_team_source = Column(String(100), nullable=False)
    away_team_source = Column(String(100), nullable=False)
    confidence_score = Column(Integer, nullable=False)  # 0-100
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("game_id", "source_type", "source_game_id", name="uq_odds_source_mapping_key"),
        Index("ix_odds_source_mapping_source", "source_type"),
        Index("ix_odds_source_mapping_confidence", "confidence_score"),
    )


class SyncMetadata(Base):
    """Sync job tracking."""
    __tablename__ = "sync_metadata"

    id = Column(Integer, primary_key=True, autoincrement=True)
    source = Column(String(32), nullable=False)
    data_type = Column(String(32), nullable=False)
    last_sync_started_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_completed_at = Column(DateTime(timezone=True), nullable=True)
    last_sync_status = Column(String(16), nullable=True)  # success, partial, failed
    records_processed = Column(Integer, nullable=False, default=0)
    records_matched = Column(Integer, nullable=False, default=0)
    records_failed = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    sync_duration_ms = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("source", "data_type", name="uq_sync_metadata_source_type"),
    )
