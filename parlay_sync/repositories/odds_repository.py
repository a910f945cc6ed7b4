"""Persistence for match audit records and attached betting lines."""
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from parlay_sync.models import Odds, OddsSourceMapping
from parlay_sync.repositories.base import BaseRepository
from parlay_sync.schemas.matching import OddsSourceMappingRecord
from parlay_sync.schemas.odds import OddsLine

MAPPING_KEY_COLUMNS = ("game_id", "source_type", "source_game_id")
ODDS_KEY_COLUMNS = ("game_id", "sportsbook")


class OddsSourceMappingRepository(BaseRepository[OddsSourceMapping]):
    """odds_source_mapping table, upserted by (game_id, source_type, source_game_id)."""

    def __init__(self, db: Session):
        super().__init__(OddsSourceMapping, db)

    def upsert_many(self, records: Sequence[OddsSourceMappingRecord]) -> int:
        now = datetime.now(timezone.utc)
        rows = [
            {
                "game_id": record.schedule_game_id,
                "source_type": record.source_type,
                "source_game_id": record.source_game_id,
                "home_team_source": record.home_team_source,
                "away_team_source": record.away_team_source,
                "confidence_score": record.confidence_score,
                "created_at": now,
                "updated_at": now,
            }
            for record in records
        ]
        return self.upsert_rows(
            rows,
            conflict_columns=MAPPING_KEY_COLUMNS,
            update_columns=("home_team_source", "away_team_source", "confidence_score", "updated_at"),
        )

    def find_all_records(self) -> List[OddsSourceMappingRecord]:
        return [
            OddsSourceMappingRecord(
                schedule_game_id=row.game_id,
                source_type=row.source_type,
                source_game_id=row.source_game_id,
                home_team_source=row.home_team_source,
                away_team_source=row.away_team_source,
                confidence_score=row.confidence_score,
            )
            for row in self.query().order_by(OddsSourceMapping.id).all()
        ]


class OddsRepository(BaseRepository[Odds]):
    """odds table, one row per (game_id, sportsbook)."""

    def __init__(self, db: Session):
        super().__init__(Odds, db)

    def upsert_many(self, lines_by_game: Dict[int, Sequence[OddsLine]]) -> int:
        """
        Attach the latest lines to schedule games.

        Args:
            lines_by_game: schedule game id -> lines from each sportsbook

        Returns:
            Number of odds rows written
        """
        rows = []
        for game_id, lines in lines_by_game.items():
            for line in lines:
                rows.append({
                    "game_id": game_id,
                    "sportsbook": line.sportsbook,
                    "last_update": line.last_update,
                    "moneyline_home": line.moneyline_home,
                    "moneyline_away": line.moneyline_away,
                    "spread_home": line.spread_home,
                    "spread_away": line.spread_away,
                    "total_over": line.total_over,
                    "total_under": line.total_under,
                })

        return self.upsert_rows(
            rows,
            conflict_columns=ODDS_KEY_COLUMNS,
            update_columns=(
                "last_update", "moneyline_home", "moneyline_away",
                "spread_home", "spread_away", "total_over", "total_under",
            ),
        )

    def find_for_game(self, game_id: int) -> List[Odds]:
        return self.query().filter(Odds.game_id == game_id).order_by(Odds.sportsbook).all()
