"""Schedule store: read-only access to seasons and games."""
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session, aliased

from parlay_sync.core.logging import get_logger
from parlay_sync.models import Game, Season, Team
from parlay_sync.repositories.base import BaseRepository, SeasonNotFoundError
from parlay_sync.schemas.matching import ScheduleGame

logger = get_logger(__name__)


class GameRepository(BaseRepository[Game]):
    """Loads schedule snapshots for the matcher."""

    def __init__(self, db: Session):
        super().__init__(Game, db)

    def resolve_season(self, season_id: Optional[int] = None, season_name: Optional[str] = None) -> Season:
        """
        Find the season by id, else by exact name.

        Raises:
            SeasonNotFoundError: If neither argument identifies a season
        """
        season = None
        if season_id is not None:
            season = self.db.get(Season, season_id)
        elif season_name:
            season = self.db.query(Season).filter(Season.name == season_name).first()

        if season is None:
            raise SeasonNotFoundError(
                f"Season not found (season_id={season_id!r}, season_name={season_name!r})"
            )
        return season

    def find_schedule_games(
        self,
        season_id: Optional[int] = None,
        season_name: Optional[str] = None
    ) -> List[ScheduleGame]:
        """
        Snapshot of one season's games with team abbreviations, ordered by id.

        Rows that cannot form a valid ScheduleGame (missing team abbreviation,
        unknown status) are skipped with a warning.
        """
        season = self.resolve_season(season_id=season_id, season_name=season_name)

        home = aliased(Team)
        away = aliased(Team)
        rows = (
            self.db.query(Game, home.abbreviation, away.abbreviation)
            .join(home, Game.home_team_id == home.id)
            .join(away, Game.away_team_id == away.id)
            .filter(Game.season_id == season.id)
            .order_by(Game.id)
            .all()
        )

        snapshot: List[ScheduleGame] = []
        for game, home_code, away_code in rows:
            try:
                snapshot.append(ScheduleGame(
                    id=game.id,
                    external_schedule_id=game.espn_game_id,
                    home_team_code=home_code,
                    away_team_code=away_code,
                    start_time=game.start_time,
                    week=game.week,
                    status=game.status,
                ))
            except ValidationError as exc:
                logger.warning(f"Skipping malformed schedule game {game.id}: {exc}")

        logger.info(f"Loaded {len(snapshot)} schedule games for season '{season.name}'")
        return snapshot
