"""Sync orchestrator for attaching The Odds API lines to the ESPN schedule.

One odds sync run:
1. loads the schedule snapshot for an explicit season
2. fetches raw events from The Odds API (OddsApiError propagates)
3. adapts them to ExternalGames, rejecting malformed events
4. matches them with GameMatcher
5. stores match records and attaches betting lines to matched games
6. records the run in sync_metadata

Storage failures in step 5 never change the matching summary: they are
rolled back, logged, counted and reported as ``persistence_errors`` and the
run is marked ``partial``.
"""
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parlay_sync.core import metrics
from parlay_sync.core.config import Settings, settings as default_settings
from parlay_sync.core.logging import get_correlation_id, get_logger
from parlay_sync.models import SyncMetadata
from parlay_sync.repositories.base import PersistenceError
from parlay_sync.repositories.game_repository import GameRepository
from parlay_sync.repositories.odds_repository import OddsRepository, OddsSourceMappingRepository
from parlay_sync.schemas.matching import (
    ExternalGame,
    MatchingSummary,
    MatchOptions,
    MatchResult,
    ScheduleGame,
    SyncRunResponse,
)
from parlay_sync.schemas.odds import OddsLine
from parlay_sync.services.core.odds_api_service import OddsApiService, get_odds_service
from parlay_sync.services.sync.adapters.odds_api_adapter import OddsApiAdapter
from parlay_sync.services.sync.matchers.game_matcher import (
    OUTCOME_BELOW_THRESHOLD,
    OUTCOME_MATCHED,
    OUTCOME_NAMING_FAILURE,
    OUTCOME_NO_CANDIDATE,
    GameMatcher,
)
from parlay_sync.services.sync.reporter import MatchResultReporter, log_summary
from parlay_sync.services.sync.utils.team_normalizer import resolve_team_code
from parlay_sync.utils.timezone import ensure_utc

logger = get_logger(__name__)

SYNC_STATUS_SUCCESS = "success"
SYNC_STATUS_PARTIAL = "partial"
SYNC_STATUS_FAILED = "failed"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _schedule_home_name(match: MatchResult) -> str:
    """
    Feed spelling of the schedule game's home team.

    A reversed match lists the schedule's home team as the feed's away team;
    lines must be read from that side so they land in the home columns.
    """
    external = match.external_game
    if (
        resolve_team_code(external.home_team) != match.schedule_game.home_team_code
        and resolve_team_code(external.away_team) == match.schedule_game.home_team_code
    ):
        return external.away_team
    return external.home_team


class SyncOrchestrator:
    """
    Coordinates odds sync runs.

    All sync operations should go through this orchestrator.
    """

    def __init__(
        self,
        db: Session,
        odds_service: Optional[OddsApiService] = None,
        settings: Settings = default_settings
    ):
        """
        Initialize the sync orchestrator.

        Args:
            db: SQLAlchemy database session
            odds_service: Odds feed client (defaults to the settings-backed singleton)
            settings: Configuration for feed parameters and match defaults
        """
        self.db = db
        self.settings = settings
        self._odds_service = odds_service
        self.adapter = OddsApiAdapter()
        self.games = GameRepository(db)
        self.odds = OddsRepository(db)
        self.reporter = MatchResultReporter(OddsSourceMappingRepository(db))

    @property
    def odds_service(self) -> OddsApiService:
        """Lazy load odds service (needs API key)."""
        if self._odds_service is None:
            self._odds_service = get_odds_service()
        return self._odds_service

    async def run_odds_sync(
        self,
        season_id: Optional[int] = None,
        season_name: Optional[str] = None,
        options: Optional[MatchOptions] = None
    ) -> SyncRunResponse:
        """
        Fetch current odds, match them to the season schedule and store the results.

        Args:
            season_id: Season to match against
            season_name: Season name, used when season_id is not given
                (defaults to CURRENT_SEASON_NAME)
            options: Matching options (defaults from settings)

        Returns:
            SyncRunResponse with the matching summary and storage counts

        Raises:
            SeasonNotFoundError: If the season cannot be resolved
            OddsApiError: If the feed cannot be fetched
        """
        started = _utcnow()
        schedule = self._load_schedule(season_id, season_name)

        metadata = self._start_metadata("odds_api", "odds", started)
        try:
            raw_events = await self.odds_service.fetch_odds(
                sport_key=self.settings.ODDS_API_SPORT_KEY,
                markets=self.settings.odds_markets,
                regions=self.settings.ODDS_API_REGIONS,
            )
            external_games, rejected = self.adapter.to_external_games(raw_events, source="odds_api")
            raw_by_id = {
                raw["id"]: raw for raw in raw_events
                if isinstance(raw, Mapping) and isinstance(raw.get("id"), str) and raw["id"]
            }
            return self._match_and_store(
                external_games, schedule, options, started, metadata,
                rejected=rejected, raw_by_id=raw_by_id,
            )
        except Exception as e:
            self._fail_run(metadata, started, e)
            raise

    def match_only(
        self,
        external_games: Sequence[ExternalGame],
        season_id: Optional[int] = None,
        season_name: Optional[str] = None,
        options: Optional[MatchOptions] = None
    ) -> SyncRunResponse:
        """
        Match a caller-supplied batch against the season schedule and store the
        match records. No feed request is made and no lines are attached.
        """
        started = _utcnow()
        schedule = self._load_schedule(season_id, season_name)
        metadata = self._start_metadata("api", "match", started)
        try:
            return self._match_and_store(list(external_games), schedule, options, started, metadata)
        except Exception as e:
            self._fail_run(metadata, started, e)
            raise

    def get_sync_status(self) -> List[Dict[str, Any]]:
        """Latest run of every sync job, most recently started first."""
        rows = self.db.query(SyncMetadata).order_by(SyncMetadata.id).all()
        rows.sort(key=lambda m: ensure_utc(m.last_sync_started_at or _EPOCH), reverse=True)
        return [
            {
                "source": m.source,
                "data_type": m.data_type,
                "status": m.last_sync_status,
                "last_sync_started_at": m.last_sync_started_at,
                "last_sync_completed_at": m.last_sync_completed_at,
                "records_processed": m.records_processed,
                "records_matched": m.records_matched,
                "records_failed": m.records_failed,
                "duration_ms": m.sync_duration_ms,
                "error_message": m.error_message,
            }
            for m in rows
        ]

    def _load_schedule(self, season_id: Optional[int], season_name: Optional[str]) -> List[ScheduleGame]:
        if season_id is None and not season_name:
            season_name = self.settings.CURRENT_SEASON_NAME or None
        return self.games.find_schedule_games(season_id=season_id, season_name=season_name)

    def _match_and_store(
        self,
        external_games: List[ExternalGame],
        schedule: List[ScheduleGame],
        options: Optional[MatchOptions],
        started: datetime,
        metadata: SyncMetadata,
        rejected: int = 0,
        raw_by_id: Optional[Dict[str, Mapping[str, Any]]] = None
    ) -> SyncRunResponse:
        options = options or MatchOptions.from_settings(self.settings)
        summary = GameMatcher(options).match(external_games, schedule)
        log_summary(summary)
        self._record_match_metrics(summary)

        persistence_errors: List[str] = []
        persisted_mappings = self._persist_mappings(summary.matches, persistence_errors)

        persisted_odds = 0
        if raw_by_id:
            persisted_odds = self._persist_lines(summary.matches, raw_by_id, persistence_errors)

        status = SYNC_STATUS_PARTIAL if persistence_errors else SYNC_STATUS_SUCCESS
        duration_ms = self._finish_metadata(
            metadata,
            started,
            status,
            processed=summary.total_external_games + rejected,
            matched=summary.matched_games,
            failed=summary.unmatched_games + rejected,
            error_message="; ".join(persistence_errors) or None,
        )
        metrics.record_sync_run(status)

        logger.info(
            f"Odds sync complete: {summary.matched_games}/{summary.total_external_games} matched, "
            f"{rejected} rejected, {persisted_mappings} mappings and {persisted_odds} lines stored "
            f"({duration_ms}ms, status={status})"
        )

        return SyncRunResponse(
            summary=summary,
            rejected_events=rejected,
            persisted_mappings=persisted_mappings,
            persisted_odds=persisted_odds,
            persistence_errors=persistence_errors,
            elapsed_ms=duration_ms,
            correlation_id=get_correlation_id(),
        )

    def _persist_mappings(self, matches: Sequence[MatchResult], errors: List[str]) -> int:
        by_source: Dict[str, List[MatchResult]] = defaultdict(list)
        for match in matches:
            by_source[match.external_game.source].append(match)

        written = 0
        for source_tag, source_matches in by_source.items():
            try:
                written += self.reporter.store(source_matches, source_tag)
            except PersistenceError as e:
                logger.error(f"Storing match records failed: {e}")
                metrics.record_persistence_failure("mappings")
                errors.append(str(e))
        return written

    def _persist_lines(
        self,
        matches: Sequence[MatchResult],
        raw_by_id: Dict[str, Mapping[str, Any]],
        errors: List[str]
    ) -> int:
        # Two feed entries matched to one game would otherwise put the same
        # (game_id, sportsbook) key twice into one upsert statement
        lines: Dict[Tuple[int, str], OddsLine] = {}
        for match in matches:
            raw = raw_by_id.get(match.external_game.id)
            if raw is None:
                continue
            for line in self.adapter.extract_lines(raw, home_team_name=_schedule_home_name(match)):
                lines[(match.schedule_game.id, line.sportsbook)] = line

        if not lines:
            return 0

        lines_by_game: Dict[int, List[OddsLine]] = defaultdict(list)
        for (game_id, _), line in lines.items():
            lines_by_game[game_id].append(line)

        try:
            written = self.odds.upsert_many(lines_by_game)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Storing odds lines failed: {e}")
            metrics.record_persistence_failure("odds")
            errors.append(f"Failed to store {len(lines)} odds lines: {e}")
            return 0

        logger.info(f"Stored {written} odds lines for {len(lines_by_game)} games")
        return written

    def _record_match_metrics(self, summary: MatchingSummary) -> None:
        diagnostics = summary.diagnostics
        metrics.record_match_outcome(OUTCOME_MATCHED, summary.matched_games)
        metrics.record_match_outcome(OUTCOME_NAMING_FAILURE, diagnostics.naming_failures)
        metrics.record_match_outcome(OUTCOME_NO_CANDIDATE, diagnostics.no_candidate)
        metrics.record_match_outcome(OUTCOME_BELOW_THRESHOLD, diagnostics.below_threshold)
        for match in summary.matches:
            metrics.observe_match_confidence(match.confidence)

    def _start_metadata(self, source: str, data_type: str, started: datetime) -> SyncMetadata:
        metadata = self._get_or_create_metadata(source, data_type)
        metadata.last_sync_started_at = started
        metadata.last_sync_status = None
        metadata.error_message = None
        self.db.commit()
        return metadata

    def _fail_run(self, metadata: SyncMetadata, started: datetime, error: Exception) -> None:
        logger.error(f"Sync run {metadata.source}/{metadata.data_type} failed: {error}")
        self.db.rollback()
        self._finish_metadata(metadata, started, SYNC_STATUS_FAILED, error_message=str(error))
        metrics.record_sync_run(SYNC_STATUS_FAILED)

    def _finish_metadata(
        self,
        metadata: SyncMetadata,
        started: datetime,
        status: str,
        processed: int = 0,
        matched: int = 0,
        failed: int = 0,
        error_message: Optional[str] = None
    ) -> int:
        """Write the run outcome; returns the run duration in ms."""
        completed = _utcnow()
        duration_ms = int((completed - started).total_seconds() * 1000)

        metadata.last_sync_completed_at = completed
        metadata.last_sync_status = status
        metadata.records_processed = processed
        metadata.records_matched = matched
        metadata.records_failed = failed
        metadata.error_message = error_message
        metadata.sync_duration_ms = duration_ms
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update sync metadata for {metadata.source}/{metadata.data_type}: {e}")
            metrics.record_persistence_failure("metadata")
        return duration_ms

    def _get_or_create_metadata(self, source: str, data_type: str) -> SyncMetadata:
        """Get or create sync metadata entry."""
        metadata = self.db.query(SyncMetadata).filter(
            SyncMetadata.source == source,
            SyncMetadata.data_type == data_type
        ).first()

        if not metadata:
            metadata = SyncMetadata(source=source, data_type=data_type)
            self.db.add(metadata)
            self.db.flush()

        return metadata

    async def cleanup(self):
        """Close any open connections."""
        if self._odds_service:
            await self._odds_service.close()
