"""
Match result reporter.

Turns accepted matches into odds_source_mapping records, stores them with
upsert-by-key semantics and aggregates stored records into the statistics
shown on the monitoring endpoint.
"""
import math
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from parlay_sync.core.logging import get_logger
from parlay_sync.repositories.base import PersistenceError
from parlay_sync.repositories.odds_repository import OddsSourceMappingRepository
from parlay_sync.schemas.matching import (
    MatchingStatistics,
    MatchingSummary,
    MatchResult,
    OddsSourceMappingRecord,
)
from parlay_sync.services.sync.utils.team_normalizer import team_display_name

logger = get_logger(__name__)

# Stored mappings at or above this confidence count as "high" on the dashboard
STATISTICS_HIGH_CONFIDENCE = 90


def to_storage_records(matches: Sequence[MatchResult], source_tag: str) -> List[OddsSourceMappingRecord]:
    """
    Build one storage record per match.

    Records are keyed by (schedule game id, source tag, external id). When a
    key repeats within the batch the later record replaces the earlier one
    at the earlier one's position.
    """
    records: Dict[Tuple[int, str, str], OddsSourceMappingRecord] = {}
    for match in matches:
        record = OddsSourceMappingRecord(
            schedule_game_id=match.schedule_game.id,
            source_type=source_tag,
            source_game_id=match.external_game.id,
            home_team_source=match.external_game.home_team,
            away_team_source=match.external_game.away_team,
            confidence_score=match.confidence,
        )
        records[record.key] = record
    return list(records.values())


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def summarize_statistics(records: Sequence[OddsSourceMappingRecord]) -> MatchingStatistics:
    if not records:
        return MatchingStatistics()

    breakdown = Counter(record.source_type for record in records)
    total_confidence = sum(record.confidence_score for record in records)

    return MatchingStatistics(
        total_mappings=len(records),
        source_breakdown=dict(breakdown),
        average_confidence=_round_half_up(total_confidence / len(records)),
        high_confidence_count=sum(
            1 for record in records if record.confidence_score >= STATISTICS_HIGH_CONFIDENCE
        ),
    )


def log_summary(summary: MatchingSummary, source_tag: Optional[str] = None) -> None:
    diagnostics = summary.diagnostics
    logger.info(
        f"Match summary{f' for {source_tag}' if source_tag else ''}: "
        f"{summary.matched_games}/{summary.total_external_games} matched, "
        f"{summary.high_confidence_matches} high / {summary.low_confidence_matches} low confidence, "
        f"unmatched: {diagnostics.naming_failures} naming, {diagnostics.no_candidate} no candidate, "
        f"{diagnostics.below_threshold} below threshold"
    )
    for match in summary.matches:
        game = match.schedule_game
        away = team_display_name(game.away_team_code) or game.away_team_code
        home = team_display_name(game.home_team_code) or game.home_team_code
        logger.debug(
            f"  {match.external_game.id} -> game {game.id} ({away} @ {home}) "
            f"{match.confidence}% {match.match_type.value}: {', '.join(match.match_reasons)}"
        )


class MatchResultReporter:
    """Stores accepted matches and reports on what has been stored."""

    def __init__(self, repository: OddsSourceMappingRepository):
        self.repository = repository

    def store(self, matches: Sequence[MatchResult], source_tag: str) -> int:
        """
        Upsert match records and commit.

        Returns:
            Number of records written

        Raises:
            PersistenceError: If the database rejects the write (the session
                is rolled back first)
        """
        records = to_storage_records(matches, source_tag)
        if not records:
            return 0

        db = self.repository.db
        try:
            written = self.repository.upsert_many(records)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to store {len(records)} match records: {e}") from e

        logger.info(f"Stored {written} match records for source '{source_tag}'")
        return written

    def get_statistics(self) -> MatchingStatistics:
        try:
            records = self.repository.find_all_records()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read match records: {e}") from e
        return summarize_statistics(records)
