from parlay_sync.schemas.matching import (
    ExternalGame,
    GameStatus,
    MatchDiagnostics,
    MatchingStatistics,
    MatchingSummary,
    MatchOptions,
    MatchRequest,
    MatchResult,
    MatchType,
    OddsSourceMappingRecord,
    ScheduleGame,
    SyncRunResponse,
)
from parlay_sync.schemas.odds import OddsLine

__all__ = [
    "ExternalGame",
    "GameStatus",
    "MatchDiagnostics",
    "MatchingStatistics",
    "MatchingSummary",
    "MatchOptions",
    "MatchRequest",
    "MatchResult",
    "MatchType",
    "OddsLine",
    "OddsSourceMappingRecord",
    "ScheduleGame",
    "SyncRunResponse",
]
