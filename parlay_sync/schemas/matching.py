"""
Pydantic models for odds-to-schedule game matching.

Field names are snake_case in Python and camelCase on the wire, e.g.
``ExternalGame.home_team`` is serialized as ``homeTeam``. Both spellings are
accepted on input.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from parlay_sync.utils.timezone import DEFAULT_LOCAL_TIMEZONE, ensure_utc, is_valid_timezone

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


# ESPN and legacy status spellings folded onto the three lifecycle states
_STATUS_ALIASES = {
    "scheduled": GameStatus.SCHEDULED,
    "pre": GameStatus.SCHEDULED,
    "status_scheduled": GameStatus.SCHEDULED,
    "postponed": GameStatus.SCHEDULED,
    "status_postponed": GameStatus.SCHEDULED,
    "live": GameStatus.LIVE,
    "in": GameStatus.LIVE,
    "in_progress": GameStatus.LIVE,
    "status_in_progress": GameStatus.LIVE,
    "status_halftime": GameStatus.LIVE,
    "status_end_period": GameStatus.LIVE,
    "completed": GameStatus.COMPLETED,
    "post": GameStatus.COMPLETED,
    "final": GameStatus.COMPLETED,
    "status_final": GameStatus.COMPLETED,
    "canceled": GameStatus.COMPLETED,
    "cancelled": GameStatus.COMPLETED,
    "status_canceled": GameStatus.COMPLETED,
}


class MatchType(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    MANUAL_REVIEW = "manual-review"


class ExternalGame(_WireModel):
    """A game as listed by a third-party odds feed."""

    id: NonEmptyStr
    home_team: NonEmptyStr
    away_team: NonEmptyStr
    commence_time: datetime
    sport: Optional[str] = None
    source: NonEmptyStr = "odds_api"

    @field_validator("commence_time")
    @classmethod
    def _commence_time_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ScheduleGame(_WireModel):
    """A game from the authoritative ESPN schedule, keyed by team codes."""

    id: int
    external_schedule_id: str
    home_team_code: NonEmptyStr
    away_team_code: NonEmptyStr
    start_time: datetime
    week: int
    status: GameStatus = GameStatus.SCHEDULED

    @field_validator("start_time")
    @classmethod
    def _start_time_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("home_team_code", "away_team_code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.upper()

    @field_validator("status", mode="before")
    @classmethod
    def _fold_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            folded = _STATUS_ALIASES.get(value.strip().lower())
            if folded is not None:
                return folded
        return value


class MatchOptions(_WireModel):
    """Tuning knobs for one matching run."""

    confidence_threshold: int = Field(80, ge=0, le=1000)
    time_tolerance_hours: float = Field(6.0, gt=0)
    enable_fuzzy_matching: bool = True
    timezone: str = DEFAULT_LOCAL_TIMEZONE

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if not is_valid_timezone(value):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @classmethod
    def from_settings(cls, settings) -> "MatchOptions":
        return cls(
            confidence_threshold=settings.MATCH_CONFIDENCE_THRESHOLD,
            time_tolerance_hours=settings.MATCH_TIME_TOLERANCE_HOURS,
            enable_fuzzy_matching=settings.MATCH_ENABLE_FUZZY,
            timezone=settings.MATCH_TIMEZONE,
        )


class MatchResult(_WireModel):
    """One accepted pairing of an external game with a schedule game."""

    schedule_game: ScheduleGame
    external_game: ExternalGame
    confidence: int = Field(..., ge=0, le=100)
    match_type: MatchType
    match_reasons: List[str] = Field(default_factory=list)


class MatchDiagnostics(_WireModel):
    """Why unmatched external games were left unmatched."""

    naming_failures: int = 0
    no_candidate: int = 0
    below_threshold: int = 0


class MatchingSummary(_WireModel):
    total_external_games: int
    matched_games: int
    unmatched_games: int
    high_confidence_matches: int
    low_confidence_matches: int
    matches: List[MatchResult] = Field(default_factory=list)
    unmatched_external_games: List[ExternalGame] = Field(default_factory=list)
    diagnostics: MatchDiagnostics = Field(default_factory=MatchDiagnostics)


class OddsSourceMappingRecord(_WireModel):
    """Storage shape of an accepted match, upserted by ``key``."""

    schedule_game_id: int
    source_type: str
    source_game_id: str
    home_team_source: str
    away_team_source: str
    confidence_score: int = Field(..., ge=0, le=100)

    @property
    def key(self) -> Tuple[int, str, str]:
        return (self.schedule_game_id, self.source_type, self.source_game_id)


class MatchingStatistics(_WireModel):
    total_mappings: int = 0
    source_breakdown: Dict[str, int] = Field(default_factory=dict)
    average_confidence: int = 0
    high_confidence_count: int = 0


class MatchRequest(_WireModel):
    """Body of POST /sync/match: a pre-fetched odds batch to match."""

    external_games: List[ExternalGame]
    options: Optional[MatchOptions] = None
    season_id: Optional[int] = None
    season_name: Optional[str] = None


class SyncRunResponse(_WireModel):
    summary: MatchingSummary
    rejected_events: int = 0
    persisted_mappings: int = 0
    persisted_odds: int = 0
    persistence_errors: List[str] = Field(default_factory=list)
    elapsed_ms: int = 0
    correlation_id: str = ""
