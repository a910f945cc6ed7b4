"""Game matcher for linking odds-feed games to ESPN schedule games.

The two feeds share no identifiers: the odds feed names teams in free text
and reports its own kickoff time, the schedule keys games by ESPN team codes.
For each external game the matcher:

1. normalizes both team names to ESPN codes (a miss makes the game
   unmatchable; no candidates are scored)
2. drops schedule games whose kickoff is more than ``time_tolerance_hours``
   away
3. scores the rest (see confidence_scorer) and keeps the highest score,
   breaking ties by the lowest schedule game id
4. accepts the winner when its confidence reaches ``confidence_threshold``

Each external game yields at most one match. Schedule games are not claimed
exclusively: two feed entries for the same fixture both match the same
schedule game.

The matcher is pure and synchronous. Fetching the feed, loading the
schedule and storing matches are the orchestrator's job.
"""
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from parlay_sync.core.logging import get_logger
from parlay_sync.schemas.matching import (
    ExternalGame,
    MatchDiagnostics,
    MatchingSummary,
    MatchOptions,
    MatchResult,
    ScheduleGame,
)
from parlay_sync.services.sync.utils.confidence_scorer import (
    HIGH_CONFIDENCE_THRESHOLD,
    classify_match,
    hours_between,
    score_candidate,
    score_to_confidence,
)
from parlay_sync.services.sync.utils.team_normalizer import resolve_team_code

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

OUTCOME_MATCHED = "matched"
OUTCOME_NAMING_FAILURE = "naming_failure"
OUTCOME_NO_CANDIDATE = "no_candidate"
OUTCOME_BELOW_THRESHOLD = "below_threshold"


class MatchInputError(ValueError):
    """Raised when the matcher is handed structurally invalid input."""


class _Evaluation(NamedTuple):
    outcome: str
    best: Optional[MatchResult]


def _coerce_games(values: Any, model: Type[M], label: str) -> List[M]:
    """Validate a whole batch up front so nothing is partially processed."""
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise MatchInputError(f"{label} must be a list, got {type(values).__name__}")

    games: List[M] = []
    for index, value in enumerate(values):
        if isinstance(value, model):
            games.append(value)
        elif isinstance(value, Mapping):
            try:
                games.append(model.model_validate(value))
            except ValidationError as exc:
                raise MatchInputError(f"{label}[{index}] is not a valid {model.__name__}: {exc}") from exc
        else:
            raise MatchInputError(
                f"{label}[{index}] must be a {model.__name__} or mapping, got {type(value).__name__}"
            )
    return games


class GameMatcher:
    """
    Match odds-feed games to schedule games.

    Usage:
        matcher = GameMatcher(MatchOptions(confidence_threshold=85))
        summary = matcher.match(external_games, schedule_games)
    """

    def __init__(self, options: Optional[MatchOptions] = None):
        self.options = options or MatchOptions()

    def match(
        self,
        external_games: Sequence[ExternalGame],
        schedule_games: Sequence[ScheduleGame]
    ) -> MatchingSummary:
        """
        Match a batch of external games against a schedule snapshot.

        Args:
            external_games: Games from the odds feed (models or mappings)
            schedule_games: Current-season schedule snapshot (models or mappings)

        Returns:
            MatchingSummary; every external game lands in exactly one of
            ``matches`` or ``unmatched_external_games``

        Raises:
            MatchInputError: If either argument is not a list of valid games
        """
        externals = _coerce_games(external_games, ExternalGame, "external_games")
        schedule = _coerce_games(schedule_games, ScheduleGame, "schedule_games")

        logger.info(
            f"Starting game matching for {len(externals)} odds games "
            f"against {len(schedule)} schedule games"
        )

        matches: List[MatchResult] = []
        unmatched: List[ExternalGame] = []
        failures = {OUTCOME_NAMING_FAILURE: 0, OUTCOME_NO_CANDIDATE: 0, OUTCOME_BELOW_THRESHOLD: 0}

        for external in externals:
            evaluation = self._evaluate(external, schedule)
            if evaluation.outcome == OUTCOME_MATCHED:
                matches.append(evaluation.best)
            else:
                failures[evaluation.outcome] += 1
                unmatched.append(external)

        high_confidence = sum(1 for m in matches if m.confidence >= HIGH_CONFIDENCE_THRESHOLD)

        summary = MatchingSummary(
            total_external_games=len(externals),
            matched_games=len(matches),
            unmatched_games=len(unmatched),
            high_confidence_matches=high_confidence,
            low_confidence_matches=len(matches) - high_confidence,
            matches=matches,
            unmatched_external_games=unmatched,
            diagnostics=MatchDiagnostics(
                naming_failures=failures[OUTCOME_NAMING_FAILURE],
                no_candidate=failures[OUTCOME_NO_CANDIDATE],
                below_threshold=failures[OUTCOME_BELOW_THRESHOLD],
            ),
        )

        logger.info(
            f"Matching complete: {summary.matched_games} matched, {summary.unmatched_games} unmatched "
            f"({summary.high_confidence_matches} high confidence)"
        )
        return summary

    def find_best_match(
        self,
        external_game: ExternalGame,
        schedule_games: Iterable[ScheduleGame]
    ) -> Optional[MatchResult]:
        """
        Best-scoring schedule game for one external game, ignoring the
        confidence threshold.

        Returns:
            MatchResult for the winning candidate, or None when the team names
            cannot be normalized or no candidate scores above zero
        """
        return self._evaluate(external_game, list(schedule_games)).best

    def _evaluate(self, external: ExternalGame, schedule: List[ScheduleGame]) -> _Evaluation:
        options = self.options

        home_code = resolve_team_code(external.home_team)
        away_code = resolve_team_code(external.away_team)
        if not home_code or not away_code:
            logger.warning(
                f"Could not map team names for odds game {external.id}: "
                f"{external.home_team!r} vs {external.away_team!r}",
                extra={"source": external.source, "odds_game_id": external.id},
            )
            return _Evaluation(OUTCOME_NAMING_FAILURE, None)

        best_game: Optional[ScheduleGame] = None
        best_score = 0
        best_reasons: List[str] = []

        for candidate in schedule:
            hours_apart = hours_between(external.commence_time, candidate.start_time)
            if hours_apart > options.time_tolerance_hours:
                continue

            score, reasons = score_candidate(
                home_code,
                away_code,
                external.commence_time,
                candidate,
                enable_fuzzy=options.enable_fuzzy_matching,
                tz_name=options.timezone,
                hours_apart=hours_apart,
            )
            if score <= 0:
                continue

            if score > best_score or (score == best_score and candidate.id < best_game.id):
                best_game, best_score, best_reasons = candidate, score, reasons

        if best_game is None:
            logger.debug(f"No schedule candidate for odds game {external.id} ({away_code} @ {home_code})")
            return _Evaluation(OUTCOME_NO_CANDIDATE, None)

        confidence = score_to_confidence(best_score)
        result = MatchResult(
            schedule_game=best_game,
            external_game=external,
            confidence=confidence,
            match_type=classify_match(confidence),
            match_reasons=best_reasons,
        )

        if confidence < options.confidence_threshold:
            logger.debug(
                f"Best candidate for odds game {external.id} is game {best_game.id} "
                f"at {confidence}% - below threshold {options.confidence_threshold}"
            )
            return _Evaluation(OUTCOME_BELOW_THRESHOLD, result)

        return _Evaluation(OUTCOME_MATCHED, result)


def match_games(
    external_games: Sequence[ExternalGame],
    schedule_games: Sequence[ScheduleGame],
    options: Optional[MatchOptions] = None
) -> MatchingSummary:
    """Module-level shortcut for ``GameMatcher(options).match(...)``."""
    return GameMatcher(options).match(external_games, schedule_games)
