"""Confidence scoring for odds-feed to schedule game matches.

A candidate's raw score is the sum of three independent signals:

- team pair (highest applicable only): exact same-side 50, reversed 40,
  partial (each code on some side of the candidate, fuzzy mode only) 30
- kickoff proximity (highest applicable only): <=1h 30, <=3h 20, <=6h 10
- same local calendar day: 10

Confidence is the raw score as a percentage of the best attainable score,
capped at 100.
"""
import math
from datetime import datetime
from typing import List, NamedTuple, Optional

from parlay_sync.schemas.matching import MatchType, ScheduleGame
from parlay_sync.utils.timezone import DEFAULT_LOCAL_TIMEZONE, ensure_utc, local_calendar_date

EXACT_TEAM_POINTS = 50
REVERSED_TEAM_POINTS = 40
PARTIAL_TEAM_POINTS = 30

# (max hours apart, points, reason), checked in order
TIME_PROXIMITY_TIERS = (
    (1.0, 30, "Very close time match (±1 hour)"),
    (3.0, 20, "Close time match (±3 hours)"),
    (6.0, 10, "Reasonable time match (±6 hours)"),
)

SAME_DAY_POINTS = 10

MAX_POSSIBLE_SCORE = (
    max(EXACT_TEAM_POINTS, REVERSED_TEAM_POINTS, PARTIAL_TEAM_POINTS)
    + max(points for _, points, _ in TIME_PROXIMITY_TIERS)
    + SAME_DAY_POINTS
)

EXACT_MATCH_MIN_CONFIDENCE = 95
FUZZY_MATCH_MIN_CONFIDENCE = 70
HIGH_CONFIDENCE_THRESHOLD = 95


class CandidateScore(NamedTuple):
    score: int
    reasons: List[str]


def hours_between(first: datetime, second: datetime) -> float:
    """Absolute difference between two instants, in hours."""
    return abs((ensure_utc(first) - ensure_utc(second)).total_seconds()) / 3600.0


def team_pair_points(
    home_code: str,
    away_code: str,
    schedule_game: ScheduleGame,
    enable_fuzzy: bool = True
) -> CandidateScore:
    """Score how the external team pair lines up with the candidate's teams."""
    home = schedule_game.home_team_code
    away = schedule_game.away_team_code

    if home == home_code and away == away_code:
        return CandidateScore(EXACT_TEAM_POINTS, ["Exact team match"])

    if home == away_code and away == home_code:
        return CandidateScore(REVERSED_TEAM_POINTS, ["Reversed team match"])

    if enable_fuzzy:
        sides = {home, away}
        if home_code in sides and away_code in sides:
            return CandidateScore(PARTIAL_TEAM_POINTS, ["Partial team match"])

    return CandidateScore(0, [])


def time_proximity_points(hours_apart: float) -> CandidateScore:
    for max_hours, points, reason in TIME_PROXIMITY_TIERS:
        if hours_apart <= max_hours:
            return CandidateScore(points, [reason])
    return CandidateScore(0, [])


def score_candidate(
    home_code: str,
    away_code: str,
    external_time: datetime,
    schedule_game: ScheduleGame,
    enable_fuzzy: bool = True,
    tz_name: str = DEFAULT_LOCAL_TIMEZONE,
    hours_apart: Optional[float] = None
) -> CandidateScore:
    """
    Compute the raw score of one schedule game against one external game.

    Args:
        home_code: Normalized home team code of the external game
        away_code: Normalized away team code of the external game
        external_time: Kickoff time reported by the odds feed
        schedule_game: Candidate from the schedule snapshot
        enable_fuzzy: Allow the partial team signal
        tz_name: Zone whose calendar decides "same day"
        hours_apart: Precomputed kickoff difference, if the caller has it

    Returns:
        CandidateScore with the summed points and the reasons that earned them
    """
    if hours_apart is None:
        hours_apart = hours_between(external_time, schedule_game.start_time)

    reasons: List[str] = []
    score = 0

    for signal in (
        team_pair_points(home_code, away_code, schedule_game, enable_fuzzy),
        time_proximity_points(hours_apart),
    ):
        score += signal.score
        reasons.extend(signal.reasons)

    if local_calendar_date(external_time, tz_name) == local_calendar_date(schedule_game.start_time, tz_name):
        score += SAME_DAY_POINTS
        reasons.append("Same day")

    return CandidateScore(score, reasons)


def score_to_confidence(raw_score: int) -> int:
    """
    Convert a raw score into an integer confidence in [0, 100].

    Halves round up, so 80/90 -> 89 and 85/90 -> 94.
    """
    if raw_score <= 0:
        return 0
    percentage = raw_score / MAX_POSSIBLE_SCORE * 100
    return min(100, int(math.floor(percentage + 0.5)))


def classify_match(confidence: int) -> MatchType:
    """Bucket a confidence for downstream triage."""
    if confidence >= EXACT_MATCH_MIN_CONFIDENCE:
        return MatchType.EXACT
    if confidence >= FUZZY_MATCH_MIN_CONFIDENCE:
        return MatchType.FUZZY
    return MatchType.MANUAL_REVIEW
