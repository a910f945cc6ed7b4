"""Unit tests for confidence scoring signals and classification."""
from datetime import datetime, timedelta, timezone

import pytest

from conftest import KICKOFF, make_schedule
from parlay_sync.schemas.matching import MatchType
from parlay_sync.services.sync.utils.confidence_scorer import (
    MAX_POSSIBLE_SCORE,
    classify_match,
    hours_between,
    score_candidate,
    score_to_confidence,
    team_pair_points,
    time_proximity_points,
)


class TestSignals:
    """Tests for the individual scoring signals."""

    def test_max_possible_score(self):
        assert MAX_POSSIBLE_SCORE == 90

    def test_hours_between_is_absolute(self):
        later = KICKOFF + timedelta(minutes=90)
        assert hours_between(KICKOFF, later) == 1.5
        assert hours_between(later, KICKOFF) == 1.5

    def test_hours_between_treats_naive_as_utc(self):
        naive = datetime(2025, 9, 7, 17, 0)
        assert hours_between(naive, KICKOFF) == 0

    def test_exact_team_pair(self):
        game = make_schedule(1, "KC", "BUF", KICKOFF)
        assert team_pair_points("KC", "BUF", game) == (50, ["Exact team match"])

    def test_reversed_team_pair(self):
        game = make_schedule(1, "KC", "BUF", KICKOFF)
        assert team_pair_points("BUF", "KC", game) == (40, ["Reversed team match"])

    def test_partial_team_pair_needs_fuzzy(self):
        game = make_schedule(1, "KC", "BUF", KICKOFF)
        assert team_pair_points("KC", "KC", game, enable_fuzzy=True) == (30, ["Partial team match"])
        assert team_pair_points("KC", "KC", game, enable_fuzzy=False) == (0, [])

    def test_unrelated_team_pair(self):
        game = make_schedule(1, "KC", "BUF", KICKOFF)
        assert team_pair_points("PHI", "DAL", game) == (0, [])

    @pytest.mark.parametrize("hours,points", [
        (0, 30), (1.0, 30), (1.01, 20), (3.0, 20), (3.5, 10), (6.0, 10), (6.01, 0),
    ])
    def test_time_proximity_tiers(self, hours, points):
        assert time_proximity_points(hours).score == points


class TestScoreCandidate:
    """Tests for the combined raw score."""

    def test_perfect_candidate(self):
        game = make_schedule(1, "KC", "BUF", KICKOFF)
        score, reasons = score_candidate("KC", "BUF", KICKOFF, game)
        assert score == 90
        assert reasons == ["Exact team match", "Very close time match (±1 hour)", "Same day"]

    def test_same_day_uses_local_calendar(self):
        # 8:20 PM ET Sunday is 00:20 UTC Monday; 5:00 PM ET is still Sunday
        night_game = make_schedule(3, "SF", "LAR", datetime(2025, 9, 8, 0, 20, tzinfo=timezone.utc))
        odds_time = datetime(2025, 9, 7, 21, 0, tzinfo=timezone.utc)

        score, reasons = score_candidate("SF", "LAR", odds_time, night_game)
        assert "Same day" in reasons
        assert score == 50 + 10 + 10

        score_utc, reasons_utc = score_candidate("SF", "LAR", odds_time, night_game, tz_name="UTC")
        assert "Same day" not in reasons_utc
        assert score_utc == 50 + 10

    def test_team_signal_absent_still_scores_time(self):
        game = make_schedule(1, "KC", "BUF", KICKOFF)
        score, reasons = score_candidate("PHI", "DAL", KICKOFF, game)
        assert score == 40
        assert "Exact team match" not in reasons


class TestConfidence:
    """Tests for score_to_confidence and classify_match."""

    @pytest.mark.parametrize("raw,confidence", [
        (90, 100), (85, 94), (80, 89), (70, 78), (60, 67), (45, 50), (0, 0), (-5, 0), (200, 100),
    ])
    def test_score_to_confidence(self, raw, confidence):
        assert score_to_confidence(raw) == confidence

    @pytest.mark.parametrize("confidence,match_type", [
        (100, MatchType.EXACT),
        (95, MatchType.EXACT),
        (94, MatchType.FUZZY),
        (70, MatchType.FUZZY),
        (69, MatchType.MANUAL_REVIEW),
        (0, MatchType.MANUAL_REVIEW),
    ])
    def test_classify_match(self, confidence, match_type):
        assert classify_match(confidence) == match_type
