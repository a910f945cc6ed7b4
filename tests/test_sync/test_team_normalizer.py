"""Unit tests for team name normalization.

Covers the three resolution tiers (canonical, variation, substring), the
not-found behaviour and the reverse display-name lookup.
"""
import logging

import pytest

from parlay_sync.services.sync.utils.team_normalizer import (
    CANONICAL_TEAMS,
    RESOLUTION_TIERS,
    TEAM_NAME_VARIATIONS,
    resolve_team_code,
    resolve_team_code_with_tier,
    team_display_name,
)


class TestCanonicalTable:
    """Tests for the canonical name table."""

    def test_has_all_32_teams(self):
        assert len(CANONICAL_TEAMS) == 32
        assert len(set(CANONICAL_TEAMS.values())) == 32

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            CANONICAL_TEAMS["Springfield Isotopes"] = "SPR"
        with pytest.raises(TypeError):
            TEAM_NAME_VARIATIONS["springfield"] = "SPR"

    def test_variation_keys_are_lower_case(self):
        for key in TEAM_NAME_VARIATIONS:
            assert key == key.lower()

    def test_tier_order(self):
        assert [name for name, _ in RESOLUTION_TIERS] == ["canonical", "variation", "substring"]


class TestResolveTeamCode:
    """Tests for resolve_team_code."""

    # Tier 1: canonical
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("name,code", [
        ("Kansas City Chiefs", "KC"),
        ("Buffalo Bills", "BUF"),
        ("Washington Commanders", "WSH"),
        ("San Francisco 49ers", "SF"),
        ("Los Angeles Rams", "LAR"),
    ])
    def test_canonical_names(self, name, code):
        assert resolve_team_code_with_tier(name) == (code, "canonical")

    def test_canonical_trims_whitespace(self):
        assert resolve_team_code_with_tier("  Kansas City Chiefs ") == ("KC", "canonical")

    # Tier 2: variations
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("name,code", [
        ("Oakland Raiders", "LV"),
        ("LA Raiders", "LV"),
        ("LV Raiders", "LV"),
        ("San Diego Chargers", "LAC"),
        ("LA Chargers", "LAC"),
        ("St. Louis Rams", "LAR"),
        ("LA Rams", "LAR"),
        ("Washington Football Team", "WSH"),
        ("Washington Redskins", "WSH"),
        ("NY Giants", "NYG"),
        ("NY Jets", "NYJ"),
    ])
    def test_historical_and_shorthand_names(self, name, code):
        assert resolve_team_code_with_tier(name) == (code, "variation")

    def test_variation_is_case_and_space_insensitive(self):
        assert resolve_team_code_with_tier("OAKLAND   raiders") == ("LV", "variation")
        assert resolve_team_code_with_tier("NEW YORK GIANTS") == ("NYG", "variation")

    def test_lower_case_canonical_name_falls_through_to_substring(self):
        assert resolve_team_code_with_tier("kansas city chiefs") == ("KC", "substring")

    # Tier 3: substring
    # ─────────────────────────────────────────────────────────────

    def test_substring_of_canonical_name(self):
        assert resolve_team_code_with_tier("Chiefs") == ("KC", "substring")
        assert resolve_team_code_with_tier("green bay") == ("GB", "substring")

    def test_canonical_name_inside_longer_text(self):
        assert resolve_team_code_with_tier("The Philadelphia Eagles (NFL)") == ("PHI", "substring")

    def test_substring_uses_first_canonical_hit(self):
        # "New York" is contained in both New York teams; the Jets come first
        assert resolve_team_code("New York") == "NYJ"

    # Not found
    # ─────────────────────────────────────────────────────────────

    @pytest.mark.parametrize("name", ["Springfield Isotopes", "", "   ", None, 42])
    def test_unknown_or_invalid_input_returns_none(self, name):
        assert resolve_team_code(name) is None

    def test_unknown_name_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert resolve_team_code("Springfield Isotopes") is None
        assert "Springfield Isotopes" in caplog.text

    def test_every_canonical_name_round_trips(self):
        for name, code in CANONICAL_TEAMS.items():
            assert resolve_team_code(name) == code


class TestTeamDisplayName:
    """Tests for the code -> full name lookup."""

    def test_known_code(self):
        assert team_display_name("KC") == "Kansas City Chiefs"

    def test_lower_case_code(self):
        assert team_display_name("lv") == "Las Vegas Raiders"

    def test_unknown_code(self):
        assert team_display_name("XYZ") is None
        assert team_display_name("") is None
