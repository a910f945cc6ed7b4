"""
HTTP endpoint integration tests for the odds sync API.

These tests verify that FastAPI endpoints:
- Return correct HTTP status codes
- Validate request/response schemas (camelCase on the wire)
- Gate sync triggers behind the sync secret
- Map feed and season errors to 502 / 404

Uses FastAPI TestClient for in-memory HTTP testing.
"""
from datetime import timedelta

from conftest import KICKOFF, make_bookmaker, make_raw_event
from parlay_sync.services.core.odds_api_service import OddsApiError


def _iso(value) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH
# =============================================================================

class TestHealth:

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_correlation_id_is_echoed(self, test_client):
        response = test_client.get("/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"
        assert "X-Elapsed-Ms" in response.headers


# =============================================================================
# SYNC SECRET
# =============================================================================

class TestSyncSecret:

    def test_missing_secret(self, test_client, seeded_schedule):
        response = test_client.post("/api/v1/sync/odds")
        assert response.status_code == 401

    def test_wrong_secret(self, test_client, seeded_schedule):
        response = test_client.post("/api/v1/sync/odds", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 403

    def test_secret_header(self, test_client, seeded_schedule):
        response = test_client.post("/api/v1/sync/odds", headers={"X-Sync-Secret": "test-sync-secret"})
        assert response.status_code == 200

    def test_match_requires_secret(self, test_client, seeded_schedule):
        response = test_client.post("/api/v1/sync/match", json={"externalGames": []})
        assert response.status_code == 401


# =============================================================================
# POST /api/v1/sync/odds
# =============================================================================

class TestTriggerOddsSync:

    def test_sync_run(self, test_client, seeded_schedule, fake_odds_service, sync_headers):
        fake_odds_service.fetch_odds.return_value = [
            make_raw_event(
                "evt-kc-buf", "Kansas City Chiefs", "Buffalo Bills", _iso(KICKOFF),
                bookmakers=[make_bookmaker("draftkings", "Kansas City Chiefs", "Buffalo Bills", -150, 130, -3.5, 47.5)],
            ),
            make_raw_event("evt-unknown", "Springfield Isotopes", "Buffalo Bills", _iso(KICKOFF)),
        ]

        response = test_client.post(
            "/api/v1/sync/odds",
            headers={**sync_headers, "X-Correlation-ID": "sync-run-1"},
        )

        assert response.status_code == 200
        body = response.json()
        summary = body["summary"]
        assert summary["totalExternalGames"] == 2
        assert summary["matchedGames"] == 1
        assert summary["unmatchedGames"] == 1
        assert summary["highConfidenceMatches"] == 1
        match = summary["matches"][0]
        assert match["scheduleGame"]["id"] == 1
        assert match["externalGame"]["id"] == "evt-kc-buf"
        assert match["confidence"] == 100
        assert match["matchType"] == "exact"
        assert summary["unmatchedExternalGames"][0]["id"] == "evt-unknown"
        assert summary["diagnostics"]["namingFailures"] == 1
        assert body["persistedMappings"] == 1
        assert body["persistedOdds"] == 1
        assert body["persistenceErrors"] == []
        assert body["correlationId"] == "sync-run-1"

    def test_feed_failure_returns_502(self, test_client, seeded_schedule, fake_odds_service, sync_headers):
        fake_odds_service.fetch_odds.side_effect = OddsApiError("Odds API returned HTTP 500")

        response = test_client.post("/api/v1/sync/odds", headers=sync_headers)

        assert response.status_code == 502
        assert "Odds feed unavailable" in response.json()["detail"]

    def test_unknown_season_returns_404(self, test_client, seeded_schedule, fake_odds_service, sync_headers):
        response = test_client.post("/api/v1/sync/odds", params={"season_id": 999}, headers=sync_headers)

        assert response.status_code == 404
        fake_odds_service.fetch_odds.assert_not_awaited()

    def test_season_by_name(self, test_client, seeded_schedule, fake_odds_service, sync_headers):
        fake_odds_service.fetch_odds.return_value = [
            make_raw_event("evt-kc-buf", "Kansas City Chiefs", "Buffalo Bills", _iso(KICKOFF)),
        ]

        response = test_client.post(
            "/api/v1/sync/odds", params={"season_name": "2024 NFL Season"}, headers=sync_headers
        )

        assert response.status_code == 200
        assert response.json()["summary"]["matchedGames"] == 0


# =============================================================================
# POST /api/v1/sync/match
# =============================================================================

class TestMatchEndpoint:

    def test_match_batch(self, test_client, seeded_schedule, fake_odds_service, sync_headers):
        payload = {
            "externalGames": [
                {
                    "id": "evt-1",
                    "homeTeam": "Philadelphia Eagles",
                    "awayTeam": "Dallas Cowboys",
                    "commenceTime": _iso(KICKOFF + timedelta(hours=5)),
                },
                {
                    "id": "evt-2",
                    "homeTeam": "Kansas City Chiefs",
                    "awayTeam": "Buffalo Bills",
                    "commenceTime": _iso(KICKOFF),
                },
            ],
            "options": {"confidenceThreshold": 90},
        }

        response = test_client.post("/api/v1/sync/match", json=payload, headers=sync_headers)

        assert response.status_code == 200
        summary = response.json()["summary"]
        # PHI-DAL is 2h off: 50 + 20 + 10 = 80 -> 89, under the requested 90
        assert [m["externalGame"]["id"] for m in summary["matches"]] == ["evt-2"]
        assert summary["diagnostics"]["belowThreshold"] == 1
        fake_odds_service.fetch_odds.assert_not_called()

    def test_malformed_body_returns_422(self, test_client, seeded_schedule, sync_headers):
        payload = {"externalGames": [{"id": "evt-1", "homeTeam": "Kansas City Chiefs"}]}

        response = test_client.post("/api/v1/sync/match", json=payload, headers=sync_headers)

        assert response.status_code == 422

    def test_invalid_options_return_422(self, test_client, seeded_schedule, sync_headers):
        payload = {"externalGames": [], "options": {"timeToleranceHours": 0}}

        response = test_client.post("/api/v1/sync/match", json=payload, headers=sync_headers)

        assert response.status_code == 422

    def test_unknown_season_returns_404(self, test_client, seeded_schedule, sync_headers):
        payload = {"externalGames": [], "seasonName": "1999 NFL Season"}

        response = test_client.post("/api/v1/sync/match", json=payload, headers=sync_headers)

        assert response.status_code == 404


# =============================================================================
# GET /api/v1/sync/statistics and /status
# =============================================================================

class TestReadEndpoints:

    def test_statistics_empty(self, test_client):
        response = test_client.get("/api/v1/sync/statistics")

        assert response.status_code == 200
        assert response.json() == {
            "totalMappings": 0,
            "sourceBreakdown": {},
            "averageConfidence": 0,
            "highConfidenceCount": 0,
        }

    def test_statistics_after_match(self, test_client, seeded_schedule, sync_headers):
        payload = {
            "externalGames": [
                {
                    "id": "evt-1",
                    "homeTeam": "Buffalo Bills",
                    "awayTeam": "Kansas City Chiefs",
                    "commenceTime": _iso(KICKOFF),
                    "source": "espn_bet",
                },
            ],
        }
        test_client.post("/api/v1/sync/match", json=payload, headers=sync_headers)

        response = test_client.get("/api/v1/sync/statistics")

        assert response.json() == {
            "totalMappings": 1,
            "sourceBreakdown": {"espn_bet": 1},
            "averageConfidence": 89,
            "highConfidenceCount": 0,
        }

    def test_status(self, test_client, seeded_schedule, sync_headers):
        test_client.post("/api/v1/sync/odds", headers=sync_headers)

        response = test_client.get("/api/v1/sync/status")

        assert response.status_code == 200
        body = response.json()
        assert body["circuit_breaker"] == "closed"
        assert body["jobs"][0]["source"] == "odds_api"
        assert body["jobs"][0]["status"] == "success"
