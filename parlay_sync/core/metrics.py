"""
Prometheus metrics for the odds sync service.

Metrics exposed:
- Odds API success/failure counters and quota gauges
- Match outcome counters and a confidence histogram
- Persistence failure counter (kept apart from matching outcomes so that
  "could not match" and "matched but could not save" stay distinguishable)
- Circuit breaker state gauge
"""
from prometheus_client import Counter, Gauge, Histogram

# External API Metrics
odds_api_requests_success_total = Counter(
    "odds_api_requests_success_total",
    "Total successful Odds API requests"
)

odds_api_requests_failure_total = Counter(
    "odds_api_requests_failure_total",
    "Total failed Odds API requests",
    ["error_type"]
)

odds_api_quota_remaining = Gauge(
    "odds_api_quota_remaining",
    "Remaining Odds API requests for current billing period"
)

odds_api_quota_used = Gauge(
    "odds_api_quota_used",
    "Used Odds API requests in current billing period"
)

# Matching Metrics
game_match_outcomes_total = Counter(
    "game_match_outcomes_total",
    "External games processed by the matcher, by outcome",
    ["outcome"]  # matched, naming_failure, no_candidate, below_threshold
)

game_match_confidence = Histogram(
    "game_match_confidence",
    "Confidence of accepted odds-to-schedule matches",
    buckets=(50, 60, 70, 80, 85, 90, 95, 100)
)

odds_sync_runs_total = Counter(
    "odds_sync_runs_total",
    "Completed odds sync runs",
    ["status"]  # success, partial, failed
)

odds_sync_persistence_failures_total = Counter(
    "odds_sync_persistence_failures_total",
    "Failures writing match records or odds lines",
    ["target"]  # mappings, odds
)

# Circuit Breaker Metrics
circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open, 2=half_open)",
    ["service"]
)

_BREAKER_STATE_VALUES = {"closed": 0, "open": 1, "half-open": 2, "half_open": 2}


def update_odds_api_quota(remaining: int, used: int) -> None:
    odds_api_quota_remaining.set(remaining)
    odds_api_quota_used.set(used)


def record_odds_api_request_success() -> None:
    odds_api_requests_success_total.inc()


def record_odds_api_request_failure(error_type: str = "unknown") -> None:
    odds_api_requests_failure_total.labels(error_type=error_type).inc()


def record_match_outcome(outcome: str, count: int = 1) -> None:
    if count:
        game_match_outcomes_total.labels(outcome=outcome).inc(count)


def observe_match_confidence(confidence: int) -> None:
    game_match_confidence.observe(confidence)


def record_sync_run(status: str) -> None:
    odds_sync_runs_total.labels(status=status).inc()


def record_persistence_failure(target: str) -> None:
    odds_sync_persistence_failures_total.labels(target=target).inc()


def update_breaker_state(service: str, state: str) -> None:
    circuit_breaker_state.labels(service=service).set(_BREAKER_STATE_VALUES.get(state, 0))
