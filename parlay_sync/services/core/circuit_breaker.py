"""
Circuit breaker for the odds feed.

Uses pybreaker. After DEFAULT_FAIL_MAX consecutive failures the breaker opens
and further fetches fail immediately with CircuitBreakerError until
DEFAULT_RESET_TIMEOUT seconds pass; then one trial request is let through.

Async callers guard the awaited section with the breaker's context manager:

    with odds_api_breaker.calling():
        response = await client.get(url)
"""
from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

from parlay_sync.core import metrics
from parlay_sync.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FAIL_MAX = 5
DEFAULT_RESET_TIMEOUT = 60  # seconds


class _StateLogger(CircuitBreakerListener):
    """Log breaker transitions and mirror them into the prometheus gauge."""

    def state_change(self, cb, old_state, new_state):
        old_name = old_state.name if old_state else "none"
        logger.warning(f"Circuit breaker '{cb.name}' changed state: {old_name} -> {new_state.name}")
        metrics.update_breaker_state(cb.name, new_state.name)


odds_api_breaker = CircuitBreaker(
    fail_max=DEFAULT_FAIL_MAX,
    reset_timeout=DEFAULT_RESET_TIMEOUT,
    name="odds_api",
    listeners=[_StateLogger()],
)


def get_breaker_state(breaker: CircuitBreaker = odds_api_breaker) -> str:
    """Return 'closed', 'open' or 'half-open'."""
    return breaker.current_state


def reset_breaker(breaker: CircuitBreaker = odds_api_breaker) -> None:
    """
    Manually close a breaker.

    Only reset if you know the upstream service has recovered.
    """
    breaker.close()
    logger.warning(f"Circuit breaker '{breaker.name}' manually reset to CLOSED state")


__all__ = [
    "CircuitBreakerError",
    "odds_api_breaker",
    "get_breaker_state",
    "reset_breaker",
]
