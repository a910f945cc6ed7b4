"""
The Odds API service for fetching NFL game odds.

One request per sync run: GET /sports/{sport}/odds with all requested markets
(moneyline, spreads, totals) in American format.

Quota Tracking: Response headers x-requests-remaining, x-requests-used
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from parlay_sync.core import metrics
from parlay_sync.core.config import settings
from parlay_sync.core.logging import get_logger
from parlay_sync.services.core.circuit_breaker import CircuitBreakerError, odds_api_breaker

logger = get_logger(__name__)

QUOTA_WARNING_REMAINING = 100
QUOTA_CRITICAL_REMAINING = 20


class OddsApiError(RuntimeError):
    """The odds feed could not be fetched (HTTP error, transport error or open breaker)."""


def _is_retryable(exc: BaseException) -> bool:
    """Transport errors and 5xx responses are retried; 4xx and breaker trips are not."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class OddsApiService:
    """
    The Odds API client.

    Quota Tracking: Captures x-requests-remaining and x-requests-used headers
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.the-odds-api.com/v4",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize The Odds API service.

        Args:
            api_key: The Odds API key
            base_url: API root, without trailing slash
            timeout: Per-request timeout in seconds
            client: Pre-built client (tests pass one backed by httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

        self._requests_remaining: Optional[int] = None
        self._requests_used: Optional[int] = None
        self._quota_last_updated: Optional[datetime] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json", "X-Application": "parlay-sync"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _update_quota_from_headers(self, response: httpx.Response):
        """
        Update quota tracking from response headers.

        Args:
            response: HTTP response object
        """
        try:
            remaining = response.headers.get("x-requests-remaining")
            used = response.headers.get("x-requests-used")

            if remaining:
                self._requests_remaining = int(float(remaining))
            if used:
                self._requests_used = int(float(used))
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to parse quota headers: {e}")
            return

        self._quota_last_updated = datetime.now()
        logger.info(
            f"The Odds API Quota: {self._requests_remaining} remaining, "
            f"{self._requests_used} used"
        )

        if self._requests_remaining is not None:
            if self._requests_remaining < QUOTA_CRITICAL_REMAINING:
                logger.error(
                    f"CRITICAL: Odds API quota critically low! "
                    f"Only {self._requests_remaining} requests remaining."
                )
            elif self._requests_remaining < QUOTA_WARNING_REMAINING:
                logger.warning(f"Odds API quota running low: {self._requests_remaining} requests remaining.")

        if self._requests_remaining is not None and self._requests_used is not None:
            metrics.update_odds_api_quota(remaining=self._requests_remaining, used=self._requests_used)

    def get_quota_status(self) -> Dict[str, Any]:
        return {
            "requests_remaining": self._requests_remaining,
            "requests_used": self._requests_used,
            "last_updated": self._quota_last_updated.isoformat() if self._quota_last_updated else None,
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async def _get(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        """GET through the circuit breaker; raises on non-2xx."""
        client = await self._get_client()
        with odds_api_breaker.calling():
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
        return response

    async def fetch_odds(
        self,
        sport_key: str = "americanfootball_nfl",
        markets: Sequence[str] = ("h2h", "spreads", "totals"),
        regions: str = "us"
    ) -> List[Dict[str, Any]]:
        """
        Fetch upcoming events with bookmaker odds.

        Args:
            sport_key: The Odds API sport key
            markets: Markets to request
            regions: Bookmaker regions

        Returns:
            Raw event dicts as returned by the API

        Raises:
            OddsApiError: If the key is missing, the breaker is open, the
                request fails after retries, or the payload is not a list
        """
        if not self.api_key:
            raise OddsApiError("THE_ODDS_API_KEY is not configured")

        params = {
            "apiKey": self.api_key,
            "regions": regions,
            "markets": ",".join(markets),
            "oddsFormat": "american",
            "dateFormat": "iso",
        }

        try:
            response = await self._get(f"/sports/{sport_key}/odds", params)
        except CircuitBreakerError as e:
            metrics.record_odds_api_request_failure("circuit_open")
            logger.error(f"Odds API circuit breaker is open: {e}")
            raise OddsApiError("Odds API unavailable (circuit breaker open)") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            metrics.record_odds_api_request_failure(f"http_{status}")
            logger.error(f"Odds API returned HTTP {status} for {sport_key}")
            raise OddsApiError(f"Odds API returned HTTP {status}") from e
        except httpx.HTTPError as e:
            metrics.record_odds_api_request_failure("transport")
            logger.error(f"Odds API request failed: {type(e).__name__}: {e}")
            raise OddsApiError(f"Odds API request failed: {type(e).__name__}") from e

        self._update_quota_from_headers(response)

        try:
            payload = response.json()
        except ValueError as e:
            metrics.record_odds_api_request_failure("invalid_json")
            raise OddsApiError("Odds API returned invalid JSON") from e

        if not isinstance(payload, list):
            metrics.record_odds_api_request_failure("unexpected_payload")
            raise OddsApiError(f"Odds API returned {type(payload).__name__}, expected a list of events")

        metrics.record_odds_api_request_success()
        logger.info(f"Fetched {len(payload)} events from The Odds API for {sport_key}")
        return payload


# Singleton instance
_odds_service: Optional[OddsApiService] = None


def get_odds_service() -> OddsApiService:
    """Get or create the OddsApiService singleton from settings."""
    global _odds_service
    if _odds_service is None:
        _odds_service = OddsApiService(
            api_key=settings.THE_ODDS_API_KEY,
            base_url=settings.ODDS_API_BASE_URL,
            timeout=settings.ODDS_API_TIMEOUT,
        )
    return _odds_service


async def close_odds_service():
    global _odds_service
    if _odds_service is not None:
        await _odds_service.close()
        _odds_service = None
