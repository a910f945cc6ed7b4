"""Sync API routes for odds-to-schedule matching.

Provides endpoints for:
- Triggering an odds sync run (fetch, match, store)
- Matching a caller-supplied batch of odds games
- Match statistics over stored records
- Sync job status
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from parlay_sync.core.auth import verify_sync_secret
from parlay_sync.core.config import settings
from parlay_sync.core.database import get_db
from parlay_sync.core.logging import get_logger
from parlay_sync.core.rate_limit import limiter
from parlay_sync.repositories.base import PersistenceError, SeasonNotFoundError
from parlay_sync.schemas.matching import MatchRequest, SyncRunResponse
from parlay_sync.services.core.circuit_breaker import get_breaker_state
from parlay_sync.services.core.odds_api_service import OddsApiError, OddsApiService, get_odds_service
from parlay_sync.services.sync.matchers.game_matcher import MatchInputError
from parlay_sync.services.sync.orchestrator import SyncOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def get_odds_api_service() -> OddsApiService:
    """Dependency to get the odds feed client."""
    return get_odds_service()


def get_orchestrator(
    db: Session = Depends(get_db),
    odds_service: OddsApiService = Depends(get_odds_api_service)
) -> SyncOrchestrator:
    """Dependency to get sync orchestrator instance."""
    return SyncOrchestrator(db, odds_service=odds_service)


def _serialize(result: SyncRunResponse, request: Request) -> Dict:
    if not result.correlation_id:
        correlation_id = getattr(request.state, "correlation_id", "")
        result = result.model_copy(update={"correlation_id": correlation_id})
    return result.model_dump(by_alias=True, mode="json")


@router.post("/odds")
@limiter.limit(settings.SYNC_RATE_LIMIT)
async def trigger_odds_sync(
    request: Request,
    season_id: Optional[int] = Query(None, description="Season to match against"),
    season_name: Optional[str] = Query(None, description="Season name (used when season_id is absent)"),
    caller: str = Depends(verify_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> Dict:
    """
    Fetch current NFL odds, match them to the season's ESPN schedule and store
    the matches and betting lines.

    Returns:
        SyncRunResponse (camelCase keys)
    """
    logger.info(f"Odds sync triggered by {caller}")
    try:
        result = await orchestrator.run_odds_sync(season_id=season_id, season_name=season_name)
    except SeasonNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except OddsApiError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Odds feed unavailable: {e}"
        )
    return _serialize(result, request)


@router.post("/match")
@limiter.limit(settings.SYNC_RATE_LIMIT)
async def match_odds_games(
    request: Request,
    body: MatchRequest,
    caller: str = Depends(verify_sync_secret),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> Dict:
    """
    Match a pre-fetched batch of odds games against the season schedule.

    No feed request is made; accepted matches are stored like a sync run's.
    """
    logger.info(f"Match request for {len(body.external_games)} games from {caller}")
    try:
        result = orchestrator.match_only(
            body.external_games,
            season_id=body.season_id,
            season_name=body.season_name,
            options=body.options,
        )
    except SeasonNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MatchInputError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return _serialize(result, request)


@router.get("/statistics")
async def get_matching_statistics(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> Dict:
    """Totals, per-source counts and confidence summary of stored matches."""
    try:
        statistics = orchestrator.reporter.get_statistics()
    except PersistenceError as e:
        logger.error(f"Failed to compute match statistics: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read match records")
    return statistics.model_dump(by_alias=True, mode="json")


@router.get("/status")
async def get_sync_status(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> Dict:
    """Last run of each sync job and the odds feed circuit breaker state."""
    return {
        "jobs": orchestrator.get_sync_status(),
        "circuit_breaker": get_breaker_state(),
    }
