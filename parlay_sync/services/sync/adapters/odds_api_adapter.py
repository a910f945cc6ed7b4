"""Odds API adapter for normalizing The Odds API payloads.

Data transformation:
- Raw The Odds API event -> ExternalGame for matching (team names stay as
  free text; the matcher normalizes them)
- Raw bookmaker markets -> one OddsLine per sportsbook

Events that cannot form a valid ExternalGame are rejected here, logged and
counted, so the matcher only ever sees well-formed input.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from parlay_sync.core.logging import get_logger
from parlay_sync.schemas.matching import ExternalGame
from parlay_sync.schemas.odds import OddsLine
from parlay_sync.utils.timezone import parse_iso_datetime

logger = get_logger(__name__)

MARKET_MONEYLINE = "h2h"
MARKET_SPREADS = "spreads"
MARKET_TOTALS = "totals"


def _safe_datetime(value: Any):
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class OddsApiAdapter:
    """
    Adapter for The Odds API data source.

    Stateless; the orchestrator fetches raw events through OddsApiService and
    hands them here.
    """

    def to_external_games(
        self,
        raw_events: List[Dict[str, Any]],
        source: str = "odds_api"
    ) -> Tuple[List[ExternalGame], int]:
        """
        Validate raw events into ExternalGames.

        Args:
            raw_events: Event dicts from OddsApiService.fetch_odds
            source: Source tag stored with each game

        Returns:
            (games, rejected) where rejected counts events that were dropped
        """
        games: List[ExternalGame] = []
        rejected = 0

        for raw in raw_events:
            if not isinstance(raw, Mapping):
                rejected += 1
                logger.warning(f"Rejected odds event of type {type(raw).__name__}")
                continue
            try:
                games.append(ExternalGame(
                    id=raw.get("id"),
                    home_team=raw.get("home_team"),
                    away_team=raw.get("away_team"),
                    commence_time=raw.get("commence_time"),
                    sport=raw.get("sport_key"),
                    source=source,
                ))
            except ValidationError as e:
                rejected += 1
                logger.warning(
                    f"Rejected malformed odds event {raw.get('id')!r}: {e.error_count()} validation errors",
                    extra={"odds_event_id": raw.get("id"), "errors": e.errors(include_url=False)},
                )

        if rejected:
            logger.info(f"Adapted {len(games)} odds events, rejected {rejected}")
        return games, rejected

    def extract_lines(self, raw_event: Mapping[str, Any], home_team_name: Optional[str] = None) -> List[OddsLine]:
        """
        Collect moneyline, spread and total from each bookmaker.

        Outcomes named after the home team map to the home side, any other
        team outcome to the away side; totals use the Over/Under outcomes.
        Bookmakers without any usable line are skipped.
        """
        home_team = home_team_name or raw_event.get("home_team")
        lines: List[OddsLine] = []

        for bookmaker in raw_event.get("bookmakers") or []:
            sportsbook = bookmaker.get("key") or bookmaker.get("title")
            if not sportsbook:
                continue

            values: Dict[str, Any] = {}
            for market in bookmaker.get("markets") or []:
                market_key = market.get("key")
                for outcome in market.get("outcomes") or []:
                    name = outcome.get("name")
                    is_home = name == home_team

                    if market_key == MARKET_MONEYLINE:
                        values["moneyline_home" if is_home else "moneyline_away"] = _as_int(outcome.get("price"))
                    elif market_key == MARKET_SPREADS:
                        values["spread_home" if is_home else "spread_away"] = _as_float(outcome.get("point"))
                    elif market_key == MARKET_TOTALS:
                        if name == "Over":
                            values["total_over"] = _as_float(outcome.get("point"))
                        elif name == "Under":
                            values["total_under"] = _as_float(outcome.get("point"))

            line = OddsLine(
                sportsbook=sportsbook,
                last_update=_safe_datetime(bookmaker.get("last_update")),
                **values,
            )
            if line.has_any_line():
                lines.append(line)

        return lines
