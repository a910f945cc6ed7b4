"""Betting line models extracted from odds feed bookmaker markets."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OddsLine(BaseModel):
    """Moneyline, spread and total from a single sportsbook for one game."""

    model_config = ConfigDict(frozen=True)

    sportsbook: str
    last_update: Optional[datetime] = None
    moneyline_home: Optional[int] = None
    moneyline_away: Optional[int] = None
    spread_home: Optional[float] = None
    spread_away: Optional[float] = None
    total_over: Optional[float] = None
    total_under: Optional[float] = None

    def has_any_line(self) -> bool:
        return any(
            value is not None
            for value in (
                self.moneyline_home, self.moneyline_away,
                self.spread_home, self.spread_away,
                self.total_over, self.total_under,
            )
        )
