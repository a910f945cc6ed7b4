"""API adapters for normalizing data from external sources.

Available adapters:
- odds_api_adapter: TheOddsApi.com adapter
"""
from parlay_sync.services.sync.adapters.odds_api_adapter import OddsApiAdapter

__all__ = ["OddsApiAdapter"]
