"""
Core services shared by the sync layer.

- odds_api_service: The Odds API client
- circuit_breaker: Breakers guarding external APIs
"""
