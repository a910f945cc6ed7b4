"""
Services for the odds sync.

- core: External API clients and shared infrastructure (odds_api_service, circuit_breaker)
- sync: Odds-to-schedule matching, reporting and orchestration
"""
