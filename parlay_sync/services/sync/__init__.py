"""
Odds Sync Service

Links The Odds API games (free-text team names) to ESPN schedule games
(team codes) so betting lines can be attached to the right fixture.

Key components:
- Utils: Team name normalization and confidence scoring
- Matchers: Correlate odds games with schedule games
- Adapters: Normalize raw odds feed payloads
- Reporter: Store match records and summarize them
- Orchestrator: Coordinate sync runs and monitoring
"""
