"""
API routes.

- sync: Odds sync triggers, match statistics and sync status
"""
