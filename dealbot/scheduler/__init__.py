"""Scheduler module for the daily deal notification run.

Schedule overview:
  - deal_hour:deal_minute daily (default 21:00 UTC) - Fetch the daily deal
    and notify every subscribed chat
"""
