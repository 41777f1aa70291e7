"""Engagement Ledger: race-free engagement statistics over posts, comments, scans and likes."""

__version__ = "0.1.0"
