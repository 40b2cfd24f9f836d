"""Crypto Scanner - Daily Baseline Drop Alerts

Captures the top-ranked coins once per day as a baseline, alerts once per
coin when it falls past the drop threshold, and posts an end-of-day
performance summary to Telegram.
"""

__version__ = "0.1.0"
