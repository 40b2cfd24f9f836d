"""Alerting module for Crypto Scanner."""

from .telegram_client import TelegramClient

__all__ = ["TelegramClient"]
