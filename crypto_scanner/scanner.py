"""Crypto Scanner - service wiring and lifecycle."""

import logging
from typing import Any, Dict, Optional

from .alerting.telegram_client import TelegramClient
from .baseline import BaselineManager
from .clock import Clock
from .commands import CommandRouter
from .drift import AlertEngine
from .errors import DataSourceError, PersistenceError
from .market_data import CoinMarketCapClient
from .models import Trigger
from .scheduler import Scheduler
from .storage import StateStore, build_store
from .summary import SummaryGenerator

logger = logging.getLogger(__name__)


class CryptoScanner:
    """Builds the components and runs them until stopped.

    Every collaborator can be injected; anything left out is built from
    settings.
    """

    def __init__(
        self,
        market_data=None,
        store: Optional[StateStore] = None,
        telegram: Optional[TelegramClient] = None,
        clock: Optional[Clock] = None,
    ):
        self.clock = clock or Clock()
        self.market_data = market_data or CoinMarketCapClient()
        self.store = store or build_store()
        self.telegram = telegram or TelegramClient()

        self.manager = BaselineManager(self.market_data, self.store, self.telegram, self.clock)
        self.engine = AlertEngine(self.manager, self.market_data, self.telegram, self.clock)
        self.summary = SummaryGenerator(self.manager, self.market_data, self.telegram, self.clock)
        self.commands = CommandRouter(self.manager, self.summary)
        self.scheduler = Scheduler(self.manager, self.engine, self.summary, self.clock, self.telegram)
        self._started = False

    def bootstrap(self):
        """Restore persisted state, or capture a first baseline if there is none."""
        if self.manager.restore() is not None:
            return
        try:
            self.manager.set_baseline(Trigger.STARTUP)
        except DataSourceError as e:
            logger.error(f"Could not set initial baseline, will retry at the next baseline time: {e}")
        except PersistenceError as e:
            logger.critical(f"Initial baseline set but not persisted: {e}")

    def start(self):
        """Bootstrap state, start both cadences and block until stop()."""
        logger.info("Starting Crypto Scanner")
        self.bootstrap()
        self.scheduler.start()
        self._started = True
        self.scheduler.wait()

    def stop(self):
        """Stop the scheduler. Safe to call more than once."""
        if not self._started:
            return
        logger.info("Stopping Crypto Scanner...")
        self._started = False
        self.scheduler.stop()
        close = getattr(self.store, "close", None)
        if close:
            close()
        logger.info("Crypto Scanner shutdown complete")

    def health(self) -> Dict[str, Any]:
        baseline = self.manager.baseline
        last_check = self.scheduler.last_check_at
        return {
            "status": "ok",
            "baselineDate": baseline.date.isoformat() if baseline else None,
            "lastCheck": last_check.isoformat() if last_check else "not yet run",
            "lastCheckOk": self.scheduler.last_check_ok,
        }

    def handle_update(self, update: Dict[str, Any]) -> Optional[str]:
        """Answer a Telegram update carrying a text command."""
        message = update.get("message") or {}
        text = message.get("text")
        if not text:
            return None
        try:
            chat_id = str(message["chat"]["id"])
            user_id = str(message["from"]["id"])
        except (KeyError, TypeError):
            logger.warning("Ignoring update without chat/sender ids")
            return None

        reply = self.commands.handle(user_id, text)
        self.telegram.reply(chat_id, reply)
        return reply
