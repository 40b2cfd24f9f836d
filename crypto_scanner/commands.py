"""Chat commands routed into the scanner.

Every mutating command goes through `require_admin`, which compares the
caller's Telegram user id with the configured admin id.
"""

import logging
from html import escape
from typing import Optional

from .alerting.messages import format_summary, format_timestamp
from .baseline import BaselineManager
from .config import settings
from .errors import AuthorizationError, DataSourceError, PersistenceError
from .models import Trigger
from .summary import SummaryGenerator

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "🤖 <b>Crypto Scanner</b>\n"
    "/status - baseline date and alerts fired today\n"
    "/baseline - current baseline coins\n"
    "/summary - performance since the baseline\n"
    "/whoami - your Telegram id\n"
    "/setbaseline - reset the baseline now (admin)\n"
    "/clearhistory - allow today's alerts to fire again (admin)\n"
    "/setadmin &lt;id&gt; - hand admin to another user (admin)"
)


class CommandRouter:
    """Turns a command message into a call on the scanner and a reply text."""

    def __init__(self, manager: BaselineManager, summary: SummaryGenerator, admin_id: Optional[str] = None):
        self.manager = manager
        self.summary = summary
        self.admin_id = admin_id if admin_id is not None else settings.admin_id

    def require_admin(self, user_id: str):
        if not self.admin_id or str(user_id) != str(self.admin_id):
            raise AuthorizationError(f"user {user_id} is not the admin")

    def handle(self, user_id: str, text: str) -> str:
        """Run one command and return the reply."""
        parts = text.strip().split()
        if not parts:
            return HELP_TEXT
        # "/cmd@BotName" in group chats
        command = parts[0].split("@", 1)[0].lower()
        args = parts[1:]

        handler = {
            "/start": self._help,
            "/help": self._help,
            "/whoami": self._whoami,
            "/status": self._status,
            "/baseline": self._baseline,
            "/summary": self._summary,
            "/setbaseline": self._set_baseline,
            "/clearhistory": self._clear_history,
            "/setadmin": self._set_admin,
        }.get(command)

        if handler is None:
            return "🤖 Bot is running. Use /help to see commands."

        try:
            return handler(str(user_id), args)
        except AuthorizationError as e:
            logger.warning(f"Rejected {command}: {e}")
            return "❌ Not authorized. Admin only."
        except DataSourceError as e:
            logger.warning(f"{command} failed, market data unavailable: {e}")
            return "⚠️ Market data unavailable, try again shortly."
        except PersistenceError as e:
            logger.critical(f"{command}: state not persisted: {e}")
            return "⚠️ Done in memory, but saving state failed. Check the logs."

    def _help(self, user_id: str, args) -> str:
        return HELP_TEXT

    def _whoami(self, user_id: str, args) -> str:
        return f"👤 Your Telegram ID: {escape(user_id)}\nCurrent Admin ID: {escape(self.admin_id or 'not set')}"

    def _status(self, user_id: str, args) -> str:
        baseline = self.manager.baseline
        if baseline is None:
            return "No baseline set."
        fired = sorted(self.manager.fired_symbols())
        return (
            f"📌 Baseline {baseline.date.isoformat()} (set {format_timestamp(baseline.set_at)})\n"
            f"Coins: {len(baseline.coins)}\n"
            f"Alerts fired: {escape(', '.join(fired)) if fired else 'none'}"
        )

    def _baseline(self, user_id: str, args) -> str:
        baseline = self.manager.baseline
        if baseline is None:
            return "No baseline set."
        lines = [f"📌 <b>Baseline {baseline.date.isoformat()}</b>"]
        for i, coin in enumerate(baseline.coins, start=1):
            lines.append(f"{i}. {escape(coin.symbol)} ${coin.price:,.4f}")
        return "\n".join(lines)

    def _summary(self, user_id: str, args) -> str:
        report = self.summary.build()
        if report is None:
            return "No baseline set."
        return format_summary(report)

    def _set_baseline(self, user_id: str, args) -> str:
        self.require_admin(user_id)
        baseline = self.manager.set_baseline(Trigger.MANUAL)
        logger.info(f"Baseline reset by admin {user_id}")
        # The full announcement already went out through the notifier.
        return f"✅ Baseline reset ({len(baseline.coins)} coins, {baseline.date.isoformat()})."

    def _clear_history(self, user_id: str, args) -> str:
        self.require_admin(user_id)
        state = self.manager.clear_history()
        if state is None:
            return "No baseline set."
        return f"🧹 Alert history cleared for baseline {state.baseline_date.isoformat()}."

    def _set_admin(self, user_id: str, args) -> str:
        self.require_admin(user_id)
        if len(args) != 1:
            return "⚠️ Usage: /setadmin &lt;telegram_id&gt;"
        self.admin_id = args[0]
        logger.info(f"Admin changed to {self.admin_id}")
        return f"✅ Admin updated to {escape(self.admin_id)} (until restart)"
