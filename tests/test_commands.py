"""Tests for the chat command router and its admin gate."""

import pytest

from crypto_scanner.commands import CommandRouter
from crypto_scanner.errors import AuthorizationError, DataSourceError
from crypto_scanner.models import Trigger

from conftest import coin

ADMIN = "1001"
OTHER = "2002"


@pytest.fixture
def router(manager, summary):
    return CommandRouter(manager, summary, admin_id=ADMIN)


class TestAdminGate:

    def test_admin_passes(self, router):
        router.require_admin(ADMIN)

    def test_other_user_rejected(self, router):
        with pytest.raises(AuthorizationError):
            router.require_admin(OTHER)

    def test_no_admin_configured_rejects_everyone(self, manager, summary):
        router = CommandRouter(manager, summary, admin_id="")

        with pytest.raises(AuthorizationError):
            router.require_admin("")

    def test_non_admin_setbaseline_changes_nothing(self, router, manager, market):
        reply = router.handle(OTHER, "/setbaseline")

        assert "Admin only" in reply
        assert manager.baseline is None
        assert market.calls == []

    def test_non_admin_clearhistory_changes_nothing(self, router, manager):
        baseline = manager.set_baseline(Trigger.STARTUP)
        manager.mark_fired("BTC", baseline)

        reply = router.handle(OTHER, "/clearhistory")

        assert "Admin only" in reply
        assert manager.fired_symbols() == frozenset({"BTC"})


class TestCommands:

    def test_setbaseline_by_admin(self, router, manager, notifier):
        reply = router.handle(ADMIN, "/setbaseline")

        assert manager.baseline is not None
        assert reply.startswith("✅ Baseline reset")
        # The full announcement goes to the channel once, not echoed in the reply.
        assert len(notifier.messages) == 1
        assert "manually" in notifier.messages[0]
        assert "BTC" not in reply

    def test_setbaseline_with_bot_suffix(self, router, manager):
        router.handle(ADMIN, "/setbaseline@CryptoScannerBot")

        assert manager.baseline is not None

    def test_setbaseline_reports_market_outage(self, router, manager, market):
        market.error = DataSourceError("down")

        reply = router.handle(ADMIN, "/setbaseline")

        assert "unavailable" in reply
        assert manager.baseline is None

    def test_clearhistory_by_admin(self, router, manager):
        baseline = manager.set_baseline(Trigger.STARTUP)
        manager.mark_fired("BTC", baseline)

        reply = router.handle(ADMIN, "/clearhistory")

        assert "cleared" in reply
        assert manager.fired_symbols() == frozenset()
        assert manager.baseline is baseline

    def test_clearhistory_without_baseline(self, router):
        assert router.handle(ADMIN, "/clearhistory") == "No baseline set."

    def test_status_without_baseline(self, router):
        assert router.handle(OTHER, "/status") == "No baseline set."

    def test_status_lists_fired(self, router, manager):
        baseline = manager.set_baseline(Trigger.STARTUP)
        manager.mark_fired("ETH", baseline)

        reply = router.handle(OTHER, "/status")

        assert "2026-10-19" in reply
        assert "Alerts fired: ETH" in reply

    def test_baseline_lists_coins(self, router, manager):
        manager.set_baseline(Trigger.STARTUP)

        reply = router.handle(OTHER, "/baseline")

        assert "1. BTC" in reply
        assert "10. TRX" in reply

    def test_summary_does_not_broadcast(self, router, manager, market, notifier):
        manager.set_baseline(Trigger.STARTUP)
        notifier.messages.clear()
        market.coins = [coin("BTC", 110.0)]

        reply = router.handle(OTHER, "/summary")

        assert "1. BTC +10.00%" in reply
        assert notifier.messages == []

    def test_whoami(self, router):
        reply = router.handle(OTHER, "/whoami")

        assert OTHER in reply
        assert ADMIN in reply

    def test_setadmin_hands_over(self, router):
        assert "Usage" in router.handle(ADMIN, "/setadmin")

        router.handle(ADMIN, f"/setadmin {OTHER}")

        router.require_admin(OTHER)
        with pytest.raises(AuthorizationError):
            router.require_admin(ADMIN)

    def test_unknown_text(self, router):
        assert "Bot is running" in router.handle(OTHER, "hello there")

    def test_help(self, router):
        assert "/setbaseline" in router.handle(OTHER, "/help")
