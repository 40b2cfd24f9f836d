"""Tests for the daily summary generator."""

import pytest

from crypto_scanner.errors import DataSourceError
from crypto_scanner.models import Trigger

from conftest import coin


class TestSummaryGenerator:

    @pytest.fixture(autouse=True)
    def _baseline(self, manager, market, notifier):
        market.coins = [
            coin("BTC", 100.0),
            coin("ETH", 50.0),
            coin("SOL", 20.0),
            coin("XRP", 10.0),
        ]
        manager.set_baseline(Trigger.SCHEDULED)
        notifier.messages.clear()

    def test_sorted_by_drift_descending(self, summary, market):
        market.coins = [coin("BTC", 90.0), coin("ETH", 60.0), coin("SOL", 20.0), coin("XRP", 11.0)]

        report = summary.run()

        assert [r.symbol for r in report.rows] == ["ETH", "XRP", "SOL", "BTC"]
        assert [r.rank for r in report.rows] == [1, 2, 3, 4]
        assert report.rows[0].drift_pct == pytest.approx(20.0)
        assert report.rows[-1].drift_pct == pytest.approx(-10.0)

    def test_ties_keep_baseline_order(self, summary, market):
        # BTC, SOL and XRP all +10%; they keep baseline order behind ETH.
        market.coins = [coin("XRP", 11.0), coin("SOL", 22.0), coin("ETH", 60.0), coin("BTC", 110.0)]

        report = summary.build()

        assert [r.symbol for r in report.rows] == ["ETH", "BTC", "SOL", "XRP"]

    def test_unmatched_symbols_excluded(self, summary, market):
        market.coins = [coin("BTC", 95.0), coin("XRP", 10.0)]

        report = summary.build()

        assert [r.symbol for r in report.rows] == ["XRP", "BTC"]
        assert report.missing == ["ETH", "SOL"]

    def test_unmatched_symbols_left_out_of_message(self, summary, market, notifier):
        market.coins = [coin("BTC", 95.0)]

        summary.run()

        text = notifier.messages[0]
        assert "1. BTC -5.00%" in text
        assert "ETH" not in text
        assert "SOL" not in text
        assert "XRP" not in text

    def test_undelivered_summary_is_still_returned(self, summary, market, notifier):
        notifier.deliver = False
        market.coins = [coin("BTC", 95.0)]

        report = summary.run()

        assert [r.symbol for r in report.rows] == ["BTC"]
        assert len(notifier.messages) == 1

    def test_sends_exactly_one_message(self, summary, market, notifier):
        market.coins = [coin("BTC", 95.0), coin("ETH", 55.0)]

        summary.run()

        assert len(notifier.messages) == 1
        text = notifier.messages[0]
        assert "1. ETH +10.00%" in text
        assert "2. BTC -5.00%" in text
        assert "$100.00" in text and "$95.00" in text

    def test_build_does_not_notify(self, summary, notifier):
        summary.build()

        assert notifier.messages == []

    def test_never_mutates_state(self, summary, manager, market, store):
        baseline = manager.baseline
        manager.mark_fired("BTC", baseline)
        store.writes.clear()
        market.coins = [coin("BTC", 10.0)]

        summary.run()

        assert manager.baseline is baseline
        assert manager.fired_symbols() == frozenset({"BTC"})
        assert store.writes == []

    def test_data_source_error_propagates_without_message(self, summary, market, notifier):
        market.error = DataSourceError("503")

        with pytest.raises(DataSourceError):
            summary.run()

        assert notifier.messages == []


def test_no_baseline_is_noop(summary, market, notifier):
    assert summary.run() is None
    assert market.calls == []
    assert notifier.messages == []
