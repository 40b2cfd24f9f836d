"""Drift/Alert Engine - compares live prices against the active baseline."""

import logging
from typing import Dict, Iterable, List, Optional

from .alerting.messages import format_drop_alert
from .baseline import BaselineManager
from .clock import Clock
from .config import settings
from .errors import PersistenceError
from .models import DriftAlert, MarketCoin

logger = logging.getLogger(__name__)


def compute_drift(baseline_price: float, live_price: float) -> float:
    """Percentage change of the live price relative to the baseline price."""
    if baseline_price <= 0:
        raise ValueError(f"baseline price must be positive, got {baseline_price}")
    return (live_price - baseline_price) / baseline_price * 100


def index_by_symbol(coins: Iterable[MarketCoin]) -> Dict[str, MarketCoin]:
    """Map symbol -> coin, keeping the best-ranked entry when a symbol repeats."""
    indexed: Dict[str, MarketCoin] = {}
    for coin in coins:
        indexed.setdefault(coin.symbol, coin)
    return indexed


class AlertEngine:
    """Fires one drop alert per coin per baseline day."""

    def __init__(
        self,
        manager: BaselineManager,
        market_data,
        notifier,
        clock: Clock,
        drop_threshold_pct: Optional[float] = None,
        fetch_limit: Optional[int] = None,
    ):
        self.manager = manager
        self.market_data = market_data
        self.notifier = notifier
        self.clock = clock
        self.drop_threshold_pct = (
            drop_threshold_pct if drop_threshold_pct is not None else settings.drop_threshold_pct
        )
        self.fetch_limit = fetch_limit or settings.live_fetch_limit

    def check(self) -> List[DriftAlert]:
        """Compare the live market with the baseline and alert on new breaches.

        Returns the alerts sent on this call. A DataSourceError propagates
        before anything is recorded.
        """
        baseline = self.manager.baseline
        if baseline is None:
            logger.debug("No baseline set, skipping check")
            return []

        today = self.clock.today()
        if today != baseline.date:
            logger.info(f"Baseline is from {baseline.date} (today {today}), checks paused until the next baseline")
            return []

        live = index_by_symbol(self.market_data.fetch_ranked(self.fetch_limit))

        alerts: List[DriftAlert] = []
        for coin in baseline.coins:
            live_coin = live.get(coin.symbol)
            if live_coin is None:
                logger.debug(f"{coin.symbol}: not in live listing, skipping")
                continue

            drift = compute_drift(coin.price, live_coin.price)
            if drift > self.drop_threshold_pct:
                continue

            try:
                newly_fired = self.manager.mark_fired(coin.symbol, baseline)
            except PersistenceError as e:
                # Marked in memory already; send now so the alert is not lost.
                logger.critical(f"{coin.symbol}: failed to persist fired alert: {e}")
                newly_fired = True

            if not newly_fired:
                logger.debug(f"{coin.symbol}: drift {drift:.2f}% already alerted today")
                continue

            alert = DriftAlert(
                symbol=coin.symbol,
                drift_pct=drift,
                baseline_price=coin.price,
                live_price=live_coin.price,
                at=self.clock.now(),
            )
            logger.warning(
                f"DROP ALERT: {coin.symbol} {drift:.2f}% "
                f"(baseline ${coin.price}, now ${live_coin.price})"
            )
            if not self.notifier.send(format_drop_alert(alert, self.drop_threshold_pct)):
                logger.warning(f"{coin.symbol}: drop alert not delivered, it stays recorded as fired")
            alerts.append(alert)

        logger.info(f"Checked {len(baseline.coins)} baseline coins, {len(alerts)} new alert(s)")
        return alerts
