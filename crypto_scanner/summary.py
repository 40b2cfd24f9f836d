"""Daily Summary Generator - end-of-day performance of the baseline basket."""

import logging
from typing import Optional

from .alerting.messages import format_summary
from .baseline import BaselineManager
from .clock import Clock
from .config import settings
from .drift import compute_drift, index_by_symbol
from .models import DailySummary, SummaryRow

logger = logging.getLogger(__name__)


class SummaryGenerator:
    """Ranks baseline coins by drift. Read-only with respect to baseline state."""

    def __init__(
        self,
        manager: BaselineManager,
        market_data,
        notifier,
        clock: Clock,
        fetch_limit: Optional[int] = None,
    ):
        self.manager = manager
        self.market_data = market_data
        self.notifier = notifier
        self.clock = clock
        self.fetch_limit = fetch_limit or settings.live_fetch_limit

    def build(self) -> Optional[DailySummary]:
        """Compute the summary without sending it. None when no baseline is set."""
        baseline = self.manager.baseline
        if baseline is None:
            return None

        live = index_by_symbol(self.market_data.fetch_ranked(self.fetch_limit))

        matched = []
        missing = []
        for coin in baseline.coins:
            live_coin = live.get(coin.symbol)
            if live_coin is None:
                missing.append(coin.symbol)
                continue
            matched.append((coin, live_coin, compute_drift(coin.price, live_coin.price)))

        # sorted() is stable with reverse=True, so equal drifts keep baseline order.
        matched = sorted(matched, key=lambda item: item[2], reverse=True)

        rows = [
            SummaryRow(
                rank=rank,
                symbol=coin.symbol,
                drift_pct=drift,
                baseline_price=coin.price,
                live_price=live_coin.price,
            )
            for rank, (coin, live_coin, drift) in enumerate(matched, start=1)
        ]
        return DailySummary(date=baseline.date, generated_at=self.clock.now(), rows=rows, missing=missing)

    def run(self) -> Optional[DailySummary]:
        """Build the summary and send it as one message."""
        summary = self.build()
        if summary is None:
            logger.info("No baseline set, skipping daily summary")
            return None

        if not self.notifier.send(format_summary(summary)):
            logger.warning(f"Daily summary for {summary.date} not delivered")
        logger.info(f"Daily summary built: {len(summary.rows)} coin(s), not in live listing: {summary.missing or 'none'}")
        return summary
