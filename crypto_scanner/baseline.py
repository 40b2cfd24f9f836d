"""Baseline Manager - owns the daily baseline and the alert state.

The Baseline and AlertState are shared by the scheduler threads, the alert
engine and the admin commands. This class is the only thing that replaces
them, and every mutation happens under one lock so the alert engine never
sees a baseline date that disagrees with its coins.
"""

import logging
import threading
from typing import FrozenSet, Iterable, List, Optional

from .alerting.messages import format_baseline_message
from .clock import Clock
from .config import settings
from .errors import DataSourceError, PersistenceError
from .models import MAX_BASKET_SIZE, AlertState, Baseline, CoinSnapshot, MarketCoin, Trigger
from .storage import StateStore

logger = logging.getLogger(__name__)


class BaselineManager:
    """Selects, persists and serves the active baseline.

    Collaborators:
        market_data: anything with fetch_ranked(limit) -> List[MarketCoin]
        store: a StateStore
        notifier: anything with send(text) -> bool
    """

    def __init__(
        self,
        market_data,
        store: StateStore,
        notifier,
        clock: Clock,
        basket_size: Optional[int] = None,
        fetch_limit: Optional[int] = None,
        min_volume_24h: Optional[float] = None,
        min_market_cap: Optional[float] = None,
        min_change_24h: Optional[float] = None,
        reset_alerts_on_baseline: Optional[bool] = None,
    ):
        self.market_data = market_data
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.basket_size = min(basket_size or settings.basket_size, MAX_BASKET_SIZE)
        self.fetch_limit = max(fetch_limit or settings.baseline_fetch_limit, self.basket_size)
        self.min_volume_24h = min_volume_24h if min_volume_24h is not None else settings.min_volume_24h
        self.min_market_cap = min_market_cap if min_market_cap is not None else settings.min_market_cap
        self.min_change_24h = min_change_24h if min_change_24h is not None else settings.min_change_24h
        self.reset_alerts_on_baseline = (
            settings.reset_alerts_on_baseline if reset_alerts_on_baseline is None else reset_alerts_on_baseline
        )

        self._lock = threading.RLock()
        self._baseline: Optional[Baseline] = None
        self._alert_state: Optional[AlertState] = None

    @property
    def baseline(self) -> Optional[Baseline]:
        """The active baseline. Baselines are immutable, so this is safe to hold."""
        with self._lock:
            return self._baseline

    @property
    def alert_state(self) -> Optional[AlertState]:
        """A copy of the current alert state."""
        with self._lock:
            return self._alert_state.copy() if self._alert_state else None

    def fired_symbols(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._alert_state.fired) if self._alert_state else frozenset()

    def restore(self) -> Optional[Baseline]:
        """Load the persisted baseline and alert state after a restart.

        An alert state whose date does not match the baseline is stale (the
        process died between saving the two) and is reset.
        """
        try:
            baseline = self.store.load_baseline()
        except PersistenceError as e:
            logger.critical(f"Could not load persisted baseline, starting without one: {e}")
            baseline = None

        if baseline is None:
            logger.info("No persisted baseline found")
            with self._lock:
                self._baseline = None
                self._alert_state = None
            return None

        try:
            alert_state = self.store.load_alert_state()
        except PersistenceError as e:
            logger.critical(f"Could not load persisted alert state, resetting it: {e}")
            alert_state = None

        with self._lock:
            if alert_state is None or alert_state.baseline_date != baseline.date:
                logger.warning(
                    f"Alert state is stale (state date "
                    f"{alert_state.baseline_date if alert_state else None}, baseline date {baseline.date}), "
                    f"resetting"
                )
                alert_state = self._fresh_alert_state(baseline, previous=alert_state)
                self._baseline = baseline
                self._alert_state = alert_state
                try:
                    self.store.save_alert_state(alert_state)
                except PersistenceError as e:
                    logger.critical(f"Failed to persist healed alert state: {e}")
            else:
                self._baseline = baseline
                self._alert_state = alert_state

        logger.info(
            f"Restored baseline for {baseline.date} ({', '.join(baseline.symbols)}); "
            f"already alerted: {sorted(alert_state.fired) or 'none'}"
        )
        return baseline

    def set_baseline(self, trigger: Trigger) -> Baseline:
        """Capture a new baseline from the live market and make it active.

        Raises:
            DataSourceError: the market fetch failed; nothing changed.
            PersistenceError: the new state is active in memory but may not be on disk.
        """
        logger.info(f"Setting baseline ({trigger.value})")

        # Network first, outside the lock; the current baseline stays untouched on failure.
        ranked = self.market_data.fetch_ranked(self.fetch_limit)
        if not ranked:
            raise DataSourceError("Market data source returned no coins")
        coins = self.select_basket(ranked)

        with self._lock:
            baseline = Baseline(date=self.clock.today(), set_at=self.clock.now(), coins=coins)
            alert_state = self._fresh_alert_state(baseline, previous=self._alert_state)
            self._baseline = baseline
            self._alert_state = alert_state

            # Baseline must hit the store before the alert state that references it.
            self.store.save_baseline(baseline)
            self.store.save_alert_state(alert_state)

        logger.info(f"Baseline set for {baseline.date}: {', '.join(baseline.symbols)}")
        self.notifier.send(format_baseline_message(baseline, trigger))
        return baseline

    def select_basket(self, ranked: Iterable[MarketCoin]) -> List[CoinSnapshot]:
        """Pick the basket from a ranked listing, keeping source rank order."""
        basket: List[CoinSnapshot] = []
        seen = set()
        for coin in ranked:
            # Only the best-ranked listing of a symbol is ever considered.
            if coin.symbol in seen:
                continue
            seen.add(coin.symbol)
            if not self._passes_filters(coin):
                continue
            basket.append(coin.snapshot())
            if len(basket) >= self.basket_size:
                break

        if len(basket) < self.basket_size:
            logger.warning(f"Only {len(basket)} coins qualified for the baseline (wanted {self.basket_size})")
        return basket

    def clear_history(self) -> Optional[AlertState]:
        """Forget which symbols have alerted, keeping the current baseline.

        Returns None when there is no baseline to clear history for.
        """
        with self._lock:
            if self._baseline is None:
                return None
            self._alert_state = AlertState(baseline_date=self._baseline.date, fired=set())
            state = self._alert_state.copy()
            self.store.save_alert_state(state)

        logger.info(f"Alert history cleared for baseline {state.baseline_date}")
        return state

    def mark_fired(self, symbol: str, baseline: Baseline) -> bool:
        """Record that `symbol` is about to be alerted on against `baseline`.

        Returns False when the symbol has already fired or `baseline` is no
        longer the active one (a reset landed while the caller was fetching,
        possibly on the same day). The in-memory insert happens before the
        store write; a PersistenceError still leaves the symbol marked.
        """
        with self._lock:
            state = self._alert_state
            if state is None or self._baseline is not baseline:
                return False
            if state.baseline_date != baseline.date:
                return False
            if symbol in state.fired:
                return False
            state.fired.add(symbol)
            self.store.save_alert_state(state.copy())
        return True

    def _passes_filters(self, coin: MarketCoin) -> bool:
        if self.min_volume_24h is not None and (coin.volume24h is None or coin.volume24h < self.min_volume_24h):
            return False
        if self.min_market_cap is not None and (coin.market_cap is None or coin.market_cap < self.min_market_cap):
            return False
        if self.min_change_24h is not None and coin.change24h < self.min_change_24h:
            return False
        return True

    def _fresh_alert_state(self, baseline: Baseline, previous: Optional[AlertState]) -> AlertState:
        if previous is not None and not self.reset_alerts_on_baseline:
            return AlertState(baseline_date=baseline.date, fired=set(previous.fired))
        return AlertState(baseline_date=baseline.date, fired=set())
