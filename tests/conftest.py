"""Shared fakes for scanner tests: manual clock, scripted market, recording notifier."""

from datetime import datetime, timedelta
from typing import List, Optional

import pytest

from crypto_scanner.baseline import BaselineManager
from crypto_scanner.clock import Clock
from crypto_scanner.drift import AlertEngine
from crypto_scanner.models import AlertState, Baseline, MarketCoin
from crypto_scanner.storage.base import StateStore
from crypto_scanner.summary import SummaryGenerator
from crypto_scanner.errors import PersistenceError

TZ_NAME = "Asia/Kolkata"


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, year=2026, month=10, day=19, hour=12, minute=0, tz_name=TZ_NAME):
        super().__init__(tz_name)
        self.current = datetime(year, month, day, hour, minute, tzinfo=self.tz)

    def now(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int = 0, second: int = 0):
        self.current = self.current.replace(hour=hour, minute=minute, second=second)

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


def coin(symbol: str, price: float, change24h: float = 0.0, volume24h=None, market_cap=None) -> MarketCoin:
    return MarketCoin(
        symbol=symbol,
        name=symbol.title(),
        price=price,
        change24h=change24h,
        volume24h=volume24h,
        market_cap=market_cap,
    )


class FakeMarketData:
    """Returns a scripted ranked listing, or raises a scripted error."""

    def __init__(self, coins: Optional[List[MarketCoin]] = None):
        self.coins = list(coins or [])
        self.error: Optional[Exception] = None
        self.calls: List[int] = []

    def fetch_ranked(self, limit: int) -> List[MarketCoin]:
        self.calls.append(limit)
        if self.error is not None:
            raise self.error
        return self.coins[:limit]


class RecordingNotifier:
    """Records every message. Set deliver=False to report failed delivery."""

    def __init__(self):
        self.messages: List[str] = []
        self.deliver = True

    def send(self, text: str) -> bool:
        self.messages.append(text)
        return self.deliver

    def reply(self, chat_id: str, text: str) -> bool:
        self.messages.append(text)
        return self.deliver


class MemoryStore(StateStore):
    """In-memory store that records write order and can be told to fail."""

    def __init__(self):
        self.baseline: Optional[Baseline] = None
        self.alert_state: Optional[AlertState] = None
        self.writes: List[str] = []
        self.fail_baseline_writes = False
        self.fail_alert_state_writes = False

    def load_baseline(self):
        return self.baseline

    def save_baseline(self, baseline):
        if self.fail_baseline_writes:
            raise PersistenceError("disk full")
        self.writes.append("baseline")
        self.baseline = baseline

    def load_alert_state(self):
        return self.alert_state.copy() if self.alert_state else None

    def save_alert_state(self, state):
        if self.fail_alert_state_writes:
            raise PersistenceError("disk full")
        self.writes.append("alert_state")
        self.alert_state = state.copy()


TOP_COINS = [
    coin("BTC", 100.0, 5.0, volume24h=30e9, market_cap=2e12),
    coin("ETH", 50.0, 3.0, volume24h=15e9, market_cap=4e11),
    coin("USDT", 1.0, 0.0, volume24h=50e9, market_cap=1e11),
    coin("BNB", 600.0, -1.0, volume24h=2e9, market_cap=9e10),
    coin("SOL", 150.0, 8.0, volume24h=4e9, market_cap=7e10),
    coin("XRP", 0.5, 1.5, volume24h=1e9, market_cap=3e10),
    coin("USDC", 1.0, 0.0, volume24h=6e9, market_cap=3e10),
    coin("DOGE", 0.1, 12.0, volume24h=8e8, market_cap=1.5e10),
    coin("ADA", 0.4, -2.0, volume24h=4e8, market_cap=1.4e10),
    coin("TRX", 0.12, 0.5, volume24h=3e8, market_cap=1e10),
    coin("AVAX", 30.0, 4.0, volume24h=5e8, market_cap=9e9),
    coin("LINK", 14.0, 2.0, volume24h=4e8, market_cap=8e9),
]


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def market():
    return FakeMarketData(TOP_COINS)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def manager(market, store, notifier, clock):
    return BaselineManager(market, store, notifier, clock, basket_size=10, fetch_limit=50)


@pytest.fixture
def engine(manager, market, notifier, clock):
    return AlertEngine(manager, market, notifier, clock, drop_threshold_pct=-10.0, fetch_limit=100)


@pytest.fixture
def summary(manager, market, notifier, clock):
    return SummaryGenerator(manager, market, notifier, clock, fetch_limit=100)
