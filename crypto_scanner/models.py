"""Data models for Crypto Scanner."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Dict, Any, List, Set, Tuple

# Upper bound on the number of coins a baseline may hold.
MAX_BASKET_SIZE = 10


class Trigger(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    STARTUP = "startup"


@dataclass(frozen=True)
class CoinSnapshot:
    """Price of one coin at the moment a baseline was captured."""
    symbol: str
    price: float
    change24h: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change24h": self.change24h,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoinSnapshot":
        price = float(data["price"])
        if price <= 0:
            raise ValueError(f"{data['symbol']}: stored baseline price must be positive, got {price}")
        return cls(
            symbol=str(data["symbol"]),
            price=price,
            change24h=float(data.get("change24h") or 0.0),
        )


@dataclass(frozen=True)
class MarketCoin:
    """One row of a ranked market listing."""
    symbol: str
    price: float
    change24h: float
    name: str = ""
    volume24h: Optional[float] = None
    market_cap: Optional[float] = None

    def snapshot(self) -> CoinSnapshot:
        return CoinSnapshot(symbol=self.symbol, price=self.price, change24h=self.change24h)


@dataclass(frozen=True)
class Baseline:
    """Reference snapshot that drift is measured against for one calendar day."""
    date: date
    set_at: datetime
    coins: Tuple[CoinSnapshot, ...]

    def __post_init__(self):
        # Allow lists in, but always hold an immutable tuple.
        object.__setattr__(self, "coins", tuple(self.coins))
        if len(self.coins) > MAX_BASKET_SIZE:
            raise ValueError(f"Baseline holds {len(self.coins)} coins, max is {MAX_BASKET_SIZE}")
        symbols = [c.symbol for c in self.coins]
        if len(set(symbols)) != len(symbols):
            raise ValueError(f"Baseline symbols must be unique: {symbols}")

    @property
    def symbols(self) -> List[str]:
        return [c.symbol for c in self.coins]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "setAt": self.set_at.isoformat(),
            "coins": [c.to_dict() for c in self.coins],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Baseline":
        return cls(
            date=date.fromisoformat(data["date"]),
            set_at=datetime.fromisoformat(data["setAt"]),
            coins=tuple(CoinSnapshot.from_dict(c) for c in data["coins"]),
        )


@dataclass
class AlertState:
    """Symbols already alerted on for the baseline dated `baseline_date`."""
    baseline_date: date
    fired: Set[str] = field(default_factory=set)

    def copy(self) -> "AlertState":
        return AlertState(baseline_date=self.baseline_date, fired=set(self.fired))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baselineDate": self.baseline_date.isoformat(),
            "fired": sorted(self.fired),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertState":
        return cls(
            baseline_date=date.fromisoformat(data["baselineDate"]),
            fired=set(data.get("fired") or []),
        )


@dataclass(frozen=True)
class DriftAlert:
    """A coin that fell through the drop threshold."""
    symbol: str
    drift_pct: float
    baseline_price: float
    live_price: float
    at: datetime


@dataclass(frozen=True)
class SummaryRow:
    rank: int
    symbol: str
    drift_pct: float
    baseline_price: float
    live_price: float


@dataclass
class DailySummary:
    """End-of-day performance of the baseline basket, best performer first."""
    date: date
    generated_at: datetime
    rows: List[SummaryRow] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)  # baseline symbols absent from the live listing
