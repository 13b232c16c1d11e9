from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Tick:
    """One observation of the index price; `time` is unix seconds."""

    price: float
    time: int

    def to_dict(self) -> dict[str, Any]:
        return {"price": self.price, "time": self.time}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tick":
        return cls(price=float(data["price"]), time=int(data["time"]))


@dataclass(frozen=True)
class Candle:
    time: int
    open: float
    high: float
    low: float
    close: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TradeEvent:
    """A decoded FuturesMinted log; identity is `tx_hash`."""

    trader: str
    is_long: bool
    quantity: int
    collateral: int
    leverage: int
    timestamp: int
    tx_hash: str

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        # wei amounts overflow JS numbers on the wire
        out["quantity"] = str(self.quantity)
        out["collateral"] = str(self.collateral)
        return out


@dataclass(frozen=True)
class PriceReading:
    price: int
    timestamp: int


@dataclass(frozen=True)
class ContractState:
    strike_price: int
    expiry_timestamp: int
    is_settled: bool
    settlement_price: int
    total_liquidity: int
    participant_count: int

    def seconds_to_expiry(self, now: float) -> int:
        return max(0, int(self.expiry_timestamp) - int(now))

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["total_liquidity"] = str(self.total_liquidity)
        return out


@dataclass(frozen=True)
class UserPosition:
    exists: bool
    is_long: bool
    quantity: int
    collateral: int
    leverage: int
    margin_mode: int
    entry_type: int
    entry_price: int
    open_timestamp: int
    is_active: bool
    is_claimed: bool
    notional_value: int
    margin: int

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        for key in ("quantity", "collateral", "notional_value", "margin"):
            out[key] = str(out[key])
        return out


@dataclass(frozen=True)
class PersistResult:
    ok: bool
    reason: str = ""
