from .models import (
    Candle,
    ContractState,
    PersistResult,
    PriceReading,
    Tick,
    TradeEvent,
    UserPosition,
)

__all__ = [
    "Candle",
    "ContractState",
    "PersistResult",
    "PriceReading",
    "Tick",
    "TradeEvent",
    "UserPosition",
]
