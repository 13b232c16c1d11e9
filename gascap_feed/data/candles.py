"""
Tick to candle aggregation.

Adjacent candles are stitched: each candle opens at the previous emitted
candle's close, even across buckets with no ticks. This deliberately hides
price gaps and departs from strict OHLC-from-raw-ticks; `high` and `low`
include the stitched open so they still bound it.
"""

from __future__ import annotations

from collections.abc import Iterable

from gascap_feed.domain import Candle, Tick

TIMEFRAMES = {
    "1m": 60,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "4h": 14400,
    "1d": 86400,
}


def timeframe_seconds(name: str) -> int:
    try:
        return TIMEFRAMES[name]
    except KeyError:
        raise ValueError(f"unknown timeframe {name!r}, expected one of {sorted(TIMEFRAMES)}") from None


def bucket_start(ts: int, bucket_seconds: int) -> int:
    return (int(ts) // bucket_seconds) * bucket_seconds


class _CandleBuilder:
    def __init__(self, start: int, open_price: float):
        self.start = start
        self.open = open_price
        self.high = open_price
        self.low = open_price
        self.close = open_price

    def add(self, price: float) -> None:
        self.high = max(self.high, price)
        self.low = min(self.low, price)
        self.close = price

    def build(self) -> Candle:
        return Candle(time=self.start, open=self.open, high=self.high, low=self.low, close=self.close)


def aggregate(ticks: Iterable[Tick], bucket_seconds: int) -> list[Candle]:
    if bucket_seconds <= 0:
        raise ValueError(f"bucket_seconds must be positive, got {bucket_seconds}")

    candles: list[Candle] = []
    builder: _CandleBuilder | None = None
    prev_close: float | None = None

    for tick in ticks:
        start = bucket_start(tick.time, bucket_seconds)
        if builder is None or builder.start != start:
            if builder is not None:
                candles.append(builder.build())
                prev_close = builder.close
            builder = _CandleBuilder(start, prev_close if prev_close is not None else tick.price)
        builder.add(tick.price)

    if builder is not None:
        candles.append(builder.build())
    candles.sort(key=lambda c: c.time)
    return candles
