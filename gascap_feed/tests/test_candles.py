import pytest

from gascap_feed.data.candles import aggregate, timeframe_seconds
from gascap_feed.domain.models import Candle, Tick


def _ticks(*pairs):
    return [Tick(price=p, time=t) for p, t in pairs]


def test_example_two_buckets() -> None:
    out = aggregate(_ticks((100, 10), (101, 15), (99, 20), (105, 25)), 10)
    assert out == [
        Candle(time=10, open=100, high=101, low=100, close=101),
        Candle(time=20, open=101, high=105, low=99, close=105),
    ]


def test_gap_still_opens_at_previous_close() -> None:
    out = aggregate(_ticks((50, 0), (52, 30), (40, 600), (41, 610)), 60)
    assert [c.time for c in out] == [0, 600]
    assert out[1].open == out[0].close == 52
    assert out[1].high == 52
    assert out[1].low == 40


def test_adjacent_continuity_and_bounds() -> None:
    prices = [50, 53, 49, 60, 58, 44, 47, 70, 21, 35, 36, 36, 38]
    ticks = [Tick(price=p, time=i * 17) for i, p in enumerate(prices)]
    out = aggregate(ticks, 30)
    for a, b in zip(out, out[1:]):
        assert b.open == a.close
        assert a.time < b.time
    for c in out:
        assert c.low <= min(c.open, c.close)
        assert c.high >= max(c.open, c.close)


def test_prefix_closed_buckets_unchanged() -> None:
    ticks = [Tick(price=40 + (i * 7) % 11, time=i * 13) for i in range(40)]
    full = aggregate(ticks, 60)
    assert aggregate(ticks, 60) == full
    prefix = aggregate(ticks[:25], 60)
    assert prefix[:-1] == full[: len(prefix) - 1]


def test_empty_and_bad_width() -> None:
    assert aggregate([], 60) == []
    with pytest.raises(ValueError):
        aggregate(_ticks((1, 1)), 0)


def test_timeframe_lookup() -> None:
    assert timeframe_seconds("5m") == 300
    with pytest.raises(ValueError):
        timeframe_seconds("7m")
