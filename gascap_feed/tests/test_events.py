import asyncio

import pytest

from gascap_feed.data.events import EventSynchronizer, SyncCursor, merge_feed
from gascap_feed.domain.models import TradeEvent
from gascap_feed.tests.fakes import FakeContract, minted_log


def _sync(source, **kw) -> EventSynchronizer:
    return EventSynchronizer(source, SyncCursor(lookback_blocks=5000), **kw)


def test_first_sync_uses_bounded_lookback() -> None:
    src = FakeContract()
    sync = _sync(src)
    res = asyncio.run(sync.sync(12000))
    assert src.log_queries == [(7001, 12000)]
    assert res.scanned == (7001, 12000)
    assert res.cursor == 12000
    assert sync.cursor.last_scanned_block == 12000


def test_lookback_clamps_at_genesis() -> None:
    src = FakeContract()
    sync = _sync(src)
    asyncio.run(sync.sync(1200))
    assert src.log_queries == [(1, 1200)]


def test_resolves_events_newest_first() -> None:
    src = FakeContract()
    src.logs = [minted_log("0x01", 8000), minted_log("0x02", 9000, is_long=False, quantity=4)]
    sync = _sync(src)
    res = asyncio.run(sync.sync(12000))
    assert [e.tx_hash for e in res.new_events] == ["0x01", "0x02"]
    feed = sync.feed
    assert [e.tx_hash for e in feed] == ["0x02", "0x01"]
    assert feed[0] == TradeEvent(
        trader="0xabc",
        is_long=False,
        quantity=4,
        collateral=10**18,
        leverage=2,
        timestamp=18000,
        tx_hash="0x02",
    )


def test_overlapping_ranges_do_not_duplicate() -> None:
    src = FakeContract()
    src.logs = [minted_log(f"0x{i:02x}", 7100 + i) for i in range(10)]
    sync = _sync(src)
    asyncio.run(sync.sync(12000))
    sync.cursor.last_scanned_block = 7000
    asyncio.run(sync.sync(12000))
    feed = sync.feed
    assert len(feed) == 10
    assert len({e.tx_hash for e in feed}) == 10
    assert [e.timestamp for e in feed] == sorted((e.timestamp for e in feed), reverse=True)


def test_per_cycle_and_feed_caps() -> None:
    src = FakeContract(head=20000)
    src.logs = [minted_log(f"0x{i:03x}", 15001 + i) for i in range(60)]
    sync = _sync(src, max_per_cycle=20, feed_size=50)
    res = asyncio.run(sync.sync(20000))
    assert len(res.new_events) == 20
    assert res.new_events[0].tx_hash == "0x028"

    for head in range(20100, 20500, 100):
        src.logs += [minted_log(f"0x{head:x}{i}", head - i) for i in range(20)]
        asyncio.run(sync.sync(head))
    assert len(sync.feed) == 50


def test_failure_holds_cursor_and_feed() -> None:
    src = FakeContract()
    src.logs = [minted_log("0x01", 8000)]
    sync = _sync(src)
    asyncio.run(sync.sync(12000))

    src.logs.append(minted_log("0x02", 12500))
    src.fail["block"] = RuntimeError("rpc down")
    with pytest.raises(RuntimeError):
        asyncio.run(sync.sync(13000))
    assert sync.cursor.last_scanned_block == 12000
    assert [e.tx_hash for e in sync.feed] == ["0x01"]

    del src.fail["block"]
    asyncio.run(sync.sync(13000))
    assert src.log_queries[-1] == (12001, 13000)
    assert [e.tx_hash for e in sync.feed] == ["0x02", "0x01"]


def test_stalled_head_is_noop() -> None:
    src = FakeContract()
    sync = _sync(src)
    asyncio.run(sync.sync(12000))
    res = asyncio.run(sync.sync(12000))
    assert res.scanned is None
    assert len(src.log_queries) == 1


def test_cursor_never_rewinds() -> None:
    cursor = SyncCursor(lookback_blocks=10)
    cursor.init(100)
    cursor.advance(120)
    cursor.advance(110)
    assert cursor.last_scanned_block == 120
    cursor.reset()
    assert not cursor.is_set


def test_merge_keeps_first_occurrence() -> None:
    a = TradeEvent("0x1", True, 1, 1, 1, 10, "0xaa")
    b = TradeEvent("0x2", True, 2, 2, 2, 10, "0xaa")
    c = TradeEvent("0x3", False, 3, 3, 3, 20, "0xbb")
    assert merge_feed([a], [b, c], 50) == [c, a]
