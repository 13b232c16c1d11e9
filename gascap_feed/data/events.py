from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from gascap_feed.domain import TradeEvent

logger = logging.getLogger(__name__)


class LogSource(Protocol):
    async def fetch_minted_logs(self, from_block: int, to_block: int) -> list[Any]: ...

    async def block_timestamp(self, block_number: int) -> int: ...


class SyncCursor:
    """Highest block already scanned. Only ever moves forward."""

    def __init__(self, lookback_blocks: int = 5000):
        self.lookback_blocks = lookback_blocks
        self.last_scanned_block: int | None = None

    @property
    def is_set(self) -> bool:
        return self.last_scanned_block is not None

    def init(self, head: int) -> int:
        if self.last_scanned_block is None:
            self.last_scanned_block = max(0, int(head) - self.lookback_blocks)
            logger.info("sync cursor initialised block=%s head=%s", self.last_scanned_block, head)
        return self.last_scanned_block

    def advance(self, block: int) -> None:
        if self.last_scanned_block is None or block > self.last_scanned_block:
            self.last_scanned_block = int(block)

    def reset(self) -> None:
        self.last_scanned_block = None


@dataclass(frozen=True)
class SyncResult:
    new_events: list[TradeEvent]
    cursor: int
    scanned: tuple[int, int] | None = None


def merge_feed(new: list[TradeEvent], existing: list[TradeEvent], limit: int) -> list[TradeEvent]:
    """Concatenate, keep the first occurrence of each tx hash, newest first."""
    seen: set[str] = set()
    out = []
    for ev in [*new, *existing]:
        if ev.tx_hash in seen:
            continue
        seen.add(ev.tx_hash)
        out.append(ev)
    out.sort(key=lambda e: e.timestamp, reverse=True)
    return out[:limit]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj[name]
    return getattr(obj, name)


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value)
    return text if text.startswith("0x") else "0x" + text


class EventSynchronizer:
    """Incremental FuturesMinted scanner feeding a bounded, deduplicated trade feed."""

    def __init__(
        self,
        source: LogSource,
        cursor: SyncCursor,
        *,
        max_per_cycle: int = 20,
        feed_size: int = 50,
    ):
        self.source = source
        self.cursor = cursor
        self.max_per_cycle = max_per_cycle
        self.feed_size = feed_size
        self._feed: list[TradeEvent] = []

    @property
    def feed(self) -> list[TradeEvent]:
        return list(self._feed)

    def reset(self) -> None:
        self._feed = []
        self.cursor.reset()

    async def sync(self, head: int) -> SyncResult:
        start = self.cursor.init(head)
        if head <= start:
            return SyncResult(new_events=[], cursor=start)

        from_block, to_block = start + 1, int(head)
        logs = await self.source.fetch_minted_logs(from_block, to_block)
        new_events: list[TradeEvent] = []
        if logs:
            recent = list(logs)[-self.max_per_cycle :]
            new_events = await self._resolve_all(recent)
            self._feed = merge_feed(new_events, self._feed, self.feed_size)

        self.cursor.advance(to_block)
        logger.debug(
            "sync range=(%s,%s] logs=%s feed=%s",
            start,
            to_block,
            len(logs or []),
            len(self._feed),
        )
        return SyncResult(new_events=new_events, cursor=to_block, scanned=(from_block, to_block))

    async def _resolve_all(self, logs: list[Any]) -> list[TradeEvent]:
        blocks = sorted({int(_field(log, "blockNumber")) for log in logs})
        stamps = await asyncio.gather(*[self.source.block_timestamp(b) for b in blocks])
        ts_by_block = dict(zip(blocks, stamps))
        return [self._resolve(log, ts_by_block) for log in logs]

    @staticmethod
    def _resolve(log: Any, ts_by_block: dict[int, int]) -> TradeEvent:
        args = _field(log, "args")
        return TradeEvent(
            trader=str(_field(args, "trader")),
            is_long=bool(_field(args, "isLong")),
            quantity=int(_field(args, "quantity")),
            collateral=int(_field(args, "collateral")),
            leverage=int(_field(args, "leverage")),
            timestamp=int(ts_by_block[int(_field(log, "blockNumber"))]),
            tx_hash=_hex(_field(log, "transactionHash")),
        )
