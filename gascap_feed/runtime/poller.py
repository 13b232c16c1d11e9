from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from gascap_feed.data import EventSynchronizer, HistorySeeder, TickStore, aggregate, timeframe_seconds
from gascap_feed.domain import Candle, ContractState, PriceReading, Tick, UserPosition
from gascap_feed.infra import CycleJournal


@dataclass
class MarketState:
    """Last known value of every slice. A failed read never blanks a slice."""

    contract_state: ContractState | None = None
    price: PriceReading | None = None
    position: UserPosition | None = None
    liquidity: int = 0
    errors: dict[str, str] = field(default_factory=dict)
    updates: dict[str, int] = field(default_factory=dict)
    cycles: int = 0
    last_refresh_ts: float = 0.0
    loading: bool = True

    @property
    def connection_error(self) -> str | None:
        return self.errors.get("state")

    def fail(self, slice_name: str, err: BaseException | str) -> None:
        self.errors[slice_name] = str(err) or type(err).__name__

    def ok(self, slice_name: str) -> None:
        self.errors.pop(slice_name, None)


class PollingOrchestrator:
    """Drives every external read on a fixed cadence or on demand.

    Reads are fanned out together and all outcomes are collected before the
    cycle ends; each outcome only touches its own slice of `MarketState`.
    """

    def __init__(
        self,
        contract,
        store: TickStore,
        seeder: HistorySeeder,
        synchronizer: EventSynchronizer,
        *,
        account: str = "",
        interval_ms: int = 5000,
        timeframe: str = "1m",
        journal: CycleJournal | None = None,
        log: logging.Logger | None = None,
    ):
        self.contract = contract
        self.store = store
        self.seeder = seeder
        self.synchronizer = synchronizer
        self.account = account
        self.interval_s = max(0.05, interval_ms / 1000.0)
        self.timeframe = timeframe
        self.journal = journal
        self.log = log or logging.getLogger(__name__)
        self.state = MarketState()
        self._launched = 0

    async def _read_trades(self):
        head = await self.contract.block_number()
        return await self.synchronizer.sync(head)

    def _reads(self) -> dict[str, Any]:
        reads = {
            "state": self.contract.contract_state(),
            "price": self.contract.current_price(),
            "trades": self._read_trades(),
        }
        if self.account:
            reads["position"] = self.contract.position(self.account)
            reads["liquidity"] = self.contract.liquidity_provided(self.account)
        return reads

    async def _run_slice(self, name: str, read) -> str | None:
        """Await one read and apply it to its slice right away. Returns the error text, if any."""
        try:
            value = await read
        except Exception as exc:
            self.state.fail(name, exc)
            self.log.warning("slice-error slice=%s err=%s", name, self.state.errors[name])
            return self.state.errors[name]
        self._apply(name, value)
        self.state.ok(name)
        self.state.updates[name] = self.state.updates.get(name, 0) + 1
        return None

    async def refresh(self) -> MarketState:
        reads = self._reads()
        names = list(reads)
        outcomes = await asyncio.gather(
            *[self._run_slice(name, read) for name, read in reads.items()],
            return_exceptions=True,
        )

        ok: list[str] = []
        failed: dict[str, str] = {}
        interrupted: BaseException | None = None
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                self.state.fail(name, outcome)
                failed[name] = self.state.errors[name]
                self.log.warning("slice-apply-error slice=%s err=%s", name, failed[name])
            elif isinstance(outcome, BaseException):
                failed[name] = str(outcome) or type(outcome).__name__
                if interrupted is None:
                    interrupted = outcome
            elif outcome is None:
                ok.append(name)
            else:
                failed[name] = outcome

        self._finish_cycle(ok, failed)
        if interrupted is not None:
            raise interrupted
        return self.state

    def _finish_cycle(self, ok: list[str], failed: dict[str, str]) -> None:
        self.state.cycles += 1
        self.state.last_refresh_ts = time.time()
        self.state.loading = False
        if self.journal is not None:
            self.journal.record(
                self.state.cycles,
                ok=ok,
                failed=failed,
                ticks=len(self.store),
                trades=len(self.synchronizer.feed),
                cursor=self.synchronizer.cursor.last_scanned_block,
            )

    def _apply(self, name: str, value: Any) -> None:
        if name == "state":
            self.state.contract_state = value
        elif name == "price":
            self.state.price = value
            self._record_price(value)
        elif name == "position":
            self.state.position = value
        elif name == "liquidity":
            self.state.liquidity = int(value)
        elif name == "trades" and value.new_events:
            self.log.info("trades synced new=%s cursor=%s", len(value.new_events), value.cursor)

    def _record_price(self, reading: PriceReading) -> None:
        if reading.price <= 0:
            return
        self.seeder.seed_if_needed(reading.price, reading.timestamp)
        self.store.append(Tick(price=reading.price, time=reading.timestamp))

    def candles(self, timeframe: str | None = None) -> list[Candle]:
        return aggregate(self.store.read(), timeframe_seconds(timeframe or self.timeframe))

    async def _cycle(self) -> None:
        try:
            await self.refresh()
        except Exception as exc:
            self.log.exception("poll cycle crashed: %s", exc)
            self._finish_cycle([], {"cycle": str(exc) or type(exc).__name__})

    async def run_forever(self) -> None:
        """Start a cycle every interval, whether or not earlier cycles have finished."""
        self.log.info("poll loop starting interval=%.2fs account=%s", self.interval_s, self.account or "-")
        loop = asyncio.get_running_loop()
        inflight: set[asyncio.Task] = set()

        def _collect(task: asyncio.Task) -> None:
            inflight.discard(task)
            if not task.cancelled() and task.exception() is not None:
                self.log.error("poll cycle task failed: %s", task.exception())

        deadline = loop.time()
        try:
            while True:
                self._launched += 1
                task = asyncio.create_task(self._cycle(), name=f"poll-cycle:{self._launched}")
                inflight.add(task)
                task.add_done_callback(_collect)
                if len(inflight) > 1:
                    self.log.debug("poll cycles overlapping inflight=%s", len(inflight))

                deadline += self.interval_s
                now = loop.time()
                if deadline < now:
                    # stalled past a whole tick; resume the grid from now
                    deadline = now
                await asyncio.sleep(deadline - now)
        finally:
            for task in list(inflight):
                task.cancel()
            if inflight:
                await asyncio.gather(*inflight, return_exceptions=True)

    def snapshot(self) -> dict[str, Any]:
        s = self.state
        return {
            "loading": s.loading,
            "cycles": s.cycles,
            "last_refresh_ts": s.last_refresh_ts,
            "connection_error": s.connection_error,
            "errors": dict(s.errors),
            "updates": dict(s.updates),
            "contract_state": s.contract_state.to_dict() if s.contract_state else None,
            "seconds_to_expiry": s.contract_state.seconds_to_expiry(time.time()) if s.contract_state else None,
            "price": {"price": s.price.price, "timestamp": s.price.timestamp} if s.price else None,
            "position": s.position.to_dict() if s.position else None,
            "liquidity": str(s.liquidity),
            "ticks": len(self.store),
            "trades": len(self.synchronizer.feed),
            "cursor": self.synchronizer.cursor.last_scanned_block,
        }
