from __future__ import annotations

import asyncio

from gascap_feed.adapters import FuturesContract
from gascap_feed.config import Settings
from gascap_feed.data import EventSynchronizer, HistorySeeder, SyncCursor, TickStore
from gascap_feed.infra import CycleJournal, get_logger
from gascap_feed.runtime.poller import PollingOrchestrator


class App:
    """Wires the pipeline together and runs it."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.log = get_logger("gascap", settings.log_level)

    def build(self, contract=None) -> PollingOrchestrator:
        s = self.settings
        if contract is None:
            contract = FuturesContract(s.rpc_url, s.contract_address, timeout=s.rpc_timeout_sec)
        store = TickStore(
            s.data_dir,
            s.tick_store_key,
            max_ticks=s.tick_retention,
            quiescence_sec=s.quiescence_sec,
        )
        synchronizer = EventSynchronizer(
            contract,
            SyncCursor(lookback_blocks=s.lookback_blocks),
            max_per_cycle=s.max_logs_per_cycle,
            feed_size=s.feed_size,
        )
        return PollingOrchestrator(
            contract,
            store,
            HistorySeeder(store),
            synchronizer,
            account=s.account,
            interval_ms=s.poll_interval_ms,
            timeframe=s.timeframe,
            journal=CycleJournal(s.data_dir),
            log=self.log,
        )

    async def run(self) -> None:
        self.log.info(
            "starting gascap feed rpc=%s contract=%s data_dir=%s",
            self.settings.rpc_url,
            self.settings.contract_address,
            self.settings.data_dir,
        )
        orchestrator = self.build()

        if self.settings.dashboard_enabled:
            from gascap_feed.dashboard import run_dashboard

            await asyncio.gather(
                orchestrator.run_forever(),
                run_dashboard(
                    orchestrator,
                    port=self.settings.dashboard_port,
                    log_level=self.settings.log_level,
                ),
            )
        else:
            await orchestrator.run_forever()


def run_main(settings: Settings) -> None:
    asyncio.run(App(settings).run())
