import asyncio
import random
from pathlib import Path

from aiohttp import test_utils

from gascap_feed.dashboard.server import build_app
from gascap_feed.data import EventSynchronizer, HistorySeeder, SyncCursor, TickStore
from gascap_feed.runtime.poller import PollingOrchestrator
from gascap_feed.tests.fakes import FakeContract, minted_log


def _orchestrator(tmp_path: Path) -> PollingOrchestrator:
    contract = FakeContract()
    contract.logs = [minted_log("0x01", 9000)]
    store = TickStore(str(tmp_path))
    return PollingOrchestrator(
        contract,
        store,
        HistorySeeder(store, rng=random.Random(2)),
        EventSynchronizer(contract, SyncCursor()),
    )


def test_api_roundtrip(tmp_path: Path) -> None:
    orch = _orchestrator(tmp_path)

    async def go():
        async with test_utils.TestClient(test_utils.TestServer(build_app(orch))) as client:
            r = await client.post("/api/refresh")
            assert r.status == 200
            state = await r.json()
            assert state["cycles"] == 1
            assert state["connection_error"] is None

            r = await client.get("/api/candles", params={"tf": "5m"})
            body = await r.json()
            assert body["timeframe"] == "5m"
            assert body["candles"][-1]["close"] == 50

            r = await client.get("/api/candles", params={"tf": "2m"})
            assert r.status == 400

            r = await client.get("/api/trades")
            trades = (await r.json())["trades"]
            assert trades[0]["tx_hash"] == "0x01"
            assert trades[0]["collateral"] == str(10**18)

            r = await client.post("/api/ticks/clear")
            assert (await r.json())["ok"] is True
            r = await client.get("/api/ticks")
            assert (await r.json())["ticks"] == []

    asyncio.run(go())
