from __future__ import annotations

import asyncio

from aiohttp import web

from gascap_feed.infra.log import get_logger
from gascap_feed.runtime.poller import PollingOrchestrator

NO_STORE = {"Cache-Control": "no-store"}


def build_app(orchestrator: PollingOrchestrator) -> web.Application:
    async def handle_state(_req: web.Request) -> web.Response:
        return web.json_response(orchestrator.snapshot(), headers=NO_STORE)

    async def handle_candles(req: web.Request) -> web.Response:
        tf = req.query.get("tf", orchestrator.timeframe)
        try:
            candles = orchestrator.candles(tf)
        except ValueError as exc:
            raise web.HTTPBadRequest(text=str(exc))
        return web.json_response(
            {"timeframe": tf, "candles": [c.to_dict() for c in candles]},
            headers=NO_STORE,
        )

    async def handle_trades(_req: web.Request) -> web.Response:
        feed = orchestrator.synchronizer.feed
        return web.json_response({"trades": [t.to_dict() for t in feed]}, headers=NO_STORE)

    async def handle_ticks(_req: web.Request) -> web.Response:
        ticks = orchestrator.store.read()
        return web.json_response({"ticks": [t.to_dict() for t in ticks]}, headers=NO_STORE)

    async def handle_refresh(_req: web.Request) -> web.Response:
        await orchestrator.refresh()
        return web.json_response(orchestrator.snapshot(), headers=NO_STORE)

    async def handle_clear(_req: web.Request) -> web.Response:
        res = orchestrator.store.clear()
        return web.json_response({"ok": res.ok, "reason": res.reason}, headers=NO_STORE)

    app = web.Application()
    app.router.add_get("/api/state", handle_state)
    app.router.add_get("/api/candles", handle_candles)
    app.router.add_get("/api/trades", handle_trades)
    app.router.add_get("/api/ticks", handle_ticks)
    app.router.add_post("/api/refresh", handle_refresh)
    app.router.add_post("/api/ticks/clear", handle_clear)
    return app


async def run_dashboard(orchestrator: PollingOrchestrator, *, port: int, log_level: str = "INFO") -> None:
    log = get_logger("gascap-dashboard", log_level)
    runner = web.AppRunner(build_app(orchestrator))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    log.info("dashboard api running on :%s", port)

    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await runner.cleanup()
