from __future__ import annotations

import logging
import random

from gascap_feed.data.tick_store import TickStore
from gascap_feed.domain import Tick

logger = logging.getLogger(__name__)

SEED_COUNT = 360
SEED_SPACING_SEC = 5
MIN_REAL_TICKS = 30
PRICE_FLOOR = 20.0
PRICE_CEIL = 79.0
STEP_SCALE = 0.006
# walking backwards, so a negative bias here reads as upward drift forwards
BACKWARD_BIAS = 0.52


class HistorySeeder:
    """One-shot synthetic back-fill so a fresh chart is not a single point."""

    def __init__(
        self,
        store: TickStore,
        *,
        count: int = SEED_COUNT,
        spacing_sec: int = SEED_SPACING_SEC,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.count = count
        self.spacing_sec = spacing_sec
        self.rng = rng or random.Random()

    def seed_if_needed(self, current_price: float, current_time: int) -> int:
        if self.store.seeded or current_price <= 0:
            return 0
        if len(self.store) >= MIN_REAL_TICKS:
            self.store.seeded = True
            return 0

        self.store.seeded = True
        kept = self.store.prepend(self.walk(current_price, current_time))
        logger.info(
            "seeded synthetic history ticks=%s anchor_price=%s anchor_time=%s",
            kept,
            current_price,
            current_time,
        )
        return kept

    def walk(self, current_price: float, current_time: int) -> list[Tick]:
        price = float(current_price)
        backwards = []
        for i in range(1, self.count + 1):
            change = (self.rng.random() - BACKWARD_BIAS) * STEP_SCALE * price
            price = max(PRICE_FLOOR, min(PRICE_CEIL, price + change))
            backwards.append(Tick(price=round(price, 2), time=current_time - i * self.spacing_sec))
        ticks = backwards[::-1]
        ticks.append(Tick(price=current_price, time=current_time - 1))
        return ticks
