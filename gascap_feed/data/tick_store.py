from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from gascap_feed.domain import PersistResult, Tick

logger = logging.getLogger(__name__)


class TickStore:
    """Append-only price history with a JSON file as its durable slot.

    The in-memory list is authoritative for the session; the file is only
    read when the list is empty and rewritten after every accepted change.
    """

    def __init__(
        self,
        data_dir: str,
        key: str = "ftso_ticks",
        *,
        max_ticks: int = 2000,
        quiescence_sec: int = 10,
    ):
        self.path = Path(data_dir) / f"{key}.json"
        self.max_ticks = max(1, int(max_ticks))
        self.quiescence_sec = max(0, int(quiescence_sec))
        self.seeded = False
        self._ticks: list[Tick] = []
        self._hydrated = False

    def __len__(self) -> int:
        self._hydrate()
        return len(self._ticks)

    def _hydrate(self) -> None:
        if not self._hydrated:
            self._ticks = self.load()
            self._hydrated = True

    def read(self) -> list[Tick]:
        self._hydrate()
        return list(self._ticks)

    def last(self) -> Tick | None:
        self._hydrate()
        return self._ticks[-1] if self._ticks else None

    def append(self, tick: Tick) -> bool:
        if tick.price is None or tick.price <= 0:
            return False
        self._hydrate()
        if self._ticks:
            last = self._ticks[-1]
            if tick.time <= last.time:
                logger.debug("tick dropped time=%s last=%s", tick.time, last.time)
                return False
            if tick.price == last.price and (tick.time - last.time) < self.quiescence_sec:
                return False

        self._ticks.append(tick)
        if len(self._ticks) > self.max_ticks:
            del self._ticks[: len(self._ticks) - self.max_ticks]
        self._flush()
        return True

    def prepend(self, ticks: Iterable[Tick]) -> int:
        """Insert older history ahead of what is stored. Returns ticks kept."""
        current = self.read()
        floor = current[0].time if current else None
        older = [t for t in ticks if t.price > 0 and (floor is None or t.time < floor)]
        if not older:
            return 0
        merged = older + current
        if len(merged) > self.max_ticks:
            merged = merged[len(merged) - self.max_ticks :]
        self._ticks = merged
        self._flush()
        return len(older)

    def clear(self) -> PersistResult:
        self._ticks = []
        self._hydrated = True
        self.seeded = False
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("tick slot remove failed path=%s err=%s", self.path, exc)
            return PersistResult(ok=False, reason=str(exc))
        return PersistResult(ok=True)

    def save(self) -> PersistResult:
        payload = [t.to_dict() for t in self._ticks]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_text(json.dumps(payload, separators=(",", ":")))
            tmp.replace(self.path)
        except (OSError, TypeError, ValueError) as exc:
            return PersistResult(ok=False, reason=str(exc))
        return PersistResult(ok=True)

    def load(self) -> list[Tick]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text())
            if not isinstance(raw, list):
                raise ValueError(f"expected list, got {type(raw).__name__}")
            rows = [Tick.from_dict(row) for row in raw]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("tick slot unreadable, starting empty path=%s err=%s", self.path, exc)
            return []

        ticks: list[Tick] = []
        for tick in rows:
            if tick.price <= 0 or (ticks and tick.time <= ticks[-1].time):
                continue
            ticks.append(tick)
        if len(ticks) < len(rows):
            logger.warning(
                "tick slot had invalid rows, dropped=%s kept=%s path=%s",
                len(rows) - len(ticks),
                len(ticks),
                self.path,
            )
        return ticks[-self.max_ticks :]

    def _flush(self) -> None:
        res = self.save()
        if not res.ok:
            logger.warning("tick slot write failed path=%s err=%s", self.path, res.reason)
