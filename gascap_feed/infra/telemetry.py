from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class CycleJournal:
    """Append-only JSONL record of completed poll cycles."""

    def __init__(self, data_dir: str, filename: str = "poll_cycles.jsonl"):
        self.path = Path(data_dir) / filename
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, cycle: int, *, ok: list[str], failed: dict[str, str], **fields: Any) -> None:
        payload = {
            "ts": time.time(),
            "cycle": cycle,
            "ok": sorted(ok),
            "failed": failed,
            **fields,
        }
        row = json.dumps(payload, separators=(",", ":"), ensure_ascii=True)
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(row + "\n")
        except OSError as exc:
            logger.warning("journal write failed path=%s err=%s", self.path, exc)

