from .candles import TIMEFRAMES, aggregate, timeframe_seconds
from .events import EventSynchronizer, SyncCursor, SyncResult, merge_feed
from .seeder import HistorySeeder
from .tick_store import TickStore

__all__ = [
    "TIMEFRAMES",
    "aggregate",
    "timeframe_seconds",
    "EventSynchronizer",
    "SyncCursor",
    "SyncResult",
    "merge_feed",
    "HistorySeeder",
    "TickStore",
]
