from .log import get_logger
from .telemetry import CycleJournal

__all__ = ["get_logger", "CycleJournal"]
