from .poller import MarketState, PollingOrchestrator

__all__ = ["MarketState", "PollingOrchestrator"]
