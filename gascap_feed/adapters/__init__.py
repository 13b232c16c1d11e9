from .futures_contract import FUTURES_ABI, FuturesContract

__all__ = ["FUTURES_ABI", "FuturesContract"]
