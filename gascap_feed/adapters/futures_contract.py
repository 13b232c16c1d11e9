from __future__ import annotations

import asyncio
from functools import partial
from typing import Any

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from gascap_feed.domain import ContractState, PriceReading, UserPosition

BLOCK_TS_CACHE = 512


def _out(name: str, typ: str) -> dict:
    return {"name": name, "type": typ}


FUTURES_ABI = [
    {"inputs": [], "name": "getContractState", "stateMutability": "view", "type": "function",
     "outputs": [_out("strikePrice", "uint256"), _out("expiryTimestamp", "uint256"),
                 _out("isSettled", "bool"), _out("settlementPrice", "uint256"),
                 _out("totalLiquidity", "uint256"), _out("participantCount", "uint256")]},
    {"inputs": [], "name": "getCurrentGasPrice", "stateMutability": "view", "type": "function",
     "outputs": [_out("price", "uint256"), _out("timestamp", "uint256")]},
    {"inputs": [_out("_trader", "address")], "name": "getPosition",
     "stateMutability": "view", "type": "function",
     "outputs": [_out("exists", "bool"), _out("isLong", "bool"), _out("quantity", "uint256"),
                 _out("collateral", "uint256"), _out("leverage", "uint256"),
                 _out("marginMode", "uint8"), _out("entryType", "uint8"),
                 _out("entryPrice", "uint256"), _out("openTimestamp", "uint256"),
                 _out("isActive", "bool"), _out("isClaimed", "bool"),
                 _out("notionalValue", "uint256"), _out("margin", "uint256")]},
    {"inputs": [_out("", "address")], "name": "liquidityProvided",
     "stateMutability": "view", "type": "function", "outputs": [_out("", "uint256")]},
    {"anonymous": False, "name": "FuturesMinted", "type": "event",
     "inputs": [{"indexed": True, "name": "trader", "type": "address"},
                {"indexed": False, "name": "isLong", "type": "bool"},
                {"indexed": False, "name": "quantity", "type": "uint256"},
                {"indexed": False, "name": "collateral", "type": "uint256"},
                {"indexed": False, "name": "leverage", "type": "uint256"},
                {"indexed": False, "name": "marginMode", "type": "uint8"},
                {"indexed": False, "name": "entryType", "type": "uint8"},
                {"indexed": False, "name": "entryPrice", "type": "uint256"},
                {"indexed": False, "name": "notionalValue", "type": "uint256"},
                {"indexed": False, "name": "margin", "type": "uint256"},
                {"indexed": False, "name": "timestamp", "type": "uint256"}]},
]


class FuturesContract:
    """Read-only async facade over the deployed futures contract.

    web3's HTTP provider is blocking, so every call is pushed to the default
    executor to keep the event loop free.
    """

    def __init__(self, rpc_url: str, address: str, *, timeout: float = 10.0, w3: Web3 | None = None):
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=FUTURES_ABI)
        self._block_ts: dict[int, int] = {}

    async def _call(self, fn, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    async def contract_state(self) -> ContractState:
        v = await self._call(self.contract.functions.getContractState().call)
        return ContractState(
            strike_price=int(v[0]),
            expiry_timestamp=int(v[1]),
            is_settled=bool(v[2]),
            settlement_price=int(v[3]),
            total_liquidity=int(v[4]),
            participant_count=int(v[5]),
        )

    async def current_price(self) -> PriceReading:
        v = await self._call(self.contract.functions.getCurrentGasPrice().call)
        return PriceReading(price=int(v[0]), timestamp=int(v[1]))

    async def position(self, account: str) -> UserPosition:
        who = Web3.to_checksum_address(account)
        p = await self._call(self.contract.functions.getPosition(who).call)
        return UserPosition(
            exists=bool(p[0]),
            is_long=bool(p[1]),
            quantity=int(p[2]),
            collateral=int(p[3]),
            leverage=int(p[4]),
            margin_mode=int(p[5]),
            entry_type=int(p[6]),
            entry_price=int(p[7]),
            open_timestamp=int(p[8]),
            is_active=bool(p[9]),
            is_claimed=bool(p[10]),
            notional_value=int(p[11]),
            margin=int(p[12]),
        )

    async def liquidity_provided(self, account: str) -> int:
        who = Web3.to_checksum_address(account)
        return int(await self._call(self.contract.functions.liquidityProvided(who).call))

    async def block_number(self) -> int:
        return int(await self._call(lambda: self.w3.eth.block_number))

    async def fetch_minted_logs(self, from_block: int, to_block: int) -> list[Any]:
        event = self.contract.events.FuturesMinted()
        return list(await self._call(lambda: event.get_logs(from_block=from_block, to_block=to_block)))

    async def block_timestamp(self, block_number: int) -> int:
        cached = self._block_ts.get(block_number)
        if cached is not None:
            return cached
        block = await self._call(self.w3.eth.get_block, block_number)
        ts = int(block["timestamp"])
        if len(self._block_ts) >= BLOCK_TS_CACHE:
            self._block_ts.pop(min(self._block_ts))
        self._block_ts[block_number] = ts
        return ts
