"""In-memory ``ChainBoundary`` used by the test suite.

Reads are answered from handlers registered per ``(address, fn_name)``; a
handler is either a plain value or a callable receiving ``(args, block)``.
Every read, simulation and write is recorded so tests can assert on them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest

from leverage_paths.core.boundary import BlockId, SimulatedRequest
from leverage_paths.core.utils.abi import encode_function_call


class FakeChainBoundary:
    def __init__(self, *, block_number: int = 100, timestamp: int = 1_700_000_000):
        self.block_number = block_number
        self.timestamp = timestamp
        self.handlers: dict[tuple[str, str], Any] = {}
        self.reads: list[tuple[str, str, tuple[Any, ...], BlockId]] = []
        self.simulations: list[SimulatedRequest] = []
        self.writes: list[SimulatedRequest] = []
        self.simulate_error: Exception | None = None
        self.write_error: Exception | None = None
        self.receipt_status = "success"

    def on(self, address: str, fn_name: str, handler: Any) -> FakeChainBoundary:
        self.handlers[(address.lower(), fn_name)] = handler
        return self

    async def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any] = (),
        *,
        chain_id: int,
        block_number: BlockId = None,
    ) -> Any:
        self.reads.append((address, fn_name, tuple(args), block_number))
        try:
            handler = self.handlers[(address.lower(), fn_name)]
        except KeyError:
            raise RuntimeError(f"no fake handler for {fn_name} on {address}") from None
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(tuple(args), block_number)
        return handler

    async def read_many(self, reads, *, chain_id: int, block_number: BlockId = None):
        return [
            await self.read(
                r.address,
                r.abi,
                r.fn_name,
                r.args,
                chain_id=chain_id,
                block_number=block_number,
            )
            for r in reads
        ]

    async def get_block_number(self, chain_id: int) -> int:
        return self.block_number

    async def get_block_timestamp(self, chain_id: int, block_number: BlockId = None) -> int:
        return self.timestamp

    async def simulate(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any],
        *,
        chain_id: int,
        account: str,
        value: int = 0,
    ) -> SimulatedRequest:
        if self.simulate_error is not None:
            raise self.simulate_error
        request = SimulatedRequest(
            chain_id=chain_id,
            account=account,
            to=address,
            data=encode_function_call(abi, fn_name, list(args)),
            value=value,
            result=(fn_name, tuple(args)),
        )
        self.simulations.append(request)
        return request

    async def write(self, request: SimulatedRequest) -> str:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(request)
        return "0x" + f"{len(self.writes):064x}"

    async def wait_for_receipt(self, txn_hash: str, *, chain_id: int) -> dict[str, Any]:
        return {"status": self.receipt_status, "transactionHash": txn_hash}


@pytest.fixture
def fake_chain() -> FakeChainBoundary:
    return FakeChainBoundary()
