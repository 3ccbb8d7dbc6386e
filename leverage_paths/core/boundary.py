"""Read/simulate/write boundary to the chain.

Planners, quote adapters and the yield fetchers only ever talk to the chain
through ``ChainBoundary``; ``Web3ChainBoundary`` is the default implementation
over the configured RPCs, and tests substitute small fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from web3 import AsyncWeb3

from leverage_paths.adapters.multicall_adapter.adapter import (
    ContractRead,
    MulticallAdapter,
)
from leverage_paths.core.errors import (
    TransactionRevertedError,
    WalletNotConnectedError,
)
from leverage_paths.core.utils.abi import decode_function_result, encode_function_call
from leverage_paths.core.utils.transaction import (
    SignCallback,
    send_transaction,
    wait_for_transaction_receipt,
)
from leverage_paths.core.utils.web3 import get_web3_from_chain_id

BlockId = int | Literal["latest"] | None


@dataclass(frozen=True)
class SimulatedRequest:
    chain_id: int
    account: str
    to: str
    data: str
    value: int = 0
    result: Any = field(default=None, compare=False)

    def as_transaction(self) -> dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "from": self.account,
            "to": self.to,
            "data": self.data,
            "value": self.value,
        }


class ChainBoundary(Protocol):
    async def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: Sequence[Any] = (),
        *,
        chain_id: int,
        block_number: BlockId = None,
    ) -> Any: ...

    async def read_many(
        self,
        reads: Sequence[ContractRead],
        *,
        chain_id: int,
        block_number: BlockId = None,
    ) -> list[Any]: ...

    async def get_block_number(self, chain_id: int) -> int: ...

    async def get_block_timestamp(
        self, chain_id: int, block_number: BlockId = None
    ) -> int: ...

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
    ) -> SimulatedRequest: ...

    async def write(self, request: SimulatedRequest) -> str: ...

    async def wait_for_receipt(self, txn_hash: str, *, chain_id: int) -> dict[str, Any]: ...


class Web3ChainBoundary:
    def __init__(
        self,
        *,
        sign_callback: SignCallback | None = None,
        web3_factory: Callable[[int], AsyncWeb3] = get_web3_from_chain_id,
    ) -> None:
        self.sign_callback = sign_callback
        self._web3_factory = web3_factory
        self._web3s: dict[int, AsyncWeb3] = {}

    def web3(self, chain_id: int) -> AsyncWeb3:
        web3 = self._web3s.get(int(chain_id))
        if web3 is None:
            web3 = self._web3_factory(int(chain_id))
            self._web3s[int(chain_id)] = web3
        return web3

    async def close(self) -> None:
        web3s, self._web3s = self._web3s, {}
        for web3 in web3s.values():
            await web3.provider.disconnect()

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
        web3 = self.web3(chain_id)
        data = encode_function_call(abi, fn_name, list(args))
        raw = await web3.eth.call(
            {"to": web3.to_checksum_address(address), "data": data},
            block_identifier=block_number if block_number is not None else "latest",
        )
        return decode_function_result(abi, fn_name, raw)

    async def read_many(
        self,
        reads: Sequence[ContractRead],
        *,
        chain_id: int,
        block_number: BlockId = None,
    ) -> list[Any]:
        multicall = MulticallAdapter(web3=self.web3(chain_id))
        return await multicall.read_many(reads, block_identifier=block_number)

    async def get_block_number(self, chain_id: int) -> int:
        return int(await self.web3(chain_id).eth.block_number)

    async def get_block_timestamp(self, chain_id: int, block_number: BlockId = None) -> int:
        block = await self.web3(chain_id).eth.get_block(
            block_number if block_number is not None else "latest"
        )
        return int(block["timestamp"])

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
        if not account:
            raise WalletNotConnectedError()
        web3 = self.web3(chain_id)
        request = SimulatedRequest(
            chain_id=int(chain_id),
            account=web3.to_checksum_address(account),
            to=web3.to_checksum_address(address),
            data=encode_function_call(abi, fn_name, list(args)),
            value=int(value),
        )
        raw = await web3.eth.call(request.as_transaction(), block_identifier="latest")
        return SimulatedRequest(
            chain_id=request.chain_id,
            account=request.account,
            to=request.to,
            data=request.data,
            value=request.value,
            result=raw,
        )

    async def write(self, request: SimulatedRequest) -> str:
        if self.sign_callback is None:
            raise WalletNotConnectedError("No signer configured for writes")
        return await send_transaction(
            self.web3(request.chain_id), request.as_transaction(), self.sign_callback
        )

    async def wait_for_receipt(self, txn_hash: str, *, chain_id: int) -> dict[str, Any]:
        try:
            receipt = await wait_for_transaction_receipt(self.web3(chain_id), txn_hash)
        except TransactionRevertedError as exc:
            return {**exc.receipt, "status": "reverted", "transactionHash": txn_hash}
        return {**receipt, "status": "success", "transactionHash": txn_hash}
