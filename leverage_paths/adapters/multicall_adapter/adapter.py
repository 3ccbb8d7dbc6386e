from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from hexbytes import HexBytes

from leverage_paths.core.adapters.BaseAdapter import BaseAdapter
from leverage_paths.core.constants.contracts import MULTICALL3_ADDRESS
from leverage_paths.core.utils.abi import decode_function_result, encode_function_call

MULTICALL3_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "target", "type": "address"},
                    {"internalType": "bytes", "name": "callData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Call[]",
                "name": "calls",
                "type": "tuple[]",
            }
        ],
        "name": "aggregate",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes[]", "name": "returnData", "type": "bytes[]"},
        ],
        "stateMutability": "payable",
        "type": "function",
    },
]


@dataclass(frozen=True)
class ContractRead:
    address: str
    abi: list[dict[str, Any]] = field(hash=False)
    fn_name: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class MulticallCall:
    target: str
    call_data: bytes | str

    def as_tuple(self) -> tuple[str, bytes | str]:
        return self.target, self.call_data


@dataclass
class MulticallResult:
    block_number: int
    return_data: Sequence[bytes]


class MulticallAdapter(BaseAdapter):
    """Batches view calls through Multicall3 so they share one block."""

    adapter_type = "MULTICALL"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        web3: Any | None = None,
        address: str | None = None,
    ) -> None:
        super().__init__("multicall_adapter", config)

        if web3 is None:
            raise ValueError("MulticallAdapter requires web3 instance")
        self.web3 = web3

        checksum_address = self.web3.to_checksum_address(address or MULTICALL3_ADDRESS)
        self.contract = self.web3.eth.contract(
            address=checksum_address, abi=MULTICALL3_ABI
        )

    async def aggregate(
        self,
        calls: Iterable[MulticallCall | tuple[str, bytes | str]],
        *,
        block_identifier: str | int | None = None,
    ) -> MulticallResult:
        calls_list = list(calls)
        if not calls_list:
            return MulticallResult(block_number=0, return_data=[])

        encoded_calls = [self._coerce_call(call) for call in calls_list]

        call_fn = self.contract.functions.aggregate(encoded_calls).call
        if block_identifier is None:
            block_number, return_data = await call_fn()
        else:
            block_number, return_data = await call_fn(block_identifier=block_identifier)
        payload = tuple(self._normalize_call_data(r) for r in return_data)
        return MulticallResult(block_number=int(block_number), return_data=payload)

    async def read_many(
        self,
        reads: Sequence[ContractRead],
        *,
        block_identifier: str | int | None = None,
    ) -> list[Any]:
        calls = [
            self.build_call(r.address, encode_function_call(r.abi, r.fn_name, r.args))
            for r in reads
        ]
        result = await self.aggregate(calls, block_identifier=block_identifier)
        self.logger.debug(
            f"Multicall of {len(calls)} reads at block {result.block_number}"
        )
        return [
            decode_function_result(r.abi, r.fn_name, data)
            for r, data in zip(reads, result.return_data, strict=True)
        ]

    def build_call(self, target: str, call_data: bytes | str) -> MulticallCall:
        checksum = self.web3.to_checksum_address(target)
        return MulticallCall(target=checksum, call_data=self._normalize_call_data(call_data))

    def _coerce_call(
        self, call: MulticallCall | tuple[str, bytes | str]
    ) -> tuple[str, bytes]:
        target, call_data = call.as_tuple() if isinstance(call, MulticallCall) else call
        return (
            self.web3.to_checksum_address(target),
            self._normalize_call_data(call_data),
        )

    @staticmethod
    def _normalize_call_data(data: bytes | str) -> bytes:
        if isinstance(data, (bytes, bytearray, HexBytes)):
            return bytes(data)
        if isinstance(data, str):
            if data.startswith("0x"):
                return bytes.fromhex(data[2:])
            return data.encode()
        raise TypeError("Unsupported calldata type")
