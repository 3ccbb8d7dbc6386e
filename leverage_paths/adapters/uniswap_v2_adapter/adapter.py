from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

from leverage_paths.core.adapters.BaseAdapter import SwapQuoteAdapter
from leverage_paths.core.adapters.models import Call, Quote, QuoteRequest
from leverage_paths.core.boundary import ChainBoundary
from leverage_paths.core.constants.base import (
    ADAPTER_UNISWAP_V2,
    DEFAULT_SWAP_DEADLINE_S,
    ETH_SENTINEL,
)
from leverage_paths.core.constants.uniswap_abi import UNISWAP_V2_ROUTER_ABI
from leverage_paths.core.errors import MissingClientError, MissingWrappedNativeError
from leverage_paths.core.utils.abi import encode_function_call
from leverage_paths.core.utils.math import apply_slippage_ceiling, apply_slippage_floor


class UniswapV2QuoteAdapter(SwapQuoteAdapter):
    """Constant-product router quotes read straight from the pair reserves."""

    adapter_type = ADAPTER_UNISWAP_V2
    requires_client = True

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int,
        router: str,
        swap_router: str,
        boundary: ChainBoundary | None,
        wrapped_native: str | None,
        slippage_bps: int,
        deadline_s: int = DEFAULT_SWAP_DEADLINE_S,
    ) -> None:
        super().__init__(
            "uniswap_v2_adapter",
            config,
            chain_id=chain_id,
            router=router,
            slippage_bps=slippage_bps,
        )
        if boundary is None:
            raise MissingClientError(chain_id)
        if not wrapped_native:
            raise MissingWrappedNativeError(chain_id)
        self.boundary = boundary
        self.swap_router = to_checksum_address(swap_router)
        self.recipient = to_checksum_address(router)
        self.wrapped_native = to_checksum_address(wrapped_native)
        self.deadline_s = int(deadline_s)

    def _path(self, request: QuoteRequest) -> tuple[list[str], bool]:
        native_in = request.in_token.lower() == ETH_SENTINEL.lower()
        token_in = self.wrapped_native if native_in else to_checksum_address(request.in_token)
        return [token_in, to_checksum_address(request.out_token)], native_in

    async def _deadline(self) -> int:
        timestamp = await self.boundary.get_block_timestamp(self.chain_id)
        return timestamp + self.deadline_s

    async def quote(self, request: QuoteRequest) -> Quote:
        path, native_in = self._path(request)
        slippage_bps = self.effective_slippage_bps(request)

        if request.intent == "exactOut":
            if native_in:
                raise ValueError("Uniswap V2 exact-out does not support native input")
            return await self._quote_exact_out(request, path, slippage_bps)

        amount_in = int(request.amount_in or 0)
        amounts = await self.boundary.read(
            self.swap_router,
            UNISWAP_V2_ROUTER_ABI,
            "getAmountsOut",
            [amount_in, path],
            chain_id=self.chain_id,
        )
        if not amounts:
            raise ValueError("UniswapV2 router returned no output amount")
        out = int(amounts[-1])
        min_out = apply_slippage_floor(out, slippage_bps)
        deadline = await self._deadline()

        if native_in:
            data = encode_function_call(
                UNISWAP_V2_ROUTER_ABI,
                "swapExactETHForTokens",
                [min_out, path, self.recipient, deadline],
            )
        else:
            data = encode_function_call(
                UNISWAP_V2_ROUTER_ABI,
                "swapExactTokensForTokens",
                [amount_in, min_out, path, self.recipient, deadline],
            )

        return Quote(
            out=out,
            min_out=min_out,
            amount_in=amount_in,
            max_in=amount_in,
            approval_target=self.swap_router,
            calls=(
                Call(
                    target=self.swap_router,
                    data=data,
                    value=amount_in if native_in else 0,
                ),
            ),
            wants_native_in=native_in,
            deadline=deadline,
            source=self.adapter_type,
            source_name="Uniswap V2",
        )

    async def _quote_exact_out(
        self, request: QuoteRequest, path: list[str], slippage_bps: int
    ) -> Quote:
        amount_out = int(request.amount_out or 0)
        if amount_out <= 0:
            raise ValueError("Uniswap V2 exact-out requires positive amount_out")
        amounts = await self.boundary.read(
            self.swap_router,
            UNISWAP_V2_ROUTER_ABI,
            "getAmountsIn",
            [amount_out, path],
            chain_id=self.chain_id,
        )
        required_in = int(amounts[0])
        max_in = apply_slippage_ceiling(required_in, slippage_bps)
        deadline = await self._deadline()
        data = encode_function_call(
            UNISWAP_V2_ROUTER_ABI,
            "swapTokensForExactTokens",
            [amount_out, max_in, path, self.recipient, deadline],
        )
        return Quote(
            out=amount_out,
            min_out=amount_out,
            amount_in=required_in,
            max_in=max_in,
            approval_target=self.swap_router,
            calls=(Call(target=self.swap_router, data=data),),
            deadline=deadline,
            source=self.adapter_type,
            source_name="Uniswap V2",
        )
