from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

from leverage_paths.core.adapters.BaseAdapter import SwapQuoteAdapter
from leverage_paths.core.adapters.models import Call, Quote, QuoteRequest
from leverage_paths.core.boundary import ChainBoundary
from leverage_paths.core.constants.base import (
    ADAPTER_UNISWAP_V3,
    DEFAULT_SWAP_DEADLINE_S,
    ETH_SENTINEL,
)
from leverage_paths.core.constants.uniswap_abi import (
    UNISWAP_V3_QUOTER_ABI,
    UNISWAP_V3_SWAP_ROUTER_ABI,
)
from leverage_paths.core.errors import MissingClientError, MissingPoolConfigError
from leverage_paths.core.utils.abi import encode_function_call
from leverage_paths.core.utils.math import apply_slippage_ceiling, apply_slippage_floor


class UniswapV3QuoteAdapter(SwapQuoteAdapter):
    """Single-pool quotes through QuoterV2, settled with SwapRouter single hops.

    The pool is named by a key into the chain's pool table, so a leverage
    token only ever swaps through the pool it was configured with.
    """

    adapter_type = ADAPTER_UNISWAP_V3
    requires_client = True

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int,
        router: str,
        boundary: ChainBoundary | None,
        pool_key: str,
        chain_config: dict[str, str] | None,
        pool_config: dict[str, Any] | None,
        wrapped_native: str | None,
        slippage_bps: int,
        deadline_s: int = DEFAULT_SWAP_DEADLINE_S,
    ) -> None:
        super().__init__(
            "uniswap_v3_adapter",
            config,
            chain_id=chain_id,
            router=router,
            slippage_bps=slippage_bps,
        )
        if boundary is None:
            raise MissingClientError(chain_id)
        if not chain_config or not chain_config.get("quoter"):
            raise MissingPoolConfigError(chain_id)
        if not pool_config:
            raise MissingPoolConfigError(chain_id, pool_key)

        self.boundary = boundary
        self.pool_key = pool_key
        self.quoter = to_checksum_address(chain_config["quoter"])
        self.swap_router = to_checksum_address(chain_config["swap_router"])
        self.recipient = to_checksum_address(router)
        self.fee = int(pool_config["fee"])
        self.pool_tokens = {
            str(pool_config["token0"]).lower(),
            str(pool_config["token1"]).lower(),
        }
        self.wrapped_native = (
            to_checksum_address(wrapped_native) if wrapped_native else None
        )
        self.deadline_s = int(deadline_s)

    def _normalize_token(self, token: str) -> str:
        if token.lower() == ETH_SENTINEL.lower():
            if not self.wrapped_native:
                raise ValueError(
                    "Wrapped native token address required for ETH sentinel input"
                )
            return self.wrapped_native
        return to_checksum_address(token)

    def _pool_tokens(self, request: QuoteRequest) -> tuple[str, str]:
        token_in = self._normalize_token(request.in_token)
        token_out = self._normalize_token(request.out_token)
        if {token_in.lower(), token_out.lower()} != self.pool_tokens:
            raise ValueError(
                f"Tokens {token_in}/{token_out} do not match pool {self.pool_key}"
            )
        return token_in, token_out

    async def _quoter_amount(self, fn_name: str, params: dict[str, Any]) -> int:
        result = await self.boundary.read(
            self.quoter,
            UNISWAP_V3_QUOTER_ABI,
            fn_name,
            [params],
            chain_id=self.chain_id,
        )
        if isinstance(result, (list, tuple)):
            result = result[0]
        return int(result)

    async def quote(self, request: QuoteRequest) -> Quote:
        token_in, token_out = self._pool_tokens(request)
        native_in = request.in_token.lower() == ETH_SENTINEL.lower()
        slippage_bps = self.effective_slippage_bps(request)
        timestamp = await self.boundary.get_block_timestamp(self.chain_id)
        deadline = timestamp + self.deadline_s

        if request.intent == "exactOut":
            amount_out = int(request.amount_out or 0)
            amount_in = await self._quoter_amount(
                "quoteExactOutputSingle",
                {
                    "tokenIn": token_in,
                    "tokenOut": token_out,
                    "amount": amount_out,
                    "fee": self.fee,
                    "sqrtPriceLimitX96": 0,
                },
            )
            max_in = apply_slippage_ceiling(amount_in, slippage_bps)
            data = encode_function_call(
                UNISWAP_V3_SWAP_ROUTER_ABI,
                "exactOutputSingle",
                [
                    {
                        "tokenIn": token_in,
                        "tokenOut": token_out,
                        "fee": self.fee,
                        "recipient": self.recipient,
                        "deadline": deadline,
                        "amountOut": amount_out,
                        "amountInMaximum": max_in,
                        "sqrtPriceLimitX96": 0,
                    }
                ],
            )
            return Quote(
                out=amount_out,
                min_out=amount_out,
                amount_in=amount_in,
                max_in=max_in,
                approval_target=self.swap_router,
                calls=(
                    Call(
                        target=self.swap_router,
                        data=data,
                        value=max_in if native_in else 0,
                    ),
                ),
                wants_native_in=native_in,
                deadline=deadline,
                source=self.adapter_type,
                source_name="Uniswap V3",
            )

        amount_in = int(request.amount_in or 0)
        amount_out = await self._quoter_amount(
            "quoteExactInputSingle",
            {
                "tokenIn": token_in,
                "tokenOut": token_out,
                "amountIn": amount_in,
                "fee": self.fee,
                "sqrtPriceLimitX96": 0,
            },
        )
        min_out = apply_slippage_floor(amount_out, slippage_bps)
        data = encode_function_call(
            UNISWAP_V3_SWAP_ROUTER_ABI,
            "exactInputSingle",
            [
                {
                    "tokenIn": token_in,
                    "tokenOut": token_out,
                    "fee": self.fee,
                    "recipient": self.recipient,
                    "deadline": deadline,
                    "amountIn": amount_in,
                    "amountOutMinimum": min_out,
                    "sqrtPriceLimitX96": 0,
                }
            ],
        )
        return Quote(
            out=amount_out,
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
            source_name="Uniswap V3",
        )
