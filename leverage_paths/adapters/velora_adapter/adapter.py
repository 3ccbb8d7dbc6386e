from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from eth_utils import to_checksum_address

from leverage_paths.core.adapters.BaseAdapter import SwapQuoteAdapter
from leverage_paths.core.adapters.models import Call, Quote, QuoteRequest
from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url
from leverage_paths.core.constants.base import (
    ADAPTER_VELORA,
    ETH_SENTINEL,
    ZERO_ADDRESS,
)
from leverage_paths.registry import get_token_decimals

VELORA_API_BASE_URL = "https://api.paraswap.io"
VELORA_API_VERSION = "6.2"


class VeloraQuoteAdapter(SwapQuoteAdapter):
    """Quotes from Velora (ParaSwap) ``/swap``, which returns price route and calldata.

    Velora reports only the expected destination amount; the slippage limit
    lives inside the calldata, so ``min_out`` equals ``out`` here.
    """

    adapter_type = ADAPTER_VELORA

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int,
        router: str,
        slippage_bps: int,
        from_address: str | None = None,
        base_url: str | None = None,
        decimals_lookup: Callable[[str, int], int | None] = get_token_decimals,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            "velora_adapter",
            config,
            chain_id=chain_id,
            router=router,
            slippage_bps=slippage_bps,
        )
        self.from_address = to_checksum_address(from_address or router)
        self.receiver = to_checksum_address(router)
        self.decimals_lookup = decimals_lookup
        self.http = JsonHttpClient(
            base_url or get_api_base_url("velora", VELORA_API_BASE_URL), client=client
        )

    @staticmethod
    def _normalize_token(token: str) -> str:
        if token.lower() == ETH_SENTINEL.lower():
            return ZERO_ADDRESS
        return to_checksum_address(token)

    def _decimals(self, token: str) -> int:
        if token.lower() == ETH_SENTINEL.lower():
            return 18
        decimals = self.decimals_lookup(token, self.chain_id)
        if decimals is None:
            raise ValueError(f"Unknown decimals for token {token}")
        return int(decimals)

    def build_params(self, request: QuoteRequest) -> dict[str, str]:
        params = {
            "srcToken": self._normalize_token(request.in_token),
            "destToken": self._normalize_token(request.out_token),
            "network": str(self.chain_id),
            "userAddress": self.from_address,
            "receiver": self.receiver,
            "version": VELORA_API_VERSION,
            "srcDecimals": str(self._decimals(request.in_token)),
            "destDecimals": str(self._decimals(request.out_token)),
            "slippage": str(self.effective_slippage_bps(request)),
        }
        if request.intent == "exactOut":
            params["side"] = "BUY"
            params["amount"] = str(int(request.amount_out or 0))
        else:
            params["side"] = "SELL"
            params["amount"] = str(int(request.amount_in or 0))
        return params

    async def quote(self, request: QuoteRequest) -> Quote:
        try:
            body = await self.http.get_json("/swap", params=self.build_params(request))
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(
                f"Velora quote failed: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        if isinstance(body, dict) and body.get("error"):
            self.logger.error(f"Velora error from API: {body['error']}")
            raise RuntimeError(f"Velora quote failed: {body['error']}")
        return self.map_response_to_quote(body, request)

    def map_response_to_quote(self, body: dict[str, Any], request: QuoteRequest) -> Quote:
        price_route = body.get("priceRoute") or {}
        tx_params = body.get("txParams") or {}
        approval_target = price_route.get("contractAddress")
        if not approval_target:
            raise ValueError("Velora quote missing contract address")
        data = tx_params.get("data")
        if not data:
            raise ValueError("Velora quote missing transaction data")

        out = int(price_route["destAmount"])
        max_in = int(price_route["srcAmount"])
        wants_native_in = request.in_token.lower() == ETH_SENTINEL.lower()
        value = int(str(tx_params.get("value") or "0"), 0)

        return Quote(
            out=out,
            min_out=out,
            amount_in=max_in,
            max_in=max_in,
            approval_target=to_checksum_address(approval_target),
            calls=(
                Call(
                    target=to_checksum_address(tx_params.get("to") or approval_target),
                    data=data,
                    value=value,
                ),
            ),
            wants_native_in=wants_native_in,
            source=self.adapter_type,
            source_name="Velora",
        )

    async def close(self) -> None:
        await self.http.close()
