from __future__ import annotations

from typing import Any, Literal

import httpx
from eth_utils import to_checksum_address

from leverage_paths.core.adapters.BaseAdapter import SwapQuoteAdapter
from leverage_paths.core.adapters.models import Call, Quote, QuoteRequest
from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import (
    get_api_base_url,
    get_lifi_api_key,
    get_lifi_integrator,
)
from leverage_paths.core.constants.base import (
    ADAPTER_LIFI,
    BPS_DENOMINATOR,
    ETH_SENTINEL,
)

LIFI_API_BASE_URL = "https://li.quest"

LifiOrder = Literal["CHEAPEST", "FASTEST"]


def bps_to_decimal_string(bps: int) -> str:
    return str(int(bps) / BPS_DENOMINATOR)


class LifiQuoteAdapter(SwapQuoteAdapter):
    """Same-chain swap quotes from LiFi's ``/v1/quote`` endpoint.

    LiFi only quotes a sell amount, so this adapter is exact-in only. The
    swap runs inside the leverage router flow, so ``fromAddress`` defaults to
    the router (or the multicall executor when one holds the tokens).
    """

    adapter_type = ADAPTER_LIFI
    supports_exact_out = False

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int,
        router: str,
        slippage_bps: int,
        from_address: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        integrator: str | None = None,
        order: LifiOrder = "CHEAPEST",
        allow_bridges: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(
            "lifi_adapter",
            config,
            chain_id=chain_id,
            router=router,
            slippage_bps=slippage_bps,
        )
        self.from_address = to_checksum_address(from_address or router)
        self.api_key = api_key if api_key is not None else get_lifi_api_key()
        self.integrator = integrator if integrator is not None else get_lifi_integrator()
        self.order = order
        self.allow_bridges = allow_bridges
        headers = {"x-lifi-api-key": self.api_key} if self.api_key else None
        self.http = JsonHttpClient(
            base_url or get_api_base_url("lifi", LIFI_API_BASE_URL),
            client=client,
            headers=headers,
        )

    def build_params(self, request: QuoteRequest) -> dict[str, str]:
        params = {
            "fromChain": str(self.chain_id),
            "toChain": str(self.chain_id),
            "fromToken": to_checksum_address(request.in_token),
            "toToken": to_checksum_address(request.out_token),
            "fromAmount": str(int(request.amount_in or 0)),
            "fromAddress": self.from_address,
            "slippage": bps_to_decimal_string(self.effective_slippage_bps(request)),
            "order": self.order,
        }
        if self.integrator:
            params["integrator"] = self.integrator
        if self.allow_bridges:
            params["allowBridges"] = self.allow_bridges
        return params

    async def quote(self, request: QuoteRequest) -> Quote:
        if request.intent == "exactOut":
            raise ValueError("LiFi adapter does not support exact-out quotes")
        self.logger.debug(f"LiFi quote (api key set: {bool(self.api_key)})")
        try:
            step = await self.http.get_json("/v1/quote", params=self.build_params(request))
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(
                f"LiFi quote failed: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        return self.map_step_to_quote(step, request)

    def map_step_to_quote(self, step: dict[str, Any], request: QuoteRequest) -> Quote:
        estimate = step.get("estimate") or {}
        tx = step.get("transactionRequest") or {}
        approval_target = estimate.get("approvalAddress") or tx.get("to")
        if not approval_target:
            raise ValueError("LiFi quote missing approval target")
        data = tx.get("data")
        if not data:
            raise ValueError("LiFi quote missing transaction data")

        out_str = estimate.get("toAmountMin") or estimate.get("toAmount")
        out = int(out_str) if out_str else 0
        amount_in = int(request.amount_in or 0)
        wants_native_in = request.in_token.lower() == ETH_SENTINEL.lower()
        target = tx.get("to") or approval_target
        value = int(str(tx.get("value") or "0"), 0)

        return Quote(
            out=out,
            min_out=out,
            amount_in=amount_in,
            max_in=amount_in,
            approval_target=to_checksum_address(approval_target),
            calls=(Call(target=to_checksum_address(target), data=data, value=value),),
            wants_native_in=wants_native_in,
            source=self.adapter_type,
            source_name=(step.get("toolDetails") or {}).get("name") or "LiFi",
        )

    async def close(self) -> None:
        await self.http.close()
