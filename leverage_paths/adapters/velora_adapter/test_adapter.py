from __future__ import annotations

import httpx
import pytest

from leverage_paths.adapters.velora_adapter.adapter import VeloraQuoteAdapter
from leverage_paths.core.adapters.models import QuoteRequest
from leverage_paths.core.constants.base import ETH_SENTINEL, ZERO_ADDRESS

ROUTER = "0xDbA92fC3dc10a17b96b6E807a908155C389A887C"
AUGUSTUS = "0x6A000F20005980200259B80c5102003040001068"
WEETH = "0x04C0599Ae5A44757c0af6F9eC3b93da8976c150A"
WETH = "0x4200000000000000000000000000000000000006"

BODY = {
    "priceRoute": {
        "srcAmount": "1100",
        "destAmount": "1000",
        "contractAddress": AUGUSTUS,
    },
    "txParams": {"to": AUGUSTUS, "data": "0xcafe", "value": "0"},
}


def _make_adapter(handler) -> VeloraQuoteAdapter:
    return VeloraQuoteAdapter(
        chain_id=8453,
        router=ROUTER,
        slippage_bps=40,
        decimals_lookup=lambda token, chain_id: 18,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestVeloraQuote:
    @pytest.mark.asyncio
    async def test_exact_out_uses_buy_side(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=BODY)

        adapter = _make_adapter(handler)
        quote = await adapter.quote(
            QuoteRequest(in_token=WEETH, out_token=WETH, intent="exactOut", amount_out=1000)
        )

        params = seen[0].url.params
        assert seen[0].url.path == "/swap"
        assert params["side"] == "BUY"
        assert params["amount"] == "1000"
        assert params["slippage"] == "40"
        assert params["version"] == "6.2"
        assert params["receiver"] == ROUTER
        assert params["srcDecimals"] == "18"

        assert quote.out == 1000
        assert quote.min_out == 1000
        assert quote.max_in == 1100
        assert quote.approval_target == AUGUSTUS
        assert quote.calls[0].target == AUGUSTUS

    @pytest.mark.asyncio
    async def test_native_input_maps_to_zero_address(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=BODY)

        adapter = _make_adapter(handler)
        quote = await adapter.quote(
            QuoteRequest(in_token=ETH_SENTINEL, out_token=WETH, intent="exactIn", amount_in=5)
        )

        assert seen[0].url.params["srcToken"] == ZERO_ADDRESS
        assert seen[0].url.params["side"] == "SELL"
        assert quote.wants_native_in is True

    @pytest.mark.asyncio
    async def test_error_body_raises(self):
        adapter = _make_adapter(
            lambda request: httpx.Response(200, json={"error": "No routes found"})
        )
        with pytest.raises(RuntimeError, match="No routes found"):
            await adapter.quote(
                QuoteRequest(in_token=WEETH, out_token=WETH, intent="exactIn", amount_in=5)
            )

    def test_unknown_decimals_rejected(self):
        adapter = VeloraQuoteAdapter(
            chain_id=8453,
            router=ROUTER,
            slippage_bps=40,
            decimals_lookup=lambda token, chain_id: None,
        )
        with pytest.raises(ValueError, match="Unknown decimals"):
            adapter.build_params(
                QuoteRequest(in_token=WEETH, out_token=WETH, intent="exactIn", amount_in=5)
            )
