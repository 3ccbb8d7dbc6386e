from __future__ import annotations

import pytest
from eth_utils import function_signature_to_4byte_selector

from leverage_paths.adapters.uniswap_v2_adapter.adapter import UniswapV2QuoteAdapter
from leverage_paths.core.adapters.models import QuoteRequest
from leverage_paths.core.constants.base import ETH_SENTINEL
from leverage_paths.core.errors import MissingClientError, MissingWrappedNativeError
from leverage_paths.testing.fake_chain import FakeChainBoundary

SWAP_ROUTER = "0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24"
LEVERAGE_ROUTER = "0xDbA92fC3dc10a17b96b6E807a908155C389A887C"
WETH = "0x4200000000000000000000000000000000000006"
WEETH = "0x04C0599Ae5A44757c0af6F9eC3b93da8976c150A"


def _selector(signature: str) -> str:
    return "0x" + function_signature_to_4byte_selector(signature).hex()


def _make_adapter(boundary, **overrides) -> UniswapV2QuoteAdapter:
    kwargs = {
        "chain_id": 8453,
        "router": LEVERAGE_ROUTER,
        "swap_router": SWAP_ROUTER,
        "boundary": boundary,
        "wrapped_native": WETH,
        "slippage_bps": 50,
    }
    kwargs.update(overrides)
    return UniswapV2QuoteAdapter(**kwargs)


class TestConstruction:
    def test_requires_client(self):
        with pytest.raises(MissingClientError):
            _make_adapter(None)

    def test_requires_wrapped_native(self, fake_chain):
        with pytest.raises(MissingWrappedNativeError):
            _make_adapter(fake_chain, wrapped_native=None)

    def test_rejects_bad_slippage(self, fake_chain):
        with pytest.raises(ValueError, match="Invalid slippage"):
            _make_adapter(fake_chain, slippage_bps=10_001)

    def test_flags(self, fake_chain):
        adapter = _make_adapter(fake_chain)
        assert adapter.requires_client is True
        assert adapter.adapter_type == "uniswapV2"


class TestExactIn:
    @pytest.mark.asyncio
    async def test_token_swap(self):
        chain = FakeChainBoundary(timestamp=1_000)
        chain.on(SWAP_ROUTER, "getAmountsOut", lambda args, block: [args[0], 2_000])
        adapter = _make_adapter(chain)

        quote = await adapter(
            QuoteRequest(
                in_token=WETH, out_token=WEETH, intent="exactIn", amount_in=1_000
            )
        )

        assert quote.out == 2_000
        assert quote.min_out == 1_990
        assert quote.deadline == 1_900
        assert quote.wants_native_in is False
        assert quote.approval_target.lower() == SWAP_ROUTER
        assert len(quote.calls) == 1
        assert quote.calls[0].value == 0
        assert quote.calls[0].data.startswith(
            _selector("swapExactTokensForTokens(uint256,uint256,address[],address,uint256)")
        )
        _, _, args, _ = chain.reads[0]
        assert args[1][0] == WETH

    @pytest.mark.asyncio
    async def test_native_input_uses_wrapped_path(self, fake_chain):
        fake_chain.on(SWAP_ROUTER, "getAmountsOut", [5, 10])
        adapter = _make_adapter(fake_chain)

        quote = await adapter.quote(
            QuoteRequest(
                in_token=ETH_SENTINEL, out_token=WEETH, intent="exactIn", amount_in=5
            )
        )

        assert quote.wants_native_in is True
        assert quote.calls[0].value == 5
        assert quote.calls[0].data.startswith(
            _selector("swapExactETHForTokens(uint256,address[],address,uint256)")
        )
        _, _, args, _ = fake_chain.reads[0]
        assert args[1][0] == WETH

    @pytest.mark.asyncio
    async def test_request_slippage_overrides_default(self, fake_chain):
        fake_chain.on(SWAP_ROUTER, "getAmountsOut", [1, 10_000])
        adapter = _make_adapter(fake_chain)

        quote = await adapter.quote(
            QuoteRequest(
                in_token=WETH,
                out_token=WEETH,
                intent="exactIn",
                amount_in=1,
                slippage_bps=100,
            )
        )

        assert quote.min_out == 9_900


class TestExactOut:
    @pytest.mark.asyncio
    async def test_max_in_rounds_up(self, fake_chain):
        fake_chain.on(SWAP_ROUTER, "getAmountsIn", [1_001, 500])
        adapter = _make_adapter(fake_chain)

        quote = await adapter.quote(
            QuoteRequest(
                in_token=WEETH, out_token=WETH, intent="exactOut", amount_out=500
            )
        )

        assert quote.out == 500
        assert quote.amount_in == 1_001
        assert quote.max_in == 1_007
        assert quote.calls[0].data.startswith(
            _selector("swapTokensForExactTokens(uint256,uint256,address[],address,uint256)")
        )
