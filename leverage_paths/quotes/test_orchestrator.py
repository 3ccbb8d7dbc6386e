from __future__ import annotations

import pytest

from leverage_paths.adapters.lifi_adapter.adapter import LifiQuoteAdapter
from leverage_paths.adapters.uniswap_v3_adapter.adapter import UniswapV3QuoteAdapter
from leverage_paths.core.errors import (
    MissingChainConfigError,
    MissingClientError,
    MissingPoolConfigError,
)
from leverage_paths.quotes.orchestrator import resolve_intent, resolve_quote
from leverage_paths.registry import LifiSwap, UniswapV2Swap, UniswapV3Swap, VeloraSwap

ROUTER = "0xDbA92fC3dc10a17b96b6E807a908155C389A887C"


def _no_client(chain_id):
    return None


def _resolve(**overrides):
    kwargs = {
        "chain_id": 1,
        "router_address": ROUTER,
        "swap": LifiSwap(),
        "slippage_bps": 50,
        "requires_quote": True,
        "get_client": _no_client,
    }
    kwargs.update(overrides)
    return resolve_quote(**kwargs)


class TestStatusPrecedence:
    def test_not_required_wins(self):
        result = _resolve(requires_quote=False, swap=None, router_address=None)
        assert result.status == "not-required"
        assert result.quote is None
        assert result.error is None

    def test_missing_config_before_router(self):
        result = _resolve(swap=None, router_address=None)
        assert result.status == "missing-config"

    def test_missing_router(self):
        result = _resolve(router_address=None)
        assert result.status == "missing-router"
        assert result.adapter_type == "lifi"

    def test_missing_client(self):
        result = _resolve(swap=UniswapV3Swap(pool_key="usdc-cbbtc"))
        assert result.status == "missing-client"
        assert isinstance(result.error, MissingClientError)

    def test_missing_chain_config(self, fake_chain):
        result = _resolve(
            chain_id=8453,
            swap=UniswapV3Swap(pool_key="usdc-cbbtc"),
            get_client=lambda chain_id: fake_chain,
        )
        assert result.status == "missing-chain-config"
        assert isinstance(result.error, MissingPoolConfigError)

    def test_missing_pool_is_chain_config(self, fake_chain):
        result = _resolve(
            swap=UniswapV3Swap(pool_key="unknown"),
            get_client=lambda chain_id: fake_chain,
        )
        assert result.status == "missing-chain-config"
        assert isinstance(result.error, MissingChainConfigError)

    def test_missing_wrapped_native_is_chain_config(self, fake_chain):
        result = _resolve(
            chain_id=10,
            swap=UniswapV2Swap(router="0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24"),
            get_client=lambda chain_id: fake_chain,
        )
        assert result.status == "missing-chain-config"

    def test_other_construction_failures_are_errors(self):
        result = _resolve(slippage_bps=20_000)
        assert result.status == "error"
        assert isinstance(result.error, ValueError)
        assert result.quote is None


class TestReady:
    def test_lifi_ready_without_client(self):
        result = _resolve(swap=LifiSwap(allow_bridges="none"))
        assert result.ready
        assert isinstance(result.adapter, LifiQuoteAdapter)
        assert result.adapter.allow_bridges == "none"
        assert result.quote is result.adapter
        assert result.intent == "exactIn"

    def test_uniswap_v3_ready_with_client(self, fake_chain):
        result = _resolve(
            swap=UniswapV3Swap(pool_key="usdc-cbbtc"),
            get_client=lambda chain_id: fake_chain,
            direction="redeem",
        )
        assert result.status == "ready"
        assert isinstance(result.adapter, UniswapV3QuoteAdapter)
        assert result.intent == "exactOut"

    def test_velora_redeem_is_exact_out(self):
        result = _resolve(swap=VeloraSwap(), direction="redeem")
        assert result.status == "ready"
        assert result.intent == "exactOut"


@pytest.mark.parametrize(
    ("adapter_type", "direction", "expected"),
    [
        ("lifi", "mint", "exactIn"),
        ("uniswapV3", "mint", "exactIn"),
        ("lifi", "redeem", "exactIn"),
        ("uniswapV2", "redeem", "exactIn"),
        ("uniswapV3", "redeem", "exactOut"),
        ("velora", "redeem", "exactOut"),
        (None, "redeem", "exactOut"),
    ],
)
def test_resolve_intent(adapter_type, direction, expected):
    assert resolve_intent(adapter_type, direction) == expected
