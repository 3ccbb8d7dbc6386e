from __future__ import annotations

import dataclasses

import pytest
from eth_utils import function_signature_to_4byte_selector

from leverage_paths.core.adapters.models import Call, Quote, QuoteRequest
from leverage_paths.core.constants.base import ETH_SENTINEL
from leverage_paths.core.errors import PlanningError
from leverage_paths.core.utils.math import apply_slippage_floor, mul_div, mul_div_ceil
from leverage_paths.planner.redeem import plan_redeem, validate_redeem_plan
from leverage_paths.registry import AssetConfig, LeverageTokenConfig
from leverage_paths.testing.fake_chain import FakeChainBoundary

MANAGER = "0x38Ba21C6Bf31dF1b1798FCEd07B4e9b07C5ec3a8"
TOKEN = "0x17533ef332083aD03417DEe7BC058D10e18b22c5"
WEETH = "0x04C0599Ae5A44757c0af6F9eC3b93da8976c150A"
WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
SWAPPER = "0x1111111111111111111111111111111111111111"
ONE = 10**18

CONFIG = LeverageTokenConfig(
    address=TOKEN,
    chain_id=8453,
    symbol="WEETH-WETH-2x",
    leverage_ratio=2,
    collateral_asset=AssetConfig(address=WEETH, decimals=18, symbol="weETH"),
    debt_asset=AssetConfig(address=WETH, decimals=18, symbol="WETH"),
)
NATIVE_CONFIG = LeverageTokenConfig(
    address=TOKEN,
    chain_id=8453,
    symbol="WETH-USDC-2x",
    leverage_ratio=2,
    collateral_asset=AssetConfig(address=WETH, decimals=18, symbol="WETH"),
    debt_asset=AssetConfig(address=USDC, decimals=6, symbol="USDC"),
)


class _Prices:
    def __init__(self, prices=None, error=None):
        self.prices = prices or {}
        self.error = error

    async def get_usd_prices(self, addresses, chain_id):
        if self.error is not None:
            raise self.error
        return self.prices


PRICES = _Prices({WEETH.lower(): 2000.0, WETH.lower(): 2000.0})


class _Quoter:
    """Quotes at ``rate_bps`` for exact-in and charges ``max_in_bps`` for exact-out."""

    def __init__(self, *, rate_bps=10_000, max_in_bps=10_020, max_in=None):
        self.rate_bps = rate_bps
        self.max_in_bps = max_in_bps
        self.max_in = max_in
        self.requests: list[QuoteRequest] = []

    async def __call__(self, request: QuoteRequest) -> Quote:
        self.requests.append(request)
        calls = (Call(target=SWAPPER, data="0xabcd"),)
        if request.intent == "exactOut":
            max_in = self.max_in
            if max_in is None:
                max_in = mul_div_ceil(request.amount_out, self.max_in_bps, 10_000)
            return Quote(
                out=request.amount_out,
                min_out=request.amount_out,
                amount_in=max_in,
                max_in=max_in,
                approval_target=SWAPPER,
                calls=calls,
            )
        out = mul_div(request.amount_in, self.rate_bps, 10_000)
        return Quote(
            out=out,
            min_out=apply_slippage_floor(out, request.slippage_bps or 0),
            amount_in=request.amount_in,
            max_in=request.amount_in,
            approval_target=SWAPPER,
            calls=calls,
        )


def _chain(collateral=2 * ONE, debt=ONE) -> FakeChainBoundary:
    chain = FakeChainBoundary(block_number=900)
    chain.on(
        MANAGER,
        "previewRedeem",
        {
            "collateral": collateral,
            "debt": debt,
            "equity": ONE,
            "shares": ONE,
            "tokenFee": 0,
            "treasuryFee": 0,
        },
    )
    return chain


async def _plan(chain=None, *, config=CONFIG, quoter=None, **kwargs):
    params = {
        "shares_to_redeem": ONE,
        "slippage_bps": 50,
        "quote_collateral_to_debt": quoter or _Quoter(),
        "manager": MANAGER,
        "price_source": PRICES,
    }
    params.update(kwargs)
    return await plan_redeem(chain or _chain(), config, **params)


@pytest.mark.parametrize("shares", [None, 0])
@pytest.mark.asyncio
async def test_nothing_to_redeem(shares):
    chain = _chain()
    assert await _plan(chain, shares_to_redeem=shares) is None
    assert chain.reads == []


@pytest.mark.asyncio
async def test_negative_shares_rejected():
    with pytest.raises(PlanningError, match="negative"):
        await _plan(shares_to_redeem=-1)


@pytest.mark.asyncio
async def test_preview_failure_is_chained():
    chain = _chain()
    chain.on(MANAGER, "previewRedeem", RuntimeError("execution reverted"))
    with pytest.raises(PlanningError, match="Redeem preview failed") as exc_info:
        await _plan(chain)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestExactOutWithPrices:
    @pytest.mark.asyncio
    async def test_plan(self):
        quoter = _Quoter()
        chain = _chain()

        plan = await _plan(chain, quoter=quoter)

        assert plan.min_collateral_for_sender == 995 * ONE // 1000
        assert plan.collateral_to_debt_quote.max_in == 1002 * ONE // 1000
        assert plan.preview_collateral_for_sender == 998 * ONE // 1000
        assert plan.min_collateral_for_sender <= plan.preview_collateral_for_sender
        assert plan.preview_excess_debt == 0
        assert plan.min_excess_debt == 0
        assert plan.expected_debt == ONE
        assert plan.expected_total_collateral == 2 * ONE
        assert plan.payout_asset == WEETH
        assert plan.expected_usd_out == pytest.approx(1996.0)
        assert plan.guaranteed_usd_out == pytest.approx(1990.0)
        assert plan.block_number == 900
        assert validate_redeem_plan(plan)

        (request,) = quoter.requests
        assert request.intent == "exactOut"
        assert request.in_token == WEETH
        assert request.amount_out == ONE

        approve, swap = plan.calls
        assert approve.target == WEETH
        selector = function_signature_to_4byte_selector("approve(address,uint256)").hex()
        assert approve.data.startswith("0x" + selector)
        assert swap.target == SWAPPER

    @pytest.mark.asyncio
    async def test_swap_above_available_collateral(self):
        with pytest.raises(PlanningError, match="Try increasing slippage"):
            await _plan(slippage_bps=10)

    @pytest.mark.asyncio
    async def test_min_never_exceeds_preview(self):
        for bps in (0, 1, 25, 50, 100, 1_000, 5_000, 10_000):
            try:
                plan = await _plan(slippage_bps=bps)
            except PlanningError:
                continue
            assert plan.min_collateral_for_sender <= plan.preview_collateral_for_sender
            assert plan.min_excess_debt >= 0


class TestExactIn:
    @pytest.mark.asyncio
    async def test_spends_available_collateral(self):
        quoter = _Quoter()
        plan = await _plan(quoter=quoter, intent="exactIn")

        (request,) = quoter.requests
        assert request.intent == "exactIn"
        assert request.amount_in == 1005 * ONE // 1000
        assert plan.preview_collateral_for_sender == 995 * ONE // 1000
        assert plan.min_collateral_for_sender == 995 * ONE // 1000
        assert plan.preview_excess_debt == 5 * ONE // 1000
        assert plan.expected_debt_payout == plan.preview_excess_debt

    @pytest.mark.asyncio
    async def test_output_below_debt(self):
        with pytest.raises(PlanningError, match="Try increasing slippage"):
            await _plan(quoter=_Quoter(rate_bps=9_900), intent="exactIn")

    @pytest.mark.asyncio
    async def test_quote_failure_is_chained(self):
        async def _failing(request):
            raise RuntimeError("LiFi quote failed: 404 Not Found")

        with pytest.raises(PlanningError, match="404") as exc_info:
            await _plan(quoter=_failing, intent="exactIn")
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestWithoutPrices:
    @pytest.mark.asyncio
    async def test_exact_out_bounds_from_quote(self):
        plan = await _plan(price_source=None)

        estimated = 2 * ONE - 1002 * ONE // 1000
        assert plan.min_collateral_for_sender == apply_slippage_floor(estimated, 50)
        assert plan.preview_collateral_for_sender == estimated
        assert plan.expected_usd_out is None
        assert plan.guaranteed_usd_out is None

    @pytest.mark.asyncio
    async def test_exact_in_has_no_floor(self):
        plan = await _plan(price_source=None, intent="exactIn")

        assert plan.min_collateral_for_sender == 0
        assert plan.collateral_to_debt_quote.amount_in == 2 * ONE
        assert plan.preview_collateral_for_sender == 0
        assert plan.preview_excess_debt == ONE

    @pytest.mark.asyncio
    async def test_price_failure_degrades(self):
        plan = await _plan(price_source=_Prices(error=RuntimeError("price api down")))
        assert plan.expected_usd_out is None
        assert plan.min_collateral_for_sender > 0

    @pytest.mark.asyncio
    async def test_missing_debt_price_uses_quote_floor(self):
        only_collateral = _Prices({WEETH.lower(): 2000.0})

        plan = await _plan(price_source=only_collateral)
        unpriced = await _plan(price_source=None)

        assert plan.min_collateral_for_sender == unpriced.min_collateral_for_sender
        assert plan.preview_collateral_for_sender == 2 * ONE - 1002 * ONE // 1000
        assert plan.expected_usd_out is None


@pytest.mark.asyncio
async def test_native_collateral_unwraps_and_pays_value():
    chain = _chain(collateral=2 * ONE, debt=2000 * 10**6)
    quoter = _Quoter(max_in=1001 * ONE // 1000)
    prices = _Prices({WETH.lower(): 2000.0, USDC.lower(): 1.0})

    plan = await _plan(chain, config=NATIVE_CONFIG, quoter=quoter, price_source=prices)

    (request,) = quoter.requests
    assert request.in_token == ETH_SENTINEL
    assert request.out_token == USDC

    withdraw, swap = plan.calls
    assert withdraw.target == WETH
    selector = function_signature_to_4byte_selector("withdraw(uint256)").hex()
    assert withdraw.data.startswith("0x" + selector)
    assert swap.target == SWAPPER
    assert swap.value == 1001 * ONE // 1000
    assert plan.min_collateral_for_sender == 995 * ONE // 1000
    assert plan.preview_collateral_for_sender == 999 * ONE // 1000


@pytest.mark.asyncio
async def test_payout_in_debt_asset_swaps_remaining_collateral():
    quoter = _Quoter()
    plan = await _plan(quoter=quoter, output_asset=WETH)

    first, second = quoter.requests
    assert first.intent == "exactOut"
    assert second.intent == "exactIn"
    assert second.amount_in == 998 * ONE // 1000

    assert plan.payout_asset == WETH
    assert plan.payout_amount == 998 * ONE // 1000
    assert plan.preview_collateral_for_sender == 0
    assert plan.min_collateral_for_sender == 0
    assert plan.expected_excess_collateral == 0
    assert len(plan.calls) == 4
    assert plan.expected_usd_out == pytest.approx(1996.0)


@pytest.mark.asyncio
async def test_no_debt_skips_swap():
    async def _unused(request):
        raise AssertionError("quote should not be requested")

    plan = await _plan(_chain(debt=0), quoter=_unused)
    assert plan.calls == ()
    assert plan.preview_collateral_for_sender == 2 * ONE


class TestValidateRedeemPlan:
    @pytest.mark.asyncio
    async def test_rejects_inconsistent_plans(self):
        plan = await _plan()
        assert validate_redeem_plan(plan)
        for changes in (
            {"shares_to_redeem": 0},
            {"preview_excess_debt": -1},
            {"slippage_bps": 10_001},
            {"min_collateral_for_sender": plan.preview_collateral_for_sender + 1},
            {"payout_amount": -5},
        ):
            assert not validate_redeem_plan(dataclasses.replace(plan, **changes))


WETH_ASSET = AssetConfig(address=WETH, decimals=18, symbol="WETH")
SAME_ASSET_CONFIG = LeverageTokenConfig(
    address=TOKEN,
    chain_id=8453,
    symbol="WETH-WETH-2x",
    leverage_ratio=2,
    collateral_asset=WETH_ASSET,
    debt_asset=WETH_ASSET,
)


class TestSameAsset:
    @staticmethod
    async def _quoter(request):
        raise AssertionError("same-asset redeem should not be quoted")

    @pytest.mark.asyncio
    async def test_debt_repaid_from_collateral(self):
        plan = await _plan(
            config=SAME_ASSET_CONFIG, quoter=self._quoter, price_source=None
        )

        assert plan.calls == ()
        assert plan.expected_debt == ONE
        assert plan.preview_collateral_for_sender == ONE
        assert plan.min_collateral_for_sender == apply_slippage_floor(ONE, 50)
        assert plan.preview_excess_debt == 0
        assert plan.min_excess_debt == 0
        assert plan.payout_asset == WETH
        assert validate_redeem_plan(plan)

    @pytest.mark.asyncio
    async def test_prices_value_the_payout(self):
        plan = await _plan(config=SAME_ASSET_CONFIG, quoter=self._quoter)

        assert plan.calls == ()
        assert plan.expected_usd_out == pytest.approx(2000.0)
        assert plan.guaranteed_usd_out == pytest.approx(1990.0)

    @pytest.mark.asyncio
    async def test_debt_output_is_the_collateral(self):
        plan = await _plan(
            config=SAME_ASSET_CONFIG, quoter=self._quoter, output_asset=WETH
        )

        assert plan.calls == ()
        assert plan.payout_amount == ONE
        assert plan.min_collateral_for_sender == apply_slippage_floor(ONE, 50)
