"""Quote resolution, planning and execution wired together over an in-memory chain."""

from __future__ import annotations

import pytest

from leverage_paths.core import query_keys
from leverage_paths.core.query import QueryClient
from leverage_paths.core.utils.math import apply_slippage_floor
from leverage_paths.execution.executor import execute_plan
from leverage_paths.planner.mint import plan_mint
from leverage_paths.planner.redeem import plan_redeem, validate_redeem_plan
from leverage_paths.quotes.orchestrator import resolve_quote
from leverage_paths.registry import get_contract_addresses, get_leverage_token_config
from leverage_paths.testing.fake_chain import FakeChainBoundary

TOKEN = "0x17533ef332083aD03417DEe7BC058D10e18b22c5"
EXECUTOR = "0x2222222222222222222222222222222222222222"
ACCOUNT = "0x3333333333333333333333333333333333333333"
ONE = 10**18


class _FlatPrices:
    async def get_usd_prices(self, addresses, chain_id):
        return {a.lower(): 2_000.0 for a in addresses}


def _action(collateral: int, debt: int) -> dict:
    return {
        "collateral": collateral,
        "debt": debt,
        "equity": collateral - debt,
        "shares": collateral - debt,
        "tokenFee": 0,
        "treasuryFee": 0,
    }


@pytest.fixture
def config():
    return get_leverage_token_config(TOKEN, include_test=True)


@pytest.fixture
def chain(config) -> FakeChainBoundary:
    addresses = get_contract_addresses(config.chain_id)
    swap_router = config.swaps.debt_to_collateral.router
    chain = FakeChainBoundary(block_number=500)
    chain.on(
        addresses.leverage_manager,
        "getLeverageTokenState",
        {
            "collateralInDebtAsset": 2 * ONE,
            "debt": ONE,
            "equity": ONE,
            "collateralRatio": 2 * ONE,
        },
    )
    chain.on(
        addresses.leverage_router,
        "previewDeposit",
        lambda args, block: _action(2 * args[1], args[1]),
    )
    chain.on(
        addresses.leverage_manager,
        "previewDeposit",
        lambda args, block: _action(args[1], args[1] // 2),
    )
    chain.on(
        addresses.leverage_manager,
        "previewRedeem",
        lambda args, block: _action(2 * args[1], args[1]),
    )
    # 1:1 pool
    chain.on(swap_router, "getAmountsOut", lambda args, block: [args[0], args[0]])
    chain.on(config.collateral_asset.address, "allowance", 0)
    chain.on(TOKEN, "allowance", 10 * ONE)
    return chain


def _resolve(chain, config, direction):
    return resolve_quote(
        chain_id=config.chain_id,
        router_address=get_contract_addresses(config.chain_id).leverage_router,
        swap=(
            config.swaps.debt_to_collateral
            if direction == "mint"
            else config.swaps.collateral_to_debt
        ),
        slippage_bps=50,
        requires_quote=config.requires_swap,
        get_client=lambda chain_id: chain,
        direction=direction,
    )


@pytest.mark.asyncio
async def test_mint_then_execute(chain, config):
    resolution = _resolve(chain, config, "mint")
    assert resolution.ready

    plan = await plan_mint(
        chain,
        config,
        equity_in_collateral_asset=ONE,
        slippage_bps=50,
        quote_debt_to_collateral=resolution.quote,
    )

    assert plan.block_number == 500
    assert plan.flash_loan_amount == apply_slippage_floor(ONE, 50)
    assert plan.min_shares <= plan.preview_shares
    # approve the swap router, then the swap itself
    assert len(plan.calls) == 2
    # every read of the plan is pinned to the same block
    assert {block for _, fn, _, block in chain.reads if fn != "getAmountsOut"} == {500}

    client = QueryClient(stale_time_s=60)
    refetched = []

    async def fetch_position():
        refetched.append("position")
        return len(refetched)

    await client.fetch(query_keys.user(TOKEN, ACCOUNT), fetch_position)

    result = await execute_plan(
        chain,
        config,
        "mint",
        plan,
        account=ACCOUNT,
        query_client=client,
        multicall_executor=EXECUTOR,
    )

    assert result.approval_hash is not None
    assert [s.result[0] for s in chain.simulations] == ["approve", "deposit"]
    assert refetched == ["position", "position"]


@pytest.mark.asyncio
async def test_redeem_with_prices_then_execute(chain, config):
    resolution = _resolve(chain, config, "redeem")
    assert resolution.intent == "exactIn"

    plan = await plan_redeem(
        chain,
        config,
        shares_to_redeem=ONE,
        slippage_bps=50,
        quote_collateral_to_debt=resolution.quote,
        intent=resolution.intent,
        price_source=_FlatPrices(),
    )

    assert plan.expected_debt == ONE
    assert plan.min_collateral_for_sender == apply_slippage_floor(ONE, 50)
    assert plan.preview_collateral_for_sender >= plan.min_collateral_for_sender
    assert plan.expected_usd_out == pytest.approx(2_000.0)
    assert validate_redeem_plan(plan)

    result = await execute_plan(
        chain,
        config,
        "redeem",
        plan,
        account=ACCOUNT,
        multicall_executor=EXECUTOR,
    )

    assert result.approval_hash is None
    fn_name, args = chain.simulations[-1].result
    assert fn_name == "redeem"
    assert args[2] == plan.min_collateral_for_sender
