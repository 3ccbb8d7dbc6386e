"""Mint planning: size the flash loan, quote the debt->collateral leg and bound shares.

Every chain read is pinned to one block so the router preview, the manager
previews and the quote all describe the same state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from loguru import logger

from leverage_paths.core.adapters.models import Call, Quote, QuoteFn, QuoteRequest
from leverage_paths.core.boundary import BlockId, ChainBoundary
from leverage_paths.core.constants.base import MAX_BPS
from leverage_paths.core.constants.erc20_abi import ERC20_ABI
from leverage_paths.core.constants.leverage_abi import (
    LEVERAGE_MANAGER_ABI,
    LEVERAGE_ROUTER_ABI,
)
from leverage_paths.core.errors import MissingChainConfigError, PlanningError
from leverage_paths.core.utils.abi import encode_function_call
from leverage_paths.core.utils.math import apply_slippage_floor
from leverage_paths.planner.state import (
    ActionPreview,
    leverage_to_float,
    read_leverage_token_state,
)
from leverage_paths.registry import LeverageTokenConfig, get_contract_addresses


@dataclass(frozen=True)
class MintPlan:
    token: str
    equity_in_collateral_asset: int
    flash_loan_amount: int
    preview_shares: int
    min_shares: int
    preview_excess_debt: int
    min_excess_debt: int
    slippage_bps: int
    quote_slippage_bps: int
    debt_to_collateral_quote: Quote | None
    calls: tuple[Call, ...]
    block_number: int | None = None

    @property
    def expected_excess_debt(self) -> int:
        return self.preview_excess_debt


def quote_slippage_for_leverage(slippage_bps: int, leverage: int) -> int:
    """Spread the share slippage over the swapped portion of the position.

    Only ``leverage - 1`` of the position goes through the swap, so the swap
    may lose ``bps / (leverage - 1)`` before the share bound is at risk.
    """
    leverage_f = leverage_to_float(leverage)
    if leverage_f <= 1:
        return max(1, min(MAX_BPS, int(slippage_bps)))
    return max(1, min(MAX_BPS, math.floor(slippage_bps / (leverage_f - 1))))


async def _preview_deposit(
    boundary: ChainBoundary,
    address: str,
    abi: list,
    token: str,
    collateral: int,
    *,
    chain_id: int,
    block_number: BlockId,
) -> ActionPreview:
    result = await boundary.read(
        address,
        abi,
        "previewDeposit",
        [token, collateral],
        chain_id=chain_id,
        block_number=block_number,
    )
    return ActionPreview.from_result(result)


async def plan_mint(
    boundary: ChainBoundary,
    config: LeverageTokenConfig,
    *,
    equity_in_collateral_asset: int,
    slippage_bps: int,
    quote_debt_to_collateral: QuoteFn | None = None,
    block_number: BlockId = None,
    manager: str | None = None,
    router: str | None = None,
) -> MintPlan:
    equity = int(equity_in_collateral_asset)
    if equity <= 0:
        raise PlanningError("equityInCollateralAsset must be positive")
    if slippage_bps < 0 or slippage_bps > MAX_BPS:
        raise PlanningError(f"slippageBps must be within [0, {MAX_BPS}]")

    chain_id = config.chain_id
    token = config.address
    if manager is None or router is None:
        try:
            addresses = get_contract_addresses(chain_id)
        except MissingChainConfigError as exc:
            raise PlanningError(str(exc)) from exc
        manager = manager or addresses.leverage_manager
        router = router or addresses.leverage_router
    if not router:
        raise PlanningError(f"No leverage router configured for chain {chain_id}")
    if block_number is None:
        block_number = await boundary.get_block_number(chain_id)

    try:
        state = await read_leverage_token_state(
            boundary,
            manager=manager,
            token=token,
            chain_id=chain_id,
            block_number=block_number,
        )
        leverage = state.leverage
    except Exception as exc:
        raise PlanningError(f"Leverage state unavailable for {token}: {exc}") from exc

    try:
        router_preview = await _preview_deposit(
            boundary,
            router,
            LEVERAGE_ROUTER_ABI,
            token,
            equity,
            chain_id=chain_id,
            block_number=block_number,
        )
    except Exception as exc:
        raise PlanningError(f"Router deposit preview failed: {exc}") from exc

    flash_loan_amount = apply_slippage_floor(router_preview.debt, slippage_bps)
    quote_slippage_bps = quote_slippage_for_leverage(slippage_bps, leverage)

    quote: Quote | None = None
    if not config.requires_swap:
        # the borrowed debt is already collateral
        out = min_out = flash_loan_amount
    elif flash_loan_amount == 0:
        out = min_out = 0
    else:
        if quote_debt_to_collateral is None:
            raise PlanningError("A debt to collateral quote function is required")
        try:
            quote = await quote_debt_to_collateral(
                QuoteRequest(
                    in_token=config.debt_asset.address,
                    out_token=config.collateral_asset.address,
                    intent="exactIn",
                    amount_in=flash_loan_amount,
                    slippage_bps=quote_slippage_bps,
                )
            )
        except Exception as exc:
            raise PlanningError(f"Debt to collateral quote failed: {exc}") from exc
        out, min_out = quote.out, quote.min_out

    try:
        manager_preview = await _preview_deposit(
            boundary,
            manager,
            LEVERAGE_MANAGER_ABI,
            token,
            equity + out,
            chain_id=chain_id,
            block_number=block_number,
        )
        manager_min = await _preview_deposit(
            boundary,
            manager,
            LEVERAGE_MANAGER_ABI,
            token,
            equity + min_out,
            chain_id=chain_id,
            block_number=block_number,
        )
    except Exception as exc:
        raise PlanningError(f"Manager deposit preview failed: {exc}") from exc

    preview_shares = manager_preview.shares
    min_shares = apply_slippage_floor(preview_shares, slippage_bps)

    if manager_preview.debt < flash_loan_amount:
        raise PlanningError(
            f"Manager previewed debt {manager_preview.debt} is less than flash loan "
            f"amount {flash_loan_amount}, likely due to slippage"
        )
    if manager_min.debt < flash_loan_amount:
        raise PlanningError(
            f"Manager minimum debt {manager_min.debt} is less than flash loan "
            f"amount {flash_loan_amount}, likely due to slippage"
        )
    if manager_min.shares < min_shares:
        raise PlanningError(
            f"Manager minimum shares {manager_min.shares} are less than min shares "
            f"{min_shares}, likely due to slippage"
        )

    calls: list[Call] = []
    if quote is not None:
        if flash_loan_amount > 0:
            calls.append(
                Call(
                    target=config.debt_asset.address,
                    data=encode_function_call(
                        ERC20_ABI, "approve", [quote.approval_target, flash_loan_amount]
                    ),
                )
            )
        calls.extend(quote.calls)

    plan = MintPlan(
        token=token,
        equity_in_collateral_asset=equity,
        flash_loan_amount=flash_loan_amount,
        preview_shares=preview_shares,
        min_shares=min_shares,
        preview_excess_debt=manager_preview.debt - flash_loan_amount,
        min_excess_debt=manager_min.debt - flash_loan_amount,
        slippage_bps=int(slippage_bps),
        quote_slippage_bps=quote_slippage_bps,
        debt_to_collateral_quote=quote,
        calls=tuple(calls),
        block_number=block_number if isinstance(block_number, int) else None,
    )
    logger.debug(
        f"planMint {config.symbol}: equity={equity} flashLoan={flash_loan_amount} "
        f"shares={preview_shares} minShares={min_shares} calls={len(calls)}"
    )
    return plan
