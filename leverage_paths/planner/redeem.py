"""Redeem planning.

Redeeming shares releases collateral and leaves debt to repay. Part of the
collateral is swapped to the debt asset inside the router call; the rest is
returned to the sender with a slippage-bounded minimum.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from leverage_paths.core.adapters.models import (
    Call,
    Quote,
    QuoteFn,
    QuoteIntent,
    QuoteRequest,
)
from leverage_paths.core.boundary import BlockId, ChainBoundary
from leverage_paths.core.constants.base import ETH_SENTINEL, MAX_BPS, ZERO_ADDRESS
from leverage_paths.core.constants.contracts import BASE_WETH
from leverage_paths.core.constants.erc20_abi import ERC20_ABI, WETH_ABI
from leverage_paths.core.constants.leverage_abi import LEVERAGE_MANAGER_ABI
from leverage_paths.core.errors import MissingChainConfigError, PlanningError
from leverage_paths.core.utils.abi import encode_function_call
from leverage_paths.core.utils.math import apply_slippage_floor
from leverage_paths.core.utils.prices import (
    PriceSource,
    from_scaled_usd,
    lookup_price,
    scaled_usd_to_float,
    to_scaled_usd,
)
from leverage_paths.planner.state import ActionPreview
from leverage_paths.registry import LeverageTokenConfig, get_contract_addresses

SLIPPAGE_HINT = "Try increasing slippage"


@dataclass(frozen=True)
class RedeemPlan:
    token: str
    shares_to_redeem: int
    collateral_asset: str
    debt_asset: str
    slippage_bps: int
    # collateral returned to the sender once the debt is repaid
    preview_collateral_for_sender: int
    min_collateral_for_sender: int
    preview_excess_debt: int
    min_excess_debt: int
    expected_debt: int
    expected_total_collateral: int
    expected_excess_collateral: int
    payout_asset: str
    payout_amount: int
    collateral_to_debt_quote: Quote
    calls: tuple[Call, ...]
    expected_usd_out: float | None = None
    guaranteed_usd_out: float | None = None
    block_number: int | None = None

    @property
    def expected_collateral(self) -> int:
        return self.preview_collateral_for_sender

    @property
    def expected_debt_payout(self) -> int:
        return self.preview_excess_debt


def validate_redeem_plan(plan: RedeemPlan) -> bool:
    """Cheap structural check before a plan is handed to execution."""
    if plan.shares_to_redeem <= 0:
        return False
    if plan.preview_collateral_for_sender < 0 or plan.min_collateral_for_sender < 0:
        return False
    if plan.preview_excess_debt < 0 or plan.min_excess_debt < 0:
        return False
    if plan.payout_amount < 0:
        return False
    if plan.slippage_bps < 0 or plan.slippage_bps > MAX_BPS:
        return False
    if plan.min_collateral_for_sender > plan.preview_collateral_for_sender:
        return False
    return True


def _zero_quote() -> Quote:
    return Quote(out=0, min_out=0, amount_in=0, max_in=0, approval_target=ZERO_ADDRESS)


def _same_asset_quote(debt_to_repay: int) -> Quote:
    return Quote(
        out=debt_to_repay,
        min_out=debt_to_repay,
        amount_in=debt_to_repay,
        max_in=debt_to_repay,
        approval_target=ZERO_ADDRESS,
    )


def _swap_input(quote: Quote, intent: QuoteIntent, available: int) -> int:
    if quote.max_in is not None:
        return quote.max_in
    if intent == "exactIn":
        return quote.amount_in if quote.amount_in is not None else available
    return 0


async def _fetch_prices(
    price_source: PriceSource | None, config: LeverageTokenConfig
) -> Mapping[str, Any]:
    if price_source is None:
        return {}
    addresses = [config.collateral_asset.address, config.debt_asset.address]
    try:
        prices = await price_source.get_usd_prices(addresses, config.chain_id)
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"USD prices unavailable for {config.symbol}: {exc}")
        return {}
    return {str(k).lower(): v for k, v in (prices or {}).items()}


async def _quote_collateral_to_debt(
    quoter: QuoteFn,
    *,
    in_token: str,
    debt_asset: str,
    required_debt: int,
    available: int,
    intent: QuoteIntent,
) -> Quote:
    if required_debt <= 0:
        return _zero_quote()
    if intent == "exactOut":
        request = QuoteRequest(
            in_token=in_token,
            out_token=debt_asset,
            intent="exactOut",
            amount_out=required_debt,
        )
    else:
        request = QuoteRequest(
            in_token=in_token,
            out_token=debt_asset,
            intent="exactIn",
            amount_in=available,
            amount_out=required_debt,
        )
    try:
        quote = await quoter(request)
    except Exception as exc:
        raise PlanningError(f"Collateral to debt quote failed: {exc}") from exc
    if quote.out < required_debt:
        raise PlanningError(
            f"{SLIPPAGE_HINT}: swap of collateral to repay debt for the leveraged "
            "position is below the required debt."
        )
    return quote


def _swap_calls(
    *, collateral_asset: str, amount: int, native: bool, quote: Quote
) -> list[Call]:
    if amount <= 0:
        return []
    if native:
        # unwrap, then pay the first swap call in ETH
        calls = [
            Call(
                target=collateral_asset,
                data=encode_function_call(WETH_ABI, "withdraw", [amount]),
            )
        ]
        if quote.calls:
            first, *rest = quote.calls
            calls.append(Call(target=first.target, data=first.data, value=amount))
            calls.extend(rest)
        return calls
    return [
        Call(
            target=collateral_asset,
            data=encode_function_call(
                ERC20_ABI, "approve", [quote.approval_target, amount]
            ),
        ),
        *quote.calls,
    ]


async def plan_redeem(
    boundary: ChainBoundary,
    config: LeverageTokenConfig,
    *,
    shares_to_redeem: int | None,
    slippage_bps: int,
    quote_collateral_to_debt: QuoteFn,
    intent: QuoteIntent = "exactOut",
    block_number: BlockId = None,
    manager: str | None = None,
    price_source: PriceSource | None = None,
    output_asset: str | None = None,
) -> RedeemPlan | None:
    if not shares_to_redeem:
        return None
    shares = int(shares_to_redeem)
    if shares < 0:
        raise PlanningError("sharesToRedeem cannot be negative")
    if slippage_bps < 0 or slippage_bps > MAX_BPS:
        raise PlanningError(f"slippageBps must be within [0, {MAX_BPS}]")

    chain_id = config.chain_id
    token = config.address
    collateral = config.collateral_asset
    debt = config.debt_asset
    if manager is None:
        try:
            manager = get_contract_addresses(chain_id).leverage_manager
        except MissingChainConfigError as exc:
            raise PlanningError(str(exc)) from exc
    if block_number is None:
        block_number = await boundary.get_block_number(chain_id)

    try:
        result = await boundary.read(
            manager,
            LEVERAGE_MANAGER_ABI,
            "previewRedeem",
            [token, shares],
            chain_id=chain_id,
            block_number=block_number,
        )
    except Exception as exc:
        raise PlanningError(f"Redeem preview failed: {exc}") from exc
    preview = ActionPreview.from_result(result)
    total_collateral = preview.collateral
    debt_to_repay = preview.debt

    prices = await _fetch_prices(price_source, config)
    price_collateral = lookup_price(prices, collateral.address)
    price_debt = lookup_price(prices, debt.address)

    native = to_checksum_address(collateral.address) == to_checksum_address(BASE_WETH)
    in_token = ETH_SENTINEL if native else collateral.address

    if not config.requires_swap:
        # debt is repaid out of the collateral itself, no swap leg
        quote = _same_asset_quote(debt_to_repay)
        min_collateral = apply_slippage_floor(
            max(0, total_collateral - debt_to_repay), slippage_bps
        )
        available = total_collateral - min_collateral
    elif price_collateral > 0 and price_debt > 0:
        total_usd = to_scaled_usd(total_collateral, collateral.decimals, price_collateral)
        debt_usd = to_scaled_usd(debt_to_repay, debt.decimals, price_debt)
        zero_slip_usd = max(0, total_usd - debt_usd)
        zero_slip_collateral = from_scaled_usd(
            zero_slip_usd, collateral.decimals, price_collateral
        )
        min_collateral = apply_slippage_floor(zero_slip_collateral, slippage_bps)
        available = total_collateral - min_collateral
        quote = await _quote_collateral_to_debt(
            quote_collateral_to_debt,
            in_token=in_token,
            debt_asset=debt.address,
            required_debt=debt_to_repay,
            available=available,
            intent=intent,
        )
    elif intent == "exactOut":
        # without prices, bound the sender's collateral by the quoted swap instead
        quote = await _quote_collateral_to_debt(
            quote_collateral_to_debt,
            in_token=in_token,
            debt_asset=debt.address,
            required_debt=debt_to_repay,
            available=total_collateral,
            intent=intent,
        )
        estimated = max(0, total_collateral - _swap_input(quote, intent, total_collateral))
        min_collateral = apply_slippage_floor(estimated, slippage_bps)
        available = total_collateral - min_collateral
    else:
        logger.warning(
            f"No USD prices for {config.symbol}; redeeming without a collateral floor"
        )
        min_collateral = 0
        available = total_collateral
        quote = await _quote_collateral_to_debt(
            quote_collateral_to_debt,
            in_token=in_token,
            debt_asset=debt.address,
            required_debt=debt_to_repay,
            available=available,
            intent=intent,
        )

    swap_in = 0
    if config.requires_swap and debt_to_repay > 0:
        swap_in = _swap_input(quote, intent, available)
    if swap_in > available:
        raise PlanningError(
            f"{SLIPPAGE_HINT}: the transaction will likely revert due to unmet "
            "minimum collateral received"
        )

    calls = _swap_calls(
        collateral_asset=collateral.address, amount=swap_in, native=native, quote=quote
    )
    collateral_spent = swap_in if config.requires_swap else debt_to_repay
    remaining_collateral = max(0, total_collateral - collateral_spent)
    preview_collateral = remaining_collateral
    preview_excess_debt = quote.out - debt_to_repay
    min_excess_debt = max(0, quote.min_out - debt_to_repay)
    payout_asset = collateral.address
    payout_amount = remaining_collateral

    wants_debt_output = config.requires_swap and bool(output_asset) and (
        to_checksum_address(output_asset) == to_checksum_address(debt.address)
    )
    if wants_debt_output:
        payout_asset = debt.address
        min_collateral = 0
        preview_collateral = 0
        payout_amount = preview_excess_debt
        if remaining_collateral > 0:
            try:
                payout_quote = await quote_collateral_to_debt(
                    QuoteRequest(
                        in_token=in_token,
                        out_token=debt.address,
                        intent="exactIn",
                        amount_in=remaining_collateral,
                    )
                )
            except Exception as exc:
                raise PlanningError(f"Collateral payout quote failed: {exc}") from exc
            calls.extend(
                _swap_calls(
                    collateral_asset=collateral.address,
                    amount=remaining_collateral,
                    native=native,
                    quote=payout_quote,
                )
            )
            preview_excess_debt += payout_quote.out
            min_excess_debt += payout_quote.min_out
            payout_amount = preview_excess_debt
            remaining_collateral = 0

    expected_usd_out: float | None = None
    guaranteed_usd_out: float | None = None
    if price_collateral > 0 and price_debt > 0:
        expected_collateral_usd = to_scaled_usd(
            preview_collateral, collateral.decimals, price_collateral
        )
        expected_debt_usd = to_scaled_usd(preview_excess_debt, debt.decimals, price_debt)
        min_collateral_usd = to_scaled_usd(
            min_collateral, collateral.decimals, price_collateral
        )
        min_debt_usd = to_scaled_usd(min_excess_debt, debt.decimals, price_debt)
        # slippage is measured against the USD value of everything the sender receives
        if min_collateral_usd > expected_collateral_usd + expected_debt_usd:
            raise PlanningError(
                f"{SLIPPAGE_HINT}: the transaction will likely revert due to slippage"
            )
        expected_usd_out = scaled_usd_to_float(expected_collateral_usd + expected_debt_usd)
        guaranteed_usd_out = scaled_usd_to_float(min_collateral_usd + min_debt_usd)

    plan = RedeemPlan(
        token=token,
        shares_to_redeem=shares,
        collateral_asset=collateral.address,
        debt_asset=debt.address,
        slippage_bps=int(slippage_bps),
        preview_collateral_for_sender=preview_collateral,
        min_collateral_for_sender=min_collateral,
        preview_excess_debt=preview_excess_debt,
        min_excess_debt=min_excess_debt,
        expected_debt=debt_to_repay,
        expected_total_collateral=total_collateral,
        expected_excess_collateral=remaining_collateral,
        payout_asset=payout_asset,
        payout_amount=payout_amount,
        collateral_to_debt_quote=quote,
        calls=tuple(calls),
        expected_usd_out=expected_usd_out,
        guaranteed_usd_out=guaranteed_usd_out,
        block_number=block_number if isinstance(block_number, int) else None,
    )
    logger.debug(
        f"planRedeem {config.symbol}: shares={shares} debt={debt_to_repay} "
        f"collateral={total_collateral} minForSender={plan.min_collateral_for_sender}"
    )
    return plan
