from __future__ import annotations

from leverage_paths.adapters.multicall_adapter.adapter import ContractRead
from leverage_paths.core.boundary import BlockId, ChainBoundary
from leverage_paths.core.constants.leverage_abi import REBALANCE_ADAPTER_ABI
from leverage_paths.planner.state import (
    collateral_ratio_to_leverage,
    leverage_to_float,
    read_leverage_token_config,
)
from leverage_paths.registry import get_contract_addresses
from leverage_paths.yields.types import LeverageRatios

_RATIO_FUNCTIONS = (
    "getLeverageTokenMinCollateralRatio",
    "getLeverageTokenMaxCollateralRatio",
    "getLeverageTokenTargetCollateralRatio",
)


async def fetch_leverage_ratios(
    boundary: ChainBoundary,
    token_address: str,
    chain_id: int,
    *,
    manager: str | None = None,
    block_number: BlockId = None,
) -> LeverageRatios:
    """Min, max and target leverage from the token's rebalance adapter."""
    manager = manager or get_contract_addresses(chain_id).leverage_manager
    config = await read_leverage_token_config(
        boundary,
        manager=manager,
        token=token_address,
        chain_id=chain_id,
        block_number=block_number,
    )
    rebalance_adapter = (config or {}).get("rebalanceAdapter")
    if not rebalance_adapter:
        raise ValueError("Failed to get leverage token config")

    ratios = await boundary.read_many(
        [ContractRead(rebalance_adapter, REBALANCE_ADAPTER_ABI, fn) for fn in _RATIO_FUNCTIONS],
        chain_id=chain_id,
        block_number=block_number,
    )
    if len(ratios) != len(_RATIO_FUNCTIONS) or not all(ratios):
        raise ValueError("Failed to fetch leverage ratios")
    min_lev, max_lev, target_lev = (
        leverage_to_float(collateral_ratio_to_leverage(r)) for r in ratios
    )
    return LeverageRatios(
        min_leverage=min_lev, max_leverage=max_lev, target_leverage=target_lev
    )
