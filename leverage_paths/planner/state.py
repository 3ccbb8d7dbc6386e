from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from leverage_paths.core.boundary import BlockId, ChainBoundary
from leverage_paths.core.constants.base import MANTISSA
from leverage_paths.core.constants.leverage_abi import LEVERAGE_MANAGER_ABI


def collateral_ratio_to_leverage(collateral_ratio: int) -> int:
    """``cr / (cr - 1)`` in 1e18 fixed point."""
    collateral_ratio = int(collateral_ratio)
    if collateral_ratio <= MANTISSA:
        raise ValueError(f"Collateral ratio {collateral_ratio} implies unbounded leverage")
    return (collateral_ratio * MANTISSA) // (collateral_ratio - MANTISSA)


def leverage_to_float(leverage: int) -> float:
    return int(leverage) / MANTISSA


@dataclass(frozen=True)
class LeverageTokenState:
    collateral_in_debt_asset: int
    debt: int
    equity: int
    collateral_ratio: int

    @property
    def leverage(self) -> int:
        return collateral_ratio_to_leverage(self.collateral_ratio)


@dataclass(frozen=True)
class ActionPreview:
    collateral: int
    debt: int
    equity: int
    shares: int
    token_fee: int = 0
    treasury_fee: int = 0

    @classmethod
    def from_result(cls, result: dict[str, Any]) -> ActionPreview:
        return cls(
            collateral=int(result["collateral"]),
            debt=int(result["debt"]),
            equity=int(result["equity"]),
            shares=int(result["shares"]),
            token_fee=int(result.get("tokenFee", 0)),
            treasury_fee=int(result.get("treasuryFee", 0)),
        )


async def read_leverage_token_state(
    boundary: ChainBoundary,
    *,
    manager: str,
    token: str,
    chain_id: int,
    block_number: BlockId = None,
) -> LeverageTokenState:
    result = await boundary.read(
        manager,
        LEVERAGE_MANAGER_ABI,
        "getLeverageTokenState",
        [token],
        chain_id=chain_id,
        block_number=block_number,
    )
    return LeverageTokenState(
        collateral_in_debt_asset=int(result["collateralInDebtAsset"]),
        debt=int(result["debt"]),
        equity=int(result["equity"]),
        collateral_ratio=int(result["collateralRatio"]),
    )


async def read_leverage_token_config(
    boundary: ChainBoundary,
    *,
    manager: str,
    token: str,
    chain_id: int,
    block_number: BlockId = None,
) -> dict[str, Any]:
    return await boundary.read(
        manager,
        LEVERAGE_MANAGER_ABI,
        "getLeverageTokenConfig",
        [token],
        chain_id=chain_id,
        block_number=block_number,
    )
