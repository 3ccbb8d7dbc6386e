from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ERROR_KEYS = (
    "stakingYield",
    "restakingYield",
    "borrowRate",
    "rewardsAPR",
    "rewardTokens",
    "utilization",
)


@dataclass(frozen=True)
class LeverageRatios:
    min_leverage: float
    max_leverage: float
    target_leverage: float


@dataclass(frozen=True)
class AprData:
    # percentages, e.g. 3.2 for 3.2%
    staking_apr: float
    restaking_apr: float = 0.0
    averaging_period: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def total_apr(self) -> float:
        return self.staking_apr + self.restaking_apr


@dataclass(frozen=True)
class BorrowApyData:
    # fractions, e.g. 0.05 for 5%
    borrow_apy: float
    utilization: float = 0.0
    averaging_period: str | None = None


@dataclass(frozen=True)
class RewardTokenApr:
    token_address: str
    symbol: str
    apr: float


@dataclass(frozen=True)
class RewardsAprData:
    rewards_apr: float
    reward_tokens: tuple[RewardTokenApr, ...] = ()


@dataclass(frozen=True)
class AggregatedAPY:
    staking_yield: float = 0.0
    restaking_yield: float = 0.0
    borrow_rate: float = 0.0
    rewards_apr: float = 0.0
    points: float = 0.0
    total_apy: float = 0.0
    utilization: float = 0.0
    reward_tokens: tuple[RewardTokenApr, ...] = ()
    errors: dict[str, Exception | None] = field(
        default_factory=lambda: dict.fromkeys(ERROR_KEYS)
    )
    raw: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stakingYield": self.staking_yield,
            "restakingYield": self.restaking_yield,
            "borrowRate": self.borrow_rate,
            "rewardsAPR": self.rewards_apr,
            "points": self.points,
            "totalAPY": self.total_apy,
            "utilization": self.utilization,
            "rewardTokens": [
                {"address": t.token_address, "symbol": t.symbol, "apr": t.apr}
                for t in self.reward_tokens
            ],
            "errors": {k: (str(v) if v is not None else None) for k, v in self.errors.items()},
            "metadata": self.metadata,
        }
