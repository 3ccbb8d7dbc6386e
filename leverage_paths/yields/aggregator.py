"""Composite APY for leverage tokens.

Four independent sources feed the breakdown: leverage ratios, the staking
APR, the borrow APY and the rewards APR. They are fetched concurrently and a
failing source only zeroes its own terms; the failure is recorded under
``errors`` and never raised.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

from loguru import logger

from leverage_paths.core.boundary import ChainBoundary
from leverage_paths.registry import LeverageTokenConfig, get_leverage_token_config
from leverage_paths.yields.apr_providers import fetch_apr_for_token
from leverage_paths.yields.borrow_providers import fetch_borrow_apy_for_token
from leverage_paths.yields.ratios import fetch_leverage_ratios
from leverage_paths.yields.rewards_providers import fetch_rewards_apr_for_token
from leverage_paths.yields.types import (
    ERROR_KEYS,
    AggregatedAPY,
    AprData,
    BorrowApyData,
    LeverageRatios,
    RewardsAprData,
)


@dataclass(frozen=True)
class YieldSources:
    ratios: Callable[[LeverageTokenConfig], Awaitable[LeverageRatios]]
    apr: Callable[[LeverageTokenConfig], Awaitable[AprData]]
    borrow: Callable[[LeverageTokenConfig], Awaitable[BorrowApyData]]
    rewards: Callable[[LeverageTokenConfig], Awaitable[RewardsAprData]]

    @classmethod
    def default(cls, boundary: ChainBoundary) -> YieldSources:
        async def _ratios(config: LeverageTokenConfig) -> LeverageRatios:
            return await fetch_leverage_ratios(boundary, config.address, config.chain_id)

        return cls(
            ratios=_ratios,
            apr=fetch_apr_for_token,
            borrow=partial(fetch_borrow_apy_for_token, boundary),
            rewards=fetch_rewards_apr_for_token,
        )


def _nonzero(value: float) -> float:
    # avoid reporting -0.0 for a zero borrow cost
    return value if value else 0.0


async def aggregate_apy(
    config: LeverageTokenConfig, sources: YieldSources
) -> AggregatedAPY:
    ratios, apr, borrow, rewards = await asyncio.gather(
        sources.ratios(config),
        sources.apr(config),
        sources.borrow(config),
        sources.rewards(config),
        return_exceptions=True,
    )
    for result in (ratios, apr, borrow, rewards):
        if isinstance(result, asyncio.CancelledError):
            raise result

    errors: dict[str, Exception | None] = dict.fromkeys(ERROR_KEYS)
    raw: dict[str, Any] = {}

    leverage = 0.0
    if isinstance(ratios, Exception):
        logger.warning(f"Leverage ratios unavailable for {config.symbol}: {ratios}")
        for key in ("stakingYield", "restakingYield", "borrowRate"):
            errors[key] = ratios
    else:
        leverage = float(ratios.target_leverage)
        raw["leverageRatios"] = ratios

    staking_yield = restaking_yield = 0.0
    if isinstance(apr, Exception):
        logger.warning(f"Staking APR unavailable for {config.symbol}: {apr}")
        errors["stakingYield"] = errors["restakingYield"] = apr
    else:
        raw["apr"] = apr
        if leverage:
            staking_yield = apr.staking_apr / 100 * leverage
            restaking_yield = apr.restaking_apr / 100 * leverage

    borrow_rate = utilization = 0.0
    if isinstance(borrow, Exception):
        logger.warning(f"Borrow APY unavailable for {config.symbol}: {borrow}")
        errors["borrowRate"] = errors["utilization"] = borrow
    else:
        raw["borrow"] = borrow
        utilization = float(borrow.utilization)
        if leverage:
            borrow_rate = _nonzero(-borrow.borrow_apy * (leverage - 1))

    rewards_apr = 0.0
    reward_tokens = ()
    if isinstance(rewards, Exception):
        logger.warning(f"Rewards APR unavailable for {config.symbol}: {rewards}")
        errors["rewardsAPR"] = errors["rewardTokens"] = rewards
    else:
        raw["rewards"] = rewards
        rewards_apr = float(rewards.rewards_apr)
        reward_tokens = rewards.reward_tokens

    multiplier = config.apy_config.points_multiplier if config.apy_config else None
    points = float(multiplier) * leverage if multiplier and leverage else 0.0

    result = AggregatedAPY(
        staking_yield=staking_yield,
        restaking_yield=restaking_yield,
        borrow_rate=borrow_rate,
        rewards_apr=rewards_apr,
        points=points,
        total_apy=staking_yield + restaking_yield + rewards_apr + borrow_rate,
        utilization=utilization,
        reward_tokens=reward_tokens,
        errors=errors,
        raw=raw,
        metadata={"token": config.address, "chainId": config.chain_id, "targetLeverage": leverage},
    )
    logger.debug(
        f"APY {config.symbol}: L={leverage} total={result.total_apy:.6f} "
        f"errors={[k for k, v in errors.items() if v is not None]}"
    )
    return result


async def aggregate_positions_apy(
    token_addresses: Iterable[str],
    sources: YieldSources,
    *,
    chain_id: int | None = None,
) -> dict[str, AggregatedAPY]:
    """APY per known token address; addresses without a config are left out."""
    configs: dict[str, LeverageTokenConfig] = {}
    for address in token_addresses:
        config = get_leverage_token_config(address, chain_id)
        if config is None:
            logger.debug(f"No leverage token config for {address}; skipping APY")
            continue
        configs[address] = config

    results = await asyncio.gather(
        *(aggregate_apy(config, sources) for config in configs.values())
    )
    return dict(zip(configs, results, strict=True))


def has_apy_breakdown_error(
    value: AggregatedAPY | Mapping[str, Exception | None] | None,
) -> bool:
    if value is None:
        return False
    errors = value.errors if isinstance(value, AggregatedAPY) else value
    return any(error is not None for error in errors.values())
