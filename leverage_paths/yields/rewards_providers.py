from __future__ import annotations

from typing import Any

from loguru import logger

from leverage_paths.core.clients.MerklClient import MerklClient
from leverage_paths.registry import LeverageTokenConfig
from leverage_paths.yields.types import RewardsAprData, RewardTokenApr


def _opportunity_apr(opportunity: dict[str, Any]) -> float:
    apr = opportunity.get("apr")
    if isinstance(apr, (int, float)) and not isinstance(apr, bool):
        return float(apr)
    return 0.0


def _reward_tokens(opportunity: dict[str, Any], apr: float) -> list[RewardTokenApr]:
    """Split an opportunity's APR across its reward tokens by reward value."""
    breakdowns = (opportunity.get("rewardsRecord") or {}).get("breakdowns") or []
    weighted = []
    for entry in breakdowns:
        token = entry.get("token") or {}
        address = token.get("address")
        if not address:
            continue
        weighted.append((address, str(token.get("symbol") or ""), float(entry.get("value") or 0)))
    total = sum(w for *_, w in weighted)
    if not weighted:
        return []
    return [
        RewardTokenApr(
            token_address=address,
            symbol=symbol,
            apr=(apr / 100) * (value / total if total > 0 else 1 / len(weighted)),
        )
        for address, symbol, value in weighted
    ]


class MerklRewardsAprProvider:
    protocol_id = "merkl"
    protocol_name = "Merkl"

    def __init__(self, client: MerklClient | None = None):
        self.client = client or MerklClient()

    async def fetch_rewards_apr(
        self, token_address: str, chain_id: int | None = None
    ) -> RewardsAprData:
        opportunities = await self.client.get_opportunities(
            identifier=token_address, chain_id=chain_id
        )
        if not opportunities:
            logger.debug(f"No Merkl opportunities for {token_address}")
            return RewardsAprData(rewards_apr=0.0)

        total = 0.0
        tokens: dict[str, RewardTokenApr] = {}
        for opportunity in opportunities:
            apr = _opportunity_apr(opportunity)
            total += apr
            for reward in _reward_tokens(opportunity, apr):
                key = reward.token_address.lower()
                prior = tokens.get(key)
                if prior is not None:
                    reward = RewardTokenApr(
                        token_address=prior.token_address,
                        symbol=prior.symbol,
                        apr=prior.apr + reward.apr,
                    )
                tokens[key] = reward

        # Merkl reports percentages
        return RewardsAprData(rewards_apr=total / 100, reward_tokens=tuple(tokens.values()))


async def fetch_rewards_apr_for_token(
    config: LeverageTokenConfig, provider: MerklRewardsAprProvider | None = None
) -> RewardsAprData:
    provider = provider or MerklRewardsAprProvider()
    return await provider.fetch_rewards_apr(config.address, config.chain_id)
