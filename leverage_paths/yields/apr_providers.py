"""Staking APR providers, selected per token by ``apy_config.apr_provider``.

All providers report APRs in percent.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from leverage_paths.core.clients.DefiLlamaClient import DefiLlamaClient
from leverage_paths.core.clients.EtherFiClient import EtherFiClient
from leverage_paths.core.clients.LidoClient import LidoClient
from leverage_paths.registry import LeverageTokenConfig
from leverage_paths.yields.types import AprData


class AprFetcher(Protocol):
    protocol_id: str

    async def fetch_apr(self) -> AprData: ...


class LidoAprProvider:
    protocol_id = "lido"
    protocol_name = "Lido"

    def __init__(self, client: LidoClient | None = None):
        self.client = client or LidoClient()

    async def fetch_apr(self) -> AprData:
        try:
            apr = await self.client.get_seven_day_apr()
        except Exception as exc:
            raise RuntimeError(f"Failed to fetch Lido APR data: {exc}") from exc
        return AprData(staking_apr=apr, averaging_period="7-day average")


class EtherFiAprProvider:
    protocol_id = "etherfi"
    protocol_name = "Ether.fi"

    def __init__(self, client: EtherFiClient | None = None):
        self.client = client or EtherFiClient()

    async def fetch_apr(self) -> AprData:
        try:
            staking, restaking, raw = await self.client.get_seven_day_aprs()
        except Exception as exc:
            raise RuntimeError(f"Failed to fetch EtherFi APR data: {exc}") from exc
        return AprData(
            staking_apr=staking,
            restaking_apr=restaking,
            averaging_period="7-day average",
            metadata={"raw": raw, "bufferEth": raw.get("buffer_eth")},
        )


class DefiLlamaAprProvider:
    protocol_id = "defillama"
    protocol_name = "DeFi Llama"

    def __init__(self, pool_id: str, client: DefiLlamaClient | None = None):
        self.pool_id = pool_id
        self.client = client or DefiLlamaClient()

    async def fetch_apr(self) -> AprData:
        apr = await self.client.get_day_average_apy(self.pool_id)
        return AprData(staking_apr=apr, averaging_period="24-hour average")


def get_apr_provider(config: LeverageTokenConfig) -> AprFetcher | None:
    apy_config = config.apy_config
    if apy_config is None or apy_config.apr_provider is None:
        return None
    match apy_config.apr_provider:
        case "lido":
            return LidoAprProvider()
        case "etherfi":
            return EtherFiAprProvider()
        case "defillama":
            if not apy_config.apr_source_id:
                raise ValueError(f"DeFi Llama pool id missing for {config.symbol}")
            return DefiLlamaAprProvider(apy_config.apr_source_id)
    raise ValueError(f"Unknown APR provider {apy_config.apr_provider}")


async def fetch_apr_for_token(
    config: LeverageTokenConfig, provider: AprFetcher | None = None
) -> AprData:
    provider = provider or get_apr_provider(config)
    if provider is None:
        logger.debug(f"No APR provider configured for {config.symbol}")
        return AprData(staking_apr=0.0)
    return await provider.fetch_apr()
