from __future__ import annotations

import httpx
from loguru import logger

from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url, get_coingecko_api_key
from leverage_paths.core.constants.chains import CHAIN_ID_BASE, CHAIN_ID_ETHEREUM

COINGECKO_API_BASE_URL = "https://api.coingecko.com/api/v3"

COINGECKO_PLATFORMS = {
    CHAIN_ID_ETHEREUM: "ethereum",
    CHAIN_ID_BASE: "base",
}


class CoinGeckoClient(JsonHttpClient):
    """USD token prices by contract address; usable as a redeem price source."""

    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        api_key = get_coingecko_api_key()
        super().__init__(
            base_url or get_api_base_url("coingecko", COINGECKO_API_BASE_URL),
            client=client,
            headers={"x-cg-demo-api-key": api_key} if api_key else None,
        )

    async def get_usd_prices(self, addresses: list[str], chain_id: int) -> dict[str, float]:
        unique = sorted({a.lower() for a in addresses})
        if not unique:
            return {}
        platform = COINGECKO_PLATFORMS.get(int(chain_id))
        if platform is None:
            raise ValueError(f"Unsupported chain for CoinGecko: {chain_id}")

        payload = await self.get_json(
            f"/simple/token_price/{platform}",
            params={"contract_addresses": ",".join(unique), "vs_currencies": "usd"},
        )
        prices: dict[str, float] = {}
        for address, entry in (payload or {}).items():
            usd = entry.get("usd") if isinstance(entry, dict) else None
            if isinstance(usd, int | float):
                prices[address.lower()] = float(usd)
        missing = set(unique) - prices.keys()
        if missing:
            logger.debug(f"CoinGecko returned no USD price for {sorted(missing)}")
        return prices
