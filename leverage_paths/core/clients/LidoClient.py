from __future__ import annotations

import httpx

from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url

LIDO_API_BASE_URL = "https://eth-api.lido.fi"
# daily entries averaged, the newest (partial) day excluded
SMA_WINDOW = 7


class LidoClient(JsonHttpClient):
    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(base_url or get_api_base_url("lido", LIDO_API_BASE_URL), client=client)

    async def get_steth_aprs(self) -> list[dict]:
        payload = await self.get_json("/v1/protocol/steth/apr/sma")
        aprs = ((payload or {}).get("data") or {}).get("aprs")
        if not isinstance(aprs, list):
            raise ValueError("Lido API returned no APR series")
        return aprs

    async def get_seven_day_apr(self) -> float:
        """Average of the last seven daily APRs before the most recent one, in percent."""
        aprs = await self.get_steth_aprs()
        if len(aprs) < SMA_WINDOW:
            raise ValueError("Insufficient APR data for 7-day average calculation")
        window = aprs[-(SMA_WINDOW + 1) : -1]
        return sum(float(item["apr"]) for item in window) / len(window)
