from __future__ import annotations

import math
from datetime import datetime, timedelta

import httpx

from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url

DEFILLAMA_YIELDS_BASE_URL = "https://yields.llama.fi"


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def average_last_day(points: list[dict]) -> float:
    """Mean ``apy`` over the 24h before the newest point, the newest point excluded."""
    if not points:
        raise ValueError("DeFi Llama API returned empty or invalid data")
    latest = _parse_timestamp(points[-1]["timestamp"])
    cutoff = latest - timedelta(days=1)

    values = []
    for point in points:
        apy = point.get("apy")
        if apy is None:
            continue
        apy = float(apy)
        if math.isnan(apy):
            continue
        ts = _parse_timestamp(point["timestamp"])
        if cutoff <= ts < latest:
            values.append(apy)
    if not values:
        raise ValueError("No valid APR data found in the last 24 hours")
    return sum(values) / len(values)


class DefiLlamaClient(JsonHttpClient):
    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(
            base_url or get_api_base_url("defillama", DEFILLAMA_YIELDS_BASE_URL),
            client=client,
        )

    async def get_pool_chart(self, pool_id: str) -> list[dict]:
        payload = await self.get_json(f"/chart/{pool_id}")
        data = (payload or {}).get("data")
        if (payload or {}).get("status") != "success" or not isinstance(data, list) or not data:
            raise ValueError("DeFi Llama API returned empty or invalid data")
        return data

    async def get_day_average_apy(self, pool_id: str) -> float:
        return average_last_day(await self.get_pool_chart(pool_id))
