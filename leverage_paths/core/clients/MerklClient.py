from __future__ import annotations

from typing import Any

import httpx

from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url

MERKL_API_BASE_URL = "https://api.merkl.xyz"


class MerklClient(JsonHttpClient):
    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(base_url or get_api_base_url("merkl", MERKL_API_BASE_URL), client=client)

    async def get_opportunities(
        self, *, identifier: str, chain_id: int | None = None
    ) -> list[dict[str, Any]]:
        params: dict[str, str] = {"identifier": identifier}
        if chain_id is not None:
            params["chainId"] = str(int(chain_id))
        data = await self.get_json("/v4/opportunities", params=params)
        if isinstance(data, dict):
            data = data.get("opportunities") or []
        if not isinstance(data, list):
            raise ValueError("Merkl API returned unexpected response type")
        return [d for d in data if isinstance(d, dict)]
