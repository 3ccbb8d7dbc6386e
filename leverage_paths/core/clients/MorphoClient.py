from __future__ import annotations

from typing import Any

import httpx

from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url

MORPHO_GRAPHQL_URL = "https://blue-api.morpho.org/graphql"

MARKET_BORROW_RATE_QUERY = """
query MarketBorrowRate($uniqueKey: String!, $chainId: Int) {
  marketByUniqueKey(uniqueKey: $uniqueKey, chainId: $chainId) {
    uniqueKey
    state {
      borrowApy
      dailyBorrowApy
      utilization
    }
  }
}
"""


class MorphoClient(JsonHttpClient):
    def __init__(self, *, graphql_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(
            graphql_url or get_api_base_url("morpho", MORPHO_GRAPHQL_URL), client=client
        )

    async def _post(self, *, query: str, variables: dict[str, Any] | None = None) -> Any:
        data = await self.post_json("", {"query": query, "variables": variables or {}})
        if isinstance(data, dict) and data.get("errors"):
            raise ValueError(f"Morpho GraphQL errors: {data['errors']}")
        return data.get("data", data) if isinstance(data, dict) else data

    async def get_market_state(self, unique_key: str, chain_id: int) -> dict[str, Any]:
        payload = await self._post(
            query=MARKET_BORROW_RATE_QUERY,
            variables={"uniqueKey": unique_key, "chainId": int(chain_id)},
        )
        market = (payload or {}).get("marketByUniqueKey")
        if not market:
            raise ValueError(f"No market data found for unique key: {unique_key}")
        return market.get("state") or {}
