from __future__ import annotations

from typing import Any

import httpx

from leverage_paths.core.clients.http import JsonHttpClient
from leverage_paths.core.config import get_api_base_url

ETHERFI_API_BASE_URL = "https://misc-cache.seamlessprotocol.com"


class EtherFiClient(JsonHttpClient):
    def __init__(self, *, base_url: str | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(
            base_url or get_api_base_url("etherfi", ETHERFI_API_BASE_URL), client=client
        )

    async def get_protocol_detail(self) -> dict[str, Any]:
        payload = await self.get_json("/etherfi-protocol-detail")
        if not isinstance(payload, dict):
            raise ValueError("Ether.fi API returned unexpected response type")
        return payload

    async def get_seven_day_aprs(self) -> tuple[float, float, dict[str, Any]]:
        """``(staking, restaking, raw)`` seven-day APRs in percent."""
        detail = await self.get_protocol_detail()
        try:
            staking = float(detail["7_day_apr"])
            restaking = float(detail["7_day_restaking_apr"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Ether.fi APR fields missing: {exc}") from exc
        return staking, restaking, detail
