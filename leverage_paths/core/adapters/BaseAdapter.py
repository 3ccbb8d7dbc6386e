from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger

from leverage_paths.core.adapters.models import Quote, QuoteRequest
from leverage_paths.core.constants.base import MAX_BPS


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(self, name: str, config: dict[str, Any] | None = None):
        self.name = name
        self.config = config or {}
        self.logger = logger.bind(adapter=self.__class__.__name__)

    async def close(self) -> None:
        pass


class SwapQuoteAdapter(BaseAdapter):
    """One swap venue behind a uniform ``quote(request) -> Quote`` capability.

    Construction never touches the network; it only validates configuration
    and raises the typed errors from ``leverage_paths.core.errors`` when
    something required for the chain is absent. Instances are callable so a
    bound adapter can be handed to the planners as a quote function.
    """

    adapter_type: str
    supports_exact_out: bool = True
    requires_client: bool = False

    def __init__(
        self,
        name: str,
        config: dict[str, Any] | None = None,
        *,
        chain_id: int,
        router: str,
        slippage_bps: int,
    ):
        super().__init__(name, config)
        if slippage_bps < 0 or slippage_bps > MAX_BPS:
            raise ValueError("Invalid slippage basis points")
        self.chain_id = int(chain_id)
        self.router = router
        self.slippage_bps = int(slippage_bps)

    def effective_slippage_bps(self, request: QuoteRequest) -> int:
        if request.slippage_bps is None:
            return self.slippage_bps
        return request.slippage_bps

    @abstractmethod
    async def quote(self, request: QuoteRequest) -> Quote: ...

    async def __call__(self, request: QuoteRequest) -> Quote:
        self.logger.debug(
            f"quote {request.intent} {request.in_token}->{request.out_token} "
            f"in={request.amount_in} out={request.amount_out}"
        )
        return await self.quote(request)
