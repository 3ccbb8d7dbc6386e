from __future__ import annotations

from loguru import logger

from leverage_paths.core.boundary import ChainBoundary
from leverage_paths.core.clients.MorphoClient import MorphoClient
from leverage_paths.core.constants.leverage_abi import LENDING_ADAPTER_ABI
from leverage_paths.planner.state import read_leverage_token_config
from leverage_paths.registry import LeverageTokenConfig, get_contract_addresses
from leverage_paths.yields.types import BorrowApyData


async def fetch_morpho_market_id(
    boundary: ChainBoundary,
    token_address: str,
    chain_id: int,
    *,
    manager: str | None = None,
) -> str:
    manager = manager or get_contract_addresses(chain_id).leverage_manager
    config = await read_leverage_token_config(
        boundary, manager=manager, token=token_address, chain_id=chain_id
    )
    lending_adapter = (config or {}).get("lendingAdapter")
    if not lending_adapter:
        raise ValueError("No lending adapter found in leverage token config")
    market_id = await boundary.read(
        lending_adapter, LENDING_ADAPTER_ABI, "morphoMarketId", [], chain_id=chain_id
    )
    if not market_id:
        raise ValueError("No market ID found from lending adapter")
    return market_id


class MorphoBorrowApyProvider:
    protocol_id = "morpho"
    protocol_name = "Morpho"

    def __init__(
        self,
        boundary: ChainBoundary,
        client: MorphoClient | None = None,
        *,
        manager: str | None = None,
    ):
        self.boundary = boundary
        self.client = client or MorphoClient()
        self.manager = manager

    async def fetch_borrow_apy(self, config: LeverageTokenConfig) -> BorrowApyData:
        try:
            market_id = await fetch_morpho_market_id(
                self.boundary, config.address, config.chain_id, manager=self.manager
            )
            state = await self.client.get_market_state(market_id, config.chain_id)
        except Exception as exc:
            logger.error(f"Error fetching Morpho borrow APY for {config.address}: {exc}")
            raise
        # daily average tracks current borrowing cost
        return BorrowApyData(
            borrow_apy=float(state.get("dailyBorrowApy") or 0.0),
            utilization=float(state.get("utilization") or 0.0),
            averaging_period="24-hour average",
        )


async def fetch_borrow_apy_for_token(
    boundary: ChainBoundary,
    config: LeverageTokenConfig,
    provider: MorphoBorrowApyProvider | None = None,
) -> BorrowApyData:
    provider = provider or MorphoBorrowApyProvider(boundary)
    return await provider.fetch_borrow_apy(config)
