from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class AssetConfig(_Frozen):
    address: str
    decimals: int = Field(ge=0)
    symbol: str = ""
    name: str = ""


class UniswapV2Swap(_Frozen):
    type: Literal["uniswapV2"] = "uniswapV2"
    router: str


class UniswapV3Swap(_Frozen):
    type: Literal["uniswapV3"] = "uniswapV3"
    pool_key: str


class LifiSwap(_Frozen):
    type: Literal["lifi"] = "lifi"
    allow_bridges: str | None = None
    order: Literal["CHEAPEST", "FASTEST"] | None = None


class VeloraSwap(_Frozen):
    type: Literal["velora"] = "velora"


SwapDescriptor = Annotated[
    UniswapV2Swap | UniswapV3Swap | LifiSwap | VeloraSwap,
    Field(discriminator="type"),
]


class SwapRoutes(_Frozen):
    debt_to_collateral: SwapDescriptor | None = None
    collateral_to_debt: SwapDescriptor | None = None


class ApyConfig(_Frozen):
    points_multiplier: float | None = None
    apr_provider: Literal["lido", "etherfi", "defillama"] | None = None
    # pool id for defillama
    apr_source_id: str | None = None


class LeverageTokenConfig(_Frozen):
    address: str
    chain_id: int
    decimals: int = 18
    symbol: str
    name: str = ""
    leverage_ratio: float
    collateral_asset: AssetConfig
    debt_asset: AssetConfig
    swaps: SwapRoutes = SwapRoutes()
    apy_config: ApyConfig | None = None
    is_test_only: bool = False

    @property
    def requires_swap(self) -> bool:
        return self.collateral_asset.address.lower() != self.debt_asset.address.lower()
