from leverage_paths.core.constants.chains import CHAIN_ID_BASE, CHAIN_ID_ETHEREUM
from leverage_paths.core.constants.contracts import (
    BASE_UNISWAP_V2_ROUTER,
    BASE_WETH,
    MAINNET_CBBTC,
    MAINNET_USDC,
    MAINNET_WETH,
)
from leverage_paths.registry.types import (
    ApyConfig,
    AssetConfig,
    LeverageTokenConfig,
    LifiSwap,
    SwapRoutes,
    UniswapV2Swap,
    UniswapV3Swap,
)

WSTETH = AssetConfig(
    address="0x7f39C581F595B53c5cb19bD0b3f8dA6c935E2Ca0",
    decimals=18,
    symbol="wstETH",
    name="Wrapped stETH",
)
WEETH_BASE = AssetConfig(
    address="0x04c0599ae5a44757c0af6f9ec3b93da8976c150a",
    decimals=18,
    symbol="weETH",
    name="Wrapped Ether.fi ETH",
)

LEVERAGE_TOKEN_CONFIGS: dict[str, LeverageTokenConfig] = {
    "wsteth-weth-2x-mainnet": LeverageTokenConfig(
        address="0x10041DFFBE8fB54Ca4Dfa56F2286680EC98A37c3",
        chain_id=CHAIN_ID_ETHEREUM,
        symbol="WSTETH-WETH-2x",
        name="wstETH / WETH 2x Leverage Token",
        leverage_ratio=2,
        collateral_asset=WSTETH,
        debt_asset=AssetConfig(
            address=MAINNET_WETH, decimals=18, symbol="WETH", name="Wrapped Ether"
        ),
        swaps=SwapRoutes(
            debt_to_collateral=LifiSwap(allow_bridges="none"),
            collateral_to_debt=LifiSwap(allow_bridges="none"),
        ),
        apy_config=ApyConfig(apr_provider="lido"),
    ),
    "weeth-weth-17x-base": LeverageTokenConfig(
        address="0x17533ef332083aD03417DEe7BC058D10e18b22c5",
        chain_id=CHAIN_ID_BASE,
        symbol="WEETH-WETH-17x",
        name="weETH / WETH 17x Leverage Token",
        leverage_ratio=17,
        collateral_asset=WEETH_BASE,
        debt_asset=AssetConfig(
            address=BASE_WETH, decimals=18, symbol="WETH", name="Wrapped Ether"
        ),
        swaps=SwapRoutes(
            debt_to_collateral=UniswapV2Swap(router=BASE_UNISWAP_V2_ROUTER),
            collateral_to_debt=UniswapV2Swap(router=BASE_UNISWAP_V2_ROUTER),
        ),
        apy_config=ApyConfig(apr_provider="etherfi", points_multiplier=2),
        is_test_only=True,
    ),
    "cbbtc-usdc-2x-mainnet": LeverageTokenConfig(
        address="0x662c3f931D4101b7e2923f8493D6b35368a991aD",
        chain_id=CHAIN_ID_ETHEREUM,
        symbol="CBBTC-USDC-2x",
        name="cbBTC / USDC 2x Leverage Token",
        leverage_ratio=2,
        collateral_asset=AssetConfig(
            address=MAINNET_CBBTC, decimals=8, symbol="cbBTC", name="Coinbase Wrapped BTC"
        ),
        debt_asset=AssetConfig(
            address=MAINNET_USDC, decimals=6, symbol="USDC", name="USD Coin"
        ),
        swaps=SwapRoutes(
            debt_to_collateral=UniswapV3Swap(pool_key="usdc-cbbtc"),
            collateral_to_debt=UniswapV3Swap(pool_key="usdc-cbbtc"),
        ),
        is_test_only=True,
    ),
}
