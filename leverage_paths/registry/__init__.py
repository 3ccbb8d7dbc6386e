from leverage_paths.registry.registry import (
    ContractAddresses,
    get_contract_addresses,
    get_leverage_token_config,
    get_token_decimals,
    get_uniswap_v3_chain_config,
    get_uniswap_v3_pool_config,
    get_wrapped_native,
    list_leverage_token_configs,
)
from leverage_paths.registry.types import (
    ApyConfig,
    AssetConfig,
    LeverageTokenConfig,
    LifiSwap,
    SwapDescriptor,
    SwapRoutes,
    UniswapV2Swap,
    UniswapV3Swap,
    VeloraSwap,
)

__all__ = [
    "ApyConfig",
    "AssetConfig",
    "ContractAddresses",
    "LeverageTokenConfig",
    "LifiSwap",
    "SwapDescriptor",
    "SwapRoutes",
    "UniswapV2Swap",
    "UniswapV3Swap",
    "VeloraSwap",
    "get_contract_addresses",
    "get_leverage_token_config",
    "get_token_decimals",
    "get_uniswap_v3_chain_config",
    "get_uniswap_v3_pool_config",
    "get_wrapped_native",
    "list_leverage_token_configs",
]
