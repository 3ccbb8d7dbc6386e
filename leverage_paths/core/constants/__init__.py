from leverage_paths.core.constants.base import (
    BPS_DENOMINATOR,
    ETH_SENTINEL,
    MANTISSA,
    MAX_UINT256,
    USD_DECIMALS,
    ZERO_ADDRESS,
)
from leverage_paths.core.constants.chains import (
    CHAIN_ID_BASE,
    CHAIN_ID_ETHEREUM,
)

__all__ = [
    "BPS_DENOMINATOR",
    "CHAIN_ID_BASE",
    "CHAIN_ID_ETHEREUM",
    "ETH_SENTINEL",
    "MANTISSA",
    "MAX_UINT256",
    "USD_DECIMALS",
    "ZERO_ADDRESS",
]
