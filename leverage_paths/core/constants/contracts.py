from leverage_paths.core.constants.chains import CHAIN_ID_BASE, CHAIN_ID_ETHEREUM

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

BASE_WETH = "0x4200000000000000000000000000000000000006"
MAINNET_WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

WRAPPED_NATIVE: dict[int, str] = {
    CHAIN_ID_ETHEREUM: MAINNET_WETH,
    CHAIN_ID_BASE: BASE_WETH,
}

LEVERAGE_CONTRACTS: dict[int, dict[str, str]] = {
    CHAIN_ID_BASE: {
        "leverage_manager": "0x38Ba21C6Bf31dF1b1798FCEd07B4e9b07C5ec3a8",
        "leverage_router": "0xDbA92fC3dc10a17b96b6E807a908155C389A887C",
    },
}

BASE_UNISWAP_V2_ROUTER = "0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24"

UNISWAP_V3_CHAIN_CONFIG: dict[int, dict[str, str]] = {
    CHAIN_ID_ETHEREUM: {
        "quoter": "0x61fFE014bA17989E743c5F6cB21bF9697530B21e",
        "swap_router": "0xE592427A0AEce92De3Edc1F18281ae4E1d4c2b3C",
    },
}

MAINNET_USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
MAINNET_CBBTC = "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf"

UNISWAP_V3_POOLS: dict[int, dict[str, dict[str, object]]] = {
    CHAIN_ID_ETHEREUM: {
        "usdc-cbbtc": {
            "token0": MAINNET_USDC,
            "token1": MAINNET_CBBTC,
            "fee": 500,
        },
    },
}
