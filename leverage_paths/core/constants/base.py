DEFAULT_SLIPPAGE = 0.005

# Timeout constants (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0  # HTTP client timeout
DEFAULT_TRANSACTION_TIMEOUT = 180  # Transaction receipt timeout (seconds)

BPS_DENOMINATOR = 10_000
MAX_BPS = 10_000

MANTISSA = 10**18
USD_DECIMALS = 8
SECONDS_PER_YEAR = 365 * 24 * 60 * 60
MAX_UINT256 = 2**256 - 1

DEFAULT_SWAP_DEADLINE_S = 15 * 60

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ETH_SENTINEL = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

ADAPTER_UNISWAP_V2 = "uniswapV2"
ADAPTER_UNISWAP_V3 = "uniswapV3"
ADAPTER_LIFI = "lifi"
ADAPTER_VELORA = "velora"
