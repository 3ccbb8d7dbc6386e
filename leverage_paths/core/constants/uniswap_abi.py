def _uint(name: str) -> dict[str, str]:
    return {"internalType": "uint256", "name": name, "type": "uint256"}


_PATH = {"internalType": "address[]", "name": "path", "type": "address[]"}
_TO = {"internalType": "address", "name": "to", "type": "address"}
_AMOUNTS = {"internalType": "uint256[]", "name": "amounts", "type": "uint256[]"}

UNISWAP_V2_ROUTER_ABI = [
    {
        "inputs": [_uint("amountIn"), _PATH],
        "name": "getAmountsOut",
        "outputs": [_AMOUNTS],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint("amountOut"), _PATH],
        "name": "getAmountsIn",
        "outputs": [_AMOUNTS],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            _uint("amountIn"),
            _uint("amountOutMin"),
            _PATH,
            _TO,
            _uint("deadline"),
        ],
        "name": "swapExactTokensForTokens",
        "outputs": [_AMOUNTS],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            _uint("amountOut"),
            _uint("amountInMax"),
            _PATH,
            _TO,
            _uint("deadline"),
        ],
        "name": "swapTokensForExactTokens",
        "outputs": [_AMOUNTS],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [_uint("amountOutMin"), _PATH, _TO, _uint("deadline")],
        "name": "swapExactETHForTokens",
        "outputs": [_AMOUNTS],
        "stateMutability": "payable",
        "type": "function",
    },
]

_QUOTE_OUTPUTS_TAIL = [
    {"internalType": "uint160", "name": "sqrtPriceX96After", "type": "uint160"},
    {"internalType": "uint32", "name": "initializedTicksCrossed", "type": "uint32"},
    _uint("gasEstimate"),
]

UNISWAP_V3_QUOTER_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "tokenIn", "type": "address"},
                    {"internalType": "address", "name": "tokenOut", "type": "address"},
                    _uint("amountIn"),
                    {"internalType": "uint24", "name": "fee", "type": "uint24"},
                    {
                        "internalType": "uint160",
                        "name": "sqrtPriceLimitX96",
                        "type": "uint160",
                    },
                ],
                "internalType": "struct IQuoterV2.QuoteExactInputSingleParams",
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "quoteExactInputSingle",
        "outputs": [_uint("amountOut"), *_QUOTE_OUTPUTS_TAIL],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "tokenIn", "type": "address"},
                    {"internalType": "address", "name": "tokenOut", "type": "address"},
                    _uint("amount"),
                    {"internalType": "uint24", "name": "fee", "type": "uint24"},
                    {
                        "internalType": "uint160",
                        "name": "sqrtPriceLimitX96",
                        "type": "uint160",
                    },
                ],
                "internalType": "struct IQuoterV2.QuoteExactOutputSingleParams",
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "quoteExactOutputSingle",
        "outputs": [_uint("amountIn"), *_QUOTE_OUTPUTS_TAIL],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def _swap_params(amount_name: str, limit_name: str, struct_name: str) -> dict:
    return {
        "components": [
            {"internalType": "address", "name": "tokenIn", "type": "address"},
            {"internalType": "address", "name": "tokenOut", "type": "address"},
            {"internalType": "uint24", "name": "fee", "type": "uint24"},
            {"internalType": "address", "name": "recipient", "type": "address"},
            _uint("deadline"),
            _uint(amount_name),
            _uint(limit_name),
            {"internalType": "uint160", "name": "sqrtPriceLimitX96", "type": "uint160"},
        ],
        "internalType": f"struct ISwapRouter.{struct_name}",
        "name": "params",
        "type": "tuple",
    }


UNISWAP_V3_SWAP_ROUTER_ABI = [
    {
        "inputs": [
            _swap_params("amountIn", "amountOutMinimum", "ExactInputSingleParams")
        ],
        "name": "exactInputSingle",
        "outputs": [_uint("amountOut")],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [
            _swap_params("amountOut", "amountInMaximum", "ExactOutputSingleParams")
        ],
        "name": "exactOutputSingle",
        "outputs": [_uint("amountIn")],
        "stateMutability": "payable",
        "type": "function",
    },
]
