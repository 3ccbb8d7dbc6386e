_ACTION_DATA_COMPONENTS = [
    {"internalType": "uint256", "name": "collateral", "type": "uint256"},
    {"internalType": "uint256", "name": "debt", "type": "uint256"},
    {"internalType": "uint256", "name": "equity", "type": "uint256"},
    {"internalType": "uint256", "name": "shares", "type": "uint256"},
    {"internalType": "uint256", "name": "tokenFee", "type": "uint256"},
    {"internalType": "uint256", "name": "treasuryFee", "type": "uint256"},
]

_TOKEN_INPUT = {
    "internalType": "contract ILeverageToken",
    "name": "token",
    "type": "address",
}

_CALL_COMPONENTS = [
    {"internalType": "address", "name": "target", "type": "address"},
    {"internalType": "uint256", "name": "value", "type": "uint256"},
    {"internalType": "bytes", "name": "data", "type": "bytes"},
]

LEVERAGE_MANAGER_ABI = [
    {
        "inputs": [_TOKEN_INPUT],
        "name": "getLeverageTokenConfig",
        "outputs": [
            {
                "components": [
                    {
                        "internalType": "contract ILendingAdapter",
                        "name": "lendingAdapter",
                        "type": "address",
                    },
                    {
                        "internalType": "contract IRebalanceAdapterBase",
                        "name": "rebalanceAdapter",
                        "type": "address",
                    },
                    {"internalType": "uint256", "name": "mintTokenFee", "type": "uint256"},
                    {
                        "internalType": "uint256",
                        "name": "redeemTokenFee",
                        "type": "uint256",
                    },
                ],
                "internalType": "struct LeverageTokenConfig",
                "name": "config",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_TOKEN_INPUT],
        "name": "getLeverageTokenState",
        "outputs": [
            {
                "components": [
                    {
                        "internalType": "uint256",
                        "name": "collateralInDebtAsset",
                        "type": "uint256",
                    },
                    {"internalType": "uint256", "name": "debt", "type": "uint256"},
                    {"internalType": "uint256", "name": "equity", "type": "uint256"},
                    {
                        "internalType": "uint256",
                        "name": "collateralRatio",
                        "type": "uint256",
                    },
                ],
                "internalType": "struct LeverageTokenState",
                "name": "state",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            _TOKEN_INPUT,
            {"internalType": "uint256", "name": "collateral", "type": "uint256"},
        ],
        "name": "previewDeposit",
        "outputs": [
            {
                "components": _ACTION_DATA_COMPONENTS,
                "internalType": "struct ActionData",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            _TOKEN_INPUT,
            {"internalType": "uint256", "name": "shares", "type": "uint256"},
        ],
        "name": "previewRedeem",
        "outputs": [
            {
                "components": _ACTION_DATA_COMPONENTS,
                "internalType": "struct ActionData",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

LEVERAGE_ROUTER_ABI = [
    {
        "inputs": [
            _TOKEN_INPUT,
            {
                "internalType": "uint256",
                "name": "collateralFromSender",
                "type": "uint256",
            },
        ],
        "name": "previewDeposit",
        "outputs": [
            {
                "components": _ACTION_DATA_COMPONENTS,
                "internalType": "struct ActionData",
                "name": "previewData",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            _TOKEN_INPUT,
            {
                "internalType": "uint256",
                "name": "collateralFromSender",
                "type": "uint256",
            },
            {"internalType": "uint256", "name": "flashLoanAmount", "type": "uint256"},
            {"internalType": "uint256", "name": "minShares", "type": "uint256"},
            {
                "internalType": "contract IMulticallExecutor",
                "name": "multicallExecutor",
                "type": "address",
            },
            {
                "components": _CALL_COMPONENTS,
                "internalType": "struct ILeverageRouter.Call[]",
                "name": "swapCalls",
                "type": "tuple[]",
            },
        ],
        "name": "deposit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            _TOKEN_INPUT,
            {"internalType": "uint256", "name": "shares", "type": "uint256"},
            {
                "internalType": "uint256",
                "name": "minCollateralForSender",
                "type": "uint256",
            },
            {
                "internalType": "contract IMulticallExecutor",
                "name": "multicallExecutor",
                "type": "address",
            },
            {
                "components": _CALL_COMPONENTS,
                "internalType": "struct ILeverageRouter.Call[]",
                "name": "swapCalls",
                "type": "tuple[]",
            },
        ],
        "name": "redeem",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

REBALANCE_ADAPTER_ABI = [
    {
        "inputs": [],
        "name": name,
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
    for name in (
        "getLeverageTokenMinCollateralRatio",
        "getLeverageTokenMaxCollateralRatio",
        "getLeverageTokenTargetCollateralRatio",
    )
]

LENDING_ADAPTER_ABI = [
    {
        "inputs": [],
        "name": "morphoMarketId",
        "outputs": [{"internalType": "Id", "name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
]
