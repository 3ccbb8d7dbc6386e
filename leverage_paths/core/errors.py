from __future__ import annotations

from typing import Any

USER_REJECTED_CODE = 4001
CHAIN_NOT_ADDED_CODE = 4902

_SLIPPAGE_MARKERS = (
    "0x5a046737",
    "0x76baadda",
    "SlippageExceeded",
    "SlippageToleranceExceeded",
    "PriceImpactTooHigh",
    "InsufficientOutputAmount",
    "AmountOutMin",
    "CollateralSlippageTooHigh",
    "slippage",
    "Slippage",
)
_REVERT_KIND_MARKERS = (
    ("StaleOracle", "stale-oracle"),
    ("RebalancingInProgress", "rebalancing-in-progress"),
    ("InsufficientLiquidity", "insufficient-liquidity"),
    ("InsufficientBalance", "insufficient-balance"),
    ("transfer amount exceeds balance", "insufficient-balance"),
)
_RPC_MARKERS = (
    "rpc",
    "timeout",
    "timed out",
    "connection",
    "too many requests",
    "rate limit",
    "no rpcs configured",
)


class PlanningError(ValueError):
    """Raised when a mint or redeem plan cannot be built.

    Planners never return partial plans: any invalid input, unavailable
    on-chain state or failed quote surfaces as this error, chained from the
    underlying cause when there is one.
    """


class QuoteAdapterError(RuntimeError):
    pass


class MissingClientError(QuoteAdapterError):
    def __init__(self, chain_id: int, message: str | None = None):
        self.chain_id = int(chain_id)
        super().__init__(message or f"Chain read client unavailable for chain {chain_id}")


class MissingChainConfigError(QuoteAdapterError):
    def __init__(self, chain_id: int, message: str | None = None):
        self.chain_id = int(chain_id)
        super().__init__(message or f"Missing configuration for chain {chain_id}")


class MissingPoolConfigError(MissingChainConfigError):
    def __init__(self, chain_id: int, pool_key: str | None = None):
        self.pool_key = pool_key
        super().__init__(
            chain_id,
            f"Missing Uniswap V3 configuration for chain {chain_id}"
            + (f" pool {pool_key}" if pool_key else ""),
        )


class MissingWrappedNativeError(MissingChainConfigError):
    def __init__(self, chain_id: int):
        super().__init__(chain_id, f"Missing wrapped native token for chain {chain_id}")


class QuoteOrchestrationError(RuntimeError):
    def __init__(self, message: str, original: Any = None):
        self.original = original
        super().__init__(message)


def normalize_error(value: Any) -> Exception:
    """Coerce anything raised or returned as a failure into an Exception."""
    if isinstance(value, Exception):
        return value
    if isinstance(value, str) and value:
        return QuoteOrchestrationError(value, original=value)
    return QuoteOrchestrationError(f"Unknown error: {value!r}", original=value)


class ExecutionError(RuntimeError):
    actionable = True

    def __init__(self, message: str, *, code: int | None = None, cause: Any = None):
        self.code = code
        self.cause = cause
        super().__init__(message)


class WalletNotConnectedError(ExecutionError):
    actionable = False

    def __init__(self, message: str = "Wallet not connected", **kwargs: Any):
        super().__init__(message, **kwargs)


class UserRejectedError(ExecutionError):
    actionable = False

    def __init__(self, message: str = "User rejected the request", **kwargs: Any):
        kwargs.setdefault("code", USER_REJECTED_CODE)
        super().__init__(message, **kwargs)


class ChainSwitchFailedError(ExecutionError):
    actionable = False

    def __init__(
        self,
        message: str = "Failed to switch chain",
        *,
        expected_chain_id: int | None = None,
        actual_chain_id: int | None = None,
        **kwargs: Any,
    ):
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id
        kwargs.setdefault("code", CHAIN_NOT_ADDED_CODE)
        super().__init__(message, **kwargs)


class TransactionRevertedError(ExecutionError):
    def __init__(
        self,
        txn_hash: str | None,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
        *,
        reason: str | None = None,
        **kwargs: Any,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        self.reason = reason
        self.kind = revert_kind(reason or message or "")
        super().__init__(
            message or f"Transaction reverted: {txn_hash or reason or 'unknown'}",
            **kwargs,
        )

    @property
    def actionable(self) -> bool:  # type: ignore[override]
        return self.kind != "insufficient-balance"


class RpcFailureError(ExecutionError):
    pass


def revert_kind(text: str) -> str:
    for marker, kind in _REVERT_KIND_MARKERS:
        if marker in text:
            return kind
    if any(marker in text for marker in _SLIPPAGE_MARKERS):
        return "slippage-exceeded"
    return "unknown"


def _error_code(exc: Any) -> int | None:
    for candidate in (exc, getattr(exc, "cause", None), getattr(exc, "__cause__", None)):
        code = getattr(candidate, "code", None)
        if isinstance(code, int):
            return code
        if isinstance(candidate, dict) and isinstance(candidate.get("code"), int):
            return candidate["code"]
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], dict) and isinstance(args[0].get("code"), int):
        return args[0]["code"]
    return None


def _revert_reason(exc: Any) -> str | None:
    reason = getattr(exc, "reason", None)
    if reason:
        return str(reason)
    data = getattr(exc, "data", None)
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    if isinstance(data, str) and data:
        return data
    return None


def classify_error(exc: Any) -> ExecutionError:
    """Map wallet, RPC and contract failures onto the execution taxonomy."""
    if isinstance(exc, ExecutionError):
        return exc
    if not isinstance(exc, Exception):
        exc = normalize_error(exc)

    code = _error_code(exc)
    if code == USER_REJECTED_CODE:
        return UserRejectedError(cause=exc)
    if code == CHAIN_NOT_ADDED_CODE:
        return ChainSwitchFailedError(
            str(exc) or "Failed to switch chain",
            expected_chain_id=getattr(exc, "expected_chain_id", None),
            actual_chain_id=getattr(exc, "actual_chain_id", None),
            cause=exc,
        )

    message = str(exc)
    reason = _revert_reason(exc)
    if reason is not None or "revert" in message.lower():
        return TransactionRevertedError(
            getattr(exc, "txn_hash", None),
            getattr(exc, "receipt", None),
            message or None,
            reason=reason,
            code=code,
            cause=exc,
        )
    lowered = message.lower()
    if any(marker in lowered for marker in _RPC_MARKERS) or isinstance(
        exc, (ConnectionError, TimeoutError)
    ):
        return RpcFailureError(message or "RPC request failed", code=code, cause=exc)
    if "wallet" in lowered and "not connected" in lowered:
        return WalletNotConnectedError(message, cause=exc)
    return ExecutionError(message or "Unknown execution error", code=code, cause=exc)


def is_actionable_error(exc: Any) -> bool:
    return bool(getattr(classify_error(exc), "actionable", True))
