import time
from typing import Any

from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from leverage_paths.core.config import get_rpc_urls

# Rotate to the next configured RPC only when the current one is rate limited.
# Client errors and on-chain execution errors are raised as-is.
_RATE_LIMIT_HTTP_STATUS = 429
_RATE_LIMIT_RPC_ERROR_CODES = {429, -32005, -33200, -33300, -33400}
_RATE_LIMIT_MESSAGE_MARKERS = (
    "too many requests",
    "rate limit",
    "request rate exceeded",
    "limit exceeded",
    "compute units per second",
)
_DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS = 60.0
_RPC_RATE_LIMIT_COOLDOWN_UNTIL: dict[tuple[int, str], float] = {}


def _extract_http_status(exc: Exception) -> int | None:
    status = getattr(exc, "status", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    if response is not None:
        code = getattr(response, "status_code", None)
        if isinstance(code, int):
            return code
    return None


def _is_rate_limited_rpc_error(error: dict[str, Any]) -> bool:
    code = error.get("code")
    if isinstance(code, int) and code in _RATE_LIMIT_RPC_ERROR_CODES:
        return True
    text = str(error.get("message") or "").lower()
    return any(marker in text for marker in _RATE_LIMIT_MESSAGE_MARKERS)


def _is_in_rate_limit_cooldown(chain_id: int, endpoint_uri: str) -> bool:
    key = (chain_id, endpoint_uri)
    until = _RPC_RATE_LIMIT_COOLDOWN_UNTIL.get(key, 0.0)
    if until <= time.monotonic():
        _RPC_RATE_LIMIT_COOLDOWN_UNTIL.pop(key, None)
        return False
    return True


def _mark_rate_limit_cooldown(
    chain_id: int, endpoint_uri: str, cooldown_seconds: float
) -> None:
    _RPC_RATE_LIMIT_COOLDOWN_UNTIL[(chain_id, endpoint_uri)] = time.monotonic() + max(
        0.0, float(cooldown_seconds)
    )


def _clear_rate_limit_cooldowns() -> None:
    _RPC_RATE_LIMIT_COOLDOWN_UNTIL.clear()


class _RotatingRpcProvider(AsyncHTTPProvider):
    def __init__(self, rpcs: list[str], chain_id: int):
        super().__init__(rpcs[0])
        self.chain_id = chain_id
        self.fallbacks = [AsyncHTTPProvider(rpc) for rpc in rpcs[1:]]

    async def disconnect(self) -> None:
        await super().disconnect()
        for provider in self.fallbacks:
            await provider.disconnect()

    async def _request_via_fallbacks(self, method, params, cause: Any):
        for provider in self.fallbacks:
            if _is_in_rate_limit_cooldown(self.chain_id, provider.endpoint_uri):
                continue
            logger.info(
                f"RPC rotation chain={self.chain_id} method={method} -> {provider.endpoint_uri}"
            )
            return await provider.make_request(method, params)
        if isinstance(cause, Exception):
            raise cause
        return cause

    async def make_request(self, method, params):  # type: ignore[override]
        if self.fallbacks and _is_in_rate_limit_cooldown(
            self.chain_id, self.endpoint_uri
        ):
            return await self._request_via_fallbacks(method, params, None)

        try:
            response = await super().make_request(method, params)
        except Exception as exc:
            if _extract_http_status(exc) != _RATE_LIMIT_HTTP_STATUS or not self.fallbacks:
                raise
            _mark_rate_limit_cooldown(
                self.chain_id, self.endpoint_uri, _DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS
            )
            logger.warning(
                f"Primary RPC rate-limited for chain {self.chain_id}; rotating. Error: {exc}"
            )
            return await self._request_via_fallbacks(method, params, exc)

        error = response.get("error") if isinstance(response, dict) else None
        if self.fallbacks and isinstance(error, dict) and _is_rate_limited_rpc_error(error):
            _mark_rate_limit_cooldown(
                self.chain_id, self.endpoint_uri, _DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS
            )
            logger.warning(
                f"Primary RPC returned a rate-limit error for chain {self.chain_id}; "
                f"rotating. Error: {error}"
            )
            return await self._request_via_fallbacks(method, params, response)
        return response


def _get_rpcs_for_chain_id(chain_id: int) -> list:
    mapping = get_rpc_urls()
    rpcs = mapping.get(str(chain_id))
    if rpcs is None:
        rpcs = mapping.get(chain_id)  # allow int keys
    if rpcs is None:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    if isinstance(rpcs, str):
        return [rpcs]
    return list(rpcs)


def get_web3_from_chain_id(chain_id: int) -> AsyncWeb3:
    rpcs = _get_rpcs_for_chain_id(chain_id)
    return AsyncWeb3(_RotatingRpcProvider(rpcs, chain_id))

