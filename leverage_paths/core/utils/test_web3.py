import copy
from unittest.mock import AsyncMock

import pytest

import leverage_paths.core.config as config
from leverage_paths.core.utils.web3 import (
    _clear_rate_limit_cooldowns,
    _RotatingRpcProvider,
    get_web3_from_chain_id,
)

PRIMARY = "https://primary-rpc.invalid"
BACKUP = "https://backup-rpc.invalid"


class _RateLimitedError(Exception):
    def __init__(self):
        super().__init__("Too Many Requests")
        self.status = 429


@pytest.fixture(autouse=True)
def clear_cooldowns():
    _clear_rate_limit_cooldowns()
    yield
    _clear_rate_limit_cooldowns()


@pytest.fixture
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


def _provider() -> _RotatingRpcProvider:
    provider = _RotatingRpcProvider([PRIMARY, BACKUP], chain_id=8453)
    provider.fallbacks[0]._make_request = AsyncMock(
        return_value=b'{"jsonrpc":"2.0","id":1,"result":"0x2"}'
    )
    return provider


@pytest.mark.asyncio
async def test_rotates_on_http_429():
    provider = _provider()
    provider._make_request = AsyncMock(side_effect=_RateLimitedError())

    resp = await provider.make_request("eth_blockNumber", [])

    assert resp["result"] == "0x2"
    assert provider.fallbacks[0]._make_request.await_count == 1


@pytest.mark.asyncio
async def test_rotates_on_rate_limit_error_code():
    provider = _provider()
    provider._make_request = AsyncMock(
        return_value=b'{"jsonrpc":"2.0","id":1,"error":{"code":-32005,"message":"Limit exceeded"}}'
    )

    resp = await provider.make_request("eth_blockNumber", [])

    assert resp["result"] == "0x2"


@pytest.mark.asyncio
async def test_execution_errors_are_not_rotated():
    provider = _provider()
    provider._make_request = AsyncMock(
        return_value=b'{"jsonrpc":"2.0","id":1,"error":{"code":3,"message":"execution reverted"}}'
    )

    resp = await provider.make_request("eth_call", [])

    assert resp["error"]["code"] == 3
    assert provider.fallbacks[0]._make_request.await_count == 0


@pytest.mark.asyncio
async def test_primary_skipped_during_cooldown():
    provider = _provider()
    provider._make_request = AsyncMock(side_effect=[_RateLimitedError()])

    await provider.make_request("eth_blockNumber", [])
    second = await provider.make_request("eth_blockNumber", [])

    assert second["result"] == "0x2"
    assert provider._make_request.await_count == 1
    assert provider.fallbacks[0]._make_request.await_count == 2


@pytest.mark.asyncio
async def test_rate_limit_without_fallback_raises():
    provider = _RotatingRpcProvider([PRIMARY], chain_id=1)
    provider._make_request = AsyncMock(side_effect=_RateLimitedError())

    with pytest.raises(_RateLimitedError):
        await provider.make_request("eth_blockNumber", [])


@pytest.mark.usefixtures("restore_global_config")
def test_web3_uses_configured_rpcs():
    config.set_config({"network": {"rpc_urls": {"8453": [PRIMARY, BACKUP]}}})

    provider = get_web3_from_chain_id(8453).provider

    assert provider.endpoint_uri == PRIMARY
    assert [p.endpoint_uri for p in provider.fallbacks] == [BACKUP]


@pytest.mark.usefixtures("restore_global_config")
def test_missing_rpcs_raise():
    config.set_config({"network": {"rpc_urls": {}}})
    with pytest.raises(ValueError, match="No RPCs configured"):
        get_web3_from_chain_id(1)
