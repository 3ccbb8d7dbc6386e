from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError

from leverage_paths.core.config import CONFIG, get_contract_overrides, include_test_tokens
from leverage_paths.core.constants.contracts import (
    LEVERAGE_CONTRACTS,
    MULTICALL3_ADDRESS,
    UNISWAP_V3_CHAIN_CONFIG,
    UNISWAP_V3_POOLS,
    WRAPPED_NATIVE,
)
from leverage_paths.core.errors import MissingChainConfigError
from leverage_paths.registry.tokens import LEVERAGE_TOKEN_CONFIGS
from leverage_paths.registry.types import LeverageTokenConfig


@dataclass(frozen=True)
class ContractAddresses:
    chain_id: int
    leverage_manager: str
    leverage_router: str | None = None
    multicall_executor: str | None = None
    multicall3: str = MULTICALL3_ADDRESS


def _configured_tokens() -> list[LeverageTokenConfig]:
    extra: list[LeverageTokenConfig] = []
    for raw in CONFIG.get("registry", {}).get("tokens", []) or []:
        try:
            extra.append(LeverageTokenConfig.model_validate(raw))
        except ValidationError as exc:
            logger.warning(f"Skipping invalid leverage token config entry: {exc}")
    return extra


def list_leverage_token_configs(
    chain_id: int | None = None, *, include_test: bool | None = None
) -> list[LeverageTokenConfig]:
    show_test = include_test_tokens() if include_test is None else include_test
    configs = [*LEVERAGE_TOKEN_CONFIGS.values(), *_configured_tokens()]
    return [
        c
        for c in configs
        if (chain_id is None or c.chain_id == int(chain_id))
        and (show_test or not c.is_test_only)
    ]


def get_leverage_token_config(
    address: str | None, chain_id: int | None = None, *, include_test: bool | None = None
) -> LeverageTokenConfig | None:
    if not address:
        return None
    needle = address.lower()
    for config in list_leverage_token_configs(chain_id, include_test=include_test):
        if config.address.lower() == needle:
            return config
    return None


def get_token_decimals(address: str, chain_id: int | None = None) -> int | None:
    needle = address.lower()
    for config in list_leverage_token_configs(chain_id, include_test=True):
        if config.address.lower() == needle:
            return config.decimals
        for asset in (config.collateral_asset, config.debt_asset):
            if asset.address.lower() == needle:
                return asset.decimals
    return None


def get_contract_addresses(chain_id: int) -> ContractAddresses:
    merged: dict[str, Any] = {
        **LEVERAGE_CONTRACTS.get(int(chain_id), {}),
        **{
            k: v
            for k, v in get_contract_overrides(chain_id).items()
            if k in ("leverage_manager", "leverage_router", "multicall_executor", "multicall3")
        },
    }
    if not merged.get("leverage_manager"):
        raise MissingChainConfigError(
            chain_id, f"No leverage manager address found for chain ID: {chain_id}"
        )
    return ContractAddresses(chain_id=int(chain_id), **merged)


def get_wrapped_native(chain_id: int) -> str | None:
    override = get_contract_overrides(chain_id).get("wrapped_native")
    return override or WRAPPED_NATIVE.get(int(chain_id))


def get_uniswap_v3_chain_config(chain_id: int) -> dict[str, str] | None:
    override = get_contract_overrides(chain_id).get("uniswap_v3") or {}
    base = UNISWAP_V3_CHAIN_CONFIG.get(int(chain_id), {})
    merged = {
        **base,
        **{k: v for k, v in override.items() if k in ("quoter", "swap_router")},
    }
    if not merged.get("swap_router"):
        return None
    return merged


def get_uniswap_v3_pool_config(chain_id: int, pool_key: str) -> dict[str, Any] | None:
    override = (get_contract_overrides(chain_id).get("uniswap_v3") or {}).get("pools") or {}
    pool = override.get(pool_key) or UNISWAP_V3_POOLS.get(int(chain_id), {}).get(pool_key)
    if not pool or pool.get("fee") is None:
        return None
    return dict(pool)
