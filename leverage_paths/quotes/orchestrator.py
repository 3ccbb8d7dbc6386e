"""Turns a leverage token's swap descriptor into a ready quote function.

``resolve_quote`` never touches the network. It picks the adapter for the
descriptor's ``type``, constructs it, and reports one of a fixed set of
statuses so callers can tell "nothing to do" from "misconfigured" from
"broken" without parsing messages.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from loguru import logger

from leverage_paths.adapters.lifi_adapter.adapter import LifiQuoteAdapter
from leverage_paths.adapters.uniswap_v2_adapter.adapter import UniswapV2QuoteAdapter
from leverage_paths.adapters.uniswap_v3_adapter.adapter import UniswapV3QuoteAdapter
from leverage_paths.adapters.velora_adapter.adapter import VeloraQuoteAdapter
from leverage_paths.core.adapters.BaseAdapter import SwapQuoteAdapter
from leverage_paths.core.adapters.models import QuoteFn, QuoteIntent
from leverage_paths.core.boundary import ChainBoundary
from leverage_paths.core.constants.base import ADAPTER_LIFI, ADAPTER_UNISWAP_V2
from leverage_paths.core.errors import (
    MissingChainConfigError,
    MissingClientError,
    normalize_error,
)
from leverage_paths.registry import (
    LifiSwap,
    SwapDescriptor,
    UniswapV2Swap,
    UniswapV3Swap,
    VeloraSwap,
    get_uniswap_v3_chain_config,
    get_uniswap_v3_pool_config,
    get_wrapped_native,
)

QuoteStatus = Literal[
    "not-required",
    "missing-config",
    "missing-router",
    "missing-client",
    "missing-chain-config",
    "ready",
    "error",
]
SwapDirection = Literal["mint", "redeem"]

ClientFactory = Callable[[int], ChainBoundary | None]

# Adapters that can only quote a sell amount on the redeem leg.
EXACT_IN_REDEEM_ADAPTERS = frozenset({ADAPTER_LIFI, ADAPTER_UNISWAP_V2})


@dataclass(frozen=True)
class QuoteResolution:
    status: QuoteStatus
    quote: QuoteFn | None = None
    adapter: SwapQuoteAdapter | None = None
    adapter_type: str | None = None
    intent: QuoteIntent | None = None
    error: Exception | None = None

    @property
    def ready(self) -> bool:
        return self.status == "ready"


def resolve_intent(adapter_type: str | None, direction: SwapDirection) -> QuoteIntent:
    """Mint legs always sell the flash-loaned debt; redeem legs buy the debt back."""
    if direction == "mint":
        return "exactIn"
    if adapter_type in EXACT_IN_REDEEM_ADAPTERS:
        return "exactIn"
    return "exactOut"


def build_quote_adapter(
    *,
    chain_id: int,
    router_address: str,
    swap: SwapDescriptor,
    slippage_bps: int,
    get_client: ClientFactory,
    from_address: str | None = None,
) -> SwapQuoteAdapter:
    match swap:
        case LifiSwap():
            return LifiQuoteAdapter(
                chain_id=chain_id,
                router=router_address,
                slippage_bps=slippage_bps,
                from_address=from_address,
                allow_bridges=swap.allow_bridges,
                order=swap.order or "CHEAPEST",
            )
        case VeloraSwap():
            return VeloraQuoteAdapter(
                chain_id=chain_id,
                router=router_address,
                slippage_bps=slippage_bps,
                from_address=from_address,
            )
        case UniswapV2Swap():
            return UniswapV2QuoteAdapter(
                chain_id=chain_id,
                router=router_address,
                swap_router=swap.router,
                boundary=get_client(chain_id),
                wrapped_native=get_wrapped_native(chain_id),
                slippage_bps=slippage_bps,
            )
        case UniswapV3Swap():
            return UniswapV3QuoteAdapter(
                chain_id=chain_id,
                router=router_address,
                boundary=get_client(chain_id),
                pool_key=swap.pool_key,
                chain_config=get_uniswap_v3_chain_config(chain_id),
                pool_config=get_uniswap_v3_pool_config(chain_id, swap.pool_key),
                wrapped_native=get_wrapped_native(chain_id),
                slippage_bps=slippage_bps,
            )
    raise ValueError(f"Unsupported swap type: {getattr(swap, 'type', swap)!r}")


def resolve_quote(
    *,
    chain_id: int,
    router_address: str | None,
    swap: SwapDescriptor | None,
    slippage_bps: int,
    requires_quote: bool,
    get_client: ClientFactory,
    from_address: str | None = None,
    direction: SwapDirection = "mint",
) -> QuoteResolution:
    if not requires_quote:
        return QuoteResolution(status="not-required")
    if swap is None:
        return QuoteResolution(status="missing-config")
    if not router_address:
        return QuoteResolution(status="missing-router", adapter_type=swap.type)

    intent = resolve_intent(swap.type, direction)
    try:
        adapter = build_quote_adapter(
            chain_id=chain_id,
            router_address=router_address,
            swap=swap,
            slippage_bps=slippage_bps,
            get_client=get_client,
            from_address=from_address,
        )
    except MissingClientError as exc:
        status: QuoteStatus = "missing-client"
        error: Exception = exc
    except MissingChainConfigError as exc:
        status = "missing-chain-config"
        error = exc
    except Exception as exc:  # noqa: BLE001
        status = "error"
        error = normalize_error(exc)
    else:
        return QuoteResolution(
            status="ready",
            quote=adapter,
            adapter=adapter,
            adapter_type=adapter.adapter_type,
            intent=intent,
        )

    logger.bind(status=status).debug(
        f"Quote unavailable for {swap.type} on chain {chain_id}: {error}"
    )
    return QuoteResolution(
        status=status, adapter_type=swap.type, intent=intent, error=error
    )
