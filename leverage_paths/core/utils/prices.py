from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Protocol

from leverage_paths.core.constants.base import USD_DECIMALS

USD_SCALE = 10**USD_DECIMALS


class PriceSource(Protocol):
    async def get_usd_prices(
        self, addresses: list[str], chain_id: int
    ) -> Mapping[str, float]: ...


def to_scaled_usd_price(price: Any) -> int:
    """USD price as an integer with USD_DECIMALS places, truncated."""
    if price is None:
        return 0
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        return 0
    if not value.is_finite() or value <= 0:
        return 0
    return int((value * USD_SCALE).to_integral_value(rounding=ROUND_DOWN))


def to_scaled_usd(amount: int, decimals: int, scaled_price: int) -> int:
    return (int(amount) * int(scaled_price)) // (10 ** int(decimals))


def from_scaled_usd(amount: int, decimals: int, scaled_price: int) -> int:
    if scaled_price <= 0:
        return 0
    return (int(amount) * (10 ** int(decimals))) // int(scaled_price)


def scaled_usd_to_float(value: int) -> float:
    return int(value) / USD_SCALE


def lookup_price(prices: Mapping[str, Any] | None, address: str) -> int:
    if not prices:
        return 0
    price = prices.get(address.lower())
    if price is None:
        price = prices.get(address)
    return to_scaled_usd_price(price)
