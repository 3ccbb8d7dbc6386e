"""Percent <-> basis point conversion and floor-safe percent-of-balance math."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from leverage_paths.core.config import get_default_slippage_bps
from leverage_paths.core.constants.base import MAX_BPS
from leverage_paths.core.utils.math import apply_slippage_floor
from leverage_paths.core.utils.units import format_units, to_erc20_raw

__all__ = [
    "SlippageInput",
    "apply_slippage_floor",
    "bps_to_percent_string",
    "parse_percent",
    "parse_slippage",
    "percent_of_balance",
    "percent_to_bps",
]

_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class SlippageInput:
    # the text as typed; only value_bps is validated
    display: str
    value_bps: int

    @property
    def percent(self) -> Decimal:
        return Decimal(self.value_bps) / _HUNDRED


def parse_percent(text: str | float | int | Decimal | None) -> Decimal | None:
    """Parse a percent value; None for anything that is not a finite number."""
    if text is None:
        return None
    try:
        value = Decimal(str(text).strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def percent_to_bps(percent: Decimal) -> int:
    if percent > _HUNDRED:
        return MAX_BPS
    bps = int((percent * _HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))
    return max(0, min(MAX_BPS, bps))


def parse_slippage(
    text: str | float | int | None, fallback_bps: int | None = None
) -> SlippageInput:
    """Resolve typed slippage into basis points.

    Empty input means zero tolerance. Negative or unparsable input falls back
    to the configured default, anything above 100% clamps to 10000 bps, and
    the rest rounds half-up (``"0.125"`` is 13 bps).
    """
    fallback = get_default_slippage_bps() if fallback_bps is None else int(fallback_bps)
    display = "" if text is None else str(text)
    if not display.strip():
        return SlippageInput(display=display, value_bps=0)

    percent = parse_percent(display)
    if percent is None or percent < 0:
        return SlippageInput(display=display, value_bps=fallback)
    return SlippageInput(display=display, value_bps=percent_to_bps(percent))


def bps_to_percent_string(bps: int) -> str:
    percent = Decimal(int(bps)) / _HUNDRED
    return format(percent.normalize(), "f")


def percent_of_balance(
    percent: str | float | int | Decimal, balance: str, decimals: int
) -> str:
    """Amount for a percentage of ``balance`` as a display string.

    100% hands back ``balance`` exactly as given so a full withdrawal never
    leaves dust. Any other share is floored in base units, so the result can
    never exceed the real balance.
    """
    value = parse_percent(percent)
    if value is None:
        raise ValueError(f"Invalid percent: {percent!r}")
    value = max(Decimal(0), min(_HUNDRED, value))
    if value == _HUNDRED:
        return balance

    raw_balance = to_erc20_raw(balance, decimals)
    numerator, denominator = value.as_integer_ratio()
    raw_amount = (raw_balance * numerator) // (denominator * 100)
    return format_units(raw_amount, decimals)
