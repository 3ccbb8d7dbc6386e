from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext


def _to_decimal(value: str | int | float | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    return Decimal(str(value).strip())


def to_erc20_raw(amount_tokens: str | int | float | Decimal, decimals: int) -> int:
    try:
        amt = _to_decimal(amount_tokens)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount_tokens}") from exc
    if not amt.is_finite():
        raise ValueError(f"Invalid token amount: {amount_tokens}")
    if amt < 0:
        raise ValueError("Amount must be non-negative")
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = amt.scaleb(int(decimals))
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def format_units(raw: int, decimals: int) -> str:
    """Render base units as a plain decimal string with trailing zeros trimmed."""
    raw = int(raw)
    sign = "-" if raw < 0 else ""
    whole, frac = divmod(abs(raw), 10 ** int(decimals))
    if decimals <= 0 or frac == 0:
        return f"{sign}{whole}"
    frac_str = str(frac).rjust(int(decimals), "0").rstrip("0")
    return f"{sign}{whole}.{frac_str}"


def from_erc20_raw(raw: int, decimals: int) -> float:
    return int(raw) / (10 ** int(decimals))
