from leverage_paths.core.constants.base import BPS_DENOMINATOR


def mul_div(a: int, b: int, denominator: int) -> int:
    return (int(a) * int(b)) // int(denominator)


def mul_div_ceil(a: int, b: int, denominator: int) -> int:
    return -((-int(a) * int(b)) // int(denominator))


def apply_slippage_floor(amount: int, slippage_bps: int) -> int:
    """``floor(amount * (1 - bps/10000))``; the conservative side of an output."""
    return mul_div(amount, BPS_DENOMINATOR - int(slippage_bps), BPS_DENOMINATOR)


def apply_slippage_ceiling(amount: int, slippage_bps: int) -> int:
    """``ceil(amount * (1 + bps/10000))``; the conservative side of an input."""
    return mul_div_ceil(amount, BPS_DENOMINATOR + int(slippage_bps), BPS_DENOMINATOR)
