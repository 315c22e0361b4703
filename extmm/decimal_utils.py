"""Decimal helpers for price, size and basis-point arithmetic."""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal

_BPS_PER_UNIT = Decimal(10000)


def _floor(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR)


def round_to_tick(price: Decimal, tick: Decimal, round_up: bool) -> Decimal:
    """Round a price down (bids) or up (asks) to a multiple of ``tick``."""
    if tick.is_zero():
        return price
    rounded = _floor(price / tick) * tick
    if round_up and rounded < price:
        return rounded + tick
    return rounded


def round_size_down(size: Decimal, step: Decimal) -> Decimal:
    """Round a size down to the lot step so an order is never oversized."""
    if step.is_zero():
        return size
    return _floor(size / step) * step


def bps_to_ratio(bps: Decimal) -> Decimal:
    """Convert basis points to a ratio: 5 bps becomes 0.0005."""
    return bps / _BPS_PER_UNIT


def ratio_to_bps(ratio: Decimal) -> Decimal:
    """Convert a ratio to basis points: 0.0005 becomes 5."""
    return ratio * _BPS_PER_UNIT


def clamp(value: Decimal, min_value: Decimal, max_value: Decimal) -> Decimal:
    """Clamp ``value`` into the inclusive range ``[min_value, max_value]``."""
    if value < min_value:
        return min_value
    if value > max_value:
        return max_value
    return value


def offset_price(price: Decimal, bps: Decimal) -> Decimal:
    """Return ``price * (1 + bps / 10000)``."""
    return price * (Decimal(1) + bps_to_ratio(bps))


def lerp(a: Decimal, b: Decimal, t: Decimal) -> Decimal:
    """Linear interpolation: ``t = 0`` gives ``a``, ``t = 1`` gives ``b``."""
    return a + (b - a) * t