"""Inventory-driven price and size skew with a nonlinear response."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from extmm.decimal_utils import bps_to_ratio, clamp

_ZERO = Decimal(0)
_ONE = Decimal(1)


@dataclass
class SkewResult:
    """Price offsets and size multipliers for each side."""

    bid_price_offset: Decimal
    ask_price_offset: Decimal
    bid_size_mult: Decimal
    ask_size_mult: Decimal


@dataclass
class SkewCalculator:
    """Skews quotes away from the current inventory."""

    price_skew_enabled: bool
    price_skew_bps: Decimal
    size_skew_enabled: bool
    size_skew_factor: Decimal
    min_size_multiplier: Decimal
    max_size_multiplier: Decimal
    emergency_threshold: Decimal

    def calculate(self, inventory_ratio: Decimal, mid_price: Decimal) -> SkewResult:
        ratio = clamp(inventory_ratio, -_ONE, _ONE)
        abs_ratio = abs(ratio)
        nonlinear_ratio = ratio * abs_ratio

        if self.price_skew_enabled:
            # Long inventory shifts both quotes down, short shifts them up.
            skew = bps_to_ratio(self.price_skew_bps) * nonlinear_ratio * mid_price
            bid_price_offset = ask_price_offset = -skew
        else:
            bid_price_offset = ask_price_offset = _ZERO

        if self.size_skew_enabled:
            bid_mult = clamp(
                _ONE - nonlinear_ratio * self.size_skew_factor,
                self.min_size_multiplier,
                self.max_size_multiplier,
            )
            ask_mult = clamp(
                _ONE + nonlinear_ratio * self.size_skew_factor,
                self.min_size_multiplier,
                self.max_size_multiplier,
            )
            if abs_ratio > self.emergency_threshold:
                if ratio > 0:
                    bid_mult = _ZERO
                else:
                    ask_mult = _ZERO
        else:
            bid_mult = ask_mult = _ONE

        return SkewResult(bid_price_offset, ask_price_offset, bid_mult, ask_mult)