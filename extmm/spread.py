"""Dynamic spread from volatility, toxicity, inventory and markout."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from extmm.decimal_utils import bps_to_ratio, clamp

_INVENTORY_SPREAD_BPS = Decimal("2.0")


@dataclass
class SpreadInput:
    """Market conditions feeding the spread calculation."""

    volatility_bps: Decimal = Decimal(0)
    vpin_multiplier: Decimal = Decimal(1)
    panic_spread_bps: Decimal = Decimal(0)
    inventory_ratio: Decimal = Decimal(0)
    latency_vol_bps: Decimal = Decimal(0)
    markout_adj_bps: Decimal = Decimal(0)
    caf_multiplier: Decimal = Decimal(1)


@dataclass
class SpreadResult:
    """Half-spread as a ratio and the full spread in bps."""

    half_spread: Decimal
    spread_bps: Decimal


@dataclass
class SpreadCalculator:
    """spread = (base + vol * sensitivity) * vpin_mult + panic + inventory + markout."""

    base_spread_bps: Decimal
    min_spread_bps: Decimal
    max_spread_bps: Decimal
    volatility_sensitivity: Decimal
    latency_vol_multiplier: Decimal
    markout_sensitivity: Decimal

    def calculate(self, spread_input: SpreadInput) -> SpreadResult:
        vol_component = spread_input.volatility_bps * self.volatility_sensitivity
        base_spread = (
            (self.base_spread_bps + vol_component) * spread_input.vpin_multiplier
            + spread_input.panic_spread_bps
        )
        inventory_spread = abs(spread_input.inventory_ratio) * _INVENTORY_SPREAD_BPS
        markout_adj = spread_input.markout_adj_bps * self.markout_sensitivity
        latency_floor = spread_input.latency_vol_bps * self.latency_vol_multiplier
        raw_spread = max(base_spread + inventory_spread + markout_adj, latency_floor)
        raw_spread *= spread_input.caf_multiplier
        clamped_bps = clamp(raw_spread, self.min_spread_bps, self.max_spread_bps)
        half_spread = bps_to_ratio(clamped_bps) / Decimal(2)
        return SpreadResult(half_spread=half_spread, spread_bps=clamped_bps)

    @staticmethod
    def vpin_multiplier(vpin: Decimal) -> Decimal:
        if vpin > Decimal("0.8"):
            return Decimal("3.0")
        if vpin > Decimal("0.7"):
            return Decimal("2.0")
        if vpin > Decimal("0.5"):
            return Decimal("1.5")
        return Decimal(1)