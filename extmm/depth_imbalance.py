"""EWMA-smoothed order book depth imbalance signal.

Imbalance = (bid_volume - ask_volume) / (bid_volume + ask_volume), in [-1, 1].
Positive values mean a bid-heavy book, negative an ask-heavy one.
"""

from __future__ import annotations

import math
from decimal import Decimal

_ZERO = Decimal(0)
_ONE = Decimal(1)
_DEFAULT_ALPHA = Decimal("0.3")
_DEFAULT_SENSITIVITY = Decimal("1.5")


def _finite_decimal(value: float, default: Decimal) -> Decimal:
    return Decimal(repr(float(value))) if math.isfinite(value) else default


class DepthImbalanceTracker:
    """Smooths depth snapshots into an imbalance signal."""

    def __init__(self, alpha: float) -> None:
        if math.isnan(alpha):
            self._alpha = _DEFAULT_ALPHA
        else:
            self._alpha = _finite_decimal(min(max(alpha, 0.001), 1.0), _DEFAULT_ALPHA)
        self._ewma: Decimal | None = None

    def on_depth(self, bid_volume: Decimal, ask_volume: Decimal) -> None:
        """Record summed bid and ask quantities from one depth snapshot."""
        total = bid_volume + ask_volume
        raw = _ZERO if total.is_zero() else (bid_volume - ask_volume) / total
        if self._ewma is None:
            self._ewma = raw
        else:
            self._ewma = self._alpha * raw + (_ONE - self._alpha) * self._ewma

    def imbalance(self) -> Decimal:
        """Current smoothed imbalance, 0 before the first snapshot."""
        return self._ewma if self._ewma is not None else _ZERO

    def shift_bps(self, sensitivity_bps: float) -> Decimal:
        """Fair-price shift in bps: imbalance times sensitivity."""
        return self.imbalance() * _finite_decimal(sensitivity_bps, _DEFAULT_SENSITIVITY)