"""Volume-synchronised probability of informed trading (VPIN)."""

from __future__ import annotations

from collections import deque
from decimal import Decimal
from enum import Enum


class ToxicityLevel(Enum):
    """Order-flow toxicity band derived from VPIN."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_MULTIPLIERS = {
    ToxicityLevel.CRITICAL: Decimal("3.0"),
    ToxicityLevel.HIGH: Decimal("2.0"),
    ToxicityLevel.MEDIUM: Decimal("1.5"),
    ToxicityLevel.LOW: Decimal(1),
}


class VpinCalculator:
    """Fills fixed-volume buckets with buy/sell flow and computes VPIN over them."""

    def __init__(self, bucket_volume: Decimal, num_buckets: int) -> None:
        if bucket_volume <= 0:
            raise ValueError("bucket_volume must be positive")
        self._bucket_volume = bucket_volume
        self._num_buckets = num_buckets
        self._buckets: deque[tuple[Decimal, Decimal]] = deque()
        self._current_buy = Decimal(0)
        self._current_sell = Decimal(0)
        self._current_total = Decimal(0)
        self._cached_vpin = Decimal(0)
        self._consecutive_elevated = 0
        self._elevated_threshold = Decimal("0.92")
        self._sustained_bars = 30

    def on_trade(self, size: Decimal, is_buy: bool) -> None:
        remaining = size
        while remaining > 0:
            space = self._bucket_volume - self._current_total
            fill = min(remaining, space)
            if is_buy:
                self._current_buy += fill
            else:
                self._current_sell += fill
            self._current_total += fill
            remaining -= fill

            if self._current_total >= self._bucket_volume:
                self._buckets.append((self._current_buy, self._current_sell))
                if len(self._buckets) > self._num_buckets:
                    self._buckets.popleft()
                self._current_buy = Decimal(0)
                self._current_sell = Decimal(0)
                self._current_total = Decimal(0)
                self._recalculate()

    def _recalculate(self) -> None:
        if not self._buckets:
            self._cached_vpin = Decimal(0)
            return
        total_volume = Decimal(len(self._buckets)) * self._bucket_volume
        if total_volume.is_zero():
            self._cached_vpin = Decimal(0)
            return
        sum_abs_diff = sum((abs(b - s) for b, s in self._buckets), Decimal(0))
        self._cached_vpin = sum_abs_diff / total_volume

        if self._cached_vpin > self._elevated_threshold:
            self._consecutive_elevated += 1
        else:
            self._consecutive_elevated = 0

    def vpin(self) -> Decimal:
        return self._cached_vpin

    def toxicity(self) -> ToxicityLevel:
        v = self._cached_vpin
        if v > Decimal("0.8"):
            return ToxicityLevel.CRITICAL
        if v > Decimal("0.7"):
            return ToxicityLevel.HIGH
        if v > Decimal("0.5"):
            return ToxicityLevel.MEDIUM
        return ToxicityLevel.LOW

    def is_sustained_toxic(self) -> bool:
        """True once VPIN has stayed elevated for the sustained number of buckets."""
        return self._consecutive_elevated >= self._sustained_bars

    def consecutive_elevated_count(self) -> int:
        return self._consecutive_elevated

    def spread_multiplier(self) -> Decimal:
        if self.is_sustained_toxic():
            return Decimal("3.0")
        return _MULTIPLIERS[self.toxicity()]

    def is_ready(self) -> bool:
        return len(self._buckets) >= self._num_buckets // 2