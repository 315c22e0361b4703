"""Aggregate exposure across markets with a global limit."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from decimal import Decimal

_ZERO = Decimal(0)


@dataclass
class _MarketExposure:
    position_usd: Decimal = _ZERO
    pending_bid_usd: Decimal = _ZERO
    pending_ask_usd: Decimal = _ZERO


class ExposureTracker:
    """Tracks exposure per market and enforces a global USD limit."""

    def __init__(self, max_total_usd: Decimal) -> None:
        self._lock = threading.Lock()
        self._markets: dict[str, _MarketExposure] = {}
        self._max_total_usd = max_total_usd

    def set_max_total_usd(self, max_usd: Decimal) -> None:
        with self._lock:
            self._max_total_usd = max_usd

    def update_position(self, market: str, position_usd: Decimal) -> None:
        with self._lock:
            self._markets.setdefault(market, _MarketExposure()).position_usd = position_usd

    def update_pending_orders(
        self, market: str, pending_bid_usd: Decimal, pending_ask_usd: Decimal
    ) -> None:
        with self._lock:
            entry = self._markets.setdefault(market, _MarketExposure())
            entry.pending_bid_usd = pending_bid_usd
            entry.pending_ask_usd = pending_ask_usd

    def _gross(self) -> Decimal:
        return sum((abs(m.position_usd) for m in self._markets.values()), _ZERO)

    def net_exposure_usd(self) -> Decimal:
        with self._lock:
            return sum((m.position_usd for m in self._markets.values()), _ZERO)

    def gross_exposure_usd(self) -> Decimal:
        with self._lock:
            return self._gross()

    def worst_case_exposure_usd(self) -> Decimal:
        """Exposure if every pending order on the worse side were filled."""
        with self._lock:
            return sum(
                (
                    max(
                        abs(m.position_usd + m.pending_bid_usd),
                        abs(m.position_usd - m.pending_ask_usd),
                    )
                    for m in self._markets.values()
                ),
                _ZERO,
            )

    def can_add_exposure(self, additional_usd: Decimal) -> bool:
        with self._lock:
            return self._gross() + additional_usd <= self._max_total_usd

    def max_total_usd(self) -> Decimal:
        with self._lock:
            return self._max_total_usd

    def remaining_capacity_usd(self) -> Decimal:
        with self._lock:
            return max(self._max_total_usd - self._gross(), _ZERO)