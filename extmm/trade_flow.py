"""Trade flow imbalance from the reference aggregated trade stream.

Imbalance = (buy_volume - sell_volume) / total_volume over a rolling window.
``is_buyer_maker`` true means the seller was the aggressor (a taker sell).
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

_ZERO = Decimal(0)
_BPS_PER_UNIT = Decimal(10000)
_MIN_WINDOW_S = 0.1


@dataclass(frozen=True)
class _TradeEntry:
    received_at: float
    buy_volume: Decimal
    sell_volume: Decimal


class TradeFlowTracker:
    """Rolling-window buy/sell aggressor volume imbalance."""

    def __init__(self, window_s: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = max(window_s, _MIN_WINDOW_S)
        self._clock = clock
        self._trades: deque[_TradeEntry] = deque()

    def on_trade(self, qty: Decimal, is_buyer_maker: bool, received_at: float | None = None) -> None:
        """Record a trade; ``received_at`` is a clock time, defaulting to now."""
        if received_at is None:
            received_at = self._clock()
        if is_buyer_maker:
            entry = _TradeEntry(received_at, _ZERO, qty)
        else:
            entry = _TradeEntry(received_at, qty, _ZERO)
        self._trades.append(entry)
        self._expire()

    def _expire(self) -> None:
        cutoff = self._clock() - self._window
        while self._trades and self._trades[0].received_at < cutoff:
            self._trades.popleft()

    def imbalance(self) -> Decimal:
        """Imbalance in [-1, 1]; 0 when the window is empty."""
        self._expire()
        buy = sum((e.buy_volume for e in self._trades), _ZERO)
        sell = sum((e.sell_volume for e in self._trades), _ZERO)
        total = buy + sell
        if total.is_zero():
            return _ZERO
        return (buy - sell) / total

    def shift_bps(self, sensitivity_bps: Decimal) -> Decimal:
        """Fair-price shift in bps: imbalance times sensitivity."""
        return self.imbalance() * sensitivity_bps

    @staticmethod
    def bps_to_price_shift(shift_bps: Decimal, fair_price: Decimal) -> Decimal:
        """Absolute price shift: ``fair_price * shift_bps / 10000``."""
        if fair_price.is_zero():
            return _ZERO
        return fair_price * shift_bps / _BPS_PER_UNIT

    def entry_count(self) -> int:
        """Number of trades currently held in the window."""
        return len(self._trades)