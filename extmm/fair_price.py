"""Fair price from a reference mid with an EWMA basis to the local book."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import timedelta
from decimal import Decimal

_ONE = Decimal(1)
_BPS_PER_UNIT = Decimal(10000)
_UNKNOWN_CHANGE_BPS = Decimal(9999)


class FairPriceCalculator:
    """Tracks the reference mid as fair price and the local-minus-reference basis.

    The fair price follows the reference mid immediately, falling back to the
    local mid when there is no reference. The basis is smoothed with an EWMA so
    that ``fair_price + basis_offset`` lands on the local order book.
    """

    def __init__(self, alpha: Decimal, clock: Callable[[], float] = time.monotonic) -> None:
        self._alpha = alpha
        self._clock = clock
        self._basis_offset_ewma: Decimal | None = None
        self._last_local_mid: Decimal | None = None
        self._last_reference_mid: Decimal | None = None
        self._fair_price: Decimal | None = None
        self._last_update: float | None = None

    def _update_basis(self, basis: Decimal) -> None:
        if self._basis_offset_ewma is None:
            self._basis_offset_ewma = basis
        else:
            self._basis_offset_ewma = (
                self._alpha * basis + (_ONE - self._alpha) * self._basis_offset_ewma
            )

    def update_local_mid(self, mid: Decimal) -> Decimal | None:
        """Record the local order book mid and return the fair price."""
        self._last_local_mid = mid
        if self._last_reference_mid is not None:
            self._update_basis(mid - self._last_reference_mid)
        return self._recalculate()

    def update_reference_mid(self, mid: Decimal) -> Decimal | None:
        """Record the reference mid and return the fair price."""
        self._last_reference_mid = mid
        if self._last_local_mid is not None:
            self._update_basis(self._last_local_mid - mid)
        return self._recalculate()

    def update_reference_microprice(
        self,
        bid_price: Decimal,
        bid_size: Decimal,
        ask_price: Decimal,
        ask_size: Decimal,
    ) -> Decimal | None:
        """Record a size-weighted reference mid; ignored when both sizes are zero."""
        total = bid_size + ask_size
        if total.is_zero():
            return self._fair_price
        microprice = (ask_price * bid_size + bid_price * ask_size) / total
        return self.update_reference_mid(microprice)

    def _recalculate(self) -> Decimal | None:
        if self._last_reference_mid is not None:
            fp = self._last_reference_mid
        elif self._last_local_mid is not None:
            fp = self._last_local_mid
        else:
            return self._fair_price
        self._fair_price = fp
        self._last_update = self._clock()
        return self._fair_price

    def fair_price(self) -> Decimal | None:
        """The reference mid, or the local mid when there is no reference."""
        return self._fair_price

    def basis_offset(self) -> Decimal:
        """EWMA of local mid minus reference mid, 0 before any basis is seen."""
        return self._basis_offset_ewma if self._basis_offset_ewma is not None else Decimal(0)

    def quote_price(self) -> Decimal | None:
        """Fair price plus basis offset: the price to quote around."""
        if self._fair_price is None:
            return None
        return self._fair_price + self.basis_offset()

    def apply_flow_shift(self, shift_price: Decimal) -> Decimal | None:
        """Quote price shifted by an absolute price amount."""
        qp = self.quote_price()
        return None if qp is None else qp + shift_price

    def last_update(self) -> float | None:
        """Clock time of the last fair price update."""
        return self._last_update

    def is_stale(self, max_age: float | timedelta) -> bool:
        """True if never updated or the last update is older than ``max_age`` seconds."""
        if self._last_update is None:
            return True
        limit = max_age.total_seconds() if isinstance(max_age, timedelta) else float(max_age)
        return self._clock() - self._last_update > limit

    def price_change_bps(self, new_mid: Decimal) -> Decimal:
        """Move from the current fair price to ``new_mid`` in bps; 9999 if unknown."""
        fp = self._fair_price
        if fp is None or fp.is_zero():
            return _UNKNOWN_CHANGE_BPS
        return abs(new_mid - fp) / fp * _BPS_PER_UNIT