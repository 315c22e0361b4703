"""Per-market position tracking with realised and unrealised PnL."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from decimal import Decimal

_ZERO = Decimal(0)
_ONE = Decimal(1)


@dataclass
class CoinPosition:
    """Position in one market."""

    symbol: str
    max_position_usd: Decimal
    size: Decimal = _ZERO
    entry_price: Decimal = _ZERO
    mark_price: Decimal = _ZERO
    unrealized_pnl: Decimal = _ZERO

    def notional_usd(self) -> Decimal:
        return abs(self.size) * self.mark_price

    def inventory_ratio(self) -> Decimal:
        """Position as a fraction of the limit, clamped to [-1, 1]."""
        if self.max_position_usd.is_zero() or self.mark_price.is_zero():
            return _ZERO
        max_contracts = self.max_position_usd / self.mark_price
        if max_contracts.is_zero():
            return _ZERO
        return max(min(self.size / max_contracts, _ONE), -_ONE)

    def can_increase(self, is_buy: bool) -> bool:
        if self.notional_usd() >= self.max_position_usd:
            if is_buy and self.size > 0:
                return False
            if not is_buy and self.size < 0:
                return False
        return True

    def on_fill(self, size: Decimal, price: Decimal, is_buy: bool) -> Decimal:
        """Apply a fill and return the realised PnL."""
        old_size = self.size
        self.size += size if is_buy else -size

        is_reducing = (old_size > 0 and not is_buy) or (old_size < 0 and is_buy)
        realized = _ZERO
        if is_reducing:
            closed_size = min(size, abs(old_size))
            direction = _ONE if old_size > 0 else -_ONE
            realized = closed_size * (price - self.entry_price) * direction

        if not is_reducing:
            total_size = abs(self.size)
            if total_size > 0:
                old_notional = abs(old_size) * self.entry_price
                self.entry_price = (old_notional + size * price) / total_size
        elif (old_size > 0 and self.size < 0) or (old_size < 0 and self.size > 0):
            self.entry_price = price

        self._update_pnl()
        return realized

    def update_mark(self, price: Decimal) -> None:
        self.mark_price = price
        self._update_pnl()

    def set_position(self, size: Decimal, entry_price: Decimal, mark_price: Decimal) -> None:
        """Overwrite the position with exchange data."""
        self.size = size
        self.entry_price = entry_price
        self.mark_price = mark_price
        self._update_pnl()

    def _update_pnl(self) -> None:
        if self.entry_price.is_zero() or self.size.is_zero():
            self.unrealized_pnl = _ZERO
        else:
            self.unrealized_pnl = self.size * (self.mark_price - self.entry_price)


class PositionManager:
    """Thread-safe collection of per-market positions."""

    def __init__(self, max_total_position_usd: Decimal) -> None:
        self._lock = threading.Lock()
        self._positions: dict[str, CoinPosition] = {}
        self._max_total_position_usd = max_total_position_usd

    def set_max_position_usd(self, max_usd: Decimal) -> None:
        """Set the limit and apply it to every tracked market."""
        with self._lock:
            self._max_total_position_usd = max_usd
            for pos in self._positions.values():
                pos.max_position_usd = max_usd

    def add_market(self, symbol: str, max_position_usd: Decimal) -> None:
        with self._lock:
            self._positions[symbol] = CoinPosition(symbol, max_position_usd)

    def get_position(self, symbol: str) -> CoinPosition | None:
        """Return a copy of the position, or None for an unknown market."""
        with self._lock:
            pos = self._positions.get(symbol)
            return dataclasses.replace(pos) if pos is not None else None

    def inventory_ratio(self, symbol: str) -> Decimal:
        with self._lock:
            pos = self._positions.get(symbol)
            return pos.inventory_ratio() if pos is not None else _ZERO

    def total_exposure_usd(self) -> Decimal:
        with self._lock:
            return sum((p.notional_usd() for p in self._positions.values()), _ZERO)

    def is_within_limits(self) -> bool:
        with self._lock:
            limit = self._max_total_position_usd
        return self.total_exposure_usd() < limit

    def on_fill(self, symbol: str, size: Decimal, price: Decimal, is_buy: bool) -> Decimal:
        with self._lock:
            pos = self._positions.get(symbol)
            return pos.on_fill(size, price, is_buy) if pos is not None else _ZERO

    def update_mark(self, symbol: str, price: Decimal) -> None:
        with self._lock:
            pos = self._positions.get(symbol)
            if pos is not None:
                pos.update_mark(price)

    def set_position(
        self, symbol: str, size: Decimal, entry_price: Decimal, mark_price: Decimal
    ) -> None:
        with self._lock:
            pos = self._positions.get(symbol)
            if pos is not None:
                pos.set_position(size, entry_price, mark_price)

    def total_unrealized_pnl(self) -> Decimal:
        with self._lock:
            return sum((p.unrealized_pnl for p in self._positions.values()), _ZERO)