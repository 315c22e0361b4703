"""Circuit breaker that halts trading on losses, error bursts or order bursts."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

_RATE_WINDOW_S = 60


@dataclass
class CircuitBreakerConfig:
    """Limits that trip the breaker."""

    max_daily_loss_usd: Decimal
    max_errors_per_minute: int
    max_orders_per_minute: int
    cooldown_s: int


class TripType(Enum):
    """Why the breaker tripped. Daily-loss trips never reset on their own."""

    DAILY_LOSS = "daily_loss"
    ERROR_RATE = "error_rate"
    ORDER_RATE = "order_rate"
    MANUAL = "manual"


class BreakerState(Enum):
    """Coarse state reported by ``CircuitBreaker.status``."""

    NORMAL = "normal"
    TRIPPED = "tripped"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class BreakerStatus:
    """Breaker state, with the trip reason when tripped."""

    state: BreakerState
    reason: str | None = None


class CircuitBreaker:
    """Thread-safe circuit breaker with a cooldown for non-loss trips."""

    def __init__(
        self, config: CircuitBreakerConfig, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._config = config
        self._clock = clock
        self._lock = threading.RLock()
        self._daily_pnl = Decimal(0)
        self._is_tripped = False
        self._trip_type: TripType | None = None
        self._trip_reason: str | None = None
        self._tripped_at: float | None = None
        self._recent_errors: deque[float] = deque()
        self._recent_orders: deque[float] = deque()

    def _cooldown_elapsed(self) -> bool:
        assert self._tripped_at is not None
        return int(self._clock() - self._tripped_at) > self._config.cooldown_s

    def _set_tripped(self, trip_type: TripType, reason: str) -> None:
        self._is_tripped = True
        self._trip_type = trip_type
        self._trip_reason = reason
        self._tripped_at = self._clock()

    def is_trading_allowed(self) -> bool:
        """True unless tripped; a non-loss trip resets once the cooldown passes."""
        with self._lock:
            if not self._is_tripped:
                return True
            if self._trip_type is TripType.DAILY_LOSS:
                return False
            if self._tripped_at is not None and self._cooldown_elapsed():
                self.reset()
                return True
            return False

    def status(self) -> BreakerStatus:
        with self._lock:
            if not self._is_tripped:
                return BreakerStatus(BreakerState.NORMAL)
            if self._tripped_at is None:
                return BreakerStatus(BreakerState.TRIPPED, "Unknown")
            if self._cooldown_elapsed():
                return BreakerStatus(BreakerState.COOLDOWN)
            return BreakerStatus(BreakerState.TRIPPED, self._trip_reason or "")

    def record_pnl(self, pnl: Decimal) -> None:
        """Add realised PnL to the daily total and trip on the loss limit."""
        with self._lock:
            self._daily_pnl += pnl
            limit = self._config.max_daily_loss_usd
            if self._daily_pnl < -limit and not self._is_tripped:
                self._set_tripped(
                    TripType.DAILY_LOSS,
                    f"Daily loss limit breached: ${self._daily_pnl} (limit: ${limit})",
                )

    @staticmethod
    def _push_and_prune(events: deque[float], now: float) -> None:
        events.append(now)
        while events and int(now - events[0]) > _RATE_WINDOW_S:
            events.popleft()

    def record_error(self) -> None:
        with self._lock:
            self._push_and_prune(self._recent_errors, self._clock())
            count = len(self._recent_errors)
            limit = self._config.max_errors_per_minute
            if count > limit and not self._is_tripped:
                self._set_tripped(
                    TripType.ERROR_RATE, f"Error rate exceeded: {count}/min (limit: {limit})"
                )

    def record_order(self) -> None:
        with self._lock:
            self._push_and_prune(self._recent_orders, self._clock())
            if (
                len(self._recent_orders) > self._config.max_orders_per_minute
                and not self._is_tripped
            ):
                self._set_tripped(TripType.ORDER_RATE, "Order rate limit exceeded")

    def trip(self, reason: str) -> None:
        """Trip the breaker by hand."""
        with self._lock:
            self._set_tripped(TripType.MANUAL, reason)

    def reset(self) -> None:
        with self._lock:
            self._is_tripped = False
            self._trip_type = None
            self._trip_reason = None
            self._tripped_at = None

    def reset_daily(self) -> None:
        with self._lock:
            self._daily_pnl = Decimal(0)

    def daily_pnl(self) -> Decimal:
        with self._lock:
            return self._daily_pnl