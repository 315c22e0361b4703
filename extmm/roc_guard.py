"""Rate-of-change guard that pauses quoting when price moves too fast."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from collections.abc import Callable
from decimal import Decimal

_log = logging.getLogger(__name__)

_BPS_PER_UNIT = Decimal(10000)
_DEFAULT_THRESHOLD_BPS = Decimal("20.0")


class RocGuard:
    """Pauses quoting for a while if price moves more than a threshold within a window."""

    def __init__(
        self,
        window_ms: int,
        threshold_bps: float,
        pause_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._samples: deque[tuple[float, Decimal]] = deque()
        self._window = window_ms / 1000.0
        self._threshold_bps = (
            Decimal(str(threshold_bps)) if math.isfinite(threshold_bps) else _DEFAULT_THRESHOLD_BPS
        )
        self._pause = pause_ms / 1000.0
        self._paused_until: float | None = None
        self._trigger_count = 0

    def on_price(self, price: Decimal) -> None:
        """Record a mid-price sample and trigger a pause on a fast move."""
        now = self._clock()
        self._samples.append((now, price))

        cutoff = now - self._window
        while self._samples and self._samples[0][0] < cutoff:
            self._samples.popleft()

        if not self._samples:
            return
        oldest_price = self._samples[0][1]
        if oldest_price.is_zero():
            return
        roc_bps = abs(price - oldest_price) / oldest_price * _BPS_PER_UNIT
        if roc_bps < self._threshold_bps:
            return

        is_new = self._paused_until is None
        # A sustained move keeps extending the pause.
        self._paused_until = now + self._pause
        if is_new:
            self._trigger_count += 1
            _log.warning(
                "ROC guard triggered, pausing quoting: roc=%sbps threshold=%sbps pause=%dms triggers=%d",
                roc_bps,
                self._threshold_bps,
                int(self._pause * 1000),
                self._trigger_count,
            )

    def is_paused(self) -> bool:
        return self._paused_until is not None and self._clock() < self._paused_until

    def reset(self) -> None:
        """Clear the pause state."""
        self._paused_until = None

    def trigger_count(self) -> int:
        return self._trigger_count

    def current_roc_bps(self) -> Decimal:
        """Change between the oldest and newest sample in bps, 0 with fewer than two."""
        if len(self._samples) < 2:
            return Decimal(0)
        oldest = self._samples[0][1]
        newest = self._samples[-1][1]
        if oldest.is_zero():
            return Decimal(0)
        return abs(newest - oldest) / oldest * _BPS_PER_UNIT