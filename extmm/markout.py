"""Markout measurement: post-fill execution quality tracking.

A fill's mid price is recorded when it happens; the price move at several
later horizons is then measured to detect adverse selection:

    markout = (future_mid - fill_price) * direction

Positive values are good fills, negative values adverse selection.
"""

from __future__ import annotations

import json
import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from os import PathLike
from pathlib import Path
from typing import TextIO

_log = logging.getLogger(__name__)

# Short horizons catch fast adverse selection, longer ones sustained fill quality.
HORIZONS_MS: tuple[int, ...] = (50, 200, 500, 1_000, 5_000)

_BPS_PER_UNIT = Decimal(10000)
_ZERO = Decimal(0)
_IDX_500MS = HORIZONS_MS.index(500)
_IDX_5S = HORIZONS_MS.index(5_000)


def to_bps(diff: Decimal, reference: Decimal) -> float:
    """``diff / reference`` in basis points, 0 when the reference is zero."""
    if reference.is_zero():
        return 0.0
    return float(diff / reference * _BPS_PER_UNIT)


def _horizon_index(horizon_ms: int) -> int | None:
    try:
        return HORIZONS_MS.index(horizon_ms)
    except ValueError:
        return None


def _tox(raw_500: float | None, adj_5s: float | None) -> float | None:
    if raw_500 is None and adj_5s is None:
        return None
    score = 0.0
    if raw_500 is not None:
        score += max(-raw_500, 0.0)
    if adj_5s is not None:
        score += max(-adj_5s, 0.0)
    return score


@dataclass
class _PendingFill:
    market: str
    external_id: str
    side: str
    fill_price: Decimal
    is_buy: bool
    mid_at_fill: Decimal
    binance_mid_at_fill: Decimal
    filled_at: float
    filled_at_ms: int
    evaluated: list[bool] = field(default_factory=lambda: [False] * len(HORIZONS_MS))


@dataclass
class _MarketMarkout:
    max_history: int
    completed: list[deque[tuple[float, float]]] = field(init=False)
    ewma_raw: list[float | None] = field(default_factory=lambda: [None] * len(HORIZONS_MS))
    ewma_adj: list[float | None] = field(default_factory=lambda: [None] * len(HORIZONS_MS))

    def __post_init__(self) -> None:
        self.completed = [deque(maxlen=self.max_history) for _ in HORIZONS_MS]


class MarkoutTracker:
    """Tracks markouts of fills across markets with per-horizon EWMAs."""

    def __init__(
        self,
        max_history: int,
        ewma_alpha: float,
        log_path: str | PathLike[str] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_history = max_history
        self._ewma_alpha = ewma_alpha
        self._clock = clock
        self._lock = threading.RLock()
        self._pending: deque[_PendingFill] = deque()
        self._markets: dict[str, _MarketMarkout] = {}
        self.log_path = Path(log_path) if log_path is not None else None
        self._log_file: TextIO | None = None
        if self.log_path is not None:
            try:
                self._log_file = self.log_path.open("a", encoding="utf-8")
            except OSError as exc:
                _log.warning("Failed to open markout log %s for writing: %s", self.log_path, exc)

    def __enter__(self) -> MarkoutTracker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the markout log file, if one is open."""
        with self._lock:
            if self._log_file is not None:
                self._log_file.close()
                self._log_file = None

    def record_fill(
        self,
        market: str,
        external_id: str,
        side: str,
        fill_price: Decimal,
        is_buy: bool,
        current_mid: Decimal,
        binance_mid: Decimal,
    ) -> None:
        """Queue a fill for markout evaluation; ignored when the mid is zero."""
        if current_mid.is_zero():
            _log.debug("Skipping markout record for %s: mid price is zero", market)
            return
        fill = _PendingFill(
            market=market,
            external_id=external_id,
            side=side,
            fill_price=fill_price,
            is_buy=is_buy,
            mid_at_fill=current_mid,
            binance_mid_at_fill=binance_mid,
            filled_at=self._clock(),
            filled_at_ms=int(time.time() * 1000),
        )
        with self._lock:
            self._pending.append(fill)

    def evaluate(
        self,
        current_mids: Mapping[str, Decimal],
        current_binance_mids: Mapping[str, Decimal],
    ) -> None:
        """Evaluate pending fills at every horizon that has elapsed.

        The reference mids remove market-wide movement for the adjusted markout.
        """
        now = self._clock()
        with self._lock:
            remaining: deque[_PendingFill] = deque()
            for fill in self._pending:
                elapsed_ms = int((now - fill.filled_at) * 1000)
                mid = current_mids.get(fill.market)
                if mid is None or mid.is_zero():
                    remaining.append(fill)
                    continue
                binance_mid = current_binance_mids.get(fill.market, _ZERO)
                for h_idx, horizon_ms in enumerate(HORIZONS_MS):
                    if fill.evaluated[h_idx] or elapsed_ms < horizon_ms:
                        continue
                    self._evaluate_horizon(fill, h_idx, horizon_ms, mid, binance_mid)
                if not all(fill.evaluated):
                    remaining.append(fill)

            max_age_ms = HORIZONS_MS[-1] * 2
            self._pending = deque(
                f for f in remaining if int((now - f.filled_at) * 1000) < max_age_ms
            )
            dropped = len(remaining) - len(self._pending)
        if dropped:
            _log.warning(
                "%d stale fills dropped without full evaluation, possible mid price gap", dropped
            )

    def _evaluate_horizon(
        self,
        fill: _PendingFill,
        h_idx: int,
        horizon_ms: int,
        mid: Decimal,
        binance_mid: Decimal,
    ) -> None:
        raw = mid - fill.fill_price if fill.is_buy else fill.fill_price - mid
        raw_bps = to_bps(raw, fill.fill_price)

        if not fill.binance_mid_at_fill.is_zero() and not binance_mid.is_zero():
            if fill.is_buy:
                market_move = binance_mid - fill.binance_mid_at_fill
            else:
                market_move = fill.binance_mid_at_fill - binance_mid
            adjusted_bps = to_bps(raw - market_move, fill.fill_price)
        else:
            adjusted_bps = raw_bps

        stats = self._markets.get(fill.market)
        if stats is None:
            stats = self._markets[fill.market] = _MarketMarkout(self._max_history)
        stats.completed[h_idx].append((raw_bps, adjusted_bps))

        prev_raw, prev_adj = stats.ewma_raw[h_idx], stats.ewma_adj[h_idx]
        if prev_raw is None or prev_adj is None:
            stats.ewma_raw[h_idx] = raw_bps
            stats.ewma_adj[h_idx] = adjusted_bps
        else:
            a = self._ewma_alpha
            stats.ewma_raw[h_idx] = prev_raw * (1.0 - a) + raw_bps * a
            stats.ewma_adj[h_idx] = prev_adj * (1.0 - a) + adjusted_bps * a

        fill.evaluated[h_idx] = True

        if self._log_file is not None:
            line = json.dumps(
                {
                    "ts_ms": fill.filled_at_ms,
                    "market": fill.market,
                    "external_id": fill.external_id,
                    "side": fill.side,
                    "fill_price": str(fill.fill_price),
                    "mid_at_fill": str(fill.mid_at_fill),
                    "binance_mid_at_fill": str(fill.binance_mid_at_fill),
                    "horizon_ms": horizon_ms,
                    "raw_bps": raw_bps,
                    "adj_bps": adjusted_bps,
                    "ewma_raw_bps": stats.ewma_raw[h_idx],
                    "ewma_adj_bps": stats.ewma_adj[h_idx],
                }
            )
            try:
                self._log_file.write(line + "\n")
                self._log_file.flush()
            except OSError as exc:
                _log.warning("Failed to write markout log line: %s", exc)

        _log.debug(
            "Markout evaluated: market=%s horizon=%dms raw=%.2fbps adj=%.2fbps",
            fill.market,
            horizon_ms,
            raw_bps,
            adjusted_bps,
        )

    def _ewma(self, market: str, horizon_ms: int, adjusted: bool) -> float | None:
        h_idx = _horizon_index(horizon_ms)
        if h_idx is None:
            return None
        with self._lock:
            stats = self._markets.get(market)
            if stats is None:
                return None
            return (stats.ewma_adj if adjusted else stats.ewma_raw)[h_idx]

    def ewma_adj_bps(self, market: str, horizon_ms: int) -> float | None:
        """EWMA of the reference-adjusted markout in bps."""
        return self._ewma(market, horizon_ms, adjusted=True)

    def ewma_raw_bps(self, market: str, horizon_ms: int) -> float | None:
        """EWMA of the raw markout in bps."""
        return self._ewma(market, horizon_ms, adjusted=False)

    def tox_score_bps(self, market: str) -> float | None:
        """max(0, -raw_500ms) + max(0, -adj_5s); higher means more toxic."""
        return _tox(self.ewma_raw_bps(market, 500), self.ewma_adj_bps(market, 5_000))

    def feedback_bps(self, market: str) -> Decimal:
        """Spread widening in bps from markouts; never negative."""
        bps = self.tox_score_bps(market)
        if bps is None:
            for horizon in (5_000, 1_000):
                adj = self.ewma_adj_bps(market, horizon)
                if adj is not None:
                    bps = max(-adj, 0.0)
                    break
        if bps is None or not math.isfinite(bps):
            return _ZERO
        return Decimal(repr(max(bps, 0.0)))

    def pending_count(self) -> int:
        """Number of fills still awaiting evaluation."""
        with self._lock:
            return len(self._pending)

    def log_summary(self, market: str) -> str | None:
        """Log the markout EWMAs of a market and return the summary line, if any."""
        with self._lock:
            pending = len(self._pending)
            stats = self._markets.get(market)
            if stats is None:
                return None
            parts = [
                f"{horizon}ms: raw={raw:.2f}bps adj={adj:.2f}bps (n={len(done)})"
                for horizon, raw, adj, done in zip(
                    HORIZONS_MS, stats.ewma_raw, stats.ewma_adj, stats.completed
                )
                if raw is not None and adj is not None
            ]
            if not parts:
                return None
            tox = _tox(stats.ewma_raw[_IDX_500MS], stats.ewma_adj[_IDX_5S])
        summary = " | ".join(parts)
        if tox is not None:
            summary += f" | tox={tox:.2f}bps"
        _log.info("Markout %s (pending=%d): %s", market, pending, summary)
        return summary