"""Fast cancel: pull resting quotes that risk adverse selection."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from extmm.decimal_utils import bps_to_ratio


class CancelReason(Enum):
    """Why a live order should be cancelled."""

    PRICE_MOVED = "price_moved"
    ORDER_STALE = "order_stale"
    IMPLIED_BBO_ADVERSE = "implied_bbo_adverse"


@dataclass
class LiveOrderInfo:
    """A resting order; ``placed_at`` is a monotonic clock time in seconds."""

    order_price: Decimal
    is_buy: bool
    placed_at: float


class FastCancel:
    """Decides whether resting orders should be cancelled."""

    def __init__(
        self,
        threshold_bps: Decimal,
        max_order_age_s: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_order_age_s < 0:
            raise ValueError("max_order_age_s must not be negative")
        self._threshold_bps = threshold_bps
        self._max_order_age = float(max_order_age_s)
        self._clock = clock

    def should_cancel(
        self,
        order: LiveOrderInfo,
        fair_price: Decimal,
        implied_bid: Decimal | None,
        implied_ask: Decimal | None,
    ) -> CancelReason | None:
        if self._clock() - order.placed_at > self._max_order_age:
            return CancelReason.ORDER_STALE

        if fair_price > 0:
            threshold = fair_price * bps_to_ratio(self._threshold_bps)
            if order.is_buy and order.order_price > fair_price + threshold:
                return CancelReason.PRICE_MOVED
            if not order.is_buy and order.order_price < fair_price - threshold:
                return CancelReason.PRICE_MOVED

        if order.is_buy:
            if implied_ask is not None and implied_ask <= order.order_price:
                return CancelReason.IMPLIED_BBO_ADVERSE
        elif implied_bid is not None and implied_bid >= order.order_price:
            return CancelReason.IMPLIED_BBO_ADVERSE

        return None

    def check_orders(
        self,
        orders: Iterable[LiveOrderInfo],
        fair_price: Decimal,
        implied_bid: Decimal | None,
        implied_ask: Decimal | None,
    ) -> list[tuple[int, CancelReason]]:
        """Indexes and reasons of the orders that should be cancelled."""
        result = []
        for index, order in enumerate(orders):
            reason = self.should_cancel(order, fair_price, implied_bid, implied_ask)
            if reason is not None:
                result.append((index, reason))
        return result