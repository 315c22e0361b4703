"""Market data snapshots: best bid/offer, trades and L2 books."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal

_TWO = Decimal(2)
_BPS_PER_UNIT = Decimal(10000)


@dataclass
class PriceData:
    """Best bid and ask with their quantities."""

    received_at: float
    exchange_ts: int
    bid: Decimal
    bid_qty: Decimal
    ask: Decimal
    ask_qty: Decimal

    def mid(self) -> Decimal:
        return (self.bid + self.ask) / _TWO

    def spread_bps(self) -> Decimal:
        mid = self.mid()
        if mid.is_zero():
            return Decimal(0)
        return (self.ask - self.bid) / mid * _BPS_PER_UNIT

    def microprice(self) -> Decimal:
        """Quantity-weighted mid price."""
        total = self.bid_qty + self.ask_qty
        if total.is_zero():
            return self.mid()
        return (self.bid_qty * self.ask + self.ask_qty * self.bid) / total

    def imbalance(self) -> Decimal:
        """Positive when more quantity rests on the bid, negative on the ask."""
        total = self.bid_qty + self.ask_qty
        if total.is_zero():
            return Decimal(0)
        return (self.bid_qty - self.ask_qty) / total


@dataclass
class TradeData:
    """A single trade."""

    timestamp: int
    price: Decimal
    size: Decimal
    is_buyer_maker: bool
    trade_id: str | None = None

    def is_buy_aggressor(self) -> bool:
        """True when the taker bought (hit the ask)."""
        return not self.is_buyer_maker


@dataclass
class L2Level:
    """One price level of an order book."""

    price: Decimal
    size: Decimal


@dataclass
class L2Snapshot:
    """An order book snapshot, best levels first."""

    received_at: float
    bids: list[L2Level] = field(default_factory=list)
    asks: list[L2Level] = field(default_factory=list)

    def best_bid(self) -> L2Level | None:
        return self.bids[0] if self.bids else None

    def best_ask(self) -> L2Level | None:
        return self.asks[0] if self.asks else None

    def mid(self) -> Decimal | None:
        bid, ask = self.best_bid(), self.best_ask()
        if bid is None or ask is None:
            return None
        return (bid.price + ask.price) / _TWO

    def bid_depth(self, levels: int) -> Decimal:
        return sum((lvl.size for lvl in self.bids[:levels]), Decimal(0))

    def ask_depth(self, levels: int) -> Decimal:
        return sum((lvl.size for lvl in self.asks[:levels]), Decimal(0))


@dataclass
class ImpliedBbo:
    """Best bid/ask implied by the trade feed."""

    implied_bid: Decimal | None = None
    implied_ask: Decimal | None = None
    last_update: float | None = None

    def update(self, trade: TradeData) -> None:
        if trade.is_buy_aggressor():
            self.implied_ask = trade.price
        else:
            self.implied_bid = trade.price
        self.last_update = time.monotonic()

    def implied_mid(self) -> Decimal | None:
        if self.implied_bid is None or self.implied_ask is None:
            return None
        return (self.implied_bid + self.implied_ask) / _TWO


@dataclass
class MarketInfo:
    """Instrument description of a market."""

    market: str
    name: str
    active: bool
    asset_precision: int
    collateral_asset_precision: int
    min_trade_size: Decimal
    min_price_change: Decimal
    tick_size: Decimal
    size_step: Decimal
    collateral_id: str | None = None
    collateral_resolution: int | None = None
    synthetic_id: str | None = None
    synthetic_resolution: int | None = None