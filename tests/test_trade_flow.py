from decimal import Decimal

from extmm.trade_flow import TradeFlowTracker

D = Decimal


class FakeClock:
    def __init__(self) -> None:
        self.now = 500.0

    def __call__(self) -> float:
        return self.now


def test_empty_window_imbalance_is_zero():
    tracker = TradeFlowTracker(5.0)
    assert tracker.imbalance() == D(0)


def test_all_buy_imbalance_is_one():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("1.0"), False, clock.now)
    tracker.on_trade(D("2.0"), False, clock.now)
    assert tracker.imbalance() == D(1)


def test_all_sell_imbalance_is_minus_one():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("3.0"), True, clock.now)
    assert tracker.imbalance() == D(-1)


def test_balanced_imbalance_is_zero():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("1.0"), False, clock.now)
    tracker.on_trade(D("1.0"), True, clock.now)
    assert tracker.imbalance() == D(0)


def test_shift_bps():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("3.0"), False, clock.now)
    tracker.on_trade(D("1.0"), True, clock.now)
    assert tracker.shift_bps(D("2.0")) == D("1.0")


def test_bps_to_price_shift():
    assert TradeFlowTracker.bps_to_price_shift(D("1.0"), D(50000)) == D("5.0")


def test_bps_to_price_shift_zero_price():
    assert TradeFlowTracker.bps_to_price_shift(D("1.0"), D(0)) == D(0)


def test_old_trades_expire():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("1.0"), False, clock.now)
    assert tracker.entry_count() == 1
    clock.now += 6.0
    assert tracker.imbalance() == D(0)
    assert tracker.entry_count() == 0


def test_expiry_keeps_recent_trades():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("4.0"), False, clock.now)
    clock.now += 3.0
    tracker.on_trade(D("1.0"), True, clock.now)
    clock.now += 3.0
    assert tracker.imbalance() == D(-1)
    assert tracker.entry_count() == 1


def test_default_received_at_uses_clock():
    clock = FakeClock()
    tracker = TradeFlowTracker(5.0, clock=clock)
    tracker.on_trade(D("2.0"), False)
    clock.now += 4.0
    assert tracker.imbalance() == D(1)