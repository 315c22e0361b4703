from decimal import Decimal as D

from extmm.position_manager import CoinPosition, PositionManager


def test_position_fill_long():
    pos = CoinPosition("BTC-USD", D(50000))
    pos.mark_price = D(100)
    r1 = pos.on_fill(D(1), D(100), True)
    assert pos.size == D(1)
    assert pos.entry_price == D(100)
    assert r1 == D(0)

    r2 = pos.on_fill(D(1), D(110), True)
    assert pos.size == D(2)
    assert pos.entry_price == D(105)
    assert r2 == D(0)


def test_realized_pnl_close_long():
    pos = CoinPosition("BTC-USD", D(50000))
    pos.mark_price = D(110)
    pos.on_fill(D(2), D(100), True)
    realized = pos.on_fill(D(1), D(110), False)
    assert pos.size == D(1)
    assert realized == D(10)


def test_inventory_ratio():
    pos = CoinPosition("BTC-USD", D(10000))
    pos.mark_price = D(100)
    pos.size = D(50)
    assert pos.inventory_ratio() == D("0.5")


def test_inventory_ratio_clamped_and_zero_mark():
    pos = CoinPosition("BTC-USD", D(10000))
    pos.mark_price = D(100)
    pos.size = D(-500)
    assert pos.inventory_ratio() == D(-1)
    pos.mark_price = D(0)
    assert pos.inventory_ratio() == D(0)


def test_reduce_only_never_exceeds_position():
    pos = CoinPosition("BTC-USD", D(50000))
    pos.mark_price = D(100)
    pos.on_fill(D(1), D(100), True)
    realized = pos.on_fill(D(2), D(110), False)
    assert pos.size == D(-1)
    assert realized == D(10)
    assert pos.entry_price == D(110)


def test_short_close_realizes_profit():
    pos = CoinPosition("ETH-USD", D(50000))
    pos.on_fill(D(2), D(100), False)
    realized = pos.on_fill(D(1), D(90), True)
    assert realized == D(10)
    assert pos.size == D(-1)


def test_unrealized_pnl_follows_mark():
    pos = CoinPosition("BTC-USD", D(50000))
    pos.on_fill(D(2), D(100), True)
    pos.update_mark(D(103))
    assert pos.unrealized_pnl == D(6)


def test_can_increase_at_limit():
    pos = CoinPosition("BTC-USD", D(1000))
    pos.set_position(D(10), D(100), D(100))
    assert pos.can_increase(True) is False
    assert pos.can_increase(False) is True


def test_manager_fill_and_exposure():
    pm = PositionManager(D(100000))
    pm.add_market("BTC-USD", D(50000))
    pm.update_mark("BTC-USD", D(100))
    assert pm.on_fill("BTC-USD", D(3), D(100), True) == D(0)
    assert pm.total_exposure_usd() == D(300)
    assert pm.is_within_limits() is True
    assert pm.inventory_ratio("BTC-USD") == D("0.006")


def test_manager_unknown_symbol():
    pm = PositionManager(D(100000))
    assert pm.on_fill("XYZ-USD", D(1), D(1), True) == D(0)
    assert pm.get_position("XYZ-USD") is None
    assert pm.inventory_ratio("XYZ-USD") == D(0)


def test_manager_get_position_is_copy():
    pm = PositionManager(D(100000))
    pm.add_market("BTC-USD", D(50000))
    snapshot = pm.get_position("BTC-USD")
    snapshot.size = D(99)
    assert pm.get_position("BTC-USD").size == D(0)


def test_manager_set_max_propagates():
    pm = PositionManager(D(100))
    pm.add_market("BTC-USD", D(50))
    pm.add_market("ETH-USD", D(60))
    pm.set_max_position_usd(D(500))
    assert pm.get_position("BTC-USD").max_position_usd == D(500)
    assert pm.get_position("ETH-USD").max_position_usd == D(500)


def test_manager_limits_and_unrealized():
    pm = PositionManager(D(1000))
    pm.add_market("BTC-USD", D(5000))
    pm.add_market("ETH-USD", D(5000))
    pm.set_position("BTC-USD", D(5), D(100), D(110))
    pm.set_position("ETH-USD", D(-5), D(100), D(90))
    assert pm.total_unrealized_pnl() == D(100)
    assert pm.total_exposure_usd() == D(1000)
    assert pm.is_within_limits() is False