from decimal import Decimal as D

from extmm.spread import SpreadCalculator, SpreadInput


def _calc(base="4.0"):
    return SpreadCalculator(D(base), D("1.0"), D("20.0"), D("0.5"), D("2.0"), D("0.5"))


def test_base_spread():
    result = _calc().calculate(SpreadInput())
    assert result.spread_bps == D("4.0")


def test_min_clamp():
    result = _calc("0.5").calculate(SpreadInput())
    assert result.spread_bps == D("1.0")


def test_max_clamp():
    result = _calc().calculate(SpreadInput(panic_spread_bps=D("100")))
    assert result.spread_bps == D("20.0")


def test_vpin_multiplier():
    assert SpreadCalculator.vpin_multiplier(D("0.3")) == D(1)
    assert SpreadCalculator.vpin_multiplier(D("0.6")) == D("1.5")
    assert SpreadCalculator.vpin_multiplier(D("0.75")) == D("2.0")
    assert SpreadCalculator.vpin_multiplier(D("0.9")) == D("3.0")


def test_half_spread_matches_spread_bps():
    for inp in (SpreadInput(), SpreadInput(volatility_bps=D(6)), SpreadInput(inventory_ratio=D("-0.5"))):
        result = _calc().calculate(inp)
        assert result.half_spread * 2 * 10000 == result.spread_bps


def test_inventory_widens_symmetrically():
    calc = _calc()
    long_result = calc.calculate(SpreadInput(inventory_ratio=D("0.5")))
    short_result = calc.calculate(SpreadInput(inventory_ratio=D("-0.5")))
    flat = calc.calculate(SpreadInput())
    assert long_result.spread_bps == short_result.spread_bps
    assert long_result.spread_bps > flat.spread_bps


def test_latency_floor_dominates_when_large():
    calc = _calc()
    low = calc.calculate(SpreadInput(latency_vol_bps=D(1)))
    high = calc.calculate(SpreadInput(latency_vol_bps=D(5)))
    assert low.spread_bps == D("4.0")
    assert high.spread_bps > low.spread_bps