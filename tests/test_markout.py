import json
from decimal import Decimal

import pytest

from extmm.markout import HORIZONS_MS, MarkoutTracker, to_bps


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


D = Decimal
MKT = "BTC-USD"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return MarkoutTracker(100, 0.2, None, clock=clock)


def test_markout_buy_favorable(tracker):
    tracker.record_fill(MKT, "emm-1", "buy", D(100), True, D(100), D(100))
    assert tracker.pending_count() == 1


def test_markout_no_mid(tracker):
    tracker.record_fill(MKT, "emm-1", "buy", D(100), True, D(0), D(100))
    assert tracker.pending_count() == 0


def test_to_bps():
    assert abs(to_bps(D(1), D(10000)) - 1.0) < 0.01
    assert abs(to_bps(D(-2), D(10000)) - (-2.0)) < 0.01
    assert to_bps(D(1), D(0)) == 0.0


def test_feedback_default(tracker):
    assert tracker.feedback_bps(MKT) == D(0)
    assert tracker.tox_score_bps(MKT) is None


def test_first_horizon_evaluated(tracker, clock):
    tracker.record_fill(MKT, "emm-1", "buy", D(100), True, D(100), D(100))
    clock.advance(0.06)
    tracker.evaluate({MKT: D(101)}, {MKT: D(100)})
    assert tracker.ewma_raw_bps(MKT, 50) == pytest.approx(100.0)
    assert tracker.ewma_adj_bps(MKT, 50) == pytest.approx(100.0)
    assert tracker.ewma_raw_bps(MKT, 200) is None
    assert tracker.pending_count() == 1


def test_all_horizons_remove_fill(tracker, clock):
    tracker.record_fill(MKT, "emm-1", "buy", D(100), True, D(100), D(100))
    clock.advance(5.0)
    tracker.evaluate({MKT: D(101)}, {MKT: D(100)})
    assert tracker.pending_count() == 0
    for horizon in HORIZONS_MS:
        assert tracker.ewma_raw_bps(MKT, horizon) == pytest.approx(100.0)
    assert tracker.tox_score_bps(MKT) == pytest.approx(0.0)


def test_sell_markout_sign(tracker, clock):
    tracker.record_fill(MKT, "emm-2", "sell", D(100), False, D(100), D(0))
    clock.advance(1.0)
    tracker.evaluate({MKT: D(99)}, {})
    assert tracker.ewma_raw_bps(MKT, 1_000) == pytest.approx(100.0)
    assert tracker.ewma_adj_bps(MKT, 1_000) == pytest.approx(100.0)


def test_adverse_fill_feedback(tracker, clock):
    tracker.record_fill(MKT, "emm-3", "buy", D(100), True, D(100), D(100))
    clock.advance(5.0)
    tracker.evaluate({MKT: D(99)}, {MKT: D("99.5")})
    assert tracker.ewma_raw_bps(MKT, 500) == pytest.approx(-100.0)
    assert tracker.ewma_adj_bps(MKT, 5_000) == pytest.approx(-50.0)
    assert tracker.tox_score_bps(MKT) == pytest.approx(150.0)
    assert tracker.feedback_bps(MKT) == D(150)


def test_feedback_falls_back_to_one_second(tracker, clock):
    tracker.record_fill(MKT, "emm-4", "buy", D(100), True, D(100), D(100))
    clock.advance(0.3)
    tracker.evaluate({MKT: D(99)}, {MKT: D(100)})
    assert tracker.tox_score_bps(MKT) is None
    assert tracker.feedback_bps(MKT) == D(0)
    clock.advance(0.8)
    tracker.evaluate({MKT: D(99)}, {MKT: D(100)})
    assert tracker.feedback_bps(MKT) == D(100)


def test_missing_mid_keeps_fill_pending(tracker, clock):
    tracker.record_fill(MKT, "emm-5", "buy", D(100), True, D(100), D(100))
    clock.advance(1.0)
    tracker.evaluate({"ETH-USD": D(10)}, {})
    tracker.evaluate({MKT: D(0)}, {})
    assert tracker.pending_count() == 1
    assert tracker.ewma_raw_bps(MKT, 50) is None


def test_stale_fills_dropped(tracker, clock):
    tracker.record_fill(MKT, "emm-6", "buy", D(100), True, D(100), D(100))
    clock.advance(11.0)
    tracker.evaluate({}, {})
    assert tracker.pending_count() == 0


def test_unknown_horizon_returns_none(tracker, clock):
    tracker.record_fill(MKT, "emm-7", "buy", D(100), True, D(100), D(100))
    clock.advance(5.0)
    tracker.evaluate({MKT: D(100)}, {})
    assert tracker.ewma_raw_bps(MKT, 123) is None
    assert tracker.ewma_adj_bps(MKT, 123) is None


def test_log_summary(tracker, clock):
    assert tracker.log_summary(MKT) is None
    tracker.record_fill(MKT, "emm-8", "buy", D(100), True, D(100), D(100))
    clock.advance(0.06)
    tracker.evaluate({MKT: D(101)}, {MKT: D(100)})
    summary = tracker.log_summary(MKT)
    assert summary == "50ms: raw=100.00bps adj=100.00bps (n=1)"


def test_jsonl_log(tmp_path, clock):
    path = tmp_path / "markouts.jsonl"
    with MarkoutTracker(100, 0.2, path, clock=clock) as tracker:
        tracker.record_fill(MKT, "emm-9", "buy", D(100), True, D(100), D(100))
        clock.advance(0.25)
        tracker.evaluate({MKT: D(101)}, {MKT: D(100)})
    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert [entry["horizon_ms"] for entry in lines] == [50, 200]
    assert lines[0]["external_id"] == "emm-9"
    assert lines[0]["fill_price"] == "100"
    assert lines[0]["raw_bps"] == pytest.approx(100.0)