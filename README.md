# extmm

Building blocks for a perpetual-futures market maker. Prices, sizes and
amounts are `decimal.Decimal`, so rounding to ticks and lot steps is exact.
The package has no dependencies beyond the standard library.

## What is inside

Pricing and spread:

- `extmm.fair_price.FairPriceCalculator` uses a reference mid (or a
  size-weighted microprice via `update_reference_microprice`) as the fair
  price, falling back to the local book mid, and tracks the local-minus-reference
  basis with an EWMA. `quote_price()` is fair price plus basis.
- `extmm.spread.SpreadCalculator` computes a spread from a `SpreadInput`
  (volatility, VPIN multiplier, panic spread, inventory, latency floor, markout,
  extra multiplier), clamped to a min/max, and returns a `SpreadResult` with the
  half-spread ratio and the spread in bps. `SpreadCalculator.vpin_multiplier`
  maps a VPIN value to a spread multiplier.
- `extmm.skew.SkewCalculator` turns an inventory ratio into a `SkewResult`:
  price offsets and size multipliers, with the side that would add to a large
  position cut to zero beyond the emergency threshold.

Order-flow signals:

- `extmm.vpin.VpinCalculator` fills fixed-volume buckets and reports VPIN, a
  `ToxicityLevel`, a spread multiplier and sustained-toxicity state.
- `extmm.trade_flow.TradeFlowTracker` measures aggressor buy/sell imbalance
  over a rolling time window.
- `extmm.depth_imbalance.DepthImbalanceTracker` smooths bid/ask depth
  imbalance with an EWMA.

Risk:

- `extmm.circuit_breaker.CircuitBreaker` halts trading on daily loss, error
  rate, order rate or a manual `trip()`. Non-loss trips clear after the
  cooldown; daily-loss trips only clear on an explicit `reset()`. `status()`
  returns a `BreakerStatus` holding a `BreakerState` and the trip reason.
- `extmm.exposure.ExposureTracker` tracks net, gross and worst-case exposure
  per market against a global limit.
- `extmm.position_manager.PositionManager` and `CoinPosition` track size,
  average entry price, mark price, realised and unrealised PnL.
- `extmm.fast_cancel.FastCancel` flags resting orders that are stale, too far
  through the fair price, or crossed by the implied best bid/ask, returning a
  `CancelReason`.
- `extmm.roc_guard.RocGuard` pauses quoting when price moves more than a
  threshold within a window.
- `extmm.markout.MarkoutTracker` measures post-fill price movement at 50 ms,
  200 ms, 500 ms, 1 s and 5 s, keeps raw and reference-adjusted EWMAs per
  market, and turns them into spread feedback (`feedback_bps`). Given a
  `log_path` it appends one JSON line per evaluation; use it as a context
  manager or call `close()`.

Shared helpers and types:

- `extmm.decimal_utils`: `round_to_tick`, `round_size_down`, `bps_to_ratio`,
  `ratio_to_bps`, `clamp`, `offset_price`, `lerp`.
- `extmm.market_data`: `PriceData`, `TradeData`, `L2Level`, `L2Snapshot`,
  `ImpliedBbo`, `MarketInfo`.
- `extmm.config`: `AppConfig`, `ExchangeConfig`, `TradingConfig`,
  `RiskConfig` and `load_config`.

Components that depend on time accept an optional `clock` callable
(default `time.monotonic`), which makes them easy to drive in tests.

## Example

```python
from decimal import Decimal

from extmm.decimal_utils import round_to_tick, bps_to_ratio
from extmm.spread import SpreadCalculator, SpreadInput
from extmm.vpin import VpinCalculator

print(round_to_tick(Decimal("100.123"), Decimal("0.1"), True))   # 100.2
print(bps_to_ratio(Decimal("5")))                                  # 0.0005

spread = SpreadCalculator(
    Decimal("4.0"), Decimal("1.0"), Decimal("20.0"),
    Decimal("0.5"), Decimal("2.0"), Decimal("0.5"),
)
print(spread.calculate(SpreadInput()).spread_bps)                  # 4.0

vpin = VpinCalculator(Decimal("100"), 10)
for _ in range(20):
    vpin.on_trade(Decimal("100"), True)
print(vpin.toxicity(), vpin.spread_multiplier())
```

## Configuration

`extmm.config.load_config(path)` reads a TOML file with `exchange`, `trading`
and `risk` tables into an `AppConfig`. `trading.market` and
`risk.max_position_usd` are required; other keys take their defaults.
`AppConfig.from_dict` builds the same object from an already-parsed mapping.
Wrong types or missing required fields raise `ValueError`.

## What it does not do

This is a library of components, not a running bot. It does not connect to
an exchange or market-data feed, place or track orders, generate multi-level
quotes, simulate fills, or define an event model, and it has no command-line
entry point. Wiring the components together is left to the caller.

## Tests

The test suite uses pytest and is declared under the `test` extra.