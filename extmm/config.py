"""Application configuration: exchange, trading and risk settings."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import MISSING, dataclass, fields
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path
from typing import Any, TypeVar

_T = TypeVar("_T")


def _to_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"field `{name}`: expected a decimal, got a boolean")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"field `{name}`: invalid decimal {value!r}") from exc
    raise ValueError(f"field `{name}`: expected a decimal, got {type(value).__name__}")


def _to_float(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field `{name}`: expected a number, got {value!r}")
    return float(value)


def _to_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field `{name}`: expected an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"field `{name}`: expected a non-negative integer, got {value}")
    return value


def _to_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"field `{name}`: expected a boolean, got {value!r}")
    return value


def _to_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"field `{name}`: expected a string, got {value!r}")
    return value


_CONVERTERS = {
    "Decimal": _to_decimal,
    "float": _to_float,
    "int": _to_int,
    "bool": _to_bool,
    "str": _to_str,
}


def _build(cls: type[_T], data: Any) -> _T:
    if not isinstance(data, Mapping):
        raise ValueError(f"{cls.__name__}: expected a table, got {type(data).__name__}")
    kwargs: dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        if f.name in data:
            kwargs[f.name] = _CONVERTERS[str(f.type)](f.name, data[f.name])
        elif f.default is MISSING and f.default_factory is MISSING:
            raise ValueError(f"{cls.__name__}: missing field `{f.name}`")
    return cls(**kwargs)


@dataclass
class ExchangeConfig:
    """Exchange credentials and connection settings."""

    api_key: str = ""
    api_secret: str = ""
    paper_trading: bool = False
    user_agent: str = "extended-mm/0.1.0"

    def rest_base_url(self) -> str:
        return "https://api.starknet.extended.exchange"

    def ws_url(self) -> str:
        return "wss://api.starknet.extended.exchange"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExchangeConfig:
        return _build(cls, data)


@dataclass
class TradingConfig:
    """Quoting, signal and sizing parameters for one market."""

    market: str

    order_size_usd: Decimal = Decimal(100)
    min_order_usd: Decimal = Decimal(10)
    max_order_usd: Decimal = Decimal(5000)
    leverage: int = 10

    expiry_days: int = 7
    dead_man_switch_timeout_ms: int = 60000

    ewma_alpha: float = 0.01
    binance_weight: float = 0.7
    update_threshold_bps: float = 3.0
    min_requote_interval_ms: int = 100

    base_spread_bps: float = 4.0
    min_spread_bps: float = 1.0
    max_spread_bps: float = 20.0
    volatility_sensitivity: float = 0.5
    latency_vol_multiplier: float = 2.0
    markout_sensitivity: float = 0.5

    price_skew_enabled: bool = True
    price_skew_bps: float = 10.0
    size_skew_enabled: bool = True
    size_skew_factor: float = 1.0
    min_size_multiplier: float = 0.2
    max_size_multiplier: float = 1.8
    emergency_flatten_ratio: float = 0.8

    vpin_enabled: bool = True
    vpin_bucket_volume: float = 1.0
    vpin_num_buckets: int = 20

    num_levels: int = 2
    level_spacing_bps: float = 2.0
    level_size_decay: float = 0.7

    fast_cancel_threshold_bps: float = 3.0
    max_order_age_s: float = 5.0

    best_price_tighten_enabled: bool = True
    best_price_margin_bps: float = 0.1

    close_threshold_ratio: float = 0.25
    close_spread_bps: float = 4.0

    one_side_inventory_ratio: float = 0.45
    hard_one_side_inventory_ratio: float = 0.70

    trade_flow_window_s: float = 5.0
    trade_flow_sensitivity_bps: float = 1.0

    depth_imbalance_sensitivity_bps: float = 1.5

    aggressive_edge_bps: float = 2.0
    reducing_max_spread_bps: float = 4.0
    reducing_min_spread_bps: float = 1.0
    reducing_decay_s: float = 30.0

    roc_window_ms: int = 10_000
    roc_threshold_bps: float = 30.0
    roc_pause_ms: int = 15_000

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TradingConfig:
        return _build(cls, data)


@dataclass
class RiskConfig:
    """Position, loss and rate limits."""

    max_position_usd: Decimal
    max_daily_loss_usd: Decimal = Decimal(500)
    max_orders_per_minute: int = 200
    max_errors_per_minute: int = 10
    stale_price_s: float = 5.0
    cooldown_s: int = 60

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RiskConfig:
        return _build(cls, data)


@dataclass
class AppConfig:
    """Top-level configuration with exchange, trading and risk sections."""

    exchange: ExchangeConfig
    trading: TradingConfig
    risk: RiskConfig

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConfig:
        if not isinstance(data, Mapping):
            raise ValueError(f"AppConfig: expected a table, got {type(data).__name__}")
        for section in ("exchange", "trading", "risk"):
            if section not in data:
                raise ValueError(f"AppConfig: missing field `{section}`")
        return cls(
            exchange=ExchangeConfig.from_dict(data["exchange"]),
            trading=TradingConfig.from_dict(data["trading"]),
            risk=RiskConfig.from_dict(data["risk"]),
        )


def load_config(path: str | PathLike[str]) -> AppConfig:
    """Read an application configuration from a TOML file."""
    with Path(path).open("rb") as fh:
        data = tomllib.load(fh)
    return AppConfig.from_dict(data)