"""Pydantic Settings configuration models.

3-tier config hierarchy (lowest to highest priority):
1. Pydantic defaults (in code below)
2. .env file (loaded by Pydantic Settings)
3. Environment variables (e.g., SEASONALITY_CALENDAR__HISTORY_LIMIT=180)
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS = frozenset({"console", "json"})
VALID_DEPTH_LEVELS = frozenset({5, 10, 20})
VALID_DEPTH_SPEEDS_MS = frozenset({100, 1000})
VALID_KLINE_INTERVALS = frozenset(
    {"1h", "2h", "4h", "6h", "8h", "12h", "1d", "3d", "1w"},
)
VALID_TIMEFRAMES = frozenset({"daily", "weekly", "monthly"})
VALID_METRICS = frozenset({"volatility", "volume", "change"})
VALID_PALETTES = frozenset({"standard", "colorblind", "high_contrast"})

# Binance caps /api/v3/klines at 1000 rows per request
MAX_KLINE_LIMIT = 1000

_SYMBOL_RE = re.compile(r"^[A-Z0-9]{5,20}$")


def _validate_symbol(symbol: str) -> str:
    symbol = symbol.upper()
    if not _SYMBOL_RE.match(symbol):
        raise ValueError(f"Invalid symbol: {symbol}")
    return symbol


def _validate_interval(v: str) -> str:
    if v not in VALID_KLINE_INTERVALS:
        raise ValueError(
            f"interval must be one of {sorted(VALID_KLINE_INTERVALS)}, got {v}"
        )
    return v


class BinanceConfig(BaseModel):
    """Binance public endpoint configuration. No credentials needed."""

    rest_url: str = "https://api.binance.com"
    ws_url: str = "wss://stream.binance.com:9443/ws"
    request_timeout_s: float = Field(default=10.0, gt=0, le=60)
    depth_levels: int = 20
    depth_update_ms: int = 100
    reconnect: bool = True
    reconnect_max_delay_s: float = Field(default=30.0, ge=1, le=300)

    @field_validator("depth_levels")
    @classmethod
    def validate_depth_levels(cls, v: int) -> int:
        if v not in VALID_DEPTH_LEVELS:
            raise ValueError(
                f"depth_levels must be one of {sorted(VALID_DEPTH_LEVELS)}, got {v}"
            )
        return v

    @field_validator("depth_update_ms")
    @classmethod
    def validate_depth_update_ms(cls, v: int) -> int:
        if v not in VALID_DEPTH_SPEEDS_MS:
            raise ValueError(
                f"depth_update_ms must be one of "
                f"{sorted(VALID_DEPTH_SPEEDS_MS)}, got {v}"
            )
        return v

    @field_validator("rest_url", "ws_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class CalendarConfig(BaseModel):
    """Calendar view defaults."""

    symbols: list[str] = Field(default=["BTCUSDT", "ETHUSDT", "BNBUSDT"])
    default_symbol: str = "BTCUSDT"
    history_interval: str = "1d"
    history_limit: int = Field(default=365, ge=1, le=MAX_KLINE_LIMIT)
    default_timeframe: str = "daily"
    default_metric: str = "volatility"
    palette: str = "standard"
    high_volatility_pct: float = Field(default=50.0, gt=0)
    medium_volatility_pct: float = Field(default=20.0, gt=0)
    alert_threshold: float = Field(default=4000.0, gt=0)

    @field_validator("symbols")
    @classmethod
    def validate_symbols(cls, v: list[str]) -> list[str]:
        if len(v) == 0:
            raise ValueError("symbols must not be empty")
        return [_validate_symbol(s) for s in v]

    @field_validator("default_symbol")
    @classmethod
    def validate_default_symbol(cls, v: str) -> str:
        return _validate_symbol(v)

    @field_validator("history_interval")
    @classmethod
    def validate_history_interval(cls, v: str) -> str:
        return _validate_interval(v)

    @field_validator("default_timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_TIMEFRAMES:
            raise ValueError(
                f"default_timeframe must be one of {sorted(VALID_TIMEFRAMES)}, got {v}"
            )
        return v

    @field_validator("default_metric")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_METRICS:
            raise ValueError(
                f"default_metric must be one of {sorted(VALID_METRICS)}, got {v}"
            )
        return v

    @field_validator("palette")
    @classmethod
    def validate_palette(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_PALETTES:
            raise ValueError(
                f"palette must be one of {sorted(VALID_PALETTES)}, got {v}"
            )
        return v

    @model_validator(mode="after")
    def check_thresholds(self) -> CalendarConfig:
        if self.medium_volatility_pct >= self.high_volatility_pct:
            raise ValueError(
                "medium_volatility_pct must be below high_volatility_pct"
            )
        return self


class IndicatorConfig(BaseModel):
    """Detail-panel technical indicator parameters."""

    sma_fast: int = Field(default=10, ge=2, le=200)
    sma_slow: int = Field(default=20, ge=2, le=500)
    rsi_period: int = Field(default=14, ge=2, le=100)
    history_interval: str = "1d"
    history_limit: int = Field(default=50, ge=2, le=MAX_KLINE_LIMIT)

    @field_validator("history_interval")
    @classmethod
    def validate_history_interval(cls, v: str) -> str:
        return _validate_interval(v)

    @model_validator(mode="after")
    def check_periods(self) -> IndicatorConfig:
        if self.sma_fast >= self.sma_slow:
            raise ValueError("sma_fast must be shorter than sma_slow")
        return self


class ExportConfig(BaseModel):
    """File export defaults."""

    csv_filename: str = "market-data.csv"
    float_precision: int | None = Field(default=None, ge=0, le=12)


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Env var examples:
        SEASONALITY_LOG_LEVEL=DEBUG
        SEASONALITY_BINANCE__REST_URL=https://api.binance.us
        SEASONALITY_CALENDAR__SYMBOLS='["BTCUSDT","SOLUSDT"]'
        SEASONALITY_INDICATORS__RSI_PERIOD=21
    """

    model_config = SettingsConfigDict(
        env_prefix="SEASONALITY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"
    log_format: str = "console"
    binance: BinanceConfig = BinanceConfig()
    calendar: CalendarConfig = CalendarConfig()
    indicators: IndicatorConfig = IndicatorConfig()
    export: ExportConfig = ExportConfig()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {v}"
            )
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_LOG_FORMATS:
            raise ValueError(
                f"log_format must be one of {sorted(VALID_LOG_FORMATS)}, got {v}"
            )
        return v
