"""Shared test fixtures for the seasonality explorer."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Iterator
from typing import Any

import pytest
import structlog

from seasonality.config import AppConfig, BinanceConfig


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> Iterator[None]:
    """Keep developer SEASONALITY_* variables and .env files out of tests."""
    for key in list(os.environ):
        if key.startswith("SEASONALITY_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo setup_logging() calls so handlers never outlive a captured stream."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def binance_config() -> BinanceConfig:
    return BinanceConfig(reconnect=False, request_timeout_s=5.0)


@pytest.fixture
def live_binance_config() -> BinanceConfig:
    """Binance config for integration tests.

    Skips unless RUN_BINANCE_INTEGRATION=1 is set.
    """
    if os.environ.get("RUN_BINANCE_INTEGRATION", "") != "1":
        pytest.skip(
            "Live Binance tests disabled. Set RUN_BINANCE_INTEGRATION=1.",
        )
    return BinanceConfig(reconnect=False)


@pytest.fixture
async def binance_source(
    live_binance_config: BinanceConfig,
) -> AsyncIterator[Any]:
    """Create and connect a BinanceDataSource for integration tests."""
    from seasonality.market.binance.data import BinanceDataSource

    source = BinanceDataSource(live_binance_config)
    await source.connect()
    try:
        yield source
    finally:
        await source.disconnect()
