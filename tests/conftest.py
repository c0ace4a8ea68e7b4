"""Shared test fixtures."""

from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest

from stockfactors.contracts import PriceBar
from stockfactors.data.csv_loader import bars_from_frame


def _random_walk_ohlcv(seed: int, n: int, start: date, base: float, step: float) -> pd.DataFrame:
    np.random.seed(seed)
    dates = [start + timedelta(days=i) for i in range(n)]
    close = base + np.cumsum(np.random.randn(n) * step)
    close = np.maximum(close, 10)  # keep positive

    df = pd.DataFrame({
        "date": dates,
        "open": close + np.random.randn(n) * 0.5,
        "high": close + abs(np.random.randn(n)) * 1.0,
        "low": close - abs(np.random.randn(n)) * 1.0,
        "close": close,
        "volume": np.random.randint(500_000, 5_000_000, n).astype(float),
    })
    # Ensure high >= close >= low
    df["high"] = df[["open", "high", "close"]].max(axis=1)
    df["low"] = df[["open", "low", "close"]].min(axis=1)
    return df


@pytest.fixture
def sample_ohlcv() -> pd.DataFrame:
    """Generate 100 days of synthetic OHLCV data."""
    return _random_walk_ohlcv(42, 100, date(2025, 1, 2), 100.0, 1.5)


@pytest.fixture
def sample_bars(sample_ohlcv) -> list[PriceBar]:
    return bars_from_frame(sample_ohlcv)


@pytest.fixture
def sample_bars_long() -> list[PriceBar]:
    """250 days of synthetic bars for MA(200) testing."""
    return bars_from_frame(_random_walk_ohlcv(77, 250, date(2024, 4, 1), 100.0, 1.2))


@pytest.fixture
def three_day_bars() -> list[PriceBar]:
    """Closes 100, 105, 108: the minimal end-to-end scenario."""
    rows = [
        (date(2024, 1, 1), 100.0, 1_000_000),
        (date(2024, 1, 2), 105.0, 1_500_000),
        (date(2024, 1, 3), 108.0, 2_000_000),
    ]
    return [
        PriceBar(date=d, open=c, high=c, low=c, close=c, volume=v)
        for d, c, v in rows
    ]
