"""Technical indicators — simple moving averages, RSI, day-over-day % change."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
import pandas as pd

from stockfactors.contracts import DerivedBar, PriceBar

MA_WINDOWS = (20, 50, 200)
RSI_PERIOD = 14
VOLUME_MA_WINDOW = 20


def _to_optional(series: pd.Series) -> list[float | None]:
    """Convert a float Series to a list with None where values are missing."""
    return [None if pd.isna(v) else float(v) for v in series]


def calculate_ma(values: Sequence[float], window: int) -> list[float | None]:
    """Simple moving average over the trailing ``window`` entries.

    Entry i is None until i >= window - 1. Empty input gives an empty list and
    a window longer than the input gives all None.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    if len(values) == 0:
        return []
    series = pd.Series(values, dtype=float)
    return _to_optional(series.rolling(window).mean())


def calculate_rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> list[float | None]:
    """RSI from simple (not Wilder-smoothed) averages of the trailing changes.

    For each index i >= period the average gain and average loss are the sum
    of gains/losses over the last ``period`` day-over-day changes divided by
    ``period``. A window with no losses reads 100.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    if len(prices) == 0:
        return []

    close = pd.Series(prices, dtype=float)
    delta = close.diff()
    gain = delta.where(delta > 0, 0.0).rolling(period).mean()
    loss = (-delta.where(delta < 0, 0.0)).rolling(period).mean()

    result: list[float | None] = []
    for i, (avg_gain, avg_loss) in enumerate(zip(gain, loss)):
        if i < period or pd.isna(avg_gain) or pd.isna(avg_loss):
            result.append(None)
        elif avg_loss <= 0:
            result.append(100.0)
        else:
            rs = avg_gain / avg_loss
            result.append(float(100 - 100 / (1 + rs)))
    return result


def calculate_pct_changes(closes: Sequence[float]) -> list[float | None]:
    """Close-to-close % change; None for the first bar, 0 after a zero close."""
    result: list[float | None] = []
    for i, close in enumerate(closes):
        if i == 0:
            result.append(None)
            continue
        prev = closes[i - 1]
        if prev == 0 or not math.isfinite(prev):
            result.append(0.0)
        else:
            result.append((close - prev) / prev * 100)
    return result


def enrich_with_indicators(bars: Sequence[PriceBar]) -> list[DerivedBar]:
    """Attach % change, MA20/50/200, RSI(14) and the 20-day volume MA to each bar.

    Expects bars sorted ascending by date.
    """
    if not bars:
        return []

    closes = np.array([b.close for b in bars], dtype=float)
    volumes = np.array([b.volume for b in bars], dtype=float)

    pct = calculate_pct_changes(closes.tolist())
    mas = {w: calculate_ma(closes, w) for w in MA_WINDOWS}
    rsi = calculate_rsi(closes, RSI_PERIOD)
    vol_ma = calculate_ma(volumes, VOLUME_MA_WINDOW)

    return [
        DerivedBar(
            **{name: getattr(bar, name) for name in PriceBar.model_fields},
            pct_change=pct[i],
            ma20=mas[20][i],
            ma50=mas[50][i],
            ma200=mas[200][i],
            rsi=rsi[i],
            volume_ma20=vol_ma[i],
        )
        for i, bar in enumerate(bars)
    ]
