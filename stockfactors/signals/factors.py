"""Factor detection — evaluates the ten daily market/technical/sentiment factors.

Each factor is decided independently from the day's derived bar and the
optional context feeds. A factor whose input is missing stays None
(not evaluated); the detector never raises for an incomplete context.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence, TypeVar

from stockfactors.contracts import (
    DatedModel,
    DerivedBar,
    FactorAnalysis,
    FactorContext,
    FactorFlags,
)

MARKET_UP_PCT = 1.5
SECTOR_UP_PCT = 1.0
EARNINGS_WINDOW_DAYS = 3
VOLUME_SPIKE_MULTIPLIER = 1.5
RSI_STRONG_LEVEL = 60.0
SHORT_INTEREST_HIGH_PCT = 15.0
SHORT_COVERING_MIN_GAIN_PCT = 2.0

_Dated = TypeVar("_Dated", bound=DatedModel)


def _first_on(feed: Sequence[_Dated], day: date) -> _Dated | None:
    """First feed entry dated ``day`` (duplicates after it are ignored)."""
    for entry in feed:
        if entry.date == day:
            return entry
    return None


def _crossed_above(
    prev_close: float, prev_ma: float | None, close: float, ma: float | None,
) -> bool | None:
    if prev_ma is None or ma is None:
        return None
    return prev_close <= prev_ma and close > ma


def detect_day_factors(
    bars: Sequence[DerivedBar], index: int, context: FactorContext,
) -> FactorFlags:
    """Evaluate all factors for ``bars[index]``; the prior bar feeds the crossings."""
    bar = bars[index]
    prev = bars[index - 1] if index > 0 else None
    day = bar.date
    flags: dict[str, bool | None] = {}

    # --- Market / sector ---
    if context.benchmark is not None:
        move = _first_on(context.benchmark, day)
        flags["market_up"] = move is not None and move.pct_change > MARKET_UP_PCT

    if context.sector is not None:
        move = _first_on(context.sector, day)
        flags["sector_up"] = move is not None and move.pct_change > SECTOR_UP_PCT

    # --- Fundamental ---
    if context.earnings_dates is not None:
        flags["earnings_window"] = any(
            abs((day - earn).days) <= EARNINGS_WINDOW_DAYS
            for earn in context.earnings_dates
        )

    # --- Technical ---
    if bar.volume and bar.volume_ma20 is not None and bar.volume_ma20 > 0:
        flags["volume_spike"] = bar.volume > bar.volume_ma20 * VOLUME_SPIKE_MULTIPLIER

    if prev is not None:
        flags["break_ma50"] = _crossed_above(prev.close, prev.ma50, bar.close, bar.ma50)
        flags["break_ma200"] = _crossed_above(prev.close, prev.ma200, bar.close, bar.ma200)

    if bar.rsi is not None:
        flags["rsi_over_60"] = bar.rsi > RSI_STRONG_LEVEL

    # --- Sentiment ---
    if context.news is not None:
        item = _first_on(context.news, day)
        flags["news_positive"] = item is not None and item.sentiment == "positive"

    # Zero short interest or a flat/undefined day leaves this unevaluated
    if context.short_interest and bar.pct_change:
        flags["short_covering"] = (
            context.short_interest > SHORT_INTEREST_HIGH_PCT
            and bar.pct_change > SHORT_COVERING_MIN_GAIN_PCT
        )

    if context.macro_events is not None:
        event = _first_on(context.macro_events, day)
        flags["macro_tailwind"] = event is not None and event.favorable

    return FactorFlags(**flags)


def detect_factors(
    bars: Sequence[DerivedBar], context: FactorContext | None = None,
) -> list[FactorAnalysis]:
    """Run factor detection over a date-sorted series of derived bars."""
    context = context or FactorContext()
    return [
        FactorAnalysis.from_flags(bar.date, detect_day_factors(bars, i, context))
        for i, bar in enumerate(bars)
    ]
