"""Data contracts — typed value objects passed between every pipeline stage.

Every model is frozen and forbids unknown fields. A stage never mutates the
objects it receives; it returns fresh ones.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Mapping

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_calendar_date(value: Any) -> date:
    """Coerce a date, datetime, Timestamp or date-like string to a calendar date.

    Time-of-day is dropped, so ``2024-01-02T15:30:00`` and ``2024-01-02``
    compare equal.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return pd.Timestamp(value.strip()).date()
    raise TypeError(f"Cannot interpret {value!r} as a date")


class StrictModel(BaseModel):
    """Base for all contract models — immutable, unknown fields are forbidden."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class DatedModel(StrictModel):
    """Model keyed by a calendar date; accepts datetimes and strings on input."""

    date: date

    @field_validator("date", mode="before")
    @classmethod
    def _strip_time(cls, value: Any) -> date:
        return to_calendar_date(value)


# ── Factors ────────────────────────────────────────────────────────────────

class FactorId(str, Enum):
    MARKET_UP = "market_up"              # benchmark index surged that day
    SECTOR_UP = "sector_up"              # sector series rose that day
    EARNINGS_WINDOW = "earnings_window"  # within ±3 days of an earnings date
    VOLUME_SPIKE = "volume_spike"        # volume > 1.5x 20-day average
    BREAK_MA50 = "break_ma50"            # close crossed above MA50
    BREAK_MA200 = "break_ma200"          # close crossed above MA200
    RSI_OVER_60 = "rsi_over_60"
    NEWS_POSITIVE = "news_positive"
    SHORT_COVERING = "short_covering"    # high short interest + price pop
    MACRO_TAILWIND = "macro_tailwind"    # favorable CPI/Fed/rates event


ALL_FACTORS: tuple[FactorId, ...] = tuple(FactorId)


class FactorCategory(str, Enum):
    TECHNICAL = "technical"
    FUNDAMENTAL = "fundamental"
    MARKET = "market"
    SENTIMENT = "sentiment"


class FactorDescription(StrictModel):
    factor: FactorId
    name: str
    description: str
    category: FactorCategory


FACTOR_DESCRIPTIONS: dict[FactorId, FactorDescription] = {
    d.factor: d for d in (
        FactorDescription(
            factor=FactorId.MARKET_UP, name="Market Rally",
            description="Benchmark index surged significantly on that trading day",
            category=FactorCategory.MARKET,
        ),
        FactorDescription(
            factor=FactorId.SECTOR_UP, name="Sector Strength",
            description="The stock's sector showed strong performance",
            category=FactorCategory.MARKET,
        ),
        FactorDescription(
            factor=FactorId.EARNINGS_WINDOW, name="Earnings Window",
            description="Within ±3 days of an earnings announcement date",
            category=FactorCategory.FUNDAMENTAL,
        ),
        FactorDescription(
            factor=FactorId.VOLUME_SPIKE, name="Volume Spike",
            description="Trading volume exceeds 1.5x the 20-day moving average",
            category=FactorCategory.TECHNICAL,
        ),
        FactorDescription(
            factor=FactorId.BREAK_MA50, name="MA50 Breakout",
            description="Price breaks above the 50-day moving average",
            category=FactorCategory.TECHNICAL,
        ),
        FactorDescription(
            factor=FactorId.BREAK_MA200, name="MA200 Breakout",
            description="Price breaks above the 200-day moving average",
            category=FactorCategory.TECHNICAL,
        ),
        FactorDescription(
            factor=FactorId.RSI_OVER_60, name="Strong RSI",
            description="Relative Strength Index (RSI) exceeds 60",
            category=FactorCategory.TECHNICAL,
        ),
        FactorDescription(
            factor=FactorId.NEWS_POSITIVE, name="Positive News",
            description="Positive news sentiment and announcements",
            category=FactorCategory.SENTIMENT,
        ),
        FactorDescription(
            factor=FactorId.SHORT_COVERING, name="Short Covering",
            description="High short interest combined with price increase (potential squeeze)",
            category=FactorCategory.MARKET,
        ),
        FactorDescription(
            factor=FactorId.MACRO_TAILWIND, name="Macro Tailwind",
            description="Favorable CPI/Fed/interest rate environment",
            category=FactorCategory.FUNDAMENTAL,
        ),
    )
}


class FactorFlags(StrictModel):
    """Per-day factor state. None means the factor was not evaluated."""

    market_up: bool | None = None
    sector_up: bool | None = None
    earnings_window: bool | None = None
    volume_spike: bool | None = None
    break_ma50: bool | None = None
    break_ma200: bool | None = None
    rsi_over_60: bool | None = None
    news_positive: bool | None = None
    short_covering: bool | None = None
    macro_tailwind: bool | None = None

    def get(self, factor: FactorId) -> bool | None:
        return getattr(self, factor.value)

    def is_active(self, factor: FactorId) -> bool:
        return self.get(factor) is True

    def active(self) -> list[FactorId]:
        """Active factors in canonical order."""
        return [f for f in ALL_FACTORS if self.is_active(f)]


class FactorAnalysis(DatedModel):
    flags: FactorFlags
    factor_count: int = Field(ge=0)
    factor_list: list[FactorId]

    @classmethod
    def from_flags(cls, day: date, flags: FactorFlags) -> FactorAnalysis:
        active = flags.active()
        return cls(date=day, flags=flags, factor_count=len(active), factor_list=active)


# ── Price series ───────────────────────────────────────────────────────────

class PriceBar(DatedModel):
    open: float
    high: float
    low: float
    close: float
    volume: int = Field(default=0, ge=0)


class DerivedBar(PriceBar):
    """PriceBar plus derived fields; a field stays None until its window fills."""

    pct_change: float | None = None
    ma20: float | None = None
    ma50: float | None = None
    ma200: float | None = None
    rsi: float | None = None
    volume_ma20: float | None = None


# ── Optional context feeds ─────────────────────────────────────────────────

class IndexMove(DatedModel):
    pct_change: float


class NewsItem(DatedModel):
    sentiment: Literal["positive", "negative", "neutral"]


class MacroEvent(DatedModel):
    favorable: bool


class FactorContext(StrictModel):
    """External inputs for the market/fundamental/sentiment factors.

    Each feed is independently optional; an absent feed leaves its factor
    unevaluated rather than raising.
    """

    benchmark: list[IndexMove] | None = None
    sector: list[IndexMove] | None = None
    earnings_dates: list[date] | None = None
    news: list[NewsItem] | None = None
    short_interest: float | None = None
    macro_events: list[MacroEvent] | None = None

    @field_validator("earnings_dates", mode="before")
    @classmethod
    def _strip_earnings_times(cls, value: Any) -> Any:
        if value is None:
            return None
        return [to_calendar_date(v) for v in value]


# ── Scoring ────────────────────────────────────────────────────────────────

class FactorWeight(StrictModel):
    factor: FactorId
    weight: float = Field(ge=0)


class ScoreConfig(StrictModel):
    """Ordered weight table plus the gates that flag a high-score day.

    Only factors listed in ``weights`` take part in scoring, in list order.
    Weights need not sum to 1.
    """

    weights: tuple[FactorWeight, ...]
    threshold: float
    min_factors_required: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _unique_factors(self) -> ScoreConfig:
        seen: set[FactorId] = set()
        for entry in self.weights:
            if entry.factor in seen:
                raise ValueError(f"Duplicate weight for factor '{entry.factor.value}'")
            seen.add(entry.factor)
        return self

    @classmethod
    def from_mapping(
        cls,
        weights: Mapping[FactorId | str, float],
        threshold: float,
        min_factors_required: int | None = None,
    ) -> ScoreConfig:
        return cls(
            weights=tuple(
                FactorWeight(factor=FactorId(f), weight=w) for f, w in weights.items()
            ),
            threshold=threshold,
            min_factors_required=min_factors_required,
        )

    def weight_for(self, factor: FactorId) -> float:
        for entry in self.weights:
            if entry.factor == factor:
                return entry.weight
        return 0.0


class FactorContribution(StrictModel):
    weight: float
    active: bool
    contribution: float


class DailyScoreResult(DatedModel):
    score: float = Field(ge=0)
    factors: list[FactorId]
    factor_count: int = Field(ge=0)
    above_threshold: bool
    breakdown: dict[FactorId, FactorContribution]


class DailyScoreSummary(StrictModel):
    total_days: int
    high_score_days: int
    high_score_percentage: float
    average_score: float
    max_score: float
    min_score: float
    factor_frequency: dict[FactorId, float]


# ── Aggregates ─────────────────────────────────────────────────────────────

class FactorSummary(StrictModel):
    total_days: int
    factor_counts: dict[FactorId, int]
    factor_frequency: dict[FactorId, float]
    average_factors_per_day: float


class CorrelationResult(StrictModel):
    occurrences: int
    avg_return: float
    correlation: Literal[-1, 0, 1]


# ── Transactions ───────────────────────────────────────────────────────────

class Transaction(DatedModel):
    """A day whose percentage gain met the configured minimum (not a trade)."""

    tx: int = Field(ge=1)
    close: float
    pct_change: float


class TechnicalSnapshot(StrictModel):
    ma20: float | None = None
    ma50: float | None = None
    ma200: float | None = None
    rsi: float | None = None
    volume: int | None = None


class EnrichedTransaction(Transaction):
    factors: list[FactorId] = Field(default_factory=list)
    factor_count: int = 0
    score: float | None = None
    above_threshold: bool | None = None
    technical_indicators: TechnicalSnapshot | None = None


# ── Pipeline options ───────────────────────────────────────────────────────

class AnalysisOptions(StrictModel):
    context: FactorContext = Field(default_factory=FactorContext)
    score_config: ScoreConfig | None = None
    min_pct_change: float = 4.0
