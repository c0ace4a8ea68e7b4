"""Daily strength scoring — weighted sum of active factors against a threshold.

A day is flagged "above threshold" only when its score reaches the configured
threshold AND enough factors are active (when a minimum is configured).
Also provides score-series summary statistics and a single-day movement
prediction built on the same scorer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from stockfactors.contracts import (
    ALL_FACTORS,
    DailyScoreResult,
    DailyScoreSummary,
    FactorAnalysis,
    FactorContribution,
    FactorFlags,
    FactorId,
    ScoreConfig,
)

DEFAULT_WEIGHTS: dict[FactorId, float] = {
    FactorId.VOLUME_SPIKE: 0.25,
    FactorId.MARKET_UP: 0.20,
    FactorId.EARNINGS_WINDOW: 0.15,
    FactorId.BREAK_MA50: 0.15,
    FactorId.RSI_OVER_60: 0.10,
    FactorId.SECTOR_UP: 0.08,
    FactorId.BREAK_MA200: 0.05,
    FactorId.NEWS_POSITIVE: 0.02,
    FactorId.SHORT_COVERING: 0.03,
    FactorId.MACRO_TAILWIND: 0.02,
}
DEFAULT_THRESHOLD = 0.45  # high probability of a strong move
DEFAULT_MIN_FACTORS = 2

DEFAULT_SCORE_CONFIG = ScoreConfig.from_mapping(
    DEFAULT_WEIGHTS, threshold=DEFAULT_THRESHOLD, min_factors_required=DEFAULT_MIN_FACTORS,
)

# Prediction bands relative to the threshold
MODERATE_BAND = 0.7
MAX_CONFIDENCE = 95.0

RECOMMENDATIONS: dict[FactorId, str] = {
    FactorId.VOLUME_SPIKE: "Monitor for continued volume support",
    FactorId.MARKET_UP: "Watch market momentum for confirmation",
    FactorId.EARNINGS_WINDOW: "Be cautious of earnings-related volatility",
    FactorId.BREAK_MA50: "Monitor for sustained MA50 breakout",
    FactorId.RSI_OVER_60: "Watch for potential overbought conditions",
}


def calculate_daily_score(
    analysis: FactorAnalysis, config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> DailyScoreResult:
    """Score one day's factors against the weight table."""
    breakdown: dict[FactorId, FactorContribution] = {}
    active: list[FactorId] = []
    score = 0.0

    for entry in config.weights:
        is_active = analysis.flags.is_active(entry.factor)
        contribution = entry.weight if is_active else 0.0
        breakdown[entry.factor] = FactorContribution(
            weight=entry.weight, active=is_active, contribution=contribution,
        )
        if is_active:
            score += contribution
            active.append(entry.factor)

    enough_factors = (
        config.min_factors_required is None
        or len(active) >= config.min_factors_required
    )

    return DailyScoreResult(
        date=analysis.date,
        score=score,
        factors=active,
        factor_count=len(active),
        above_threshold=score >= config.threshold and enough_factors,
        breakdown=breakdown,
    )


def calculate_daily_scores(
    analyses: Sequence[FactorAnalysis], config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> list[DailyScoreResult]:
    return [calculate_daily_score(a, config) for a in analyses]


def summarize_daily_scores(scores: Sequence[DailyScoreResult]) -> DailyScoreSummary:
    """Score distribution plus how often each factor shows up on high-score days."""
    total = len(scores)
    high = [s for s in scores if s.above_threshold]
    n_high = len(high)

    frequency: dict[FactorId, float] = {}
    for factor in ALL_FACTORS:
        occurrences = sum(1 for s in high if factor in s.factors)
        frequency[factor] = occurrences / n_high * 100 if n_high else 0.0

    values = [s.score for s in scores]
    return DailyScoreSummary(
        total_days=total,
        high_score_days=n_high,
        high_score_percentage=n_high / total * 100 if total else 0.0,
        average_score=sum(values) / total if total else 0.0,
        max_score=max(values, default=0.0),
        min_score=min(values, default=0.0),
        factor_frequency=frequency,
    )


@dataclass
class MovementPrediction:
    score: float
    prediction: str  # HIGH_PROBABILITY, MODERATE or LOW_PROBABILITY
    confidence: float
    active_factors: list[FactorId]
    recommendations: list[str] = field(default_factory=list)


def predict_strong_movement(
    flags: FactorFlags,
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
    as_of: date | None = None,
) -> MovementPrediction:
    """Classify a single day's factor state into a coarse probability band.

    Bands use the score alone; the minimum-factor gate only applies to
    ``above_threshold`` in the daily series.
    """
    analysis = FactorAnalysis.from_flags(as_of or date.today(), flags)
    result = calculate_daily_score(analysis, config)
    score = result.score

    if score >= config.threshold:
        prediction = "HIGH_PROBABILITY"
        confidence = min(score * 100, MAX_CONFIDENCE)
    elif score >= config.threshold * MODERATE_BAND:
        prediction = "MODERATE"
        confidence = score * 80
    else:
        prediction = "LOW_PROBABILITY"
        confidence = score * 60

    recommendations = [
        text for factor, text in RECOMMENDATIONS.items() if flags.is_active(factor)
    ]

    return MovementPrediction(
        score=score,
        prediction=prediction,
        confidence=confidence,
        active_factors=result.factors,
        recommendations=recommendations,
    )
