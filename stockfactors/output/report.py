"""Result formatting — API-ready payloads and the Jinja2 insights prompt.

The prompt is handed to an external text-generation service; nothing here
calls that service.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from stockfactors.contracts import (
    FACTOR_DESCRIPTIONS,
    CorrelationResult,
    EnrichedTransaction,
    FactorFlags,
    FactorId,
    FactorSummary,
    ScoreConfig,
)
from stockfactors.pipeline import FactorAnalysisResult
from stockfactors.signals.aggregate import rank_factors_by_return
from stockfactors.signals.scoring import DEFAULT_SCORE_CONFIG, predict_strong_movement

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

TOP_FACTORS = 5
MIN_PROMPT_FREQUENCY = 5.0  # % of days


def get_jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _describe(factor: FactorId) -> dict:
    desc = FACTOR_DESCRIPTIONS[factor]
    return {
        "factor": factor.value,
        "name": desc.name,
        "category": desc.category.value,
        "description": desc.description,
    }


def format_factor_analysis_results(result: FactorAnalysisResult) -> dict:
    """JSON-ready view of a pipeline run, correlation sorted best return first."""
    scores = result.daily_scores
    score_summary = result.score_summary
    summary = result.summary

    return {
        "analyses": [
            {
                "date": a.date.isoformat(),
                "factorCount": a.factor_count,
                "factors": [_describe(f) for f in a.factor_list],
            }
            for a in result.factor_analyses
        ],
        "dailyScores": [
            {
                "date": s.date.isoformat(),
                "score": s.score,
                "factorCount": s.factor_count,
                "aboveThreshold": s.above_threshold,
                "factors": [
                    {
                        "factor": f.value,
                        "name": FACTOR_DESCRIPTIONS[f].name,
                        "contribution": s.breakdown[f].contribution,
                    }
                    for f in s.factors
                ],
            }
            for s in scores
        ],
        "summary": {
            "totalDays": summary.total_days,
            "averageFactorsPerDay": summary.average_factors_per_day,
            "factorCounts": {f.value: n for f, n in summary.factor_counts.items()},
            "factorFrequency": [
                {
                    "factor": f.value,
                    "name": FACTOR_DESCRIPTIONS[f].name,
                    "frequency": freq,
                    "count": summary.factor_counts[f],
                }
                for f, freq in summary.factor_frequency.items()
            ],
        },
        "scoreSummary": {
            "totalDays": score_summary.total_days,
            "highScoreDays": score_summary.high_score_days,
            "highScorePercentage": score_summary.high_score_percentage,
            "averageScore": score_summary.average_score,
            "maxScore": score_summary.max_score,
            "minScore": score_summary.min_score,
            "factorFrequency": [
                {"factor": f.value, "name": FACTOR_DESCRIPTIONS[f].name, "frequency": freq}
                for f, freq in score_summary.factor_frequency.items()
            ],
        },
        "correlation": sorted(
            (
                {
                    **_describe(f),
                    "occurrences": c.occurrences,
                    "avgReturn": c.avg_return,
                    "correlation": c.correlation,
                }
                for f, c in result.correlation.items()
            ),
            key=lambda row: row["avgReturn"],
            reverse=True,
        ),
        "transactions": [
            tx.model_dump(mode="json") for tx in result.transactions
        ],
    }


def generate_factor_insights_prompt(
    symbol: str,
    summary: FactorSummary,
    correlation: dict[FactorId, CorrelationResult],
    transactions: Sequence[EnrichedTransaction],
) -> str:
    """Render the prompt that asks a language model to interpret the factors."""
    top = [
        {**_describe(f), "occurrences": c.occurrences, "avg_return": c.avg_return}
        for f, c in rank_factors_by_return(correlation)[:TOP_FACTORS]
    ]

    counts = Counter(f for tx in transactions for f in tx.factors)
    common = [
        {"name": FACTOR_DESCRIPTIONS[f].name, "count": n}
        for f, n in counts.most_common(TOP_FACTORS)
    ]

    frequent = sorted(
        (
            {"name": FACTOR_DESCRIPTIONS[f].name, "frequency": freq}
            for f, freq in summary.factor_frequency.items()
            if freq > MIN_PROMPT_FREQUENCY
        ),
        key=lambda row: row["frequency"],
        reverse=True,
    )

    template = get_jinja_env().get_template("factor_insights_prompt.j2")
    return template.render(
        symbol=symbol,
        total_days=summary.total_days,
        average_factors_per_day=summary.average_factors_per_day,
        transaction_count=len(transactions),
        top_factors=top,
        common_factors=common,
        frequent_factors=frequent,
        min_frequency=MIN_PROMPT_FREQUENCY,
    )


def generate_daily_prediction(
    symbol: str,
    flags: FactorFlags,
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
    as_of: date | None = None,
) -> dict:
    """Movement prediction for one day's factor state, with readable labels."""
    as_of = as_of or date.today()
    prediction = predict_strong_movement(flags, config, as_of=as_of)

    if prediction.prediction == "HIGH_PROBABILITY":
        interpretation = (
            f"{symbol} shows high probability of strong upward movement based on current factors"
        )
    elif prediction.prediction == "MODERATE":
        interpretation = f"{symbol} shows moderate potential for price movement"
    else:
        interpretation = f"{symbol} shows low probability of significant movement today"

    return {
        "symbol": symbol,
        "date": as_of.isoformat(),
        "score": prediction.score,
        "prediction": prediction.prediction,
        "confidence": prediction.confidence,
        "activeFactors": [
            {
                "factor": f.value,
                "name": FACTOR_DESCRIPTIONS[f].name,
                "description": FACTOR_DESCRIPTIONS[f].description,
                "weight": config.weight_for(f),
            }
            for f in prediction.active_factors
        ],
        "recommendations": prediction.recommendations,
        "threshold": config.threshold,
        "interpretation": interpretation,
    }
