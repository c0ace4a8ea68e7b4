"""Series-wide aggregation — factor frequencies and factor/return correlation."""

from __future__ import annotations

from typing import Sequence

from stockfactors.contracts import (
    ALL_FACTORS,
    CorrelationResult,
    DerivedBar,
    FactorAnalysis,
    FactorId,
    FactorSummary,
)


def get_factor_summary(analyses: Sequence[FactorAnalysis]) -> FactorSummary:
    total = len(analyses)
    counts = {
        factor: sum(1 for a in analyses if a.flags.is_active(factor))
        for factor in ALL_FACTORS
    }
    frequency = {
        factor: counts[factor] / total * 100 if total else 0.0
        for factor in ALL_FACTORS
    }
    return FactorSummary(
        total_days=total,
        factor_counts=counts,
        factor_frequency=frequency,
        average_factors_per_day=(
            sum(a.factor_count for a in analyses) / total if total else 0.0
        ),
    )


def correlate_factors_with_price_movement(
    analyses: Sequence[FactorAnalysis], bars: Sequence[DerivedBar],
) -> dict[FactorId, CorrelationResult]:
    """Average % change on days each factor fired, against the all-days mean.

    ``correlation`` is a coarse sign, not a correlation coefficient: +1 when
    the factor's average return beats the series mean, -1 when it doesn't,
    0 when the factor never fired. Analyses and bars are paired by position.
    Every day a factor fired counts as an occurrence; a day without a % change
    contributes 0 to that factor's average but stays out of the series mean.
    """
    days = list(zip(analyses, bars))
    all_returns = [bar.pct_change for _, bar in days if bar.pct_change is not None]
    mean_all = sum(all_returns) / len(all_returns) if all_returns else 0.0

    results: dict[FactorId, CorrelationResult] = {}
    for factor in ALL_FACTORS:
        with_factor = [
            bar.pct_change or 0.0
            for analysis, bar in days
            if analysis.flags.is_active(factor)
        ]
        occurrences = len(with_factor)
        avg_return = sum(with_factor) / occurrences if occurrences else 0.0

        if occurrences == 0:
            sign = 0
        elif avg_return > mean_all:
            sign = 1
        else:
            sign = -1

        results[factor] = CorrelationResult(
            occurrences=occurrences, avg_return=avg_return, correlation=sign,
        )
    return results


def rank_factors_by_return(
    correlation: dict[FactorId, CorrelationResult],
) -> list[tuple[FactorId, CorrelationResult]]:
    """Factors that fired at least once, best average return first."""
    fired = [(f, c) for f, c in correlation.items() if c.occurrences > 0]
    return sorted(fired, key=lambda item: item[1].avg_return, reverse=True)
