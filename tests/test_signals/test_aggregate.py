"""Tests for factor summary statistics and factor/return correlation."""

from datetime import date, timedelta

import pytest

from stockfactors.contracts import (
    ALL_FACTORS,
    DerivedBar,
    FactorAnalysis,
    FactorFlags,
    FactorId,
)
from stockfactors.signals.aggregate import (
    correlate_factors_with_price_movement,
    get_factor_summary,
    rank_factors_by_return,
)

START = date(2024, 1, 1)


def _analysis(i: int, *active: FactorId) -> FactorAnalysis:
    flags = FactorFlags(**{f.value: True for f in active})
    return FactorAnalysis.from_flags(START + timedelta(days=i), flags)


def _bar(i: int, close: float, pct: float | None) -> DerivedBar:
    return DerivedBar(
        date=START + timedelta(days=i), open=close, high=close, low=close,
        close=close, volume=0, pct_change=pct,
    )


# ── Summary ──


def test_summary_counts_and_frequency():
    spikes = {1, 4, 6}
    analyses = [
        _analysis(i, FactorId.VOLUME_SPIKE) if i in spikes else _analysis(i)
        for i in range(8)
    ]
    summary = get_factor_summary(analyses)

    assert summary.total_days == 8
    assert summary.factor_counts[FactorId.VOLUME_SPIKE] == 3
    assert summary.factor_frequency[FactorId.VOLUME_SPIKE] == pytest.approx(100 * 3 / 8)
    assert summary.factor_counts[FactorId.MARKET_UP] == 0
    assert summary.average_factors_per_day == pytest.approx(3 / 8)


def test_summary_covers_all_factors():
    summary = get_factor_summary([_analysis(0)])
    assert set(summary.factor_counts) == set(ALL_FACTORS)
    assert set(summary.factor_frequency) == set(ALL_FACTORS)


def test_summary_average_factors_per_day():
    analyses = [
        _analysis(0, FactorId.VOLUME_SPIKE, FactorId.MARKET_UP),
        _analysis(1, FactorId.RSI_OVER_60),
        _analysis(2),
    ]
    assert get_factor_summary(analyses).average_factors_per_day == pytest.approx(1.0)


def test_summary_empty():
    summary = get_factor_summary([])
    assert summary.total_days == 0
    assert summary.average_factors_per_day == 0
    assert all(v == 0 for v in summary.factor_frequency.values())
    assert all(v == 0 for v in summary.factor_counts.values())


def test_summary_ignores_unevaluated_flags():
    flags = FactorFlags(volume_spike=False, market_up=None)
    summary = get_factor_summary([FactorAnalysis.from_flags(START, flags)])
    assert summary.factor_counts[FactorId.VOLUME_SPIKE] == 0


# ── Correlation ──


@pytest.fixture
def returns_series():
    bars = [_bar(0, 100, None), _bar(1, 110, 10.0), _bar(2, 115, 4.55)]
    return bars


def test_avg_return_on_factor_days(returns_series):
    analyses = [
        _analysis(0),
        _analysis(1, FactorId.NEWS_POSITIVE, FactorId.MARKET_UP),
        _analysis(2, FactorId.NEWS_POSITIVE),
    ]
    corr = correlate_factors_with_price_movement(analyses, returns_series)

    assert corr[FactorId.NEWS_POSITIVE].occurrences == 2
    assert corr[FactorId.NEWS_POSITIVE].avg_return == pytest.approx((10.0 + 4.55) / 2)
    assert corr[FactorId.MARKET_UP].occurrences == 1
    assert corr[FactorId.MARKET_UP].avg_return == pytest.approx(10.0)


def test_correlation_sign_relative_to_series_mean(returns_series):
    analyses = [
        _analysis(0),
        _analysis(1, FactorId.MARKET_UP, FactorId.NEWS_POSITIVE),
        _analysis(2, FactorId.SECTOR_UP, FactorId.NEWS_POSITIVE),
    ]
    corr = correlate_factors_with_price_movement(analyses, returns_series)

    assert corr[FactorId.MARKET_UP].correlation == 1     # 10.0 > mean 7.275
    assert corr[FactorId.SECTOR_UP].correlation == -1    # 4.55 < mean
    # Present on every day: equal to the mean, not above it
    assert corr[FactorId.NEWS_POSITIVE].correlation == -1
    assert corr[FactorId.MACRO_TAILWIND].correlation == 0
    assert corr[FactorId.MACRO_TAILWIND].avg_return == 0


def test_factor_on_first_day_is_counted(returns_series):
    analyses = [_analysis(0, FactorId.EARNINGS_WINDOW), _analysis(1), _analysis(2)]
    corr = correlate_factors_with_price_movement(analyses, returns_series)
    assert corr[FactorId.EARNINGS_WINDOW].occurrences == 1
    # No % change on the first day: counts as 0, below the series mean
    assert corr[FactorId.EARNINGS_WINDOW].avg_return == 0
    assert corr[FactorId.EARNINGS_WINDOW].correlation == -1


def test_first_day_zero_enters_factor_average(returns_series):
    analyses = [
        _analysis(0, FactorId.MARKET_UP),
        _analysis(1, FactorId.MARKET_UP),
        _analysis(2),
    ]
    corr = correlate_factors_with_price_movement(analyses, returns_series)
    assert corr[FactorId.MARKET_UP].occurrences == 2
    assert corr[FactorId.MARKET_UP].avg_return == pytest.approx(5.0)
    assert corr[FactorId.MARKET_UP].correlation == -1  # 5.0 < mean 7.275


def test_occurrences_match_summary_counts(returns_series):
    analyses = [
        _analysis(0, FactorId.NEWS_POSITIVE, FactorId.MACRO_TAILWIND),
        _analysis(1, FactorId.NEWS_POSITIVE),
        _analysis(2),
    ]
    summary = get_factor_summary(analyses)
    corr = correlate_factors_with_price_movement(analyses, returns_series)
    for factor in ALL_FACTORS:
        assert corr[factor].occurrences == summary.factor_counts[factor]


def test_correlation_empty():
    corr = correlate_factors_with_price_movement([], [])
    assert set(corr) == set(ALL_FACTORS)
    assert all(c.occurrences == 0 and c.avg_return == 0 for c in corr.values())


def test_rank_factors_by_return(returns_series):
    analyses = [
        _analysis(0),
        _analysis(1, FactorId.MARKET_UP),
        _analysis(2, FactorId.SECTOR_UP),
    ]
    ranked = rank_factors_by_return(correlate_factors_with_price_movement(analyses, returns_series))
    assert [f for f, _ in ranked] == [FactorId.MARKET_UP, FactorId.SECTOR_UP]
