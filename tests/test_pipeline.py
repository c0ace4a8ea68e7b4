"""Tests for the end-to-end factor pipeline."""

import logging
from datetime import date

import pytest

from stockfactors.contracts import (
    AnalysisOptions,
    FactorContext,
    FactorId,
    IndexMove,
    PriceBar,
    ScoreConfig,
)
from stockfactors.pipeline import analyze_price_bars, prepare_bars, run_factor_analysis


def test_three_day_scenario(three_day_bars):
    result = run_factor_analysis(three_day_bars)

    pct = [b.pct_change for b in result.enriched_data]
    assert pct[0] is None
    assert pct[1] == pytest.approx(5.0)
    assert pct[2] == pytest.approx(2.857142857)

    assert len(result.factor_analyses) == 3
    assert all(s.score == 0 for s in result.daily_scores)
    assert all(s.above_threshold is False for s in result.daily_scores)

    assert len(result.transactions) == 1
    tx = result.transactions[0]
    assert tx.tx == 1
    assert tx.date == date(2024, 1, 2)
    assert tx.pct_change == 5.0
    assert tx.score == 0
    assert tx.above_threshold is False


def test_identities_hold(sample_bars):
    result = run_factor_analysis(sample_bars)
    n = len(sample_bars)

    assert len(result.enriched_data) == n
    assert len(result.factor_analyses) == n
    assert len(result.daily_scores) == n
    assert result.summary.total_days == n
    assert result.score_summary.total_days == n
    for analysis, score in zip(result.factor_analyses, result.daily_scores):
        assert analysis.date == score.date
        assert analysis.factor_count == len(analysis.factor_list)


def test_empty_input():
    result = run_factor_analysis([])
    assert result.enriched_data == []
    assert result.factor_analyses == []
    assert result.daily_scores == []
    assert result.transactions == []
    assert result.summary.total_days == 0
    assert result.summary.average_factors_per_day == 0
    assert result.score_summary.high_score_days == 0
    assert all(c.occurrences == 0 for c in result.correlation.values())
    assert result.trace.input_bars == 0


def test_unsorted_and_duplicate_input(three_day_bars):
    shuffled = [three_day_bars[2], three_day_bars[0], three_day_bars[1]]
    duplicate = PriceBar(date=date(2024, 1, 2), open=1, high=1, low=1, close=1, volume=1)
    result = run_factor_analysis(shuffled + [duplicate])

    assert [b.date for b in result.enriched_data] == [
        date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3),
    ]
    assert result.enriched_data[1].close == 105.0
    assert result.trace.input_bars == 4
    assert result.trace.duplicate_dates_dropped == 1
    assert result.trace.bars_analyzed == 3


def test_prepare_bars_keeps_first_repeat(three_day_bars):
    again = PriceBar(date=date(2024, 1, 1), open=9, high=9, low=9, close=9)
    ordered, dropped = prepare_bars([three_day_bars[0], again])
    assert dropped == 1
    assert ordered == [three_day_bars[0]]


def test_input_not_mutated(three_day_bars):
    before = [b.model_dump() for b in three_day_bars]
    run_factor_analysis(three_day_bars)
    assert [b.model_dump() for b in three_day_bars] == before


def test_context_and_config_flow_through(three_day_bars):
    options = AnalysisOptions(
        context=FactorContext(benchmark=[IndexMove(date="2024-01-02", pct_change=2.5)]),
        score_config=ScoreConfig.from_mapping(
            {FactorId.MARKET_UP: 1.0}, threshold=0.5, min_factors_required=1,
        ),
        min_pct_change=2.0,
    )
    result = run_factor_analysis(three_day_bars, options)

    assert result.daily_scores[1].score == 1.0
    assert result.daily_scores[1].above_threshold is True
    assert result.trace.high_score_days == 1
    assert result.trace.days_with_factors == 1
    assert [t.tx for t in result.transactions] == [1, 2]
    assert result.transactions[0].factors == [FactorId.MARKET_UP]


def test_factor_on_first_bar_counted_in_correlation(three_day_bars):
    # 2024-01-01 is three days after the earnings date; 2024-01-02 is four
    options = AnalysisOptions(context=FactorContext(earnings_dates=["2023-12-29"]))
    result = run_factor_analysis(three_day_bars, options)

    assert result.summary.factor_counts[FactorId.EARNINGS_WINDOW] == 1
    corr = result.correlation[FactorId.EARNINGS_WINDOW]
    assert corr.occurrences == 1
    assert corr.avg_return == 0
    assert corr.correlation == -1


def test_trace_counts(sample_bars_long):
    result = run_factor_analysis(sample_bars_long)
    trace = result.trace
    assert trace.bars_analyzed == 250
    assert trace.bars_with_ma200 == 51
    assert trace.bars_with_rsi == 250 - 14
    assert trace.transactions == len(result.transactions)


def test_trace_is_logged(three_day_bars, caplog):
    with caplog.at_level(logging.INFO, logger="stockfactors.pipeline"):
        run_factor_analysis(three_day_bars)
    assert any(r.getMessage().startswith("Factor pipeline:") for r in caplog.records)


def test_analyze_price_bars(three_day_bars):
    result = analyze_price_bars(three_day_bars, "SNAP", AnalysisOptions(min_pct_change=2.5))
    assert result.symbol == "SNAP"
    assert result.min_pct_change == 2.5
    assert result.total_days == 3
    assert len(result.transactions) == 2
