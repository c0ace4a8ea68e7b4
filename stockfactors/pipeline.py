"""Factor-analysis pipeline — runs every stage over one symbol's price series.

bars → % change + indicators → factor flags → daily scores →
summary/correlation → transactions → enriched transactions.

Each stage is a pure function; the pipeline only wires them together and
records per-stage counts in a PipelineTrace returned with the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from stockfactors.contracts import (
    AnalysisOptions,
    CorrelationResult,
    DailyScoreResult,
    DailyScoreSummary,
    DerivedBar,
    EnrichedTransaction,
    FactorAnalysis,
    FactorId,
    FactorSummary,
    PriceBar,
    Transaction,
)
from stockfactors.features.technical import enrich_with_indicators
from stockfactors.signals.aggregate import (
    correlate_factors_with_price_movement,
    get_factor_summary,
)
from stockfactors.signals.factors import detect_factors
from stockfactors.signals.scoring import (
    DEFAULT_SCORE_CONFIG,
    calculate_daily_scores,
    summarize_daily_scores,
)
from stockfactors.signals.transactions import enrich_transactions, extract_transactions

logger = logging.getLogger(__name__)


@dataclass
class PipelineTrace:
    """Counts collected at each stage of one pipeline run."""

    input_bars: int = 0
    duplicate_dates_dropped: int = 0
    bars_analyzed: int = 0
    bars_with_ma200: int = 0
    bars_with_rsi: int = 0
    days_with_factors: int = 0
    high_score_days: int = 0
    transactions: int = 0

    def log_summary(self) -> None:
        logger.info(
            "Factor pipeline: %d input → %d analyzed (%d duplicate dates dropped) | "
            "ma200=%d, rsi=%d, with_factors=%d, high_score=%d, transactions=%d",
            self.input_bars,
            self.bars_analyzed,
            self.duplicate_dates_dropped,
            self.bars_with_ma200,
            self.bars_with_rsi,
            self.days_with_factors,
            self.high_score_days,
            self.transactions,
        )


@dataclass
class FactorAnalysisResult:
    enriched_data: list[DerivedBar]
    factor_analyses: list[FactorAnalysis]
    daily_scores: list[DailyScoreResult]
    score_summary: DailyScoreSummary
    summary: FactorSummary
    correlation: dict[FactorId, CorrelationResult]
    transactions: list[EnrichedTransaction] = field(default_factory=list)
    trace: PipelineTrace = field(default_factory=PipelineTrace)


@dataclass
class StockAnalysisResult:
    symbol: str
    min_pct_change: float
    analysis: FactorAnalysisResult

    @property
    def total_days(self) -> int:
        return len(self.analysis.enriched_data)

    @property
    def transactions(self) -> list[EnrichedTransaction]:
        return self.analysis.transactions


def prepare_bars(bars: Sequence[PriceBar]) -> tuple[list[PriceBar], int]:
    """Sort ascending by date and keep the first bar for any repeated date."""
    ordered = sorted(bars, key=lambda b: b.date)
    unique: list[PriceBar] = []
    for bar in ordered:
        if unique and unique[-1].date == bar.date:
            continue
        unique.append(bar)
    return unique, len(ordered) - len(unique)


def run_factor_analysis(
    bars: Sequence[PriceBar],
    options: AnalysisOptions | None = None,
) -> FactorAnalysisResult:
    """Run the full factor pipeline. Never raises for empty or short input."""
    options = options or AnalysisOptions()
    config = options.score_config or DEFAULT_SCORE_CONFIG
    trace = PipelineTrace(input_bars=len(bars))

    ordered, dropped = prepare_bars(bars)
    trace.duplicate_dates_dropped = dropped

    enriched = enrich_with_indicators(ordered)
    trace.bars_analyzed = len(enriched)
    trace.bars_with_ma200 = sum(1 for b in enriched if b.ma200 is not None)
    trace.bars_with_rsi = sum(1 for b in enriched if b.rsi is not None)

    analyses = detect_factors(enriched, options.context)
    trace.days_with_factors = sum(1 for a in analyses if a.factor_count > 0)

    scores = calculate_daily_scores(analyses, config)
    score_summary = summarize_daily_scores(scores)
    trace.high_score_days = score_summary.high_score_days

    summary = get_factor_summary(analyses)
    correlation = correlate_factors_with_price_movement(analyses, enriched)

    raw_transactions: list[Transaction] = extract_transactions(enriched, options.min_pct_change)
    transactions = enrich_transactions(raw_transactions, analyses, enriched, scores)
    trace.transactions = len(transactions)

    trace.log_summary()

    return FactorAnalysisResult(
        enriched_data=enriched,
        factor_analyses=analyses,
        daily_scores=scores,
        score_summary=score_summary,
        summary=summary,
        correlation=correlation,
        transactions=transactions,
        trace=trace,
    )


def analyze_price_bars(
    bars: Sequence[PriceBar],
    symbol: str,
    options: AnalysisOptions | None = None,
) -> StockAnalysisResult:
    """Factor analysis for one symbol, with its transaction threshold recorded."""
    options = options or AnalysisOptions()
    logger.info("Analyzing %d trading days for %s", len(bars), symbol)
    analysis = run_factor_analysis(bars, options)
    logger.info(
        "%s: %.2f average factors per day, %d transactions >= %.2f%%",
        symbol,
        analysis.summary.average_factors_per_day,
        len(analysis.transactions),
        options.min_pct_change,
    )
    return StockAnalysisResult(
        symbol=symbol, min_pct_change=options.min_pct_change, analysis=analysis,
    )
