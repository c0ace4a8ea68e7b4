"""Significant-gain days ("transactions") and their factor/score enrichment."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence, TypeVar

from stockfactors.contracts import (
    DailyScoreResult,
    DatedModel,
    DerivedBar,
    EnrichedTransaction,
    FactorAnalysis,
    TechnicalSnapshot,
    Transaction,
)

DEFAULT_MIN_PCT_CHANGE = 4.0

_Dated = TypeVar("_Dated", bound=DatedModel)


def extract_transactions(
    bars: Sequence[DerivedBar], min_pct_change: float = DEFAULT_MIN_PCT_CHANGE,
) -> list[Transaction]:
    """Days whose % gain meets ``min_pct_change``, numbered from 1 in date order."""
    hits = [b for b in bars if b.pct_change is not None and b.pct_change >= min_pct_change]
    return [
        Transaction(tx=i, date=b.date, close=b.close, pct_change=round(b.pct_change, 2))
        for i, b in enumerate(hits, start=1)
    ]


def _index_by_date(items: Iterable[_Dated]) -> dict[date, _Dated]:
    """Map date -> first item on that date."""
    index: dict[date, _Dated] = {}
    for item in items:
        index.setdefault(item.date, item)
    return index


def enrich_transactions(
    transactions: Sequence[Transaction],
    analyses: Sequence[FactorAnalysis],
    bars: Sequence[DerivedBar],
    scores: Sequence[DailyScoreResult] | None = None,
) -> list[EnrichedTransaction]:
    """Join each transaction to that day's factors, score and indicator snapshot.

    A date missing from any of the inputs just leaves the matching fields
    empty: no factors, no score, no indicator snapshot.
    """
    analysis_by_date = _index_by_date(analyses)
    bar_by_date = _index_by_date(bars)
    score_by_date = _index_by_date(scores or [])

    enriched: list[EnrichedTransaction] = []
    for tx in transactions:
        analysis = analysis_by_date.get(tx.date)
        bar = bar_by_date.get(tx.date)
        score = score_by_date.get(tx.date)

        snapshot = None
        if bar is not None:
            snapshot = TechnicalSnapshot(
                ma20=bar.ma20, ma50=bar.ma50, ma200=bar.ma200,
                rsi=bar.rsi, volume=bar.volume,
            )

        enriched.append(EnrichedTransaction(
            tx=tx.tx,
            date=tx.date,
            close=tx.close,
            pct_change=tx.pct_change,
            factors=list(analysis.factor_list) if analysis else [],
            factor_count=analysis.factor_count if analysis else 0,
            score=score.score if score else None,
            above_threshold=score.above_threshold if score else None,
            technical_indicators=snapshot,
        ))
    return enriched
