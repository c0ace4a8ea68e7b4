"""L2 — Feature engineering layer."""

from stockfactors.features.technical import (
    calculate_ma,
    calculate_pct_changes,
    calculate_rsi,
    enrich_with_indicators,
)

__all__ = [
    "calculate_ma",
    "calculate_pct_changes",
    "calculate_rsi",
    "enrich_with_indicators",
]
