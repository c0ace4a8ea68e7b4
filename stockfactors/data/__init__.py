"""L1 — Price data loading."""

from stockfactors.data.csv_loader import (
    CSVFormatError,
    bars_from_frame,
    extract_symbol_from_filename,
    parse_price_csv,
)

__all__ = [
    "CSVFormatError",
    "bars_from_frame",
    "extract_symbol_from_filename",
    "parse_price_csv",
]
