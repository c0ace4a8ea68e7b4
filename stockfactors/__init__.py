"""Daily factor-scoring engine for OHLCV price series."""

__version__ = "0.1.0"
