"""Daily OHLCV CSV loading — turns an uploaded price file into sorted PriceBars."""

from __future__ import annotations

import logging
import re
from os import PathLike
from pathlib import Path
from typing import IO, Union

import pandas as pd

from stockfactors.contracts import PriceBar

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "close")
PRICE_COLUMNS = ("open", "high", "low")
_SYMBOL_RE = re.compile(r"^([A-Z]+)[_-]")

CSVSource = Union[str, PathLike, IO[str]]


class CSVFormatError(ValueError):
    """The file is missing a column the loader cannot do without."""


def check_required_columns(df: pd.DataFrame) -> None:
    """Raise CSVFormatError unless the date and close columns are present (any case)."""
    columns = {str(c).strip().lower() for c in df.columns}
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise CSVFormatError(f"Missing required column(s): {', '.join(missing)}")


def normalize_ohlcv_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Lower-case columns, coerce types, drop unusable rows, sort and de-duplicate.

    Missing open/high/low default to close and missing volume to 0.
    """
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]

    check_required_columns(df)

    df["date"] = pd.to_datetime(
        df["date"].astype(str), errors="coerce", format="mixed",
    ).dt.date
    df["close"] = pd.to_numeric(df["close"], errors="coerce")

    bad = df["date"].isna() | df["close"].isna()
    if bad.any():
        logger.warning("Dropping %d row(s) with an invalid date or close price", int(bad.sum()))
        df = df[~bad].copy()

    for col in PRICE_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(df["close"])
        else:
            df[col] = df["close"]

    if "volume" in df.columns:
        volume = pd.to_numeric(df["volume"], errors="coerce").fillna(0).clip(lower=0)
        df["volume"] = volume.astype("int64")
    else:
        df["volume"] = 0

    df = df.sort_values("date", kind="stable")
    dupes = df["date"].duplicated(keep="first")
    if dupes.any():
        logger.warning("Dropping %d row(s) with a repeated date", int(dupes.sum()))
        df = df[~dupes]

    return df[["date", "open", "high", "low", "close", "volume"]].reset_index(drop=True)


def bars_from_frame(df: pd.DataFrame) -> list[PriceBar]:
    """Convert an OHLCV DataFrame (any column case) to PriceBars.

    A frame with no columns at all gives no bars; otherwise the date and close
    columns must be present even when there are no rows.
    """
    if len(df.columns) == 0:
        return []
    check_required_columns(df)
    if df.empty:
        return []
    frame = normalize_ohlcv_frame(df)
    return [
        PriceBar(
            date=row.date,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=int(row.volume),
        )
        for row in frame.itertuples(index=False)
    ]


def parse_price_csv(source: CSVSource) -> list[PriceBar]:
    """Read a daily price CSV (Date, Open, High, Low, Close, Volume)."""
    try:
        df = pd.read_csv(source, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        logger.warning("Price CSV is empty")
        return []
    bars = bars_from_frame(df)
    logger.info("Loaded %d daily bars", len(bars))
    return bars


def extract_symbol_from_filename(filename: str) -> str:
    """SNAP_daily.csv -> SNAP, TCB-20260103_2025.csv -> TCB, else the upper-cased stem."""
    name = Path(filename).name
    match = _SYMBOL_RE.match(name)
    if match:
        return match.group(1)
    return re.sub(r"\.csv$", "", name, flags=re.IGNORECASE).upper()
