"""Command-line entry point — analyze a daily price CSV and print the results.

    python -m stockfactors.main analyze SNAP_daily.csv --min-pct-change 4
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from stockfactors.config import get_settings
from stockfactors.contracts import AnalysisOptions, FactorContext
from stockfactors.data.csv_loader import (
    CSVFormatError,
    extract_symbol_from_filename,
    parse_price_csv,
)
from stockfactors.output.report import (
    format_factor_analysis_results,
    generate_factor_insights_prompt,
)
from stockfactors.pipeline import analyze_price_bars

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log drains."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Install a single stderr handler on the root logger.

    Results go to stdout, so logs stay on stderr.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def build_options(args: argparse.Namespace) -> AnalysisOptions:
    settings = get_settings()
    min_pct = args.min_pct_change if args.min_pct_change is not None else settings.min_pct_change

    context = FactorContext(
        earnings_dates=args.earnings_date or None,
        short_interest=args.short_interest,
    )
    return AnalysisOptions(
        context=context,
        score_config=settings.score_config(
            threshold=args.threshold, min_factors_required=args.min_factors,
        ),
        min_pct_change=min_pct,
    )


def cmd_analyze(args: argparse.Namespace) -> int:
    symbol = args.symbol or extract_symbol_from_filename(args.csv)
    try:
        bars = parse_price_csv(args.csv)
    except (CSVFormatError, FileNotFoundError) as exc:
        logger.error("Cannot load %s: %s", args.csv, exc)
        return 2

    options = build_options(args)
    result = analyze_price_bars(bars, symbol, options)

    if args.prompt:
        print(generate_factor_insights_prompt(
            symbol,
            result.analysis.summary,
            result.analysis.correlation,
            result.transactions,
        ))
        return 0

    payload = {
        "symbol": symbol,
        "totalDays": result.total_days,
        "transactionsFound": len(result.transactions),
        "minPctChange": result.min_pct_change,
        **format_factor_analysis_results(result.analysis),
    }
    print(json.dumps(payload, indent=2 if args.pretty else None))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stockfactors", description=__doc__)
    parser.add_argument("--log-level", default=None, help="Override STOCKFACTORS_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Run factor scoring on a daily OHLCV CSV")
    analyze.add_argument("csv", help="CSV with Date, Open, High, Low, Close, Volume columns")
    analyze.add_argument("--symbol", default=None, help="Defaults to the file name prefix")
    analyze.add_argument("--min-pct-change", type=float, default=None)
    analyze.add_argument("--threshold", type=float, default=None)
    analyze.add_argument("--min-factors", type=int, default=None)
    analyze.add_argument(
        "--earnings-date", action="append", default=[], metavar="YYYY-MM-DD",
        help="Earnings announcement date (repeatable)",
    )
    analyze.add_argument("--short-interest", type=float, default=None, metavar="PCT")
    analyze.add_argument("--prompt", action="store_true", help="Print the insights prompt instead")
    analyze.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    analyze.set_defaults(func=cmd_analyze)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
