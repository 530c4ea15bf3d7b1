"""Command-line runner.

Usage::

    python -m stockdb div ASML.AS 2019
    python -m stockdb metric AAPL 2023 --currency EUR
    python -m stockdb events MC.PA --cache file
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from stockdb import config_from_env
from stockdb.config import StoreBackend
from stockdb.errors import StockDBError
from stockdb.models.query import DEFAULT_FISCAL_YEAR_END
from stockdb.result import Ok
from stockdb.service import StockDBService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockdb",
        description="Fiscal-year dividends and per-share dividend metrics.",
    )
    parser.add_argument(
        "--cache",
        choices=[b.value for b in StoreBackend],
        help="Cache store backend (default: STOCKDB_CACHE or memory)",
    )
    parser.add_argument("--cache-dir", help="Directory for the file store")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    div = sub.add_parser("div", help="Fiscal-year dividend total")
    div.add_argument("ticker")
    div.add_argument("year", type=int)
    div.add_argument("--fiscal-year-end", default=DEFAULT_FISCAL_YEAR_END, help="MM-DD")

    metric = sub.add_parser("metric", help="Dividend per weighted share in a target currency")
    metric.add_argument("ticker")
    metric.add_argument("year", type=int)
    metric.add_argument("--currency", default="EUR")
    metric.add_argument("--fiscal-year-end", default=DEFAULT_FISCAL_YEAR_END, help="MM-DD")

    events = sub.add_parser("events", help="List the usable dividend history")
    events.add_argument("ticker")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_env()
        if args.cache:
            config = replace(config, store_backend=StoreBackend(args.cache))
        if args.cache_dir:
            config = replace(config, cache_dir=args.cache_dir)
        svc = StockDBService(config)
    except (StockDBError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    if args.command == "events":
        try:
            history = svc.get_dividend_events(args.ticker)
        except Exception as exc:
            print(f"Error: {exc}")
            return 1
        for event in history:
            period = event.period.value if event.period else "-"
            print(f"{event.date.isoformat()}  {period:<9}  {event.value:g}")
        return 0

    if args.command == "div":
        result = svc.get_div(args.ticker, args.year, args.fiscal_year_end)
    else:
        result = svc.get_metric(args.ticker, args.year, args.currency, args.fiscal_year_end)

    print(result.to_cell())
    return 0 if isinstance(result, Ok) else 1


if __name__ == "__main__":
    sys.exit(main())
