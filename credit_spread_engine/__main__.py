"""
CLI interface for the credit spread engine.

Usage:
    python -m credit_spread_engine scan SPY QQQ IWM
    python -m credit_spread_engine scan SPY QQQ --config filters.yaml --csv scan.csv
    python -m credit_spread_engine recommend SPY --expiry 2025-01-17 --side put
    python -m credit_spread_engine fees --side call --quantity 5
    python -m credit_spread_engine oco 0.45 --take-profit 0.5 --stop-loss 2
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

from credit_spread_engine.config import OCOConfig, ScannerFilters, load_config
from credit_spread_engine.data_fetcher import get_chain_provider, get_market_data_provider
from credit_spread_engine.exceptions import SpreadEngineError
from credit_spread_engine.fees import compute_fees
from credit_spread_engine.oco import compute_oco_levels
from credit_spread_engine.recommender import TradeRecommender, scan_watchlist
from credit_spread_engine.reports import format_scan_csv, format_scan_report, format_trade_report
from credit_spread_engine.scanner import ScannerEngine


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _parse_date(value: str):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="credit_spread_engine",
        description="Screen underlyings and build defined-risk credit spreads.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m credit_spread_engine scan SPY QQQ IWM
  python -m credit_spread_engine scan SPY QQQ --json
  python -m credit_spread_engine recommend SPY --expiry 2025-01-17 --side put
  python -m credit_spread_engine recommend QQQ --side call --quantity 2
  python -m credit_spread_engine fees --side call --quantity 5
  python -m credit_spread_engine oco 0.45

Strategy Overview:
  A credit spread sells an option near the target delta and buys a further
  out-of-the-money option of the same type and expiry, exactly one spread
  width away. The scanner triages underlyings by IV rank, trend and
  earnings proximity; the trade rules grade one concrete spread.
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )
    parser.add_argument(
        "--config",
        type=str,
        metavar="FILE",
        help="YAML file with 'filters' and 'oco' sections",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Score and rank a watchlist")
    scan.add_argument("tickers", nargs="+", help="Underlying symbols (e.g., SPY QQQ AAPL)")
    scan.add_argument("--workers", type=int, default=8, help="Max concurrent fetches (default: 8)")
    scan.add_argument("--csv", type=str, metavar="FILE", help="Output results to CSV file")
    scan.add_argument("--json", action="store_true", help="Output results as JSON to stdout")

    rec = subparsers.add_parser("recommend", help="Build and grade a credit spread")
    rec.add_argument("ticker", help="Underlying symbol")
    rec.add_argument(
        "--expiry",
        type=_parse_date,
        help="Expiration (YYYY-MM-DD, default: nearest inside the DTE filters)",
    )
    rec.add_argument("--side", choices=["call", "put"], required=True, help="Spread side")
    rec.add_argument("--delta", type=float, help="Short leg target delta (default: from filters)")
    rec.add_argument("--width", type=float, help="Strike width (default: from filters)")
    rec.add_argument("--quantity", type=int, default=1, help="Number of spreads (default: 1)")
    rec.add_argument("--index", action="store_true", help="Underlying is an index")
    rec.add_argument("--provider", default="cboe", help="OpenBB chain provider (default: cboe)")
    rec.add_argument("--json", action="store_true", help="Output result as JSON to stdout")

    fees = subparsers.add_parser("fees", help="Show fees for a spread")
    fees.add_argument("--side", choices=["call", "put"], required=True, help="Spread side")
    fees.add_argument("--quantity", type=int, default=1, help="Number of spreads (default: 1)")
    fees.add_argument("--index", action="store_true", help="Underlying is an index")
    fees.add_argument("--futures", action="store_true", help="Futures options")

    oco = subparsers.add_parser("oco", help="Show bracket exit levels for a credit")
    oco.add_argument("credit", type=float, help="Net credit received")
    oco.add_argument("--take-profit", type=float, help="Take profit fraction of credit (default: 0.5)")
    oco.add_argument("--stop-loss", type=float, help="Stop loss multiple of credit (default: 2)")
    oco.add_argument("--time-stop-days", type=int, help="Calendar days to time stop (default: 2)")

    return parser


def _load_settings(config_path: Optional[str]):
    if config_path:
        return load_config(config_path)
    return ScannerFilters(), OCOConfig()


def _run_scan(args, filters: ScannerFilters) -> None:
    provider = get_market_data_provider()
    tickers = [t.upper() for t in args.tickers]
    results = scan_watchlist(tickers, provider, filters, max_workers=args.workers)

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return

    if args.csv:
        Path(args.csv).write_text(format_scan_csv(results))
        print(f"Results saved to {args.csv}")
        print()

    print(format_scan_report(results, ScannerEngine(filters)))


def _run_recommend(args, filters: ScannerFilters, oco_config: OCOConfig) -> None:
    recommender = TradeRecommender(
        filters=filters,
        oco_config=oco_config,
        market_data_provider=get_market_data_provider(),
        chain_provider=get_chain_provider(args.provider),
    )
    rec = recommender.recommend(
        args.ticker.upper(),
        args.expiry,
        args.side,
        target_delta=args.delta,
        width=args.width,
        quantity=args.quantity,
        is_index=args.index,
    )

    if args.json:
        print(json.dumps(rec.to_dict(), indent=2))
    else:
        print(format_trade_report(rec))


def _run_fees(args) -> None:
    fees = compute_fees(args.side, args.quantity, is_index=args.index, is_futures=args.futures)
    for label, breakdown in (
        ("Entry", fees.entry),
        ("Exit", fees.exit),
        ("Round trip", fees.round_trip),
    ):
        print(
            f"{label:<11} commission ${breakdown.commission:.4f} | "
            f"clearing ${breakdown.clearing_fee:.4f} | "
            f"regulatory ${breakdown.regulatory_fees:.6f} | "
            f"total ${breakdown.total:.4f}"
        )


def _run_oco(args, oco_config: OCOConfig) -> None:
    overrides = {
        "take_profit_percent": args.take_profit,
        "stop_loss_multiplier": args.stop_loss,
        "time_stop_days": args.time_stop_days,
    }
    config = replace(oco_config, **{k: v for k, v in overrides.items() if v is not None})
    levels = compute_oco_levels(args.credit, config)
    print(f"Take profit: ${levels.take_profit:.2f}")
    print(f"Stop loss:   ${levels.stop_loss:.2f}")
    print(f"Time stop:   {levels.time_stop.isoformat()}")


def main(argv: Optional[list] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose, args.debug)

    try:
        filters, oco_config = _load_settings(args.config)

        if args.command == "scan":
            _run_scan(args, filters)
        elif args.command == "recommend":
            _run_recommend(args, filters, oco_config)
        elif args.command == "fees":
            _run_fees(args)
        elif args.command == "oco":
            _run_oco(args, oco_config)

        return 0

    except SpreadEngineError as e:
        logging.debug("Structured error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logging.exception("Error while running command")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
