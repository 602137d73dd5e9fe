"""
Report formatting for scan results and trade recommendations.
"""

import csv
import io
from typing import List, Optional

from credit_spread_engine.models import ScannerResult
from credit_spread_engine.recommender import TradeRecommendation
from credit_spread_engine.scanner import ScannerEngine


def _fmt_optional(value: Optional[float], fmt: str = ".1f") -> str:
    return "n/a" if value is None else format(value, fmt)


def format_scan_report(
    results: List[ScannerResult],
    engine: Optional[ScannerEngine] = None,
) -> str:
    """
    Format a human-readable scan report.

    Args:
        results: Ranked scan results
        engine: Engine that produced the results; when given, its detailed
            recommendations are listed for each ticker

    Returns:
        Formatted report string
    """
    if not results:
        return "No tickers scanned"

    passing = sum(1 for r in results if r.passes)

    lines = [
        "=" * 70,
        "CREDIT SPREAD SCANNER RESULTS",
        f"Tickers: {len(results)} | Passing: {passing}",
        "=" * 70,
        "",
    ]

    for rank, result in enumerate(results, start=1):
        md = result.market_data
        verdict = "PASS" if result.passes else "FAIL"
        lines.append("-" * 70)
        lines.append(f"#{rank} {result.ticker} | Score: {result.score} | {verdict}")
        lines.append(
            f"  Price: ${md.price:.2f} | IVR: {_fmt_optional(md.iv_rank)} | "
            f"EMA10: {_fmt_optional(md.ema10, '.2f')} | RSI14: {_fmt_optional(md.rsi14)}"
        )
        if md.earnings_date:
            lines.append(f"  Earnings: {md.earnings_date.isoformat()}")

        for reason in result.reasons:
            lines.append(f"  - {reason}")

        recommendations = (
            engine.generate_recommendations(result) if engine else list(result.recommendations)
        )
        for rec in recommendations:
            lines.append(f"  > {rec}")
        lines.append("")

    lines.append("=" * 70)
    return "\n".join(lines)


def format_scan_csv(results: List[ScannerResult]) -> str:
    """
    Format scan results as CSV.

    Reasons and recommendations are joined with " | " in a single column each.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow([
        "rank", "ticker", "score", "passes", "price", "iv_rank",
        "ema10", "rsi14", "earnings_date", "reasons", "recommendations",
    ])

    for rank, result in enumerate(results, start=1):
        md = result.market_data
        writer.writerow([
            rank,
            result.ticker,
            result.score,
            result.passes,
            f"{md.price:.2f}",
            "" if md.iv_rank is None else f"{md.iv_rank:.2f}",
            "" if md.ema10 is None else f"{md.ema10:.2f}",
            "" if md.rsi14 is None else f"{md.rsi14:.2f}",
            md.earnings_date.isoformat() if md.earnings_date else "",
            " | ".join(result.reasons),
            " | ".join(result.recommendations),
        ])

    return output.getvalue().rstrip("\n")


def format_trade_report(rec: TradeRecommendation) -> str:
    """Format a human-readable trade recommendation."""
    s = rec.spread
    verdict = "PASS" if rec.validation.passes else "FAIL"
    if s.has_defined_reward_ratio:
        ratio = f"{s.risk_reward_ratio:.2f}"
    else:
        ratio = "unbounded (no risk)"

    lines = [
        "=" * 70,
        f"{rec.ticker} {s.side.upper()} CREDIT SPREAD | {rec.expiry.isoformat()} ({rec.dte} DTE)",
        "=" * 70,
        f"Sell {s.short_leg.strike:g} (delta {s.short_leg.delta:.3f}) @ ${s.credit:.2f}",
        f"Buy  {s.long_leg.strike:g} (delta {s.long_leg.delta:.3f}) @ ${s.debit:.2f}",
        f"Net Credit: ${s.net_credit:.2f} ({s.credit_percent:.1f}% of {s.width:g} width)",
        f"Max Risk: ${s.max_risk:.2f} | Max Profit: ${s.max_profit:.2f} | Reward/Risk: {ratio}",
        f"Breakeven: {s.breakeven:.2f}",
        "",
        f"Quantity: {rec.quantity}",
        f"Fees: entry ${rec.fees.entry.total:.2f} | exit ${rec.fees.exit.total:.2f} | "
        f"round trip ${rec.fees.round_trip.total:.2f}",
        f"Position Max Profit: ${rec.max_profit_dollars:.2f} | "
        f"Position Max Loss: ${rec.max_loss_dollars:.2f}",
        "",
        f"OCO: take profit ${rec.oco.take_profit:.2f} | stop loss ${rec.oco.stop_loss:.2f} | "
        f"time stop {rec.oco.time_stop.isoformat()}",
        "",
        f"Rule check: {verdict} (score {rec.validation.score})",
    ]
    for reason in rec.validation.reasons:
        lines.append(f"  - {reason}")
    lines.append("=" * 70)

    return "\n".join(lines)
