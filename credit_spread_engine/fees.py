"""
Fee model for two-leg option spreads.

Per-contract schedule: $0 commission, $0.65 clearing, and ORF + TAF
regulatory fees. Index and futures options currently carry the same
schedule as equity options; the flags are accepted so callers can
record the product type and the schedule can diverge later.
"""

import logging
import math

from credit_spread_engine.models import VALID_SIDES, FeeBreakdown, TradeFees

logger = logging.getLogger(__name__)

COMMISSION_PER_CONTRACT = 0.0
INDEX_COMMISSION_PER_CONTRACT = 0.0
FUTURES_COMMISSION_PER_CONTRACT = 0.0

CLEARING_FEE_PER_CONTRACT = 0.65
INDEX_CLEARING_FEE_PER_CONTRACT = 0.65
FUTURES_CLEARING_FEE_PER_CONTRACT = 0.65

ORF_FEE_PER_CONTRACT = 0.000119
TAF_FEE_PER_CONTRACT = 0.000119

LEGS_PER_SPREAD = 2


def _per_contract_schedule(is_index: bool, is_futures: bool) -> tuple:
    """Return (commission, clearing, regulatory) per contract."""
    if is_futures:
        commission = FUTURES_COMMISSION_PER_CONTRACT
        clearing = FUTURES_CLEARING_FEE_PER_CONTRACT
    elif is_index:
        commission = INDEX_COMMISSION_PER_CONTRACT
        clearing = INDEX_CLEARING_FEE_PER_CONTRACT
    else:
        commission = COMMISSION_PER_CONTRACT
        clearing = CLEARING_FEE_PER_CONTRACT

    regulatory = ORF_FEE_PER_CONTRACT + TAF_FEE_PER_CONTRACT
    return commission, clearing, regulatory


def compute_fees(
    side: str,
    quantity: int = 1,
    is_index: bool = False,
    is_futures: bool = False,
) -> TradeFees:
    """
    Compute entry, exit and round-trip fees for a credit spread.

    Both legs are charged, so every per-contract fee scales by
    2 x quantity. Exit fees mirror entry fees.

    Args:
        side: 'call' or 'put'
        quantity: Number of spreads (>= 1)
        is_index: Whether the underlying is an index
        is_futures: Whether these are futures options

    Returns:
        TradeFees with entry, exit and round_trip breakdowns
    """
    if side not in VALID_SIDES:
        raise ValueError(f"Invalid side: {side}")
    if quantity < 1:
        raise ValueError("quantity must be at least 1")

    commission, clearing, regulatory = _per_contract_schedule(is_index, is_futures)
    contracts = LEGS_PER_SPREAD * quantity

    entry = FeeBreakdown(
        commission=commission * contracts,
        clearing_fee=clearing * contracts,
        regulatory_fees=regulatory * contracts,
        total=(commission + clearing + regulatory) * contracts,
    )
    exit_fees = FeeBreakdown(
        commission=entry.commission,
        clearing_fee=entry.clearing_fee,
        regulatory_fees=entry.regulatory_fees,
        total=entry.total,
    )

    logger.debug(f"Fees for {quantity}x {side} spread: entry ${entry.total:.4f}")

    return TradeFees(entry=entry, exit=exit_fees, round_trip=entry + exit_fees)


def calculate_pnl(credit: float, debit: float, fees: float, quantity: int = 1) -> float:
    """Realized P&L of a credit spread: (credit - debit - fees) x quantity."""
    return (credit - debit - fees) * quantity


def calculate_max_loss(width: float, credit: float, fees: float, quantity: int = 1) -> float:
    """Worst-case loss including fees: (width - credit + fees) x quantity."""
    return (width - credit + fees) * quantity


def calculate_max_profit(credit: float, fees: float, quantity: int = 1) -> float:
    """Best-case profit net of fees: (credit - fees) x quantity."""
    return (credit - fees) * quantity


def calculate_return_on_risk(credit: float, width: float, fees: float) -> float:
    """
    Fee-adjusted max profit divided by fee-adjusted max loss.

    Returns math.inf when the max loss is zero.
    """
    max_profit = calculate_max_profit(credit, fees)
    max_loss = calculate_max_loss(width, credit, fees)
    if max_loss == 0:
        return math.inf
    return max_profit / max_loss
