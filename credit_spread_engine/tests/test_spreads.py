"""Tests for spread construction."""

import math
from datetime import date

import pytest

from credit_spread_engine.exceptions import (
    InsufficientDataError,
    InsufficientOptionsError,
    NoMatchingLongLegError,
)
from credit_spread_engine.models import OptionChainSnapshot
from credit_spread_engine.spreads import (
    build_spread,
    find_long_leg,
    price_spread,
    select_short_leg,
)

from conftest import make_quote


def chain_with(calls=(), puts=()):
    """Helper to create a chain snapshot."""
    return OptionChainSnapshot(ticker="TEST", expiry=date(2024, 3, 15), calls=calls, puts=puts)


class TestSelectShortLeg:
    """Tests for select_short_leg function."""

    def test_closest_delta_wins(self, sample_calls):
        """Test selecting the quote nearest the target delta."""
        short = select_short_leg(sample_calls, 0.16)
        assert short.strike == 107.5

    def test_tie_keeps_chain_order(self):
        """Test that equal delta distances resolve to the earlier quote."""
        quotes = [
            make_quote(100.0, 1.0, 1.2, 0.75),
            make_quote(105.0, 0.5, 0.7, 0.25),
        ]
        assert select_short_leg(quotes, 0.5).strike == 100.0
        assert select_short_leg(list(reversed(quotes)), 0.5).strike == 105.0

    def test_negative_target_matches_put_deltas(self, sample_puts):
        """Test that signed put deltas need a signed target."""
        assert select_short_leg(sample_puts, -0.16).strike == 95.0


class TestFindLongLeg:
    """Tests for find_long_leg function."""

    def test_call_long_leg_is_above_short(self, sample_calls):
        """Test that call spreads buy the higher strike."""
        short = sample_calls[3]
        long_leg = find_long_leg(sample_calls, short, 2.5, "call")
        assert long_leg.strike == 110.0

    def test_put_long_leg_is_below_short(self, sample_puts):
        """Test that put spreads buy the lower strike."""
        short = sample_puts[2]
        long_leg = find_long_leg(sample_puts, short, 2.5, "put")
        assert long_leg.strike == 92.5

    def test_exact_width_only(self, sample_calls):
        """Test that a near miss is not accepted."""
        short = sample_calls[3]
        assert find_long_leg(sample_calls, short, 2.0, "call") is None


class TestBuildSpread:
    """Tests for build_spread function."""

    def test_call_spread_economics(self, sample_chain):
        """Test credit, risk and breakeven for a call spread."""
        spread = build_spread(sample_chain, "call", 0.16, 2.5)

        assert spread.ticker == "TEST"
        assert spread.side == "call"
        assert spread.short_leg.strike == 107.5
        assert spread.long_leg.strike == 110.0
        assert spread.credit == pytest.approx(0.45)
        assert spread.debit == pytest.approx(0.30)
        assert spread.net_credit == pytest.approx(0.15)
        assert spread.max_profit == pytest.approx(0.15)
        assert spread.max_risk == pytest.approx(2.35)
        assert spread.credit_percent == pytest.approx(6.0)
        assert spread.risk_reward_ratio == pytest.approx(0.15 / 2.35)
        assert spread.breakeven == pytest.approx(107.65)

    def test_put_spread_economics(self, sample_chain):
        """Test that put breakeven sits below the short strike."""
        spread = build_spread(sample_chain, "put", -0.16, 2.5)

        assert spread.short_leg.strike == 95.0
        assert spread.long_leg.strike == 92.5
        assert spread.net_credit == pytest.approx(0.15)
        assert spread.breakeven == pytest.approx(94.85)

    @pytest.mark.parametrize("side,delta", [("call", 0.16), ("call", 0.30), ("put", -0.16), ("put", -0.25)])
    def test_risk_plus_credit_equals_width(self, sample_chain, side, delta):
        """Test the max risk + net credit == width invariant."""
        spread = build_spread(sample_chain, side, delta, 2.5)
        assert spread.max_risk + spread.net_credit == pytest.approx(spread.width, abs=1e-9)
        assert spread.width == 2.5

    def test_insufficient_options(self):
        """Test that fewer than 2 quotes raises."""
        chain = chain_with(calls=[make_quote(100.0, 1.0, 1.1, 0.2)])

        with pytest.raises(InsufficientOptionsError, match="need at least 2 call quotes, got 1") as exc:
            build_spread(chain, "call", 0.16, 2.5)

        assert exc.value.ticker == "TEST"
        assert exc.value.available == 1
        assert isinstance(exc.value, InsufficientDataError)

    def test_empty_side(self, sample_calls):
        """Test that a chain with no puts cannot build a put spread."""
        chain = chain_with(calls=sample_calls)
        with pytest.raises(InsufficientOptionsError):
            build_spread(chain, "put", -0.16, 2.5)

    def test_no_matching_long_leg(self):
        """Test width 2.5 against strikes 5 apart."""
        chain = chain_with(calls=[
            make_quote(100.0, 2.0, 2.2, 0.40),
            make_quote(105.0, 0.9, 1.0, 0.20),
            make_quote(110.0, 0.3, 0.4, 0.10),
        ])

        with pytest.raises(NoMatchingLongLegError, match="no strike exactly 2.5") as exc:
            build_spread(chain, "call", 0.20, 2.5)

        assert exc.value.short_strike == 105.0
        assert exc.value.width == 2.5

    def test_five_wide_spread(self):
        """Test a 5-wide spread on a 5-point strike ladder."""
        chain = chain_with(calls=[
            make_quote(100.0, 2.0, 2.2, 0.40),
            make_quote(105.0, 0.9, 1.0, 0.20),
            make_quote(110.0, 0.3, 0.4, 0.10),
        ])

        spread = build_spread(chain, "call", 0.20, 5)

        assert spread.long_leg.strike == 110.0
        assert spread.width == 5.0

    def test_invalid_side(self, sample_chain):
        """Test that an unknown side raises ValueError."""
        with pytest.raises(ValueError, match="Invalid side"):
            build_spread(sample_chain, "straddle", 0.16, 2.5)

    def test_does_not_mutate_chain(self, sample_chain):
        """Test that chain quotes are left in provider order."""
        before = sample_chain.calls
        build_spread(sample_chain, "call", 0.16, 2.5)
        assert sample_chain.calls == before


class TestPriceSpread:
    """Tests for price_spread function."""

    def test_zero_risk_ratio_is_infinite(self):
        """Test that a credit equal to the width surfaces an unbounded ratio."""
        short = make_quote(100.0, 2.5, 2.5, 0.5)
        long_leg = make_quote(102.5, 0.0, 0.0, 0.1)

        spread = price_spread("TEST", "call", short, long_leg, 2.5)

        assert spread.max_risk == 0
        assert math.isinf(spread.risk_reward_ratio)
        assert spread.has_defined_reward_ratio is False
        assert spread.to_dict()["risk_reward_ratio"] is None
