"""Tests for the pricing and sizing calculator."""

from decimal import Decimal

from journal.services import instruments
from journal.services.sizing import (
    compute_sizing,
    lot_size,
    risk_reward_ratio,
    round2,
    round_int,
    to_decimal,
)


def test_round_half_up():
    assert round2(Decimal("0.005")) == Decimal("0.01")
    assert round2(Decimal("2.675")) == Decimal("2.68")
    assert round_int(Decimal("2.5")) == 3
    assert round_int(Decimal("-2.5")) == -3


def test_to_decimal_rejects_non_finite():
    assert to_decimal("1.5") == Decimal("1.5")
    assert to_decimal(float("nan")) is None
    assert to_decimal(float("inf")) is None
    assert to_decimal(None) is None
    assert to_decimal("abc") is None


def test_sizing_eurusd_standard_rounds_to_zero():
    result = compute_sizing(
        instruments.lookup("EUR/USD"), "Standard",
        "1.10000", "1.09500", "1.11000", "2", "1000",
    )
    assert result.stop_points == 500
    assert result.adjusted_value_per_pip == Decimal("10")
    assert result.lot_size == Decimal("0.00")
    assert result.estimated_risk_currency == Decimal("0.00")


def test_sizing_gold_mini():
    result = compute_sizing(
        instruments.lookup("XAU/USD"), "Mini",
        "2000.00", "1995.00", "2010.00", "2", "10000",
    )
    assert result.stop_points == 500
    assert result.tp_points == 1000
    assert result.adjusted_value_per_pip == Decimal("1")
    assert result.lot_size == Decimal("0.40")
    assert result.estimated_risk_currency == Decimal("200.00")
    assert result.estimated_profit_currency == Decimal("400.00")
    assert result.estimated_risk_percent == Decimal("2.00")
    assert result.ratio == Decimal("2")


def test_zero_stop_distance():
    result = compute_sizing(
        instruments.lookup("EUR/USD"), "Standard",
        "1.10000", "1.10000", "1.11000", "2", "10000",
    )
    assert result.lot_size == Decimal("0.00")
    assert result.ratio is None
    assert result.estimated_risk_currency == Decimal("0.00")


def test_unknown_quote_currency_sizes_to_zero():
    result = compute_sizing(
        instruments.lookup("EUR/GBP"), "Standard",
        "0.85000", "0.84500", "0.86000", "1", "10000",
    )
    assert result.lot_size == Decimal("0.00")


def test_lot_size_missing_input():
    assert lot_size(None, "1000", "10", "1.1", "1.09", 100000) == Decimal("0.00")


def test_direction_does_not_affect_ratio():
    assert risk_reward_ratio("1.10000", "1.09500", "1.11000") == risk_reward_ratio("1.10000", "1.10500", "1.09000")
