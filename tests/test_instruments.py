"""Tests for the instrument catalog and session labels."""

from datetime import time
from decimal import Decimal

import pytest

from journal.errors import ValidationError
from journal.services import instruments
from journal.utils.sessions import normalize_session, session_for_time


@pytest.mark.parametrize("symbol,multiplier", [
    ("EUR/USD", 100000),
    ("USD/JPY", 1000),
    ("GBP/JPY", 1000),
    ("XAU/USD", 100),
    ("XAG/USD", 100),
    ("US30", 100000),
])
def test_pip_multiplier(symbol, multiplier):
    assert instruments.pip_multiplier(symbol) == multiplier


@pytest.mark.parametrize("symbol,value", [
    ("EUR/USD", Decimal("10")),
    ("USD/JPY", Decimal("6.8")),
    ("USD/CAD", Decimal("7.3")),
    ("USD/CHF", Decimal("12.4")),
    ("EUR/GBP", Decimal("0")),
    ("NAS100", Decimal("0")),
])
def test_base_value_per_pip(symbol, value):
    assert instruments.base_value_per_pip(symbol) == value


def test_lookup_is_case_insensitive():
    assert instruments.lookup(" eur/usd ").symbol == "EUR/USD"
    assert instruments.lookup("BTC/USD") is None


def test_adjusted_value_per_pip_by_tier():
    gold = instruments.lookup("XAU/USD")
    assert instruments.adjusted_value_per_pip(gold, "Standard") == Decimal("10")
    assert instruments.adjusted_value_per_pip(gold, "Mini") == Decimal("1")
    assert instruments.adjusted_value_per_pip(gold, "Micro") == Decimal("0.1")


def test_adjusted_value_per_pip_zero_for_unknown_quote():
    assert instruments.adjusted_value_per_pip(instruments.lookup("EUR/GBP"), "Standard") == 0
    assert instruments.adjusted_value_per_pip(None, "Standard") == 0


def test_adjusted_value_per_pip_rejects_unknown_tier():
    with pytest.raises(ValidationError):
        instruments.adjusted_value_per_pip(instruments.lookup("EUR/USD"), "Nano")


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("clock,label", [
    (time(3, 0), "Sydney & Tokyo"),
    (time(8, 0), "Tokyo & London"),
    (time(10, 0), "London"),
    (time(13, 30), "London & New-York"),
    (time(18, 0), "New-York"),
    (time(21, 30), "Closed"),
    (time(23, 0), "Sydney"),
])
def test_session_for_time(clock, label):
    assert session_for_time(clock) == label


def test_session_for_missing_time():
    assert session_for_time(None) is None


def test_normalize_session():
    assert normalize_session("new york") == "New-York"
    assert normalize_session("London & New York") == "London & New-York"
    assert normalize_session("  ") is None
