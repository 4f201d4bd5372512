"""Static catalog of tradeable symbols.

Pip multiplier comes from symbol suffix/prefix rules; base value-per-pip comes
from the quote currency. Unknown quote currencies get a base value of 0, which
makes the sizing calculator refuse to size the trade.
"""

from dataclasses import dataclass
from decimal import Decimal

from journal.errors import ValidationError
from journal.utils.constants import TIER_DIVISORS

AVAILABLE_PAIRS = [
    "EUR/USD",
    "GBP/USD",
    "USD/JPY",
    "USD/CAD",
    "AUD/USD",
    "NZD/USD",
    "EUR/GBP",
    "EUR/JPY",
    "GBP/JPY",
    "USD/CHF",
    "XAU/USD",
    "XAG/USD",
    "US30",
    "NAS100",
]

_BASE_VP_BY_QUOTE = {
    "/USD": Decimal("10"),
    "/JPY": Decimal("6.8"),
    "/CAD": Decimal("7.3"),
    "/CHF": Decimal("12.4"),
}

_METAL_PREFIXES = ("XAU", "XAG", "XPT")


@dataclass(frozen=True)
class Instrument:
    symbol: str
    multiplier: int
    base_value_per_pip: Decimal


def normalize_symbol(symbol: str) -> str:
    return (symbol or "").strip().upper()


def pip_multiplier(symbol: str) -> int:
    s = normalize_symbol(symbol)
    if s.endswith("/JPY"):
        return 1000
    if s.startswith(_METAL_PREFIXES):
        return 100
    return 100000


def base_value_per_pip(symbol: str) -> Decimal:
    s = normalize_symbol(symbol)
    for suffix, value in _BASE_VP_BY_QUOTE.items():
        if s.endswith(suffix):
            return value
    return Decimal("0")


_CATALOG: dict[str, Instrument] = {
    symbol: Instrument(symbol, pip_multiplier(symbol), base_value_per_pip(symbol))
    for symbol in AVAILABLE_PAIRS
}


def lookup(symbol: str) -> Instrument | None:
    """Catalog entry for a known symbol, None otherwise."""
    return _CATALOG.get(normalize_symbol(symbol))


def list_instruments() -> list[Instrument]:
    return list(_CATALOG.values())


def adjusted_value_per_pip(instrument: Instrument | None, tier: str | None) -> Decimal:
    """Base value-per-pip scaled down for Mini/Micro accounts; 0 for unknown symbols."""
    if instrument is None or not instrument.base_value_per_pip:
        return Decimal("0")
    divisor = TIER_DIVISORS.get(tier or "Standard")
    if divisor is None:
        raise ValidationError(f"Unknown account tier: {tier}")
    return instrument.base_value_per_pip / divisor
