"""Stateless position sizing for a planned trade.

All functions are pure computation: no I/O, no database access, no market data.

Points are price distances scaled by the instrument's pip multiplier. The lot
size is the planned risk amount divided by the money moved by one lot over the
stop distance:

    lot = (risk% / 100 * capital) / (adjusted_vp * |entry - stop| * multiplier)
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from journal.services.instruments import Instrument, adjusted_value_per_pip

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_int(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_decimal(value) -> Decimal | None:
    """Coerce user input to a finite Decimal; None for missing or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    if not result.is_finite():
        return None
    return result


@dataclass(frozen=True)
class SizingResult:
    stop_points: int
    tp_points: int
    ratio: Decimal | None
    adjusted_value_per_pip: Decimal
    lot_size: Decimal
    estimated_risk_currency: Decimal
    estimated_profit_currency: Decimal
    estimated_risk_percent: Decimal
    estimated_profit_percent: Decimal


def risk_reward_ratio(entry, stop, take_profit) -> Decimal | None:
    """|tp - entry| / |entry - stop|, None when the stop distance is zero or inputs are missing."""
    entry, stop, take_profit = to_decimal(entry), to_decimal(stop), to_decimal(take_profit)
    if entry is None or stop is None or take_profit is None:
        return None
    stop_distance = abs(entry - stop)
    if not stop_distance:
        return None
    return abs(take_profit - entry) / stop_distance


def lot_size(risk_percent, capital, value_per_pip, entry, stop, multiplier: int) -> Decimal:
    """Lot size rounded to two decimals, 0 whenever an input is missing or degenerate."""
    risk_percent = to_decimal(risk_percent)
    capital = to_decimal(capital)
    value_per_pip = to_decimal(value_per_pip)
    entry, stop = to_decimal(entry), to_decimal(stop)
    if None in (risk_percent, capital, value_per_pip, entry, stop):
        return round2(ZERO)
    if risk_percent <= 0 or capital <= 0 or value_per_pip <= 0 or multiplier <= 0:
        return round2(ZERO)
    stop_distance = abs(entry - stop)
    if not stop_distance:
        return round2(ZERO)
    risk_amount = risk_percent / 100 * capital
    return round2(risk_amount / (value_per_pip * stop_distance * multiplier))


def compute_sizing(
    instrument: Instrument | None,
    tier: str | None,
    entry,
    stop,
    take_profit,
    risk_percent,
    capital,
) -> SizingResult:
    """Derived fields for a trade plan.

    Direction does not affect sizing: distances are unsigned.
    """
    vp = adjusted_value_per_pip(instrument, tier)
    multiplier = instrument.multiplier if instrument else 0
    entry_d, stop_d, tp_d = to_decimal(entry), to_decimal(stop), to_decimal(take_profit)
    capital_d = to_decimal(capital) or ZERO

    stop_distance = abs(entry_d - stop_d) * multiplier if entry_d is not None and stop_d is not None else ZERO
    tp_distance = abs(tp_d - entry_d) * multiplier if entry_d is not None and tp_d is not None else ZERO

    lots = lot_size(risk_percent, capital_d, vp, entry_d, stop_d, multiplier)
    est_risk = round2(lots * vp * stop_distance)
    est_profit = round2(lots * vp * tp_distance)
    if capital_d > 0:
        risk_pct = round2(est_risk / capital_d * 100)
        profit_pct = round2(est_profit / capital_d * 100)
    else:
        risk_pct = profit_pct = round2(ZERO)

    return SizingResult(
        stop_points=round_int(stop_distance),
        tp_points=round_int(tp_distance),
        ratio=risk_reward_ratio(entry_d, stop_d, tp_d),
        adjusted_value_per_pip=vp,
        lot_size=lots,
        estimated_risk_currency=est_risk,
        estimated_profit_currency=est_profit,
        estimated_risk_percent=risk_pct,
        estimated_profit_percent=profit_pct,
    )
