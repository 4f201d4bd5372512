"""Risk Gate: admission control for new, edited and cancelled trades.

Read-only against the store. Limits apply per account and per calendar entry
date and are checked in a fixed order; the first violation wins.
"""

import logging
from datetime import date
from decimal import Decimal

from journal.engine.records import ACTIVE, CLOSED, INVALID, Trade
from journal.engine.store import TradeStore
from journal.errors import (
    DailyActiveExceeded,
    DailyCancelExceeded,
    DailyCountExceeded,
    DailyRiskExceeded,
    PerTradeRiskExceeded,
)
from journal.utils.constants import (
    DAILY_RISK_LIMIT_PERCENT,
    MAX_ACTIVE_TRADES_PER_DAY,
    MAX_CANCEL_TRADES_PER_DAY,
    MAX_TRADES_PER_DAY,
    PER_TRADE_RISK_LIMIT_PERCENT,
)

logger = logging.getLogger(__name__)


def _reject(error):
    logger.warning(f"[risk_gate] {error.code}: {error.message}")
    raise error


def daily_risk_used(store: TradeStore, entry_date: date, exclude_id: str | None = None) -> Decimal:
    """Sum of planned risk percents over every trade entered on the date."""
    return sum((t.risk_percent for t in store.on_date(entry_date, exclude_id)), Decimal("0"))


def admit(store: TradeStore, candidate: Trade):
    """Raise a PolicyViolation if the candidate may not be stored.

    An existing trade with the candidate's id (an edit) is left out of the counts.
    """
    day = candidate.entry_date
    others = store.on_date(day, exclude_id=candidate.id)

    risk = candidate.risk_percent
    if risk > Decimal(str(PER_TRADE_RISK_LIMIT_PERCENT)):
        _reject(PerTradeRiskExceeded(
            f"Per-trade risk limit of {PER_TRADE_RISK_LIMIT_PERCENT}% exceeded ({risk}%)",
            date=day, limit=PER_TRADE_RISK_LIMIT_PERCENT, actual=float(risk),
        ))

    total_risk = sum((t.risk_percent for t in others), Decimal("0")) + risk
    if total_risk > Decimal(str(DAILY_RISK_LIMIT_PERCENT)):
        _reject(DailyRiskExceeded(
            f"Daily risk limit of {DAILY_RISK_LIMIT_PERCENT:g}% exceeded for {day.isoformat()}",
            date=day, limit=DAILY_RISK_LIMIT_PERCENT, actual=float(total_risk),
        ))

    count = len(others) + 1
    if count > MAX_TRADES_PER_DAY:
        _reject(DailyCountExceeded(
            f"Daily limit of {MAX_TRADES_PER_DAY} trades exceeded for {day.isoformat()}",
            date=day, limit=MAX_TRADES_PER_DAY, actual=count,
        ))

    if candidate.state == ACTIVE:
        active = sum(1 for t in others if t.state == ACTIVE) + 1
        if active > MAX_ACTIVE_TRADES_PER_DAY:
            _reject(DailyActiveExceeded(
                f"Daily limit of {MAX_ACTIVE_TRADES_PER_DAY} active trades exceeded for {day.isoformat()}",
                date=day, limit=MAX_ACTIVE_TRADES_PER_DAY, actual=active,
            ))


def admit_cancellation(store: TradeStore, trade: Trade):
    """Raise DailyCancelExceeded if closing this trade as Invalid breaks the daily cancel cap."""
    day = trade.entry_date
    cancelled = sum(
        1 for t in store.on_date(day, exclude_id=trade.id)
        if t.state == CLOSED and t.status == INVALID
    ) + 1
    if cancelled > MAX_CANCEL_TRADES_PER_DAY:
        _reject(DailyCancelExceeded(
            f"Daily limit of {MAX_CANCEL_TRADES_PER_DAY} cancelled trade exceeded for {day.isoformat()}",
            date=day, limit=MAX_CANCEL_TRADES_PER_DAY, actual=cancelled,
        ))
