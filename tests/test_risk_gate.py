"""Tests for the risk gate."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from journal.engine.records import CLOSED, INVALID
from journal.engine.store import TradeStore
from journal.errors import (
    DailyActiveExceeded,
    DailyCancelExceeded,
    DailyCountExceeded,
    DailyRiskExceeded,
    PerTradeRiskExceeded,
)
from journal.services import risk_gate

DAY = date(2024, 6, 3)


def test_per_trade_limit(make_trade):
    with pytest.raises(PerTradeRiskExceeded) as exc:
        risk_gate.admit(TradeStore(), make_trade(risk="3.5"))
    assert exc.value.limit == 3.0
    assert exc.value.actual == 3.5
    assert exc.value.date == DAY


def test_per_trade_limit_is_inclusive(make_trade):
    risk_gate.admit(TradeStore(), make_trade(risk="3"))


def test_third_trade_over_daily_risk(make_trade):
    store = TradeStore()
    for trade_id, risk in (("a", "2.0"), ("b", "2.0")):
        trade = make_trade(trade_id, risk=risk)
        risk_gate.admit(store, trade)
        store = store.upsert(trade)

    with pytest.raises(DailyRiskExceeded) as exc:
        risk_gate.admit(store, make_trade("c", risk="1.5"))
    assert exc.value.limit == 5.0
    assert exc.value.actual == 5.5
    assert "2024-06-03" in exc.value.message
    assert len(store) == 2


def test_daily_count(make_trade):
    store = TradeStore.from_trades([
        make_trade("a", risk="1", state=CLOSED),
        make_trade("b", risk="1", state=CLOSED),
        make_trade("c", risk="1", state=CLOSED),
    ])
    with pytest.raises(DailyCountExceeded):
        risk_gate.admit(store, make_trade("d", risk="1"))


def test_daily_active(make_trade):
    store = TradeStore.from_trades([make_trade("a", risk="1"), make_trade("b", risk="1")])
    with pytest.raises(DailyActiveExceeded):
        risk_gate.admit(store, make_trade("c", risk="1"))


def test_other_days_do_not_count(make_trade):
    store = TradeStore.from_trades([
        make_trade("a", risk="3", entry_date=date(2024, 6, 2)),
        make_trade("b", risk="3", entry_date=date(2024, 6, 4)),
    ])
    risk_gate.admit(store, make_trade("c", risk="3"))


def test_edit_excludes_itself(make_trade):
    store = TradeStore.from_trades([make_trade("a", risk="2.5"), make_trade("b", risk="1")])
    risk_gate.admit(store, make_trade("b", risk="2.5"))
    with pytest.raises(DailyRiskExceeded):
        risk_gate.admit(store, make_trade("b", risk="2.6"))


def test_daily_risk_used(make_trade):
    store = TradeStore.from_trades([make_trade("a", risk="1.25"), make_trade("b", risk="2")])
    assert risk_gate.daily_risk_used(store, DAY) == Decimal("3.25")
    assert risk_gate.daily_risk_used(store, DAY, exclude_id="a") == Decimal("2")


def test_one_cancellation_per_day(make_trade):
    cancelled = make_trade("a", state=CLOSED, status=INVALID)
    store = TradeStore.from_trades([cancelled, make_trade("b")])
    risk_gate.admit_cancellation(TradeStore.from_trades([make_trade("b")]), replace(make_trade("b"), status=INVALID))
    with pytest.raises(DailyCancelExceeded):
        risk_gate.admit_cancellation(store, replace(make_trade("b"), state=CLOSED, status=INVALID))
