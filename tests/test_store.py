"""Tests for the trade store: upsert, filters and sorting."""

from datetime import date, datetime, time
from decimal import Decimal

import pytest

from journal.engine.records import CLOSED
from journal.engine.store import TradeFilter, TradeStore, sort_trades
from journal.errors import ValidationError


def test_upsert_is_idempotent(make_trade):
    trade = make_trade()
    once = TradeStore().upsert(trade)
    twice = once.upsert(trade)
    assert once == twice
    assert len(twice) == 1


def test_upsert_returns_new_store(make_trade):
    empty = TradeStore()
    filled = empty.upsert(make_trade())
    assert len(empty) == 0
    assert "t-1" in filled


def test_delete(make_trade):
    store = TradeStore.from_trades([make_trade("a"), make_trade("b")])
    assert [t.id for t in store.delete("a")] == ["b"]
    assert len(store.delete("missing")) == 2


def test_list_by_account_ignores_other_accounts(make_trade):
    store = TradeStore.from_trades([make_trade("a"), make_trade("b", account_id="acc-2")])
    assert [t.id for t in store.list_by_account("acc-1")] == ["a"]


def test_filters(make_trade):
    store = TradeStore.from_trades([
        make_trade("win", state=CLOSED, pnl_currency=Decimal("50"), exit_date=datetime(2024, 6, 3, 12)),
        make_trade("loss", state=CLOSED, pnl_currency=Decimal("-20"), exit_date=datetime(2024, 6, 3, 12),
                   symbol="XAU/USD", direction="short"),
        make_trade("open", entry_date=date(2024, 6, 10)),
    ])

    def ids(**kwargs):
        return sorted(t.id for t in store.list_by_account("acc-1", TradeFilter(**kwargs)))

    assert ids(state="Active") == ["open"]
    assert ids(pnl_sign="profit") == ["win"]
    assert ids(pnl_sign="loss") == ["loss"]
    assert ids(symbol="xau/usd") == ["loss"]
    assert ids(direction="short") == ["loss"]
    assert ids(date_from=date(2024, 6, 4)) == ["open"]
    assert ids(date_to=date(2024, 6, 3)) == ["loss", "win"]


def test_sort_by_entry_uses_time_and_descends_by_default(make_trade):
    trades = [
        make_trade("early", entry_time=time(8, 0)),
        make_trade("late", entry_time=time(17, 0)),
        make_trade("before", entry_date=date(2024, 6, 2)),
    ]
    assert [t.id for t in sort_trades(trades)] == ["late", "early", "before"]
    assert [t.id for t in sort_trades(trades, descending=False)] == ["before", "early", "late"]


def test_sort_missing_values_last(make_trade):
    trades = [
        make_trade("open"),
        make_trade("small", state=CLOSED, pnl_currency=Decimal("5")),
        make_trade("big", state=CLOSED, pnl_currency=Decimal("90")),
    ]
    assert [t.id for t in sort_trades(trades, "pnl_currency")] == ["big", "small", "open"]
    assert [t.id for t in sort_trades(trades, "pnl_currency", descending=False)] == ["small", "big", "open"]


def test_sort_unknown_key(make_trade):
    with pytest.raises(ValidationError):
        sort_trades([make_trade()], "colour")
