"""Tests for the trade lifecycle: open, close, edit, delete."""

from datetime import date, datetime, time, timezone
from decimal import Decimal

import pytest

from journal.engine.records import ACTIVE, CLOSED, INVALID, VALID, Identity
from journal.engine.store import TradeStore
from journal.errors import ConflictingEdit, DailyCancelExceeded, NotFound, ValidationError
from journal.services import lifecycle
from journal.services.lifecycle import TradePlan

IDENTITY = Identity(user_id="alice", account_id="acc-1")


def _plan(**overrides) -> TradePlan:
    fields = dict(
        symbol="eur/usd",
        direction="Long",
        entry_date=date(2024, 6, 3),
        entry_time=time(9, 30),
        entry_price=Decimal("1.10000"),
        stop_loss=Decimal("1.09500"),
        take_profit=Decimal("1.11000"),
        risk_percent=Decimal("1"),
    )
    fields.update(overrides)
    return TradePlan(**fields)


# ---------------------------------------------------------------------------
# Open
# ---------------------------------------------------------------------------

def test_open_trade_sizes_and_labels(account):
    trade = lifecycle.open_trade(TradeStore(), account, IDENTITY, _plan(), trade_id="t-1")
    assert trade.id == "t-1"
    assert trade.symbol == "EUR/USD"
    assert trade.direction == "long"
    assert trade.state == ACTIVE
    assert trade.status == VALID
    assert trade.lot_size == Decimal("0.02")
    assert trade.value_per_pip == Decimal("10")
    assert trade.ratio == Decimal("2")
    assert trade.session == "London"
    assert trade.user_id == "alice"
    assert trade.exit_date is None and trade.exit_price is None and trade.pnl_currency is None


def test_open_trade_keeps_given_session(account):
    trade = lifecycle.open_trade(TradeStore(), account, IDENTITY, _plan(session="new york"))
    assert trade.session == "New-York"


@pytest.mark.parametrize("overrides", [
    {"symbol": "BTC/USD"},
    {"direction": "sideways"},
    {"stop_loss": Decimal("1.10000")},
    {"entry_price": Decimal("-1")},
    {"risk_percent": Decimal("0")},
    {"before_image": "not a url"},
])
def test_open_trade_validation(account, overrides):
    with pytest.raises(ValidationError):
        lifecycle.open_trade(TradeStore(), account, IDENTITY, _plan(**overrides))


# ---------------------------------------------------------------------------
# Close
# ---------------------------------------------------------------------------

def test_close_long_eurusd(account, make_trade):
    store = TradeStore.from_trades([make_trade()])
    closed = lifecycle.close_trade(store, account, "t-1", datetime(2024, 6, 4, 15, 0), "1.10500")
    assert closed.state == CLOSED
    assert closed.points == 500
    assert closed.pnl_currency == Decimal("500.00")
    assert closed.pnl_currency > 0
    assert closed.pnl_percent == Decimal("5.00")
    assert closed.pnl_percent == closed.pnl_currency / account.capital * 100
    assert closed.revision == 1


def test_close_short_loses_when_price_rises(account, make_trade):
    store = TradeStore.from_trades([make_trade(direction="short")])
    closed = lifecycle.close_trade(store, account, "t-1", date(2024, 6, 4), "1.10200")
    assert closed.points == -200
    assert closed.pnl_currency == Decimal("-200.00")
    assert closed.exit_date == datetime(2024, 6, 4)


def test_close_converts_aware_exit_to_naive_utc(account, make_trade):
    store = TradeStore.from_trades([make_trade()])
    exit_at = datetime(2024, 6, 4, 12, 0, tzinfo=timezone.utc)
    closed = lifecycle.close_trade(store, account, "t-1", exit_at, "1.10100")
    assert closed.exit_date == datetime(2024, 6, 4, 12, 0)


def test_close_twice_is_rejected(account, make_trade):
    store = TradeStore.from_trades([make_trade()])
    closed = lifecycle.close_trade(store, account, "t-1", date(2024, 6, 4), "1.10500")
    with pytest.raises(ConflictingEdit):
        lifecycle.close_trade(store.upsert(closed), account, "t-1", date(2024, 6, 4), "1.10500")


def test_close_missing_trade(account):
    with pytest.raises(NotFound):
        lifecycle.close_trade(TradeStore(), account, "nope", date(2024, 6, 4), "1.1")


@pytest.mark.parametrize("manual,expected", [
    (None, Decimal("500.00")),
    (Decimal("0"), Decimal("500.00")),
    (Decimal("-20"), Decimal("-20.00")),
    ("35.555", Decimal("35.56")),
])
def test_manual_pnl_override(account, make_trade, manual, expected):
    store = TradeStore.from_trades([make_trade()])
    closed = lifecycle.close_trade(store, account, "t-1", date(2024, 6, 4), "1.10500", manual_pnl=manual)
    assert closed.pnl_currency == expected
    assert closed.points == 500


def test_second_cancellation_same_day(account, make_trade):
    store = TradeStore.from_trades([make_trade("a"), make_trade("b")])
    first = lifecycle.close_trade(store, account, "a", date(2024, 6, 3), "1.1", status=INVALID)
    store = store.upsert(first)
    with pytest.raises(DailyCancelExceeded):
        lifecycle.close_trade(store, account, "b", date(2024, 6, 3), "1.1", status=INVALID)


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

def _closed_store(account, make_trade):
    store = TradeStore.from_trades([make_trade()])
    return store.upsert(lifecycle.close_trade(store, account, "t-1", date(2024, 6, 4), "1.10500"))


def test_edit_closed_exit_price_recomputes(account, make_trade):
    store = _closed_store(account, make_trade)
    edited = lifecycle.edit_closed(store, account, "t-1", {"exit_price": "1.10300"})
    assert edited.points == 300
    assert edited.pnl_currency == Decimal("300.00")
    assert edited.state == CLOSED
    assert edited.revision == 2


def test_edit_closed_note_keeps_pnl(account, make_trade):
    store = _closed_store(account, make_trade)
    edited = lifecycle.edit_closed(store, account, "t-1", {"note": "  followed plan "})
    assert edited.note == "followed plan"
    assert edited.pnl_currency == Decimal("500.00")


@pytest.mark.parametrize("cleared", [None, 0, "0"])
def test_edit_closed_clearing_manual_pnl_recomputes(account, make_trade, cleared):
    store = TradeStore.from_trades([make_trade()])
    closed = lifecycle.close_trade(store, account, "t-1", date(2024, 6, 4), "1.10500", manual_pnl="250")
    assert closed.pnl_currency == Decimal("250.00")
    store = store.upsert(closed)

    edited = lifecycle.edit_closed(store, account, "t-1", {"manual_pnl": cleared})
    assert edited.points == 500
    assert edited.pnl_currency == Decimal("500.00")
    assert edited.pnl_percent == Decimal("5.00")


def test_edit_closed_rejects_plan_fields(account, make_trade):
    store = _closed_store(account, make_trade)
    with pytest.raises(ValidationError):
        lifecycle.edit_closed(store, account, "t-1", {"risk_percent": "2"})


def test_edit_active_resizes(account, make_trade):
    store = TradeStore.from_trades([make_trade()])
    edited = lifecycle.edit_active(store, account, "t-1", {"risk_percent": Decimal("2")})
    assert edited.risk_percent == Decimal("2")
    assert edited.lot_size == Decimal("0.04")
    assert edited.revision == 1


def test_edit_active_on_closed_trade(account, make_trade):
    store = _closed_store(account, make_trade)
    with pytest.raises(ConflictingEdit):
        lifecycle.edit_active(store, account, "t-1", {"risk_percent": Decimal("2")})


def test_delete_missing_trade():
    with pytest.raises(NotFound):
        lifecycle.delete_trade(TradeStore(), "nope")
