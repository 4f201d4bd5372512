"""Shared fixtures: records, stores and an in-memory SQLite engine."""

from dataclasses import replace
from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from journal.database import create_db_and_tables
from journal.engine.records import ACTIVE, VALID, Account, Identity, Trade
from journal.engine.state import EngineState
from journal.engine.store import TradeStore
from journal.services import accounts


def _account(capital="10000", profit="0", **overrides) -> Account:
    account = accounts.create_account(
        "alice", overrides.pop("name", "Main"), account_id=overrides.pop("id", "acc-1"), **overrides
    )
    return accounts.recompute_equity(replace(account, capital=Decimal(capital), profit=Decimal(profit)))


def _trade(
    trade_id="t-1",
    entry_date=date(2024, 6, 3),
    risk="1",
    state=ACTIVE,
    symbol="EUR/USD",
    direction="long",
    **overrides,
) -> Trade:
    fields = dict(
        id=trade_id,
        user_id="alice",
        account_id="acc-1",
        symbol=symbol,
        direction=direction,
        entry_date=entry_date,
        entry_time=time(9, 30),
        entry_price=Decimal("1.10000"),
        stop_loss=Decimal("1.09500"),
        take_profit=Decimal("1.11000"),
        risk_percent=Decimal(risk),
        lot_size=Decimal("0.10"),
        value_per_pip=Decimal("10"),
        state=state,
        status=VALID,
    )
    fields.update(overrides)
    return Trade(**fields)


@pytest.fixture
def identity():
    return Identity(user_id="alice", account_id="acc-1")


@pytest.fixture
def account():
    return _account()


@pytest.fixture
def state(account):
    return EngineState(account=account, trades=TradeStore())


@pytest.fixture
def sql_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def make_account():
    return _account


@pytest.fixture
def make_trade():
    return _trade
