"""Tests for the JSON backup export and import."""

import json
from datetime import date, datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from journal.engine import backup
from journal.engine.commands import CloseTrade, DeleteTrade, Deposit, OpenTrade
from journal.engine.journal import Journal
from journal.engine.persistence import SqlPersistence
from journal.engine.records import Identity
from journal.errors import ValidationError
from journal.services.lifecycle import TradePlan
from journal.utils.constants import BACKUP_SCHEMA_VERSION

SOURCE = Identity(user_id="alice", account_id="acc-1")
TARGET = Identity(user_id="alice", account_id="acc-2")


@pytest_asyncio.fixture
async def journal(sql_engine, make_account):
    port = SqlPersistence(sql_engine, timeout=5)
    await port.save_account(make_account(capital="10000"))
    await port.save_account(make_account(capital="0", id="acc-2", name="Empty"))
    return Journal(port)


async def _fill(journal: Journal):
    plan = TradePlan(
        symbol="GBP/USD",
        direction="short",
        entry_date=date(2024, 6, 5),
        entry_price=Decimal("1.27000"),
        stop_loss=Decimal("1.27500"),
        take_profit=Decimal("1.26000"),
        risk_percent=Decimal("1"),
    )
    await journal.execute(SOURCE, OpenTrade(plan, trade_id="t-1"))
    await journal.execute(SOURCE, CloseTrade("t-1", datetime(2024, 6, 5, 17), Decimal("1.26500")))
    await journal.execute(SOURCE, Deposit(Decimal("500"), on=date(2024, 6, 6)))
    return await journal.state(SOURCE)


@pytest.mark.asyncio
async def test_export_document_shape(journal):
    state = await _fill(journal)
    document = backup.export_backup(state)
    assert document["schemaVersion"] == BACKUP_SCHEMA_VERSION
    assert document["account"]["account_name"] == "Main"
    assert document["trades"][0]["pair"] == "GBP/USD"
    assert document["trades"][0]["type"] == "short"
    assert document["transactions"][0]["type"] == "Deposit"
    assert document["exportedAt"].endswith("Z")
    # plain JSON, no Decimal or datetime left over
    json.loads(backup.dumps_backup(state))


@pytest.mark.asyncio
async def test_round_trip_into_empty_account(journal):
    source = await _fill(journal)
    text = backup.dumps_backup(source)

    command = backup.import_command(backup.parse_backup(text))
    state = await journal.execute(TARGET, command)

    assert state.account.id == "acc-2"
    assert state.account.name == "Empty"
    assert state.account.capital == source.account.capital
    assert state.account.profit == source.account.profit
    assert state.account.equity == source.account.equity
    [trade] = list(state.trades)
    assert trade.id != "t-1"
    assert trade.account_id == "acc-2"
    assert trade.pnl_currency == source.trades.get("t-1").pnl_currency
    assert [tx.account_id for tx in state.transactions] == ["acc-2"]
    assert state.transactions[0].id != source.transactions[0].id

    # the import is durable
    reloaded = await Journal(journal.port).state(TARGET)
    assert len(reloaded.trades) == 1
    assert reloaded.account.capital == Decimal("10500")

    # and the source account keeps its own rows
    assert [t.id for t in await journal.port.load_trades("acc-1")] == ["t-1"]
    assert len(await journal.port.list_transactions("acc-1")) == 1
    untouched = await Journal(journal.port).state(SOURCE)
    assert untouched.trades.get("t-1") == source.trades.get("t-1")


@pytest.mark.asyncio
async def test_restore_into_same_account_keeps_ids(journal):
    source = await _fill(journal)
    document = backup.export_backup(source)
    await journal.execute(SOURCE, DeleteTrade("t-1"))

    state = await journal.execute(SOURCE, backup.import_command(backup.parse_backup(document)))
    assert state.trades.get("t-1") == source.trades.get("t-1")
    assert [tx.id for tx in state.transactions] == [tx.id for tx in source.transactions]
    assert state.account.profit == source.account.profit


def test_accepts_camel_case_records():
    document = {
        "schemaVersion": 1,
        "account": {"id": "old", "accountName": "Legacy", "capital": 1000, "profit": 25.5},
        "trades": [{
            "id": "x", "pair": "eur/usd", "type": "Long", "entryDate": "2024-01-02",
            "entryPrice": 1.1, "stopLoss": 1.095, "takeProfit": 1.11, "risk": 1,
            "lotSize": 0.02, "valuePerPip": 10, "state": "Closed", "status": "Valid",
            "exitDate": "2024-01-03T10:00:00Z", "exitPrice": 1.105, "pnlCurrency": 100,
        }],
        "transactions": [{"id": "d", "type": "deposit", "amount": 1000, "date": "2024-01-01"}],
    }
    command = backup.import_command(backup.parse_backup(document))
    assert command.capital == Decimal("1000")
    assert command.profit == Decimal("25.5")
    trade = command.trades[0]
    assert trade.symbol == "EUR/USD"
    assert trade.direction == "long"
    assert trade.exit_date == datetime(2024, 1, 3, 10, 0)
    assert command.transactions[0].kind == "Deposit"


@pytest.mark.parametrize("version", [0, BACKUP_SCHEMA_VERSION + 1])
def test_unknown_schema_version_is_refused(version):
    with pytest.raises(ValidationError, match="schemaVersion"):
        backup.parse_backup({"schemaVersion": version, "account": {"id": "a"}})


def test_not_json_is_refused():
    with pytest.raises(ValidationError, match="not valid JSON"):
        backup.parse_backup("{broken")


@pytest.mark.asyncio
async def test_one_bad_record_refuses_whole_import(journal):
    source = await _fill(journal)
    document = backup.export_backup(source)
    document["trades"].append({"pair": "EUR/USD", "entry_date": "2024-06-07"})

    with pytest.raises(ValidationError, match="no id"):
        backup.import_command(backup.parse_backup(document))

    target = await journal.state(TARGET)
    assert len(target.trades) == 0
    assert target.account.capital == Decimal("0")


@pytest.mark.asyncio
async def test_duplicate_trade_ids_are_refused(journal):
    source = await _fill(journal)
    document = backup.export_backup(source)
    document["trades"].append(dict(document["trades"][0]))
    command = backup.import_command(backup.parse_backup(document))
    with pytest.raises(ValidationError, match="duplicate"):
        await journal.execute(TARGET, command)
    assert len((await journal.state(TARGET)).trades) == 0
