"""Commands and events.

Every mutation of an account is a command applied as a pure function
``apply_command(state, command, identity) -> (state', events)``. Events are
what the persistence port must write for the new state to become durable; the
runner applies them in one batch and only then adopts ``state'``.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal

from journal.engine.records import CLOSED, VALID, Account, Identity, Trade, Transaction, utcnow
from journal.engine.state import EngineState
from journal.engine.store import TradeStore
from journal.errors import NotFound, ValidationError
from journal.services import accounts, lifecycle
from journal.services.lifecycle import TradePlan
from journal.services.sizing import ZERO


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OpenTrade:
    plan: TradePlan
    trade_id: str | None = None


@dataclass(frozen=True)
class CloseTrade:
    trade_id: str
    exit_date: date | datetime
    exit_price: Decimal
    manual_pnl: Decimal | None = None
    after_image: str | None = None
    note: str | None = None
    status: str = VALID


@dataclass(frozen=True)
class EditTrade:
    """Edit plan fields of an Active trade or exit fields of a Closed one."""

    trade_id: str
    patch: dict = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteTrade:
    trade_id: str


@dataclass(frozen=True)
class Deposit:
    amount: Decimal
    on: date | None = None
    description: str = ""


@dataclass(frozen=True)
class Withdraw:
    amount: Decimal
    on: date | None = None
    description: str = ""
    confirm_from_capital: bool = False


@dataclass(frozen=True)
class DeleteTransaction:
    transaction_id: str


@dataclass(frozen=True)
class UpdateAccount:
    patch: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ImportBackup:
    """Replace the account's trades, ledger and balances with imported ones.

    Records exported from a different account get fresh ids so the source
    account keeps its own rows.
    """

    trades: tuple[Trade, ...]
    transactions: tuple[Transaction, ...]
    capital: Decimal
    profit: Decimal
    source_account_id: str | None = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AccountSaved:
    account: Account


@dataclass(frozen=True)
class AccountRemoved:
    account_id: str


@dataclass(frozen=True)
class TradeSaved:
    trade: Trade


@dataclass(frozen=True)
class TradeRemoved:
    trade_id: str


@dataclass(frozen=True)
class TradesReplaced:
    account_id: str
    trades: tuple[Trade, ...]


@dataclass(frozen=True)
class TransactionRecorded:
    transaction: Transaction


@dataclass(frozen=True)
class TransactionRemoved:
    transaction_id: str


@dataclass(frozen=True)
class TransactionsReplaced:
    account_id: str
    transactions: tuple[Transaction, ...]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _realized(trade: Trade | None) -> Decimal:
    if trade is None or trade.state != CLOSED or trade.pnl_currency is None:
        return ZERO
    return trade.pnl_currency


def _with_trade(state: EngineState, before: Trade | None, after: Trade) -> tuple[EngineState, list]:
    """Store a trade and book any change in realized P&L into the account."""
    events: list = [TradeSaved(after)]
    account = state.account
    delta = _realized(after) - _realized(before)
    if delta:
        account = accounts.apply_realized_pnl(account, delta)
        events.append(AccountSaved(account))
    return replace(state, account=account, trades=state.trades.upsert(after)), events


def _open(state: EngineState, cmd: OpenTrade, identity: Identity):
    trade = lifecycle.open_trade(state.trades, state.account, identity, cmd.plan, cmd.trade_id)
    return _with_trade(state, None, trade)


def _close(state: EngineState, cmd: CloseTrade, identity: Identity):
    before = state.trades.get(cmd.trade_id)
    closed = lifecycle.close_trade(
        state.trades,
        state.account,
        cmd.trade_id,
        cmd.exit_date,
        cmd.exit_price,
        manual_pnl=cmd.manual_pnl,
        after_image=cmd.after_image,
        note=cmd.note,
        status=cmd.status,
    )
    return _with_trade(state, before, closed)


def _edit(state: EngineState, cmd: EditTrade, identity: Identity):
    before = state.trades.get(cmd.trade_id)
    if before is None:
        raise NotFound(f"Trade {cmd.trade_id} not found")
    if before.is_active:
        edited = lifecycle.edit_active(state.trades, state.account, cmd.trade_id, cmd.patch)
    else:
        edited = lifecycle.edit_closed(state.trades, state.account, cmd.trade_id, cmd.patch)
    return _with_trade(state, before, edited)


def _delete(state: EngineState, cmd: DeleteTrade, identity: Identity):
    removed = lifecycle.delete_trade(state.trades, cmd.trade_id)
    events: list = [TradeRemoved(removed.id)]
    account = state.account
    realized = _realized(removed)
    if realized:
        account = accounts.apply_realized_pnl(account, -realized)
        events.append(AccountSaved(account))
    return replace(state, account=account, trades=state.trades.delete(removed.id)), events


def _deposit(state: EngineState, cmd: Deposit, identity: Identity):
    account, tx = accounts.deposit(state.account, cmd.amount, cmd.on, cmd.description)
    new_state = replace(state, account=account, transactions=state.transactions + (tx,))
    return new_state, [AccountSaved(account), TransactionRecorded(tx)]


def _withdraw(state: EngineState, cmd: Withdraw, identity: Identity):
    account, tx = accounts.withdraw(
        state.account,
        cmd.amount,
        cmd.on,
        cmd.description,
        confirm=lambda _from_capital: cmd.confirm_from_capital,
    )
    new_state = replace(state, account=account, transactions=state.transactions + (tx,))
    return new_state, [AccountSaved(account), TransactionRecorded(tx)]


def _delete_transaction(state: EngineState, cmd: DeleteTransaction, identity: Identity):
    tx = state.transaction(cmd.transaction_id)
    if tx is None:
        raise NotFound(f"Transaction {cmd.transaction_id} not found")
    account = accounts.reverse_transaction(state.account, tx)
    remaining = tuple(t for t in state.transactions if t.id != tx.id)
    new_state = replace(state, account=account, transactions=remaining)
    return new_state, [AccountSaved(account), TransactionRemoved(tx.id)]


def _update_account(state: EngineState, cmd: UpdateAccount, identity: Identity):
    account = accounts.update_account(state.account, cmd.patch)
    return replace(state, account=account), [AccountSaved(account)]


def _rekeyed(record, target: Account, fresh_id: bool):
    changes = {"account_id": target.id, "user_id": target.user_id}
    if fresh_id:
        changes["id"] = str(uuid.uuid4())
    return replace(record, **changes)


def _import_backup(state: EngineState, cmd: ImportBackup, identity: Identity):
    ids = [t.id for t in cmd.trades]
    if len(ids) != len(set(ids)):
        raise ValidationError("Backup contains duplicate trade ids")
    target = state.account
    fresh_ids = cmd.source_account_id is not None and cmd.source_account_id != target.id
    trades = tuple(_rekeyed(t, target, fresh_ids) for t in cmd.trades)
    transactions = tuple(_rekeyed(tx, target, fresh_ids) for tx in cmd.transactions)
    account = accounts.recompute_equity(
        replace(target, capital=cmd.capital, profit=cmd.profit, updated_at=utcnow())
    )
    new_state = EngineState(
        account=account,
        trades=TradeStore.from_trades(trades),
        transactions=transactions,
    )
    events = [
        TradesReplaced(target.id, trades),
        TransactionsReplaced(target.id, transactions),
        AccountSaved(account),
    ]
    return new_state, events


_HANDLERS = {
    OpenTrade: _open,
    CloseTrade: _close,
    EditTrade: _edit,
    DeleteTrade: _delete,
    Deposit: _deposit,
    Withdraw: _withdraw,
    DeleteTransaction: _delete_transaction,
    UpdateAccount: _update_account,
    ImportBackup: _import_backup,
}


def apply_command(state: EngineState, command, identity: Identity) -> tuple[EngineState, list]:
    """Apply one command; raises a JournalError without touching ``state`` on rejection."""
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown command: {type(command).__name__}")
    return handler(state, command, identity)
