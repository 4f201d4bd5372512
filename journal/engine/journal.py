"""Per-account command runner.

At most one command runs per account at a time (one asyncio.Lock per
account). A command is applied to the cached state, its events are written
through the persistence port, and only then does the new state replace the
cached one. Reads never take the lock: they see the state before or after a
command, never a mix.
"""

import asyncio
import logging

from journal.engine.commands import (
    AccountRemoved,
    AccountSaved,
    CloseTrade,
    DeleteTrade,
    DeleteTransaction,
    Deposit,
    EditTrade,
    ImportBackup,
    OpenTrade,
    UpdateAccount,
    Withdraw,
    apply_command,
)
from journal.engine.persistence import PersistencePort
from journal.engine.records import Account, Identity, Trade, Transaction
from journal.engine.state import EngineState
from journal.engine.store import TradeFilter, TradeStore
from journal.errors import JournalError, NotFound, PersistenceFailure, PersistenceTimeout
from journal.services import accounts

logger = logging.getLogger(__name__)


def describe(command) -> str:
    if isinstance(command, OpenTrade):
        plan = command.plan
        return f"Opened {plan.direction} {plan.symbol} on {plan.entry_date} risking {plan.risk_percent}%"
    if isinstance(command, CloseTrade):
        return f"Closed trade {command.trade_id} at {command.exit_price} ({command.status})"
    if isinstance(command, EditTrade):
        return f"Edited trade {command.trade_id}: {', '.join(sorted(command.patch))}"
    if isinstance(command, DeleteTrade):
        return f"Deleted trade {command.trade_id}"
    if isinstance(command, Deposit):
        return f"Deposited {command.amount}"
    if isinstance(command, Withdraw):
        return f"Withdrew {command.amount}"
    if isinstance(command, DeleteTransaction):
        return f"Deleted transaction {command.transaction_id}"
    if isinstance(command, UpdateAccount):
        return f"Updated account: {', '.join(sorted(command.patch))}"
    if isinstance(command, ImportBackup):
        return f"Imported {len(command.trades)} trades, {len(command.transactions)} transactions"
    return type(command).__name__


class Journal:
    """Owns the last-known-good EngineState of every account it has touched."""

    def __init__(self, port: PersistencePort):
        self.port = port
        self._states: dict[str, EngineState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._locks_guard = asyncio.Lock()

    async def _get_lock(self, account_id: str) -> asyncio.Lock:
        async with self._locks_guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[account_id] = lock
            return lock

    async def _load(self, account_id: str) -> EngineState:
        account = await self.port.load_account(account_id)
        trades = await self.port.load_trades(account_id)
        transactions = await self.port.list_transactions(account_id)
        return EngineState(
            account=account,
            trades=TradeStore.from_trades(trades),
            transactions=tuple(transactions),
        )

    @staticmethod
    def _check_owner(state: EngineState, identity: Identity):
        # Someone else's account is indistinguishable from a missing one
        if state.account.user_id != identity.user_id:
            raise NotFound(f"Account {identity.account_id} not found")

    async def state(self, identity: Identity) -> EngineState:
        """Current state of the identity's account, loading it on first use."""
        state = self._states.get(identity.account_id)
        if state is None:
            lock = await self._get_lock(identity.account_id)
            async with lock:
                state = self._states.get(identity.account_id)
                if state is None:
                    state = await self._load(identity.account_id)
                    self._states[identity.account_id] = state
        self._check_owner(state, identity)
        return state

    def forget(self, account_id: str):
        """Drop the cached state; the next access reloads it from storage."""
        self._states.pop(account_id, None)

    async def execute(self, identity: Identity, command) -> EngineState:
        """Run one command for the identity's account and return the new state.

        On rejection nothing changes. On persistence failure the cached state
        stays at the last-known-good snapshot. On timeout or cancellation the
        write may still have committed, so the cache is dropped and the next
        access reloads whatever storage actually holds. The account lock is held
        until the write has settled either way.
        """
        await self.state(identity)
        tag = f"[account {identity.account_id}]"
        lock = await self._get_lock(identity.account_id)
        async with lock:
            previous = self._states.get(identity.account_id)
            if previous is None:
                previous = await self._load(identity.account_id)
            self._check_owner(previous, identity)

            try:
                new_state, events = apply_command(previous, command, identity)
            except JournalError as e:
                logger.warning(f"{tag} {type(command).__name__} rejected: {e.message}")
                raise

            try:
                await self.port.apply(events)
            except asyncio.CancelledError:
                logger.warning(f"{tag} {type(command).__name__} cancelled; state will be reloaded")
                self.forget(identity.account_id)
                raise
            except PersistenceTimeout as e:
                # the write may have landed late; storage decides what is current
                logger.error(f"{tag} {type(command).__name__} outcome unknown, state will be reloaded: {e.message}")
                self.forget(identity.account_id)
                raise
            except JournalError as e:
                logger.error(f"{tag} {type(command).__name__} not persisted, reverted: {e.message}")
                self._states[identity.account_id] = previous
                raise
            except Exception:
                logger.exception(f"{tag} {type(command).__name__} failed while persisting, reverted")
                self._states[identity.account_id] = previous
                raise PersistenceFailure("Storage operation failed")

            self._states[identity.account_id] = new_state
            logger.info(f"{tag} {describe(command)}")
            return new_state

    # -- accounts ------------------------------------------------------------

    async def list_accounts(self, user_id: str) -> list[Account]:
        return await self.port.list_accounts(user_id)

    async def create_account(self, user_id: str, **fields) -> Account:
        account = accounts.create_account(user_id, **fields)
        await self.port.apply([AccountSaved(account)])
        self._states[account.id] = EngineState(account=account)
        logger.info(f"[account {account.id}] Created {account.plan} account '{account.name}'")
        return account

    async def delete_account(self, identity: Identity):
        await self.state(identity)
        lock = await self._get_lock(identity.account_id)
        async with lock:
            await self.port.apply([AccountRemoved(identity.account_id)])
            self.forget(identity.account_id)
        async with self._locks_guard:
            self._locks.pop(identity.account_id, None)
        logger.info(f"[account {identity.account_id}] Deleted account")

    # -- queries -------------------------------------------------------------

    async def trades(
        self,
        identity: Identity,
        filter: TradeFilter | None = None,
        sort: str = "entry_date",
        descending: bool = True,
    ) -> list[Trade]:
        state = await self.state(identity)
        return state.trades.list_by_account(identity.account_id, filter, sort, descending)

    async def trade(self, identity: Identity, trade_id: str) -> Trade:
        state = await self.state(identity)
        trade = state.trades.get(trade_id)
        if trade is None:
            raise NotFound(f"Trade {trade_id} not found")
        return trade

    async def transactions(self, identity: Identity) -> list[Transaction]:
        state = await self.state(identity)
        return sorted(state.transactions, key=lambda tx: (tx.date, tx.created_at), reverse=True)
