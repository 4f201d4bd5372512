"""Persistence Port and its SQLModel adapter.

The engine talks to storage only through ``PersistencePort``. The SQL adapter
runs every call in a worker thread under a timeout; transport errors and
timeouts surface as ``PersistenceFailure`` with a neutral message, the detail
goes to the log.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from journal.engine import codec
from journal.engine.commands import (
    AccountRemoved,
    AccountSaved,
    TradeRemoved,
    TradeSaved,
    TradesReplaced,
    TransactionRecorded,
    TransactionRemoved,
    TransactionsReplaced,
)
from journal.engine.records import Account, Trade, Transaction
from journal.errors import (
    ConflictingEdit,
    NotFound,
    PersistenceFailure,
    PersistenceTimeout,
    ValidationError,
)
from journal.models import AccountRow, TradeRow, TransactionRow

logger = logging.getLogger(__name__)


class PersistencePort(ABC):
    """Storage contract of the engine. Lists of trades come back ordered by entry date."""

    @abstractmethod
    async def load_account(self, account_id: str) -> Account: ...

    @abstractmethod
    async def save_account(self, account: Account) -> None: ...

    @abstractmethod
    async def list_accounts(self, user_id: str) -> list[Account]: ...

    @abstractmethod
    async def delete_account(self, account_id: str) -> None: ...

    @abstractmethod
    async def load_trades(self, account_id: str) -> list[Trade]: ...

    @abstractmethod
    async def upsert_trade(self, trade: Trade) -> None: ...

    @abstractmethod
    async def delete_trade(self, trade_id: str) -> None: ...

    @abstractmethod
    async def replace_trades(self, account_id: str, trades: Iterable[Trade]) -> None: ...

    @abstractmethod
    async def list_transactions(self, account_id: str) -> list[Transaction]: ...

    @abstractmethod
    async def insert_transaction(self, transaction: Transaction) -> None: ...

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None: ...

    @abstractmethod
    async def apply(self, events: list) -> None:
        """Write all events of one command atomically."""


class SqlPersistence(PersistencePort):
    def __init__(self, engine, timeout: float | None = None):
        from journal.config import settings

        self.engine = engine
        self.timeout = timeout if timeout is not None else settings.persistence_timeout_seconds

    async def _run(self, operation: str, fn: Callable, *args):
        # The worker thread cannot be interrupted, so it is shielded and always
        # awaited to the end: a caller never returns while its write is in flight.
        work = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        try:
            return await asyncio.wait_for(asyncio.shield(work), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"[persistence] {operation} timed out after {self.timeout}s, waiting for it to settle")
            await self._settle(operation, work)
            raise PersistenceTimeout(f"Storage did not respond in time ({operation})")
        except asyncio.CancelledError:
            await self._settle(operation, work)
            raise
        except (NotFound, ConflictingEdit):
            raise
        except ValidationError as e:
            logger.error(f"[persistence] {operation} read a malformed record: {e.message}")
            raise PersistenceFailure(f"Stored data does not match the expected schema ({operation})")
        except (SQLAlchemyError, OSError, ValueError) as e:
            logger.error(f"[persistence] {operation} failed: {e}")
            raise PersistenceFailure(f"Storage operation failed ({operation})")

    @staticmethod
    async def _settle(operation: str, work: asyncio.Future):
        await asyncio.wait([work])
        if work.cancelled():
            return
        error = work.exception()
        if error is None:
            logger.warning(f"[persistence] {operation} completed after its caller gave up")
        else:
            logger.error(f"[persistence] {operation} failed after its caller gave up: {error}")

    # -- sync helpers, always called inside a Session --------------------------

    @staticmethod
    def _check_account(existing, account_id: str, label: str):
        # ids are global; a row never moves between accounts
        if existing is not None and existing.account_id != account_id:
            raise ConflictingEdit(f"{label} belongs to another account")

    @staticmethod
    def _put_account(session: Session, account: Account):
        session.merge(AccountRow.model_validate(codec.account_to_row(account)))

    @classmethod
    def _put_trade(cls, session: Session, trade: Trade):
        existing = session.get(TradeRow, trade.id)
        cls._check_account(existing, trade.account_id, f"Trade {trade.id}")
        if existing is not None and existing.revision > trade.revision:
            raise ConflictingEdit(
                f"Trade {trade.id} was changed elsewhere (revision {existing.revision} > {trade.revision})"
            )
        session.merge(TradeRow.model_validate(codec.trade_to_row(trade)))

    @classmethod
    def _put_transaction(cls, session: Session, tx: Transaction):
        cls._check_account(session.get(TransactionRow, tx.id), tx.account_id, f"Transaction {tx.id}")
        session.merge(TransactionRow.model_validate(codec.transaction_to_row(tx)))

    @staticmethod
    def _remove(session: Session, model, key: str):
        row = session.get(model, key)
        if row is not None:
            session.delete(row)

    def _apply_event(self, session: Session, event):
        if isinstance(event, AccountSaved):
            self._put_account(session, event.account)
        elif isinstance(event, TradeSaved):
            self._put_trade(session, event.trade)
        elif isinstance(event, TradeRemoved):
            self._remove(session, TradeRow, event.trade_id)
        elif isinstance(event, TransactionRecorded):
            self._put_transaction(session, event.transaction)
        elif isinstance(event, TransactionRemoved):
            self._remove(session, TransactionRow, event.transaction_id)
        elif isinstance(event, TradesReplaced):
            session.execute(delete(TradeRow).where(TradeRow.account_id == event.account_id))
            session.flush()
            for trade in event.trades:
                self._put_trade(session, trade)
        elif isinstance(event, TransactionsReplaced):
            session.execute(delete(TransactionRow).where(TransactionRow.account_id == event.account_id))
            session.flush()
            for tx in event.transactions:
                self._put_transaction(session, tx)
        elif isinstance(event, AccountRemoved):
            session.execute(delete(TradeRow).where(TradeRow.account_id == event.account_id))
            session.execute(delete(TransactionRow).where(TransactionRow.account_id == event.account_id))
            self._remove(session, AccountRow, event.account_id)
        else:
            raise TypeError(f"Unknown event: {type(event).__name__}")

    def _write(self, events: list):
        with Session(self.engine) as session:
            for event in events:
                self._apply_event(session, event)
            session.commit()

    def _load_account(self, account_id: str) -> Account:
        with Session(self.engine) as session:
            row = session.get(AccountRow, account_id)
            if row is None:
                raise NotFound(f"Account {account_id} not found")
            return codec.account_from_row(row.model_dump())

    def _list_accounts(self, user_id: str) -> list[Account]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(AccountRow).where(AccountRow.user_id == user_id).order_by(AccountRow.created_at)
            ).all()
            return [codec.account_from_row(r.model_dump()) for r in rows]

    def _load_trades(self, account_id: str) -> list[Trade]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(TradeRow)
                .where(TradeRow.account_id == account_id)
                .order_by(TradeRow.entry_date, TradeRow.trade_time, TradeRow.created_at)
            ).all()
            return [codec.trade_from_row(r.model_dump()) for r in rows]

    def _list_transactions(self, account_id: str) -> list[Transaction]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(TransactionRow)
                .where(TransactionRow.account_id == account_id)
                .order_by(TransactionRow.date, TransactionRow.created_at)
            ).all()
            return [codec.transaction_from_row(r.model_dump()) for r in rows]

    # -- port ----------------------------------------------------------------

    async def load_account(self, account_id: str) -> Account:
        return await self._run("load_account", self._load_account, account_id)

    async def save_account(self, account: Account) -> None:
        await self.apply([AccountSaved(account)])

    async def list_accounts(self, user_id: str) -> list[Account]:
        return await self._run("list_accounts", self._list_accounts, user_id)

    async def delete_account(self, account_id: str) -> None:
        await self.apply([AccountRemoved(account_id)])

    async def load_trades(self, account_id: str) -> list[Trade]:
        return await self._run("load_trades", self._load_trades, account_id)

    async def upsert_trade(self, trade: Trade) -> None:
        await self.apply([TradeSaved(trade)])

    async def delete_trade(self, trade_id: str) -> None:
        await self.apply([TradeRemoved(trade_id)])

    async def replace_trades(self, account_id: str, trades: Iterable[Trade]) -> None:
        await self.apply([TradesReplaced(account_id, tuple(trades))])

    async def list_transactions(self, account_id: str) -> list[Transaction]:
        return await self._run("list_transactions", self._list_transactions, account_id)

    async def insert_transaction(self, transaction: Transaction) -> None:
        await self.apply([TransactionRecorded(transaction)])

    async def delete_transaction(self, transaction_id: str) -> None:
        await self.apply([TransactionRemoved(transaction_id)])

    async def apply(self, events: list) -> None:
        if events:
            await self._run("apply", self._write, list(events))
