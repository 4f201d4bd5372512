"""Ledger row — deposits and withdrawals against an account."""

from datetime import date, datetime, timezone
from sqlmodel import SQLModel, Field


class TransactionRow(SQLModel, table=True):
    __tablename__ = "ledger_transaction"

    id: str = Field(primary_key=True)
    account_id: str = Field(foreign_key="account.id", index=True)
    user_id: str = Field(index=True)
    type: str  # "Deposit" | "Withdraw"
    amount: float
    date: date
    description: str = ""
    from_capital: float = 0.0  # part of a withdrawal drawn from capital
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
