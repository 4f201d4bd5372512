"""Database models."""

from journal.models.account import AccountRow
from journal.models.trade import TradeRow
from journal.models.ledger import TransactionRow
from journal.models.user import User

__all__ = [
    "AccountRow",
    "TradeRow",
    "TransactionRow",
    "User",
]
