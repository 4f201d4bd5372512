"""Canonical in-memory records.

Records are frozen dataclasses; commands derive new values with
``dataclasses.replace`` so a previous value stays intact as the
last-known-good snapshot until persistence succeeds. Accounts and trades
reference each other only through opaque id strings.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal

ACTIVE = "Active"
CLOSED = "Closed"
VALID = "Valid"
INVALID = "Invalid"

LONG = "long"
SHORT = "short"

DEPOSIT = "Deposit"
WITHDRAW = "Withdraw"


def utcnow() -> datetime:
    """Naive UTC now. Records hold naive UTC; rows written by the codec carry the offset."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Identity:
    """Acting user and selected account, both opaque tokens."""

    user_id: str
    account_id: str


@dataclass(frozen=True)
class Account:
    id: str
    user_id: str
    name: str
    plan: str = "Normal"  # "Normal" | "Challenge"
    tier: str = "Standard"  # "Standard" | "Mini" | "Micro"
    currency: str = "USD"
    capital: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    equity: Decimal = Decimal("0")
    deposit_enabled: bool = True
    withdrawal_enabled: bool = True
    target: Decimal | None = None  # Challenge only, percent
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Trade:
    id: str
    user_id: str
    account_id: str
    # plan
    symbol: str
    direction: str  # "long" | "short"
    entry_date: date
    entry_time: time | None
    entry_price: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    risk_percent: Decimal
    lot_size: Decimal
    value_per_pip: Decimal
    ratio: Decimal | None = None
    before_image: str | None = None
    session: str | None = None
    strategy: str | None = None
    # lifecycle
    state: str = ACTIVE
    status: str = VALID
    # close
    exit_date: datetime | None = None
    exit_price: Decimal | None = None
    points: int | None = None
    pnl_currency: Decimal | None = None
    pnl_percent: Decimal | None = None
    after_image: str | None = None
    note: str | None = None
    # audit
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    revision: int = 0

    @property
    def is_active(self) -> bool:
        return self.state == ACTIVE

    @property
    def is_closed(self) -> bool:
        return self.state == CLOSED


@dataclass(frozen=True)
class Transaction:
    id: str
    account_id: str
    user_id: str
    kind: str  # "Deposit" | "Withdraw"
    amount: Decimal
    date: date
    description: str = ""
    from_capital: Decimal = Decimal("0")  # withdrawals only: part drawn from capital
    created_at: datetime = field(default_factory=utcnow)
