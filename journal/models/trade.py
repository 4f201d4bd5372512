"""Trade row — a planned, active or closed trade in one account."""

from datetime import date, datetime, timezone
from sqlmodel import SQLModel, Field


class TradeRow(SQLModel, table=True):
    __tablename__ = "trade"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    account_id: str = Field(foreign_key="account.id", index=True)

    # Plan
    pair: str
    type: str  # "long" | "short"
    entry_date: date = Field(index=True)
    trade_time: str | None = None  # HH:MM:SS
    entry_price: float
    sl: float
    tp: float
    risk: float
    lot_size: float
    value_per_pip: float
    ratio: float | None = None
    beforeimage: str | None = None
    session: str | None = None
    strategy: str | None = None

    # Lifecycle
    state: str = "Active"  # "Active" | "Closed"
    status: str = "Valid"  # "Valid" | "Invalid"

    # Close
    exit_date: datetime | None = None
    exit_price: float | None = None
    points: int | None = None
    pnl_currency: float | None = None
    pnl_percent: float | None = None
    afterimage: str | None = None
    note: str | None = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    revision: int = 0
