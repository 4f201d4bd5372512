"""Account row — one trading account owned by a user."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class AccountRow(SQLModel, table=True):
    __tablename__ = "account"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    account_name: str
    account_plan: str = "Normal"  # "Normal" | "Challenge"
    account_type: str = "Standard"  # "Standard" | "Mini" | "Micro"
    currency: str = "USD"

    # Balances
    capital: float = 0.0
    profit: float = 0.0
    equity: float = 0.0

    deposit_enabled: bool = True
    withdrawal_enabled: bool = True
    target: float | None = None  # Challenge target, percent of capital

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
