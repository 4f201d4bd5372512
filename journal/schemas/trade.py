"""Pydantic schemas for Trade API."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class TradeCreate(BaseModel):
    symbol: str = Field(min_length=1, max_length=16)
    direction: Literal["long", "short"]
    entry_date: date
    entry_time: time | None = None
    entry_price: Decimal = Field(gt=0)
    stop_loss: Decimal = Field(gt=0)
    take_profit: Decimal = Field(gt=0)
    risk_percent: Decimal = Field(gt=0)
    before_image: str | None = Field(default=None, max_length=2048)
    session: str | None = Field(default=None, max_length=64)
    strategy: str | None = Field(default=None, max_length=120)

    @field_validator("direction", mode="before")
    @classmethod
    def _lower_direction(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        text = value.strip().upper()
        if not text:
            raise ValueError("must not be empty")
        return text


class TradeClose(BaseModel):
    exit_date: datetime
    exit_price: Decimal = Field(gt=0)
    manual_pnl: Decimal | None = None  # absent or 0 means use the computed P&L
    after_image: str | None = Field(default=None, max_length=2048)
    note: str | None = Field(default=None, max_length=4000)
    status: Literal["Valid", "Invalid"] = "Valid"


class TradeUpdate(BaseModel):
    """Partial edit. Plan fields apply to Active trades, exit fields to Closed ones."""

    # Active
    symbol: str | None = Field(default=None, min_length=1, max_length=16)
    direction: Literal["long", "short"] | None = None
    entry_date: date | None = None
    entry_time: time | None = None
    entry_price: Decimal | None = Field(default=None, gt=0)
    stop_loss: Decimal | None = Field(default=None, gt=0)
    take_profit: Decimal | None = Field(default=None, gt=0)
    risk_percent: Decimal | None = Field(default=None, gt=0)
    before_image: str | None = Field(default=None, max_length=2048)
    session: str | None = Field(default=None, max_length=64)
    strategy: str | None = Field(default=None, max_length=120)

    # Closed
    exit_date: datetime | None = None
    exit_price: Decimal | None = Field(default=None, gt=0)
    manual_pnl: Decimal | None = None
    after_image: str | None = Field(default=None, max_length=2048)
    note: str | None = Field(default=None, max_length=4000)
    status: Literal["Valid", "Invalid"] | None = None


class TradeRead(BaseModel):
    id: str
    user_id: str
    account_id: str
    pair: str
    type: str
    entry_date: date
    trade_time: str | None
    entry_price: float
    sl: float
    tp: float
    risk: float
    lot_size: float
    value_per_pip: float
    state: str
    status: str
    ratio: float | None
    beforeimage: str | None
    afterimage: str | None
    exit_date: datetime | None
    exit_price: float | None
    points: int | None
    pnl_currency: float | None
    pnl_percent: float | None
    session: str | None
    strategy: str | None
    note: str | None
    created_at: datetime
    updated_at: datetime
    revision: int


class SizingRequest(BaseModel):
    symbol: str = Field(min_length=1, max_length=16)
    entry_price: Decimal = Field(gt=0)
    stop_loss: Decimal = Field(gt=0)
    take_profit: Decimal = Field(gt=0)
    risk_percent: Decimal = Field(gt=0)


class SizingRead(BaseModel):
    stop_points: int
    tp_points: int
    ratio: float | None
    adjusted_value_per_pip: float
    lot_size: float
    estimated_risk_currency: float
    estimated_profit_currency: float
    estimated_risk_percent: float
    estimated_profit_percent: float
