"""Pydantic schemas for Account API."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from journal.config import settings


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    plan: Literal["Normal", "Challenge"] = "Normal"
    tier: Literal["Standard", "Mini", "Micro"] = "Standard"
    currency: str = Field(default=settings.default_currency, min_length=3, max_length=3)
    deposit_enabled: bool = True
    withdrawal_enabled: bool = True
    target: Decimal | None = Field(default=None, gt=0, le=1000)

    @field_validator("name")
    @classmethod
    def _trim_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _validate_target(self):
        if self.plan == "Challenge" and self.target is None:
            raise ValueError("Challenge accounts need a target percentage")
        if self.plan != "Challenge" and self.target is not None:
            raise ValueError("only Challenge accounts carry a target")
        return self


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    plan: Literal["Normal", "Challenge"] | None = None
    tier: Literal["Standard", "Mini", "Micro"] | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    deposit_enabled: bool | None = None
    withdrawal_enabled: bool | None = None
    target: Decimal | None = Field(default=None, gt=0, le=1000)


class AccountRead(BaseModel):
    id: str
    user_id: str
    account_name: str
    account_plan: str
    account_type: str
    currency: str
    capital: float
    profit: float
    equity: float
    deposit_enabled: bool
    withdrawal_enabled: bool
    target: float | None
    created_at: datetime
    updated_at: datetime


class DepositRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Decimal = Field(gt=0)
    on: date | None = Field(default=None, alias="date")
    description: str = Field(default="", max_length=500)


class WithdrawRequest(DepositRequest):
    confirm_from_capital: bool = False  # allow the part not covered by profit to come out of capital


class TransactionRead(BaseModel):
    id: str
    account_id: str
    user_id: str
    type: str
    amount: float
    date: date
    description: str
    from_capital: float
    created_at: datetime
