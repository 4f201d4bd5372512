"""Account state: capital, realized profit, equity and the deposit/withdraw ledger.

Pure functions over Account records. Capital only grows through deposits;
withdrawals draw from realized profit first and, with the caller's
confirmation, from capital for the remainder.
"""

import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Callable

from journal.engine.records import DEPOSIT, WITHDRAW, Account, Transaction, utcnow
from journal.errors import (
    ConfirmationRequired,
    DepositDisabled,
    InsufficientFunds,
    ValidationError,
    WithdrawDisabled,
)
from journal.services.sizing import round2, to_decimal
from journal.utils.constants import ACCOUNT_PLANS, TIER_DIVISORS

ZERO = Decimal("0")

# Called with the amount that would come out of capital; True to proceed.
ConfirmCallback = Callable[[Decimal], bool]

_EDITABLE_FIELDS = {
    "name", "plan", "tier", "currency", "deposit_enabled", "withdrawal_enabled", "target",
}


def _validate_plan(plan: str, tier: str, target: Decimal | None):
    if plan not in ACCOUNT_PLANS:
        raise ValidationError(f"Unknown account plan: {plan}")
    if tier not in TIER_DIVISORS:
        raise ValidationError(f"Unknown account tier: {tier}")
    if plan == "Challenge":
        if target is None or target <= 0:
            raise ValidationError("Challenge accounts need a positive target percentage")
    elif target is not None:
        raise ValidationError("Only Challenge accounts carry a target percentage")


def _positive_amount(amount) -> Decimal:
    value = to_decimal(amount)
    if value is None or value <= 0:
        raise ValidationError(f"Amount must be a positive number, got {amount!r}")
    return round2(value)


def recompute_equity(account: Account) -> Account:
    return replace(account, equity=account.capital + account.profit)


def create_account(
    user_id: str,
    name: str,
    plan: str = "Normal",
    tier: str = "Standard",
    currency: str = "USD",
    deposit_enabled: bool = True,
    withdrawal_enabled: bool = True,
    target=None,
    account_id: str | None = None,
) -> Account:
    """New account with zero capital, profit and equity."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Account name must not be empty")
    target_d = to_decimal(target) if target is not None else None
    if target is not None and target_d is None:
        raise ValidationError(f"Invalid target percentage: {target!r}")
    _validate_plan(plan, tier, target_d)
    now = utcnow()
    return Account(
        id=account_id or str(uuid.uuid4()),
        user_id=user_id,
        name=name,
        plan=plan,
        tier=tier,
        currency=(currency or "USD").strip().upper(),
        capital=ZERO,
        profit=ZERO,
        equity=ZERO,
        deposit_enabled=deposit_enabled,
        # Challenge accounts never allow withdrawals
        withdrawal_enabled=withdrawal_enabled and plan != "Challenge",
        target=target_d,
        created_at=now,
        updated_at=now,
    )


def update_account(account: Account, patch: dict) -> Account:
    """Apply editable fields; balances are only changed through the ledger and closed trades."""
    unknown = set(patch) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
    changes = dict(patch)
    if "name" in changes:
        changes["name"] = (changes["name"] or "").strip()
        if not changes["name"]:
            raise ValidationError("Account name must not be empty")
    if "currency" in changes:
        changes["currency"] = (changes["currency"] or "").strip().upper()
    if "target" in changes and changes["target"] is not None:
        target = to_decimal(changes["target"])
        if target is None:
            raise ValidationError(f"Invalid target percentage: {changes['target']!r}")
        changes["target"] = target
    updated = replace(account, **changes)
    if updated.plan != "Challenge" and "target" not in patch:
        updated = replace(updated, target=None)
    _validate_plan(updated.plan, updated.tier, updated.target)
    if updated.plan == "Challenge":
        updated = replace(updated, withdrawal_enabled=False)
    return replace(updated, updated_at=utcnow())


def apply_realized_pnl(account: Account, delta: Decimal) -> Account:
    """Book realized trade P&L (or its correction) into profit."""
    if not delta:
        return account
    return recompute_equity(replace(account, profit=account.profit + delta, updated_at=utcnow()))


def deposit(
    account: Account,
    amount,
    on: date | None = None,
    description: str = "",
    transaction_id: str | None = None,
) -> tuple[Account, Transaction]:
    if not account.deposit_enabled:
        raise DepositDisabled(f"Deposits are disabled for account {account.name}")
    value = _positive_amount(amount)
    tx = Transaction(
        id=transaction_id or str(uuid.uuid4()),
        account_id=account.id,
        user_id=account.user_id,
        kind=DEPOSIT,
        amount=value,
        date=on or utcnow().date(),
        description=description or "",
    )
    updated = replace(account, capital=account.capital + value, updated_at=utcnow())
    return recompute_equity(updated), tx


def withdraw(
    account: Account,
    amount,
    on: date | None = None,
    description: str = "",
    confirm: ConfirmCallback | None = None,
    transaction_id: str | None = None,
) -> tuple[Account, Transaction]:
    """Withdraw from profit first, then (confirmed) from capital.

    When the amount exceeds profit, profit is settled to zero and the
    remainder ``amount - profit`` comes out of capital. A negative profit
    therefore raises the remainder: the loss is absorbed into capital.
    """
    if not account.withdrawal_enabled:
        raise WithdrawDisabled(f"Withdrawals are disabled for account {account.name}")
    value = _positive_amount(amount)

    profit, capital = account.profit, account.capital
    if value <= profit:
        profit -= value
        from_capital = ZERO
    else:
        from_capital = value - profit
        if from_capital > capital:
            raise InsufficientFunds(
                f"Cannot withdraw {value}: profit {profit} + capital {capital} is not enough",
                limit=float(profit + capital), actual=float(value),
            )
        if confirm is None or not confirm(from_capital):
            raise ConfirmationRequired(
                f"Withdrawal of {value} draws {from_capital} from capital and needs confirmation",
                actual=float(from_capital),
            )
        profit = ZERO
        capital -= from_capital

    tx = Transaction(
        id=transaction_id or str(uuid.uuid4()),
        account_id=account.id,
        user_id=account.user_id,
        kind=WITHDRAW,
        amount=value,
        date=on or utcnow().date(),
        description=description or "",
        from_capital=from_capital,
    )
    updated = replace(account, capital=capital, profit=profit, updated_at=utcnow())
    return recompute_equity(updated), tx


def reverse_transaction(account: Account, tx: Transaction) -> Account:
    """Undo a ledger entry's effect on the account snapshot."""
    if tx.kind == DEPOSIT:
        if tx.amount > account.capital:
            raise InsufficientFunds(
                f"Cannot remove deposit of {tx.amount}: capital is only {account.capital}",
                limit=float(account.capital), actual=float(tx.amount),
            )
        updated = replace(account, capital=account.capital - tx.amount)
    else:
        # amount - from_capital is the profit settled; negative when a loss was absorbed
        updated = replace(
            account,
            capital=account.capital + tx.from_capital,
            profit=account.profit + (tx.amount - tx.from_capital),
        )
    return recompute_equity(replace(updated, updated_at=utcnow()))
