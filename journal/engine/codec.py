"""Wire normalization between canonical records and snake_case rows.

This is the only place that knows the persisted field names. Reads accept
either the snake_case columns or the older camelCase keys; writes always
produce snake_case. Timestamps are naive UTC in records and UTC-aware in rows.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal

from journal.engine.records import ACTIVE, VALID, Account, Trade, Transaction, utcnow
from journal.errors import ValidationError
from journal.services.sizing import to_decimal
from journal.utils.dates import to_naive

# canonical attribute -> (snake_case column, camelCase aliases...)
TRADE_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "user_id": ("user_id", "userId"),
    "account_id": ("account_id", "accountId"),
    "symbol": ("pair", "symbol"),
    "direction": ("type", "direction"),
    "entry_date": ("entry_date", "entryDate"),
    "entry_time": ("trade_time", "tradeTime"),
    "entry_price": ("entry_price", "entryPrice", "price"),
    "stop_loss": ("sl", "stopLoss"),
    "take_profit": ("tp", "takeProfit"),
    "risk_percent": ("risk",),
    "lot_size": ("lot_size", "lotSize"),
    "value_per_pip": ("value_per_pip", "valuePerPip"),
    "state": ("state",),
    "status": ("status",),
    "ratio": ("ratio",),
    "before_image": ("beforeimage", "beforeImage", "before_image"),
    "after_image": ("afterimage", "afterImage", "after_image"),
    "exit_date": ("exit_date", "exitDate"),
    "exit_price": ("exit_price", "exitPrice"),
    "points": ("points",),
    "pnl_currency": ("pnl_currency", "pnlCurrency", "pnlcurrency"),
    "pnl_percent": ("pnl_percent", "pnlPercent", "pnlpercent"),
    "session": ("session",),
    "strategy": ("strategy",),
    "note": ("note",),
    "created_at": ("created_at", "createdAt"),
    "updated_at": ("updated_at", "updatedAt"),
    "revision": ("revision",),
}

ACCOUNT_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "user_id": ("user_id", "userId"),
    "name": ("account_name", "accountName", "name"),
    "plan": ("account_plan", "accountPlan"),
    "tier": ("account_type", "accountType"),
    "currency": ("currency",),
    "capital": ("capital",),
    "profit": ("profit",),
    "equity": ("equity",),
    "deposit_enabled": ("deposit_enabled", "depositEnabled"),
    "withdrawal_enabled": ("withdrawal_enabled", "withdrawalEnabled"),
    "target": ("target",),
    "created_at": ("created_at", "createdAt"),
    "updated_at": ("updated_at", "updatedAt"),
}

TRANSACTION_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "account_id": ("account_id", "accountId"),
    "user_id": ("user_id", "userId"),
    "kind": ("type", "kind"),
    "amount": ("amount",),
    "date": ("date",),
    "description": ("description",),
    "from_capital": ("from_capital", "fromCapital"),
    "created_at": ("created_at", "createdAt"),
}


def _pick(row: dict, names: tuple[str, ...]):
    for name in names:
        if name in row and row[name] is not None:
            return row[name]
    return None


# ---------------------------------------------------------------------------
# Scalar converters
# ---------------------------------------------------------------------------

def _decimal(value, required: bool = False, field: str = "") -> Decimal | None:
    result = to_decimal(value)
    if result is None and required:
        raise ValidationError(f"{field} must be a finite number, got {value!r}")
    return result


def _date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def _datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return to_naive(value)
    text = str(value).replace("Z", "+00:00")
    try:
        return to_naive(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")


def _time(value) -> time | None:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid time: {value!r}")


def _number(value: Decimal | None) -> float | None:
    return None if value is None else float(value)


def _iso(value: date | datetime | None) -> str | None:
    """ISO 8601; timestamps carry an explicit UTC offset on the way out."""
    if value is None:
        return None
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------

def trade_to_row(trade: Trade) -> dict:
    """Snake_case wire shape of a trade; dates as ISO 8601 strings, numbers as floats."""
    return {
        "id": trade.id,
        "user_id": trade.user_id,
        "account_id": trade.account_id,
        "pair": trade.symbol,
        "type": trade.direction,
        "entry_date": _iso(trade.entry_date),
        "trade_time": trade.entry_time.strftime("%H:%M:%S") if trade.entry_time else None,
        "entry_price": _number(trade.entry_price),
        "sl": _number(trade.stop_loss),
        "tp": _number(trade.take_profit),
        "risk": _number(trade.risk_percent),
        "lot_size": _number(trade.lot_size),
        "value_per_pip": _number(trade.value_per_pip),
        "state": trade.state,
        "status": trade.status,
        "ratio": _number(trade.ratio),
        "beforeimage": trade.before_image,
        "afterimage": trade.after_image,
        "exit_date": _iso(trade.exit_date),
        "exit_price": _number(trade.exit_price),
        "points": trade.points,
        "pnl_currency": _number(trade.pnl_currency),
        "pnl_percent": _number(trade.pnl_percent),
        "session": trade.session,
        "strategy": trade.strategy,
        "note": trade.note,
        "created_at": _iso(trade.created_at),
        "updated_at": _iso(trade.updated_at),
        "revision": trade.revision,
    }


def trade_from_row(row: dict) -> Trade:
    """Canonical trade from a snake_case or camelCase row."""
    v = {attr: _pick(row, names) for attr, names in TRADE_FIELDS.items()}
    if not v["id"]:
        raise ValidationError("Trade record has no id")
    entry_date = _date(v["entry_date"])
    if entry_date is None:
        raise ValidationError(f"Trade {v['id']} has no entry date")
    points = v["points"]
    return Trade(
        id=str(v["id"]),
        user_id=str(v["user_id"] or ""),
        account_id=str(v["account_id"] or ""),
        symbol=str(v["symbol"] or "").strip().upper(),
        direction=str(v["direction"] or "").strip().lower(),
        entry_date=entry_date,
        entry_time=_time(v["entry_time"]),
        entry_price=_decimal(v["entry_price"], True, "entry_price"),
        stop_loss=_decimal(v["stop_loss"], True, "sl"),
        take_profit=_decimal(v["take_profit"], True, "tp"),
        risk_percent=_decimal(v["risk_percent"]) or Decimal("0"),
        lot_size=_decimal(v["lot_size"]) or Decimal("0"),
        value_per_pip=_decimal(v["value_per_pip"]) or Decimal("0"),
        ratio=_decimal(v["ratio"]),
        before_image=_text(v["before_image"]),
        session=_text(v["session"]),
        strategy=_text(v["strategy"]),
        state=v["state"] or ACTIVE,
        status=v["status"] or VALID,
        exit_date=_datetime(v["exit_date"]),
        exit_price=_decimal(v["exit_price"]),
        points=None if points is None else int(round(float(points))),
        pnl_currency=_decimal(v["pnl_currency"]),
        pnl_percent=_decimal(v["pnl_percent"]),
        after_image=_text(v["after_image"]),
        note=_text(v["note"]),
        created_at=_datetime(v["created_at"]) or utcnow(),
        updated_at=_datetime(v["updated_at"]) or utcnow(),
        revision=int(v["revision"] or 0),
    )


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

def account_to_row(account: Account) -> dict:
    return {
        "id": account.id,
        "user_id": account.user_id,
        "account_name": account.name,
        "account_plan": account.plan,
        "account_type": account.tier,
        "currency": account.currency,
        "capital": _number(account.capital),
        "profit": _number(account.profit),
        "equity": _number(account.equity),
        "deposit_enabled": account.deposit_enabled,
        "withdrawal_enabled": account.withdrawal_enabled,
        "target": _number(account.target),
        "created_at": _iso(account.created_at),
        "updated_at": _iso(account.updated_at),
    }


def account_from_row(row: dict) -> Account:
    v = {attr: _pick(row, names) for attr, names in ACCOUNT_FIELDS.items()}
    if not v["id"]:
        raise ValidationError("Account record has no id")
    return Account(
        id=str(v["id"]),
        user_id=str(v["user_id"] or ""),
        name=str(v["name"] or ""),
        plan=v["plan"] or "Normal",
        tier=v["tier"] or "Standard",
        currency=v["currency"] or "USD",
        capital=_decimal(v["capital"]) or Decimal("0"),
        profit=_decimal(v["profit"]) or Decimal("0"),
        equity=_decimal(v["equity"]) or Decimal("0"),
        deposit_enabled=bool(v["deposit_enabled"]) if v["deposit_enabled"] is not None else True,
        withdrawal_enabled=bool(v["withdrawal_enabled"]) if v["withdrawal_enabled"] is not None else True,
        target=_decimal(v["target"]),
        created_at=_datetime(v["created_at"]) or utcnow(),
        updated_at=_datetime(v["updated_at"]) or utcnow(),
    )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

def transaction_to_row(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "account_id": tx.account_id,
        "user_id": tx.user_id,
        "type": tx.kind,
        "amount": _number(tx.amount),
        "date": _iso(tx.date),
        "description": tx.description,
        "from_capital": _number(tx.from_capital),
        "created_at": _iso(tx.created_at),
    }


def transaction_from_row(row: dict) -> Transaction:
    v = {attr: _pick(row, names) for attr, names in TRANSACTION_FIELDS.items()}
    if not v["id"]:
        raise ValidationError("Transaction record has no id")
    kind = str(v["kind"] or "").capitalize()
    if kind == "Withdrawal":
        kind = "Withdraw"
    if kind not in ("Deposit", "Withdraw"):
        raise ValidationError(f"Unknown transaction type: {v['kind']!r}")
    amount = _decimal(v["amount"], True, "amount")
    if amount <= 0:
        raise ValidationError("Transaction amount must be positive")
    return Transaction(
        id=str(v["id"]),
        account_id=str(v["account_id"] or ""),
        user_id=str(v["user_id"] or ""),
        kind=kind,
        amount=amount,
        date=_date(v["date"]) or date.today(),
        description=v["description"] or "",
        from_capital=_decimal(v["from_capital"]) or Decimal("0"),
        created_at=_datetime(v["created_at"]) or utcnow(),
    )
