"""Trade lifecycle: Active -> Closed (Valid | Invalid), strictly forward.

Pure functions over the Trade Store and the owning Account. Opening and
editing an Active trade re-run sizing against the account's current capital
and pass the Risk Gate; closing computes signed points and realized P&L.
Nothing here reads market data or touches persistence.
"""

import uuid
from dataclasses import asdict, dataclass, replace
from datetime import date, datetime, time
from decimal import Decimal
from urllib.parse import urlparse

from journal.engine.records import (
    ACTIVE,
    CLOSED,
    INVALID,
    LONG,
    SHORT,
    VALID,
    Account,
    Identity,
    Trade,
    utcnow,
)
from journal.engine.store import TradeStore
from journal.errors import ConflictingEdit, NotFound, ValidationError
from journal.services import instruments, risk_gate
from journal.services.sizing import compute_sizing, round2, round_int, to_decimal
from journal.utils.dates import to_naive
from journal.utils.sessions import normalize_session, session_for_time

ZERO = Decimal("0")

_PLAN_FIELDS = {
    "symbol", "direction", "entry_date", "entry_time", "entry_price", "stop_loss",
    "take_profit", "risk_percent", "before_image", "session", "strategy",
}
_CLOSED_FIELDS = {"exit_date", "exit_price", "manual_pnl", "after_image", "note", "status"}


@dataclass(frozen=True)
class TradePlan:
    """User-supplied plan for a new trade."""

    symbol: str
    direction: str
    entry_date: date
    entry_price: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    risk_percent: Decimal
    entry_time: time | None = None
    before_image: str | None = None
    session: str | None = None
    strategy: str | None = None


def validate_url(value: str | None, field: str) -> str | None:
    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    parsed = urlparse(text)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field} must be an http(s) URL")
    return text


def _require_price(value, field: str) -> Decimal:
    price = to_decimal(value)
    if price is None:
        raise ValidationError(f"{field} is required and must be a finite number")
    if price <= 0:
        raise ValidationError(f"{field} must be positive")
    return price


def _validated_plan(values: dict) -> dict:
    """Normalise and check plan fields; returns the cleaned dict."""
    symbol = instruments.normalize_symbol(values.get("symbol") or "")
    if instruments.lookup(symbol) is None:
        raise ValidationError(f"Unknown symbol: {values.get('symbol')!r}")

    direction = (values.get("direction") or "").strip().lower()
    if direction not in (LONG, SHORT):
        raise ValidationError(f"Direction must be 'long' or 'short', got {values.get('direction')!r}")

    entry_date = values.get("entry_date")
    if isinstance(entry_date, datetime):
        entry_date = entry_date.date()
    if not isinstance(entry_date, date):
        raise ValidationError("entry_date is required")

    entry = _require_price(values.get("entry_price"), "entry_price")
    stop = _require_price(values.get("stop_loss"), "stop_loss")
    take_profit = _require_price(values.get("take_profit"), "take_profit")
    if stop == entry:
        raise ValidationError("stop_loss must differ from entry_price")

    risk = to_decimal(values.get("risk_percent"))
    if risk is None or risk <= 0:
        raise ValidationError("risk_percent must be a positive number")

    entry_time = values.get("entry_time")
    session = normalize_session(values.get("session")) or session_for_time(entry_time)

    return {
        "symbol": symbol,
        "direction": direction,
        "entry_date": entry_date,
        "entry_time": entry_time,
        "entry_price": entry,
        "stop_loss": stop,
        "take_profit": take_profit,
        "risk_percent": risk,
        "before_image": validate_url(values.get("before_image"), "before_image"),
        "session": session,
        "strategy": (values.get("strategy") or "").strip() or None,
    }


def _sized_fields(plan: dict, account: Account) -> dict:
    sizing = compute_sizing(
        instruments.lookup(plan["symbol"]),
        account.tier,
        plan["entry_price"],
        plan["stop_loss"],
        plan["take_profit"],
        plan["risk_percent"],
        account.capital,
    )
    return {
        "lot_size": sizing.lot_size,
        "value_per_pip": sizing.adjusted_value_per_pip,
        "ratio": sizing.ratio,
    }


def _get(store: TradeStore, trade_id: str) -> Trade:
    trade = store.get(trade_id)
    if trade is None:
        raise NotFound(f"Trade {trade_id} not found")
    return trade


def open_trade(
    store: TradeStore,
    account: Account,
    identity: Identity,
    plan: TradePlan,
    trade_id: str | None = None,
) -> Trade:
    """Build a new Active trade and admit it through the Risk Gate."""
    fields = _validated_plan(asdict(plan))
    now = utcnow()
    trade = Trade(
        id=trade_id or str(uuid.uuid4()),
        user_id=identity.user_id,
        account_id=identity.account_id,
        **fields,
        **_sized_fields(fields, account),
        state=ACTIVE,
        status=VALID,
        created_at=now,
        updated_at=now,
    )
    risk_gate.admit(store, trade)
    return trade


def signed_points(trade: Trade, exit_price: Decimal) -> int:
    multiplier = instruments.pip_multiplier(trade.symbol)
    if trade.direction == LONG:
        raw = (exit_price - trade.entry_price) * multiplier
    else:
        raw = (trade.entry_price - exit_price) * multiplier
    return round_int(raw)


def computed_pnl(trade: Trade, points: int) -> Decimal:
    return round2(Decimal(points) * trade.lot_size * trade.value_per_pip)


def pnl_percent(pnl: Decimal, capital: Decimal) -> Decimal:
    if capital <= 0:
        return round2(ZERO)
    return round2(pnl / capital * 100)


def _manual_override(value) -> Decimal | None:
    """A present non-zero number overrides the computed P&L; None and 0 mean compute."""
    if value is None:
        return None
    manual = to_decimal(value)
    if manual is None:
        raise ValidationError(f"Manual P&L must be a number, got {value!r}")
    return manual if manual != 0 else None


def close_trade(
    store: TradeStore,
    account: Account,
    trade_id: str,
    exit_date: date | datetime,
    exit_price,
    manual_pnl=None,
    after_image: str | None = None,
    note: str | None = None,
    status: str = VALID,
) -> Trade:
    """Transition an Active trade to Closed with realized points and P&L."""
    trade = _get(store, trade_id)
    if trade.state != ACTIVE:
        raise ConflictingEdit(f"Trade {trade_id} is already {trade.state}")
    if status not in (VALID, INVALID):
        raise ValidationError(f"Status must be Valid or Invalid, got {status!r}")
    if exit_date is None:
        raise ValidationError("exit_date is required")
    price = _require_price(exit_price, "exit_price")
    override = _manual_override(manual_pnl)

    points = signed_points(trade, price)
    pnl = override if override is not None else computed_pnl(trade, points)
    closed = replace(
        trade,
        state=CLOSED,
        status=status,
        exit_date=to_naive(exit_date),
        exit_price=price,
        points=points,
        pnl_currency=round2(pnl),
        pnl_percent=pnl_percent(pnl, account.capital),
        after_image=validate_url(after_image, "after_image"),
        note=(note or "").strip() or trade.note,
        updated_at=utcnow(),
        revision=trade.revision + 1,
    )
    if status == INVALID:
        risk_gate.admit_cancellation(store, closed)
    return closed


def edit_closed(store: TradeStore, account: Account, trade_id: str, patch: dict) -> Trade:
    """Edit exit details of a Closed trade; never reopens it.

    Points always follow the (possibly new) exit price. Currency P&L is
    replaced by a non-zero manual value; it is recomputed when the exit price
    changes or when the patch clears the manual value (None or 0), and
    otherwise kept.
    """
    unknown = set(patch) - _CLOSED_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable on a closed trade: {', '.join(sorted(unknown))}")
    trade = _get(store, trade_id)
    if trade.state != CLOSED:
        raise ConflictingEdit(f"Trade {trade_id} is not closed")

    status = patch.get("status", trade.status)
    if status not in (VALID, INVALID):
        raise ValidationError(f"Status must be Valid or Invalid, got {status!r}")

    exit_price = trade.exit_price
    if "exit_price" in patch:
        exit_price = _require_price(patch["exit_price"], "exit_price")
    exit_date = trade.exit_date
    if patch.get("exit_date") is not None:
        exit_date = to_naive(patch["exit_date"])

    points = signed_points(trade, exit_price)
    override = _manual_override(patch.get("manual_pnl"))
    if override is not None:
        pnl = round2(override)
    elif "exit_price" in patch or "manual_pnl" in patch:
        pnl = computed_pnl(trade, points)
    else:
        pnl = trade.pnl_currency

    after_image = trade.after_image
    if "after_image" in patch:
        after_image = validate_url(patch["after_image"], "after_image")
    note = trade.note
    if "note" in patch:
        note = (patch["note"] or "").strip() or None

    edited = replace(
        trade,
        status=status,
        exit_date=exit_date,
        exit_price=exit_price,
        points=points,
        pnl_currency=pnl,
        pnl_percent=pnl_percent(pnl, account.capital),
        after_image=after_image,
        note=note,
        updated_at=utcnow(),
        revision=trade.revision + 1,
    )
    if status == INVALID and trade.status != INVALID:
        risk_gate.admit_cancellation(store, edited)
    return edited


def edit_active(store: TradeStore, account: Account, trade_id: str, patch: dict) -> Trade:
    """Adjust plan fields of an Active trade, re-size it and re-admit it."""
    unknown = set(patch) - _PLAN_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable on an active trade: {', '.join(sorted(unknown))}")
    trade = _get(store, trade_id)
    if trade.state != ACTIVE:
        raise ConflictingEdit(f"Trade {trade_id} is not active")

    current = {name: getattr(trade, name) for name in _PLAN_FIELDS}
    fields = _validated_plan({**current, **patch})
    edited = replace(
        trade,
        **fields,
        **_sized_fields(fields, account),
        updated_at=utcnow(),
        revision=trade.revision + 1,
    )
    risk_gate.admit(store, edited)
    return edited


def delete_trade(store: TradeStore, trade_id: str) -> Trade:
    """The trade being removed; raises NotFound when absent."""
    return _get(store, trade_id)
