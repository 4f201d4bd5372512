"""Trade Store: id-keyed set of trades for one account.

The store is an immutable value. ``upsert`` and ``delete`` return a new store,
which keeps the previous one usable as a rollback snapshot.
"""

from dataclasses import dataclass
from datetime import date, time
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from journal.engine.records import Trade
from journal.errors import ValidationError

SORT_KEYS = ("entry_date", "exit_date", "pnl_currency", "pnl_percent", "symbol", "direction")


@dataclass(frozen=True)
class TradeFilter:
    state: str | None = None  # "Active" | "Closed"
    date_from: date | None = None  # inclusive, on entry date
    date_to: date | None = None  # inclusive, on entry date
    symbol: str | None = None
    direction: str | None = None
    status: str | None = None  # "Valid" | "Invalid"
    pnl_sign: str | None = None  # "profit" | "loss"

    def matches(self, trade: Trade) -> bool:
        if self.state and trade.state != self.state:
            return False
        if self.date_from and trade.entry_date < self.date_from:
            return False
        if self.date_to and trade.entry_date > self.date_to:
            return False
        if self.symbol and trade.symbol.upper() != self.symbol.strip().upper():
            return False
        if self.direction and trade.direction != self.direction.lower():
            return False
        if self.status and trade.status != self.status:
            return False
        if self.pnl_sign == "profit":
            return trade.pnl_currency is not None and trade.pnl_currency > 0
        if self.pnl_sign == "loss":
            return trade.pnl_currency is not None and trade.pnl_currency < 0
        return True


def _sort_value(trade: Trade, key: str):
    if key == "entry_date":
        return (trade.entry_date, trade.entry_time or time.min)
    return getattr(trade, key)


def sort_trades(trades: Iterable[Trade], key: str = "entry_date", descending: bool = True) -> list[Trade]:
    """Sort by one of SORT_KEYS; trades missing the key always go last."""
    if key not in SORT_KEYS:
        raise ValidationError(f"Unknown sort key: {key}")
    present, missing = [], []
    for trade in trades:
        (missing if getattr(trade, key) is None else present).append(trade)
    present.sort(key=lambda t: _sort_value(t, key), reverse=descending)
    return present + missing


class TradeStore:
    def __init__(self, trades: Mapping[str, Trade] | None = None):
        self._trades = MappingProxyType(dict(trades or {}))

    @classmethod
    def from_trades(cls, trades: Iterable[Trade]) -> "TradeStore":
        return cls({t.id: t for t in trades})

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self) -> Iterator[Trade]:
        return iter(self._trades.values())

    def __contains__(self, trade_id: object) -> bool:
        return trade_id in self._trades

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TradeStore):
            return NotImplemented
        return dict(self._trades) == dict(other._trades)

    def upsert(self, trade: Trade) -> "TradeStore":
        trades = dict(self._trades)
        trades[trade.id] = trade
        return TradeStore(trades)

    def delete(self, trade_id: str) -> "TradeStore":
        trades = dict(self._trades)
        trades.pop(trade_id, None)
        return TradeStore(trades)

    def get(self, trade_id: str) -> Trade | None:
        return self._trades.get(trade_id)

    def list_by_account(
        self,
        account_id: str,
        filter: TradeFilter | None = None,
        sort: str = "entry_date",
        descending: bool = True,
    ) -> list[Trade]:
        selected = [
            t for t in self._trades.values()
            if t.account_id == account_id and (filter is None or filter.matches(t))
        ]
        return sort_trades(selected, sort, descending)

    def on_date(self, entry_date: date, exclude_id: str | None = None) -> list[Trade]:
        """Trades entered on a calendar date, in any lifecycle state."""
        return [
            t for t in self._trades.values()
            if t.entry_date == entry_date and t.id != exclude_id
        ]
