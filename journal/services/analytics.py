"""Read-only analytics over an account's trades.

Every view is a pure function of (trades, account, range). Nothing is cached
between calls; callers pass the current trade set each time.
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Callable, Iterable

from journal.engine.records import ACTIVE, CLOSED, INVALID, VALID, Account, Trade
from journal.services.sizing import round2
from journal.utils.constants import WEEKDAY_NAMES
from journal.utils.dates import as_date, iso_week, month_key, week_bounds

ZERO = Decimal("0")

WIN = "win"
LOSS = "loss"
BREAKEVEN = "breakeven"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def planned_risk_amount(trade: Trade, capital: Decimal) -> Decimal:
    return trade.risk_percent / 100 * capital


def classify(trade: Trade, capital: Decimal) -> str:
    """win / loss / breakeven relative to the planned risk amount.

    A gain up to the amount risked counts as breakeven.
    """
    pnl = trade.pnl_currency or ZERO
    if pnl < 0:
        return LOSS
    if pnl <= planned_risk_amount(trade, capital):
        return BREAKEVEN
    return WIN


def _closed(trades: Iterable[Trade]) -> list[Trade]:
    return [t for t in trades if t.state == CLOSED and t.exit_date is not None]


def _pnl(trade: Trade) -> Decimal:
    return trade.pnl_currency or ZERO


def _percent(value: Decimal, capital: Decimal) -> Decimal:
    if capital <= 0:
        return round2(ZERO)
    return round2(value / capital * 100)


def _by_entry(trades: Iterable[Trade]) -> list[Trade]:
    return sorted(trades, key=lambda t: (t.entry_date, t.entry_time or time.min))


def closed_between(trades: Iterable[Trade], start: date | None, end: date | None) -> list[Trade]:
    """Closed trades whose exit date falls in [start, end] (inclusive, whole days)."""
    result = []
    for t in _closed(trades):
        day = as_date(t.exit_date)
        if start and day < start:
            continue
        if end and day > end:
            continue
        result.append(t)
    return result


# ---------------------------------------------------------------------------
# Equity curve
# ---------------------------------------------------------------------------

@dataclass
class EquityPoint:
    label: str
    equity: Decimal
    pnl: Decimal = ZERO


def equity_curve(
    trades: Iterable[Trade],
    start_equity: Decimal,
    start: date | None = None,
    end: date | None = None,
) -> list[EquityPoint]:
    """Cumulative equity trade-by-trade, ordered by entry date then entry time."""
    running = start_equity
    points = [EquityPoint(label="Start", equity=round2(running))]
    for t in _by_entry(closed_between(trades, start, end)):
        running += _pnl(t)
        label = t.entry_date.isoformat()
        if t.entry_time is not None:
            label = f"{label} {t.entry_time.strftime('%H:%M')}"
        points.append(EquityPoint(label=label, equity=round2(running), pnl=_pnl(t)))
    return points


# ---------------------------------------------------------------------------
# Grouped performance
# ---------------------------------------------------------------------------

@dataclass
class GroupStats:
    key: str
    count: int = 0
    pnl: Decimal = ZERO
    wins: int = 0
    losses: int = 0
    breakevens: int = 0


def group_performance(
    trades: Iterable[Trade],
    key: Callable[[Trade], str],
    capital: Decimal | None = None,
) -> list[GroupStats]:
    """Count and P&L sum per group key, in first-seen order.

    Outcome counts are only filled when a capital is given to classify against.
    """
    groups: dict[str, GroupStats] = {}
    for t in trades:
        name = key(t) or "Unknown"
        stats = groups.setdefault(name, GroupStats(key=name))
        stats.count += 1
        stats.pnl += _pnl(t)
        if capital is not None and t.state == CLOSED:
            outcome = classify(t, capital)
            if outcome == WIN:
                stats.wins += 1
            elif outcome == LOSS:
                stats.losses += 1
            else:
                stats.breakevens += 1
    return list(groups.values())


def pair_performance(trades: Iterable[Trade], capital: Decimal | None = None) -> list[GroupStats]:
    return group_performance(trades, lambda t: t.symbol, capital)


def session_performance(trades: Iterable[Trade], capital: Decimal | None = None) -> list[GroupStats]:
    return group_performance(trades, lambda t: t.session or "Unknown", capital)


def weekday_performance(trades: Iterable[Trade], capital: Decimal | None = None) -> list[GroupStats]:
    """Grouped by entry weekday, Monday first."""
    stats = group_performance(trades, lambda t: WEEKDAY_NAMES[t.entry_date.weekday()], capital)
    return sorted(stats, key=lambda s: WEEKDAY_NAMES.index(s.key))


def _first_extreme(stats: list[GroupStats], value: Callable[[GroupStats], Decimal | int], want_max: bool):
    """Key of the max (or min) group; ties go to the first one seen."""
    best = None
    for s in stats:
        v = value(s)
        if best is None or (v > value(best) if want_max else v < value(best)):
            best = s
    return best


# ---------------------------------------------------------------------------
# Daily views
# ---------------------------------------------------------------------------

@dataclass
class DailyBreakdown:
    date: date
    trades: int = 0
    wins: int = 0
    losses: int = 0
    breakevens: int = 0
    pnl: Decimal = ZERO
    pnl_percent: Decimal = ZERO


def daily_breakdown(trades: Iterable[Trade], capital: Decimal) -> list[DailyBreakdown]:
    """Per exit date aggregation of closed trades, oldest first."""
    days: dict[date, DailyBreakdown] = {}
    for t in _closed(trades):
        day = as_date(t.exit_date)
        row = days.setdefault(day, DailyBreakdown(date=day))
        row.trades += 1
        row.pnl += _pnl(t)
        outcome = classify(t, capital)
        if outcome == WIN:
            row.wins += 1
        elif outcome == LOSS:
            row.losses += 1
        else:
            row.breakevens += 1
    for row in days.values():
        row.pnl_percent = _percent(row.pnl, capital)
    return [days[d] for d in sorted(days)]


@dataclass
class DailyRisk:
    date: date
    used_percent: Decimal
    day_name: str


def daily_risk_utilization(
    trades: Iterable[Trade],
    start: date | None = None,
    end: date | None = None,
) -> list[DailyRisk]:
    """Sum of planned risk percents of Active trades per entry date."""
    used: dict[date, Decimal] = {}
    for t in trades:
        if t.state != ACTIVE:
            continue
        if (start and t.entry_date < start) or (end and t.entry_date > end):
            continue
        used[t.entry_date] = used.get(t.entry_date, ZERO) + t.risk_percent
    return [
        DailyRisk(date=d, used_percent=used[d], day_name=WEEKDAY_NAMES[d.weekday()])
        for d in sorted(used)
    ]


# ---------------------------------------------------------------------------
# Weekly review
# ---------------------------------------------------------------------------

@dataclass
class WeeklyReview:
    year: int
    week: int
    start_date: date
    end_date: date
    start_equity: Decimal
    total_pnl: Decimal
    end_equity: Decimal
    weekly_percent: Decimal
    total_trades: int
    valid_count: int
    invalid_count: int
    wins: int
    losses: int
    breakevens: int
    most_traded_pair: str | None
    most_profitable_pair: str | None
    most_losing_pair: str | None
    most_breakeven_pair: str | None
    target_line: Decimal
    drawdown_line: Decimal
    equity_curve: list[EquityPoint] = field(default_factory=list)
    daily: list[DailyBreakdown] = field(default_factory=list)
    daily_risk: list[DailyRisk] = field(default_factory=list)
    pairs: list[GroupStats] = field(default_factory=list)
    sessions: list[GroupStats] = field(default_factory=list)
    weekdays: list[GroupStats] = field(default_factory=list)


def reference_lines(start_equity: Decimal, end_equity: Decimal, capital: Decimal) -> tuple[Decimal, Decimal]:
    """(target, drawdown) lines for the weekly equity chart."""
    if start_equity >= capital:
        return round2(start_equity * Decimal("1.10")), round2(start_equity * Decimal("0.90"))
    return round2(capital), round2(end_equity)


def weekly_review(trades: Iterable[Trade], account: Account, year: int, week: int) -> WeeklyReview:
    """Review of ISO week (year, week): trades closed Monday 00:00 through Sunday 23:59:59."""
    trades = list(trades)
    capital = account.capital
    monday, sunday = week_bounds(year, week)

    prior = [t for t in _closed(trades) if as_date(t.exit_date) < monday]
    start_equity = capital + sum((_pnl(t) for t in prior), ZERO)

    in_week = _by_entry(closed_between(trades, monday, sunday))
    total_pnl = sum((_pnl(t) for t in in_week), ZERO)
    end_equity = start_equity + total_pnl

    outcomes = [classify(t, capital) for t in in_week]
    pairs = pair_performance(in_week, capital)

    most_traded = _first_extreme(pairs, lambda s: s.count, want_max=True)
    most_profitable = _first_extreme([s for s in pairs if s.pnl > 0], lambda s: s.pnl, want_max=True)
    most_losing = _first_extreme([s for s in pairs if s.pnl < 0], lambda s: s.pnl, want_max=False)
    most_breakeven = _first_extreme([s for s in pairs if s.breakevens > 0], lambda s: s.breakevens, want_max=True)

    target, drawdown = reference_lines(start_equity, end_equity, capital)

    return WeeklyReview(
        year=year,
        week=week,
        start_date=monday,
        end_date=sunday,
        start_equity=round2(start_equity),
        total_pnl=round2(total_pnl),
        end_equity=round2(end_equity),
        weekly_percent=_percent(total_pnl, capital),
        total_trades=len(in_week),
        valid_count=sum(1 for t in in_week if t.status == VALID),
        invalid_count=sum(1 for t in in_week if t.status == INVALID),
        wins=outcomes.count(WIN),
        losses=outcomes.count(LOSS),
        breakevens=outcomes.count(BREAKEVEN),
        most_traded_pair=most_traded.key if most_traded else None,
        most_profitable_pair=most_profitable.key if most_profitable else None,
        most_losing_pair=most_losing.key if most_losing else None,
        most_breakeven_pair=most_breakeven.key if most_breakeven else None,
        target_line=target,
        drawdown_line=drawdown,
        equity_curve=equity_curve(in_week, start_equity),
        daily=daily_breakdown(in_week, capital),
        daily_risk=daily_risk_utilization(trades, monday, sunday),
        pairs=pairs,
        sessions=session_performance(in_week, capital),
        weekdays=weekday_performance(in_week, capital),
    )


@dataclass
class WeekGroup:
    year: int
    week: int
    trades: list[Trade]
    total_pnl: Decimal


def trades_by_week(trades: Iterable[Trade]) -> list[WeekGroup]:
    """Closed trades grouped by ISO week of exit, most recent week first."""
    groups: dict[tuple[int, int], WeekGroup] = {}
    for t in _closed(trades):
        year, week = iso_week(t.exit_date)
        group = groups.setdefault((year, week), WeekGroup(year, week, [], ZERO))
        group.trades.append(t)
        group.total_pnl += _pnl(t)
    return [groups[k] for k in sorted(groups, reverse=True)]


# ---------------------------------------------------------------------------
# Monthly review and dashboard
# ---------------------------------------------------------------------------

@dataclass
class MonthlyReview:
    month: str  # "YYYY-MM"
    trades: int
    wins: int
    losses: int
    breakevens: int
    pnl: Decimal
    pnl_percent: Decimal


def monthly_review(trades: Iterable[Trade], capital: Decimal) -> list[MonthlyReview]:
    """Closed trades grouped by exit month, oldest first."""
    months: dict[str, list[Trade]] = {}
    for t in _closed(trades):
        months.setdefault(month_key(t.exit_date), []).append(t)
    result = []
    for month in sorted(months):
        items = months[month]
        outcomes = [classify(t, capital) for t in items]
        pnl = sum((_pnl(t) for t in items), ZERO)
        result.append(MonthlyReview(
            month=month,
            trades=len(items),
            wins=outcomes.count(WIN),
            losses=outcomes.count(LOSS),
            breakevens=outcomes.count(BREAKEVEN),
            pnl=round2(pnl),
            pnl_percent=_percent(pnl, capital),
        ))
    return result


@dataclass
class DashboardSummary:
    total_trades: int
    active_trades: int
    total_pnl: Decimal
    total_pnl_percent: Decimal
    current_equity: Decimal
    win_rate: Decimal
    loss_rate: Decimal
    breakeven_rate: Decimal
    most_profitable_pair: str | None


def dashboard_summary(trades: Iterable[Trade], account: Account) -> DashboardSummary:
    trades = list(trades)
    closed = _closed(trades)
    capital = account.capital
    total_pnl = sum((_pnl(t) for t in closed), ZERO)
    outcomes = [classify(t, capital) for t in closed]
    count = len(closed)

    def rate(outcome: str) -> Decimal:
        if not count:
            return round2(ZERO)
        return round2(Decimal(outcomes.count(outcome)) / count * 100)

    best = _first_extreme(
        [s for s in pair_performance(closed) if s.pnl > 0], lambda s: s.pnl, want_max=True,
    )
    return DashboardSummary(
        total_trades=count,
        active_trades=sum(1 for t in trades if t.state == ACTIVE),
        total_pnl=round2(total_pnl),
        total_pnl_percent=_percent(total_pnl, capital),
        current_equity=round2(account.equity),
        win_rate=rate(WIN),
        loss_rate=rate(LOSS),
        breakeven_rate=rate(BREAKEVEN),
        most_profitable_pair=best.key if best else None,
    )


