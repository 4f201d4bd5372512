"""Analytics API — read-only views over an account's trades."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from journal.api.deps import get_current_user, get_identity, get_journal
from journal.engine import codec
from journal.engine.journal import Journal
from journal.engine.records import Identity
from journal.services import analytics
from journal.utils.dates import iso_week

router = APIRouter(
    prefix="/api/accounts/{account_id}/analytics",
    tags=["analytics"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/summary")
async def summary(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    state = await journal.state(identity)
    return analytics.dashboard_summary(state.trades, state.account)


@router.get("/equity")
async def equity(
    date_from: date | None = None,
    date_to: date | None = None,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    """Equity after each closed trade, starting from capital."""
    state = await journal.state(identity)
    return analytics.equity_curve(state.trades, state.account.capital, date_from, date_to)


@router.get("/weekly")
async def weekly(
    year: int | None = Query(default=None, ge=1970),
    week: int | None = Query(default=None, ge=1, le=53),
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    """Review of one ISO week; defaults to the current week."""
    if year is None or week is None:
        year, week = iso_week(date.today())
    state = await journal.state(identity)
    return analytics.weekly_review(state.trades, state.account, year, week)


@router.get("/weeks")
async def weeks(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    state = await journal.state(identity)
    return [
        {
            "year": group.year,
            "week": group.week,
            "total_pnl": group.total_pnl,
            "trades": [codec.trade_to_row(t) for t in group.trades],
        }
        for group in analytics.trades_by_week(state.trades)
    ]


@router.get("/monthly")
async def monthly(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    state = await journal.state(identity)
    return analytics.monthly_review(state.trades, state.account.capital)


@router.get("/daily-risk")
async def daily_risk(
    date_from: date | None = None,
    date_to: date | None = None,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.state(identity)
    return analytics.daily_risk_utilization(state.trades, date_from, date_to)


def _closed_in_range(state, date_from: date | None, date_to: date | None):
    return analytics.closed_between(state.trades, date_from, date_to)


@router.get("/pairs")
async def pairs(
    date_from: date | None = None,
    date_to: date | None = None,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.state(identity)
    return analytics.pair_performance(_closed_in_range(state, date_from, date_to), state.account.capital)


@router.get("/sessions")
async def sessions(
    date_from: date | None = None,
    date_to: date | None = None,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.state(identity)
    return analytics.session_performance(_closed_in_range(state, date_from, date_to), state.account.capital)


@router.get("/weekdays")
async def weekdays(
    date_from: date | None = None,
    date_to: date | None = None,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.state(identity)
    return analytics.weekday_performance(_closed_in_range(state, date_from, date_to), state.account.capital)
