"""Trades API — plan, close, edit and browse the journal of one account."""

import uuid
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query

from journal.api.deps import get_current_user, get_identity, get_journal
from journal.engine import codec
from journal.engine.commands import CloseTrade, DeleteTrade, EditTrade, OpenTrade
from journal.engine.journal import Journal
from journal.engine.records import Identity
from journal.engine.store import SORT_KEYS, TradeFilter
from journal.errors import ValidationError
from journal.schemas.trade import (
    SizingRead,
    SizingRequest,
    TradeClose,
    TradeCreate,
    TradeRead,
    TradeUpdate,
)
from journal.services import instruments
from journal.services.lifecycle import TradePlan
from journal.services.sizing import compute_sizing

router = APIRouter(
    prefix="/api/accounts/{account_id}/trades",
    tags=["trades"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=list[TradeRead])
async def list_trades(
    state: Literal["Active", "Closed"] | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    symbol: str | None = None,
    direction: Literal["long", "short"] | None = None,
    status: Literal["Valid", "Invalid"] | None = None,
    pnl: Literal["profit", "loss"] | None = None,
    sort: str = Query(default="entry_date", description=f"One of: {', '.join(SORT_KEYS)}"),
    descending: bool = True,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    trade_filter = TradeFilter(
        state=state,
        date_from=date_from,
        date_to=date_to,
        symbol=symbol,
        direction=direction,
        status=status,
        pnl_sign=pnl,
    )
    trades = await journal.trades(identity, trade_filter, sort, descending)
    return [codec.trade_to_row(t) for t in trades]


@router.post("", response_model=TradeRead, status_code=201)
async def open_trade(
    data: TradeCreate,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    trade_id = str(uuid.uuid4())
    state = await journal.execute(identity, OpenTrade(plan=TradePlan(**data.model_dump()), trade_id=trade_id))
    return codec.trade_to_row(state.trades.get(trade_id))


@router.post("/sizing", response_model=SizingRead)
async def sizing_preview(
    data: SizingRequest,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    """Lot size and estimated risk for a plan, without recording anything."""
    instrument = instruments.lookup(data.symbol)
    if instrument is None:
        raise ValidationError(f"Unknown symbol: {data.symbol!r}")
    state = await journal.state(identity)
    result = compute_sizing(
        instrument,
        state.account.tier,
        data.entry_price,
        data.stop_loss,
        data.take_profit,
        data.risk_percent,
        state.account.capital,
    )
    return SizingRead.model_validate(result, from_attributes=True)


@router.get("/{trade_id}", response_model=TradeRead)
async def get_trade(
    trade_id: str,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    return codec.trade_to_row(await journal.trade(identity, trade_id))


@router.post("/{trade_id}/close", response_model=TradeRead)
async def close_trade(
    trade_id: str,
    data: TradeClose,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    state = await journal.execute(identity, CloseTrade(trade_id=trade_id, **data.model_dump()))
    return codec.trade_to_row(state.trades.get(trade_id))


@router.put("/{trade_id}", response_model=TradeRead)
async def edit_trade(
    trade_id: str,
    data: TradeUpdate,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    patch = data.model_dump(exclude_unset=True)
    state = await journal.execute(identity, EditTrade(trade_id=trade_id, patch=patch))
    return codec.trade_to_row(state.trades.get(trade_id))


@router.delete("/{trade_id}", status_code=204)
async def delete_trade(
    trade_id: str,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    await journal.execute(identity, DeleteTrade(trade_id))
