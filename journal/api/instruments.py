"""Instruments API — the tradable symbol catalog."""

from fastapi import APIRouter, Depends

from journal.api.deps import get_current_user
from journal.services import instruments
from journal.utils.constants import TIER_DIVISORS

router = APIRouter(prefix="/api/instruments", tags=["instruments"], dependencies=[Depends(get_current_user)])


@router.get("")
def list_instruments():
    return [
        {
            "symbol": i.symbol,
            "multiplier": i.multiplier,
            "value_per_pip": {
                tier: instruments.adjusted_value_per_pip(i, tier)
                for tier in TIER_DIVISORS
            },
        }
        for i in instruments.list_instruments()
    ]
