"""Backup API — export and import one account's journal as JSON."""

from fastapi import APIRouter, Depends

from journal.api.deps import get_current_user, get_identity, get_journal
from journal.engine import backup, codec
from journal.engine.journal import Journal
from journal.engine.records import Identity

router = APIRouter(
    prefix="/api/accounts/{account_id}/backup",
    tags=["backup"],
    dependencies=[Depends(get_current_user)],
)


@router.get("")
async def export_backup(identity: Identity = Depends(get_identity), journal: Journal = Depends(get_journal)):
    state = await journal.state(identity)
    return backup.export_backup(state)


@router.post("")
async def import_backup(
    document: dict,
    identity: Identity = Depends(get_identity),
    journal: Journal = Depends(get_journal),
):
    """Replace this account's trades, ledger and balances with the document's."""
    command = backup.import_command(backup.parse_backup(document))
    state = await journal.execute(identity, command)
    return {
        "account": codec.account_to_row(state.account),
        "trades": len(state.trades),
        "transactions": len(state.transactions),
    }
