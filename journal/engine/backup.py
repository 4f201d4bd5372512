"""Backup Codec: JSON export and all-or-nothing import of one account."""

import json
import logging

from pydantic import ValidationError as SchemaError

from journal.engine import codec
from journal.engine.commands import ImportBackup
from journal.engine.records import utcnow
from journal.engine.state import EngineState
from journal.engine.store import sort_trades
from journal.errors import ValidationError
from journal.schemas.backup import BackupDocument
from journal.utils.constants import BACKUP_SCHEMA_VERSION

logger = logging.getLogger(__name__)


def export_backup(state: EngineState) -> dict:
    trades = sort_trades(state.trades, "entry_date", descending=False)
    return {
        "schemaVersion": BACKUP_SCHEMA_VERSION,
        "account": codec.account_to_row(state.account),
        "trades": [codec.trade_to_row(t) for t in trades],
        "transactions": [codec.transaction_to_row(tx) for tx in state.transactions],
        "exportedAt": utcnow().isoformat() + "Z",
    }


def dumps_backup(state: EngineState) -> str:
    return json.dumps(export_backup(state), ensure_ascii=False, indent=2)


def parse_backup(data: dict | str | bytes) -> BackupDocument:
    """Validate the document shape; refuses unknown schema versions."""
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError(f"Backup is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ValidationError("Backup must be a JSON object")
    try:
        return BackupDocument.model_validate(data)
    except SchemaError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first["loc"])
        raise ValidationError(f"Invalid backup ({where}): {first['msg']}")


def import_command(document: BackupDocument) -> ImportBackup:
    """Decode every record up front so a single bad record refuses the whole import."""
    trades = tuple(codec.trade_from_row(row) for row in document.trades)
    transactions = tuple(codec.transaction_from_row(row) for row in document.transactions)
    account = codec.account_from_row(document.account)
    logger.info(
        f"[backup] Decoded {len(trades)} trades and {len(transactions)} transactions "
        f"from account {account.id}"
    )
    return ImportBackup(
        trades=trades,
        transactions=transactions,
        capital=account.capital,
        profit=account.profit,
        source_account_id=account.id,
    )
