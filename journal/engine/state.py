"""Per-account engine state."""

from dataclasses import dataclass, field

from journal.engine.records import Account, Transaction
from journal.engine.store import TradeStore


@dataclass(frozen=True)
class EngineState:
    """Everything the engine knows about one account.

    Owned by a Journal session and replaced wholesale by each command.
    """

    account: Account
    trades: TradeStore = field(default_factory=TradeStore)
    transactions: tuple[Transaction, ...] = ()

    def transaction(self, transaction_id: str) -> Transaction | None:
        for tx in self.transactions:
            if tx.id == transaction_id:
                return tx
        return None
