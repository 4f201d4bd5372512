"""Error taxonomy surfaced by the journal engine.

Every error carries a stable ``code`` plus optional structured context
(offending date, limit, actual value) so callers can render each kind
distinctly without parsing messages.
"""

from datetime import date


class JournalError(Exception):
    code = "journal_error"

    def __init__(
        self,
        message: str,
        *,
        date: date | None = None,
        limit: float | None = None,
        actual: float | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.date = date
        self.limit = limit
        self.actual = actual

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.date is not None:
            payload["date"] = self.date.isoformat()
        if self.limit is not None:
            payload["limit"] = self.limit
        if self.actual is not None:
            payload["actual"] = self.actual
        return payload


class ValidationError(JournalError):
    """Missing or invalid numeric input, unknown symbol, negative amount, malformed URL."""

    code = "validation_error"


class PolicyViolation(JournalError):
    code = "policy_violation"


class PerTradeRiskExceeded(PolicyViolation):
    code = "per_trade_risk_exceeded"


class DailyRiskExceeded(PolicyViolation):
    code = "daily_risk_exceeded"


class DailyCountExceeded(PolicyViolation):
    code = "daily_count_exceeded"


class DailyActiveExceeded(PolicyViolation):
    code = "daily_active_exceeded"


class DailyCancelExceeded(PolicyViolation):
    code = "daily_cancel_exceeded"


class WithdrawDisabled(PolicyViolation):
    code = "withdraw_disabled"


class DepositDisabled(PolicyViolation):
    code = "deposit_disabled"


class InsufficientFunds(JournalError):
    code = "insufficient_funds"


class ConfirmationRequired(JournalError):
    """Withdrawal would draw from capital and the caller did not confirm it."""

    code = "confirmation_required"


class NotFound(JournalError):
    code = "not_found"


class ConflictingEdit(JournalError):
    code = "conflicting_edit"


class PersistenceFailure(JournalError):
    code = "persistence_failure"


class PersistenceTimeout(PersistenceFailure):
    """Storage did not answer in time; the write may still have landed."""

    code = "persistence_timeout"


class AuthenticationFailed(JournalError):
    code = "authentication_failed"


class LoginLocked(AuthenticationFailed):
    """Too many failed logins; an admin has to unlock the user."""

    code = "login_locked"
