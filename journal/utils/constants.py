"""Shared constants: risk limits, account tiers, trading sessions."""

# Risk gate, evaluated per account and per calendar entry date
PER_TRADE_RISK_LIMIT_PERCENT = 3.0
DAILY_RISK_LIMIT_PERCENT = 5.0
MAX_TRADES_PER_DAY = 3
MAX_ACTIVE_TRADES_PER_DAY = 2
MAX_CANCEL_TRADES_PER_DAY = 1

# Adjusted value-per-pip = base / divisor
TIER_DIVISORS: dict[str, int] = {
    "Standard": 1,
    "Mini": 10,
    "Micro": 100,
}

ACCOUNT_PLANS = ["Normal", "Challenge"]

# Clock windows in minutes from 00:00; Sydney wraps past midnight
SESSION_WINDOWS: list[tuple[str, int, int]] = [
    ("Sydney", 22 * 60, 7 * 60),
    ("Tokyo", 0, 9 * 60),
    ("London", 7 * 60, 16 * 60),
    ("New-York", 12 * 60, 21 * 60),
]

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

BACKUP_SCHEMA_VERSION = 1
