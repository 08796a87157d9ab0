"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

MIN_LEAVE_REASON_LENGTH = 10
MIN_PAYROLL_YEAR = 2000
PAYROLL_HISTORY_LIMIT = 12
BALANCE_DEBIT_MAX_ATTEMPTS = 5
DEFAULT_PAYROLL_WORKERS = 2
PAYROLL_JOB_HISTORY_LIMIT = 100

# Scales of the DECIMAL columns in database/schema.sql.
MONEY_QUANTUM = Decimal("0.01")
LEAVE_DAY_QUANTUM = Decimal("0.1")
HOURS_QUANTUM = Decimal("0.01")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
