from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from ..common.ledger import compute_remaining
from ..core.constants import BALANCE_DEBIT_MAX_ATTEMPTS
from ..core.enums import LeaveType
from ..core.exceptions import ConflictError, InsufficientBalanceError, NotFoundError
from .model import LeaveBalance
from .repository import LeaveBalanceRepository

logger = logging.getLogger(__name__)


class LeaveBalanceStore:
    """Reads and debits per-year leave counters.

    Balances are provisioned elsewhere at the start of each year; this class only
    reads them and debits them when a leave request is approved.
    """

    def __init__(self, balances: LeaveBalanceRepository, *, max_attempts: int = BALANCE_DEBIT_MAX_ATTEMPTS):
        self._balances = balances
        self._max_attempts = int(max_attempts)

    def get_balance(self, employee_id: int, year: int) -> Sequence[LeaveBalance]:
        return list(self._balances.list_for_year(employee_id=int(employee_id), year=int(year)))

    def get_one(self, employee_id: int, year: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        return self._balances.get(employee_id=int(employee_id), year=int(year), leave_type=leave_type)

    def debit(self, employee_id: int, year: int, leave_type: LeaveType, days: Decimal) -> LeaveBalance:
        """Add days to used_leaves and re-derive remaining_leaves.

        Compare-and-swap on used_leaves, retried while other writers race us.
        """
        days = Decimal(days)
        for _ in range(self._max_attempts):
            current = self.get_one(employee_id, year, leave_type)
            if not current:
                raise NotFoundError(f"No {leave_type.value} leave balance for {year}")

            used = current.used_leaves + days
            remaining = compute_remaining(current.total_leaves, used)
            if remaining < 0:
                raise InsufficientBalanceError("Insufficient leave balance")

            if self._balances.compare_and_set_used(
                balance_id=current.balance_id,
                expected_used=current.used_leaves,
                used_leaves=used,
                remaining_leaves=remaining,
            ):
                logger.info(
                    "Debited %s %s day(s) for employee %s (%s): remaining %s",
                    days,
                    leave_type.value,
                    employee_id,
                    year,
                    remaining,
                )
                return LeaveBalance(
                    balance_id=current.balance_id,
                    employee_id=current.employee_id,
                    year=current.year,
                    leave_type=current.leave_type,
                    total_leaves=current.total_leaves,
                    used_leaves=used,
                    remaining_leaves=remaining,
                )

        raise ConflictError("Leave balance is being updated concurrently, please retry")
