from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveBalance, LeaveRequest


class LeaveBalanceRepository(Protocol):
    def list_for_year(self, *, employee_id: int, year: int) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    def get(self, *, employee_id: int, year: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        raise NotImplementedError

    def compare_and_set_used(
        self,
        *,
        balance_id: int,
        expected_used: Decimal,
        used_leaves: Decimal,
        remaining_leaves: Decimal,
    ) -> bool:
        """Write new counters only if used_leaves still equals expected_used."""

        raise NotImplementedError


class LeaveRequestRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        duration: Decimal,
        reason: str,
        applied_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        """Return the request with its employee projection attached."""

        raise NotImplementedError

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Collection[LeaveStatus],
    ) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approver_id: int,
        approver_comments: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        """Move a pending request to status; False if it was no longer pending."""

        raise NotImplementedError

    def reopen(self, *, request_id: int, from_status: LeaveStatus) -> bool:
        """Undo a decision that could not be completed (back to pending)."""

        raise NotImplementedError

    def list_approved_between(self, *, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError
