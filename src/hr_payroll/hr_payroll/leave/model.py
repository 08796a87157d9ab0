from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType
from ..employees.model import Employee


@dataclass(frozen=True)
class LeaveBalance:
    """Per-employee, per-year, per-type leave counters."""

    balance_id: int
    employee_id: int
    year: int
    leave_type: LeaveType
    total_leaves: Decimal
    used_leaves: Decimal
    remaining_leaves: Decimal

    def to_dict(self) -> dict:
        return {
            "id": self.balance_id,
            "employee": self.employee_id,
            "year": self.year,
            "leaveType": self.leave_type.value,
            "totalLeaves": self.total_leaves,
            "usedLeaves": self.used_leaves,
            "remainingLeaves": self.remaining_leaves,
        }


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    duration: Decimal
    reason: str
    status: LeaveStatus
    applied_at: datetime
    approver_id: Optional[int] = None
    approver_comments: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    employee: Optional[Employee] = None

    def overlaps(self, start: date, end: date) -> bool:
        # Inclusive on both ends.
        return self.start_date <= end and self.end_date >= start

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "employee": self.employee.to_dict() if self.employee else self.employee_id,
            "leaveType": self.leave_type.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "duration": self.duration,
            "reason": self.reason,
            "status": self.status.value,
            "approver": self.approver_id,
            "approverComments": self.approver_comments,
            "appliedAt": self.applied_at,
            "reviewedAt": self.reviewed_at,
        }
