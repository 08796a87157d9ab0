from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Employee role used for authorization."""

    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class EmploymentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class LeaveType(str, Enum):
    SICK = "sick"
    CASUAL = "casual"
    VACATION = "vacation"
    UNPAID = "unpaid"
    MATERNITY = "maternity"
    PATERNITY = "paternity"


class LeaveStatus(str, Enum):
    """Leave request workflow state. CANCELLED has no inbound transition."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class PayrollStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    PAID = "paid"
    FAILED = "failed"


class LineItemKind(str, Enum):
    ALLOWANCE = "allowance"
    DEDUCTION = "deduction"


class AttendanceStatus(str, Enum):
    """Attendance status stored per (employee, day)."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    REMOTE = "remote"


class JobStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
