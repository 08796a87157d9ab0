from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus
from ..employees.model import Employee


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per (employee, day)."""

    attendance_id: int
    employee_id: int
    work_date: date
    check_in: Optional[datetime]
    check_out: Optional[datetime]
    status: AttendanceStatus
    location: Optional[str] = None
    notes: Optional[str] = None
    overtime_hours: Decimal = Decimal("0")
    is_manual: bool = False
    employee: Optional[Employee] = None

    @property
    def hours_worked(self) -> float:
        if not self.check_in or not self.check_out:
            return 0
        return round((self.check_out - self.check_in).total_seconds() / 3600, 2)

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "employee": self.employee.to_dict() if self.employee else self.employee_id,
            "date": self.work_date,
            "checkIn": self.check_in,
            "checkOut": self.check_out,
            "status": self.status.value,
            "location": self.location,
            "notes": self.notes,
            "overtimeHours": self.overtime_hours,
            "isManual": self.is_manual,
            "hoursWorked": self.hours_worked,
        }


@dataclass
class AttendanceTally:
    total_days: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    half_day: int = 0
    remote: int = 0

    def add(self, status: AttendanceStatus) -> None:
        self.total_days += 1
        setattr(self, status.value, getattr(self, status.value) + 1)


@dataclass(frozen=True)
class AttendanceReport:
    """Read-model for reports: matching records plus per-status counts."""

    records: list[AttendanceRecord]
    stats: AttendanceTally = field(default_factory=AttendanceTally)
