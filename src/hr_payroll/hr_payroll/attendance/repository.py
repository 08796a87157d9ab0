from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: datetime,
        status: AttendanceStatus,
        location: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """DuplicateRecordError if (employee, work_date) already exists."""

        raise NotImplementedError

    def set_checkout(self, *, attendance_id: int, check_out: datetime) -> bool:
        """Set check_out only while it is still empty."""

        raise NotImplementedError

    def upsert_manual(
        self,
        *,
        employee_id: int,
        work_date: date,
        check_in: Optional[datetime],
        check_out: Optional[datetime],
        status: AttendanceStatus,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        overtime_hours: Optional[Decimal] = None,
    ) -> int:
        """Admin-only create-or-overwrite keyed by (employee, work_date); marks is_manual."""

        raise NotImplementedError

    def list_between(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
