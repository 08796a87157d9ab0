from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import month_bounds, now_local, parse_iso_datetime
from ..common.validators import optional_text, parse_enum, require_int_range, require_non_negative
from ..core.constants import HOURS_QUANTUM, MIN_PAYROLL_YEAR
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    DuplicateRecordError,
    NoCheckInError,
    NotFoundError,
    ValidationError,
)
from .model import AttendanceRecord, AttendanceReport, AttendanceTally
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """One attendance record per employee per day.

    "Today" is the local calendar date of the service clock.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def check_in(
        self,
        employee_id: int,
        *,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        if self._attendance.get_for_employee_and_date(int(employee_id), today):
            raise AlreadyCheckedInError("Already checked in today")

        try:
            attendance_id = self._attendance.create_checkin(
                employee_id=int(employee_id),
                work_date=today,
                check_in=now,
                status=AttendanceStatus.PRESENT,
                location=optional_text(location, "location"),
                notes=optional_text(notes, "notes"),
            )
        except DuplicateRecordError as e:
            # Lost the race against a concurrent check-in.
            raise AlreadyCheckedInError("Already checked in today") from e

        logger.info("Employee %s checked in at %s", employee_id, now.isoformat(timespec="seconds"))
        return self._get(attendance_id)

    def check_out(self, employee_id: int, *, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_local()

        record = self._attendance.get_for_employee_and_date(int(employee_id), now.date())
        if not record:
            raise NoCheckInError("No check-in found for today")
        if record.check_out:
            raise AlreadyCheckedOutError("Already checked out today")

        if not self._attendance.set_checkout(attendance_id=record.attendance_id, check_out=now):
            raise AlreadyCheckedOutError("Already checked out today")

        logger.info("Employee %s checked out at %s", employee_id, now.isoformat(timespec="seconds"))
        return self._get(record.attendance_id)

    def mark_manual(
        self,
        *,
        employee_id: Any,
        work_date: date,
        status: Any,
        check_in: Any = None,
        check_out: Any = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        overtime_hours: Any = None,
    ) -> AttendanceRecord:
        employee_id = require_int_range(employee_id, "employee", low=1)
        status = parse_enum(AttendanceStatus, status, "status")
        check_in = parse_iso_datetime(check_in, "checkIn")
        check_out = parse_iso_datetime(check_out, "checkOut")
        if check_in and check_out and check_out < check_in:
            raise ValidationError("checkOut must be on or after checkIn")
        if overtime_hours is not None:
            overtime_hours = require_non_negative(overtime_hours, "overtimeHours", quantum=HOURS_QUANTUM)

        attendance_id = self._attendance.upsert_manual(
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            status=status,
            location=optional_text(location, "location"),
            notes=optional_text(notes, "notes"),
            overtime_hours=overtime_hours,
        )
        logger.info("Attendance for employee %s on %s marked %s", employee_id, work_date, status.value)
        return self._get(attendance_id)

    def report(self, start_date: date, end_date: date, employee_id: Optional[int] = None) -> AttendanceReport:
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")

        records = list(
            self._attendance.list_between(
                start_date=start_date,
                end_date=end_date,
                employee_id=int(employee_id) if employee_id is not None else None,
            )
        )
        tally = AttendanceTally()
        for record in records:
            tally.add(record.status)
        return AttendanceReport(records=records, stats=tally)

    def todays_attendance(self, *, now: Optional[datetime] = None) -> Sequence[AttendanceRecord]:
        today = (now or now_local()).date()
        return self._attendance.list_between(start_date=today, end_date=today)

    def employee_month(self, employee_id: int, month: Any, year: Any) -> AttendanceReport:
        month = require_int_range(month, "month", low=1, high=12)
        year = require_int_range(year, "year", low=MIN_PAYROLL_YEAR)
        start, end = month_bounds(month, year)
        return self.report(start, end, employee_id=employee_id)

    def _get(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record
