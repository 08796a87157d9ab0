from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, EmploymentStatus, Role
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..employees.model import Employee
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT a.attendance_id, a.employee_id, a.work_date, a.check_in, a.check_out,
           a.status, a.location, a.notes, a.overtime_hours, a.is_manual,
           e.employee_code, e.first_name, e.last_name, e.email, e.role,
           e.employment_status, e.is_active
    FROM attendance_records a
    JOIN employees e ON e.employee_id = a.employee_id
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=r.get("check_in"),
        check_out=r.get("check_out"),
        status=AttendanceStatus(r["status"]),
        location=r.get("location"),
        notes=r.get("notes"),
        overtime_hours=Decimal(r.get("overtime_hours") or 0),
        is_manual=bool(r.get("is_manual")),
        employee=Employee(
            employee_id=int(r["employee_id"]),
            employee_code=r["employee_code"],
            first_name=r["first_name"],
            last_name=r["last_name"],
            email=r["email"],
            role=Role(r["role"]),
            employment_status=EmploymentStatus(r["employment_status"]),
            is_active=bool(r["is_active"]),
        ),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.employee_id=%s AND a.work_date=%s", (int(employee_id), work_date))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(employee_id, work_date, check_in, status, location, notes, is_manual)
                    VALUES(%s,%s,%s,%s,%s,%s,0)
                    """,
                    (int(employee_id), work_date, check_in, status.value, location, notes),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateRecordError("Attendance already recorded for this day") from e
            raise

    def set_checkout(self, *, attendance_id: int, check_out: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out=%s
                WHERE attendance_id=%s AND check_out IS NULL
                """,
                (check_out, int(attendance_id)),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, work_date, check_in, check_out, status,
                    location, notes, overtime_hours, is_manual
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                ON DUPLICATE KEY UPDATE
                    attendance_id=LAST_INSERT_ID(attendance_id),
                    check_in=VALUES(check_in),
                    check_out=VALUES(check_out),
                    status=VALUES(status),
                    location=COALESCE(%s, location),
                    notes=COALESCE(%s, notes),
                    overtime_hours=COALESCE(%s, overtime_hours),
                    is_manual=1
                """,
                (
                    int(employee_id),
                    work_date,
                    check_in,
                    check_out,
                    status.value,
                    location,
                    notes,
                    overtime_hours if overtime_hours is not None else Decimal("0"),
                    location,
                    notes,
                    overtime_hours,
                ),
            )
            return int(cur.lastrowid)

    def list_between(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["a.work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]

        if employee_id is not None:
            clauses.append("a.employee_id=%s")
            params.append(int(employee_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + f"""
                WHERE {where}
                ORDER BY a.work_date DESC, a.employee_id ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
