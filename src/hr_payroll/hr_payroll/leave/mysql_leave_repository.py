from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Collection, Optional, Sequence

from ..core.enums import EmploymentStatus, LeaveStatus, LeaveType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..employees.model import Employee
from .model import LeaveBalance, LeaveRequest
from .repository import LeaveBalanceRepository, LeaveRequestRepository


def _to_balance(r: dict) -> LeaveBalance:
    return LeaveBalance(
        balance_id=int(r["balance_id"]),
        employee_id=int(r["employee_id"]),
        year=int(r["year"]),
        leave_type=LeaveType(r["leave_type"]),
        total_leaves=Decimal(r["total_leaves"]),
        used_leaves=Decimal(r["used_leaves"]),
        remaining_leaves=Decimal(r["remaining_leaves"]),
    )


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_year(self, *, employee_id: int, year: int) -> Sequence[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT balance_id, employee_id, year, leave_type, total_leaves, used_leaves, remaining_leaves
                FROM leave_balances
                WHERE employee_id=%s AND year=%s
                ORDER BY leave_type ASC
                """,
                (int(employee_id), int(year)),
            )
            return [_to_balance(r) for r in fetchall(cur)]

    def get(self, *, employee_id: int, year: int, leave_type: LeaveType) -> Optional[LeaveBalance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT balance_id, employee_id, year, leave_type, total_leaves, used_leaves, remaining_leaves
                FROM leave_balances
                WHERE employee_id=%s AND year=%s AND leave_type=%s
                """,
                (int(employee_id), int(year), leave_type.value),
            )
            r = fetchone(cur)
            return _to_balance(r) if r else None

    def compare_and_set_used(
        self,
        *,
        balance_id: int,
        expected_used: Decimal,
        used_leaves: Decimal,
        remaining_leaves: Decimal,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_balances
                SET used_leaves=%s, remaining_leaves=%s
                WHERE balance_id=%s AND used_leaves=%s
                """,
                (used_leaves, remaining_leaves, int(balance_id), expected_used),
            )
            return cur.rowcount > 0


_REQUEST_SELECT = """
    SELECT r.request_id, r.employee_id, r.leave_type, r.start_date, r.end_date,
           r.duration, r.reason, r.status, r.approver_id, r.approver_comments,
           r.applied_at, r.reviewed_at,
           e.employee_code, e.first_name, e.last_name, e.email, e.role,
           e.employment_status, e.is_active
    FROM leave_requests r
    JOIN employees e ON e.employee_id = r.employee_id
"""


def _to_request(r: dict) -> LeaveRequest:
    employee = Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        email=r["email"],
        role=Role(r["role"]),
        employment_status=EmploymentStatus(r["employment_status"]),
        is_active=bool(r["is_active"]),
    )
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type=LeaveType(r["leave_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        duration=Decimal(r["duration"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        applied_at=r["applied_at"],
        approver_id=r.get("approver_id"),
        approver_comments=r.get("approver_comments"),
        reviewed_at=r.get("reviewed_at"),
        employee=employee,
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type, start_date, end_date, duration, reason, status, applied_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    duration,
                    reason,
                    LeaveStatus.PENDING.value,
                    applied_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_REQUEST_SELECT + " WHERE r.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Collection[LeaveStatus],
    ) -> Optional[LeaveRequest]:
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _REQUEST_SELECT
                + f"""
                WHERE r.employee_id=%s
                  AND r.status IN ({placeholders})
                  AND r.start_date <= %s AND r.end_date >= %s
                ORDER BY r.start_date ASC
                LIMIT 1
                """,
                (int(employee_id), *[s.value for s in statuses], end_date, start_date),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approver_id: int,
        approver_comments: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approver_id=%s, approver_comments=%s, reviewed_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(approver_id),
                    approver_comments,
                    reviewed_at,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def reopen(self, *, request_id: int, from_status: LeaveStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approver_id=NULL, approver_comments=NULL, reviewed_at=NULL
                WHERE request_id=%s AND status=%s
                """,
                (LeaveStatus.PENDING.value, int(request_id), from_status.value),
            )
            return cur.rowcount > 0

    def list_approved_between(self, *, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _REQUEST_SELECT
                + """
                WHERE r.status=%s AND r.start_date <= %s AND r.end_date >= %s
                ORDER BY r.start_date ASC, r.employee_id ASC
                """,
                (LeaveStatus.APPROVED.value, end_date, start_date),
            )
            return [_to_request(r) for r in fetchall(cur)]
