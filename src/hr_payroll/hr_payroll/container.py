from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_PAYROLL_WORKERS
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.service import AuthService
from .leave.balance_service import LeaveBalanceStore
from .leave.mysql_leave_repository import MySQLLeaveBalanceRepository, MySQLLeaveRequestRepository
from .leave.service import LeaveService
from .notifications.notifier import Notifier, build_notifier
from .payroll.jobs import PayrollJobRunner
from .payroll.mysql_payroll_repository import MySQLPayrollRepository, MySQLSalaryStructureRepository
from .payroll.service import PayrollService, salary_structure_from_config


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    leave_service: LeaveService
    payroll_service: PayrollService
    payroll_jobs: PayrollJobRunner
    attendance_service: AttendanceService
    notifier: Notifier
    conn: Optional[DatabaseConnection] = None


def build_container(
    *,
    db_config: Mapping[str, Any],
    smtp_config: Optional[Mapping[str, Any]] = None,
    frontend_url: str = "",
    default_salary_template: Optional[Mapping[str, Any]] = None,
    payroll_workers: int = DEFAULT_PAYROLL_WORKERS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(dict(db_config)))

    employees_repo = MySQLEmployeeRepository(conn)
    balances_repo = MySQLLeaveBalanceRepository(conn)
    leave_requests_repo = MySQLLeaveRequestRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)
    salary_structures_repo = MySQLSalaryStructureRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    notifier = build_notifier(dict(smtp_config or {}), frontend_url=frontend_url)

    payroll_service = PayrollService(
        payroll_repo,
        employees_repo,
        notifier,
        salary_structures=salary_structures_repo,
        default_structure=salary_structure_from_config(default_salary_template) if default_salary_template else None,
    )

    return Container(
        conn=conn,
        notifier=notifier,
        auth_service=AuthService(employees_repo),
        leave_service=LeaveService(
            leave_requests_repo,
            LeaveBalanceStore(balances_repo),
            employees_repo,
            notifier,
        ),
        payroll_service=payroll_service,
        payroll_jobs=PayrollJobRunner(payroll_service, max_workers=int(payroll_workers)),
        attendance_service=AttendanceService(attendance_repo),
    )
