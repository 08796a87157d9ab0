from __future__ import annotations

import dataclasses
from decimal import Decimal

import pytest

from src.hr_payroll.hr_payroll.attendance.model import AttendanceRecord
from src.hr_payroll.hr_payroll.attendance.service import AttendanceService
from src.hr_payroll.hr_payroll.core.enums import EmploymentStatus, LeaveStatus, LeaveType, Role
from src.hr_payroll.hr_payroll.core.exceptions import DuplicateRecordError
from src.hr_payroll.hr_payroll.employees.model import Employee
from src.hr_payroll.hr_payroll.employees.service import AuthService
from src.hr_payroll.hr_payroll.leave.balance_service import LeaveBalanceStore
from src.hr_payroll.hr_payroll.leave.model import LeaveBalance, LeaveRequest
from src.hr_payroll.hr_payroll.leave.service import LeaveService
from src.hr_payroll.hr_payroll.payroll.model import PayrollStats
from src.hr_payroll.hr_payroll.payroll.service import PayrollService, salary_structure_from_config

DEFAULT_TEMPLATE = {
    "basic_salary": 50000,
    "allowances": [{"type": "HRA", "amount": 15000}, {"type": "Transport", "amount": 3000}],
    "deductions": [{"type": "PF", "amount": 5000}],
    "tax_deduction": 8000,
}


def make_employee(employee_id: int, *, role: Role = Role.EMPLOYEE, active: bool = True, password_hash: str = "") -> Employee:
    return Employee(
        employee_id=employee_id,
        employee_code=f"EMP{employee_id:03d}",
        first_name=f"First{employee_id}",
        last_name=f"Last{employee_id}",
        email=f"emp{employee_id}@example.com",
        role=role,
        employment_status=EmploymentStatus.ACTIVE if active else EmploymentStatus.TERMINATED,
        is_active=active,
        password_hash=password_hash,
    )


class FakeEmployeeRepo:
    def __init__(self, employees=()):
        self.employees = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id):
        return self.employees.get(int(employee_id))

    def get_by_email(self, email):
        return next((e for e in self.employees.values() if e.email == email), None)

    def list_active(self):
        return [
            e
            for e in self.employees.values()
            if e.is_active and e.employment_status == EmploymentStatus.ACTIVE
        ]


class FakeLeaveBalanceRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, LeaveBalance] = {}
        # Number of upcoming compare_and_set_used calls that should lose the race.
        self.lose_races = 0

    def provision(self, employee_id, year, leave_type, total, used=0) -> LeaveBalance:
        for row in self.rows.values():
            if (row.employee_id, row.year, row.leave_type) == (employee_id, year, leave_type):
                raise DuplicateRecordError("Leave balance already exists")
        bal = LeaveBalance(
            balance_id=self._next_id,
            employee_id=employee_id,
            year=year,
            leave_type=leave_type,
            total_leaves=Decimal(total),
            used_leaves=Decimal(used),
            remaining_leaves=Decimal(total) - Decimal(used),
        )
        self.rows[bal.balance_id] = bal
        self._next_id += 1
        return bal

    def list_for_year(self, *, employee_id, year):
        return [b for b in self.rows.values() if b.employee_id == employee_id and b.year == year]

    def get(self, *, employee_id, year, leave_type):
        return next(
            (
                b
                for b in self.rows.values()
                if (b.employee_id, b.year, b.leave_type) == (employee_id, year, leave_type)
            ),
            None,
        )

    def compare_and_set_used(self, *, balance_id, expected_used, used_leaves, remaining_leaves):
        if self.lose_races:
            self.lose_races -= 1
            return False
        current = self.rows[balance_id]
        if current.used_leaves != expected_used:
            return False
        self.rows[balance_id] = dataclasses.replace(
            current, used_leaves=used_leaves, remaining_leaves=remaining_leaves
        )
        return True


class FakeLeaveRequestRepo:
    def __init__(self, employees: FakeEmployeeRepo):
        self._employees = employees
        self._next_id = 1
        self.rows: dict[int, LeaveRequest] = {}

    def create(self, *, employee_id, leave_type, start_date, end_date, duration, reason, applied_at):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = LeaveRequest(
            request_id=rid,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            duration=duration,
            reason=reason,
            status=LeaveStatus.PENDING,
            applied_at=applied_at,
        )
        return rid

    def get(self, *, request_id):
        req = self.rows.get(int(request_id))
        if not req:
            return None
        return dataclasses.replace(req, employee=self._employees.get_by_id(req.employee_id))

    def find_overlapping(self, *, employee_id, start_date, end_date, statuses):
        return next(
            (
                r
                for r in self.rows.values()
                if r.employee_id == employee_id and r.status in statuses and r.overlaps(start_date, end_date)
            ),
            None,
        )

    def decide(self, *, request_id, status, approver_id, approver_comments, reviewed_at):
        req = self.rows.get(int(request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.rows[req.request_id] = dataclasses.replace(
            req,
            status=status,
            approver_id=approver_id,
            approver_comments=approver_comments,
            reviewed_at=reviewed_at,
        )
        return True

    def reopen(self, *, request_id, from_status):
        req = self.rows.get(int(request_id))
        if not req or req.status != from_status:
            return False
        self.rows[req.request_id] = dataclasses.replace(
            req, status=LeaveStatus.PENDING, approver_id=None, approver_comments=None, reviewed_at=None
        )
        return True

    def list_approved_between(self, *, start_date, end_date):
        return [
            r for r in self.rows.values() if r.status == LeaveStatus.APPROVED and r.overlaps(start_date, end_date)
        ]


class FakePayrollRepo:
    def __init__(self, employees: FakeEmployeeRepo):
        self._employees = employees
        self._next_id = 1
        self.rows = {}

    def _clash(self, employee_id, month, year):
        return any((r.employee_id, r.month, r.year) == (employee_id, month, year) for r in self.rows.values())

    def exists(self, *, employee_id, month, year):
        return self._clash(employee_id, month, year)

    def create(self, record):
        if self._clash(record.employee_id, record.month, record.year):
            raise DuplicateRecordError("Payroll already exists for this month")
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = dataclasses.replace(record, record_id=rid, employee=None)
        return rid

    def get(self, *, record_id):
        rec = self.rows.get(int(record_id))
        if not rec:
            return None
        return dataclasses.replace(rec, employee=self._employees.get_by_id(rec.employee_id))

    def update(self, record):
        if record.record_id not in self.rows:
            return False
        self.rows[record.record_id] = dataclasses.replace(record, employee=None)
        return True

    def list_for_employee(self, *, employee_id, limit):
        rows = [r for r in self.rows.values() if r.employee_id == employee_id]
        rows.sort(key=lambda r: (r.year, r.month), reverse=True)
        return rows[:limit]

    def stats(self, *, month, year):
        rows = [r for r in self.rows.values() if (r.month, r.year) == (month, year)]
        return PayrollStats(
            total_gross=sum((r.gross_salary for r in rows), Decimal("0")),
            total_net=sum((r.net_salary for r in rows), Decimal("0")),
            total_tax=sum((r.tax_deduction for r in rows), Decimal("0")),
            count=len(rows),
        )


class FakeSalaryStructureRepo:
    def __init__(self, structures=None):
        self.structures = dict(structures or {})

    def get(self, *, employee_id):
        return self.structures.get(employee_id)


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, AttendanceRecord] = {}

    def _find(self, employee_id, work_date):
        return next(
            (r for r in self.rows.values() if (r.employee_id, r.work_date) == (employee_id, work_date)),
            None,
        )

    def get_for_employee_and_date(self, employee_id, work_date):
        return self._find(employee_id, work_date)

    def get(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def create_checkin(self, *, employee_id, work_date, check_in, status, location=None, notes=None):
        if self._find(employee_id, work_date):
            raise DuplicateRecordError("Attendance already recorded for this day")
        aid = self._next_id
        self._next_id += 1
        self.rows[aid] = AttendanceRecord(
            attendance_id=aid,
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=None,
            status=status,
            location=location,
            notes=notes,
        )
        return aid

    def set_checkout(self, *, attendance_id, check_out):
        rec = self.rows.get(int(attendance_id))
        if not rec or rec.check_out is not None:
            return False
        self.rows[rec.attendance_id] = dataclasses.replace(rec, check_out=check_out)
        return True

    def upsert_manual(
        self,
        *,
        employee_id,
        work_date,
        check_in,
        check_out,
        status,
        location=None,
        notes=None,
        overtime_hours=None,
    ):
        existing = self._find(employee_id, work_date)
        if existing:
            self.rows[existing.attendance_id] = dataclasses.replace(
                existing,
                check_in=check_in,
                check_out=check_out,
                status=status,
                location=location if location is not None else existing.location,
                notes=notes if notes is not None else existing.notes,
                overtime_hours=overtime_hours if overtime_hours is not None else existing.overtime_hours,
                is_manual=True,
            )
            return existing.attendance_id

        aid = self._next_id
        self._next_id += 1
        self.rows[aid] = AttendanceRecord(
            attendance_id=aid,
            employee_id=employee_id,
            work_date=work_date,
            check_in=check_in,
            check_out=check_out,
            status=status,
            location=location,
            notes=notes,
            overtime_hours=overtime_hours if overtime_hours is not None else Decimal("0"),
            is_manual=True,
        )
        return aid

    def list_between(self, *, start_date, end_date, employee_id=None):
        return [
            r
            for r in self.rows.values()
            if start_date <= r.work_date <= end_date and (employee_id is None or r.employee_id == employee_id)
        ]


class RecordingNotifier:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.leave_emails = []
        self.payroll_emails = []

    def send_leave_status(self, *, email, name, leave_type, status, comments=None):
        if self.fail:
            raise ConnectionError("SMTP down")
        self.leave_emails.append({"email": email, "leave_type": leave_type, "status": status, "comments": comments})

    def send_payroll_processed(self, *, email, name, month_name, year, net_salary):
        if self.fail:
            raise ConnectionError("SMTP down")
        self.payroll_emails.append({"email": email, "month_name": month_name, "year": year, "net_salary": net_salary})


@pytest.fixture
def employees_repo():
    return FakeEmployeeRepo(
        [
            make_employee(1),
            make_employee(2),
            make_employee(3),
            make_employee(9, role=Role.HR),
        ]
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def balances_repo():
    return FakeLeaveBalanceRepo()


@pytest.fixture
def leave_requests_repo(employees_repo):
    return FakeLeaveRequestRepo(employees_repo)


@pytest.fixture
def leave_service(leave_requests_repo, balances_repo, employees_repo, notifier):
    return LeaveService(leave_requests_repo, LeaveBalanceStore(balances_repo), employees_repo, notifier)


@pytest.fixture
def payroll_repo(employees_repo):
    return FakePayrollRepo(employees_repo)


@pytest.fixture
def salary_structures_repo():
    return FakeSalaryStructureRepo()


@pytest.fixture
def payroll_service(payroll_repo, employees_repo, notifier, salary_structures_repo):
    return PayrollService(
        payroll_repo,
        employees_repo,
        notifier,
        salary_structures=salary_structures_repo,
        default_structure=salary_structure_from_config(DEFAULT_TEMPLATE),
    )


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def attendance_service(attendance_repo):
    return AttendanceService(attendance_repo)


@pytest.fixture
def auth_service(employees_repo):
    return AuthService(employees_repo)


@pytest.fixture
def sick_2025(balances_repo):
    return balances_repo.provision(1, 2025, LeaveType.SICK, 10)
