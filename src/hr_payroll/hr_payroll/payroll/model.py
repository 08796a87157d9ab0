from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import JobStatus, PayrollStatus
from ..employees.model import Employee


@dataclass(frozen=True)
class LineItem:
    """One allowance or deduction; order is preserved."""

    label: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"type": self.label, "amount": self.amount}


@dataclass(frozen=True)
class SalaryStructure:
    """Per-employee salary template used by bulk generation."""

    basic_salary: Decimal
    allowances: tuple[LineItem, ...] = ()
    deductions: tuple[LineItem, ...] = ()
    tax_deduction: Decimal = Decimal("0")
    employee_id: Optional[int] = None


@dataclass(frozen=True)
class PayrollRecord:
    record_id: int
    employee_id: int
    month: int
    year: int
    basic_salary: Decimal
    allowances: tuple[LineItem, ...]
    deductions: tuple[LineItem, ...]
    gross_salary: Decimal
    tax_deduction: Decimal
    net_salary: Decimal
    status: PayrollStatus = PayrollStatus.PENDING
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None
    employee: Optional[Employee] = None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "employee": self.employee.to_dict() if self.employee else self.employee_id,
            "month": self.month,
            "year": self.year,
            "basicSalary": self.basic_salary,
            "allowances": [a.to_dict() for a in self.allowances],
            "deductions": [d.to_dict() for d in self.deductions],
            "grossSalary": self.gross_salary,
            "taxDeduction": self.tax_deduction,
            "netSalary": self.net_salary,
            "paymentDate": self.payment_date,
            "status": self.status.value,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class BulkFailure:
    employee_id: int
    employee_code: str
    reason: str

    def to_dict(self) -> dict:
        return {"employee": self.employee_id, "employeeId": self.employee_code, "reason": self.reason}


@dataclass
class BulkGenerationResult:
    success_count: int = 0
    failed_count: int = 0
    errors: list[BulkFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class PayrollStats:
    total_gross: Decimal = Decimal("0")
    total_net: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    count: int = 0


@dataclass
class PayrollJob:
    """Background bulk generation job, polled by id."""

    job_id: str
    month: int
    year: int
    status: JobStatus = JobStatus.QUEUED
    submitted_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    result: Optional[BulkGenerationResult] = None
    error: Optional[str] = None
