from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import parse_iso_datetime
from ..common.validators import (
    optional_text,
    parse_enum,
    require_int_range,
    require_non_empty,
    require_non_negative,
)
from ..core.constants import MIN_PAYROLL_YEAR, MONEY_QUANTUM, MONTH_NAMES, PAYROLL_HISTORY_LIMIT
from ..core.enums import PayrollStatus
from ..core.exceptions import DuplicateRecordError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.notifier import Notifier
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import BulkFailure, BulkGenerationResult, LineItem, PayrollRecord, PayrollStats, SalaryStructure
from .repository import PayrollRepository, SalaryStructureRepository

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"basic_salary", "allowances", "deductions", "tax_deduction", "status", "payment_date", "notes"}


def parse_line_items(items: Optional[Iterable[Any]], field_name: str) -> tuple[LineItem, ...]:
    """Accept LineItem objects or {"type", "amount"} mappings, keeping their order."""
    out: list[LineItem] = []
    for idx, item in enumerate(items or []):
        if isinstance(item, LineItem):
            label, amount = item.label, item.amount
        elif isinstance(item, Mapping):
            label, amount = item.get("type"), item.get("amount")
        else:
            raise ValidationError(f"{field_name}[{idx}] must be an object with type and amount")
        out.append(
            LineItem(
                label=require_non_empty(label, f"{field_name}[{idx}].type"),
                amount=require_non_negative(amount, f"{field_name}[{idx}].amount", quantum=MONEY_QUANTUM),
            )
        )
    return tuple(out)


def salary_structure_from_config(template: Mapping[str, Any]) -> SalaryStructure:
    return SalaryStructure(
        basic_salary=require_non_negative(template.get("basic_salary"), "basic_salary", quantum=MONEY_QUANTUM),
        allowances=parse_line_items(template.get("allowances"), "allowances"),
        deductions=parse_line_items(template.get("deductions"), "deductions"),
        tax_deduction=require_non_negative(template.get("tax_deduction", 0), "tax_deduction", quantum=MONEY_QUANTUM),
    )


def normalize_salary_structure(structure: SalaryStructure) -> SalaryStructure:
    """Round stored amounts to the column scale and refuse negatives, as generate does."""
    return dataclasses.replace(
        structure,
        basic_salary=require_non_negative(structure.basic_salary, "basicSalary", quantum=MONEY_QUANTUM),
        allowances=parse_line_items(structure.allowances, "allowances"),
        deductions=parse_line_items(structure.deductions, "deductions"),
        tax_deduction=require_non_negative(structure.tax_deduction, "taxDeduction", quantum=MONEY_QUANTUM),
    )


class PayrollService:
    """Payroll records: single generation, update, bulk generation and statistics.

    Gross and net salary are derived on every create and every update, never frozen.
    """

    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        notifier: Notifier,
        *,
        salary_structures: Optional[SalaryStructureRepository] = None,
        default_structure: Optional[SalaryStructure] = None,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._payroll = payroll
        self._employees = employees
        self._notifier = notifier
        self._salary_structures = salary_structures
        self._default_structure = default_structure
        self._calculator = calculator or StandardPayrollCalculator()

    def _derive(self, record: PayrollRecord) -> PayrollRecord:
        gross = self._calculator.gross(record.basic_salary, record.allowances)
        net = self._calculator.net(gross, record.deductions, record.tax_deduction)
        return dataclasses.replace(record, gross_salary=gross, net_salary=net)

    @staticmethod
    def validate_period(month: Any, year: Any) -> tuple[int, int]:
        return (
            require_int_range(month, "month", low=1, high=12),
            require_int_range(year, "year", low=MIN_PAYROLL_YEAR),
        )

    def _create(self, *, employee: Employee, month: int, year: int, structure: SalaryStructure, notes=None) -> PayrollRecord:
        if self._payroll.exists(employee_id=employee.employee_id, month=month, year=year):
            raise DuplicateRecordError("Payroll already exists for this month")

        record = self._derive(
            PayrollRecord(
                record_id=0,
                employee_id=employee.employee_id,
                month=month,
                year=year,
                basic_salary=structure.basic_salary,
                allowances=structure.allowances,
                deductions=structure.deductions,
                gross_salary=Decimal("0"),
                tax_deduction=structure.tax_deduction,
                net_salary=Decimal("0"),
                status=PayrollStatus.PENDING,
                notes=notes,
            )
        )
        record_id = self._payroll.create(record)
        logger.info(
            "Payroll %s created for employee %s (%02d/%s): gross=%s net=%s",
            record_id,
            employee.employee_id,
            month,
            year,
            record.gross_salary,
            record.net_salary,
        )
        return dataclasses.replace(record, record_id=record_id, employee=employee)

    def _require_employee(self, employee_id: Any) -> Employee:
        employee = self._employees.get_by_id(require_int_range(employee_id, "employee", low=1))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def generate(
        self,
        *,
        employee_id: int,
        month: Any,
        year: Any,
        basic_salary: Any,
        allowances: Optional[Iterable[Any]] = None,
        deductions: Optional[Iterable[Any]] = None,
        tax_deduction: Any = 0,
        notes: Optional[str] = None,
    ) -> PayrollRecord:
        month, year = self.validate_period(month, year)
        structure = SalaryStructure(
            basic_salary=require_non_negative(basic_salary, "basicSalary", quantum=MONEY_QUANTUM),
            allowances=parse_line_items(allowances, "allowances"),
            deductions=parse_line_items(deductions, "deductions"),
            tax_deduction=require_non_negative(
                0 if tax_deduction is None else tax_deduction, "taxDeduction", quantum=MONEY_QUANTUM
            ),
        )
        employee = self._require_employee(employee_id)

        record = self._create(
            employee=employee, month=month, year=year, structure=structure, notes=optional_text(notes, "notes")
        )
        self._notify(employee, record)
        return record

    def _notify(self, employee: Employee, record: PayrollRecord) -> None:
        try:
            self._notifier.send_payroll_processed(
                email=employee.email,
                name=employee.first_name,
                month_name=MONTH_NAMES[record.month - 1],
                year=record.year,
                net_salary=record.net_salary,
            )
        except Exception:
            logger.exception("Failed to send payroll email for record %s", record.record_id)

    def update(self, record_id: int, fields: Mapping[str, Any]) -> PayrollRecord:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown payroll fields: {', '.join(sorted(unknown))}")

        existing = self.get_record(record_id)
        changes: dict[str, Any] = {}
        if "basic_salary" in fields:
            changes["basic_salary"] = require_non_negative(fields["basic_salary"], "basicSalary", quantum=MONEY_QUANTUM)
        if "allowances" in fields:
            changes["allowances"] = parse_line_items(fields["allowances"], "allowances")
        if "deductions" in fields:
            changes["deductions"] = parse_line_items(fields["deductions"], "deductions")
        if "tax_deduction" in fields:
            changes["tax_deduction"] = require_non_negative(fields["tax_deduction"], "taxDeduction", quantum=MONEY_QUANTUM)
        if "status" in fields:
            changes["status"] = parse_enum(PayrollStatus, fields["status"], "status")
        if "payment_date" in fields:
            changes["payment_date"] = parse_iso_datetime(fields["payment_date"], "paymentDate")
        if "notes" in fields:
            changes["notes"] = optional_text(fields["notes"], "notes")

        record = self._derive(dataclasses.replace(existing, **changes))
        if not self._payroll.update(record):
            raise NotFoundError("Payroll not found")
        logger.info("Payroll %s updated: gross=%s net=%s", record.record_id, record.gross_salary, record.net_salary)
        return record

    def _structure_for(self, employee: Employee) -> SalaryStructure:
        if self._salary_structures:
            structure = self._salary_structures.get(employee_id=employee.employee_id)
            if structure:
                return normalize_salary_structure(structure)
        if self._default_structure:
            return self._default_structure
        raise ValidationError("No salary structure configured")

    def bulk_generate(self, month: Any, year: Any) -> BulkGenerationResult:
        """Best-effort batch over all active employees; failures are collected, never raised."""
        month, year = self.validate_period(month, year)
        result = BulkGenerationResult()

        for employee in self._employees.list_active():
            try:
                structure = self._structure_for(employee)
                self._create(employee=employee, month=month, year=year, structure=structure)
                result.success_count += 1
            except DuplicateRecordError:
                result.failed_count += 1
                result.errors.append(
                    BulkFailure(employee.employee_id, employee.employee_code, "Payroll already exists")
                )
            except Exception as e:
                logger.warning("Bulk payroll failed for employee %s: %s", employee.employee_id, e)
                result.failed_count += 1
                result.errors.append(BulkFailure(employee.employee_id, employee.employee_code, str(e)))

        logger.info(
            "Bulk payroll %02d/%s: %d created, %d failed",
            month,
            year,
            result.success_count,
            result.failed_count,
        )
        return result

    def stats(self, month: Any, year: Any) -> PayrollStats:
        month, year = self.validate_period(month, year)
        return self._payroll.stats(month=month, year=year) or PayrollStats()

    def get_record(self, record_id: int) -> PayrollRecord:
        record = self._payroll.get(record_id=int(record_id))
        if not record:
            raise NotFoundError("Payroll not found")
        return record

    def employee_history(self, employee_id: int) -> Sequence[PayrollRecord]:
        return self._payroll.list_for_employee(employee_id=int(employee_id), limit=PAYROLL_HISTORY_LIMIT)
