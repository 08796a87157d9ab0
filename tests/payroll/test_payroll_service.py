from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from src.hr_payroll.hr_payroll.core.enums import PayrollStatus
from src.hr_payroll.hr_payroll.core.exceptions import DuplicateRecordError, NotFoundError, ValidationError
from src.hr_payroll.hr_payroll.payroll.model import LineItem, PayrollStats, SalaryStructure
from src.hr_payroll.hr_payroll.payroll.service import PayrollService

ALLOWANCES = [{"type": "HRA", "amount": 15000}, {"type": "Transport", "amount": 3000}]
DEDUCTIONS = [{"type": "PF", "amount": 5000}]


def _generate(service, *, employee_id=1, month=3, year=2025, **overrides):
    params = dict(
        employee_id=employee_id,
        month=month,
        year=year,
        basic_salary=50000,
        allowances=ALLOWANCES,
        deductions=DEDUCTIONS,
        tax_deduction=8000,
    )
    params.update(overrides)
    return service.generate(**params)


def test_generate_derives_gross_and_net(payroll_service, notifier):
    record = _generate(payroll_service)

    assert record.gross_salary == Decimal("68000")
    assert record.net_salary == Decimal("55000")
    assert record.status == PayrollStatus.PENDING
    assert [a.label for a in record.allowances] == ["HRA", "Transport"]
    assert notifier.payroll_emails == [
        {"email": "emp1@example.com", "month_name": "March", "year": 2025, "net_salary": Decimal("55000")}
    ]


def test_second_generate_for_same_period_is_duplicate(payroll_service, payroll_repo):
    original = _generate(payroll_service)

    with pytest.raises(DuplicateRecordError):
        _generate(payroll_service, basic_salary=99999)

    assert len(payroll_repo.rows) == 1
    assert payroll_repo.rows[original.record_id].basic_salary == Decimal("50000")


def test_unique_index_is_the_final_guard(payroll_service, payroll_repo, monkeypatch):
    _generate(payroll_service)
    # Simulate a concurrent writer that slipped past the existence check.
    monkeypatch.setattr(payroll_repo, "exists", lambda **_: False)

    with pytest.raises(DuplicateRecordError):
        _generate(payroll_service)

    assert len(payroll_repo.rows) == 1


def test_generate_unknown_employee(payroll_service):
    with pytest.raises(NotFoundError):
        _generate(payroll_service, employee_id=77)


@pytest.mark.parametrize(
    "overrides",
    [
        {"month": 13},
        {"month": 0},
        {"year": 1999},
        {"basic_salary": -1},
        {"tax_deduction": -5},
        {"allowances": [{"type": "", "amount": 10}]},
        {"deductions": [{"type": "PF", "amount": -10}]},
        {"allowances": ["HRA"]},
    ],
)
def test_generate_validation(payroll_service, payroll_repo, overrides):
    with pytest.raises(ValidationError):
        _generate(payroll_service, **overrides)
    assert payroll_repo.rows == {}


def test_notification_failure_keeps_record(payroll_service, payroll_repo, notifier):
    notifier.fail = True

    record = _generate(payroll_service)

    assert payroll_repo.rows[record.record_id].net_salary == Decimal("55000")


def test_update_rederives_gross_and_net(payroll_service, payroll_repo):
    record = _generate(payroll_service)

    updated = payroll_service.update(
        record.record_id,
        {
            "allowances": [{"type": "HRA", "amount": 20000}],
            "status": "processed",
            "payment_date": "2025-03-31T10:00:00",
        },
    )

    assert updated.gross_salary == Decimal("70000")
    assert updated.net_salary == Decimal("57000")
    assert updated.status == PayrollStatus.PROCESSED
    assert updated.payment_date == datetime(2025, 3, 31, 10, 0)
    stored = payroll_repo.rows[record.record_id]
    assert stored.gross_salary == Decimal("70000")
    assert stored.deductions == (LineItem("PF", Decimal("5000")),)


def test_update_unknown_record(payroll_service):
    with pytest.raises(NotFoundError):
        payroll_service.update(999, {"notes": "x"})


def test_update_rejects_unknown_fields(payroll_service):
    record = _generate(payroll_service)
    with pytest.raises(ValidationError):
        payroll_service.update(record.record_id, {"gross_salary": 1})


def test_bulk_generate_skips_existing_and_continues(payroll_service, payroll_repo, employees_repo):
    employees_repo.employees.pop(9)
    _generate(payroll_service, employee_id=2, month=4)

    result = payroll_service.bulk_generate(4, 2025)

    assert result.success_count == 2
    assert result.failed_count == 1
    assert [(e.employee_id, e.reason) for e in result.errors] == [(2, "Payroll already exists")]
    created = {r.employee_id for r in payroll_repo.rows.values() if (r.month, r.year) == (4, 2025)}
    assert created == {1, 2, 3}


def test_bulk_generate_uses_salary_structure_when_present(
    payroll_service, payroll_repo, employees_repo, salary_structures_repo
):
    employees_repo.employees = {1: employees_repo.employees[1]}
    salary_structures_repo.structures[1] = SalaryStructure(
        basic_salary=Decimal("40000"),
        allowances=(LineItem("HRA", Decimal("1000")),),
        deductions=(),
        tax_deduction=Decimal("500"),
        employee_id=1,
    )

    payroll_service.bulk_generate(5, 2025)

    (record,) = payroll_repo.rows.values()
    assert record.gross_salary == Decimal("41000")
    assert record.net_salary == Decimal("40500")


def test_bulk_generate_falls_back_to_default_template(payroll_service, payroll_repo):
    payroll_service.bulk_generate(5, 2025)

    nets = {r.net_salary for r in payroll_repo.rows.values()}
    assert nets == {Decimal("55000")}


def test_bulk_generate_isolates_unexpected_failures(payroll_repo, employees_repo, notifier):
    employees_repo.employees.pop(9)
    service = PayrollService(payroll_repo, employees_repo, notifier)

    result = service.bulk_generate(6, 2025)

    # No salary structure and no default template for anyone.
    assert result.success_count == 0
    assert result.failed_count == 3
    assert {e.reason for e in result.errors} == {"No salary structure configured"}


def test_bulk_generate_with_no_active_employees(payroll_service, employees_repo):
    employees_repo.employees.clear()

    result = payroll_service.bulk_generate(4, 2025)

    assert result.to_dict() == {"successCount": 0, "failedCount": 0, "errors": []}


def test_bulk_generate_validates_period(payroll_service):
    with pytest.raises(ValidationError):
        payroll_service.bulk_generate(13, 2025)


def test_bulk_generate_does_not_notify(payroll_service, notifier):
    payroll_service.bulk_generate(4, 2025)
    assert notifier.payroll_emails == []


def test_stats_for_empty_period_is_zero(payroll_service):
    assert payroll_service.stats(1, 2030) == PayrollStats()


def test_stats_sums_period(payroll_service):
    _generate(payroll_service, employee_id=1)
    _generate(payroll_service, employee_id=2)
    _generate(payroll_service, employee_id=3, month=4)

    stats = payroll_service.stats(3, 2025)

    assert stats.count == 2
    assert stats.total_gross == Decimal("136000")
    assert stats.total_net == Decimal("110000")
    assert stats.total_tax == Decimal("16000")


def test_employee_history_newest_first_limited_to_twelve(payroll_service):
    for month in range(1, 13):
        _generate(payroll_service, month=month, year=2024)
    _generate(payroll_service, month=1, year=2025)

    history = payroll_service.employee_history(1)

    assert len(history) == 12
    assert (history[0].year, history[0].month) == (2025, 1)
    assert (history[-1].year, history[-1].month) == (2024, 2)


def test_get_record_unknown(payroll_service):
    with pytest.raises(NotFoundError):
        payroll_service.get_record(1)


def test_sub_cent_amounts_are_rounded_before_deriving(payroll_service):
    record = _generate(
        payroll_service,
        basic_salary="100",
        allowances=[{"type": "A", "amount": "0.005"}, {"type": "B", "amount": "0.005"}],
        deductions=[],
        tax_deduction=0,
    )

    assert [a.amount for a in record.allowances] == [Decimal("0.01"), Decimal("0.01")]
    assert record.gross_salary == Decimal("100.02")
    assert record.gross_salary == record.basic_salary + sum(a.amount for a in record.allowances)


def test_fractional_month_is_rejected(payroll_service):
    with pytest.raises(ValidationError):
        _generate(payroll_service, month=3.9)


def test_bulk_generate_rounds_salary_structure_amounts(
    payroll_service, payroll_repo, employees_repo, salary_structures_repo
):
    employees_repo.employees = {1: employees_repo.employees[1]}
    salary_structures_repo.structures[1] = SalaryStructure(
        basic_salary=Decimal("100"),
        allowances=(LineItem("HRA", Decimal("0.005")), LineItem("T", Decimal("0.005"))),
        employee_id=1,
    )

    result = payroll_service.bulk_generate(4, 2025)

    assert result.success_count == 1
    (record,) = payroll_repo.rows.values()
    assert [a.amount for a in record.allowances] == [Decimal("0.01"), Decimal("0.01")]
    assert record.gross_salary == Decimal("100.02")
    assert record.gross_salary == record.basic_salary + sum(a.amount for a in record.allowances)


def test_bulk_generate_reports_negative_structure_amount(
    payroll_service, payroll_repo, employees_repo, salary_structures_repo
):
    employees_repo.employees = {1: employees_repo.employees[1]}
    salary_structures_repo.structures[1] = SalaryStructure(
        basic_salary=Decimal("100"),
        allowances=(LineItem("HRA", Decimal("-500")),),
        employee_id=1,
    )

    result = payroll_service.bulk_generate(4, 2025)

    assert (result.success_count, result.failed_count) == (0, 1)
    assert result.errors[0].reason == "allowances[0].amount must be >= 0"
    assert payroll_repo.rows == {}
