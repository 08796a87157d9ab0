from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from src.hr_payroll.hr_payroll.core.enums import LeaveType
from src.hr_payroll.hr_payroll.core.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
)
from src.hr_payroll.hr_payroll.leave.balance_service import LeaveBalanceStore


def test_debit_keeps_remaining_equal_to_total_minus_used(balances_repo):
    bal = balances_repo.provision(1, 2025, LeaveType.VACATION, 15, used=2)
    store = LeaveBalanceStore(balances_repo)

    updated = store.debit(1, 2025, LeaveType.VACATION, Decimal("1.5"))

    assert updated.used_leaves == Decimal("3.5")
    assert updated.remaining_leaves == Decimal("11.5")
    assert balances_repo.rows[bal.balance_id] == updated


def test_debit_retries_after_losing_a_race(balances_repo):
    bal = balances_repo.provision(1, 2025, LeaveType.SICK, 10)
    balances_repo.lose_races = 2
    store = LeaveBalanceStore(balances_repo, max_attempts=3)

    store.debit(1, 2025, LeaveType.SICK, Decimal("1"))

    assert balances_repo.rows[bal.balance_id].used_leaves == Decimal("1")


def test_debit_gives_up_after_max_attempts(balances_repo):
    bal = balances_repo.provision(1, 2025, LeaveType.SICK, 10)
    balances_repo.lose_races = 3
    store = LeaveBalanceStore(balances_repo, max_attempts=3)

    with pytest.raises(ConflictError):
        store.debit(1, 2025, LeaveType.SICK, Decimal("1"))

    assert balances_repo.rows[bal.balance_id].used_leaves == Decimal("0")


def test_debit_refuses_negative_remaining(balances_repo):
    balances_repo.provision(1, 2025, LeaveType.SICK, 2)
    store = LeaveBalanceStore(balances_repo)

    with pytest.raises(InsufficientBalanceError):
        store.debit(1, 2025, LeaveType.SICK, Decimal("3"))


def test_debit_missing_balance(balances_repo):
    with pytest.raises(NotFoundError):
        LeaveBalanceStore(balances_repo).debit(1, 2025, LeaveType.SICK, Decimal("1"))


def test_schema_has_one_balance_per_employee_year_type():
    schema = (Path(__file__).resolve().parents[2] / "database" / "schema.sql").read_text(encoding="utf-8")
    assert "UNIQUE KEY uq_leave_balance (employee_id, year, leave_type)" in schema


def test_get_balance_filters_by_year(balances_repo):
    balances_repo.provision(1, 2024, LeaveType.SICK, 10)
    this_year = balances_repo.provision(1, 2025, LeaveType.SICK, 10)
    other_type = balances_repo.provision(1, 2025, LeaveType.CASUAL, 6)

    assert LeaveBalanceStore(balances_repo).get_balance(1, 2025) == [this_year, other_type]
