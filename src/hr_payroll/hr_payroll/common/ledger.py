"""Ledger arithmetic for salaries and leave balances.

Pure functions; re-run them whenever line items change, never cache the result.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol, Union

Number = Union[int, Decimal]


class HasAmount(Protocol):
    amount: Number


def total_amount(items: Iterable[HasAmount]) -> Number:
    return sum((item.amount for item in items), 0)


def compute_gross(basic_salary: Number, allowances: Iterable[HasAmount]) -> Number:
    return basic_salary + total_amount(allowances)


def compute_net(gross: Number, deductions: Iterable[HasAmount], tax_deduction: Number) -> Number:
    return gross - total_amount(deductions) - tax_deduction


def compute_remaining(total: Number, used: Number) -> Number:
    # Not clamped: callers decide whether a negative remainder is acceptable.
    return total - used
