from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from ...common.ledger import compute_gross, compute_net
from ..model import LineItem
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: gross = basic + allowances; net = gross - deductions - tax (not clamped)."""

    def gross(self, basic_salary: Decimal, allowances: Sequence[LineItem]) -> Decimal:
        return Decimal(compute_gross(basic_salary, allowances))

    def net(self, gross: Decimal, deductions: Sequence[LineItem], tax_deduction: Decimal) -> Decimal:
        return Decimal(compute_net(gross, deductions, tax_deduction))
