from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Sequence

from ..model import LineItem


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def gross(self, basic_salary: Decimal, allowances: Sequence[LineItem]) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def net(self, gross: Decimal, deductions: Sequence[LineItem], tax_deduction: Decimal) -> Decimal:
        raise NotImplementedError
