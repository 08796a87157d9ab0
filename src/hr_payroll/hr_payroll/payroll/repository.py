from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import PayrollRecord, PayrollStats, SalaryStructure


class PayrollRepository(Protocol):
    def exists(self, *, employee_id: int, month: int, year: int) -> bool:
        raise NotImplementedError

    def create(self, record: PayrollRecord) -> int:
        """Insert record and line items; DuplicateRecordError on (employee, month, year) clash."""

        raise NotImplementedError

    def get(self, *, record_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def update(self, record: PayrollRecord) -> bool:
        """Replace the mutable fields and line items of an existing record."""

        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, limit: int) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def stats(self, *, month: int, year: int) -> PayrollStats:
        raise NotImplementedError


class SalaryStructureRepository(Protocol):
    def get(self, *, employee_id: int) -> Optional[SalaryStructure]:
        raise NotImplementedError
