from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import EmploymentStatus, Role


@dataclass(frozen=True)
class Employee:
    """Read-only employee projection used by the payroll, leave and attendance modules.

    Note: Employee records are owned by the employee-management side; this package never writes them.
    """

    employee_id: int
    employee_code: str
    first_name: str
    last_name: str
    email: str
    role: Role
    employment_status: EmploymentStatus
    is_active: bool = True
    password_hash: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.employee_id,
            "employeeId": self.employee_code,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "role": self.role.value,
        }
