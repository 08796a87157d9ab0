from __future__ import annotations

import json
from collections import defaultdict
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import EmploymentStatus, LineItemKind, PayrollStatus, Role
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..employees.model import Employee
from .model import LineItem, PayrollRecord, PayrollStats, SalaryStructure
from .repository import PayrollRepository, SalaryStructureRepository

_RECORD_SELECT = """
    SELECT p.record_id, p.employee_id, p.month, p.year, p.basic_salary,
           p.gross_salary, p.tax_deduction, p.net_salary, p.payment_date,
           p.status, p.notes,
           e.employee_code, e.first_name, e.last_name, e.email, e.role,
           e.employment_status, e.is_active
    FROM payroll_records p
    JOIN employees e ON e.employee_id = p.employee_id
"""


def _insert_line_items(cur, record_id: int, record: PayrollRecord) -> None:
    rows = [
        (record_id, LineItemKind.ALLOWANCE.value, pos, item.label, item.amount)
        for pos, item in enumerate(record.allowances)
    ] + [
        (record_id, LineItemKind.DEDUCTION.value, pos, item.label, item.amount)
        for pos, item in enumerate(record.deductions)
    ]
    if rows:
        cur.executemany(
            """
            INSERT INTO payroll_line_items(record_id, kind, position, label, amount)
            VALUES(%s,%s,%s,%s,%s)
            """,
            rows,
        )


def _load_line_items(cur, record_ids: Sequence[int]) -> dict[int, dict[str, list[LineItem]]]:
    items: dict[int, dict[str, list[LineItem]]] = defaultdict(lambda: {"allowance": [], "deduction": []})
    if not record_ids:
        return items
    placeholders = ",".join(["%s"] * len(record_ids))
    cur.execute(
        f"""
        SELECT record_id, kind, label, amount
        FROM payroll_line_items
        WHERE record_id IN ({placeholders})
        ORDER BY record_id ASC, kind ASC, position ASC
        """,
        tuple(int(i) for i in record_ids),
    )
    for r in fetchall(cur):
        items[int(r["record_id"])][r["kind"]].append(LineItem(label=r["label"], amount=Decimal(r["amount"])))
    return items


def _to_record(r: dict, items: dict[str, list[LineItem]]) -> PayrollRecord:
    employee = Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        email=r["email"],
        role=Role(r["role"]),
        employment_status=EmploymentStatus(r["employment_status"]),
        is_active=bool(r["is_active"]),
    )
    return PayrollRecord(
        record_id=int(r["record_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        basic_salary=Decimal(r["basic_salary"]),
        allowances=tuple(items["allowance"]),
        deductions=tuple(items["deduction"]),
        gross_salary=Decimal(r["gross_salary"]),
        tax_deduction=Decimal(r["tax_deduction"]),
        net_salary=Decimal(r["net_salary"]),
        status=PayrollStatus(r["status"]),
        payment_date=r.get("payment_date"),
        notes=r.get("notes"),
        employee=employee,
    )


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists(self, *, employee_id: int, month: int, year: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM payroll_records WHERE employee_id=%s AND month=%s AND year=%s",
                (int(employee_id), int(month), int(year)),
            )
            return fetchone(cur) is not None

    def create(self, record: PayrollRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll_records(
                        employee_id, month, year, basic_salary, gross_salary,
                        tax_deduction, net_salary, payment_date, status, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.employee_id),
                        int(record.month),
                        int(record.year),
                        record.basic_salary,
                        record.gross_salary,
                        record.tax_deduction,
                        record.net_salary,
                        record.payment_date,
                        record.status.value,
                        record.notes,
                    ),
                )
                record_id = int(cur.lastrowid)
                _insert_line_items(cur, record_id, record)
                return record_id
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateRecordError("Payroll already exists for this month") from e
            raise

    def get(self, *, record_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_RECORD_SELECT + " WHERE p.record_id=%s", (int(record_id),))
            r = fetchone(cur)
            if not r:
                return None
            items = _load_line_items(cur, [int(r["record_id"])])
            return _to_record(r, items[int(r["record_id"])])

    def update(self, record: PayrollRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET basic_salary=%s, gross_salary=%s, tax_deduction=%s, net_salary=%s,
                    payment_date=%s, status=%s, notes=%s
                WHERE record_id=%s
                """,
                (
                    record.basic_salary,
                    record.gross_salary,
                    record.tax_deduction,
                    record.net_salary,
                    record.payment_date,
                    record.status.value,
                    record.notes,
                    int(record.record_id),
                ),
            )
            # MySQL reports 0 affected rows when nothing changed, so check existence separately.
            cur.execute("SELECT 1 AS found FROM payroll_records WHERE record_id=%s", (int(record.record_id),))
            if fetchone(cur) is None:
                return False
            cur.execute("DELETE FROM payroll_line_items WHERE record_id=%s", (int(record.record_id),))
            _insert_line_items(cur, int(record.record_id), record)
            return True

    def list_for_employee(self, *, employee_id: int, limit: int) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _RECORD_SELECT
                + """
                WHERE p.employee_id=%s
                ORDER BY p.year DESC, p.month DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            rows = fetchall(cur)
            items = _load_line_items(cur, [int(r["record_id"]) for r in rows])
            return [_to_record(r, items[int(r["record_id"])]) for r in rows]

    def stats(self, *, month: int, year: int) -> PayrollStats:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(gross_salary), 0) AS total_gross,
                       COALESCE(SUM(net_salary), 0) AS total_net,
                       COALESCE(SUM(tax_deduction), 0) AS total_tax,
                       COUNT(*) AS cnt
                FROM payroll_records
                WHERE month=%s AND year=%s
                """,
                (int(month), int(year)),
            )
            r = fetchone(cur) or {}
            return PayrollStats(
                total_gross=Decimal(r.get("total_gross") or 0),
                total_net=Decimal(r.get("total_net") or 0),
                total_tax=Decimal(r.get("total_tax") or 0),
                count=int(r.get("cnt") or 0),
            )


def _items_from_json(raw) -> tuple[LineItem, ...]:
    data = json.loads(raw) if isinstance(raw, (str, bytes, bytearray)) else (raw or [])
    return tuple(LineItem(label=str(i["type"]), amount=Decimal(str(i["amount"]))) for i in data)


class MySQLSalaryStructureRepository(SalaryStructureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, *, employee_id: int) -> Optional[SalaryStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, basic_salary, tax_deduction, allowances, deductions
                FROM salary_structures
                WHERE employee_id=%s
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SalaryStructure(
                employee_id=int(r["employee_id"]),
                basic_salary=Decimal(r["basic_salary"]),
                allowances=_items_from_json(r["allowances"]),
                deductions=_items_from_json(r["deductions"]),
                tax_deduction=Decimal(r["tax_deduction"]),
            )
