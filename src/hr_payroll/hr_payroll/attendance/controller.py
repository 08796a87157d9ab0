from __future__ import annotations

from flask import Flask, request

from ..common.auth import can_view_employee, current_employee_id, login_required, roles_required
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.responses import fail, ok
from ..core.enums import Role
from ..container import Container

_ATTENDANCE_ADMINS = (Role.ADMIN, Role.HR)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="check_in")
    @login_required
    def check_in():
        body = request.get_json(silent=True) or {}
        record = service.check_in(
            current_employee_id(),
            location=body.get("location"),
            notes=body.get("notes"),
        )
        return ok(record, message="Checked in successfully", status=201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="check_out")
    @login_required
    def check_out():
        return ok(service.check_out(current_employee_id()), message="Checked out successfully")

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @roles_required(*_ATTENDANCE_ADMINS)
    def mark_attendance():
        body = request.get_json(silent=True) or {}
        record = service.mark_manual(
            employee_id=body.get("employee"),
            work_date=parse_iso_date(body.get("date"), "date"),
            status=body.get("status"),
            check_in=body.get("checkIn"),
            check_out=body.get("checkOut"),
            location=body.get("location"),
            notes=body.get("notes"),
            overtime_hours=body.get("overtimeHours"),
        )
        return ok(record, message="Attendance marked successfully")

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @roles_required(*_ATTENDANCE_ADMINS)
    def attendance_report():
        employee = request.args.get("employee")
        report = service.report(
            parse_iso_date(request.args.get("startDate"), "startDate"),
            parse_iso_date(request.args.get("endDate"), "endDate"),
            employee_id=int(employee) if employee and employee.isdigit() else None,
        )
        return ok(report)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="todays_attendance")
    @roles_required(*_ATTENDANCE_ADMINS)
    def todays_attendance():
        return ok(service.todays_attendance())

    @app.route("/api/attendance/<int:employee_id>", methods=["GET"], endpoint="employee_attendance")
    @login_required
    def employee_attendance(employee_id: int):
        if not can_view_employee(employee_id):
            return fail("Not authorized to view this attendance", 403)
        today = now_local()
        month = request.args.get("month", today.month)
        year = request.args.get("year", today.year)
        return ok(service.employee_month(employee_id, month, year))
