from __future__ import annotations

from flask import Flask, request

from ..common.auth import can_view_employee, login_required, roles_required
from ..common.responses import fail, ok
from ..core.enums import JobStatus, Role
from ..container import Container

_PAYROLL_ADMINS = (Role.ADMIN, Role.HR)

# API field name -> service field name
_UPDATE_FIELDS = {
    "basicSalary": "basic_salary",
    "allowances": "allowances",
    "deductions": "deductions",
    "taxDeduction": "tax_deduction",
    "status": "status",
    "paymentDate": "payment_date",
    "notes": "notes",
}


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service
    jobs = container.payroll_jobs

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="generate_payroll")
    @roles_required(*_PAYROLL_ADMINS)
    def generate_payroll():
        body = request.get_json(silent=True) or {}
        record = service.generate(
            employee_id=body.get("employee"),
            month=body.get("month"),
            year=body.get("year"),
            basic_salary=body.get("basicSalary"),
            allowances=body.get("allowances"),
            deductions=body.get("deductions"),
            tax_deduction=body.get("taxDeduction", 0),
            notes=body.get("notes"),
        )
        return ok(record, message="Payroll generated successfully", status=201)

    @app.route("/api/payroll/bulk-generate", methods=["POST"], endpoint="bulk_generate_payroll")
    @roles_required(*_PAYROLL_ADMINS)
    def bulk_generate_payroll():
        body = request.get_json(silent=True) or {}
        if body.get("background"):
            month, year = service.validate_period(body.get("month"), body.get("year"))
            job_id = jobs.submit(month, year)
            return ok({"jobId": job_id, "status": JobStatus.QUEUED}, message="Bulk payroll queued", status=202)

        result = service.bulk_generate(body.get("month"), body.get("year"))
        return ok(
            result,
            message=f"Payroll generated for {result.success_count} employees, {result.failed_count} failed",
        )

    @app.route("/api/payroll/jobs/<job_id>", methods=["GET"], endpoint="payroll_job")
    @roles_required(*_PAYROLL_ADMINS)
    def payroll_job(job_id: str):
        return ok(jobs.get(job_id))

    @app.route("/api/payroll/stats", methods=["GET"], endpoint="payroll_stats")
    @roles_required(*_PAYROLL_ADMINS)
    def payroll_stats():
        return ok(service.stats(request.args.get("month"), request.args.get("year")))

    @app.route("/api/payroll/<int:record_id>", methods=["GET"], endpoint="get_payroll")
    @login_required
    def get_payroll(record_id: int):
        record = service.get_record(record_id)
        if not can_view_employee(record.employee_id):
            return fail("Not authorized to view this payroll", 403)
        return ok(record)

    @app.route("/api/payroll/employee/<int:employee_id>", methods=["GET"], endpoint="employee_payroll")
    @login_required
    def employee_payroll(employee_id: int):
        if not can_view_employee(employee_id):
            return fail("Not authorized to view this payroll", 403)
        return ok(service.employee_history(employee_id))

    @app.route("/api/payroll/<int:record_id>", methods=["PUT"], endpoint="update_payroll")
    @roles_required(*_PAYROLL_ADMINS)
    def update_payroll(record_id: int):
        body = request.get_json(silent=True) or {}
        fields = {_UPDATE_FIELDS.get(k, k): v for k, v in body.items()}
        record = service.update(record_id, fields)
        return ok(record, message="Payroll updated successfully")
