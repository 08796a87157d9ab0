from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.auth import can_view_employee, current_employee_id, login_required, roles_required
from ..common.datetime_utils import parse_iso_date
from ..common.responses import fail, ok
from ..core.enums import ReviewDecision, Role
from ..container import Container

_REVIEWERS = (Role.ADMIN, Role.HR, Role.MANAGER)


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.route("/api/leaves", methods=["POST"], endpoint="apply_leave")
    @login_required
    def apply_leave():
        body = request.get_json(silent=True) or {}
        leave = service.apply(
            employee_id=current_employee_id(),
            leave_type=body.get("leaveType"),
            start_date=parse_iso_date(body.get("startDate"), "startDate"),
            end_date=parse_iso_date(body.get("endDate"), "endDate"),
            duration=body.get("duration"),
            reason=body.get("reason", ""),
        )
        return ok(leave, message="Leave request submitted successfully", status=201)

    @app.route("/api/leaves/calendar", methods=["GET"], endpoint="leave_calendar")
    @login_required
    def leave_calendar():
        start = parse_iso_date(request.args.get("startDate"), "startDate")
        end = parse_iso_date(request.args.get("endDate"), "endDate")
        return ok(service.get_calendar(start, end))

    @app.route("/api/leaves/balance", methods=["GET"], endpoint="my_leave_balance")
    @app.route("/api/leaves/balance/<int:employee_id>", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance(employee_id: Optional[int] = None):
        target = employee_id if employee_id is not None else current_employee_id()
        if not can_view_employee(target):
            return fail("Not authorized to view this balance", 403)
        return ok(service.get_balance(target, year=request.args.get("year", type=int)))

    @app.route("/api/leaves/<int:request_id>", methods=["GET"], endpoint="get_leave")
    @login_required
    def get_leave(request_id: int):
        leave = service.get_request(request_id)
        if not can_view_employee(leave.employee_id):
            return fail("Not authorized to view this leave", 403)
        return ok(leave)

    def _review(request_id: int, decision: ReviewDecision, message: str):
        body = request.get_json(silent=True) or {}
        leave = service.review(
            request_id=request_id,
            approver_id=current_employee_id(),
            decision=decision,
            comments=body.get("comments", body.get("approverComments")),
        )
        return ok(leave, message=message)

    @app.route("/api/leaves/<int:request_id>/approve", methods=["PATCH"], endpoint="approve_leave")
    @roles_required(*_REVIEWERS)
    def approve_leave(request_id: int):
        return _review(request_id, ReviewDecision.APPROVE, "Leave approved successfully")

    @app.route("/api/leaves/<int:request_id>/reject", methods=["PATCH"], endpoint="reject_leave")
    @roles_required(*_REVIEWERS)
    def reject_leave(request_id: int):
        return _review(request_id, ReviewDecision.REJECT, "Leave rejected")
