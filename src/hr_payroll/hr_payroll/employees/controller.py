from __future__ import annotations

import logging

from flask import Flask, request, session

from ..common.auth import current_employee_id, login_required
from ..common.responses import ok
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        body = request.get_json(silent=True) or {}
        employee = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session["employee_id"] = employee.employee_id
        session["role"] = employee.role.value
        logger.info("Employee %s logged in", employee.employee_id)
        return ok(employee, message="Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return ok(None, message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        return ok(container.auth_service.get_employee(current_employee_id()))
