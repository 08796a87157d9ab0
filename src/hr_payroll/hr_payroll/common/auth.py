from __future__ import annotations

from functools import wraps

from flask import session

from ..core.enums import Role
from .responses import fail


def current_employee_id() -> int:
    return int(session["employee_id"])


def current_role() -> Role:
    return Role(session["role"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "employee_id" not in session:
            return fail("Not authorized to access this route", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "employee_id" not in session:
                return fail("Not authorized to access this route", 401)
            if session.get("role") not in allowed:
                return fail(f"Role {session.get('role')} is not authorized to access this route", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def can_view_employee(employee_id: int) -> bool:
    """Staff roles may read anyone; employees only themselves."""
    if current_role() in {Role.ADMIN, Role.HR}:
        return True
    return int(employee_id) == current_employee_id()
