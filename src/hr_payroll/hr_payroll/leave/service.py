from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, parse_enum, require_min_length, require_positive
from ..core.constants import LEAVE_DAY_QUANTUM, MIN_LEAVE_REASON_LENGTH
from ..core.enums import LeaveStatus, LeaveType, ReviewDecision
from ..core.exceptions import (
    AlreadyReviewedError,
    InsufficientBalanceError,
    NotFoundError,
    OverlappingRequestError,
    ValidationError,
)
from ..employees.repository import EmployeeRepository
from ..notifications.notifier import Notifier
from .balance_service import LeaveBalanceStore
from .model import LeaveBalance, LeaveRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)

_BLOCKING_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


class LeaveService:
    """Leave request workflow: pending -> approved | rejected.

    Balances are attributed to the calendar year of the request's start date,
    both when checking at apply time and when debiting at approval time.
    """

    def __init__(
        self,
        requests: LeaveRequestRepository,
        balances: LeaveBalanceStore,
        employees: EmployeeRepository,
        notifier: Notifier,
    ):
        self._requests = requests
        self._balances = balances
        self._employees = employees
        self._notifier = notifier

    def apply(
        self,
        *,
        employee_id: int,
        leave_type: Any,
        start_date: date,
        end_date: date,
        duration: Any,
        reason: str,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or now_local()

        leave_type = parse_enum(LeaveType, leave_type, "leaveType")
        duration = require_positive(duration, "duration", quantum=LEAVE_DAY_QUANTUM)
        reason = require_min_length(reason, "Reason", MIN_LEAVE_REASON_LENGTH)
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")

        balance = self._balances.get_one(employee_id, start_date.year, leave_type)
        if not balance or balance.remaining_leaves < duration:
            raise InsufficientBalanceError("Insufficient leave balance")

        overlapping = self._requests.find_overlapping(
            employee_id=int(employee_id),
            start_date=start_date,
            end_date=end_date,
            statuses=_BLOCKING_STATUSES,
        )
        if overlapping:
            raise OverlappingRequestError("You already have a leave request for these dates")

        request_id = self._requests.create(
            employee_id=int(employee_id),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            duration=duration,
            reason=reason,
            applied_at=now,
        )
        logger.info(
            "Leave request %s applied by employee %s (%s, %s..%s, %s day(s))",
            request_id,
            employee_id,
            leave_type.value,
            start_date,
            end_date,
            duration,
        )
        return self.get_request(request_id)

    def review(
        self,
        *,
        request_id: int,
        approver_id: int,
        decision: Any,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        now = now or now_local()
        decision = parse_enum(ReviewDecision, decision, "decision")
        comments = optional_text(comments, "comments")

        req = self.get_request(request_id)
        if req.status != LeaveStatus.PENDING:
            raise AlreadyReviewedError("Leave has already been reviewed")

        approving = decision == ReviewDecision.APPROVE
        if approving and not self._balances.get_one(req.employee_id, req.start_date.year, req.leave_type):
            raise NotFoundError(f"No {req.leave_type.value} leave balance for {req.start_date.year}")

        status = LeaveStatus.APPROVED if approving else LeaveStatus.REJECTED
        decided = self._requests.decide(
            request_id=req.request_id,
            status=status,
            approver_id=int(approver_id),
            approver_comments=comments,
            reviewed_at=now,
        )
        if not decided:
            raise AlreadyReviewedError("Leave has already been reviewed")

        if approving:
            try:
                self._balances.debit(req.employee_id, req.start_date.year, req.leave_type, req.duration)
            except Exception:
                self._requests.reopen(request_id=req.request_id, from_status=LeaveStatus.APPROVED)
                raise

        logger.info("Leave request %s %s by %s", req.request_id, status.value, approver_id)
        self._notify(req, status, comments)
        return self.get_request(req.request_id)

    def _notify(self, req: LeaveRequest, status: LeaveStatus, comments: Optional[str]) -> None:
        try:
            employee = req.employee or self._employees.get_by_id(req.employee_id)
            if not employee:
                logger.warning("Leave %s: employee %s not found, skipping email", req.request_id, req.employee_id)
                return
            self._notifier.send_leave_status(
                email=employee.email,
                name=employee.first_name,
                leave_type=req.leave_type.value,
                status=status.value,
                comments=comments,
            )
        except Exception:
            logger.exception("Failed to send leave status email for request %s", req.request_id)

    def get_request(self, request_id: int) -> LeaveRequest:
        req = self._requests.get(request_id=int(request_id))
        if not req:
            raise NotFoundError("Leave not found")
        return req

    def get_balance(self, employee_id: int, *, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        return self._balances.get_balance(employee_id, year or now_local().year)

    def get_calendar(self, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")
        return self._requests.list_approved_between(start_date=start_date, end_date=end_date)
