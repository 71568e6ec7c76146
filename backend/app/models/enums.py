from __future__ import annotations

import enum


class LeaveType(enum.StrEnum):
    """Known leave types. Requests may carry other values."""

    CASUAL = "casual"
    SICK = "sick"
    EARNED = "earned"
    STUDY = "study"
    WORK_FROM_HOME = "work_from_home"
    LOSS_OF_PAY = "loss_of_pay"


class HalfDayPeriod(enum.StrEnum):
    """Which half of the day a half-day request covers."""

    MORNING = "morning"
    AFTERNOON = "afternoon"


class EmployeeRole(enum.StrEnum):
    """Role of an employee in the approval workflow."""

    EMPLOYEE = "employee"
    APPROVER = "approver"


class RequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, target: RequestStatus) -> bool:
        """Return True if moving from this status to ``target`` is legal."""
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED, RequestStatus.CANCELLED}),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
}


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    REQUEST = "REQUEST"
    BALANCE = "BALANCE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    RESET = "RESET"
