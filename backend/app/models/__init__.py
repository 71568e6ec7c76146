from sqlmodel import SQLModel

from app.models.audit import AuditLog
from app.models.balance import LeaveBalance
from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.enums import (
    AuditAction,
    AuditEntityType,
    EmployeeRole,
    HalfDayPeriod,
    LeaveType,
    RequestStatus,
)
from app.models.request import LeaveRequest

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "EmployeeRole",
    "HalfDayPeriod",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveType",
    "RequestStatus",
    "SQLModel",
    "TimestampMixin",
    "UpdatedAtMixin",
    "UUIDBase",
]
