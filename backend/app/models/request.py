# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.enums import RequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_employee_status", "employee_id", "status"),
        sa.Index("ix_leave_request_dates", "start_date", "end_date"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    is_half_day: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    half_day_period: str | None = Field(default=None, max_length=20)
    reason: str
    days_count: Decimal = Field(sa_type=sa.Numeric(6, 2))
    status: str = Field(
        default=RequestStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    rejection_reason: str | None = None
    decided_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    decided_by: uuid.UUID | None = None
