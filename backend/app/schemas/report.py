# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from app.models.enums import HalfDayPeriod
from app.schemas.balance import BalanceResponse


class AuditLogEntryResponse(BaseModel):
    """Response schema for a single audit log entry."""

    id: uuid.UUID
    actor_id: uuid.UUID
    entity_type: str
    entity_id: uuid.UUID
    action: str
    before_json: dict[str, Any] | None
    after_json: dict[str, Any] | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated list of audit log entries."""

    items: list[AuditLogEntryResponse]
    total: int


class LeaveTypeSummary(BaseModel):
    """Day totals for one leave type, split by status."""

    leave_type: str
    total_days: Decimal = Decimal(0)
    approved_days: Decimal = Decimal(0)
    pending_days: Decimal = Decimal(0)
    rejected_days: Decimal = Decimal(0)


class LeaveSummaryResponse(BaseModel):
    """Per-type leave summary and balances of one employee for a year."""

    employee_id: uuid.UUID
    year: int
    items: list[LeaveTypeSummary]
    balances: list[BalanceResponse]


class LeaveOccupancy(BaseModel):
    """An approved request as it appears on a calendar or 'on leave' list."""

    request_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str | None
    leave_type: str
    start_date: date
    end_date: date
    is_half_day: bool
    half_day_period: HalfDayPeriod | None


class CalendarDay(BaseModel):
    """Everyone on approved leave on one calendar day."""

    day: date
    entries: list[LeaveOccupancy]


class CalendarResponse(BaseModel):
    """Month view of approved leave."""

    year: int
    month: int
    days: list[CalendarDay]


class OnLeaveResponse(BaseModel):
    """Approved leave covering a given day."""

    day: date
    items: list[LeaveOccupancy]
    total: int


class DashboardStatsResponse(BaseModel):
    """Headline numbers for the approver dashboard."""

    total_employees: int
    on_leave_today: int
    pending_requests: int
