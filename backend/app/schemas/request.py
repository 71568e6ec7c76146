# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.enums import HalfDayPeriod, RequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateRequestPayload(BaseModel):
    """Request body for submitting a new leave request.

    Field rules (reason length, half-day period, date order) are enforced by
    the lifecycle service so they surface as domain errors.
    """

    leave_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    reason: str = Field(max_length=1000)
    is_half_day: bool = False
    half_day_period: HalfDayPeriod | None = None


class EditRequestPayload(BaseModel):
    """Partial update of a pending request. Omitted fields keep their value."""

    leave_type: str | None = Field(default=None, max_length=50)
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=1000)
    is_half_day: bool | None = None
    half_day_period: HalfDayPeriod | None = None


class RejectPayload(BaseModel):
    """Request body for rejecting a request."""

    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class RequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: str
    start_date: date
    end_date: date
    is_half_day: bool
    half_day_period: HalfDayPeriod | None
    reason: str
    days_count: Decimal
    status: RequestStatus
    rejection_reason: str | None
    decided_at: datetime | None
    decided_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class RequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[RequestResponse]
    total: int
