# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query

from app.api.deps import AuthDep
from app.db import SessionDep
from app.schemas.report import (
    AuditLogListResponse,
    CalendarResponse,
    DashboardStatsResponse,
    LeaveSummaryResponse,
    OnLeaveResponse,
)
from app.services import report as report_service

reports_router = APIRouter(tags=["reports"])


@reports_router.get("/reports/summary", response_model=LeaveSummaryResponse)
async def get_leave_summary(
    session: SessionDep,
    auth: AuthDep,
    year: int = Query(ge=1900, le=9999),
    employee_id: uuid.UUID | None = Query(default=None),
) -> LeaveSummaryResponse:
    """Per-type leave summary for an employee (defaults to the caller)."""
    return await report_service.get_leave_summary(session, auth, employee_id or auth.user_id, year)


@reports_router.get("/reports/calendar", response_model=CalendarResponse)
async def get_leave_calendar(
    session: SessionDep,
    auth: AuthDep,
    year: int = Query(ge=1900, le=9999),
    month: int = Query(ge=1, le=12),
) -> CalendarResponse:
    """Approved leave for every day of a month."""
    return await report_service.get_leave_calendar(session, year, month)


@reports_router.get("/reports/on-leave-today", response_model=OnLeaveResponse)
async def get_on_leave_today(
    session: SessionDep,
    auth: AuthDep,
) -> OnLeaveResponse:
    """Who is on approved leave today."""
    return await report_service.get_on_leave_today(session)


@reports_router.get("/reports/dashboard", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    session: SessionDep,
    auth: AuthDep,
) -> DashboardStatsResponse:
    """Headline numbers for the approver dashboard."""
    return await report_service.get_dashboard_stats(session, auth)


@reports_router.get("/audit-log", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: AuthDep,
    entity_type: str | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: str | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (approver only)."""
    return await report_service.query_audit_log(
        session,
        auth,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )
