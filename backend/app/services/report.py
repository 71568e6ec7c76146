"""Reporting service: leave summaries, calendar occupancy, dashboards and audit log queries."""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.models.audit import AuditLog
from app.models.enums import HalfDayPeriod, RequestStatus
from app.models.request import LeaveRequest
from app.schemas.report import (
    AuditLogEntryResponse,
    AuditLogListResponse,
    CalendarDay,
    CalendarResponse,
    DashboardStatsResponse,
    LeaveOccupancy,
    LeaveSummaryResponse,
    LeaveTypeSummary,
    OnLeaveResponse,
)
from app.services.authorization import Capability, authorize
from app.services.balance import _build_balance_response, _list_balances
from app.services.employee import get_employee_service

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext


async def _approved_overlapping(session: AsyncSession, start: date, end: date) -> list[LeaveRequest]:
    """Approved requests whose date range intersects [start, end]."""
    result = await session.execute(
        select(LeaveRequest)
        .where(
            col(LeaveRequest.status) == RequestStatus.APPROVED.value,
            col(LeaveRequest.start_date) <= end,
            col(LeaveRequest.end_date) >= start,
        )
        .order_by(col(LeaveRequest.start_date), col(LeaveRequest.employee_id))
    )
    return list(result.scalars().all())


async def _to_occupancy(requests: list[LeaveRequest]) -> list[LeaveOccupancy]:
    employee_service = get_employee_service()
    names: dict[uuid.UUID, str | None] = {}
    items: list[LeaveOccupancy] = []
    for r in requests:
        if r.employee_id not in names:
            employee = await employee_service.get_employee(r.employee_id)
            names[r.employee_id] = employee.full_name if employee else None
        items.append(
            LeaveOccupancy(
                request_id=r.id,
                employee_id=r.employee_id,
                employee_name=names[r.employee_id],
                leave_type=r.leave_type,
                start_date=r.start_date,
                end_date=r.end_date,
                is_half_day=r.is_half_day,
                half_day_period=HalfDayPeriod(r.half_day_period) if r.half_day_period else None,
            )
        )
    return items


async def get_leave_summary(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    year: int,
) -> LeaveSummaryResponse:
    """Per-type day totals for requests starting in ``year``, split by status, plus balances."""
    authorize(auth, Capability.VIEW, owner_id=employee_id, message="Not authorized to view this report")

    result = await session.execute(
        select(
            col(LeaveRequest.leave_type),
            col(LeaveRequest.status),
            func.coalesce(func.sum(col(LeaveRequest.days_count)), 0),
        )
        .where(
            col(LeaveRequest.employee_id) == employee_id,
            col(LeaveRequest.start_date) >= date(year, 1, 1),
            col(LeaveRequest.start_date) <= date(year, 12, 31),
        )
        .group_by(col(LeaveRequest.leave_type), col(LeaveRequest.status))
    )

    summaries: dict[str, LeaveTypeSummary] = {}
    for leave_type, status, days in result.all():
        days = Decimal(str(days))
        summary = summaries.setdefault(leave_type, LeaveTypeSummary(leave_type=leave_type))
        # Cancelled requests count toward the total but have no column of their own.
        summary.total_days += days
        if status == RequestStatus.APPROVED.value:
            summary.approved_days += days
        elif status == RequestStatus.PENDING.value:
            summary.pending_days += days
        elif status == RequestStatus.REJECTED.value:
            summary.rejected_days += days

    balances = await _list_balances(session, employee_id, year)
    return LeaveSummaryResponse(
        employee_id=employee_id,
        year=year,
        items=[summaries[k] for k in sorted(summaries)],
        balances=[_build_balance_response(b) for b in balances],
    )


async def get_leave_calendar(session: AsyncSession, year: int, month: int) -> CalendarResponse:
    """Approved leave laid out per calendar day of a month."""
    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])

    occupancy = await _to_occupancy(await _approved_overlapping(session, first_day, last_day))

    by_day: dict[date, list[LeaveOccupancy]] = defaultdict(list)
    for item in occupancy:
        current = max(item.start_date, first_day)
        end = min(item.end_date, last_day)
        while current <= end:
            by_day[current].append(item)
            current += timedelta(days=1)

    days: list[CalendarDay] = []
    current = first_day
    while current <= last_day:
        days.append(CalendarDay(day=current, entries=by_day.get(current, [])))
        current += timedelta(days=1)

    return CalendarResponse(year=year, month=month, days=days)


async def get_on_leave_today(session: AsyncSession, today: date | None = None) -> OnLeaveResponse:
    """Approved leave covering ``today``."""
    today = today or date.today()
    items = await _to_occupancy(await _approved_overlapping(session, today, today))
    return OnLeaveResponse(day=today, items=items, total=len(items))


async def get_dashboard_stats(
    session: AsyncSession,
    auth: AuthContext,
    today: date | None = None,
) -> DashboardStatsResponse:
    """Headline numbers for approvers: headcount, who is out today, queue length."""
    authorize(auth, Capability.VIEW_ALL, message="Only approvers can view dashboard statistics")
    today = today or date.today()

    employees = await get_employee_service().list_employees()

    on_leave_result = await session.execute(
        select(func.count(func.distinct(col(LeaveRequest.employee_id)))).where(
            col(LeaveRequest.status) == RequestStatus.APPROVED.value,
            col(LeaveRequest.start_date) <= today,
            col(LeaveRequest.end_date) >= today,
        )
    )
    pending_result = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .where(col(LeaveRequest.status) == RequestStatus.PENDING.value)
    )

    return DashboardStatsResponse(
        total_employees=len(employees),
        on_leave_today=on_leave_result.scalar_one(),
        pending_requests=pending_result.scalar_one(),
    )


async def query_audit_log(
    session: AsyncSession,
    auth: AuthContext,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (approver only)."""
    authorize(auth, Capability.VIEW_ALL, message="Only approvers can read the audit log")

    filters = []
    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= datetime.combine(start_date, time.min, tzinfo=UTC))
    if end_date is not None:
        day_after = end_date + timedelta(days=1)
        filters.append(col(AuditLog.created_at) < datetime.combine(day_after, time.min, tzinfo=UTC))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[
            AuditLogEntryResponse(
                id=e.id,
                actor_id=e.actor_id,
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                action=e.action,
                before_json=e.before_json,
                after_json=e.after_json,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
    )
