"""Tests for reporting: leave summaries, the leave calendar, who is out today,
dashboard headline numbers, and audit log queries.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest

from app.exceptions import UnauthorizedError
from app.models.enums import EmployeeRole, HalfDayPeriod
from app.schemas.auth import AuthContext
from app.schemas.request import CreateRequestPayload
from app.services import report as report_service
from app.services import request as request_service
from app.services.employee import EmployeeInfo, InMemoryEmployeeService, set_employee_service

if TYPE_CHECKING:
    from collections.abc import Iterator

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.request import RequestResponse

EMPLOYEE_ID = uuid.uuid4()
OTHER_EMPLOYEE_ID = uuid.uuid4()
APPROVER_ID = uuid.uuid4()

EMPLOYEE = AuthContext(user_id=EMPLOYEE_ID)
OTHER_EMPLOYEE = AuthContext(user_id=OTHER_EMPLOYEE_ID)
APPROVER = AuthContext(user_id=APPROVER_ID, role=EmployeeRole.APPROVER)

EMPLOYEE_HEADERS = {"X-User-Id": str(EMPLOYEE_ID), "X-Role": "employee"}
APPROVER_HEADERS = {"X-User-Id": str(APPROVER_ID), "X-Role": "approver"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _seed_employee_service() -> Iterator[None]:
    """Seed the in-memory employee directory for every test."""
    svc = InMemoryEmployeeService()
    svc.seed(EmployeeInfo(id=EMPLOYEE_ID, full_name="Asha Rao", email="asha@example.com"))
    svc.seed(EmployeeInfo(id=OTHER_EMPLOYEE_ID, full_name="Ben Okafor", email="ben@example.com"))
    svc.seed(
        EmployeeInfo(id=APPROVER_ID, full_name="Carmen Diaz", email="carmen@example.com", role=EmployeeRole.APPROVER)
    )
    set_employee_service(svc)
    yield
    set_employee_service(InMemoryEmployeeService())


# ---------------------------------------------------------------------------
# Test helpers
# ---------------------------------------------------------------------------


async def _create(
    session: AsyncSession,
    start_date: date,
    end_date: date,
    auth: AuthContext = EMPLOYEE,
    leave_type: str = "casual",
    **extra: Any,
) -> RequestResponse:
    return await request_service.create_request(
        session,
        auth,
        CreateRequestPayload(
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason="Out of office",
            **extra,
        ),
    )


async def _approved(session: AsyncSession, start_date: date, end_date: date, **kwargs: Any) -> RequestResponse:
    created = await _create(session, start_date, end_date, **kwargs)
    return await request_service.approve_request(session, APPROVER, created.id)


async def _seed_february(session: AsyncSession) -> None:
    """Asha out Jan 30..Feb 2, Ben out the morning of Feb 2, Asha pending on Feb 5."""
    await _approved(session, date(2024, 1, 30), date(2024, 2, 2))
    await _approved(
        session,
        date(2024, 2, 2),
        date(2024, 2, 2),
        auth=OTHER_EMPLOYEE,
        is_half_day=True,
        half_day_period=HalfDayPeriod.MORNING,
    )
    await _create(session, date(2024, 2, 5), date(2024, 2, 5))


# ---------------------------------------------------------------------------
# Leave summary
# ---------------------------------------------------------------------------


async def test_summary_splits_by_status(db_session: AsyncSession) -> None:
    await _approved(db_session, date(2024, 1, 1), date(2024, 1, 3))
    await _create(db_session, date(2024, 2, 1), date(2024, 2, 1), leave_type="sick")
    rejected = await _create(db_session, date(2024, 3, 4), date(2024, 3, 5))
    await request_service.reject_request(db_session, APPROVER, rejected.id)
    cancelled = await _create(db_session, date(2024, 4, 1), date(2024, 4, 1), leave_type="earned")
    await request_service.cancel_request(db_session, EMPLOYEE, cancelled.id)
    await _create(db_session, date(2025, 1, 6), date(2025, 1, 6))

    summary = await report_service.get_leave_summary(db_session, EMPLOYEE, EMPLOYEE_ID, 2024)

    assert summary.year == 2024
    assert [i.leave_type for i in summary.items] == ["casual", "earned", "sick"]
    casual, earned, sick = summary.items
    assert casual.total_days == Decimal(5)
    assert casual.approved_days == Decimal(3)
    assert casual.rejected_days == Decimal(2)
    assert casual.pending_days == Decimal(0)
    assert sick.pending_days == Decimal(1)
    # Cancelled days only show up in the total.
    assert earned.total_days == Decimal(1)
    assert earned.approved_days == earned.pending_days == earned.rejected_days == Decimal(0)

    assert [b.leave_type for b in summary.balances] == ["casual"]
    assert summary.balances[0].used == Decimal(3)


async def test_summary_empty_year(db_session: AsyncSession) -> None:
    summary = await report_service.get_leave_summary(db_session, EMPLOYEE, EMPLOYEE_ID, 2030)
    assert summary.items == []
    assert summary.balances == []


async def test_summary_of_other_employee_forbidden(db_session: AsyncSession) -> None:
    with pytest.raises(UnauthorizedError):
        await report_service.get_leave_summary(db_session, OTHER_EMPLOYEE, EMPLOYEE_ID, 2024)


async def test_summary_visible_to_approver(db_session: AsyncSession) -> None:
    await _approved(db_session, date(2024, 1, 1), date(2024, 1, 1))
    summary = await report_service.get_leave_summary(db_session, APPROVER, EMPLOYEE_ID, 2024)
    assert summary.items[0].approved_days == Decimal(1)


# ---------------------------------------------------------------------------
# Calendar and on-leave
# ---------------------------------------------------------------------------


async def test_calendar_lays_out_approved_leave(db_session: AsyncSession) -> None:
    await _seed_february(db_session)

    cal = await report_service.get_leave_calendar(db_session, 2024, 2)

    assert (cal.year, cal.month) == (2024, 2)
    assert len(cal.days) == 29
    assert cal.days[0].day == date(2024, 2, 1)
    assert [e.employee_name for e in cal.days[0].entries] == ["Asha Rao"]
    assert {e.employee_name for e in cal.days[1].entries} == {"Asha Rao", "Ben Okafor"}
    assert cal.days[2].entries == []
    # Pending leave on Feb 5 is not shown.
    assert cal.days[4].entries == []


async def test_calendar_clips_to_month(db_session: AsyncSession) -> None:
    await _seed_february(db_session)
    cal = await report_service.get_leave_calendar(db_session, 2024, 1)
    occupied = [d.day for d in cal.days if d.entries]
    assert occupied == [date(2024, 1, 30), date(2024, 1, 31)]


async def test_on_leave_today(db_session: AsyncSession) -> None:
    await _seed_february(db_session)

    result = await report_service.get_on_leave_today(db_session, today=date(2024, 2, 2))

    assert result.day == date(2024, 2, 2)
    assert result.total == 2
    half_day = next(i for i in result.items if i.employee_id == OTHER_EMPLOYEE_ID)
    assert half_day.is_half_day is True
    assert half_day.half_day_period == HalfDayPeriod.MORNING


async def test_on_leave_today_unknown_employee_has_no_name(db_session: AsyncSession) -> None:
    stranger = AuthContext(user_id=uuid.uuid4())
    await _approved(db_session, date(2024, 6, 3), date(2024, 6, 3), auth=stranger)

    result = await report_service.get_on_leave_today(db_session, today=date(2024, 6, 3))
    assert result.total == 1
    assert result.items[0].employee_name is None


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def test_dashboard_stats(db_session: AsyncSession) -> None:
    await _seed_february(db_session)

    stats = await report_service.get_dashboard_stats(db_session, APPROVER, today=date(2024, 2, 2))

    assert stats.total_employees == 3
    assert stats.on_leave_today == 2
    assert stats.pending_requests == 1


async def test_dashboard_requires_approver(db_session: AsyncSession) -> None:
    with pytest.raises(UnauthorizedError):
        await report_service.get_dashboard_stats(db_session, EMPLOYEE)


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------


async def test_audit_log_filters(db_session: AsyncSession) -> None:
    approved = await _approved(db_session, date(2024, 1, 1), date(2024, 1, 2))
    await _create(db_session, date(2024, 3, 1), date(2024, 3, 1))

    everything = await report_service.query_audit_log(db_session, APPROVER)
    assert everything.total == 3

    for_request = await report_service.query_audit_log(db_session, APPROVER, entity_id=approved.id)
    assert {e.action for e in for_request.items} == {"CREATE", "APPROVE"}

    approvals = await report_service.query_audit_log(db_session, APPROVER, action="APPROVE")
    assert approvals.total == 1
    assert approvals.items[0].actor_id == APPROVER_ID

    by_employee = await report_service.query_audit_log(db_session, APPROVER, actor_id=EMPLOYEE_ID)
    assert by_employee.total == 2

    requests_only = await report_service.query_audit_log(db_session, APPROVER, entity_type="REQUEST")
    assert requests_only.total == 3


async def test_audit_log_date_range(db_session: AsyncSession) -> None:
    await _create(db_session, date(2024, 1, 1), date(2024, 1, 1))
    today = date.today()

    around_today = await report_service.query_audit_log(
        db_session, APPROVER, start_date=today - timedelta(days=1), end_date=today + timedelta(days=1)
    )
    assert around_today.total == 1

    future = await report_service.query_audit_log(db_session, APPROVER, start_date=today + timedelta(days=2))
    assert future.total == 0


async def test_audit_log_pagination(db_session: AsyncSession) -> None:
    for day in range(1, 6):
        await _create(db_session, date(2024, 5, day), date(2024, 5, day))

    page = await report_service.query_audit_log(db_session, APPROVER, offset=2, limit=2)
    assert page.total == 5
    assert len(page.items) == 2


async def test_audit_log_requires_approver(db_session: AsyncSession) -> None:
    with pytest.raises(UnauthorizedError):
        await report_service.query_audit_log(db_session, EMPLOYEE)


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------


async def test_api_calendar_and_dashboard(async_client: AsyncClient) -> None:
    resp = await async_client.get("/reports/calendar", params={"year": 2024, "month": 2}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert len(resp.json()["days"]) == 29

    resp = await async_client.get("/reports/dashboard", headers=APPROVER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total_employees"] == 3

    resp = await async_client.get("/reports/dashboard", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403


async def test_api_summary_defaults_to_caller(async_client: AsyncClient) -> None:
    resp = await async_client.get("/reports/summary", params={"year": 2024}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["employee_id"] == str(EMPLOYEE_ID)


async def test_api_calendar_rejects_bad_month(async_client: AsyncClient) -> None:
    resp = await async_client.get("/reports/calendar", params={"year": 2024, "month": 13}, headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 422


async def test_api_on_leave_today_and_audit_log(async_client: AsyncClient) -> None:
    resp = await async_client.get("/reports/on-leave-today", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["total"] == 0

    resp = await async_client.get("/audit-log", headers=APPROVER_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"items": [], "total": 0}

    resp = await async_client.get("/audit-log", headers=EMPLOYEE_HEADERS)
    assert resp.status_code == 403
