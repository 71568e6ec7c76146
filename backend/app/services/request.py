# ruff: noqa: TC003
"""Leave request lifecycle: create, edit, approve, reject and cancel.

Every status change is a compare-and-set UPDATE guarded by the expected
prior status, so at most one transition out of ``pending`` can ever succeed
for a request no matter how many callers race on it.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update
from sqlmodel import col

from app.config import get_settings
from app.db import atomic
from app.exceptions import (
    AlreadyProcessedError,
    InsufficientBalanceError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from app.models.enums import AuditAction, AuditEntityType, HalfDayPeriod, RequestStatus
from app.models.request import LeaveRequest
from app.schemas.request import RequestListResponse, RequestResponse
from app.services.audit import audit_snapshot, write_audit_log
from app.services.authorization import Capability, authorize, is_permitted
from app.services.balance import _get_or_create_balance_for_update, _increment_used
from app.services.duration import calculate_days_count

if TYPE_CHECKING:
    from decimal import Decimal

    from sqlalchemy.ext.asyncio import AsyncSession

    from app.config import Settings
    from app.schemas.auth import AuthContext
    from app.schemas.request import CreateRequestPayload, EditRequestPayload, RejectPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest) -> RequestResponse:
    """Map a request model to its response schema."""
    return RequestResponse(
        id=request.id,
        employee_id=request.employee_id,
        leave_type=request.leave_type,
        start_date=request.start_date,
        end_date=request.end_date,
        is_half_day=request.is_half_day,
        half_day_period=HalfDayPeriod(request.half_day_period) if request.half_day_period else None,
        reason=request.reason,
        days_count=request.days_count,
        status=RequestStatus(request.status),
        rejection_reason=request.rejection_reason,
        decided_at=request.decided_at,
        decided_by=request.decided_by,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
    """Fetch a request by ID. Raises 404 if not found."""
    result = await session.execute(select(LeaveRequest).where(col(LeaveRequest.id) == request_id))
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request not found")
    return request


def _validate_fields(
    leave_type: str,
    start_date: date,
    end_date: date,
    reason: str,
    is_half_day: bool,
    half_day_period: HalfDayPeriod | None,
) -> Decimal:
    """Check the mutable request fields and return the resulting days_count."""
    min_reason_length = get_settings().min_reason_length
    if not leave_type.strip():
        raise InvalidInputError("Leave type is required")
    if len(reason.strip()) < min_reason_length:
        raise InvalidInputError(f"Reason must be at least {min_reason_length} characters")
    if is_half_day and half_day_period is None:
        raise InvalidInputError("Half-day requests must specify morning or afternoon")
    if not is_half_day and half_day_period is not None:
        raise InvalidInputError("Half-day period is only allowed on half-day requests")
    return calculate_days_count(start_date, end_date, is_half_day)


def _changed_or(changes: dict[str, Any], key: str, stored: Any) -> Any:
    value = changes.get(key)
    return stored if value is None else value


async def _compare_and_set(
    session: AsyncSession,
    request: LeaveRequest,
    target: RequestStatus | None,
    values: dict[str, Any],
    owner_id: uuid.UUID | None = None,
) -> bool:
    """Apply ``values`` only if the request is still pending (and owned by ``owner_id``).

    ``target`` is the status being entered, or None for an in-place edit.
    Returns False when no row matched, meaning another caller got there first.
    """
    if target is not None:
        if not RequestStatus.PENDING.can_transition_to(target):
            msg = f"Illegal transition pending -> {target}"
            raise InvalidStateError(msg)
        values = {**values, "status": target.value}

    query = update(LeaveRequest).where(
        col(LeaveRequest.id) == request.id,
        col(LeaveRequest.status) == RequestStatus.PENDING.value,
    )
    if owner_id is not None:
        query = query.where(col(LeaveRequest.employee_id) == owner_id)

    result = await session.execute(query.values(**values).execution_options(synchronize_session=False))
    if result.rowcount == 0:  # type: ignore[attr-defined]
        return False

    await session.refresh(request)
    return True


def resolve_balance_year(request: LeaveRequest, settings: Settings, now: datetime | None = None) -> int:
    """Pick the balance year an approved request is charged against.

    ``start_date`` charges the calendar year the leave starts in, so a
    request spanning New Year is charged entirely to the earlier year.
    ``approval_date`` charges the year of the approval clock.
    """
    if settings.balance_year_policy == "approval_date":
        return (now or datetime.now(UTC)).year
    return request.start_date.year


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateRequestPayload,
) -> RequestResponse:
    """Create a pending leave request owned by the acting employee.

    No balance is touched; balances only move on approval.
    """
    days_count = _validate_fields(
        payload.leave_type,
        payload.start_date,
        payload.end_date,
        payload.reason,
        payload.is_half_day,
        payload.half_day_period,
    )

    async with atomic(session):
        leave_request = LeaveRequest(
            employee_id=auth.user_id,
            leave_type=payload.leave_type.strip(),
            start_date=payload.start_date,
            end_date=payload.end_date,
            is_half_day=payload.is_half_day,
            half_day_period=payload.half_day_period.value if payload.half_day_period else None,
            reason=payload.reason.strip(),
            days_count=days_count,
            status=RequestStatus.PENDING.value,
        )
        session.add(leave_request)
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.CREATE,
            after_json=audit_snapshot(leave_request),
        )

    await session.refresh(leave_request)
    logger.info(
        "Request %s created by %s: %s %s..%s (%s days)",
        leave_request.id,
        auth.user_id,
        leave_request.leave_type,
        leave_request.start_date,
        leave_request.end_date,
        days_count,
    )
    return _build_request_response(leave_request)


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    now: datetime | None = None,
) -> RequestResponse:
    """Approve a pending request and charge its days to the owner's balance.

    1. Authorize (approver only), fetch, reject non-pending requests early.
    2. Resolve the balance year and lock (or create) the balance row.
    3. CAS pending -> approved; zero rows means another caller won.
    4. Apply the over-allocation policy; refusing rolls the CAS back.
    5. Atomically increment ``used``.
    6. Audit log.
    All of it commits or rolls back together.
    """
    authorize(auth, Capability.DECIDE, message="Only approvers can approve requests")
    settings = get_settings()
    now = now or datetime.now(UTC)

    async with atomic(session):
        leave_request = await _get_request_or_404(session, request_id)
        if leave_request.status != RequestStatus.PENDING.value:
            raise AlreadyProcessedError

        year = resolve_balance_year(leave_request, settings, now)
        balance = await _get_or_create_balance_for_update(
            session, leave_request.employee_id, year, leave_request.leave_type
        )

        before_dict = audit_snapshot(leave_request)
        won = await _compare_and_set(
            session,
            leave_request,
            RequestStatus.APPROVED,
            {"decided_at": now, "decided_by": auth.user_id},
        )
        if not won:
            logger.warning("Approve of request %s lost the race to another decision", request_id)
            raise AlreadyProcessedError

        # Checked only once the CAS has won; raising here rolls the status change back.
        projected = balance.used + leave_request.days_count
        if projected > balance.allocated:
            if settings.over_allocation_policy == "reject":
                msg = (
                    f"Approval would use {projected} of {balance.allocated} allocated "
                    f"{leave_request.leave_type} days for {year}"
                )
                raise InsufficientBalanceError(msg)
            logger.warning(
                "Approving request %s exceeds allocation: employee=%s type=%s year=%d used=%s allocated=%s",
                leave_request.id,
                leave_request.employee_id,
                leave_request.leave_type,
                year,
                projected,
                balance.allocated,
            )

        await _increment_used(session, balance, leave_request.days_count)

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.APPROVE,
            before_json=before_dict,
            after_json=audit_snapshot(leave_request),
        )

    logger.info(
        "Request %s approved by %s; %s %d used now %s",
        leave_request.id,
        auth.user_id,
        leave_request.leave_type,
        year,
        balance.used,
    )
    return _build_request_response(leave_request)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: RejectPayload | None = None,
) -> RequestResponse:
    """Reject a pending request. Balances are not touched."""
    authorize(auth, Capability.DECIDE, message="Only approvers can reject requests")
    now = datetime.now(UTC)

    async with atomic(session):
        leave_request = await _get_request_or_404(session, request_id)
        if leave_request.status != RequestStatus.PENDING.value:
            raise AlreadyProcessedError

        before_dict = audit_snapshot(leave_request)
        won = await _compare_and_set(
            session,
            leave_request,
            RequestStatus.REJECTED,
            {
                "decided_at": now,
                "decided_by": auth.user_id,
                "rejection_reason": payload.reason if payload else None,
            },
        )
        if not won:
            logger.warning("Reject of request %s lost the race to another decision", request_id)
            raise AlreadyProcessedError

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.REJECT,
            before_json=before_dict,
            after_json=audit_snapshot(leave_request),
        )

    logger.info("Request %s rejected by %s", leave_request.id, auth.user_id)
    return _build_request_response(leave_request)


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Cancel a pending request. Only its owner may cancel; balances are not touched."""
    now = datetime.now(UTC)

    async with atomic(session):
        leave_request = await _get_request_or_404(session, request_id)
        authorize(
            auth,
            Capability.MODIFY,
            owner_id=leave_request.employee_id,
            message="Only the owner can cancel this request",
        )
        if leave_request.status != RequestStatus.PENDING.value:
            raise InvalidStateError("Can only cancel pending requests")

        before_dict = audit_snapshot(leave_request)
        won = await _compare_and_set(
            session,
            leave_request,
            RequestStatus.CANCELLED,
            {"decided_at": now, "decided_by": auth.user_id},
            owner_id=auth.user_id,
        )
        if not won:
            raise InvalidStateError("Can only cancel pending requests")

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.CANCEL,
            before_json=before_dict,
            after_json=audit_snapshot(leave_request),
        )

    logger.info("Request %s cancelled by owner %s", leave_request.id, auth.user_id)
    return _build_request_response(leave_request)


async def edit_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: EditRequestPayload,
) -> RequestResponse:
    """Edit a pending request in place and recompute its days_count.

    Omitted fields keep their stored value. Turning ``is_half_day`` off
    clears the half-day period.
    """
    async with atomic(session):
        leave_request = await _get_request_or_404(session, request_id)
        authorize(
            auth,
            Capability.MODIFY,
            owner_id=leave_request.employee_id,
            message="Only the owner can edit this request",
        )
        if leave_request.status != RequestStatus.PENDING.value:
            raise InvalidStateError("Can only edit pending requests")

        changes = payload.model_dump(exclude_unset=True)
        is_half_day = changes.get("is_half_day")
        if is_half_day is None:
            is_half_day = leave_request.is_half_day
        if "half_day_period" in changes:
            half_day_period = changes["half_day_period"]
        elif is_half_day and leave_request.half_day_period:
            half_day_period = HalfDayPeriod(leave_request.half_day_period)
        else:
            half_day_period = None

        # An explicit empty string is kept so validation rejects it; None means "unchanged".
        leave_type = _changed_or(changes, "leave_type", leave_request.leave_type)
        start_date = _changed_or(changes, "start_date", leave_request.start_date)
        end_date = _changed_or(changes, "end_date", leave_request.end_date)
        reason = _changed_or(changes, "reason", leave_request.reason)

        days_count = _validate_fields(leave_type, start_date, end_date, reason, is_half_day, half_day_period)

        before_dict = audit_snapshot(leave_request)
        won = await _compare_and_set(
            session,
            leave_request,
            None,
            {
                "leave_type": leave_type.strip(),
                "start_date": start_date,
                "end_date": end_date,
                "reason": reason.strip(),
                "is_half_day": is_half_day,
                "half_day_period": half_day_period.value if half_day_period else None,
                "days_count": days_count,
            },
            owner_id=auth.user_id,
        )
        if not won:
            raise InvalidStateError("Can only edit pending requests")

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=leave_request.id,
            action=AuditAction.UPDATE,
            before_json=before_dict,
            after_json=audit_snapshot(leave_request),
        )

    logger.info("Request %s edited by %s (%s days)", leave_request.id, auth.user_id, days_count)
    return _build_request_response(leave_request)


async def get_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Get a single request. Owners see their own, approvers see all."""
    leave_request = await _get_request_or_404(session, request_id)
    authorize(auth, Capability.VIEW, owner_id=leave_request.employee_id, message="Not authorized to view this request")
    return _build_request_response(leave_request)


async def list_requests(
    session: AsyncSession,
    auth: AuthContext,
    *,
    status_filter: RequestStatus | None = None,
    employee_id: uuid.UUID | None = None,
    leave_type: str | None = None,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """List requests with optional filters, ordered by created_at DESC.

    Employees without the approver role only ever see their own requests.
    """
    if not is_permitted(auth, Capability.VIEW_ALL):
        if employee_id is not None and employee_id != auth.user_id:
            authorize(auth, Capability.VIEW, owner_id=employee_id, message="Not authorized to view these requests")
        employee_id = auth.user_id

    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    if leave_type is not None:
        filters.append(col(LeaveRequest.leave_type) == leave_type)
    if year is not None:
        filters.append(col(LeaveRequest.start_date) >= date(year, 1, 1))
        filters.append(col(LeaveRequest.start_date) <= date(year, 12, 31))

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    requests = list(result.scalars().all())

    return RequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=total,
    )
