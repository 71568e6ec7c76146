from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update
from sqlmodel import col

from app.config import get_settings
from app.db import atomic
from app.exceptions import InvalidInputError, NotFoundError
from app.models.balance import LeaveBalance
from app.models.enums import AuditAction, AuditEntityType
from app.schemas.balance import BalanceListResponse, BalanceResponse
from app.services.audit import audit_snapshot, write_audit_log
from app.services.authorization import Capability, authorize

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.balance import SetBalancePayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_balance_response(balance: LeaveBalance) -> BalanceResponse:
    """Map a balance model to its response schema."""
    return BalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        year=balance.year,
        leave_type=balance.leave_type,
        allocated=balance.allocated,
        used=balance.used,
        updated_at=balance.updated_at,
    )


def _default_allocation(leave_type: str) -> Decimal:
    return get_settings().default_allocations.get(leave_type, Decimal(0))


async def _list_balances(session: AsyncSession, employee_id: uuid.UUID, year: int) -> list[LeaveBalance]:
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.year) == year,
        )
        .order_by(col(LeaveBalance.leave_type))
    )
    return list(result.scalars().all())


async def _seed_default_balances(session: AsyncSession, employee_id: uuid.UUID, year: int) -> int:
    """Insert a row per default allocation entry that does not exist yet. Returns rows added."""
    existing = {b.leave_type for b in await _list_balances(session, employee_id, year)}
    added = 0
    for leave_type, allocated in get_settings().default_allocations.items():
        if leave_type in existing:
            continue
        session.add(
            LeaveBalance(
                employee_id=employee_id,
                year=year,
                leave_type=leave_type,
                allocated=allocated,
                used=Decimal(0),
            )
        )
        added += 1
    await session.flush()
    return added


async def _get_or_create_balance_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    year: int,
    leave_type: str,
) -> LeaveBalance:
    """Get the balance row with a FOR UPDATE lock, creating it if absent.

    A missing row is created with the default allocation for its type, the
    same value the seeding routine would have written.
    """
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.year) == year,
            col(LeaveBalance.leave_type) == leave_type,
        )
        .with_for_update()
    )
    balance = result.scalar_one_or_none()

    if balance is None:
        balance = LeaveBalance(
            employee_id=employee_id,
            year=year,
            leave_type=leave_type,
            allocated=_default_allocation(leave_type),
            used=Decimal(0),
        )
        session.add(balance)
        await session.flush()
        logger.info("Created missing balance row employee=%s year=%d type=%s", employee_id, year, leave_type)

    return balance


async def _increment_used(session: AsyncSession, balance: LeaveBalance, days: Decimal) -> None:
    """Add ``days`` to ``used`` with a single UPDATE so concurrent approvals never lose an increment."""
    await session.execute(
        update(LeaveBalance)
        .where(col(LeaveBalance.id) == balance.id)
        .values(used=col(LeaveBalance.used) + days)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(balance)


async def _get_balance_or_404(session: AsyncSession, balance_id: uuid.UUID) -> LeaveBalance:
    result = await session.execute(select(LeaveBalance).where(col(LeaveBalance.id) == balance_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFoundError("Balance not found")
    return balance


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_employee_balances(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    year: int,
) -> BalanceListResponse:
    """Get every leave-type balance of an employee for a year."""
    authorize(auth, Capability.VIEW, owner_id=employee_id, message="Not authorized to view these balances")
    balances = await _list_balances(session, employee_id, year)
    return BalanceListResponse(
        items=[_build_balance_response(b) for b in balances],
        total=len(balances),
    )


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def initialize_balances(session: AsyncSession, employee_id: uuid.UUID, year: int) -> BalanceListResponse:
    """Seed the default allocation table for an employee and year.

    Rows that already exist are left untouched, so running it twice is harmless.
    """
    async with atomic(session):
        added = await _seed_default_balances(session, employee_id, year)
    logger.info("Initialized balances employee=%s year=%d added=%d", employee_id, year, added)

    balances = await _list_balances(session, employee_id, year)
    return BalanceListResponse(items=[_build_balance_response(b) for b in balances], total=len(balances))


async def set_balance(
    session: AsyncSession,
    auth: AuthContext,
    balance_id: uuid.UUID,
    payload: SetBalancePayload,
) -> BalanceResponse:
    """Overwrite allocated and used on an existing balance (approver only).

    This is an administrative override: ``used`` may end up above ``allocated``.
    """
    authorize(auth, Capability.MANAGE_BALANCES, message="Only approvers can update balances")

    if payload.allocated < 0 or payload.used < 0:
        raise InvalidInputError("Allocated and used days must not be negative")

    async with atomic(session):
        balance = await _get_balance_or_404(session, balance_id)
        before_dict = audit_snapshot(balance)

        await session.execute(
            update(LeaveBalance)
            .where(col(LeaveBalance.id) == balance_id)
            .values(allocated=payload.allocated, used=payload.used)
            .execution_options(synchronize_session=False)
        )
        await session.refresh(balance)

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.UPDATE,
            before_json=before_dict,
            after_json=audit_snapshot(balance),
        )

    logger.info(
        "Balance %s overwritten by %s: allocated=%s used=%s", balance_id, auth.user_id, payload.allocated, payload.used
    )
    return _build_balance_response(balance)


async def reset_year(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    year: int,
) -> BalanceListResponse:
    """Delete an employee's balances for a year and re-seed them (approver only).

    After the reset every default leave type has used=0 and allocated set to
    its default; rows for types outside the default table are gone.
    """
    authorize(auth, Capability.MANAGE_BALANCES, message="Only approvers can reset balances")

    async with atomic(session):
        before = [audit_snapshot(b) for b in await _list_balances(session, employee_id, year)]

        await session.execute(
            delete(LeaveBalance).where(
                col(LeaveBalance.employee_id) == employee_id,
                col(LeaveBalance.year) == year,
            )
        )
        await _seed_default_balances(session, employee_id, year)
        balances = await _list_balances(session, employee_id, year)

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=employee_id,
            action=AuditAction.RESET,
            before_json={"year": year, "balances": before},
            after_json={"year": year, "balances": [audit_snapshot(b) for b in balances]},
        )

    logger.info("Balances reset for employee=%s year=%d by %s", employee_id, year, auth.user_id)
    return BalanceListResponse(items=[_build_balance_response(b) for b in balances], total=len(balances))
