# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from app.api.deps import AuthDep
from app.db import SessionDep
from app.schemas.balance import BalanceListResponse, BalanceResponse, SetBalancePayload
from app.services import balance as balance_service

employee_balance_router = APIRouter(
    prefix="/employees/{employee_id}/balances",
    tags=["balances"],
)

balance_router = APIRouter(prefix="/balances", tags=["balances"])


@employee_balance_router.get("", response_model=BalanceListResponse)
async def get_employee_balances(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int = Query(ge=1900, le=9999),
) -> BalanceListResponse:
    """Get an employee's balances for a year."""
    return await balance_service.get_employee_balances(session, auth, employee_id, year)


@employee_balance_router.post("/reset", response_model=BalanceListResponse)
async def reset_year(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int = Query(ge=1900, le=9999),
) -> BalanceListResponse:
    """Delete and re-seed an employee's balances for a year (approver only)."""
    return await balance_service.reset_year(session, auth, employee_id, year)


@balance_router.put("/{balance_id}", response_model=BalanceResponse)
async def set_balance(
    balance_id: uuid.UUID,
    payload: SetBalancePayload,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceResponse:
    """Overwrite allocated and used days on a balance (approver only)."""
    return await balance_service.set_balance(session, auth, balance_id, payload)
