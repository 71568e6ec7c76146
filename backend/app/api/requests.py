# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import AuthDep
from app.db import SessionDep
from app.models.enums import RequestStatus
from app.schemas.request import (
    CreateRequestPayload,
    EditRequestPayload,
    RejectPayload,
    RequestListResponse,
    RequestResponse,
)
from app.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=RequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Submit a new leave request for the acting employee."""
    return await request_service.create_request(session, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    session: SessionDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
    leave_type: str | None = Query(default=None),
    year: int | None = Query(default=None, ge=1900, le=9999),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> RequestListResponse:
    """List leave requests with optional filters."""
    return await request_service.list_requests(
        session,
        auth,
        status_filter=status_filter,
        employee_id=employee_id,
        leave_type=leave_type,
        year=year,
        offset=offset,
        limit=limit,
    )


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single leave request."""
    return await request_service.get_request(session, auth, request_id)


@requests_router.patch("/{request_id}", response_model=RequestResponse)
async def edit_request(
    request_id: uuid.UUID,
    payload: EditRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Edit a pending leave request (owner only)."""
    return await request_service.edit_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/approve", response_model=RequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Approve a pending leave request (approver only)."""
    return await request_service.approve_request(session, auth, request_id)


@requests_router.post("/{request_id}/reject", response_model=RequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: RejectPayload | None = None,
) -> RequestResponse:
    """Reject a pending leave request (approver only)."""
    return await request_service.reject_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/cancel", response_model=RequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestResponse:
    """Cancel a pending leave request (owner only)."""
    return await request_service.cancel_request(session, auth, request_id)
