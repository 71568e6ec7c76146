# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, computed_field


class BalanceResponse(BaseModel):
    """Balance for one employee, year and leave type."""

    id: uuid.UUID
    employee_id: uuid.UUID
    year: int
    leave_type: str
    allocated: Decimal
    used: Decimal
    updated_at: datetime | None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining(self) -> Decimal:
        # May go negative when approvals or overrides exceed the allocation.
        return self.allocated - self.used


class BalanceListResponse(BaseModel):
    """All balances of an employee for a year."""

    items: list[BalanceResponse]
    total: int


class SetBalancePayload(BaseModel):
    """Request body for an approver's direct balance overwrite."""

    allocated: Decimal
    used: Decimal
