# ruff: noqa: TC003
from __future__ import annotations

import uuid
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import UpdatedAtMixin, UUIDBase


class LeaveBalance(UUIDBase, UpdatedAtMixin, table=True):
    """Allocated and used days for one employee, year and leave type.

    ``used`` only grows through approvals (an atomic ``used = used + n``
    update) or through an approver's direct overwrite.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", "leave_type", name="uq_balance_employee_year_type"),
    )

    employee_id: uuid.UUID = Field(index=True)
    year: int
    leave_type: str = Field(max_length=50)
    allocated: Decimal = Field(default=Decimal(0), sa_type=sa.Numeric(6, 2), sa_column_kwargs={"server_default": "0"})
    used: Decimal = Field(default=Decimal(0), sa_type=sa.Numeric(6, 2), sa_column_kwargs={"server_default": "0"})
