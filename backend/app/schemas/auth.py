# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from app.models.enums import EmployeeRole


class AuthContext(BaseModel):
    """Acting employee as resolved by the identity collaborator."""

    user_id: uuid.UUID
    role: EmployeeRole = EmployeeRole.EMPLOYEE
