# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from app.models.enums import EmployeeRole
from app.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: EmployeeRole = Header(default=EmployeeRole.EMPLOYEE),
) -> AuthContext:
    """Extract the acting employee from request headers.

    Authentication happens upstream; the id/role pair is trusted as given.
    """
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
