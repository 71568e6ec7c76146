"""Single authorization predicate shared by every lifecycle and balance operation."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from app.exceptions import UnauthorizedError
from app.models.enums import EmployeeRole

if TYPE_CHECKING:
    import uuid

    from app.schemas.auth import AuthContext


class Capability(enum.StrEnum):
    """What an actor is trying to do."""

    VIEW = "VIEW"  # read a request, balance or summary
    MODIFY = "MODIFY"  # cancel or edit a pending request
    DECIDE = "DECIDE"  # approve or reject
    MANAGE_BALANCES = "MANAGE_BALANCES"  # overwrite or reset balances
    VIEW_ALL = "VIEW_ALL"  # dashboards and the audit log


_ROLE_CAPABILITIES: dict[EmployeeRole, frozenset[Capability]] = {
    EmployeeRole.EMPLOYEE: frozenset(),
    EmployeeRole.APPROVER: frozenset(
        {Capability.VIEW, Capability.DECIDE, Capability.MANAGE_BALANCES, Capability.VIEW_ALL}
    ),
}

# Granted to the owner of the resource regardless of role.
_OWNER_CAPABILITIES: frozenset[Capability] = frozenset({Capability.VIEW, Capability.MODIFY})


def is_permitted(auth: AuthContext, capability: Capability, owner_id: uuid.UUID | None = None) -> bool:
    """Return True if ``auth`` may exercise ``capability`` on a resource owned by ``owner_id``."""
    if owner_id is not None and owner_id == auth.user_id and capability in _OWNER_CAPABILITIES:
        return True
    return capability in _ROLE_CAPABILITIES.get(auth.role, frozenset())


def authorize(
    auth: AuthContext,
    capability: Capability,
    owner_id: uuid.UUID | None = None,
    message: str | None = None,
) -> None:
    """Raise ``UnauthorizedError`` unless :func:`is_permitted` allows the action."""
    if not is_permitted(auth, capability, owner_id):
        raise UnauthorizedError(message or f"Not authorized to {capability.value.lower().replace('_', ' ')}")
