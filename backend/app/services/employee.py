# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from app.models.enums import EmployeeRole


class EmployeeInfo(BaseModel):
    """Employee identity as provided by the directory collaborator."""

    id: uuid.UUID
    full_name: str
    email: str
    role: EmployeeRole = EmployeeRole.EMPLOYEE


@runtime_checkable
class EmployeeService(Protocol):
    """Interface for the employee directory."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch an employee. Returns None if not found."""
        ...

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all employees."""
        ...


class InMemoryEmployeeService:
    """In-memory directory used for development and tests."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Add or replace an employee."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        return self._employees.get(employee_id)

    async def list_employees(self) -> list[EmployeeInfo]:
        return sorted(self._employees.values(), key=lambda e: e.full_name)


_employee_service: EmployeeService = InMemoryEmployeeService()


def get_employee_service() -> EmployeeService:
    """Return the configured employee directory."""
    return _employee_service


def set_employee_service(service: EmployeeService) -> None:
    """Override the service (for testing or production wiring)."""
    global _employee_service
    _employee_service = service
