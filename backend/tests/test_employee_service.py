"""Tests for the in-memory employee directory."""

from __future__ import annotations

import uuid

from app.models.enums import EmployeeRole
from app.services.employee import (
    EmployeeInfo,
    EmployeeService,
    InMemoryEmployeeService,
    get_employee_service,
    set_employee_service,
)


def _make_employee(name: str = "Jane Doe", role: EmployeeRole = EmployeeRole.EMPLOYEE) -> EmployeeInfo:
    return EmployeeInfo(
        id=uuid.uuid4(),
        full_name=name,
        email=f"{name.split()[0].lower()}@example.com",
        role=role,
    )


async def test_get_not_found() -> None:
    svc = InMemoryEmployeeService()
    assert await svc.get_employee(uuid.uuid4()) is None


async def test_seed_and_get() -> None:
    svc = InMemoryEmployeeService()
    emp = _make_employee(role=EmployeeRole.APPROVER)
    svc.seed(emp)
    result = await svc.get_employee(emp.id)
    assert result is not None
    assert result.id == emp.id
    assert result.role == EmployeeRole.APPROVER


async def test_seed_replaces_existing() -> None:
    svc = InMemoryEmployeeService()
    emp = _make_employee()
    svc.seed(emp)
    svc.seed(emp.model_copy(update={"full_name": "Jane Smith"}))
    result = await svc.get_employee(emp.id)
    assert result is not None
    assert result.full_name == "Jane Smith"
    assert len(await svc.list_employees()) == 1


async def test_list_sorted_by_name() -> None:
    svc = InMemoryEmployeeService()
    svc.seed(_make_employee("Zoe Park"))
    svc.seed(_make_employee("Amir Haddad"))
    result = await svc.list_employees()
    assert [e.full_name for e in result] == ["Amir Haddad", "Zoe Park"]


def test_in_memory_service_satisfies_protocol() -> None:
    assert isinstance(InMemoryEmployeeService(), EmployeeService)


def test_set_employee_service() -> None:
    original = get_employee_service()
    replacement = InMemoryEmployeeService()
    set_employee_service(replacement)
    try:
        assert get_employee_service() is replacement
    finally:
        set_employee_service(original)
