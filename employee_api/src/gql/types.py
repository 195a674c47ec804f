"""
GraphQL object and input types.

Object types wrap the Pydantic models returned by the services; input types
are converted back into plain mappings before validation so that every
rule lives in the Pydantic models.
"""

import dataclasses
from typing import Any, Dict, List, Optional

import strawberry

from employee_api.src.models.auth import AuthPayload, CurrentUser
from employee_api.src.models.employee import EmployeeDB, EmployeePage, PaginationInfo
from employee_api.src.utils.datetime_utils import to_iso


def input_to_dict(value: Any) -> Optional[Dict[str, Any]]:
    """
    Convert a strawberry input object to a dict of the supplied fields.

    Fields that were omitted (UNSET) or sent as null are dropped.
    """
    if value is None:
        return None
    return {
        field.name: getattr(value, field.name)
        for field in dataclasses.fields(value)
        if getattr(value, field.name) is not strawberry.UNSET and getattr(value, field.name) is not None
    }


# ============================================================================
# Object Types
# ============================================================================


@strawberry.type(name="Employee")
class EmployeeType:
    id: strawberry.ID
    name: str
    age: int
    class_: str = strawberry.field(name="class")
    subjects: List[str]
    attendance: float
    email: str
    department: Optional[str]
    position: Optional[str]
    salary: Optional[float]
    join_date: str
    created_at: str
    updated_at: str

    @classmethod
    def from_model(cls, employee: EmployeeDB) -> "EmployeeType":
        created_at = to_iso(employee.created_at) if employee.created_at else ""
        return cls(
            id=strawberry.ID(employee.id),
            name=employee.name,
            age=employee.age,
            class_=employee.class_,
            subjects=list(employee.subjects),
            attendance=employee.attendance,
            email=employee.email,
            department=employee.department,
            position=employee.position,
            salary=employee.salary,
            join_date=to_iso(employee.join_date) if employee.join_date else created_at,
            created_at=created_at,
            updated_at=to_iso(employee.updated_at) if employee.updated_at else created_at,
        )


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    username: str
    email: str
    role: str

    @classmethod
    def from_model(cls, user: CurrentUser) -> "UserType":
        return cls(
            id=strawberry.ID(user.id),
            username=user.username,
            email=user.email,
            role=user.role.value,
        )


@strawberry.type(name="AuthPayload")
class AuthPayloadType:
    token: str
    user: UserType

    @classmethod
    def from_model(cls, payload: AuthPayload) -> "AuthPayloadType":
        return cls(token=payload.token, user=UserType.from_model(payload.user))


@strawberry.type(name="PaginationInfo")
class PaginationInfoType:
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def from_model(cls, info: PaginationInfo) -> "PaginationInfoType":
        return cls(**info.model_dump())


@strawberry.type(name="EmployeesResponse")
class EmployeesResponse:
    employees: List[EmployeeType]
    pagination: PaginationInfoType

    @classmethod
    def from_page(cls, page: EmployeePage) -> "EmployeesResponse":
        return cls(
            employees=[EmployeeType.from_model(e) for e in page.employees],
            pagination=PaginationInfoType.from_model(page.pagination),
        )


# ============================================================================
# Input Types
# ============================================================================


@strawberry.input(name="EmployeeInput")
class EmployeeInputType:
    name: str
    age: int
    class_: str = strawberry.field(name="class")
    subjects: List[str]
    attendance: float
    email: str
    department: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[float] = None


@strawberry.input(name="EmployeeUpdateInput")
class EmployeeUpdateInputType:
    name: Optional[str] = strawberry.UNSET
    age: Optional[int] = strawberry.UNSET
    class_: Optional[str] = strawberry.field(name="class", default=strawberry.UNSET)
    subjects: Optional[List[str]] = strawberry.UNSET
    attendance: Optional[float] = strawberry.UNSET
    email: Optional[str] = strawberry.UNSET
    department: Optional[str] = strawberry.UNSET
    position: Optional[str] = strawberry.UNSET
    salary: Optional[float] = strawberry.UNSET


@strawberry.input(name="EmployeeFilters")
class EmployeeFiltersInput:
    name: Optional[str] = strawberry.UNSET
    class_: Optional[str] = strawberry.field(name="class", default=strawberry.UNSET)
    department: Optional[str] = strawberry.UNSET
    min_age: Optional[int] = strawberry.UNSET
    max_age: Optional[int] = strawberry.UNSET
    min_attendance: Optional[float] = strawberry.UNSET
    max_attendance: Optional[float] = strawberry.UNSET


@strawberry.input(name="SortInput")
class SortInputType:
    field: str
    order: str = strawberry.field(description="ASC or DESC")
