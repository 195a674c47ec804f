"""
Employee models.

Provides Pydantic schemas for:
- Employee documents as stored in MongoDB
- Create/update inputs with field-level validation
- Listing filters, sort specification and pagination results
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

# GraphQL field name -> MongoDB document key
SORTABLE_FIELDS: Dict[str, str] = {
    "name": "name",
    "age": "age",
    "class": "class",
    "attendance": "attendance",
    "email": "email",
    "department": "department",
    "position": "position",
    "salary": "salary",
    "joinDate": "join_date",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

Subject = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class SortOrder(str, Enum):
    """Sort direction."""
    ASC = "ASC"
    DESC = "DESC"


# ============================================================================
# Database Models
# ============================================================================


class EmployeeDB(BaseModel):
    """Employee document as stored in the ``employees`` collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    age: int
    class_: str = Field(..., alias="class")
    subjects: List[str] = Field(default_factory=list)
    attendance: float
    email: str
    department: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[float] = None
    join_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "EmployeeDB":
        """Build an EmployeeDB from a raw MongoDB document."""
        data = {k: v for k, v in doc.items() if k != "_id"}
        return cls(id=str(doc["_id"]), **data)


# ============================================================================
# Input Models
# ============================================================================


class _EmployeeFields(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )

    @field_validator("email", mode="after", check_fields=False)
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        """Emails are stored lowercase."""
        return v.lower() if v is not None else v


class EmployeeInput(_EmployeeFields):
    """Fields accepted by ``addEmployee``."""

    name: str = Field(..., min_length=2, max_length=100, description="Full name")
    age: int = Field(..., ge=18, le=100, description="Age in years")
    class_: str = Field(..., alias="class", min_length=1, max_length=50, description="Class/grade")
    subjects: List[Subject] = Field(..., min_length=1, description="Subjects (at least one)")
    attendance: float = Field(..., ge=0, le=100, description="Attendance percentage")
    email: EmailStr = Field(..., description="Unique email address")
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    salary: Optional[float] = Field(None, ge=0)

    def to_document(self) -> Dict[str, Any]:
        """Document fields for insertion (timestamps are added by the service)."""
        return self.model_dump(by_alias=False, exclude={"class_"}) | {"class": self.class_}

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "John Smith",
                "age": 32,
                "class": "Engineering",
                "subjects": ["Python", "MongoDB"],
                "attendance": 95.5,
                "email": "john.smith@company.com",
                "department": "IT",
                "position": "Senior Developer",
                "salary": 95000,
            }
        }
    )


class EmployeeUpdateInput(_EmployeeFields):
    """Fields accepted by ``updateEmployee``; omitted or null fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    age: Optional[int] = Field(None, ge=18, le=100)
    class_: Optional[str] = Field(None, alias="class", min_length=1, max_length=50)
    subjects: Optional[List[Subject]] = Field(None, min_length=1)
    attendance: Optional[float] = Field(None, ge=0, le=100)
    email: Optional[EmailStr] = None
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    salary: Optional[float] = Field(None, ge=0)

    def to_update(self) -> Dict[str, Any]:
        """``$set`` document holding only the fields that were supplied."""
        changes = self.model_dump(exclude_none=True, exclude={"class_"})
        if self.class_ is not None:
            changes["class"] = self.class_
        return changes


# ============================================================================
# Listing Models
# ============================================================================


class EmployeeFilters(BaseModel):
    """Filters for the ``employees`` query. Blank strings count as absent."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = Field(None, max_length=100)
    class_: Optional[str] = Field(None, alias="class", max_length=50)
    department: Optional[str] = Field(None, max_length=100)
    min_age: Optional[int] = Field(None, ge=18, le=100)
    max_age: Optional[int] = Field(None, ge=18, le=100)
    min_attendance: Optional[float] = Field(None, ge=0, le=100)
    max_attendance: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("name", "class_", "department", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty or whitespace-only strings as no filter."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_ranges(self) -> "EmployeeFilters":
        """Reject inverted ranges."""
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("minAge cannot be greater than maxAge")
        if (
            self.min_attendance is not None
            and self.max_attendance is not None
            and self.min_attendance > self.max_attendance
        ):
            raise ValueError("minAttendance cannot be greater than maxAttendance")
        return self


class SortInput(BaseModel):
    """Sort specification for the ``employees`` query."""

    field: str = Field(..., description="GraphQL name of the field to sort by")
    order: SortOrder = Field(..., description="ASC or DESC")

    @field_validator("field")
    @classmethod
    def validate_field(cls, v: str) -> str:
        if v not in SORTABLE_FIELDS:
            raise ValueError(
                f"cannot sort by '{v}', expected one of {', '.join(SORTABLE_FIELDS)}"
            )
        return v

    @property
    def document_key(self) -> str:
        return SORTABLE_FIELDS[self.field]


class PaginationInfo(BaseModel):
    """Pagination metadata returned alongside a page of employees."""

    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PaginationInfo":
        total_pages = -(-total // page_size)
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


class EmployeePage(BaseModel):
    """One page of employees plus its pagination metadata."""

    employees: List[EmployeeDB]
    pagination: PaginationInfo
