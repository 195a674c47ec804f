"""
Employee service.

Turns listing arguments into MongoDB queries, validates writes and maps
repository outcomes onto the application error types.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import structlog
from pymongo import ASCENDING, DESCENDING

from employee_api.src.config import Settings, get_settings
from employee_api.src.errors import ConflictError, NotFoundError, ValidationError
from employee_api.src.models.employee import (
    EmployeeDB,
    EmployeeFilters,
    EmployeeInput,
    EmployeePage,
    EmployeeUpdateInput,
    PaginationInfo,
    SortInput,
    SortOrder,
)
from employee_api.src.repositories.base import to_object_id
from employee_api.src.repositories.employee_repo import EmployeeRepository
from employee_api.src.utils.datetime_utils import utcnow
from employee_api.src.utils.sanitize import sanitize_for_regex, sanitize_string
from employee_api.src.utils.validation import validate_model
from shared.tracing import trace_function

logger = structlog.get_logger(__name__)

DEFAULT_SORT: List[Tuple[str, int]] = [("created_at", DESCENDING)]

FiltersArg = Union[EmployeeFilters, Mapping[str, Any], None]
SortArg = Union[SortInput, Mapping[str, Any], None]


# ============================================================================
# Query construction
# ============================================================================


def normalize_pagination(
    page: Optional[int],
    page_size: Optional[int],
    settings: Settings,
) -> Tuple[int, int]:
    """
    Clamp page and page size.

    Missing or zero values fall back to the defaults; the page is at least 1
    and the page size stays within the configured bounds.
    """
    page = max(1, page or settings.pagination_default_page)
    page_size = min(
        max(settings.pagination_min_page_size, page_size or settings.pagination_default_page_size),
        settings.pagination_max_page_size,
    )
    return page, page_size


def build_employee_query(filters: Optional[EmployeeFilters]) -> Dict[str, Any]:
    """Build the MongoDB filter document for validated listing filters."""
    query: Dict[str, Any] = {}
    if filters is None:
        return query

    if filters.name:
        pattern = sanitize_for_regex(filters.name)
        if pattern:
            query["name"] = {"$regex": pattern, "$options": "i"}
    if filters.class_:
        class_name = sanitize_string(filters.class_)
        if class_name:
            query["class"] = class_name
    if filters.department:
        pattern = sanitize_for_regex(filters.department)
        if pattern:
            query["department"] = {"$regex": pattern, "$options": "i"}

    age: Dict[str, int] = {}
    if filters.min_age is not None:
        age["$gte"] = filters.min_age
    if filters.max_age is not None:
        age["$lte"] = filters.max_age
    if age:
        query["age"] = age

    attendance: Dict[str, float] = {}
    if filters.min_attendance is not None:
        attendance["$gte"] = filters.min_attendance
    if filters.max_attendance is not None:
        attendance["$lte"] = filters.max_attendance
    if attendance:
        query["attendance"] = attendance

    return query


def build_sort(sort: Optional[SortInput]) -> List[Tuple[str, int]]:
    """Sort specification with ``_id`` appended so page boundaries are stable."""
    if sort is None:
        spec = list(DEFAULT_SORT)
    else:
        spec = [(sort.document_key, ASCENDING if sort.order == SortOrder.ASC else DESCENDING)]
    direction = spec[-1][1]
    return spec + [("_id", direction)]


# ============================================================================
# Service
# ============================================================================


class EmployeeService:
    """Service for employee directory operations."""

    def __init__(self, employee_repo: EmployeeRepository, settings: Optional[Settings] = None):
        """
        Initialize employee service.

        Args:
            employee_repo: Employee repository
            settings: Settings override (defaults to get_settings())
        """
        self.employee_repo = employee_repo
        self.settings = settings or get_settings()

    @staticmethod
    def validate_id(employee_id: str) -> str:
        """
        Check that ``employee_id`` is a well-formed ObjectId and return it
        in canonical lower-case hex form.

        Raises:
            ValidationError: If it is not
        """
        oid = to_object_id(employee_id)
        if oid is None:
            raise ValidationError("Invalid employee ID")
        return str(oid)

    @trace_function("employees.list")
    async def get_employees(
        self,
        filters: FiltersArg = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort: SortArg = None,
    ) -> EmployeePage:
        """
        List employees matching ``filters``, one page at a time.

        Args:
            filters: Listing filters (GraphQL field names when given as a mapping)
            page: 1-based page number
            page_size: Page size, clamped to the configured bounds
            sort: Sort field and order (defaults to newest first)

        Returns:
            Page of employees with pagination metadata

        Raises:
            ValidationError: If filters or sort are invalid
        """
        page, page_size = normalize_pagination(page, page_size, self.settings)

        if filters is not None and not isinstance(filters, EmployeeFilters):
            filters = validate_model(EmployeeFilters, filters)
        if sort is not None and not isinstance(sort, SortInput):
            sort = validate_model(SortInput, sort)

        query = build_employee_query(filters)
        sort_spec = build_sort(sort)
        skip = (page - 1) * page_size

        employees, total = await self.employee_repo.list_page(query, sort_spec, skip, page_size)

        logger.debug(
            "employees_listed",
            page=page,
            page_size=page_size,
            total=total,
            returned=len(employees),
            filtered=bool(query),
        )
        return EmployeePage(
            employees=employees,
            pagination=PaginationInfo.build(total=total, page=page, page_size=page_size),
        )

    async def get_employee_by_id(self, employee_id: str) -> EmployeeDB:
        """
        Get one employee.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If no such employee exists
        """
        employee_id = self.validate_id(employee_id)
        employee = await self.employee_repo.find_by_id(employee_id)
        if employee is None:
            raise NotFoundError("Employee")
        return employee

    @trace_function("employees.create")
    async def create_employee(self, data: Mapping[str, Any]) -> EmployeeDB:
        """
        Create an employee.

        Args:
            data: Employee fields (GraphQL field names)

        Returns:
            Created employee

        Raises:
            ValidationError: If the input is invalid
            ConflictError: If the email is already taken
        """
        employee_input = validate_model(EmployeeInput, data)

        if await self.employee_repo.email_taken(employee_input.email):
            logger.warning("employee_email_conflict", email=employee_input.email)
            raise ConflictError(EmployeeRepository.conflict_message)

        now = utcnow()
        document = employee_input.to_document()
        document.update(join_date=now, created_at=now, updated_at=now)

        employee = await self.employee_repo.create(document)
        logger.info("employee_created", employee_id=employee.id, email=employee.email)
        return employee

    @trace_function("employees.update")
    async def update_employee(self, employee_id: str, data: Mapping[str, Any]) -> EmployeeDB:
        """
        Apply a partial update.

        Args:
            employee_id: Employee ID
            data: Fields to change; missing and null fields are left as they are

        Returns:
            Updated employee

        Raises:
            ValidationError: If the id or the input is invalid
            NotFoundError: If no such employee exists
            ConflictError: If the new email is already taken
        """
        employee_id = self.validate_id(employee_id)
        update = validate_model(EmployeeUpdateInput, data)
        changes = update.to_update()

        if await self.employee_repo.find_by_id(employee_id) is None:
            raise NotFoundError("Employee")
        if "email" in changes and await self.employee_repo.email_taken(changes["email"], exclude_id=employee_id):
            logger.warning("employee_email_conflict", email=changes["email"], employee_id=employee_id)
            raise ConflictError(EmployeeRepository.conflict_message)

        changes["updated_at"] = utcnow()
        employee = await self.employee_repo.update_by_id(employee_id, changes)
        if employee is None:
            raise NotFoundError("Employee")

        logger.info("employee_updated", employee_id=employee_id, fields=sorted(changes))
        return employee

    @trace_function("employees.delete")
    async def delete_employee(self, employee_id: str) -> bool:
        """
        Delete an employee.

        Raises:
            ValidationError: If the id is malformed
            NotFoundError: If no such employee exists
        """
        employee_id = self.validate_id(employee_id)
        if not await self.employee_repo.delete_by_id(employee_id):
            raise NotFoundError("Employee")

        logger.info("employee_deleted", employee_id=employee_id)
        return True

    async def load_employees_by_ids(self, employee_ids: Sequence[str]) -> List[Optional[EmployeeDB]]:
        """
        Batch function for the request-scoped employee loader.

        Issues a single query and returns results in the order of
        ``employee_ids``, with None for ids that match nothing.
        """
        employees = await self.employee_repo.get_by_ids(list(employee_ids))
        by_id = {employee.id: employee for employee in employees}
        logger.debug("employees_batch_loaded", requested=len(employee_ids), found=len(by_id))
        return [by_id.get(str(employee_id)) for employee_id in employee_ids]
