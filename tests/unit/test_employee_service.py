"""
Unit tests for the employee service.

Tests cover:
- Listing with filters, sorting and pagination
- Create with timestamps and email uniqueness
- Partial updates
- Delete and not-found handling
- ID validation
- Batch loading for the request-scoped loader
"""

import pytest

from employee_api.src.errors import ConflictError, NotFoundError, ValidationError

MISSING_ID = "65a1b2c3d4e5f6a7b8c9d0e1"


def names(page):
    return [e.name for e in page.employees]


# ============================================================================
# LISTING
# ============================================================================


class TestGetEmployees:
    """Test the paged listing."""

    async def test_default_page(self, employee_service, seeded_employees):
        page = await employee_service.get_employees()

        assert page.pagination.total == 5
        assert page.pagination.page == 1
        assert page.pagination.page_size == 10
        assert page.pagination.total_pages == 1
        # newest first
        assert names(page)[0] == "Eve Mallory"

    async def test_name_filter_case_insensitive(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(filters={"name": "ALI"})
        assert sorted(names(page)) == ["Alice Walker", "Carol Alison"]

    async def test_class_filter_exact(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(filters={"class": "B"})
        assert sorted(names(page)) == ["Bob Stone", "Eve Mallory"]

    async def test_department_filter(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(filters={"department": "engin"})
        assert page.pagination.total == 2

    async def test_age_range(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(filters={"minAge": 25, "maxAge": 45})
        assert sorted(names(page)) == ["Alice Walker", "Bob Stone", "Carol Alison"]

    async def test_attendance_range(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(filters={"minAttendance": 90})
        assert sorted(names(page)) == ["Bob Stone", "Dan Brown"]

    async def test_no_matches(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(filters={"name": "zzz"})
        assert page.employees == []
        assert page.pagination.total == 0
        assert page.pagination.total_pages == 0
        assert not page.pagination.has_next_page

    async def test_sort_ascending(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(sort={"field": "age", "order": "ASC"})
        assert [e.age for e in page.employees] == [19, 25, 35, 45, 55]

    async def test_sort_descending(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(sort={"field": "name", "order": "DESC"})
        assert names(page)[0] == "Eve Mallory"
        assert names(page)[-1] == "Alice Walker"

    async def test_invalid_sort_field(self, employee_service):
        with pytest.raises(ValidationError):
            await employee_service.get_employees(sort={"field": "password", "order": "ASC"})

    async def test_inverted_range(self, employee_service):
        with pytest.raises(ValidationError):
            await employee_service.get_employees(filters={"minAge": 60, "maxAge": 20})

    async def test_pages_partition_results(self, employee_service, seeded_employees):
        sort = {"field": "age", "order": "ASC"}
        first = await employee_service.get_employees(page=1, page_size=2, sort=sort)
        second = await employee_service.get_employees(page=2, page_size=2, sort=sort)
        third = await employee_service.get_employees(page=3, page_size=2, sort=sort)

        assert [e.age for e in first.employees] == [19, 25]
        assert [e.age for e in second.employees] == [35, 45]
        assert [e.age for e in third.employees] == [55]
        assert first.pagination.has_next_page and not first.pagination.has_previous_page
        assert third.pagination.has_previous_page and not third.pagination.has_next_page
        assert third.pagination.total_pages == 3

    async def test_page_size_clamped(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(page_size=500)
        assert page.pagination.page_size == 100

    async def test_page_beyond_end(self, employee_service, seeded_employees):
        page = await employee_service.get_employees(page=9, page_size=2)
        assert page.employees == []
        assert page.pagination.total == 5


# ============================================================================
# CREATE
# ============================================================================


class TestCreateEmployee:
    """Test employee creation."""

    async def test_create(self, employee_service, make_employee_data):
        employee = await employee_service.create_employee(make_employee_data(email="NEW@Example.com"))

        assert employee.id
        assert employee.email == "new@example.com"
        assert employee.class_ == "Engineering"
        assert employee.created_at is not None
        assert employee.join_date == employee.created_at
        assert employee.updated_at == employee.created_at

    async def test_duplicate_email(self, employee_service, make_employee_data):
        await employee_service.create_employee(make_employee_data())
        with pytest.raises(ConflictError) as exc_info:
            await employee_service.create_employee(make_employee_data(name="Other Person"))
        assert exc_info.value.message == "Employee with this email already exists"

    async def test_duplicate_email_different_case(self, employee_service, make_employee_data):
        await employee_service.create_employee(make_employee_data())
        with pytest.raises(ConflictError):
            await employee_service.create_employee(make_employee_data(email="JOHN.SMITH@example.com"))

    async def test_invalid(self, employee_service, make_employee_data):
        with pytest.raises(ValidationError):
            await employee_service.create_employee(make_employee_data(age=12))


# ============================================================================
# UPDATE
# ============================================================================


class TestUpdateEmployee:
    """Test partial updates."""

    async def test_partial_update(self, employee_service, seeded_employees):
        target = seeded_employees[0]
        updated = await employee_service.update_employee(target.id, {"age": 26, "class_": "Z"})

        assert updated.age == 26
        assert updated.class_ == "Z"
        assert updated.name == target.name
        assert updated.email == target.email
        assert updated.updated_at >= target.updated_at

    async def test_empty_update_touches_timestamp(self, employee_service, seeded_employees):
        target = seeded_employees[0]
        updated = await employee_service.update_employee(target.id, {})
        assert updated.name == target.name

    async def test_keep_own_email(self, employee_service, seeded_employees):
        target = seeded_employees[0]
        updated = await employee_service.update_employee(target.id, {"email": target.email})
        assert updated.email == target.email

    async def test_email_conflict(self, employee_service, seeded_employees):
        with pytest.raises(ConflictError):
            await employee_service.update_employee(seeded_employees[0].id, {"email": seeded_employees[1].email})

    async def test_missing(self, employee_service):
        with pytest.raises(NotFoundError) as exc_info:
            await employee_service.update_employee(MISSING_ID, {"age": 30})
        assert exc_info.value.message == "Employee not found"

    async def test_missing_with_taken_email(self, employee_service, seeded_employees):
        with pytest.raises(NotFoundError):
            await employee_service.update_employee(MISSING_ID, {"email": seeded_employees[1].email})

    async def test_invalid_id(self, employee_service):
        with pytest.raises(ValidationError) as exc_info:
            await employee_service.update_employee("nope", {"age": 30})
        assert exc_info.value.message == "Invalid employee ID"

    async def test_invalid_value(self, employee_service, seeded_employees):
        with pytest.raises(ValidationError):
            await employee_service.update_employee(seeded_employees[0].id, {"attendance": 101})


# ============================================================================
# READ AND DELETE
# ============================================================================


class TestGetAndDelete:
    """Test single-employee reads and deletes."""

    async def test_get_by_id(self, employee_service, seeded_employees):
        employee = await employee_service.get_employee_by_id(seeded_employees[2].id)
        assert employee.name == "Carol Alison"

    async def test_get_missing(self, employee_service):
        with pytest.raises(NotFoundError):
            await employee_service.get_employee_by_id(MISSING_ID)

    async def test_get_invalid_id(self, employee_service):
        with pytest.raises(ValidationError):
            await employee_service.get_employee_by_id("123")

    async def test_get_by_upper_case_id(self, employee_service, seeded_employees):
        employee = await employee_service.get_employee_by_id(seeded_employees[2].id.upper())
        assert employee.id == seeded_employees[2].id

    def test_validate_id_is_canonical(self, employee_service):
        assert employee_service.validate_id(MISSING_ID.upper()) == MISSING_ID

    async def test_delete(self, employee_service, seeded_employees):
        assert await employee_service.delete_employee(seeded_employees[0].id) is True
        with pytest.raises(NotFoundError):
            await employee_service.get_employee_by_id(seeded_employees[0].id)
        assert (await employee_service.get_employees()).pagination.total == 4

    async def test_delete_twice(self, employee_service, seeded_employees):
        await employee_service.delete_employee(seeded_employees[0].id)
        with pytest.raises(NotFoundError):
            await employee_service.delete_employee(seeded_employees[0].id)

    async def test_delete_invalid_id(self, employee_service):
        with pytest.raises(ValidationError):
            await employee_service.delete_employee("xyz")


# ============================================================================
# BATCH LOADING
# ============================================================================


class TestLoadEmployeesByIds:
    """Test the loader batch function."""

    async def test_order_and_misses(self, employee_service, seeded_employees, memory_db):
        ids = [seeded_employees[3].id, MISSING_ID, seeded_employees[0].id]
        memory_db["employees"].find_calls.clear()

        results = await employee_service.load_employees_by_ids(ids)

        assert [r.id if r else None for r in results] == [seeded_employees[3].id, None, seeded_employees[0].id]
        assert len(memory_db["employees"].find_calls) == 1

    async def test_invalid_ids_yield_none(self, employee_service, seeded_employees):
        results = await employee_service.load_employees_by_ids(["bad", seeded_employees[1].id])
        assert results[0] is None
        assert results[1].name == "Bob Stone"
