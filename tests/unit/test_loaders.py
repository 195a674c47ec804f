"""
Unit tests for the request-scoped employee loader.

Tests cover:
- Coalescing concurrent loads into one batch query
- Result ordering and missing ids
- Per-request caching, priming and clearing
"""

import asyncio

from employee_api.src.gql.loaders import create_employee_loader

MISSING_ID = "65a1b2c3d4e5f6a7b8c9d0e1"


class CountingService:
    """Wraps the employee service and records each batch."""

    def __init__(self, service):
        self.service = service
        self.batches = []

    async def load_employees_by_ids(self, ids):
        self.batches.append(list(ids))
        return await self.service.load_employees_by_ids(ids)


# ============================================================================
# BATCHING
# ============================================================================


class TestEmployeeLoader:
    """Test DataLoader batching."""

    async def test_concurrent_loads_share_one_batch(self, employee_service, seeded_employees):
        counting = CountingService(employee_service)
        loader = create_employee_loader(counting)
        wanted = [e.id for e in seeded_employees[:3]]

        results = await asyncio.gather(*(loader.load(i) for i in wanted))

        assert [r.id for r in results] == wanted
        assert len(counting.batches) == 1
        assert sorted(counting.batches[0]) == sorted(wanted)

    async def test_missing_id_resolves_to_none(self, employee_service, seeded_employees):
        loader = create_employee_loader(employee_service)
        found, missing = await asyncio.gather(loader.load(seeded_employees[0].id), loader.load(MISSING_ID))

        assert found.id == seeded_employees[0].id
        assert missing is None

    async def test_repeated_id_served_from_cache(self, employee_service, seeded_employees):
        counting = CountingService(employee_service)
        loader = create_employee_loader(counting)

        await loader.load(seeded_employees[0].id)
        await loader.load(seeded_employees[0].id)

        assert len(counting.batches) == 1

    async def test_primed_value_skips_batch(self, employee_service, seeded_employees):
        counting = CountingService(employee_service)
        loader = create_employee_loader(counting)
        loader.prime(seeded_employees[1].id, seeded_employees[1])

        assert (await loader.load(seeded_employees[1].id)).name == "Bob Stone"
        assert counting.batches == []

    async def test_clear_forces_reload(self, employee_service, seeded_employees):
        counting = CountingService(employee_service)
        loader = create_employee_loader(counting)
        employee_id = seeded_employees[0].id

        await loader.load(employee_id)
        await employee_service.update_employee(employee_id, {"age": 60})
        loader.clear(employee_id)

        assert (await loader.load(employee_id)).age == 60
        assert len(counting.batches) == 2

    async def test_loaders_are_independent(self, employee_service, seeded_employees):
        counting = CountingService(employee_service)
        first = create_employee_loader(counting)
        second = create_employee_loader(counting)

        await first.load(seeded_employees[0].id)
        await second.load(seeded_employees[0].id)

        assert len(counting.batches) == 2
