"""Request-scoped data loaders."""

from strawberry.dataloader import DataLoader

from employee_api.src.models.employee import EmployeeDB
from employee_api.src.services.employee_service import EmployeeService


def create_employee_loader(employee_service: EmployeeService) -> DataLoader[str, EmployeeDB]:
    """
    Build a loader that coalesces employee-by-id lookups.

    Every ``load`` issued during one tick of the event loop is answered by a
    single ``$in`` query; repeated ids within the request hit the loader's
    own cache. Create one per request so results never leak across callers.
    """
    return DataLoader(load_fn=employee_service.load_employees_by_ids)
