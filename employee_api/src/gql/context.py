"""Per-request GraphQL context."""

from typing import Optional

from strawberry.dataloader import DataLoader
from strawberry.fastapi import BaseContext

from employee_api.src.config import Settings
from employee_api.src.gql.loaders import create_employee_loader
from employee_api.src.models.auth import CurrentUser
from employee_api.src.models.employee import EmployeeDB
from employee_api.src.services.auth_service import AuthService
from employee_api.src.services.employee_service import EmployeeService


class GraphQLContext(BaseContext):
    """
    Everything a resolver needs for one request.

    Attributes:
        settings: Application settings
        auth_service: Authentication service
        employee_service: Employee service
        token: Raw bearer token, if any
        user: Authenticated user, or None for anonymous requests
        employee_loader: Fresh employee loader for this request
    """

    def __init__(
        self,
        settings: Settings,
        auth_service: AuthService,
        employee_service: EmployeeService,
        token: Optional[str] = None,
        user: Optional[CurrentUser] = None,
    ):
        super().__init__()
        self.settings = settings
        self.auth_service = auth_service
        self.employee_service = employee_service
        self.token = token
        self.user = user
        self.employee_loader: DataLoader[str, EmployeeDB] = create_employee_loader(employee_service)
