"""
GraphQL schema: queries, mutations and error handling.

Resolvers stay thin: they check access through the RBAC guards, hand plain
mappings to the services and wrap the returned models in GraphQL types.
Errors raised as AppError reach the client with their code and status in
``extensions``; anything else is logged and, in production, masked.
"""

from typing import List, Optional

import strawberry
import structlog
from graphql import GraphQLError
from strawberry.extensions import MaskErrors, SchemaExtension
from strawberry.types import ExecutionContext, Info

from employee_api.src.config import Settings
from employee_api.src.errors import AppError, NotFoundError
from employee_api.src.gql.context import GraphQLContext
from employee_api.src.gql.types import (
    AuthPayloadType,
    EmployeeFiltersInput,
    EmployeeInputType,
    EmployeesResponse,
    EmployeeType,
    EmployeeUpdateInputType,
    SortInputType,
    UserType,
    input_to_dict,
)
from employee_api.src.middleware.rbac import require_admin, require_auth
from shared.metrics import get_metrics

logger = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _check_read_access(context: GraphQLContext) -> None:
    if context.settings.require_auth_for_reads:
        require_auth(context)


# ============================================================================
# Query
# ============================================================================


@strawberry.type
class Query:
    @strawberry.field(description="Employees matching the filters, one page at a time")
    async def employees(
        self,
        info: Info[GraphQLContext, None],
        filters: Optional[EmployeeFiltersInput] = None,
        page: Optional[int] = 1,
        page_size: Optional[int] = 10,
        sort: Optional[SortInputType] = None,
    ) -> EmployeesResponse:
        context = info.context
        _check_read_access(context)

        result = await context.employee_service.get_employees(
            filters=input_to_dict(filters),
            page=page,
            page_size=page_size,
            sort=input_to_dict(sort),
        )
        for employee in result.employees:
            context.employee_loader.prime(employee.id, employee)
        return EmployeesResponse.from_page(result)

    @strawberry.field(description="Single employee by ID")
    async def employee(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> Optional[EmployeeType]:
        context = info.context
        _check_read_access(context)

        employee_id = context.employee_service.validate_id(str(id))
        employee = await context.employee_loader.load(employee_id)
        if employee is None:
            raise NotFoundError("Employee")
        return EmployeeType.from_model(employee)

    @strawberry.field(description="Current authenticated user")
    async def me(self, info: Info[GraphQLContext, None]) -> Optional[UserType]:
        context = info.context
        user = require_auth(context)
        return UserType.from_model(await context.auth_service.get_current_user(user.id))


# ============================================================================
# Mutation
# ============================================================================


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def register(
        self,
        info: Info[GraphQLContext, None],
        username: str,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> AuthPayloadType:
        context = info.context
        payload = await context.auth_service.register(
            username=username,
            email=email,
            password=password,
            role=role,
            requested_by=context.user,
        )
        return AuthPayloadType.from_model(payload)

    @strawberry.mutation
    async def login(self, info: Info[GraphQLContext, None], username: str, password: str) -> AuthPayloadType:
        payload = await info.context.auth_service.login(username, password)
        return AuthPayloadType.from_model(payload)

    @strawberry.mutation(description="Create an employee (admin only)")
    async def add_employee(self, info: Info[GraphQLContext, None], input: EmployeeInputType) -> EmployeeType:
        context = info.context
        require_admin(context)
        employee = await context.employee_service.create_employee(input_to_dict(input))
        return EmployeeType.from_model(employee)

    @strawberry.mutation(description="Update an employee (admin only)")
    async def update_employee(
        self,
        info: Info[GraphQLContext, None],
        id: strawberry.ID,
        input: EmployeeUpdateInputType,
    ) -> EmployeeType:
        context = info.context
        require_admin(context)
        employee = await context.employee_service.update_employee(str(id), input_to_dict(input))
        context.employee_loader.clear(employee.id)
        return EmployeeType.from_model(employee)

    @strawberry.mutation(description="Delete an employee (admin only)")
    async def delete_employee(self, info: Info[GraphQLContext, None], id: strawberry.ID) -> bool:
        context = info.context
        require_admin(context)
        employee_id = context.employee_service.validate_id(str(id))
        deleted = await context.employee_service.delete_employee(employee_id)
        context.employee_loader.clear(employee_id)
        return deleted


# ============================================================================
# Extensions and schema
# ============================================================================


def is_unexpected_error(error: GraphQLError) -> bool:
    """True for errors raised by resolver code that are not AppErrors."""
    original = error.original_error
    return original is not None and not isinstance(original, AppError)


class MaskInternalErrors(MaskErrors):
    """Replace unexpected errors with a generic message and INTERNAL_ERROR code."""

    def __init__(self):
        super().__init__(should_mask_error=is_unexpected_error, error_message=INTERNAL_ERROR_MESSAGE)

    def anonymise_error(self, error: GraphQLError) -> GraphQLError:
        return GraphQLError(
            self.error_message,
            nodes=error.nodes,
            source=error.source,
            positions=error.positions,
            path=error.path,
            original_error=None,
            extensions={"code": AppError.code, "statusCode": AppError.status_code},
        )


class OperationMetrics(SchemaExtension):
    """Count executed operations by type and outcome."""

    def on_operation(self):
        yield
        try:
            operation_type = self.execution_context.operation_type.value
        except RuntimeError:
            operation_type = "unknown"
        result = self.execution_context.result
        success = result is not None and not result.errors
        get_metrics().record_graphql_operation(operation_type, success)


class DirectorySchema(strawberry.Schema):
    """Schema that logs errors through structlog."""

    def process_errors(
        self,
        errors: List[GraphQLError],
        execution_context: Optional[ExecutionContext] = None,
    ) -> None:
        for error in errors:
            original = error.original_error
            path = ".".join(str(p) for p in error.path) if error.path else None
            if isinstance(original, AppError):
                logger.info(
                    "graphql_app_error",
                    code=original.code,
                    status_code=original.status_code,
                    message=original.message,
                    path=path,
                )
            elif original is None:
                logger.warning("graphql_request_error", message=error.message, path=path)
            else:
                logger.error(
                    "graphql_unexpected_error",
                    error=str(original),
                    error_type=type(original).__name__,
                    path=path,
                    exc_info=original,
                )


def create_schema(settings: Settings) -> DirectorySchema:
    """
    Build the GraphQL schema.

    Args:
        settings: Application settings (masking is enabled in production)

    Returns:
        Executable schema
    """
    extensions = [OperationMetrics]
    if settings.is_production:
        extensions.append(MaskInternalErrors())
    return DirectorySchema(query=Query, mutation=Mutation, extensions=extensions)
