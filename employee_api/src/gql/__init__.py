"""GraphQL API (Strawberry)."""

from employee_api.src.gql.context import GraphQLContext
from employee_api.src.gql.schema import create_schema

__all__ = ["GraphQLContext", "create_schema"]
