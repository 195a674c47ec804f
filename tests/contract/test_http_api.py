"""
Contract tests for the HTTP surface of the API.

Tests verify:
- Health check body and status codes (200 connected, 503 disconnected)
- GraphQL over HTTP, including bearer-token authentication
- Correlation ID and security headers
- Prometheus metrics endpoint
"""

import pytest
from httpx import ASGITransport, AsyncClient

from employee_api.src.dependencies import (
    get_employee_repository,
    get_optional_database,
    get_settings_dependency,
    get_user_repository,
)
from employee_api.src.main import create_app
from employee_api.src.models.auth import Role

from conftest import FakeDatabase, create_user


@pytest.fixture
def app(settings, user_repo, employee_repo):
    application = create_app(settings)
    application.dependency_overrides[get_settings_dependency] = lambda: settings
    application.dependency_overrides[get_user_repository] = lambda: user_repo
    application.dependency_overrides[get_employee_repository] = lambda: employee_repo
    application.dependency_overrides[get_optional_database] = lambda: FakeDatabase(reachable=True)
    return application


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


async def graphql(client, query, variables=None, token=None):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    response = await client.post("/graphql", json={"query": query, "variables": variables or {}}, headers=headers)
    assert response.status_code == 200
    return response.json()


# ============================================================================
# HEALTH
# ============================================================================


class TestHealth:
    """Test the health check endpoint."""

    async def test_healthy(self, client, settings):
        response = await client.get("/health")
        body = response.json()

        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["service"] == settings.app_name
        assert body["version"] == settings.app_version
        assert body["environment"] == "test"
        assert body["database"] == {"status": "connected", "state": "connected"}
        assert body["timestamp"].endswith("Z")
        assert body["uptime"] >= 0
        assert body["memory"]["max_rss_mb"] > 0

    async def test_database_down(self, app, client):
        app.dependency_overrides[get_optional_database] = lambda: FakeDatabase(reachable=False)
        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["database"]["status"] == "disconnected"

    async def test_not_connected_yet(self, app, client):
        app.dependency_overrides[get_optional_database] = lambda: None
        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["database"]["state"] == "disconnected"


# ============================================================================
# HEADERS
# ============================================================================


class TestHeaders:
    """Test middleware-added headers."""

    async def test_correlation_id_generated(self, client):
        response = await client.get("/health")
        assert response.headers["X-Correlation-ID"]

    async def test_correlation_id_propagated(self, client):
        response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    async def test_security_headers(self, client):
        response = await client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    async def test_unknown_route(self, client):
        response = await client.get("/nope")
        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}


# ============================================================================
# GRAPHQL OVER HTTP
# ============================================================================


class TestGraphQLOverHttp:
    """Test the mounted GraphQL endpoint."""

    async def test_login_then_me(self, client, user_repo, auth_service):
        await create_user(user_repo, auth_service, "admin", "admin123", Role.ADMIN)

        login = await graphql(
            client,
            "mutation($u: String!, $p: String!) { login(username: $u, password: $p) { token } }",
            {"u": "admin", "p": "admin123"},
        )
        token = login["data"]["login"]["token"]

        me = await graphql(client, "{ me { username role } }", token=token)
        assert me["data"]["me"] == {"username": "admin", "role": "admin"}

    async def test_invalid_token_is_anonymous(self, client):
        body = await graphql(client, "{ me { username } }", token="not-a-jwt")

        assert body["data"] is None
        assert body["errors"][0]["extensions"]["code"] == "AUTHENTICATION_ERROR"

    async def test_public_listing(self, client):
        body = await graphql(client, "{ employees { pagination { total page pageSize } } }")
        assert body["data"]["employees"]["pagination"] == {"total": 0, "page": 1, "pageSize": 10}


# ============================================================================
# METRICS
# ============================================================================


class TestMetrics:
    """Test the Prometheus endpoint."""

    async def test_metrics_exposed(self, client):
        await client.get("/health")
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "graphql_operations_total" in response.text
