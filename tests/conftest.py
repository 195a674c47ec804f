"""
Shared fixtures for the employee directory test suite.

Unit and contract tests run the real repositories on top of an in-memory
stand-in for the PyMongo async collection API, so every layer above the
driver is exercised without a MongoDB server.
"""

import copy
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from employee_api.src.config import Settings
from employee_api.src.gql.context import GraphQLContext
from employee_api.src.gql.schema import create_schema
from employee_api.src.models.auth import CurrentUser, Role
from employee_api.src.repositories.employee_repo import EmployeeRepository
from employee_api.src.repositories.user_repo import UserRepository
from employee_api.src.services.auth_service import AuthService
from employee_api.src.services.employee_service import EmployeeService
from employee_api.src.services.user_cache import UserCache
from employee_api.src.utils.datetime_utils import utcnow


TEST_SECRET = "test-secret-key-with-at-least-thirty-two-characters"


# ============================================================================
# IN-MEMORY MONGODB DOUBLES
# ============================================================================


def _match_value(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        for op, arg in condition.items():
            if op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(arg, value, flags):
                    return False
            elif op == "$options":
                continue
            elif op == "$gte":
                if value is None or value < arg:
                    return False
            elif op == "$lte":
                if value is None or value > arg:
                    return False
            elif op == "$in":
                if value not in arg:
                    return False
            elif op == "$ne":
                if value == arg:
                    return False
            else:
                raise NotImplementedError(op)
        return True
    return value == condition


def matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the subset of the MongoDB query language the app uses."""
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif not _match_value(doc.get(key), condition):
            return False
    return True


class _InsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class _DeleteResult:
    def __init__(self, deleted_count: int):
        self.deleted_count = deleted_count


class InMemoryCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs
        self._sort: List[Tuple[str, int]] = []
        self._skip = 0
        self._limit = 0

    def sort(self, spec):
        self._sort = list(spec)
        return self

    def skip(self, n: int):
        self._skip = n
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = list(self._docs)
        for key, direction in reversed(self._sort):
            docs.sort(
                key=lambda d: (d.get(key) is not None, d.get(key) if d.get(key) is not None else 0),
                reverse=direction < 0,
            )
        docs = docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [copy.deepcopy(d) for d in docs]


class InMemoryCollection:
    """Async collection double with unique-index enforcement."""

    def __init__(self, name: str):
        self.name = name
        self.docs: List[Dict[str, Any]] = []
        self.unique_keys: List[str] = []
        self.indexes: List[Dict[str, Any]] = []
        self.find_calls: List[Dict[str, Any]] = []

    async def create_indexes(self, models):
        for model in models:
            document = model.document
            self.indexes.append(document)
            if document.get("unique"):
                self.unique_keys.extend(document["key"].keys())
        return [m.document["name"] for m in models]

    def _check_unique(self, candidate: Dict[str, Any], ignore_id=None):
        for key in self.unique_keys:
            for doc in self.docs:
                if doc["_id"] == ignore_id:
                    continue
                if key in candidate and doc.get(key) == candidate[key]:
                    raise DuplicateKeyError(
                        f"E11000 duplicate key error collection: {self.name}",
                        code=11000,
                        details={"keyValue": {key: candidate[key]}},
                    )

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query):
        self.find_calls.append(query)
        return InMemoryCursor([d for d in self.docs if matches(d, query)])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if matches(d, query))

    async def insert_one(self, document):
        doc = copy.deepcopy(document)
        doc.setdefault("_id", ObjectId())
        self._check_unique(doc)
        self.docs.append(doc)
        return _InsertResult(doc["_id"])

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        for doc in self.docs:
            if matches(doc, query):
                changes = update.get("$set", {})
                self._check_unique(changes, ignore_id=doc["_id"])
                before = copy.deepcopy(doc)
                doc.update(copy.deepcopy(changes))
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[i]
                return _DeleteResult(1)
        return _DeleteResult(0)

    async def delete_many(self, query):
        kept = [d for d in self.docs if not matches(d, query)]
        removed = len(self.docs) - len(kept)
        self.docs = kept
        return _DeleteResult(removed)


class InMemoryDatabase:
    def __init__(self):
        self.collections: Dict[str, InMemoryCollection] = {}

    def __getitem__(self, name: str) -> InMemoryCollection:
        if name not in self.collections:
            self.collections[name] = InMemoryCollection(name)
        return self.collections[name]


class FakeDatabase:
    """Stand-in for employee_api.src.database.Database in health checks."""

    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.db = InMemoryDatabase()

    async def ping(self) -> bool:
        return self.reachable

    @property
    def state(self) -> str:
        return "connected" if self.reachable else "disconnected"


# ============================================================================
# SETTINGS, REPOSITORIES AND SERVICES
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        jwt_secret_key=TEST_SECRET,
        password_bcrypt_rounds=4,
        rate_limit_enabled=False,
        tracing_enabled=False,
        log_format="text",
        _env_file=None,
    )


@pytest.fixture
def production_settings(settings) -> Settings:
    return settings.model_copy(update={"environment": "production"})


@pytest.fixture
def memory_db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
async def user_repo(memory_db) -> UserRepository:
    repo = UserRepository(memory_db)
    await repo.ensure_indexes()
    return repo


@pytest.fixture
async def employee_repo(memory_db) -> EmployeeRepository:
    repo = EmployeeRepository(memory_db)
    await repo.ensure_indexes()
    return repo


@pytest.fixture
def user_cache() -> UserCache:
    return UserCache(ttl_seconds=300, max_size=100)


@pytest.fixture
def auth_service(user_repo, user_cache, settings) -> AuthService:
    return AuthService(user_repo, user_cache=user_cache, settings=settings)


@pytest.fixture
def employee_service(employee_repo, settings) -> EmployeeService:
    return EmployeeService(employee_repo, settings=settings)


def employee_data(**overrides: Any) -> Dict[str, Any]:
    """Valid employee input using GraphQL field names."""
    data = {
        "name": "John Smith",
        "age": 32,
        "class": "Engineering",
        "subjects": ["Mathematics", "Physics"],
        "attendance": 95.0,
        "email": "john.smith@example.com",
        "department": "IT",
        "position": "Senior Developer",
        "salary": 95000.0,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_employee_data():
    return employee_data


@pytest.fixture
async def seeded_employees(employee_service) -> List[Any]:
    """Five employees with distinct ages, classes and attendance."""
    rows = [
        employee_data(name="Alice Walker", age=25, email="alice@example.com", attendance=80,
                      department="Engineering", **{"class": "A"}),
        employee_data(name="Bob Stone", age=35, email="bob@example.com", attendance=90,
                      department="Sales", **{"class": "B"}),
        employee_data(name="Carol Alison", age=45, email="carol@example.com", attendance=70,
                      department="Engineering", **{"class": "A"}),
        employee_data(name="Dan Brown", age=55, email="dan@example.com", attendance=99,
                      department="Finance", **{"class": "C"}),
        employee_data(name="Eve Mallory", age=19, email="eve@example.com", attendance=60,
                      department=None, **{"class": "B"}),
    ]
    created = []
    for row in rows:
        created.append(await employee_service.create_employee(row))
    return created


async def create_user(user_repo: UserRepository, auth_service: AuthService, username: str,
                      password: str, role: Role = Role.EMPLOYEE, email: Optional[str] = None):
    now = utcnow()
    return await user_repo.create_user({
        "username": username,
        "email": email or f"{username}@example.com",
        "password_hash": auth_service.hash_password(password),
        "role": role.value,
        "created_at": now,
        "updated_at": now,
    })


@pytest.fixture
async def admin_user(user_repo, auth_service) -> CurrentUser:
    user = await create_user(user_repo, auth_service, "admin", "admin123", Role.ADMIN)
    return CurrentUser.from_user(user)


@pytest.fixture
async def employee_user(user_repo, auth_service) -> CurrentUser:
    user = await create_user(user_repo, auth_service, "employee", "emp123", Role.EMPLOYEE)
    return CurrentUser.from_user(user)


# ============================================================================
# GRAPHQL
# ============================================================================


@pytest.fixture
def schema(settings):
    return create_schema(settings)


@pytest.fixture
def make_context(settings, auth_service, employee_service):
    def _make(user: Optional[CurrentUser] = None, context_settings: Optional[Settings] = None) -> GraphQLContext:
        return GraphQLContext(
            settings=context_settings or settings,
            auth_service=auth_service,
            employee_service=employee_service,
            user=user,
        )
    return _make


@pytest.fixture
def execute(schema, make_context):
    """Run a GraphQL document against the schema as the given user."""

    async def _execute(query: str, variables: Optional[Dict[str, Any]] = None,
                       user: Optional[CurrentUser] = None, context: Optional[GraphQLContext] = None):
        return await schema.execute(
            query,
            variable_values=variables,
            context_value=context or make_context(user),
        )

    return _execute


def error_codes(result) -> List[str]:
    return [e.extensions.get("code") for e in (result.errors or []) if e.extensions]


@pytest.fixture
def codes():
    return error_codes


def ids(items: Iterable[Any]) -> List[str]:
    return [item.id for item in items]
