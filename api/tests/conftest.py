"""Shared fixtures.

``FakeCassandraSession`` is an in-memory stand-in for the
cassandra-asyncio-driver session. It reads the real ``*_TABLES_CQL``
definitions so primary keys (and therefore ``IF NOT EXISTS``) behave as
they do in Cassandra, and supports the statement shapes the services
prepare: ``SELECT * ... WHERE a = ? AND b = ?`` and ``INSERT ... VALUES``.
"""

import os
import re
import tempfile
from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnpath-logs-"))

from fastapi.testclient import TestClient  # noqa: E402

from learnpath.auth.permissions import UserRole  # noqa: E402
from learnpath.auth.security import create_access_token  # noqa: E402
from learnpath.auth.service import UserDirectory  # noqa: E402
from learnpath.catalog.service import CatalogService  # noqa: E402
from learnpath.certificates.renderer import CertificateRenderer  # noqa: E402
from learnpath.certificates.service import CertificationGate  # noqa: E402
from learnpath.core.database.async_cassandra import SCHEMA_CQL  # noqa: E402
from learnpath.enrollments.service import EnrollmentService  # noqa: E402
from learnpath.progress.service import ProgressTracker  # noqa: E402


KEYSPACE = "test_keyspace"


# ==============================================================================
# In-memory Cassandra
# ==============================================================================


class FakeResultSet:
    """Subset of the driver's ResultSet used by the services."""

    def __init__(self, rows: list[Any] | None = None, applied: bool = True):
        self._rows = rows or []
        self.was_applied = applied

    def one(self) -> Any:
        return self._rows[0] if self._rows else None

    def __iter__(self) -> Iterator[Any]:
        return iter(self._rows)


class FakeTable:
    def __init__(self, cql: str):
        self.name = re.search(r"\{keyspace\}\.(\w+)", cql).group(1)
        body = re.search(r"\((.*)\n\)", cql, re.S).group(1)
        self.columns: list[str] = []
        self.key: list[str] = []
        for line in body.splitlines():
            line = line.strip().rstrip(",")
            if not line:
                continue
            if line.startswith("PRIMARY KEY"):
                inner = line[len("PRIMARY KEY") :].replace("(", "").replace(")", "")
                self.key = [c.strip() for c in inner.split(",")]
                continue
            column = line.split()[0]
            self.columns.append(column)
            if line.endswith("PRIMARY KEY"):
                self.key = [column]
        self.rows: dict[tuple, dict[str, Any]] = {}


class FakePreparedStatement:
    def __init__(self, cql: str):
        self.cql = " ".join(cql.split())
        if self.cql.startswith("SELECT"):
            self.kind = "select"
            self.table = re.search(r"FROM \S+?\.(\w+)", self.cql).group(1)
            self.columns = re.findall(r"(\w+) = \?", self.cql)
        elif self.cql.startswith("INSERT"):
            self.kind = "insert"
            self.table = re.search(r"INTO \S+?\.(\w+)", self.cql).group(1)
            names = re.search(r"\(([^)]*)\) VALUES", self.cql).group(1)
            self.columns = [c.strip() for c in names.split(",")]
            self.if_not_exists = self.cql.endswith("IF NOT EXISTS")
        else:
            msg = f"Unsupported statement: {self.cql}"
            raise ValueError(msg)


class FakeCassandraSession:
    """In-memory session honouring primary keys and lightweight transactions."""

    def __init__(self):
        self.tables = {
            table.name: table
            for statements in SCHEMA_CQL.values()
            for table in (FakeTable(cql) for cql in statements)
        }

    def prepare(self, cql: str) -> FakePreparedStatement:
        return FakePreparedStatement(cql)

    async def aexecute(
        self, statement: FakePreparedStatement, params: list[Any] | None = None
    ) -> FakeResultSet:
        table = self.tables[statement.table]
        values = dict(zip(statement.columns, params or [], strict=True))

        if statement.kind == "select":
            rows = [
                SimpleNamespace(**row)
                for row in table.rows.values()
                if all(row[c] == v for c, v in values.items())
            ]
            return FakeResultSet(rows)

        key = tuple(values[c] for c in table.key)
        if statement.if_not_exists and key in table.rows:
            return FakeResultSet(applied=False)
        row = dict.fromkeys(table.columns)
        row.update(values)
        table.rows[key] = row
        return FakeResultSet()


# ==============================================================================
# Service Fixtures
# ==============================================================================


@pytest.fixture
def session() -> FakeCassandraSession:
    return FakeCassandraSession()


@pytest.fixture
def users(session) -> UserDirectory:
    return UserDirectory(session=session, keyspace=KEYSPACE)


@pytest.fixture
def catalog(session) -> CatalogService:
    return CatalogService(session=session, keyspace=KEYSPACE)


@pytest.fixture
def enrollments(session) -> EnrollmentService:
    return EnrollmentService(session=session, keyspace=KEYSPACE)


@pytest.fixture
def tracker(session, catalog, enrollments, users) -> ProgressTracker:
    return ProgressTracker(
        session=session,
        keyspace=KEYSPACE,
        catalog=catalog,
        enrollments=enrollments,
        users=users,
    )


@pytest.fixture
def renderer(tmp_path) -> CertificateRenderer:
    return CertificateRenderer(output_dir=tmp_path / "certificates", issuer="Test LMS")


@pytest.fixture
def gate(session, tracker, catalog, users, renderer) -> CertificationGate:
    return CertificationGate(
        session=session,
        keyspace=KEYSPACE,
        tracker=tracker,
        catalog=catalog,
        users=users,
        renderer=renderer,
    )


# ==============================================================================
# Scenario Fixtures
# ==============================================================================


@pytest.fixture
async def mentor(users):
    return await users.register_user(
        "mentor@example.com", "Maria Mentor", UserRole.MENTOR
    )


@pytest.fixture
async def student(users):
    return await users.register_user("ana@example.com", "Ana Student")


@pytest.fixture
async def other_student(users):
    return await users.register_user("bruno@example.com", "Bruno Student")


@pytest.fixture
async def course(catalog, mentor):
    return await catalog.create_course("Pharmacology Basics", mentor_id=mentor.id)


@pytest.fixture
async def chapters(catalog, course):
    """Two chapters: "Intro" (1) and "Advanced" (2)."""
    intro = await catalog.add_chapter(course.id, "Intro", 1)
    advanced = await catalog.add_chapter(course.id, "Advanced", 2)
    return [intro, advanced]


@pytest.fixture
async def enrolled(enrollments, student, course, mentor):
    return await enrollments.enroll(student.id, course.id, enrolled_by=mentor.id)


# ==============================================================================
# HTTP Fixtures
# ==============================================================================


@pytest.fixture
def client(users, catalog, enrollments, tracker, gate) -> TestClient:
    """Test client with services wired on app.state (lifespan not run)."""
    from learnpath.main import create_app

    app = create_app()
    app.state.user_directory = users
    app.state.catalog_service = catalog
    app.state.enrollment_service = enrollments
    app.state.progress_tracker = tracker
    app.state.certification_gate = gate
    return TestClient(app)


@pytest.fixture
def bare_client() -> TestClient:
    """Test client without any services (database unavailable)."""
    from learnpath.main import create_app

    return TestClient(create_app())


@pytest.fixture
def auth_headers():
    """Build a bearer header for a token as issued by the identity service."""

    def _headers(
        user_id: UUID | None = None, role: UserRole = UserRole.STUDENT
    ) -> dict[str, str]:
        token = create_access_token(
            {
                "sub": str(user_id or uuid4()),
                "email": "user@example.com",
                "role": role.value,
            }
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
