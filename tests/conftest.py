"""
Pytest fixtures for the driving-school backend tests.

Uses a temp file SQLite database so the request session and the audit
recorder's own sessions see the same data (in-memory is per-connection).
"""

import os
import tempfile
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Callable

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
TEST_SECRET_KEY = "test-secret-key-for-testing-only"

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SECRET_KEY"] = TEST_SECRET_KEY

from src.config import get_settings  # noqa: E402

get_settings.cache_clear()

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from src.kernel.audit.recorder import AuditRecorder  # noqa: E402
from src.kernel.identity.jwt import JWTManager  # noqa: E402
from src.kernel.identity.password import hash_password  # noqa: E402
from src.kernel.identity.principal import Principal  # noqa: E402
from src.kernel.models import Base, Student, StudentStatus, Tenant, User, UserRole  # noqa: E402

TEST_PASSWORD = "TestPassword123"
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Fresh schema per test on the shared temp file."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def jwt_manager() -> JWTManager:
    """Create a JWT manager for tests."""
    return JWTManager(
        secret_key=TEST_SECRET_KEY,
        algorithm="HS256",
        access_token_expire_minutes=30,
    )


@pytest.fixture
def audit_recorder(session_factory) -> AuditRecorder:
    return AuditRecorder(session_factory, max_limit=50)


async def _add(session: AsyncSession, obj):
    session.add(obj)
    await session.commit()
    return obj


@pytest_asyncio.fixture
async def tenant_a(db_session: AsyncSession) -> Tenant:
    return await _add(db_session, Tenant(name="Auto-Ecole Alpha"))


@pytest_asyncio.fixture
async def tenant_b(db_session: AsyncSession) -> Tenant:
    return await _add(db_session, Tenant(name="Auto-Ecole Bravo"))


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory: ``await make_user(tenant, UserRole.SECRETARY)``."""

    async def _make(tenant: Tenant, role: UserRole, email: str | None = None) -> User:
        user = User(
            tenant_id=tenant.id,
            email=email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=_PASSWORD_HASH,
            role=role,
        )
        return await _add(db_session, user)

    return _make


@pytest_asyncio.fixture
async def admin_a(make_user, tenant_a) -> User:
    return await make_user(tenant_a, UserRole.ADMIN)


@pytest_asyncio.fixture
async def secretary_a(make_user, tenant_a) -> User:
    return await make_user(tenant_a, UserRole.SECRETARY)


@pytest_asyncio.fixture
async def instructor_a(make_user, tenant_a) -> User:
    return await make_user(tenant_a, UserRole.INSTRUCTOR)


@pytest_asyncio.fixture
async def admin_b(make_user, tenant_b) -> User:
    return await make_user(tenant_b, UserRole.ADMIN)


@pytest.fixture
def make_student(db_session: AsyncSession, make_user) -> Callable:
    """Factory: ``await make_student(tenant, minutes_purchased=600)``."""

    async def _make(
        tenant: Tenant,
        minutes_purchased: int = 0,
        minutes_used: int = 0,
        first_name: str = "Camille",
    ) -> Student:
        user = await make_user(tenant, UserRole.STUDENT)
        student = Student(
            tenant_id=tenant.id,
            user_id=user.id,
            birth_name="Martin",
            first_name=first_name,
            birth_date=date(2005, 3, 14),
            birth_city="Lyon",
            address="12 rue de la Paix",
            city="Lyon",
            zip_code="69001",
            phone="0601020304",
            status=StudentStatus.ACTIVE,
            minutes_purchased=minutes_purchased,
            minutes_used=minutes_used,
        )
        await _add(db_session, student)
        await db_session.refresh(student, attribute_names=["user"])
        return student

    return _make


@pytest_asyncio.fixture
async def student_a(make_student, tenant_a) -> Student:
    """1000 minutes purchased, 100 used: 900 remaining."""
    return await make_student(tenant_a, minutes_purchased=1000, minutes_used=100)


@pytest_asyncio.fixture
async def student_b(make_student, tenant_b) -> Student:
    return await make_student(tenant_b, minutes_purchased=600, first_name="Jules")


def _principal_for(user: User) -> Principal:
    now = datetime.now(timezone.utc)
    return Principal(
        subject_id=user.id,
        tenant_id=user.tenant_id,
        role=UserRole(user.role),
        issued_at=now,
        expires_at=now + timedelta(minutes=30),
        email=user.email,
    )


@pytest.fixture
def principal_for() -> Callable[[User], Principal]:
    """Build the principal the resolver would produce for a user."""
    return _principal_for


@pytest.fixture
def auth_headers(jwt_manager: JWTManager) -> Callable[[User], dict]:
    """Factory for bearer headers: ``client.get(..., headers=auth_headers(user))``."""

    def _headers(user: User) -> dict:
        token = jwt_manager.create_access_token(user.id, user.tenant_id, user.role)
        return {"Authorization": f"Bearer {token.access_token}"}

    return _headers


@pytest_asyncio.fixture
async def client(session_factory, jwt_manager, audit_recorder) -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to the test database and test credentials."""
    from src.api.deps import get_audit_recorder, get_jwt_manager
    from src.database import get_db
    from src.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_jwt_manager] = lambda: jwt_manager
    app.dependency_overrides[get_audit_recorder] = lambda: audit_recorder
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    for path in (TEST_DB_PATH, TEST_DB_PATH + "-wal", TEST_DB_PATH + "-shm"):
        if os.path.exists(path):
            os.unlink(path)
