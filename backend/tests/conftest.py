"""
Centralized Test Configuration.
"""

import uuid

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
import backend.app.db.session as db_session_module
from backend.app.core.security import get_password_hash
from backend.app.models.audit_log import AuditLog
from backend.app.models.enums import UserRole
from backend.app.models.user import User

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@dsr.cd"
ADMIN_PASSWORD = "AdminPass123"
AGENT_EMAIL = "agent@dsr.cd"
AGENT_PASSWORD = "AgentPass123"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Point the app and the standalone audit writer at the test database."""
    original_factory = db_session_module.AsyncSessionLocal
    db_session_module.AsyncSessionLocal = TestingSessionLocal

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield

    app.dependency_overrides = {}
    db_session_module.AsyncSessionLocal = original_factory


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def failing_client():
    """Client that returns 500 responses instead of re-raising server errors."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def _create_user(
    session,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
    first_name: str = "Agent",
    last_name: str = "Test",
    is_active: bool = True,
) -> User:
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        is_active=is_active,
        is_password_set=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def _login(client, email: str, password: str) -> dict:
    response = await client.post("/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def _audit_entries(**filters):
    """Audit rows matching the given column values, oldest first (fresh session)."""
    async with TestingSessionLocal() as session:
        query = select(AuditLog).order_by(AuditLog.id)
        for column, value in filters.items():
            query = query.where(getattr(AuditLog, column) == value)
        result = await session.execute(query)
        return result.scalars().all()


async def _fetch_row(model, row_id):
    """Load a row in a fresh session, or None."""
    async with TestingSessionLocal() as session:
        result = await session.execute(select(model).where(model.id == uuid.UUID(str(row_id))))
        return result.scalar_one_or_none()


@pytest.fixture
def break_audit_log():
    """Call the returned function to make every later AuditLog insert fail."""
    listeners = []

    def raiser(mapper, connection, target):
        raise RuntimeError("audit store unavailable")

    def arm():
        event.listen(AuditLog, "before_insert", raiser)
        listeners.append(raiser)

    yield arm

    for listener in listeners:
        event.remove(AuditLog, "before_insert", listener)


@pytest.fixture
async def admin_user(db_session):
    return await _create_user(
        db_session, ADMIN_EMAIL, ADMIN_PASSWORD, role=UserRole.ADMIN, first_name="Admin", last_name="Principal"
    )


@pytest.fixture
async def agent_user(db_session):
    return await _create_user(db_session, AGENT_EMAIL, AGENT_PASSWORD, first_name="Paul", last_name="Kabila")


@pytest.fixture
async def admin_headers(client, admin_user):
    return await _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
async def agent_headers(client, agent_user):
    return await _login(client, AGENT_EMAIL, AGENT_PASSWORD)


@pytest.fixture
def detainee_payload():
    return {
        "first_name": "Jean",
        "last_name": "Mukendi",
        "sex": "Male",
        "place_of_birth": "Goma",
        "date_of_birth": "1990-01-01",
        "residence": "Goma",
        "crime_reason": "Vol",
        "arrest_date": "2024-01-01",
        "arrest_location": "Goma Centre",
    }


@pytest.fixture
def seizure_payload():
    return {
        "item_name": "Toyota Corolla",
        "type": "car",
        "seizure_location": "Goma Centre",
        "plate_number": "CGO-1234",
        "owner_name": "Pierre Ilunga",
        "seizure_date": "2024-02-10T08:30:00Z",
    }


# Helpers exposed as fixtures so test modules never import this file directly

@pytest.fixture
def make_user(db_session):
    async def factory(email: str, password: str, **kwargs) -> User:
        return await _create_user(db_session, email, password, **kwargs)
    return factory


@pytest.fixture
def login(client):
    async def do_login(email: str, password: str) -> dict:
        return await _login(client, email, password)
    return do_login


@pytest.fixture
def audit_entries():
    return _audit_entries


@pytest.fixture
def fetch_row():
    return _fetch_row
