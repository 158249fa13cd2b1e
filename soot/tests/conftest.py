import uuid
from collections.abc import AsyncGenerator
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from soot.common.security import create_access_token
from soot.db.base import Base
from soot.db.models import *  # noqa: F401,F403 - ensure all models loaded

# Use in-memory SQLite for testing - remap JSONB to JSON
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# Make JSONB render as JSON for SQLite
@event.listens_for(Base.metadata, "before_create")
def _remap_jsonb(target, connection, **kw):
    if connection.dialect.name == "sqlite":
        for table in target.tables.values():
            for column in table.columns:
                if isinstance(column.type, JSONB):
                    column.type = JSON()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session):
    from soot.api.deps import get_db
    from soot.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    from soot.db.models.user import User

    async def _make_user(email: str | None = None, name: str | None = None, **fields):
        user = User(
            id=uuid.uuid4(),
            email=email or f"user_{uuid.uuid4().hex[:8]}@test.com",
            name=name,
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
def make_house(db_session):
    from soot.core.houses.service import create_house

    async def _make_house(owner, name: str = "Maison de test"):
        return await create_house(db_session, owner, name)

    return _make_house


@pytest.fixture
async def owner_user(make_user):
    return await make_user(name="Camille")


@pytest.fixture
async def house(make_house, owner_user):
    return await make_house(owner_user)


@pytest.fixture
async def member_user(db_session, make_user, house):
    from soot.common.enums import MemberRole
    from soot.db.models.house import HouseMember

    user = await make_user(name="Alex")
    db_session.add(HouseMember(house_id=house.id, user_id=user.id, role=MemberRole.MEMBER.value))
    await db_session.flush()
    return user


@pytest.fixture
async def outsider_user(make_user, make_house):
    user = await make_user(name="Sam")
    await make_house(user, name="Autre maison")
    return user


def _headers_for(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def auth_headers(owner_user, house):
    return _headers_for(owner_user)


@pytest.fixture
def member_headers(member_user):
    return _headers_for(member_user)


@pytest.fixture
def outsider_headers(outsider_user):
    return _headers_for(outsider_user)


@pytest.fixture(autouse=True)
def mock_celery_tasks():
    """Mock Celery task.delay() calls to prevent actual task execution in tests."""
    with patch("soot.tasks.image_tasks.generate_entity_image.delay") as delay:
        yield delay


@pytest.fixture(autouse=True)
def mock_email():
    """Mock the email client used by invites, magic links and notifications."""
    with patch(
        "soot.integrations.sendgrid.EmailClient.send_email",
        return_value={"message_id": "mock-123", "status": "sent"},
    ) as send_email:
        yield send_email


@pytest.fixture
def headers_for():
    return _headers_for
