from typing import AsyncGenerator, List, Tuple

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import assignment_hub.core.models  # noqa: F401
from assignment_hub.api.v1.notifications.hub import NotificationHub, get_notification_hub
from assignment_hub.db.session import Base, get_db, get_session_factory
from assignment_hub.main import app
from assignment_hub.matrix.client import AssignmentApiClient


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory SQLite database per test. StaticPool keeps every session on the same connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture()
async def client(
    session_factory: async_sessionmaker,
    hub: NotificationHub,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, with DB and push hub overridden."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_notification_hub] = lambda: hub

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def api(client: AsyncClient) -> AssignmentApiClient:
    return AssignmentApiClient(client=client)


@pytest.fixture()
def notifications() -> List[Tuple[str, str]]:
    return []


@pytest.fixture()
def notifier(notifications: List[Tuple[str, str]]):
    def _notify(level: str, message: str) -> None:
        notifications.append((level, message))

    return _notify


@pytest.fixture()
async def school(client: AsyncClient) -> dict:
    """Two classes, three subjects, three teachers; no assignments yet."""
    classes = []
    for order, name in enumerate(["X RPL 1", "XI RPL 1"], start=1):
        resp = await client.post("/api/v1/classes", json={"name": name, "grade_level": 9 + order, "display_order": order})
        assert resp.status_code == 201
        classes.append(resp.json())

    subjects = []
    for order, (code, name) in enumerate([("MTK", "Matematika"), ("BIN", "Bahasa Indonesia"), ("PWEB", "Pemrograman Web")], start=1):
        resp = await client.post("/api/v1/subjects", json={"code": code, "name": name, "display_order": order})
        assert resp.status_code == 201
        subjects.append(resp.json())

    teachers = []
    for login_id, full_name in [("guru.andi", "Andi Pratama"), ("guru.sari", "Sari Wulandari"), ("guru.budi", "Budi Santoso")]:
        resp = await client.post("/api/v1/teachers", json={"login_id": login_id, "full_name": full_name})
        assert resp.status_code == 201
        teachers.append(resp.json())

    return {"classes": classes, "subjects": subjects, "teachers": teachers}
