import os
import uuid
from datetime import timedelta

# Settings are read on first import of the app; point them at a throwaway DB
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-suite-only-0123456789"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.database import Base, get_db
from app.dependencies import get_scheduler
from app.models.category import Category
from app.models.tasks import TaskPriority, TaskStatus, TodoTask
from app.models.user import User, UserRole
from app.utils.clock import utcnow
from app.utils.security import TokenService, get_password_hash


class FakeScheduler:
    """Records jobs instead of running them."""

    def __init__(self):
        self.jobs = []

    def add_job(self, func, trigger=None, **kwargs):
        self.jobs.append({"func": func, "trigger": trigger, **kwargs})


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def token_service(settings):
    return TokenService(settings)


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest_asyncio.fixture
async def client(session_factory, fake_scheduler):
    from app.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scheduler] = lambda: fake_scheduler
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Data builders ───────────────────────────────────────

async def make_user(db, email="owner@example.com", password="secret123", is_deleted=False):
    user = User(
        id=uuid.uuid4(),
        email=email,
        password_hash=get_password_hash(password),
        role=UserRole.USER,
        created_at=utcnow(),
        is_deleted=is_deleted,
        deleted_at=utcnow() if is_deleted else None,
    )
    db.add(user)
    await db.flush()
    return user


async def make_category(db, user, name="Work", color="#FF5733", **fields):
    category = Category(id=uuid.uuid4(), name=name, color=color, user_id=user.id, created_at=utcnow(), **fields)
    db.add(category)
    await db.flush()
    return category


async def make_task(db, user, title="Task", created_offset=timedelta(0), **fields):
    fields.setdefault("status", TaskStatus.PENDING)
    fields.setdefault("priority", TaskPriority.MEDIUM)
    task = TodoTask(
        id=uuid.uuid4(),
        title=title,
        user_id=user.id,
        created_at=utcnow() + created_offset,
        **fields,
    )
    db.add(task)
    await db.flush()
    return task


@pytest_asyncio.fixture
async def owner(db):
    return await make_user(db, "owner@example.com")


@pytest_asyncio.fixture
async def stranger(db):
    return await make_user(db, "stranger@example.com")
