"""Pytest configuration and shared fixtures"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-crewcommand")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date
from types import SimpleNamespace
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from crewcommand.database import Base, get_db
from crewcommand.main import app
from crewcommand.models import (
    BaseRole,
    JobSite,
    JobSiteAssignment,
    Organization,
    SiteRole,
    Task,
    TaskStatus,
    UserProfile,
    Worker,
    WorkerRole,
)
from crewcommand.services.auth_service import AuthService
from crewcommand.services.authorization import AuthorizationService
from crewcommand.services.redis_service import RedisService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "TestPassword123!"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing"""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def redis_mock():
    """Replace every Redis round trip; tests adjust return values as needed"""
    mocks = {
        "is_token_blacklisted": AsyncMock(return_value=False),
        "blacklist_token": AsyncMock(return_value=None),
        "get_login_attempts": AsyncMock(return_value=0),
        "increment_login_attempts": AsyncMock(return_value=1),
        "reset_login_attempts": AsyncMock(return_value=None),
        "ping": AsyncMock(return_value=True),
    }
    patchers = [patch.object(RedisService, name, mock) for name, mock in mocks.items()]
    for patcher in patchers:
        patcher.start()
    yield SimpleNamespace(**mocks)
    for patcher in patchers:
        patcher.stop()


@pytest_asyncio.fixture
async def crew(db_session: AsyncSession) -> SimpleNamespace:
    """
    One organization with two job sites plus a second, unrelated organization.

    Riverside: superintendent, foreman, engineer and a linked worker profile;
    workers Jose Martinez, Jose Silva and Panama Lopez; tasks Framing and
    Concrete Pour. Eastgate: worker Mary Johnson, task Stair Core Masonry.
    """
    org = Organization(name="Summit Builders", slug="summit-builders")
    other_org = Organization(name="Rival Construction", slug="rival-construction")
    db_session.add_all([org, other_org])
    await db_session.flush()

    admin = UserProfile(
        organization_id=org.id, email="admin@summitbuilders.com", name="Dana Reyes",
        base_role=BaseRole.ADMIN.value,
    )
    superintendent = UserProfile(
        organization_id=org.id, email="mike@summitbuilders.com", name="Mike Chen",
        base_role=BaseRole.SUPERINTENDENT.value,
        password_hash=AuthService.hash_password(TEST_PASSWORD),
    )
    foreman = UserProfile(
        organization_id=org.id, email="sam@summitbuilders.com", name="Sam Okafor",
        base_role=BaseRole.FOREMAN.value,
    )
    engineer = UserProfile(
        organization_id=org.id, email="priya@summitbuilders.com", name="Priya Patel",
        base_role=BaseRole.ENGINEER.value,
    )
    worker_user = UserProfile(
        organization_id=org.id, email="panama@summitbuilders.com", name="Panama Lopez",
        base_role=BaseRole.WORKER.value,
    )
    outsider = UserProfile(
        organization_id=other_org.id, email="boss@rivalconstruction.com", name="Rita Vance",
        base_role=BaseRole.ADMIN.value,
    )
    db_session.add_all([admin, superintendent, foreman, engineer, worker_user, outsider])
    await db_session.flush()

    riverside = JobSite(organization_id=org.id, name="Riverside Medical Center", created_by=admin.id)
    eastgate = JobSite(organization_id=org.id, name="Eastgate Parking Structure", created_by=admin.id)
    rival_site = JobSite(organization_id=other_org.id, name="Rival Tower", created_by=outsider.id)
    db_session.add_all([riverside, eastgate, rival_site])
    await db_session.flush()

    for user, role in [
        (superintendent, SiteRole.SUPERINTENDENT),
        (foreman, SiteRole.FOREMAN),
        (engineer, SiteRole.ENGINEER),
        (worker_user, SiteRole.WORKER),
    ]:
        db_session.add(JobSiteAssignment(
            organization_id=org.id,
            user_id=user.id,
            job_site_id=riverside.id,
            role=role.value,
            start_date=date(2025, 11, 1),
            is_active=True,
            assigned_by=admin.id,
        ))

    jose_martinez = Worker(organization_id=org.id, job_site_id=riverside.id,
                           name="Jose Martinez", role=WorkerRole.LABORER.value)
    jose_silva = Worker(organization_id=org.id, job_site_id=riverside.id,
                        name="Jose Silva", role=WorkerRole.CARPENTER.value)
    panama = Worker(organization_id=org.id, job_site_id=riverside.id, user_id=worker_user.id,
                    name="Panama Lopez", role=WorkerRole.OPERATOR.value)
    mary = Worker(organization_id=org.id, job_site_id=eastgate.id,
                  name="Mary Johnson", role=WorkerRole.MASON.value)
    rival_worker = Worker(organization_id=other_org.id, job_site_id=rival_site.id,
                          name="Jose Rival", role=WorkerRole.LABORER.value)
    db_session.add_all([jose_martinez, jose_silva, panama, mary, rival_worker])

    framing = Task(organization_id=org.id, job_site_id=riverside.id, name="Framing",
                   location="Building A", status=TaskStatus.ACTIVE.value)
    concrete = Task(organization_id=org.id, job_site_id=riverside.id, name="Concrete Pour",
                    location="Level 2 deck", status=TaskStatus.PLANNED.value)
    masonry = Task(organization_id=org.id, job_site_id=eastgate.id, name="Stair Core Masonry",
                   location="North stair", status=TaskStatus.ACTIVE.value)
    rival_task = Task(organization_id=other_org.id, job_site_id=rival_site.id, name="Concrete Pour",
                      status=TaskStatus.ACTIVE.value)
    db_session.add_all([framing, concrete, masonry, rival_task])

    await db_session.commit()

    return SimpleNamespace(
        org=org,
        other_org=other_org,
        admin=admin,
        superintendent=superintendent,
        foreman=foreman,
        engineer=engineer,
        worker_user=worker_user,
        outsider=outsider,
        riverside=riverside,
        eastgate=eastgate,
        rival_site=rival_site,
        jose_martinez=jose_martinez,
        jose_silva=jose_silva,
        panama=panama,
        mary=mary,
        rival_worker=rival_worker,
        framing=framing,
        concrete=concrete,
        masonry=masonry,
        rival_task=rival_task,
    )


@pytest_asyncio.fixture
async def ctx(db_session: AsyncSession, crew: SimpleNamespace) -> SimpleNamespace:
    """Caller contexts for every crew user, built exactly as the API builds them"""
    authz = AuthorizationService(db_session)
    names = ["admin", "superintendent", "foreman", "engineer", "worker_user", "outsider"]
    contexts = {}
    for name in names:
        contexts[name] = await authz.context_for_profile(getattr(crew, name))
    return SimpleNamespace(**contexts)


def bearer_headers(user: UserProfile) -> dict:
    """Bearer header for a user profile"""
    token = AuthService.create_access_token(
        user_id=str(user.id),
        email=user.email,
        organization_id=str(user.organization_id),
        role=user.base_role,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return bearer_headers


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession):
    """Create async test client with database override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
