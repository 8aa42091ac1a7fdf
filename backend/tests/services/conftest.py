"""Service test fixtures: async DB, wired services, seeded users and a FastAPI client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Services are wired with build_services (production wiring) over the test session,
      a RecordingNotificationSink and a FakePaymentGateway
    - The HTTP client overrides get_db and get_payment_gateway; db_manager is patched
      for SqlNotificationSink, which opens its own sessions

Design Decisions:
    - SQLite in-memory: fast, no external dependency; conditional UPDATEs and
      unique constraints behave the same as on PostgreSQL for these tests
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import app.infrastructure.database as db_module
import app.models  # noqa: F401
from app.api.dependencies import build_services, get_payment_gateway
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.main import app
from tests.services.builders import (
    BROOKLYN, LOS_ANGELES, NEWARK, add_user, job_fields,
)
from tests.services.fakes import FakePaymentGateway, RecordingNotificationSink


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_gateway():
    return FakePaymentGateway()


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def services(test_db, sink, fake_gateway):
    return build_services(test_db, sink, fake_gateway)


# ─── Users ───────────────────────────────────────────────────────

@pytest.fixture
async def client_user(test_db):
    return await add_user(test_db, first_name="Carla", email="carla@example.com")


@pytest.fixture
async def helper_user(test_db):
    return await add_user(
        test_db, first_name="Hugo", email="hugo@example.com",
        account_type="helper", location=BROOKLYN, stripe_account_id="acct_hugo",
    )


@pytest.fixture
async def second_helper(test_db):
    return await add_user(
        test_db, first_name="Hana", email="hana@example.com",
        account_type="both", location=NEWARK, stripe_account_id="acct_hana",
    )


@pytest.fixture
async def far_helper(test_db):
    return await add_user(
        test_db, first_name="Leo", email="leo@example.com",
        account_type="helper", location=LOS_ANGELES,
    )


@pytest.fixture
async def admin_user(test_db):
    return await add_user(
        test_db, first_name="Ada", email="ada@example.com",
        is_admin=True, is_moderator=True, location=None,
    )


# ─── Jobs and payments ───────────────────────────────────────────

@pytest.fixture
async def open_job(services, client_user):
    return await services.job_lifecycle.create(client_user.id, job_fields())


@pytest.fixture
async def accepted_job(services, open_job, helper_user):
    return await services.job_lifecycle.accept(open_job.id, helper_user.id)


@pytest.fixture
async def captured_payment(services, accepted_job, client_user):
    """A 100.00 USD payment confirmed into escrow (job in_progress)."""
    created = await services.escrow.create_intent(
        accepted_job.id, 10_000, "usd", client_user.id,
    )
    return await services.escrow.confirm(
        created.payment.id, created.payment.gateway_intent_id, client_user.id,
    )


# ─── HTTP ────────────────────────────────────────────────────────

@pytest.fixture
async def client(test_engine, test_session_factory, fake_gateway):
    """FastAPI test client with DB and gateway dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway

    # SqlNotificationSink writes through db_manager directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
