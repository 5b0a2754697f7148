"""
Shared fixtures for the MemberHub test suite.

Runs the FastAPI app against a throwaway SQLite database, a fake Redis,
and in-memory stand-ins for the auth provider and email API.
"""
import uuid

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from memberhub.database import get_db, get_session_factory
from memberhub.exceptions import AccountAlreadyExistsError
from memberhub.dependencies.pipeline import get_email_client, get_identity_provider
from memberhub.main import app
from memberhub.models.base import Base
# Model imports register their tables on Base.metadata
from memberhub.models.integration import IntegrationSettings
from memberhub.models.notification import Notification
from memberhub.models.profile import Profile
from memberhub.models.purchase import Purchase
from memberhub.models.webhook import WebhookDelivery
from memberhub.services.jwt_service import JWTService
from memberhub.services.rate_limiter import rate_limiter


class FakeIdentityProvider:
    """Records created accounts instead of calling the auth provider."""

    def __init__(self):
        self.created = []
        self.error = None
        self.before_create = None

    async def create_user(self, email, password, full_name):
        if self.before_create is not None:
            await self.before_create(email)
        if self.error is not None:
            raise self.error
        if await self.find_user_id(email):
            raise AccountAlreadyExistsError(email)
        user_id = str(uuid.uuid4())
        self.created.append({
            "id": user_id,
            "email": email,
            "password": password,
            "full_name": full_name,
        })
        return user_id

    async def find_user_id(self, email):
        for account in self.created:
            if account["email"] == email.lower():
                return account["id"]
        return None


class FakeEmailClient:
    """Records sent emails instead of calling the email API."""

    def __init__(self):
        self.sent = []
        self.error = None

    async def send(self, to, subject, html_body):
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "html": html_body})
        return f"msg-{len(self.sent)}"


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'memberhub_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
    client = FakeRedis()
    rate_limiter.set_redis(client)
    try:
        yield client
    finally:
        await client.flushall()
        rate_limiter.set_redis(None)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest_asyncio.fixture
async def api_client(session_factory, identity_provider, email_client):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_email_client] = lambda: email_client

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def save_integration(session_factory, is_active=True, shared_secret=None):
    async with session_factory() as db:
        integration = IntegrationSettings(is_active=is_active, shared_secret=shared_secret)
        db.add(integration)
        await db.commit()
        return integration


@pytest_asyncio.fixture
async def active_integration(session_factory):
    return await save_integration(session_factory)


async def fetch_all(session_factory, model, *criteria):
    async with session_factory() as db:
        result = await db.execute(select(model).where(*criteria))
        return list(result.scalars().all())


@pytest.fixture
def fetch(session_factory):
    """fetch(Model, *criteria) -> list of rows."""
    async def _fetch(model, *criteria):
        return await fetch_all(session_factory, model, *criteria)
    return _fetch


@pytest.fixture
def admin_headers():
    token = JWTService().create_token(user_id=str(uuid.uuid4()), role="admin", email="admin@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def member_headers():
    token = JWTService().create_token(user_id=str(uuid.uuid4()), role="user", email="member@example.com")
    return {"Authorization": f"Bearer {token}"}


def order_approved(order_id="o1", email="a@x.com", full_name="A", product_id="p1"):
    return {
        "webhook_event_type": "order_approved",
        "order_id": order_id,
        "Customer": {"email": email, "full_name": full_name},
        "Product": {"product_id": product_id},
    }

