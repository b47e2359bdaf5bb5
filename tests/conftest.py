"""
Test configuration for pytest
"""

import pytest
import os
import uuid
from datetime import timedelta
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
from typing import Generator

# Test environment variables (must be set before the app is imported)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ.pop("JWT_AUDIENCE", None)
for _name in (
    "STRIPE_CONFIG_JSON", "STRIPE_CONFIG", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET",
    "STRIPE_PUBLISHABLE_KEY", "STRIPE_MODE", "STRIPE_USE_MOCK", "STRIPE_API_BASE_URL",
):
    os.environ.pop(_name, None)

from fastapi.testclient import TestClient  # noqa: E402

import tenant_admin.models  # noqa: E402,F401
from tenant_admin.core.auth import create_access_token  # noqa: E402
from tenant_admin.core.config import get_settings  # noqa: E402
from tenant_admin.core.database import get_session, init_db  # noqa: E402
from tenant_admin.main import app  # noqa: E402
from tenant_admin.models import Membership, MembershipRole, Profile, Tenant  # noqa: E402


# In-memory SQLite shared across threads (TestClient runs sync routes in a threadpool)
test_engine = create_engine(
    "sqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    init_db(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    def _get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fresh_settings():
    """Re-read settings from the (monkeypatched) environment"""
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def auth_headers(user_id: uuid.UUID, email: str = None) -> dict:
    token = create_access_token(user_id=user_id, email=email, expires_delta=timedelta(minutes=5))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tenant(db: Session) -> Tenant:
    tenant = Tenant(name="Acme Holdings", slug="acme", locale="en", currency="USD")
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def member_id(db: Session, tenant: Tenant) -> uuid.UUID:
    user_id = uuid.uuid4()
    db.add(Membership(user_id=user_id, tenant_id=tenant.id, role=MembershipRole.COMPANY_ADMIN))
    db.commit()
    return user_id


@pytest.fixture
def super_admin_id(db: Session) -> uuid.UUID:
    user_id = uuid.uuid4()
    db.add(Profile(id=user_id, email="root@example.com", is_super_admin=True))
    db.commit()
    return user_id


@pytest.fixture
def member_headers(member_id: uuid.UUID) -> dict:
    return auth_headers(member_id, "member@example.com")


@pytest.fixture
def super_admin_headers(super_admin_id: uuid.UUID) -> dict:
    return auth_headers(super_admin_id, "root@example.com")


@pytest.fixture
def outsider_headers() -> dict:
    return auth_headers(uuid.uuid4(), "outsider@example.com")
