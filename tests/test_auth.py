"""
Unit tests for JWT authentication and caller resolution
"""

import pytest
from datetime import datetime, timedelta, timezone
import uuid
from jose import jwt

from tenant_admin.core.auth import create_access_token, decode_access_token
from tenant_admin.core.config import get_settings
from tenant_admin.core.dependencies import caller_from_token
from tenant_admin.core.errors import Unauthenticated

settings = get_settings()


def test_create_access_token():
    """Test JWT token creation"""
    user_id = uuid.uuid4()

    token = create_access_token(user_id=user_id, email="a@example.com", expires_delta=timedelta(hours=1))

    assert isinstance(token, str)
    payload = decode_access_token(token)
    assert payload is not None
    assert payload["sub"] == str(user_id)
    assert payload["email"] == "a@example.com"
    assert "exp" in payload


def test_decode_expired_token():
    """Test decoding an expired token"""
    token = create_access_token(user_id=uuid.uuid4(), expires_delta=timedelta(seconds=-1))

    assert decode_access_token(token) is None


def test_decode_wrong_secret():
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )

    assert decode_access_token(token) is None


def test_caller_from_token():
    user_id = uuid.uuid4()
    caller = caller_from_token(create_access_token(user_id=user_id, email="b@example.com"))

    assert caller.user_id == user_id
    assert caller.email == "b@example.com"


def test_caller_from_token_rejects_non_uuid_subject():
    token = jwt.encode(
        {"sub": "not-a-uuid", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    with pytest.raises(Unauthenticated):
        caller_from_token(token)


def test_missing_token_is_401(client, tenant):
    response = client.get("/api/tenants", params={"tenant_id": str(tenant.id)})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_garbage_token_is_401(client, tenant):
    response = client.get(
        "/api/tenants",
        params={"tenant_id": str(tenant.id)},
        headers={"Authorization": "Bearer not.a.jwt"},
    )

    assert response.status_code == 401
    assert "error" in response.json()


def test_health_check_needs_no_auth(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
