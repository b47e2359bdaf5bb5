"""
Tests for tenant create/get/update
"""

import pytest
import uuid
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from tenant_admin.core.dependencies import Caller
from tenant_admin.core.errors import NotFound, UpstreamFailure, ValidationError
from tenant_admin.models import Membership, MembershipRole, Tenant
from tenant_admin.schemas.tenant import TenantCreate, TenantUpdate
from tenant_admin.services import tenants as tenant_service
from tenant_admin.services.tenants import validate_currency
from sqlmodel import select


@pytest.mark.parametrize("value,expected", [
    ("USD", "USD"),
    ("  EUR ", "EUR"),
    ("", None),
    ("   ", None),
    (None, None),
])
def test_validate_currency_accepts(value, expected):
    assert validate_currency(value) == expected


@pytest.mark.parametrize("value", ["usd", "US", "USDD", "U1D", "€UR"])
def test_validate_currency_rejects(value):
    with pytest.raises(ValidationError):
        validate_currency(value)


def test_create_tenant_adds_creator_membership(db):
    caller = Caller(user_id=uuid.uuid4())

    result = tenant_service.create_tenant(db, caller, TenantCreate(name=" Globex ", slug="globex", currency="GBP"))

    assert result.warnings == []
    assert result.tenant.name == "Globex"
    assert result.tenant.locale == "en"
    assert result.tenant.currency == "GBP"
    assert result.tenant.owner_id == caller.user_id

    membership = db.exec(select(Membership).where(Membership.tenant_id == result.tenant.id)).one()
    assert membership.user_id == caller.user_id
    assert membership.role == MembershipRole.COMPANY_ADMIN
    assert membership.is_active


@pytest.mark.parametrize("body,message", [
    (TenantCreate(slug="x"), "name is required"),
    (TenantCreate(name="  ", slug="x"), "name is required"),
    (TenantCreate(name="X"), "slug is required"),
    (TenantCreate(name="X", slug="x", currency="dollars"), "currency must be a 3-letter ISO code"),
])
def test_create_tenant_validation(db, body, message):
    with pytest.raises(ValidationError) as excinfo:
        tenant_service.create_tenant(db, Caller(user_id=uuid.uuid4()), body)

    assert excinfo.value.message == message
    assert db.exec(select(Tenant)).all() == []


def test_create_tenant_duplicate_slug(db, tenant):
    with pytest.raises(UpstreamFailure) as excinfo:
        tenant_service.create_tenant(db, Caller(user_id=uuid.uuid4()), TenantCreate(name="Other", slug=tenant.slug))

    assert excinfo.value.status_code == 400


def test_create_tenant_membership_failure_is_a_warning(db):
    with patch.object(tenant_service, "_add_creator_membership", return_value="Failed to create owner membership"):
        result = tenant_service.create_tenant(db, Caller(user_id=uuid.uuid4()), TenantCreate(name="Initech", slug="initech"))

    assert result.tenant.id is not None
    assert result.warnings == ["Failed to create owner membership"]


def test_creator_membership_duplicate_is_silent(db, tenant, member_id):
    warning = tenant_service._add_creator_membership(db, tenant, Caller(user_id=member_id))

    assert warning is None


def test_creator_membership_other_db_error_warns(db, tenant):
    with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("down"))):
        warning = tenant_service._add_creator_membership(db, tenant, Caller(user_id=uuid.uuid4()))

    assert warning == "Failed to create owner membership"


def test_update_missing_tenant(db):
    with pytest.raises(NotFound):
        tenant_service.update_tenant(db, uuid.uuid4(), TenantUpdate(name="Nope"))


def test_update_rejects_empty_name(db, tenant):
    with pytest.raises(ValidationError):
        tenant_service.update_tenant(db, tenant.id, TenantUpdate(name="   "))


def test_update_clears_currency_with_empty_string(db, tenant):
    result = tenant_service.update_tenant(db, tenant.id, TenantUpdate(currency=""))

    assert result.tenant.currency is None
    assert result.alias_changes is None


def test_post_tenant_endpoint(client, outsider_headers):
    response = client.post(
        "/api/tenants",
        json={"name": "Umbrella", "slug": "umbrella", "currency": "JPY"},
        headers=outsider_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["tenant"]["slug"] == "umbrella"
    assert data["tenant"]["currency"] == "JPY"
    assert data["warnings"] == []


def test_post_tenant_invalid_currency_is_400(client, outsider_headers):
    response = client.post(
        "/api/tenants",
        json={"name": "Umbrella", "slug": "umbrella", "currency": "jpy"},
        headers=outsider_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "currency must be a 3-letter ISO code"}


def test_get_tenant_endpoint(client, tenant, member_headers):
    response = client.get("/api/tenants", params={"tenant_id": str(tenant.id)}, headers=member_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["tenant"]["id"] == str(tenant.id)
    assert data["tenant"]["name"] == "Acme Holdings"
    assert data["aliases"] == []


def test_get_missing_tenant_for_super_admin_is_null(client, super_admin_headers):
    response = client.get("/api/tenants", params={"tenant_id": str(uuid.uuid4())}, headers=super_admin_headers)

    assert response.status_code == 200
    assert response.json() == {"tenant": None, "aliases": []}


def test_get_tenant_requires_tenant_id(client, member_headers):
    response = client.get("/api/tenants", headers=member_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "tenant_id is required"}


def test_put_tenant_forbidden_for_non_member(client, tenant, outsider_headers):
    response = client.put(
        "/api/tenants",
        json={"tenant_id": str(tenant.id), "name": "Hijacked"},
        headers=outsider_headers,
    )

    assert response.status_code == 403


def test_put_tenant_ignores_slug(client, tenant, member_headers):
    response = client.put(
        "/api/tenants",
        json={"tenant_id": str(tenant.id), "name": "Acme Renamed", "slug": "changed"},
        headers=member_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["tenant"]["name"] == "Acme Renamed"
    assert data["tenant"]["slug"] == "acme"
    assert "insertedAliases" not in data
