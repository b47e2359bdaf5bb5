"""
Tests for the Stripe webhook
"""

import hashlib
import hmac
import json
import time
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, patch
from sqlmodel import select

from tenant_admin.core.errors import ValidationError
from tenant_admin.models import UserSubscription
from tenant_admin.services.billing import BillingConfig, BillingClient, verify_webhook

WEBHOOK_SECRET = "whsec_test_secret"
WEBHOOK_URL = "/api/webhooks/stripe"


def sign(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(subscription_id: str = "sub_abc") -> str:
    return json.dumps({
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_1",
            "subscription": subscription_id,
            "customer": "cus_1",
            "metadata": {"userId": "user-42", "planId": "pro"},
        }},
    })


@pytest.fixture
def webhook_env(monkeypatch, fresh_settings):
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")


def test_verify_webhook_accepts_valid_signature():
    payload = checkout_event()

    event = verify_webhook(payload.encode(), sign(payload), BillingConfig(webhook_secret=WEBHOOK_SECRET))

    assert event["type"] == "checkout.session.completed"


def test_verify_webhook_rejects_bad_signature():
    payload = checkout_event()

    with pytest.raises(ValidationError):
        verify_webhook(payload.encode(), sign(payload, "whsec_wrong"), BillingConfig(webhook_secret=WEBHOOK_SECRET))


def test_verify_webhook_requires_header():
    with pytest.raises(ValidationError):
        verify_webhook(b"{}", None, BillingConfig(webhook_secret=WEBHOOK_SECRET))


def test_checkout_completed_records_subscription(client, db, webhook_env):
    payload = checkout_event()
    subscription = {"id": "sub_abc", "customer": "cus_1", "status": "active", "current_period_end": 1767225600}

    with patch.object(BillingClient, "retrieve_subscription", return_value=subscription) as mock_retrieve:
        response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["inserted"]["stripe_subscription_id"] == "sub_abc"
    mock_retrieve.assert_called_once_with("sub_abc")

    row = db.exec(select(UserSubscription)).one()
    assert row.user_id == "user-42"
    assert row.plan_id == "pro"
    assert row.stripe_customer_id == "cus_1"
    assert row.status == "active"
    assert row.current_period_end == datetime(2026, 1, 1)


def test_checkout_completed_twice_upserts(client, db, webhook_env):
    payload = checkout_event()
    first = {"id": "sub_abc", "customer": "cus_1", "status": "incomplete"}
    second = {"id": "sub_abc", "customer": "cus_1", "status": "active"}

    with patch.object(BillingClient, "retrieve_subscription", side_effect=[first, second]):
        client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})
        client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})

    rows = db.exec(select(UserSubscription)).all()
    assert len(rows) == 1
    assert rows[0].status == "active"


def test_subscription_updated(client, db, webhook_env):
    db.add(UserSubscription(stripe_subscription_id="sub_abc", user_id="user-42", status="active"))
    db.commit()
    payload = json.dumps({
        "id": "evt_2",
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_abc", "status": "canceled"}},
    })

    response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})

    assert response.status_code == 200
    assert response.json()["updated"]["status"] == "canceled"


def test_unhandled_event_is_acknowledged(client, webhook_env):
    payload = json.dumps({"id": "evt_3", "type": "invoice.paid", "data": {"object": {}}})

    response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})

    assert response.status_code == 200
    assert response.json() == {"received": True, "ignored": "invoice.paid"}


def test_bad_signature_is_400(client, db, webhook_env):
    payload = checkout_event()

    response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload, "whsec_wrong")})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid webhook signature"}
    assert db.exec(select(UserSubscription)).all() == []


def test_missing_signature_is_400(client, webhook_env):
    response = client.post(WEBHOOK_URL, content=checkout_event())

    assert response.status_code == 400


def test_non_utf8_body_is_400(client, db, webhook_env):
    response = client.post(WEBHOOK_URL, content=b"\xff\xfe{", headers={"Stripe-Signature": "t=1,v1=deadbeef"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid webhook payload"}
    assert db.exec(select(UserSubscription)).all() == []


def test_webhook_work_runs_off_the_event_loop(client, webhook_env):
    from fastapi.concurrency import run_in_threadpool
    from tenant_admin.api import billing as billing_api

    payload = json.dumps({"id": "evt_4", "type": "invoice.paid", "data": {"object": {}}})

    with patch.object(billing_api, "run_in_threadpool", AsyncMock(side_effect=run_in_threadpool)) as offload:
        response = client.post(WEBHOOK_URL, content=payload, headers={"Stripe-Signature": sign(payload)})

    assert response.status_code == 200
    assert offload.await_args.args[0] is billing_api._process_webhook
