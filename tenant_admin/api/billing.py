"""
Billing endpoints (Stripe lookups and webhook)
"""

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlmodel import Session
from typing import Any, Dict, Optional

from tenant_admin.core.config import get_settings
from tenant_admin.core.database import get_session
from tenant_admin.core.dependencies import Caller, get_current_caller
from tenant_admin.services.billing import (
    BillingClient,
    handle_webhook_event,
    require_billing_admin,
    require_subscription_access,
    resolve_config,
    verify_webhook,
)

router = APIRouter()
webhook_router = APIRouter()


@router.get("/subscriptions/{subscription_id}")
def get_subscription(
    subscription_id: str,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Super-admins see any subscription; subscribers see their own"""
    require_subscription_access(session, caller, subscription_id)
    client = BillingClient.from_environment(session)
    return client.retrieve_subscription(subscription_id)


@router.get("/invoices/{invoice_id}")
def get_invoice(
    invoice_id: str,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    require_billing_admin(session, caller)
    client = BillingClient.from_environment(session)
    return client.retrieve_invoice(invoice_id)


def _process_webhook(session: Session, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    settings = get_settings()
    config = resolve_config(settings, session)
    event = verify_webhook(payload, signature, config)
    return handle_webhook_event(session, BillingClient(config, settings), event)


@webhook_router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    session: Session = Depends(get_session),
):
    """Record subscription state from signed Stripe events"""
    payload = await request.body()
    # Session queries and Stripe/httpx calls block
    return await run_in_threadpool(_process_webhook, session, payload, stripe_signature)
