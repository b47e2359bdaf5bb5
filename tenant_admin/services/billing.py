"""
Stripe billing integration

Config resolution walks CONFIG_RESOLVERS in order and the first source that
yields a config wins:

    1. STRIPE_CONFIG_JSON / STRIPE_CONFIG   (full JSON blob)
    2. STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET and friends
    3. system_settings row ``stripe_config``

Subscription and invoice lookups normally go through the Stripe SDK. When
STRIPE_USE_MOCK is true and STRIPE_API_BASE_URL is set, they are sent as plain
HTTP GETs to that base URL instead (stripe-mock in integration runs).
"""

import json
from datetime import datetime
from urllib.parse import quote
from typing import Any, Callable, Dict, Literal, Optional, Tuple

import httpx
import stripe
import structlog
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from tenant_admin.core.config import Settings, get_settings
from tenant_admin.core.dependencies import Caller
from tenant_admin.core.errors import ConfigurationError, Forbidden, UpstreamFailure, ValidationError
from tenant_admin.core.permissions import is_super_admin
from tenant_admin.models.billing import SystemSetting, UserSubscription

logger = structlog.get_logger(__name__)

STRIPE_CONFIG_SETTING_KEY = "stripe_config"


class BillingConfig(BaseModel):
    mode: Literal["test", "live"] = "test"
    publishable_key: str = ""
    secret_key: str = ""
    webhook_secret: str = ""


ConfigResolver = Callable[[Settings, Optional[Session]], Optional[BillingConfig]]


def config_from_json_env(settings: Settings, session: Optional[Session] = None) -> Optional[BillingConfig]:
    raw = settings.STRIPE_CONFIG_JSON or settings.STRIPE_CONFIG
    if not raw:
        return None
    try:
        return BillingConfig.model_validate(json.loads(raw))
    except (ValueError, PydanticValidationError) as e:
        # Fall through to the next source
        logger.warning("stripe_config_json_invalid", error=str(e))
        return None


def config_from_discrete_env(settings: Settings, session: Optional[Session] = None) -> Optional[BillingConfig]:
    if not (settings.STRIPE_SECRET_KEY or settings.STRIPE_WEBHOOK_SECRET):
        return None
    return BillingConfig(
        mode=settings.STRIPE_MODE if settings.STRIPE_MODE in ("test", "live") else "test",
        publishable_key=settings.STRIPE_PUBLISHABLE_KEY or "",
        secret_key=settings.STRIPE_SECRET_KEY or "",
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET or "",
    )


def config_from_settings_store(settings: Settings, session: Optional[Session] = None) -> Optional[BillingConfig]:
    if session is None:
        return None
    try:
        row = session.exec(
            select(SystemSetting).where(SystemSetting.setting_key == STRIPE_CONFIG_SETTING_KEY)
        ).first()
    except SQLAlchemyError as e:
        logger.warning("stripe_config_lookup_failed", error=str(e))
        return None
    if row is None or not row.setting_value:
        return None

    value = row.setting_value
    try:
        if isinstance(value, str):
            value = json.loads(value)
        return BillingConfig.model_validate(value)
    except (ValueError, PydanticValidationError) as e:
        logger.warning("stripe_config_setting_invalid", error=str(e))
        return None


CONFIG_RESOLVERS: Tuple[ConfigResolver, ...] = (
    config_from_json_env,
    config_from_discrete_env,
    config_from_settings_store,
)


def resolve_config(
    settings: Optional[Settings] = None,
    session: Optional[Session] = None,
    require_secret: bool = False,
    resolvers: Tuple[ConfigResolver, ...] = CONFIG_RESOLVERS,
) -> BillingConfig:
    settings = settings or get_settings()
    for resolver in resolvers:
        config = resolver(settings, session)
        if config is not None:
            if require_secret and not config.secret_key:
                raise ConfigurationError("Stripe secret key not configured")
            return config
    raise ConfigurationError("Stripe configuration not found")


def _stripe_object_to_dict(obj: Any) -> Dict[str, Any]:
    # StripeObject renders itself as JSON
    return json.loads(str(obj))


class BillingClient:
    """Read-only Stripe lookups with an explicit stripe-mock route"""

    def __init__(self, config: BillingConfig, settings: Optional[Settings] = None):
        self.config = config
        self.settings = settings or get_settings()

    @classmethod
    def from_environment(cls, session: Optional[Session] = None, settings: Optional[Settings] = None) -> "BillingClient":
        settings = settings or get_settings()
        return cls(resolve_config(settings, session, require_secret=True), settings)

    @property
    def use_mock_api(self) -> bool:
        return bool(self.settings.STRIPE_USE_MOCK and self.settings.STRIPE_API_BASE_URL)

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        if self.use_mock_api:
            return self._mock_get("subscriptions", subscription_id)
        return self._sdk_retrieve(stripe.Subscription, subscription_id)

    def retrieve_invoice(self, invoice_id: str) -> Dict[str, Any]:
        if self.use_mock_api:
            return self._mock_get("invoices", invoice_id)
        return self._sdk_retrieve(stripe.Invoice, invoice_id)

    def _sdk_retrieve(self, resource, object_id: str) -> Dict[str, Any]:
        try:
            obj = resource.retrieve(str(object_id), api_key=self.config.secret_key)
        except stripe.StripeError as e:
            logger.error("stripe_retrieve_failed", resource=resource.__name__, object_id=object_id, error=str(e))
            raise UpstreamFailure(f"Failed to retrieve {resource.__name__.lower()}", status_code=502)
        return _stripe_object_to_dict(obj)

    def _mock_get(self, collection: str, object_id: str) -> Dict[str, Any]:
        base = self.settings.STRIPE_API_BASE_URL.rstrip("/")
        url = f"{base}/v1/{collection}/{quote(str(object_id), safe='')}"
        try:
            response = httpx.get(
                url,
                headers={"Authorization": f"Bearer {self.config.secret_key}"},
                timeout=self.settings.BILLING_HTTP_TIMEOUT,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("stripe_mock_request_failed", url=url, error=str(e))
            raise UpstreamFailure(f"Failed to retrieve {collection[:-1]} from mock", status_code=502)
        return response.json()


def verify_webhook(payload: bytes, signature: Optional[str], config: BillingConfig) -> Dict[str, Any]:
    """Check the Stripe-Signature header and return the decoded event"""
    if not config.webhook_secret:
        raise ConfigurationError("Stripe webhook secret not configured")
    if not signature:
        raise ValidationError("Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("Invalid webhook payload")
    try:
        stripe.WebhookSignature.verify_header(body, signature, config.webhook_secret)
    except stripe.SignatureVerificationError:
        raise ValidationError("Invalid webhook signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid webhook payload")
    if not isinstance(event, dict) or not event.get("type"):
        raise ValidationError("Invalid webhook payload")
    return event


def _period_end(subscription: Dict[str, Any]) -> Optional[datetime]:
    # Newer API versions moved current_period_end onto the subscription items
    timestamp = subscription.get("current_period_end")
    if timestamp is None:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            timestamp = items[0].get("current_period_end")
    return datetime.utcfromtimestamp(timestamp) if timestamp else None


def _find_subscription(session: Session, stripe_subscription_id: str) -> Optional[UserSubscription]:
    return session.exec(
        select(UserSubscription).where(UserSubscription.stripe_subscription_id == stripe_subscription_id)
    ).first()


def require_subscription_access(session: Session, caller: Caller, subscription_id: str) -> None:
    """Super-admins may read any subscription, other callers only their own"""
    if is_super_admin(session, caller.user_id):
        return
    row = _find_subscription(session, subscription_id)
    if row is None or row.user_id != str(caller.user_id):
        logger.info("subscription_access_denied", user_id=str(caller.user_id), stripe_subscription_id=subscription_id)
        raise Forbidden("Forbidden: You do not have access to this subscription.")


def require_billing_admin(session: Session, caller: Caller) -> None:
    if not is_super_admin(session, caller.user_id):
        raise Forbidden("Forbidden: Billing lookups require a super admin.")


def _save_subscription(session: Session, row: UserSubscription) -> Dict[str, Any]:
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("subscription_upsert_failed", stripe_subscription_id=row.stripe_subscription_id, error=str(e))
        raise UpstreamFailure("Failed to store subscription")
    return row.model_dump(mode="json")


def handle_checkout_completed(session: Session, client: BillingClient, checkout: Dict[str, Any]) -> Dict[str, Any]:
    subscription_id = checkout.get("subscription")
    if not subscription_id:
        raise ValidationError("checkout session has no subscription")

    subscription = client.retrieve_subscription(subscription_id)
    metadata = checkout.get("metadata") or {}

    row = _find_subscription(session, subscription_id) or UserSubscription(stripe_subscription_id=subscription_id)
    row.user_id = metadata.get("userId") or row.user_id
    row.plan_id = metadata.get("planId") or row.plan_id
    row.stripe_customer_id = subscription.get("customer") or checkout.get("customer") or row.stripe_customer_id
    row.status = subscription.get("status") or row.status
    row.current_period_end = _period_end(subscription)
    row.updated_at = datetime.utcnow()

    inserted = _save_subscription(session, row)
    logger.info("subscription_recorded", stripe_subscription_id=subscription_id, status=row.status)
    return {"success": True, "inserted": inserted}


def handle_subscription_changed(session: Session, subscription: Dict[str, Any]) -> Dict[str, Any]:
    subscription_id = subscription.get("id")
    row = _find_subscription(session, subscription_id) if subscription_id else None
    if row is None:
        logger.info("subscription_change_unknown", stripe_subscription_id=subscription_id)
        return {"success": True, "updated": None}

    row.status = subscription.get("status") or row.status
    row.current_period_end = _period_end(subscription) or row.current_period_end
    row.updated_at = datetime.utcnow()
    return {"success": True, "updated": _save_subscription(session, row)}


def handle_webhook_event(session: Session, client: BillingClient, event: Dict[str, Any]) -> Dict[str, Any]:
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    logger.info("stripe_webhook_received", event_id=event.get("id"), event_type=event_type)

    if event_type == "checkout.session.completed":
        return handle_checkout_completed(session, client, obj)
    if event_type in ("customer.subscription.updated", "customer.subscription.deleted"):
        return handle_subscription_changed(session, obj)
    return {"received": True, "ignored": event_type}
