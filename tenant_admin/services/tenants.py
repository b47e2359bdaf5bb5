"""
Tenant CRUD service
"""

from dataclasses import dataclass, field
from datetime import datetime
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session
from typing import List, Optional, Tuple
import re
import uuid
import structlog

from tenant_admin.core.dependencies import Caller
from tenant_admin.core.errors import NotFound, UpstreamFailure, ValidationError
from tenant_admin.models.membership import Membership, MembershipRole
from tenant_admin.models.tenant import Tenant
from tenant_admin.schemas.tenant import TenantCreate, TenantUpdate
from tenant_admin.services.aliases import AliasReconciliation, list_aliases, reconcile_aliases

logger = structlog.get_logger(__name__)

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
DEFAULT_LOCALE = "en"


@dataclass
class TenantResult:
    """Outcome of a tenant write plus any non-fatal side-effect failures"""

    tenant: Tenant
    aliases: List[str] = field(default_factory=list)
    alias_changes: Optional[AliasReconciliation] = None
    warnings: List[str] = field(default_factory=list)


def validate_currency(value: Optional[str]) -> Optional[str]:
    """Return the trimmed code, None for blank, or raise for anything else"""
    currency = (value or "").strip()
    if not currency:
        return None
    # Exact uppercase codes only; "usd" is rejected, not normalized
    if not CURRENCY_PATTERN.match(currency):
        raise ValidationError("currency must be a 3-letter ISO code")
    return currency


def _add_creator_membership(session: Session, tenant: Tenant, caller: Caller) -> Optional[str]:
    """Best effort; returns a warning instead of raising"""
    try:
        session.add(Membership(
            tenant_id=tenant.id,
            user_id=caller.user_id,
            role=MembershipRole.COMPANY_ADMIN,
            is_active=True,
        ))
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if "duplicate" in str(e).lower() or "unique" in str(e).lower():
            # A trigger or an earlier call already created it
            return None
        logger.warning("membership_insert_failed", tenant_id=str(tenant.id), error=str(e))
        return "Failed to create owner membership"
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning("membership_insert_failed", tenant_id=str(tenant.id), error=str(e))
        return "Failed to create owner membership"
    return None


def create_tenant(session: Session, caller: Caller, data: TenantCreate) -> TenantResult:
    name = (data.name or "").strip()
    slug = (data.slug or "").strip()
    locale = (data.locale or "").strip() or DEFAULT_LOCALE

    if not name:
        raise ValidationError("name is required")
    if not slug:
        raise ValidationError("slug is required")
    currency = validate_currency(data.currency)

    tenant = Tenant(
        name=name,
        slug=slug,
        locale=locale,
        currency=currency,
        owner_id=caller.user_id,
        is_active=True,
    )
    try:
        session.add(tenant)
        session.commit()
        session.refresh(tenant)
    except IntegrityError:
        session.rollback()
        logger.info("tenant_create_conflict", slug=slug)
        raise UpstreamFailure(f"A tenant with slug '{slug}' already exists", status_code=400)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to create tenant: {e}")
        raise UpstreamFailure("Failed to create tenant", status_code=400)

    logger.info(f"Tenant created: {tenant.id}")

    result = TenantResult(tenant=tenant)
    warning = _add_creator_membership(session, tenant, caller)
    if warning:
        result.warnings.append(warning)
    session.refresh(tenant)
    return result


def get_tenant(session: Session, tenant_id: uuid.UUID) -> Tuple[Optional[Tenant], List[str]]:
    """Load tenant and its aliases; a missing tenant is (None, [])"""
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        return None, []
    return tenant, list_aliases(session, tenant_id)


def update_tenant(session: Session, tenant_id: uuid.UUID, data: TenantUpdate) -> TenantResult:
    """Apply a partial update, then reconcile aliases when they were supplied"""
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFound("Tenant not found")

    changes = {}
    if data.name is not None:
        name = data.name.strip()
        if not name:
            raise ValidationError("name must not be empty")
        changes["name"] = name
    if data.locale is not None:
        changes["locale"] = data.locale.strip() or DEFAULT_LOCALE
    if data.currency is not None:
        changes["currency"] = validate_currency(data.currency)

    if changes:
        for key, value in changes.items():
            setattr(tenant, key, value)
        tenant.updated_at = datetime.utcnow()
        try:
            session.add(tenant)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to update tenant {tenant_id}: {e}")
            raise UpstreamFailure("Failed to update tenant", status_code=400)
        logger.info(f"Tenant updated: {tenant_id}", fields=sorted(changes))

    result = TenantResult(tenant=tenant)
    if data.aliases is not None:
        result.alias_changes = reconcile_aliases(session, tenant_id, data.aliases)
        result.warnings.extend(result.alias_changes.warnings)

    session.refresh(tenant)
    result.aliases = list_aliases(session, tenant_id)
    return result
