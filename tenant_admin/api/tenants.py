"""
Tenant API endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from typing import Optional
import structlog
import uuid

from tenant_admin.core.database import get_session
from tenant_admin.core.dependencies import Caller, get_current_caller
from tenant_admin.core.errors import UpstreamFailure, ValidationError
from tenant_admin.core.permissions import require_tenant_access
from tenant_admin.schemas.tenant import TenantCreate, TenantRead, TenantUpdate
from tenant_admin.services import tenants as tenant_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("")
def create_tenant(
    body: TenantCreate,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Create a tenant and make the caller its COMPANY_ADMIN"""
    result = tenant_service.create_tenant(session, caller, body)
    return {
        "tenant": TenantRead.model_validate(result.tenant),
        "warnings": result.warnings,
    }


@router.get("")
def get_tenant(
    tenant_id: Optional[uuid.UUID] = None,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Get a tenant with its name aliases; tenant is null when it does not exist"""
    if tenant_id is None:
        raise ValidationError("tenant_id is required")

    require_tenant_access(session, caller, tenant_id)

    try:
        tenant, aliases = tenant_service.get_tenant(session, tenant_id)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load tenant {tenant_id}: {e}")
        raise UpstreamFailure("failed to load tenant")

    return {
        "tenant": TenantRead.model_validate(tenant) if tenant else None,
        "aliases": aliases,
    }


@router.put("")
def update_tenant(
    body: TenantUpdate,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Update name/locale/currency and, when given, reconcile aliases"""
    if body.tenant_id is None:
        raise ValidationError("tenant_id is required")

    require_tenant_access(session, caller, body.tenant_id)
    result = tenant_service.update_tenant(session, body.tenant_id, body)

    response = {
        "ok": True,
        "tenant": TenantRead.model_validate(result.tenant),
        "aliases": result.aliases,
        "warnings": result.warnings,
    }
    if result.alias_changes is not None:
        response["insertedAliases"] = result.alias_changes.inserted
        response["deletedAliasIds"] = [str(alias_id) for alias_id in result.alias_changes.deleted_ids]
    return response
