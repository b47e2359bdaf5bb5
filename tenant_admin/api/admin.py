"""
Tenant administration endpoints: backup/restore, documents, overview
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import Optional
import structlog

from tenant_admin.core.database import get_session
from tenant_admin.core.dependencies import Caller, get_current_caller
from tenant_admin.core.errors import ValidationError
from tenant_admin.core.permissions import require_tenant_access
from tenant_admin.schemas.tenant import TenantRead
from tenant_admin.schemas.tenant_admin import DocumentRef, RestoreRequest, TenantRef, TenantStatsRequest
from tenant_admin.services import backup as backup_service
from tenant_admin.services import documents as document_service

logger = structlog.get_logger(__name__)
router = APIRouter()


def _required_tenant_id(body: TenantRef):
    if body.tenant_id is None:
        raise ValidationError("tenantId is required")
    return body.tenant_id


@router.get("/tenants")
def list_tenants(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Tenants the caller can administer"""
    tenants = document_service.list_tenants(session, caller, q)
    return {"tenants": [TenantRead.model_validate(tenant) for tenant in tenants]}


@router.post("/backup")
def backup_tenant(
    body: TenantRef,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Export every tenant-scoped table as one JSON document"""
    tenant_id = _required_tenant_id(body)
    require_tenant_access(session, caller, tenant_id)
    return {"data": backup_service.backup_tenant(session, tenant_id)}


@router.post("/restore")
def restore_tenant(
    body: RestoreRequest,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """Upsert a backup document back into the tenant"""
    tenant_id = _required_tenant_id(body)
    require_tenant_access(session, caller, tenant_id)
    if body.data is None:
        raise ValidationError("data is required")

    backup_service.restore_tenant(session, tenant_id, body.data)
    return {"success": True}


@router.post("/list-documents")
def list_documents(
    body: TenantRef,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    tenant_id = _required_tenant_id(body)
    require_tenant_access(session, caller, tenant_id)
    documents = document_service.list_documents(session, tenant_id)
    return {"documents": [document.model_dump(mode="json") for document in documents]}


@router.post("/delete-document")
def delete_document(
    body: DocumentRef,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    if body.document_id is None:
        raise ValidationError("documentId is required")
    document_service.delete_document(session, caller, body.document_id)
    return {"success": True}


@router.post("/stats")
def tenant_stats(
    body: TenantStatsRequest,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    return {"stats": document_service.tenant_stats(session, caller, body.tenant_ids)}
