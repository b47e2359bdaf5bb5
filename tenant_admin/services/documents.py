"""
Tenant document management and admin overview queries
"""

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from typing import Dict, Iterable, List, Optional
import uuid
import structlog

from tenant_admin.core.dependencies import Caller
from tenant_admin.core.errors import NotFound, UpstreamFailure
from tenant_admin.core.permissions import authorize, is_super_admin, require_tenant_access
from tenant_admin.models import Document, Membership, Tenant, Transaction

logger = structlog.get_logger(__name__)


def list_documents(session: Session, tenant_id: uuid.UUID) -> List[Document]:
    return list(session.exec(
        select(Document)
        .where(Document.tenant_id == tenant_id)
        .order_by(Document.created_at.desc())
    ).all())


def delete_document(session: Session, caller: Caller, document_id: uuid.UUID) -> None:
    document = session.get(Document, document_id)
    if document is None:
        raise NotFound("Document not found")

    require_tenant_access(session, caller, document.tenant_id)

    try:
        session.delete(document)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("document_delete_failed", document_id=str(document_id), error=str(e))
        raise UpstreamFailure("Failed to delete document")

    logger.info(f"Document deleted: {document_id}", tenant_id=str(document.tenant_id))


def list_tenants(session: Session, caller: Caller, q: Optional[str] = None) -> List[Tenant]:
    """Tenants visible to the caller, optionally filtered by name or slug"""
    statement = select(Tenant)
    if not is_super_admin(session, caller.user_id):
        member_of = select(Membership.tenant_id).where(
            Membership.user_id == caller.user_id,
            Membership.is_active == True,  # noqa: E712
        )
        statement = statement.where(Tenant.id.in_(member_of))

    needle = (q or "").strip().lower()
    if needle:
        pattern = f"%{needle}%"
        statement = statement.where(or_(
            func.lower(Tenant.name).like(pattern),
            func.lower(Tenant.slug).like(pattern),
        ))

    return list(session.exec(statement.order_by(Tenant.name)).all())


def _count_by_tenant(session: Session, column, tenant_ids: List[uuid.UUID], *criteria) -> Dict[uuid.UUID, int]:
    rows = session.exec(
        select(column, func.count())
        .where(column.in_(tenant_ids), *criteria)
        .group_by(column)
    ).all()
    return {tenant_id: count for tenant_id, count in rows}


def tenant_stats(session: Session, caller: Caller, tenant_ids: Iterable[uuid.UUID]) -> Dict[str, Dict[str, int]]:
    """Document, transaction and member counts for the tenants the caller can see"""
    allowed = [
        tenant_id for tenant_id in dict.fromkeys(tenant_ids)
        if authorize(session, caller, tenant_id).allowed
    ]
    if not allowed:
        return {}

    documents = _count_by_tenant(session, Document.tenant_id, allowed)
    transactions = _count_by_tenant(session, Transaction.tenant_id, allowed)
    members = _count_by_tenant(session, Membership.tenant_id, allowed, Membership.is_active == True)  # noqa: E712

    return {
        str(tenant_id): {
            "documents": documents.get(tenant_id, 0),
            "transactions": transactions.get(tenant_id, 0),
            "members": members.get(tenant_id, 0),
        }
        for tenant_id in allowed
    }
