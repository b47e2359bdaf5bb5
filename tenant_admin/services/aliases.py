"""
Alias reconciliation for tenant NAME_ALIAS identifiers

Brings a tenant's alias rows in line with a desired list of names. Insert and
delete are committed separately; a failure in either is rolled back and
reported as a warning instead of failing the caller.
"""

from dataclasses import dataclass, field
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from typing import Iterable, List
import uuid
import structlog

from tenant_admin.models.tenant_identifier import IdentifierType, TenantIdentifier

logger = structlog.get_logger(__name__)


@dataclass
class AliasReconciliation:
    inserted: List[str] = field(default_factory=list)
    deleted_ids: List[uuid.UUID] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def normalize_aliases(aliases: Iterable[str]) -> List[str]:
    """Trim, drop blanks and duplicates, keep first-seen order"""
    seen = set()
    normalized = []
    for alias in aliases:
        value = str(alias or "").strip()
        if value and value not in seen:
            seen.add(value)
            normalized.append(value)
    return normalized


def list_alias_rows(session: Session, tenant_id: uuid.UUID) -> List[TenantIdentifier]:
    return list(session.exec(
        select(TenantIdentifier)
        .where(
            TenantIdentifier.tenant_id == tenant_id,
            TenantIdentifier.identifier_type == IdentifierType.NAME_ALIAS,
        )
        .order_by(TenantIdentifier.created_at)
    ).all())


def list_aliases(session: Session, tenant_id: uuid.UUID) -> List[str]:
    values = (str(row.identifier_value or "").strip() for row in list_alias_rows(session, tenant_id))
    return [value for value in values if value]


def _insert_aliases(session: Session, tenant_id: uuid.UUID, values: List[str]) -> List[str]:
    rows = [
        TenantIdentifier(
            tenant_id=tenant_id,
            identifier_type=IdentifierType.NAME_ALIAS,
            identifier_value=value,
        )
        for value in values
    ]
    session.add_all(rows)
    session.commit()
    return [row.identifier_value for row in rows]


def _delete_aliases(session: Session, rows: List[TenantIdentifier]) -> List[uuid.UUID]:
    ids = [row.id for row in rows]
    for row in rows:
        session.delete(row)
    session.commit()
    return ids


def reconcile_aliases(session: Session, tenant_id: uuid.UUID, aliases: Iterable[str]) -> AliasReconciliation:
    """Make the tenant's NAME_ALIAS set equal ``aliases``

    An empty (after normalization) list removes every alias.
    """
    result = AliasReconciliation()
    incoming = normalize_aliases(aliases)
    existing_rows = list_alias_rows(session, tenant_id)

    if incoming:
        existing_values = {str(row.identifier_value or "").strip() for row in existing_rows}
        to_insert = [value for value in incoming if value not in existing_values]
        to_delete = [row for row in existing_rows if str(row.identifier_value or "").strip() not in incoming]
    else:
        to_insert = []
        to_delete = existing_rows

    if to_insert:
        try:
            result.inserted = _insert_aliases(session, tenant_id, to_insert)
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning("alias_insert_failed", tenant_id=str(tenant_id), error=str(e))
            result.warnings.append(f"Failed inserting aliases: {', '.join(to_insert)}")

    if to_delete:
        try:
            result.deleted_ids = _delete_aliases(session, to_delete)
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning("alias_delete_failed", tenant_id=str(tenant_id), error=str(e))
            result.warnings.append(f"Failed deleting {len(to_delete)} alias(es)")

    logger.info(
        "aliases_reconciled",
        tenant_id=str(tenant_id),
        inserted=len(result.inserted),
        deleted=len(result.deleted_ids),
    )
    return result
