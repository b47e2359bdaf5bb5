"""
Tenant backup and restore

A backup document maps table name -> list of row dicts for one tenant, plus the
tenant row under ``tenant`` and a ``_meta`` header:

    {
        "_meta": {"format_version": 1, "tenant_id": "...", "created_at": "...",
                  "row_counts": {"documents": 2, ...}},
        "tenant": {...},
        "documents": [{...}, {...}],
        ...
    }

Restore validates the whole document before writing anything, then upserts
every row inside one transaction. Documents without ``_meta`` are accepted.
"""

from datetime import datetime
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select
from typing import Any, Dict, List, Optional, Tuple, Type
import uuid
import structlog

from tenant_admin.core.errors import UpstreamFailure, ValidationError
from tenant_admin.models import (
    BankAccount, Document, LineItem, Membership, Tenant, TenantIdentifier,
    TenantSettings, TenantStatistics, Transaction,
)

logger = structlog.get_logger(__name__)

FORMAT_VERSION = 1
SUPPORTED_FORMAT_VERSIONS = {FORMAT_VERSION}
META_KEY = "_meta"
TENANT_KEY = "tenant"

# Restore walks this order, so parents come before children
BACKUP_TABLES: Tuple[Tuple[str, Type[SQLModel]], ...] = (
    ("documents", Document),
    ("transactions", Transaction),
    ("line_items", LineItem),
    ("bank_accounts", BankAccount),
    ("memberships", Membership),
    ("tenant_settings", TenantSettings),
    ("tenant_statistics", TenantStatistics),
    ("tenant_identifiers", TenantIdentifier),
)


def backup_tenant(session: Session, tenant_id: uuid.UUID) -> Dict[str, Any]:
    """Snapshot every tenant-scoped table; all-or-nothing"""
    document: Dict[str, Any] = {}

    for table, model in BACKUP_TABLES:
        try:
            rows = session.exec(select(model).where(model.tenant_id == tenant_id)).all()
        except SQLAlchemyError as e:
            logger.error("backup_fetch_failed", tenant_id=str(tenant_id), table=table, error=str(e))
            raise UpstreamFailure(f"Failed to fetch {table}")
        document[table] = [row.model_dump(mode="json") for row in rows]

    try:
        tenant = session.get(Tenant, tenant_id)
    except SQLAlchemyError as e:
        logger.error("backup_fetch_failed", tenant_id=str(tenant_id), table="tenants", error=str(e))
        raise UpstreamFailure("Failed to fetch tenant")
    if tenant is None:
        raise UpstreamFailure("Failed to fetch tenant")
    document[TENANT_KEY] = tenant.model_dump(mode="json")

    document[META_KEY] = {
        "format_version": FORMAT_VERSION,
        "tenant_id": str(tenant_id),
        "created_at": datetime.utcnow().isoformat() + "Z",
        "row_counts": {table: len(document[table]) for table, _ in BACKUP_TABLES},
    }

    logger.info("tenant_backed_up", tenant_id=str(tenant_id), row_counts=document[META_KEY]["row_counts"])
    return document


def _validate_meta(document: Dict[str, Any]) -> None:
    meta = document.get(META_KEY)
    if meta is None:
        return
    if not isinstance(meta, dict):
        raise ValidationError("Backup metadata must be an object")

    version = meta.get("format_version")
    if not isinstance(version, int) or isinstance(version, bool) or version not in SUPPORTED_FORMAT_VERSIONS:
        raise ValidationError(f"Unsupported backup format version: {version}")

    row_counts = meta.get("row_counts") or {}
    if not isinstance(row_counts, dict):
        raise ValidationError("Backup row_counts must be an object")
    for table, expected in row_counts.items():
        rows = document.get(table)
        if rows is not None and not isinstance(rows, list):
            raise ValidationError(f"Backup table {table} must be a list")
        actual = len(rows or [])
        if actual != expected:
            raise ValidationError(f"Backup row count mismatch for {table}: expected {expected}, found {actual}")


def _build_row(table: str, model: Type[SQLModel], row: Any, tenant_id: uuid.UUID) -> SQLModel:
    if not isinstance(row, dict):
        raise ValidationError(f"Invalid row in {table}: expected an object")
    try:
        instance = model.model_validate(row)
    except PydanticValidationError:
        raise ValidationError(f"Invalid row in {table}")
    if instance.tenant_id != tenant_id:
        raise ValidationError(f"Row in {table} belongs to another tenant")
    return instance


def _prepare_restore(
    tenant_id: uuid.UUID, document: Any
) -> Tuple[Optional[Tenant], List[Tuple[str, List[SQLModel]]]]:
    """Validate the document and build model instances without touching the database"""
    if not isinstance(document, dict):
        raise ValidationError("Backup data must be an object")

    _validate_meta(document)

    tenant = None
    tenant_row = document.get(TENANT_KEY)
    if tenant_row:
        if not isinstance(tenant_row, dict):
            raise ValidationError("Backup tenant must be an object")
        try:
            tenant = Tenant.model_validate(tenant_row)
        except PydanticValidationError:
            raise ValidationError("Invalid tenant row")
        if tenant.id != tenant_id:
            raise ValidationError("Backup tenant does not match the target tenant")

    tables = []
    for table, model in BACKUP_TABLES:
        rows = document.get(table)
        if rows is None:
            continue
        if not isinstance(rows, list):
            raise ValidationError(f"Backup table {table} must be a list")
        tables.append((table, [_build_row(table, model, row, tenant_id) for row in rows]))

    return tenant, tables


def restore_tenant(session: Session, tenant_id: uuid.UUID, document: Any) -> Dict[str, int]:
    """Upsert a backup document in a single transaction

    Returns the number of rows written per table.
    """
    tenant, tables = _prepare_restore(tenant_id, document)

    written: Dict[str, int] = {}
    current = TENANT_KEY
    try:
        if tenant is not None:
            session.merge(tenant)
            session.flush()

        for table, instances in tables:
            current = table
            for instance in instances:
                session.merge(instance)
                session.flush()
            written[table] = len(instances)

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("restore_failed", tenant_id=str(tenant_id), table=current, error=str(e))
        raise UpstreamFailure(f"Failed to restore {current}")

    logger.info("tenant_restored", tenant_id=str(tenant_id), rows=written)
    return written
