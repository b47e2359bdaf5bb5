"""
Tenant identifiers (name aliases and other alternate keys)
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from enum import Enum
import uuid


class IdentifierType(str, Enum):
    NAME_ALIAS = "NAME_ALIAS"


class TenantIdentifier(SQLModel, table=True):
    """Alternate identifier for a tenant

    Values are kept unique per tenant by alias reconciliation, not by a constraint.
    """

    __tablename__ = "tenant_identifiers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    identifier_type: IdentifierType = Field(default=IdentifierType.NAME_ALIAS, index=True)
    identifier_value: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
