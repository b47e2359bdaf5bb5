"""
Request bodies for the tenant-admin endpoints (camelCase on the wire)
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
import uuid


class TenantAdminRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TenantRef(TenantAdminRequest):
    tenant_id: Optional[uuid.UUID] = Field(default=None, alias="tenantId")


class RestoreRequest(TenantRef):
    data: Optional[Any] = None


class DocumentRef(TenantAdminRequest):
    document_id: Optional[uuid.UUID] = Field(default=None, alias="documentId")


class TenantStatsRequest(TenantAdminRequest):
    tenant_ids: List[uuid.UUID] = Field(default_factory=list, alias="tenantIds")
