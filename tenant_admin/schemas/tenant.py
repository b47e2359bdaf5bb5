"""
Pydantic schemas for tenants
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
import uuid


class TenantCreate(BaseModel):
    """Create-tenant request; presence checks happen in the service for clearer errors"""
    name: Optional[str] = None
    slug: Optional[str] = None
    locale: Optional[str] = None
    currency: Optional[str] = None


class TenantUpdate(BaseModel):
    """Partial update; slug is deliberately absent"""
    tenant_id: Optional[uuid.UUID] = None
    name: Optional[str] = None
    locale: Optional[str] = None
    currency: Optional[str] = None
    aliases: Optional[List[str]] = Field(
        default=None,
        description="Desired NAME_ALIAS set. Omit to leave aliases untouched, [] to clear them.",
    )


class TenantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    locale: str
    currency: Optional[str] = None
    is_active: bool = True
