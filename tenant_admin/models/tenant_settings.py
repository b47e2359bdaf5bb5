"""
Per-tenant settings and statistics
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import Any, Optional
import uuid


class TenantSettings(SQLModel, table=True):
    """Key/value settings scoped to one tenant"""

    __tablename__ = "tenant_settings"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    setting_key: str = Field(max_length=100, index=True)
    setting_value: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class TenantStatistics(SQLModel, table=True):
    """Precomputed per-tenant counters"""

    __tablename__ = "tenant_statistics"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    metric: str = Field(max_length=100)
    value: float = Field(default=0)
    period_start: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
