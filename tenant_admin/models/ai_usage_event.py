"""
AI usage events - one row per model call made on behalf of a tenant
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid

USAGE_STATUS_SUCCESS = "success"
USAGE_STATUS_ERROR = "error"


class AiUsageEvent(SQLModel, table=True):
    __tablename__ = "ai_usage_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    model: Optional[str] = Field(default=None, max_length=100)
    status: str = Field(default=USAGE_STATUS_SUCCESS, max_length=20)
    tokens_input: Optional[int] = Field(default=0)
    tokens_output: Optional[int] = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
