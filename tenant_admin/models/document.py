"""
Document model for uploaded tenant files
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class Document(SQLModel, table=True):
    __tablename__ = "documents"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    file_name: str = Field(max_length=255)
    mime_type: Optional[str] = Field(default=None, max_length=100)
    size_bytes: Optional[int] = None
    status: str = Field(default="uploaded", max_length=50)
    storage_path: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
