"""
Profile model - local mirror of identity-provider users
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(primary_key=True, description="Identity-provider user ID")
    email: Optional[str] = Field(default=None, index=True, max_length=255)
    is_super_admin: bool = Field(default=False, description="Bypasses per-tenant membership checks")
    created_at: datetime = Field(default_factory=datetime.utcnow)
