"""
Bank account model
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class BankAccount(SQLModel, table=True):
    __tablename__ = "bank_accounts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    bank_name: str = Field(max_length=255)
    account_name: Optional[str] = Field(default=None, max_length=255)
    account_number: Optional[str] = Field(default=None, max_length=64)
    currency: Optional[str] = Field(default=None, max_length=3)
    created_at: datetime = Field(default_factory=datetime.utcnow)
