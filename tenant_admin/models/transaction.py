"""
Transaction model - bookkeeping entries extracted from documents
"""

from sqlmodel import Field, SQLModel
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
import uuid


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    document_id: Optional[uuid.UUID] = Field(default=None, foreign_key="documents.id", index=True)
    description: Optional[str] = None
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    currency: Optional[str] = Field(default=None, max_length=3)
    transaction_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
