"""
Line item model - detail rows of a transaction
"""

from sqlmodel import Field, SQLModel
from decimal import Decimal
from typing import Optional
import uuid


class LineItem(SQLModel, table=True):
    __tablename__ = "line_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    transaction_id: uuid.UUID = Field(foreign_key="transactions.id", index=True)
    description: Optional[str] = None
    quantity: Decimal = Field(default=Decimal("1"), max_digits=12, decimal_places=3)
    unit_price: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
