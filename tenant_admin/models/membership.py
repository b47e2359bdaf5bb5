"""
Membership model - binds an identity-provider user to a tenant
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from datetime import datetime
from enum import Enum
import uuid


class MembershipRole(str, Enum):
    COMPANY_ADMIN = "COMPANY_ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    MEMBER = "MEMBER"


class Membership(SQLModel, table=True):
    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "tenant_id", name="uq_membership_user_tenant"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    # Users live in the identity provider, so no foreign key here
    user_id: uuid.UUID = Field(index=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", index=True)
    role: MembershipRole = Field(default=MembershipRole.MEMBER)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
