"""
Billing models: global settings store and Stripe subscriptions
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from typing import Any, Optional
import uuid


class SystemSetting(SQLModel, table=True):
    """Global key/value settings (the ``stripe_config`` key holds billing credentials)"""

    __tablename__ = "system_settings"

    setting_key: str = Field(primary_key=True, max_length=100)
    setting_value: Optional[Any] = Field(default=None, sa_column=Column(JSON, nullable=True))
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class UserSubscription(SQLModel, table=True):
    """Subscription state mirrored from Stripe webhooks"""

    __tablename__ = "user_subscriptions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: Optional[str] = Field(default=None, index=True, max_length=255)
    plan_id: Optional[str] = Field(default=None, max_length=255)
    stripe_subscription_id: str = Field(unique=True, index=True, max_length=255)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255)
    status: str = Field(default="incomplete", max_length=50)
    current_period_end: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
