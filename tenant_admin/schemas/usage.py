"""
Usage report schemas
"""

from pydantic import BaseModel
import uuid


class UsageSummary(BaseModel):
    total_calls: int = 0
    success_calls: int = 0
    error_calls: int = 0
    tokens_input: int = 0
    tokens_output: int = 0


class UsageReport(BaseModel):
    tenant_id: uuid.UUID
    start: str
    end: str
    usage: UsageSummary
