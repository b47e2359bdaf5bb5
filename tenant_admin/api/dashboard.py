"""
Dashboard endpoints
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session
from typing import Optional
import uuid

from tenant_admin.core.database import get_session
from tenant_admin.core.dependencies import Caller, get_current_caller
from tenant_admin.core.errors import ValidationError
from tenant_admin.core.permissions import require_tenant_access
from tenant_admin.schemas.usage import UsageReport
from tenant_admin.services.usage import get_usage

router = APIRouter()


@router.get("/usage", response_model=UsageReport)
def usage_report(
    tenant_id: Optional[uuid.UUID] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    session: Session = Depends(get_session),
    caller: Caller = Depends(get_current_caller),
):
    """AI usage for a tenant; defaults to the current calendar month"""
    if tenant_id is None:
        raise ValidationError("tenant_id is required")

    require_tenant_access(session, caller, tenant_id)
    return get_usage(session, tenant_id, start, end)
