"""
AI usage reporting
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from sqlalchemy import case, func
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlmodel import Session, select
from typing import Any, Dict, Optional
import uuid
import structlog

from tenant_admin.core.errors import Forbidden, UpstreamFailure, ValidationError
from tenant_admin.models.ai_usage_event import USAGE_STATUS_SUCCESS, AiUsageEvent
from tenant_admin.schemas.usage import UsageReport, UsageSummary

logger = structlog.get_logger(__name__)

# SQLSTATE insufficient_privilege, raised by row-level security
PERMISSION_DENIED_SQLSTATE = "42501"

USAGE_FIELDS = ("total_calls", "success_calls", "error_calls", "tokens_input", "tokens_output")


@dataclass(frozen=True)
class UsagePeriod:
    start: datetime
    end: datetime


def month_bounds(now: datetime) -> UsagePeriod:
    """[first of this month, first of next month)"""
    start = datetime(now.year, now.month, 1)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1)
    else:
        end = datetime(now.year, now.month + 1, 1)
    return UsagePeriod(start=start, end=end)


def parse_bound(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an ISO-8601 bound into naive UTC"""
    if value is None or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def resolve_period(start: Optional[str], end: Optional[str], now: Optional[datetime] = None) -> UsagePeriod:
    default = month_bounds(now or datetime.utcnow())
    period = UsagePeriod(
        start=parse_bound(start, "start") or default.start,
        end=parse_bound(end, "end") or default.end,
    )
    if period.end <= period.start:
        raise ValidationError("end must be after start")
    return period


def get_tenant_ai_usage_summary(
    session: Session, tenant_id: uuid.UUID, start: datetime, end: datetime
) -> Dict[str, Any]:
    """Aggregate usage events for the tenant over [start, end)"""
    is_success = AiUsageEvent.status == USAGE_STATUS_SUCCESS
    statement = select(
        func.count(AiUsageEvent.id).label("total_calls"),
        func.sum(case((is_success, 1), else_=0)).label("success_calls"),
        func.sum(case((is_success, 0), else_=1)).label("error_calls"),
        func.sum(AiUsageEvent.tokens_input).label("tokens_input"),
        func.sum(AiUsageEvent.tokens_output).label("tokens_output"),
    ).where(
        AiUsageEvent.tenant_id == tenant_id,
        AiUsageEvent.created_at >= start,
        AiUsageEvent.created_at < end,
    )
    row = session.exec(statement).first()
    return dict(row._mapping) if row is not None else {}


def _sqlstate(error: DBAPIError) -> Optional[str]:
    orig = error.orig
    # psycopg2 exposes pgcode, psycopg 3 and asyncpg expose sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _as_int(value: Any) -> int:
    return int(value or 0)


def get_usage(
    session: Session,
    tenant_id: uuid.UUID,
    start: Optional[str] = None,
    end: Optional[str] = None,
    now: Optional[datetime] = None,
) -> UsageReport:
    period = resolve_period(start, end, now=now)

    try:
        summary = get_tenant_ai_usage_summary(session, tenant_id, period.start, period.end)
    except DBAPIError as e:
        if _sqlstate(e) == PERMISSION_DENIED_SQLSTATE:
            raise Forbidden("Forbidden")
        logger.warning("usage_query_failed", tenant_id=str(tenant_id), error=str(e))
        raise UpstreamFailure("Failed to load usage", status_code=400)
    except SQLAlchemyError as e:
        logger.warning("usage_query_failed", tenant_id=str(tenant_id), error=str(e))
        raise UpstreamFailure("Failed to load usage", status_code=400)

    return UsageReport(
        tenant_id=tenant_id,
        start=format_bound(period.start),
        end=format_bound(period.end),
        usage=UsageSummary(**{name: _as_int(summary.get(name)) for name in USAGE_FIELDS}),
    )


def format_bound(value: datetime) -> str:
    return value.isoformat() + "Z"
