"""
Tenant authorization: super-admin or active membership
"""

from dataclasses import dataclass
from typing import Optional
from sqlmodel import Session, select
import uuid
import structlog

from tenant_admin.core.dependencies import Caller
from tenant_admin.core.errors import Forbidden, Unauthenticated
from tenant_admin.models.membership import Membership
from tenant_admin.models.profile import Profile

logger = structlog.get_logger(__name__)

REASON_SUPER_ADMIN = "super_admin"
REASON_MEMBER = "member"
REASON_NOT_A_MEMBER = "not_a_member"


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str


def is_super_admin(session: Session, user_id: uuid.UUID) -> bool:
    """Check the global super-admin flag on the caller's profile"""
    profile = session.get(Profile, user_id)
    return bool(profile and profile.is_super_admin)


def has_active_membership(session: Session, user_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
    membership = session.exec(
        select(Membership.id).where(
            Membership.user_id == user_id,
            Membership.tenant_id == tenant_id,
            Membership.is_active == True,  # noqa: E712
        )
    ).first()
    return membership is not None


def authorize(session: Session, caller: Optional[Caller], tenant_id: uuid.UUID) -> AuthorizationDecision:
    """Decide whether the caller may act on the tenant

    Raises:
        Unauthenticated: when there is no caller at all
    """
    if caller is None:
        raise Unauthenticated()

    if is_super_admin(session, caller.user_id):
        return AuthorizationDecision(allowed=True, reason=REASON_SUPER_ADMIN)

    if has_active_membership(session, caller.user_id, tenant_id):
        return AuthorizationDecision(allowed=True, reason=REASON_MEMBER)

    return AuthorizationDecision(allowed=False, reason=REASON_NOT_A_MEMBER)


def require_tenant_access(session: Session, caller: Optional[Caller], tenant_id: uuid.UUID) -> AuthorizationDecision:
    """Same as authorize() but raises Forbidden on denial"""
    decision = authorize(session, caller, tenant_id)
    if not decision.allowed:
        logger.info("tenant_access_denied", user_id=str(caller.user_id), tenant_id=str(tenant_id))
        raise Forbidden()
    return decision
