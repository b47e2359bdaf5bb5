"""
Authentication dependencies for FastAPI
"""

from dataclasses import dataclass
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import uuid
import structlog

from tenant_admin.core.auth import decode_access_token
from tenant_admin.core.errors import Unauthenticated

logger = structlog.get_logger(__name__)

# auto_error=False so a missing header becomes our 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    """Identity resolved from the bearer token"""

    user_id: uuid.UUID
    email: Optional[str] = None


def caller_from_token(token: str) -> Caller:
    payload = decode_access_token(token)
    if payload is None:
        raise Unauthenticated("Could not validate credentials")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise Unauthenticated("Could not validate credentials")

    return Caller(user_id=user_id, email=payload.get("email"))


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Caller:
    """Get the calling user from the JWT, or fail with 401"""
    if credentials is None:
        raise Unauthenticated()

    caller = caller_from_token(credentials.credentials)
    logger.debug(f"Caller authenticated: {caller.user_id}")
    return caller
