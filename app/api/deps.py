from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AuthenticationError, AuthorizationError
from app.core.logger import get_logger
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.enums import AdminRoleType, UserStatus
from app.services.supabase_auth import SupabaseAuthClient, get_auth_client
from app.services.tenancy import ORG_ADMIN_ROLES, UserContext, load_user_context

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login",
    auto_error=False,
)

__all__ = [
    "get_db",
    "get_auth_client",
    "get_token",
    "get_current_user",
    "get_current_active_user",
    "require_admin",
    "require_org_admin",
]


def get_token(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    if not token:
        raise AuthenticationError("Authentication required")
    return token


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(get_token),
) -> UserContext:
    """
    Resolve the bearer token to the caller's profile, roles and plants, and
    bind that tenant context to the request's database session.
    """
    payload = decode_access_token(token)
    try:
        user_id = UUID(payload.sub)
    except ValueError:
        raise AuthenticationError("Invalid access token", code="INVALID_TOKEN")

    context = load_user_context(db, user_id, payload.email)
    if context is None:
        logger.warning(f"Authenticated user {payload.sub} has no profile")
        raise AuthenticationError("User profile not found", code="PROFILE_NOT_FOUND")
    return context


def get_current_active_user(
    current_user: UserContext = Depends(get_current_user),
) -> UserContext:
    if current_user.profile is not None and current_user.profile.status == UserStatus.SUSPENDED:
        logger.warning(f"Suspended user {current_user.user_id} attempted access")
        raise AuthorizationError("Account is suspended", code="ACCOUNT_SUSPENDED")
    return current_user


def require_admin(*roles: AdminRoleType) -> Callable[..., UserContext]:
    """Dependency admitting callers that hold any of ``roles`` (any admin role when empty)."""
    def dependency(current_user: UserContext = Depends(get_current_active_user)) -> UserContext:
        allowed = any(current_user.has_admin_role(role) for role in roles) if roles else current_user.has_admin_role()
        if not allowed:
            logger.warning(
                f"User {current_user.email} lacks required role ({', '.join(r.value for r in roles) or 'any admin'})"
            )
            raise AuthorizationError("Insufficient permissions")
        return current_user
    return dependency


require_org_admin = require_admin(*ORG_ADMIN_ROLES)
