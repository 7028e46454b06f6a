# app/api/deps.py

from typing import AsyncGenerator, Optional
import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_token
from app.core.database import get_session
from app.core.exceptions import Forbidden, Unauthorized
from app.services.auth_service import get_user_by_id
from app.models.user import User, UserRole


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
# auto_error is off so a missing header reaches our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Resolve the bearer token to an active user
# ------------------------------------------------------------
async def _user_from_credentials(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    session: AsyncSession,
) -> User:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access denied. No token provided.")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired.")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token.")

    user = await get_user_by_id(session, payload.get("id"))
    if not user:
        raise Unauthorized("Invalid token. User not found.")
    if not user.is_active:
        raise Unauthorized("Account is deactivated.")

    request.state.actor_id = str(user.id)
    return user


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    return await _user_from_credentials(request, credentials, session)


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """
    Public routes: no header means anonymous.
    A header that is present but bad is still rejected.
    """
    if credentials is None:
        return None
    return await _user_from_credentials(request, credentials, session)


# ------------------------------------------------------------
# Role-based access control
# ------------------------------------------------------------
def role_required(*allowed_roles: UserRole):
    """
    Coarse route guard. Fine-grained checks (department, assignments)
    happen in the handlers through app.core.rbac.
    """
    allowed = set(allowed_roles)

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            if allowed == {UserRole.SuperAdmin}:
                raise Forbidden("Super admin access required.")
            raise Forbidden("Admin access required.")
        return current_user

    return checker


# ------------------------------------------------------------
# Exposed dependencies for routers
# ------------------------------------------------------------
require_super_admin = role_required(UserRole.SuperAdmin)
require_admin = role_required(UserRole.SuperAdmin, UserRole.DepartmentAdmin)
