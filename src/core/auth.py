"""Authentication and role-checking dependencies.

Identity comes from the identity provider's signed token, read from the
httpOnly session cookie or an ``Authorization: Bearer`` header.
"""

from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.security import Identity, decode_identity_token
from src.database import get_db
from src.logging_config import get_logger
from src.models.user import User, UserRole

logger = get_logger(__name__)


async def get_optional_identity(
    request: Request,
    session_token: Annotated[str | None, Cookie(alias=settings.jwt_cookie_name)] = None,
) -> Identity | None:
    """Return the caller's identity, or None when there is no valid token."""
    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header[7:]

    if not session_token:
        return None
    return decode_identity_token(session_token)


async def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    """Require a valid identity token.

    Raises:
        HTTPException 401: If no valid token was presented
    """
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def get_current_user(
    identity: Annotated[Identity, Depends(get_current_identity)],
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the account bound to the caller's identity.

    Raises:
        HTTPException 401: If no live account exists for the identity
    """
    result = await db.execute(select(User).where(User.external_id == identity.subject))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]
CurrentUser = Annotated[User, Depends(get_current_user)]


class RoleChecker:
    """Dependency that verifies the current user has one of the allowed roles.

    Usage:
        @router.get("/admin-only", dependencies=[Depends(RoleChecker([UserRole.ADMIN]))])
        async def admin_endpoint():
            ...
    """

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = allowed_roles

    async def __call__(self, request: Request, current_user: CurrentUser) -> bool:
        """Raises HTTPException 403 if the user's role is not allowed."""
        if current_user.role not in self.allowed_roles:
            client_ip = request.client.host if request.client else "unknown"
            logger.warning(
                "Unauthorized access attempt",
                user_id=str(current_user.id),
                user_role=current_user.role.value,
                required_roles=[r.value for r in self.allowed_roles],
                path=request.url.path,
                method=request.method,
                client_ip=client_ip,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You don't have permission to access this resource",
            )
        return True


def require_roles(*roles: UserRole) -> RoleChecker:
    """Create a role checker dependency for the specified roles."""
    return RoleChecker(list(roles))


require_admin = require_roles(UserRole.ADMIN)
