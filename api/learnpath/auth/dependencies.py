"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current user extraction from the bearer JWT
- Role-based access control
- User directory service
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError

from learnpath.auth.permissions import UserRole
from learnpath.auth.schemas import AuthenticatedUser
from learnpath.auth.security import decode_access_token
from learnpath.auth.service import UserDirectory
from learnpath.core.context import set_user_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token not provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(token)
        user = AuthenticatedUser(
            id=payload["sub"],
            email=payload.get("email"),
            role=payload["role"],
        )
    except (JWTError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_user_id(user.id)
    return user


def require_role(*allowed_roles: UserRole):
    """Create dependency requiring one of the given roles (exact match).

    Example:
        @router.get("/mentor")
        async def mentor_endpoint(
            user: Annotated[AuthenticatedUser, Depends(require_role(UserRole.MENTOR))]
        ):
            ...
    """

    async def role_checker(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return user

    return role_checker


async def get_user_directory(request: Request) -> UserDirectory:
    """Get user directory from app state."""
    directory = getattr(request.app.state, "user_directory", None)
    if directory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User directory not available",
        )
    return directory


# ==============================================================================
# Type Aliases
# ==============================================================================

StudentUser = Annotated[AuthenticatedUser, Depends(require_role(UserRole.STUDENT))]
MentorUser = Annotated[AuthenticatedUser, Depends(require_role(UserRole.MENTOR))]
ProgressViewer = Annotated[
    AuthenticatedUser,
    Depends(require_role(UserRole.STUDENT, UserRole.MENTOR, UserRole.ADMIN)),
]
UserDirectoryDep = Annotated[UserDirectory, Depends(get_user_directory)]
