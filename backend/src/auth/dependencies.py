"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Extracting and validating JWT tokens from requests
- Building the authentication context (user, organization, role)
- Enforcing role-based access control (RBAC)

Usage:
    @router.get("/documents/{doc_id}")
    def get_document(auth: AuthContext = Depends(get_auth_context)):
        ...

    @router.post("/documents")
    def create_document(auth: AuthContext = Depends(require_role(UserRole.EDITOR))):
        ...
"""

from dataclasses import dataclass
from typing import Callable, Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from .jwt import decode_token
from .roles import UserRole, has_permission


# HTTP Bearer token security scheme (401 instead of 403 when header missing)
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller, taken from verified token claims."""
    user_id: str
    org_id: str
    role: UserRole


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthContext:
    """Extract and validate the bearer token, returning the caller's context.

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or lacks claims
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Missing bearer token")

    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {str(e)}")

    user_id = payload.get("sub")
    org_id = payload.get("org_id")
    if not user_id or not org_id:
        raise _unauthorized("Invalid token: missing sub or org_id claim")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise _unauthorized(f"Invalid token: unknown role {payload.get('role')!r}")

    return AuthContext(user_id=str(user_id), org_id=str(org_id), role=role)


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces role-based access control.

    Higher roles inherit permissions from lower roles (ADMIN > EDITOR > VIEWER).

    Raises:
        HTTPException 403: If the caller's role is insufficient
    """

    def role_dependency(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not has_permission(auth.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_role.value}",
            )
        return auth

    return role_dependency


# Type aliases for dependency injection
CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]
EditorAuth = Annotated[AuthContext, Depends(require_role(UserRole.EDITOR))]
