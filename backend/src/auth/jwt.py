"""JWT token generation and validation

Bearer tokens carry the caller's identity; the API trusts them as the
authentication context and never looks users up itself.

JWT Token Claims Structure:
===========================

Standard JWT Claims:
- sub (Subject): User identifier
- iat (Issued At): Unix timestamp when token was created
- exp (Expiration): Unix timestamp when token expires (iat + JWT_EXPIRY_MINUTES)

Custom Claims:
- org_id: Organization the user acts for. Owner of documents the user
  creates, and the requesting organization for access resolution.
- role: "ADMIN" | "EDITOR" | "VIEWER"

Example Token Payload:
{
  "sub": "user-42",
  "org_id": "ACME",
  "role": "EDITOR",
  "iat": 1704368400,
  "exp": 1704372000
}
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional
import jwt

from config import get_settings


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from settings.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def create_access_token(
    user_id: str,
    org_id: str,
    role: str,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Create a signed access token.

    Args:
        user_id: User identifier (sub claim)
        org_id: Organization identifier
        role: User's role (ADMIN, EDITOR, VIEWER)
        expires_in: Lifetime; defaults to JWT_EXPIRY_MINUTES

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    settings = get_settings()
    secret = _get_jwt_secret()
    if expires_in is None:
        expires_in = timedelta(minutes=settings.JWT_EXPIRY_MINUTES)

    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user_id),
        'org_id': str(org_id),
        'role': role,
        'iat': int(now.timestamp()),
        'exp': int((now + expires_in).timestamp()),
    }

    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    return jwt.decode(
        token,
        secret,
        algorithms=[get_settings().JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
