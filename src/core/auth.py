"""
Bearer token authentication.

Access tokens are HS256 JWTs signed with ``JWT_SECRET`` and issued on
register, login and federated sign-in. Authenticated endpoints use the
`require_auth` dependency; endpoints that merely personalize their
response use `get_current_user`.

Usage:
    from core.auth import require_auth, AuthenticatedUser

    @router.get("/api/user/analyses")
    def list_analyses(user: AuthenticatedUser = Depends(require_auth)):
        user_id = user.id
"""

import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import get_settings


security = HTTPBearer(
    scheme_name="Bearer JWT",
    description="Access token returned by /api/login, /api/register or /api/auth/federated.",
    auto_error=False,
)

ALGORITHM = "HS256"


@dataclass
class AuthenticatedUser:
    """
    Caller identity taken from a verified access token.

    Attributes:
        id: User id (from 'sub' claim)
        email: User's email address
        token_id: The token's 'jti', used to revoke it on logout
        expires_at: Expiry as a unix timestamp
    """
    id: str
    email: Optional[str] = None
    role: str = "authenticated"
    token_id: Optional[str] = None
    expires_at: Optional[int] = None


class RevokedTokens:
    """Token ids invalidated by logout, kept until they would have expired anyway."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._revoked: Dict[str, int] = {}

    def revoke(self, token_id: str, expires_at: int) -> None:
        with self._lock:
            self._purge()
            self._revoked[token_id] = expires_at

    def is_revoked(self, token_id: Optional[str]) -> bool:
        if not token_id:
            return False
        with self._lock:
            return token_id in self._revoked

    def clear(self) -> None:
        with self._lock:
            self._revoked.clear()

    def _purge(self) -> None:
        now = int(time.time())
        for token_id in [t for t, exp in self._revoked.items() if exp < now]:
            del self._revoked[token_id]


revoked_tokens = RevokedTokens()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def issue_access_token(user_id: str, email: Optional[str] = None) -> str:
    """Sign a new access token for ``user_id`` valid for ``access_token_ttl_seconds``."""
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": "authenticated",
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + settings.access_token_ttl_seconds,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def verify_jwt(token: str) -> dict:
    """
    Verify and decode an access token.

    Raises:
        HTTPException: 401 if the token is invalid, expired, revoked or malformed
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
            options={
                "verify_exp": True,
                "verify_aud": True,
                "require": ["sub", "exp", "aud"],
            }
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidAudienceError:
        raise _unauthorized("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {str(e)}")

    if revoked_tokens.is_revoked(payload.get("jti")):
        raise _unauthorized("Token has been revoked")
    return payload


def extract_user(payload: dict) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=str(payload["sub"]),
        email=payload.get("email"),
        role=payload.get("role", "authenticated"),
        token_id=payload.get("jti"),
        expires_at=payload.get("exp"),
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[AuthenticatedUser]:
    """
    FastAPI dependency returning the caller, or None for anonymous requests.

    A token that is present but invalid still yields 401.
    """
    if not credentials or not credentials.credentials:
        return None

    payload = verify_jwt(credentials.credentials)
    return extract_user(payload)


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthenticatedUser:
    """FastAPI dependency that rejects anonymous requests with 401."""
    if not credentials:
        raise _unauthorized("Authorization header required")

    if not credentials.credentials:
        raise _unauthorized("Token required")

    payload = verify_jwt(credentials.credentials)
    return extract_user(payload)
