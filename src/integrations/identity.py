"""Federated sign-in: verification of Firebase ID tokens."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

import jwt

from config.settings import get_settings
from core.logging import get_logger

logger = get_logger(__name__)

_ISSUER_PREFIX = "https://securetoken.google.com/"


class IdentityError(RuntimeError):
    """Raised when an ID token cannot be accepted."""

    def __init__(self, message: str, status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FederatedIdentity:
    uid: str
    email: str
    display_name: Optional[str] = None
    email_verified: bool = False

    @property
    def name(self) -> str:
        """Display name, or the local part of the email when the provider has none."""
        return self.display_name or self.email.split("@", 1)[0]


class IdentityVerifier:
    """Checks RS256 ID tokens against the provider's published signing keys."""

    def __init__(self, project_id: Optional[str] = None, jwks_url: Optional[str] = None, jwks_client=None):
        settings = get_settings()
        self.project_id = project_id if project_id is not None else settings.firebase_project_id
        self.jwks_url = jwks_url or settings.identity_jwks_url
        self._jwks_client = jwks_client
        self._lock = threading.Lock()

    def is_configured(self) -> bool:
        return bool(self.project_id)

    @property
    def jwks_client(self) -> jwt.PyJWKClient:
        if self._jwks_client is None:
            with self._lock:
                if self._jwks_client is None:
                    self._jwks_client = jwt.PyJWKClient(self.jwks_url, cache_keys=True)
        return self._jwks_client

    def verify(self, id_token: str) -> FederatedIdentity:
        if not self.is_configured():
            raise IdentityError("Federated sign-in is not configured", status_code=503)
        if not id_token:
            raise IdentityError("ID token required")

        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(id_token)
            payload = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=f"{_ISSUER_PREFIX}{self.project_id}",
                options={"require": ["sub", "exp", "iat", "aud", "iss"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise IdentityError("ID token has expired") from e
        except jwt.PyJWKClientError as e:
            logger.warning("Could not fetch identity signing keys", error=str(e))
            raise IdentityError("Unable to verify ID token") from e
        except jwt.InvalidTokenError as e:
            raise IdentityError(f"Invalid ID token: {e}") from e

        email = payload.get("email")
        if not email:
            raise IdentityError("ID token has no email claim")

        return FederatedIdentity(
            uid=payload["sub"],
            email=email,
            display_name=payload.get("name"),
            email_verified=bool(payload.get("email_verified", False)),
        )


_verifier: Optional[IdentityVerifier] = None
_verifier_lock = threading.Lock()


def get_identity_verifier() -> IdentityVerifier:
    global _verifier
    if _verifier is None:
        with _verifier_lock:
            if _verifier is None:
                _verifier = IdentityVerifier()
    return _verifier


def reset_identity_verifier() -> None:
    global _verifier
    with _verifier_lock:
        _verifier = None
