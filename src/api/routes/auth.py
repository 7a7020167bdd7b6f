"""
Account routes: local registration and login, federated sign-in, logout.

Successful sign-ins return the user (never the password hash) and a bearer
access token for the Authorization header.
"""

import secrets
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.dependencies import current_user_id, identity_dep, storage_dep
from core.auth import AuthenticatedUser, issue_access_token, require_auth, revoked_tokens
from core.logging import get_logger
from core.passwords import hash_password, verify_password
from integrations.identity import IdentityError, IdentityVerifier
from storage.models import User
from storage.repository import DuplicateUserError, Storage


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


# =============================================================================
# Request Models
# =============================================================================

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=256)
    name: str = Field(..., min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: str
    password: str


class FederatedLoginRequest(BaseModel):
    id_token: str = Field(..., min_length=1, description="ID token from the identity provider")


def _session_response(user: User) -> Dict[str, Any]:
    return {
        "user": user.public(),
        "token": issue_access_token(str(user.id), user.email),
        "token_type": "bearer",
    }


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Create an account")
def register(request: RegisterRequest, storage: Storage = Depends(storage_dep)) -> Dict[str, Any]:
    try:
        user = storage.create_user(
            email=request.email,
            name=request.name.strip(),
            password_hash=hash_password(request.password),
        )
    except DuplicateUserError:
        raise HTTPException(status_code=400, detail="Email already registered")

    logger.info("User registered", user_id=user.id)
    return _session_response(user)


@router.post("/login", summary="Log in with email and password")
def login(request: LoginRequest, storage: Storage = Depends(storage_dep)) -> Dict[str, Any]:
    user = storage.get_user_by_email(request.email)
    if user is None or not verify_password(request.password, user.password_hash):
        logger.info("Login rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("User logged in", user_id=user.id)
    return _session_response(user)


@router.post("/logout", summary="Revoke the current access token")
def logout(user: AuthenticatedUser = Depends(require_auth)) -> Dict[str, str]:
    if user.token_id and user.expires_at:
        revoked_tokens.revoke(user.token_id, user.expires_at)
    logger.info("User logged out", user_id=user.id)
    return {"message": "Logged out"}


@router.get("/user", summary="Current user")
def get_user(
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
) -> Dict[str, Any]:
    user = storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user.public()


@router.post("/auth/federated", summary="Sign in with an identity provider ID token")
def federated_login(
    request: FederatedLoginRequest,
    storage: Storage = Depends(storage_dep),
    verifier: IdentityVerifier = Depends(identity_dep),
) -> Dict[str, Any]:
    """
    Verify the provider's ID token and sign the user in.

    The first sign-in for an email creates the account; such accounts get
    an unguessable random password and can only log in through the provider.
    Later sign-ins to an existing account need a provider-verified email (403 otherwise).
    """
    try:
        identity = verifier.verify(request.id_token)
    except IdentityError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None,
        )

    user = storage.get_user_by_email(identity.email)
    if user is None:
        try:
            user = storage.create_user(
                email=identity.email,
                name=identity.name,
                password_hash=hash_password(secrets.token_urlsafe(32)),
            )
            logger.info("User created from federated sign-in", user_id=user.id)
            return _session_response(user)
        except DuplicateUserError:
            user = storage.get_user_by_email(identity.email)

    # An unverified provider email must not unlock an account that already exists
    if not identity.email_verified:
        logger.warning("Unverified federated email matches an existing account", user_id=user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email not verified with the identity provider",
        )

    return _session_response(user)
