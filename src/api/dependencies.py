"""
Shared FastAPI dependencies.

Service singletons are injected through these functions so tests can
swap them with ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status

from analysis.client import VisionAnalyzer, get_vision_analyzer
from catalog.store import CatalogStore, get_catalog
from core.auth import AuthenticatedUser, get_current_user, require_auth
from integrations.identity import IdentityVerifier, get_identity_verifier
from storage.repository import Storage, get_storage
from tutorials.resolver import TutorialResolver, get_tutorial_resolver


def catalog_dep() -> CatalogStore:
    return get_catalog()


def storage_dep() -> Storage:
    return get_storage()


def analyzer_dep() -> VisionAnalyzer:
    return get_vision_analyzer()


def tutorials_dep() -> TutorialResolver:
    return get_tutorial_resolver()


def identity_dep() -> IdentityVerifier:
    return get_identity_verifier()


def _as_user_id(user: AuthenticatedUser) -> int:
    try:
        return int(user.id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )


def current_user_id(user: AuthenticatedUser = Depends(require_auth)) -> int:
    """Id of the authenticated caller. 401 for anonymous requests."""
    return _as_user_id(user)


def optional_user_id(user: Optional[AuthenticatedUser] = Depends(get_current_user)) -> Optional[int]:
    """Id of the caller when a token was sent, else None."""
    if user is None:
        return None
    return _as_user_id(user)
