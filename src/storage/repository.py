"""
Persistence for users, saved analyses and saved products.

Two interchangeable backends share the Storage interface:

- InMemoryStorage: process-local dicts guarded by a lock (development, tests)
- SupabaseStorage: the users / analyses / user_products tables

get_storage() picks one from STORAGE_BACKEND ("auto" uses Supabase when it
is configured).
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from config.database import (
    ANALYSES_TABLE,
    USER_PRODUCTS_TABLE,
    USERS_TABLE,
    get_supabase_client,
)
from config.settings import get_settings
from core.logging import get_logger
from storage.models import AnalysisRecord, User, UserProduct, utcnow

logger = get_logger(__name__)


class StorageError(RuntimeError):
    """Raised when the backing store rejects or fails an operation."""


class DuplicateUserError(StorageError):
    """Raised when registering an email that already exists."""


class Storage(ABC):
    """Operations the API needs from the persistence layer."""

    # Users
    @abstractmethod
    def create_user(self, email: str, name: str, password_hash: str) -> User: ...

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def update_user(self, user_id: int, **fields: Any) -> Optional[User]: ...

    # Analyses
    @abstractmethod
    def create_analysis(self, user_id: int, **fields: Any) -> AnalysisRecord: ...

    @abstractmethod
    def get_analysis(self, analysis_id: int) -> Optional[AnalysisRecord]: ...

    @abstractmethod
    def list_analyses(self, user_id: int) -> List[AnalysisRecord]: ...

    # Saved products
    @abstractmethod
    def list_user_products(self, user_id: int) -> List[UserProduct]: ...

    @abstractmethod
    def get_user_product(self, user_id: int, product_id: int) -> Optional[UserProduct]: ...

    @abstractmethod
    def add_user_product(self, user_id: int, product_id: int, is_favorite: bool = False) -> UserProduct: ...

    @abstractmethod
    def set_favorite(self, user_id: int, product_id: int, is_favorite: bool) -> UserProduct: ...

    @abstractmethod
    def remove_user_product(self, user_id: int, product_id: int) -> bool: ...

    def toggle_favorite(self, user_id: int, product_id: int) -> UserProduct:
        """Flip the favorite flag, saving the product first if needed."""
        existing = self.get_user_product(user_id, product_id)
        if existing is None:
            return self.add_user_product(user_id, product_id, is_favorite=True)
        return self.set_favorite(user_id, product_id, not existing.is_favorite)

    def health_check(self) -> bool:
        return True


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# =============================================================================
# In-memory backend
# =============================================================================

class InMemoryStorage(Storage):

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}
        self._analyses: Dict[int, AnalysisRecord] = {}
        self._user_products: Dict[int, UserProduct] = {}
        self._next_ids = {"user": 1, "analysis": 1, "user_product": 1}

    def _next_id(self, kind: str) -> int:
        value = self._next_ids[kind]
        self._next_ids[kind] = value + 1
        return value

    def create_user(self, email: str, name: str, password_hash: str) -> User:
        email = _normalize_email(email)
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise DuplicateUserError(f"User already exists: {email}")
            user = User(id=self._next_id("user"), email=email, name=name, password_hash=password_hash)
            self._users[user.id] = user
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        email = _normalize_email(email)
        with self._lock:
            return next((u for u in self._users.values() if u.email == email), None)

    def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(update={k: v for k, v in fields.items() if v is not None})
            self._users[user_id] = updated
            return updated

    def create_analysis(self, user_id: int, **fields: Any) -> AnalysisRecord:
        with self._lock:
            record = AnalysisRecord(id=self._next_id("analysis"), user_id=user_id, **fields)
            self._analyses[record.id] = record
        return record

    def get_analysis(self, analysis_id: int) -> Optional[AnalysisRecord]:
        with self._lock:
            return self._analyses.get(analysis_id)

    def list_analyses(self, user_id: int) -> List[AnalysisRecord]:
        with self._lock:
            records = [a for a in self._analyses.values() if a.user_id == user_id]
        return sorted(records, key=lambda a: (a.created_at, a.id), reverse=True)

    def list_user_products(self, user_id: int) -> List[UserProduct]:
        with self._lock:
            return [up for up in self._user_products.values() if up.user_id == user_id]

    def get_user_product(self, user_id: int, product_id: int) -> Optional[UserProduct]:
        with self._lock:
            return self._find_user_product(user_id, product_id)

    def _find_user_product(self, user_id: int, product_id: int) -> Optional[UserProduct]:
        return next(
            (up for up in self._user_products.values()
             if up.user_id == user_id and up.product_id == product_id),
            None,
        )

    def add_user_product(self, user_id: int, product_id: int, is_favorite: bool = False) -> UserProduct:
        with self._lock:
            existing = self._find_user_product(user_id, product_id)
            if existing is not None:
                return existing
            saved = UserProduct(
                id=self._next_id("user_product"),
                user_id=user_id,
                product_id=product_id,
                is_favorite=is_favorite,
            )
            self._user_products[saved.id] = saved
            return saved

    def set_favorite(self, user_id: int, product_id: int, is_favorite: bool) -> UserProduct:
        with self._lock:
            existing = self._find_user_product(user_id, product_id)
            if existing is None:
                raise StorageError(f"Product {product_id} is not saved for user {user_id}")
            updated = existing.model_copy(update={"is_favorite": is_favorite})
            self._user_products[updated.id] = updated
            return updated

    def remove_user_product(self, user_id: int, product_id: int) -> bool:
        with self._lock:
            existing = self._find_user_product(user_id, product_id)
            if existing is None:
                return False
            del self._user_products[existing.id]
            return True


# =============================================================================
# Supabase backend
# =============================================================================

class SupabaseStorage(Storage):

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error("Supabase query failed", action=action, error=str(e))
            raise StorageError(f"Failed to {action}: {e}") from e

    @staticmethod
    def _first(result) -> Optional[dict]:
        rows = result.data or []
        return rows[0] if rows else None

    # Users

    def create_user(self, email: str, name: str, password_hash: str) -> User:
        email = _normalize_email(email)
        if self.get_user_by_email(email) is not None:
            raise DuplicateUserError(f"User already exists: {email}")
        result = self._execute(
            self.client.table(USERS_TABLE).insert({
                "email": email,
                "name": name,
                "password_hash": password_hash,
            }),
            "create user",
        )
        return User.model_validate(self._first(result))

    def get_user(self, user_id: int) -> Optional[User]:
        result = self._execute(
            self.client.table(USERS_TABLE).select("*").eq("id", user_id).limit(1),
            "get user",
        )
        row = self._first(result)
        return User.model_validate(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        result = self._execute(
            self.client.table(USERS_TABLE).select("*").eq("email", _normalize_email(email)).limit(1),
            "get user by email",
        )
        row = self._first(result)
        return User.model_validate(row) if row else None

    def update_user(self, user_id: int, **fields: Any) -> Optional[User]:
        changes = {k: v for k, v in fields.items() if v is not None}
        if not changes:
            return self.get_user(user_id)
        result = self._execute(
            self.client.table(USERS_TABLE).update(changes).eq("id", user_id),
            "update user",
        )
        row = self._first(result)
        return User.model_validate(row) if row else None

    # Analyses

    def create_analysis(self, user_id: int, **fields: Any) -> AnalysisRecord:
        row = {"user_id": user_id, **fields, "created_at": utcnow().isoformat()}
        result = self._execute(self.client.table(ANALYSES_TABLE).insert(row), "save analysis")
        return AnalysisRecord.model_validate(self._first(result))

    def get_analysis(self, analysis_id: int) -> Optional[AnalysisRecord]:
        result = self._execute(
            self.client.table(ANALYSES_TABLE).select("*").eq("id", analysis_id).limit(1),
            "get analysis",
        )
        row = self._first(result)
        return AnalysisRecord.model_validate(row) if row else None

    def list_analyses(self, user_id: int) -> List[AnalysisRecord]:
        result = self._execute(
            self.client.table(ANALYSES_TABLE).select("*").eq("user_id", user_id)
            .order("created_at", desc=True),
            "list analyses",
        )
        return [AnalysisRecord.model_validate(row) for row in result.data or []]

    # Saved products

    def list_user_products(self, user_id: int) -> List[UserProduct]:
        result = self._execute(
            self.client.table(USER_PRODUCTS_TABLE).select("*").eq("user_id", user_id),
            "list saved products",
        )
        return [UserProduct.model_validate(row) for row in result.data or []]

    def get_user_product(self, user_id: int, product_id: int) -> Optional[UserProduct]:
        result = self._execute(
            self.client.table(USER_PRODUCTS_TABLE).select("*")
            .eq("user_id", user_id).eq("product_id", product_id).limit(1),
            "get saved product",
        )
        row = self._first(result)
        return UserProduct.model_validate(row) if row else None

    def add_user_product(self, user_id: int, product_id: int, is_favorite: bool = False) -> UserProduct:
        existing = self.get_user_product(user_id, product_id)
        if existing is not None:
            return existing
        result = self._execute(
            self.client.table(USER_PRODUCTS_TABLE).insert({
                "user_id": user_id,
                "product_id": product_id,
                "is_favorite": is_favorite,
            }),
            "save product",
        )
        return UserProduct.model_validate(self._first(result))

    def set_favorite(self, user_id: int, product_id: int, is_favorite: bool) -> UserProduct:
        result = self._execute(
            self.client.table(USER_PRODUCTS_TABLE).update({"is_favorite": is_favorite})
            .eq("user_id", user_id).eq("product_id", product_id),
            "update favorite",
        )
        row = self._first(result)
        if row is None:
            raise StorageError(f"Product {product_id} is not saved for user {user_id}")
        return UserProduct.model_validate(row)

    def remove_user_product(self, user_id: int, product_id: int) -> bool:
        result = self._execute(
            self.client.table(USER_PRODUCTS_TABLE).delete()
            .eq("user_id", user_id).eq("product_id", product_id),
            "remove saved product",
        )
        return bool(result.data)

    def health_check(self) -> bool:
        try:
            self.client.table(USERS_TABLE).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.warning("Supabase health check failed", error=str(e))
            return False


# =============================================================================
# Singleton
# =============================================================================

_storage: Optional[Storage] = None
_storage_lock = threading.Lock()


def create_storage() -> Storage:
    settings = get_settings()
    backend = settings.storage_backend.lower()
    if backend == "supabase" or (backend == "auto" and settings.supabase_configured):
        logger.info("Using Supabase storage backend")
        return SupabaseStorage()
    if settings.is_production:
        logger.warning("Using in-memory storage in production; data will not survive restarts")
    else:
        logger.info("Using in-memory storage backend")
    return InMemoryStorage()


def get_storage() -> Storage:
    """Get or create the Storage singleton (thread-safe). Also a FastAPI dependency."""
    global _storage
    if _storage is None:
        with _storage_lock:
            if _storage is None:
                _storage = create_storage()
    return _storage


def reset_storage() -> None:
    global _storage
    with _storage_lock:
        _storage = None
