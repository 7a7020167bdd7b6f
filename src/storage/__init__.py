"""User accounts, saved analyses and saved products."""

from storage.models import AnalysisRecord, User, UserProduct
from storage.repository import (
    DuplicateUserError,
    InMemoryStorage,
    Storage,
    StorageError,
    SupabaseStorage,
    get_storage,
)

__all__ = [
    "AnalysisRecord",
    "User",
    "UserProduct",
    "DuplicateUserError",
    "InMemoryStorage",
    "Storage",
    "StorageError",
    "SupabaseStorage",
    "get_storage",
]
