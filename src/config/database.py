"""
Supabase client singleton.

The service only talks to Supabase when SUPABASE_URL and
SUPABASE_SERVICE_KEY are set; otherwise the in-memory storage backend
and the bundled catalog file are used.
"""

from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from config.settings import get_settings


# Table names used by the storage backend and the seed script
USERS_TABLE = "users"
ANALYSES_TABLE = "analyses"
PRODUCTS_TABLE = "products"
USER_PRODUCTS_TABLE = "user_products"


class SupabaseClientError(Exception):
    """Raised when the Supabase client cannot be created."""
    pass


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Get the cached Supabase client.

    Raises:
        SupabaseClientError: If Supabase is not configured or the client fails to build
    """
    settings = get_settings()
    if not settings.supabase_configured:
        raise SupabaseClientError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        raise SupabaseClientError(f"Failed to create Supabase client: {e}") from e


def get_supabase_client_optional() -> Optional[Client]:
    """Like get_supabase_client, but None when Supabase is unavailable."""
    try:
        return get_supabase_client()
    except SupabaseClientError:
        return None


SupabaseClient = Client
