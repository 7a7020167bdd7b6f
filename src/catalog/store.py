"""
Read-only product catalog.

The catalog is loaded once per process, either from the bundled JSON seed
(``catalog/data/products.json``) or from the Supabase ``products`` table,
and never mutated afterwards.
"""

import json
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from config.constants import CATEGORY_GROUPS
from config.database import PRODUCTS_TABLE, get_supabase_client
from config.settings import get_settings
from core.logging import get_logger
from catalog.models import Product

logger = get_logger(__name__)


class CatalogError(RuntimeError):
    """Raised when the catalog cannot be loaded."""


class CatalogStore:
    """Immutable, ordered collection of products with id and category lookups."""

    def __init__(self, products: Iterable[Product]):
        ordered: List[Product] = []
        by_id: Dict[int, Product] = {}
        for product in products:
            if product.id in by_id:
                logger.warning("Duplicate product id in catalog, keeping first", product_id=product.id)
                continue
            by_id[product.id] = product
            ordered.append(product)

        self._products: Tuple[Product, ...] = tuple(ordered)
        self._by_id = by_id

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "CatalogStore":
        return cls(Product.model_validate(record) for record in records)

    @classmethod
    def from_file(cls, path: Path) -> "CatalogStore":
        try:
            with open(path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Failed to read catalog file {path}: {e}") from e

        store = cls.from_records(records)
        logger.info("Catalog loaded from file", path=str(path), products=len(store))
        return store

    @classmethod
    def from_supabase(cls, client) -> "CatalogStore":
        try:
            result = client.table(PRODUCTS_TABLE).select("*").order("id").execute()
        except Exception as e:
            raise CatalogError(f"Failed to load catalog from Supabase: {e}") from e

        store = cls.from_records(result.data or [])
        logger.info("Catalog loaded from Supabase", products=len(store))
        return store

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self):
        return iter(self._products)

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    def get(self, product_id: int) -> Optional[Product]:
        return self._by_id.get(product_id)

    def by_category(self, category: str) -> List[Product]:
        """
        Products in a category, in catalog order.

        Matching is case-insensitive, and a group name such as "skincare"
        returns every category in that group.
        """
        key = category.strip().lower()
        members = set(CATEGORY_GROUPS.get(key, [])) | {key}
        return [p for p in self._products if p.category_key in members]

    def categories(self) -> List[str]:
        seen: Dict[str, None] = {}
        for product in self._products:
            seen.setdefault(product.category, None)
        return list(seen)


# =============================================================================
# Singleton
# =============================================================================

_catalog: Optional[CatalogStore] = None
_catalog_lock = threading.Lock()


def load_catalog() -> CatalogStore:
    settings = get_settings()
    if settings.catalog_source.lower() == "supabase":
        return CatalogStore.from_supabase(get_supabase_client())
    return CatalogStore.from_file(settings.catalog_file)


def get_catalog() -> CatalogStore:
    """Get or load the process-wide catalog (thread-safe)."""
    global _catalog
    if _catalog is None:
        with _catalog_lock:
            if _catalog is None:
                _catalog = load_catalog()
    return _catalog


def reset_catalog() -> None:
    """Forget the loaded catalog so the next get_catalog() reloads it."""
    global _catalog
    with _catalog_lock:
        _catalog = None
