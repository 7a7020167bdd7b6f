"""
Product catalog and matching.

The catalog is read-only after load; the matcher ranks its products
against a parsed selfie analysis.
"""

from catalog.models import Product, ScoredProduct
from catalog.store import CatalogError, CatalogStore, get_catalog
from catalog.matcher import rank_products, recommend_for_tones, score_product

__all__ = [
    "Product",
    "ScoredProduct",
    "CatalogError",
    "CatalogStore",
    "get_catalog",
    "rank_products",
    "recommend_for_tones",
    "score_product",
]
