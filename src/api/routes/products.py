"""
Catalog routes: listing, lookup and tone-based recommendations.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import catalog_dep, optional_user_id, storage_dep
from api.routes.analysis import record_to_result
from catalog.matcher import rank_products, recommend_for_tones
from catalog.models import ProductListResponse
from catalog.store import CatalogStore
from config.settings import get_settings
from storage.repository import Storage


router = APIRouter(prefix="/api", tags=["Products"])


@router.get("/products", response_model=ProductListResponse, summary="List catalog products")
def list_products(
    category: Optional[str] = Query(None, description="Filter by category or category group"),
    catalog: CatalogStore = Depends(catalog_dep),
) -> ProductListResponse:
    products = catalog.by_category(category) if category else list(catalog)
    return ProductListResponse(
        products=[p.model_dump(mode="json") for p in products],
        total=len(products),
    )


# Registered before /products/{product_id} so "category" is not read as an id.
@router.get("/products/category/{category}", response_model=ProductListResponse)
def list_products_by_category(
    category: str,
    catalog: CatalogStore = Depends(catalog_dep),
) -> ProductListResponse:
    products = catalog.by_category(category)
    return ProductListResponse(
        products=[p.model_dump(mode="json") for p in products],
        total=len(products),
    )


@router.get("/products/{product_id}", summary="One catalog product")
def get_product(product_id: int, catalog: CatalogStore = Depends(catalog_dep)) -> Dict[str, Any]:
    product = catalog.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.model_dump(mode="json")


@router.get("/recommendations", summary="Products matched to a skin tone and undertone")
def get_recommendations(
    skin_tone: Optional[str] = Query(None, description="Fair, Light, Medium, Tan, Deep or Dark (case-insensitive)"),
    undertone: Optional[str] = Query(None, description="Warm, Cool or Neutral"),
    analysis_id: Optional[int] = Query(None, description="Use a saved analysis instead of tones"),
    user_id: Optional[int] = Depends(optional_user_id),
    catalog: CatalogStore = Depends(catalog_dep),
    storage: Storage = Depends(storage_dep),
) -> Dict[str, Any]:
    """
    Rank the catalog for a (skin tone, undertone) pair or a saved analysis.

    Unrecognized tone values fall back to Medium / Neutral.
    """
    limit = get_settings().recommendation_limit

    if analysis_id is not None:
        if user_id is None:
            raise HTTPException(
                status_code=401,
                detail="Authentication required",
                headers={"WWW-Authenticate": "Bearer"},
            )
        record = storage.get_analysis(analysis_id)
        if record is None or record.user_id != user_id:
            raise HTTPException(status_code=404, detail="Analysis not found")
        ranked = rank_products(record_to_result(record), catalog, limit=limit)
    else:
        ranked = recommend_for_tones(skin_tone, undertone, catalog, limit=limit)

    products = [item.to_response() for item in ranked]
    return {"products": products, "total": len(products)}
