"""
Per-user routes: analysis history, saved products and profile.

All endpoints require a bearer token.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import catalog_dep, current_user_id, storage_dep
from catalog.store import CatalogStore
from config.constants import SkinTone, Undertone
from core.exceptions import MalformedInput
from core.logging import get_logger
from storage.models import ProfileUpdate, SaveProductRequest, UserProduct
from storage.repository import Storage


logger = get_logger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])


def _saved_product_response(saved: UserProduct, catalog: CatalogStore) -> Dict[str, Any]:
    product = catalog.get(saved.product_id)
    data: Dict[str, Any] = product.model_dump(mode="json") if product else {"id": saved.product_id}
    data["is_favorite"] = saved.is_favorite
    data["added_at"] = saved.added_at.isoformat()
    return data


# =============================================================================
# History
# =============================================================================

@router.get("/analyses", summary="The caller's saved analyses, newest first")
def list_analyses(
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
) -> Dict[str, Any]:
    records = storage.list_analyses(user_id)
    return {"analyses": [r.model_dump(mode="json") for r in records], "total": len(records)}


# =============================================================================
# Saved products
# =============================================================================

@router.get("/products", summary="The caller's saved products")
def list_saved_products(
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
    catalog: CatalogStore = Depends(catalog_dep),
) -> Dict[str, Any]:
    saved = storage.list_user_products(user_id)
    products: List[Dict[str, Any]] = [_saved_product_response(s, catalog) for s in saved]
    return {"products": products, "total": len(products)}


@router.post("/products", status_code=status.HTTP_201_CREATED, summary="Save a product")
def save_product(
    request: SaveProductRequest,
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
    catalog: CatalogStore = Depends(catalog_dep),
) -> Dict[str, Any]:
    if catalog.get(request.product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")

    saved = storage.add_user_product(user_id, request.product_id, is_favorite=request.is_favorite)
    if request.is_favorite and not saved.is_favorite:
        saved = storage.set_favorite(user_id, request.product_id, True)

    logger.info("Product saved", user_id=user_id, product_id=request.product_id)
    return _saved_product_response(saved, catalog)


@router.post("/products/{product_id}/favorite", summary="Toggle a product's favorite flag")
def toggle_favorite(
    product_id: int,
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
    catalog: CatalogStore = Depends(catalog_dep),
) -> Dict[str, Any]:
    if catalog.get(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    saved = storage.toggle_favorite(user_id, product_id)
    return _saved_product_response(saved, catalog)


@router.delete("/products/{product_id}", summary="Remove a saved product")
def remove_saved_product(
    product_id: int,
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
) -> Dict[str, str]:
    if not storage.remove_user_product(user_id, product_id):
        raise HTTPException(status_code=404, detail="Saved product not found")
    return {"message": "Product removed"}


# =============================================================================
# Profile
# =============================================================================

@router.put("/profile", summary="Update name, skin tone or undertone")
def update_profile(
    request: ProfileUpdate,
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    if request.name is not None:
        changes["name"] = request.name.strip()

    if request.skin_tone is not None:
        tone = SkinTone.normalize(request.skin_tone)
        if tone is None:
            raise MalformedInput(f"Unknown skin tone: {request.skin_tone}")
        changes["skin_tone"] = tone.value

    if request.undertone is not None:
        under = Undertone.normalize(request.undertone)
        if under is None:
            raise MalformedInput(f"Unknown undertone: {request.undertone}")
        changes["undertone"] = under.value

    user = storage.update_user(user_id, **changes)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user.public()
