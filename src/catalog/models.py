"""
Pydantic models for catalog products.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.constants import SkinTone, Undertone


class Product(BaseModel):
    """A catalog product. Immutable once the catalog is loaded."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: int = Field(..., description="Unique product id")
    name: str
    brand: str = ""
    category: str = Field(..., description="Product category (Foundation, Concealer, Serum, ...)")
    description: str = ""
    price: str = Field("", description="Display price, e.g. '$49.00'")
    image_url: str = ""
    product_url: str = ""
    shade_family: Optional[SkinTone] = None
    undertone: Optional[Undertone] = None
    video_url: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)
    ingredients: List[str] = Field(default_factory=list)

    @field_validator("shade_family", mode="before")
    @classmethod
    def normalize_shade_family(cls, v):
        return SkinTone.normalize(v)

    @field_validator("undertone", mode="before")
    @classmethod
    def normalize_undertone(cls, v):
        return Undertone.normalize(v)

    @property
    def category_key(self) -> str:
        return self.category.strip().lower()


class ScoredProduct(BaseModel):
    """A product with the score the matcher assigned to it."""

    product: Product
    match_score: int = 0

    def to_response(self) -> dict:
        data = self.product.model_dump(mode="json")
        data["match_score"] = self.match_score
        return data


class ProductListResponse(BaseModel):
    products: List[dict]
    total: int
