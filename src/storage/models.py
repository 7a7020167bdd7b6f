"""
Pydantic models for persisted records.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    id: int
    email: str
    name: str
    password_hash: str = Field("", repr=False)
    skin_tone: Optional[str] = None
    undertone: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    def public(self) -> Dict[str, Any]:
        """User fields safe to return to clients (no password hash)."""
        return self.model_dump(mode="json", exclude={"password_hash"})


class AnalysisRecord(BaseModel):
    id: int
    user_id: int
    image_ref: str = ""
    skin_type: str
    skin_tone: Optional[str] = None
    undertone: Optional[str] = None
    concerns: List[str] = Field(default_factory=list)
    recommendations: List[Dict[str, Any]] = Field(default_factory=list)
    features: Dict[str, Any] = Field(default_factory=dict)
    foundation_shades: List[str] = Field(default_factory=list)
    raw_text: str = ""
    created_at: datetime = Field(default_factory=utcnow)

    def to_analysis_payload(self) -> Dict[str, Any]:
        """The camelCase analysis payload this record was saved from."""
        return {
            "skinType": self.skin_type,
            "skinTone": self.skin_tone,
            "undertone": self.undertone,
            "concerns": self.concerns,
            "recommendations": self.recommendations,
            "features": self.features,
            "foundationShades": self.foundation_shades,
        }


class UserProduct(BaseModel):
    id: int
    user_id: int
    product_id: int
    is_favorite: bool = False
    added_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# Request Models
# =============================================================================

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    skin_tone: Optional[str] = None
    undertone: Optional[str] = None


class SaveProductRequest(BaseModel):
    product_id: int
    is_favorite: bool = False
