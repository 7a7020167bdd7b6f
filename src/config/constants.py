"""
Application constants and algorithm configuration.

These are values that don't change based on environment but may need
to be tuned or referenced across the codebase.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


# =============================================================================
# Enumerations
# =============================================================================

class SkinTone(str, Enum):
    """Shade families, ordered lightest to darkest."""
    FAIR = "Fair"
    LIGHT = "Light"
    MEDIUM = "Medium"
    TAN = "Tan"
    DEEP = "Deep"
    DARK = "Dark"

    @classmethod
    def normalize(cls, value) -> Optional["SkinTone"]:
        return _normalize_enum(cls, value)

    @property
    def ordinal(self) -> int:
        return SKIN_TONE_ORDER.index(self)


class Undertone(str, Enum):
    WARM = "Warm"
    COOL = "Cool"
    NEUTRAL = "Neutral"

    @classmethod
    def normalize(cls, value) -> Optional["Undertone"]:
        return _normalize_enum(cls, value)


def _normalize_enum(enum_cls, value):
    """Case-insensitive match of a raw value against an enum, or None."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    candidate = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == candidate:
            return member
    return None


SKIN_TONE_ORDER: Tuple[SkinTone, ...] = (
    SkinTone.FAIR,
    SkinTone.LIGHT,
    SkinTone.MEDIUM,
    SkinTone.TAN,
    SkinTone.DEEP,
    SkinTone.DARK,
)


class ParseStatus(str, Enum):
    PARSED = "parsed"
    DEGRADED = "degraded"
    FAILED = "failed"


# =============================================================================
# Analysis Parsing Configuration
# =============================================================================

@dataclass(frozen=True)
class AnalysisDefaults:
    """Values used when the model reply does not supply a field."""

    SKIN_TONE: SkinTone = SkinTone.MEDIUM
    UNDERTONE: Undertone = Undertone.NEUTRAL
    SKIN_TYPE: str = "Normal"
    CONCERNS: Tuple[str, ...] = ("Uneven skin tone",)

    # Injected when neither JSON nor text sections yield a recommendation
    FALLBACK_CATEGORY: str = "Foundation"
    FALLBACK_PRODUCT_TYPE: str = "Foundation"
    FALLBACK_REASON: str = "Recommended for your skin tone and type"
    FALLBACK_INGREDIENTS: Tuple[str, ...] = ("Hydrating formula",)

    # Phrases that mean the model could not see a face
    FAILURE_MARKERS: Tuple[str, ...] = (
        "no face detected",
        "unable to analyze",
        "no_face_detected",
    )


DEFAULT_ANALYSIS_DEFAULTS = AnalysisDefaults()


# Sections scanned for text-only recommendations: heading -> product type
RECOMMENDATION_SECTIONS: Dict[str, str] = {
    "Foundation": "Foundation",
    "Concealer": "Concealer",
    "Blush": "Blush",
    "Eyeshadow": "Eyeshadow",
    "Eyeliner": "Eyeliner",
    "Lipstick": "Lipstick",
    "Lip": "Lip",
    "Moisturizer": "Moisturizer",
    "Serum": "Serum",
    "Cleanser": "Cleanser",
}


# =============================================================================
# Product Matching Configuration
# =============================================================================

@dataclass(frozen=True)
class MatchWeights:
    """Additive weights used when scoring catalog products against an analysis."""

    SHADE_KEYWORD: int = 5
    INGREDIENT: int = 2
    CATEGORY: int = 3
    CONCERN_BENEFIT: int = 2
    SHADE_FAMILY: int = 4
    UNDERTONE: int = 3


DEFAULT_MATCH_WEIGHTS = MatchWeights()


# Category groups: a recommendation category covers every product category listed
CATEGORY_GROUPS: Dict[str, List[str]] = {
    "skincare": ["moisturizer", "serum", "cleanser", "treatment", "sunscreen"],
    "lip": ["lipstick"],
    "eye": ["eyeshadow"],
}


# =============================================================================
# Image Validation
# =============================================================================

@dataclass(frozen=True)
class ImageLimits:
    """Constraints applied to uploaded selfies before analysis."""

    DATA_URL_PREFIX: str = "data:image/jpeg;base64,"
    STORED_PREVIEW_CHARS: int = 100
    ALLOWED_FORMATS: Tuple[str, ...] = ("JPEG", "PNG", "WEBP", "GIF", "BMP", "MPO")


DEFAULT_IMAGE_LIMITS = ImageLimits()


# =============================================================================
# Tutorial Configuration
# =============================================================================

@dataclass(frozen=True)
class TutorialConfig:
    """Video reference formats and lookup constants."""

    EMBED_BASE: str = "https://www.youtube.com/embed/"
    WATCH_BASE: str = "https://www.youtube.com/watch?v="
    VIDEO_ID_LENGTH: int = 11
    BASE_CATEGORY: str = "foundation"
    # Used when a tutorials file leaves out global_default
    GLOBAL_DEFAULT: str = "https://www.youtube.com/embed/ZD92D2qQW8U"
    CATEGORIES: Tuple[str, ...] = field(default_factory=lambda: (
        "foundation", "concealer", "blush", "eyeshadow", "lipstick", "mascara",
    ))


DEFAULT_TUTORIAL_CONFIG = TutorialConfig()
