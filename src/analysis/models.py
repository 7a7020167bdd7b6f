"""
Pydantic models for selfie analysis.

AnalysisResult serializes to a camelCase payload (skinType, skinTone,
foundationShades, ...) which the parser accepts back unchanged.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config.constants import DEFAULT_ANALYSIS_DEFAULTS, ParseStatus, SkinTone, Undertone


class Recommendation(BaseModel):
    """One product-type recommendation extracted from the model reply."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    category: str
    product_type: str = ""
    reason: str = ""
    priority: int = 1
    ingredients: List[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Structured analysis of a selfie. Never mutated after parsing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    skin_type: str = DEFAULT_ANALYSIS_DEFAULTS.SKIN_TYPE
    skin_tone: SkinTone = DEFAULT_ANALYSIS_DEFAULTS.SKIN_TONE
    undertone: Undertone = DEFAULT_ANALYSIS_DEFAULTS.UNDERTONE
    concerns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ANALYSIS_DEFAULTS.CONCERNS),
        min_length=1,
    )
    recommendations: List[Recommendation] = Field(..., min_length=1)
    features: Dict[str, str] = Field(default_factory=dict)
    foundation_shades: List[str] = Field(default_factory=list)

    def to_payload(self) -> dict:
        """camelCase JSON-ready dict."""
        return self.model_dump(mode="json", by_alias=True)


class ParseOutcome(BaseModel):
    """
    Result of parsing one model reply.

    ``parsed``: tone and undertone were both found.
    ``degraded``: a result was produced but some fields are defaults.
    ``failed``: the reply said no face could be analyzed; ``result`` is None.
    """

    status: ParseStatus
    result: Optional[AnalysisResult] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != ParseStatus.FAILED


# =============================================================================
# Request / Response Models
# =============================================================================

class AnalyzeRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Base64 image, optionally a data URL")


class AnalyzeResponse(BaseModel):
    analysis: str = Field(..., description="Raw text returned by the vision model")
    result: dict
    outcome: ParseStatus
    saved_analysis: Optional[dict] = None
