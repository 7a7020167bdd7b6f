"""
Selfie analysis routes.

POST /api/analyze validates the upload, asks the vision model for an
analysis, parses the reply and (for signed-in callers) saves it.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from analysis.client import VisionAnalyzer
from analysis.images import validate_image
from analysis.models import AnalysisResult, AnalyzeRequest, AnalyzeResponse
from analysis.parser import parse_outcome
from api.dependencies import (
    analyzer_dep,
    catalog_dep,
    current_user_id,
    optional_user_id,
    storage_dep,
)
from catalog.matcher import analysis_for_tones, rank_products
from catalog.store import CatalogStore
from config.settings import get_settings
from core.exceptions import AnalysisFailed
from core.logging import get_logger
from storage.models import AnalysisRecord
from storage.repository import Storage


logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Analysis"])


def _owned_analysis(storage: Storage, analysis_id: int, user_id: int) -> AnalysisRecord:
    record = storage.get_analysis(analysis_id)
    # Another user's analysis is reported as missing.
    if record is None or record.user_id != user_id:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return record


def record_to_result(record: AnalysisRecord) -> AnalysisResult:
    """Rebuild an AnalysisResult from a saved record, degrading to its tones."""
    try:
        return AnalysisResult.model_validate(record.to_analysis_payload())
    except ValidationError:
        logger.warning("Saved analysis did not validate, using its tones", analysis_id=record.id)
        return analysis_for_tones(record.skin_tone, record.undertone)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/analyze", response_model=AnalyzeResponse, summary="Analyze a selfie")
def analyze(
    request: AnalyzeRequest,
    user_id: Optional[int] = Depends(optional_user_id),
    analyzer: VisionAnalyzer = Depends(analyzer_dep),
    storage: Storage = Depends(storage_dep),
) -> AnalyzeResponse:
    """
    Analyze a base64 selfie.

    Errors:
    - 400 when the payload is not a decodable image or is too large
    - 422 when the model could not find a face (nothing is saved)
    - 502 when the analysis service fails
    """
    image = validate_image(request.image, max_mb=get_settings().max_image_mb)
    text = analyzer.analyze(image)

    outcome = parse_outcome(text)
    if outcome.result is None:
        raise AnalysisFailed(outcome.message, raw_text=text)

    result = outcome.result
    saved: Optional[Dict[str, Any]] = None
    if user_id is not None:
        record = storage.create_analysis(
            user_id,
            image_ref=image.preview(),
            skin_type=result.skin_type,
            skin_tone=result.skin_tone.value,
            undertone=result.undertone.value,
            concerns=list(result.concerns),
            recommendations=[r.model_dump(mode="json", by_alias=True) for r in result.recommendations],
            features=dict(result.features),
            foundation_shades=list(result.foundation_shades),
            raw_text=text,
        )
        saved = record.model_dump(mode="json")
        logger.info("Analysis saved", analysis_id=record.id, user_id=user_id)

    return AnalyzeResponse(
        analysis=text,
        result=result.to_payload(),
        outcome=outcome.status,
        saved_analysis=saved,
    )


@router.get("/analysis/{analysis_id}", summary="A saved analysis")
def get_analysis(
    analysis_id: int,
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
) -> Dict[str, Any]:
    return _owned_analysis(storage, analysis_id, user_id).model_dump(mode="json")


@router.get("/analysis/{analysis_id}/recommendations", summary="Products for a saved analysis")
def get_analysis_recommendations(
    analysis_id: int,
    user_id: int = Depends(current_user_id),
    storage: Storage = Depends(storage_dep),
    catalog: CatalogStore = Depends(catalog_dep),
) -> Dict[str, Any]:
    record = _owned_analysis(storage, analysis_id, user_id)
    ranked = rank_products(
        record_to_result(record),
        catalog,
        limit=get_settings().recommendation_limit,
    )
    products: List[dict] = [item.to_response() for item in ranked]
    return {"analysis_id": record.id, "products": products, "total": len(products)}
